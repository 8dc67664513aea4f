import pytest

from tests.conftest import make_wav


def _wav_file(data=None, name="clip.wav", content_type="audio/wav"):
    return {"audio": (name, data if data is not None else make_wav(), content_type)}


def test_health_endpoint(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requests_without_identity_are_rejected(client):
    r = client.get("/voice/history")
    assert r.status_code == 401


# ---- voice ----

def test_voice_analyze_stores_completed_result(client, alice):
    r = client.post(
        "/voice/analyze",
        files=_wav_file(),
        data={"transcript": "my family has diabetes and I am overweight"},
        headers=alice,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "completed"
    assert body["kind"] == "voice"
    assert body["result"]["score"] == pytest.approx(30.0, abs=2.0)
    assert body["result"]["label"] == "moderate"
    assert body["result"]["breakdown"]["familyHistory"] == 15.0
    assert body["result"]["breakdown"]["overweight"] == 15.0

    fetched = client.get(f"/voice/analysis/{body['id']}", headers=alice)
    assert fetched.status_code == 200
    assert fetched.json()["result"] == body["result"]


def test_voice_analyze_rejects_wrong_type_and_bad_audio(client, alice):
    r = client.post("/voice/analyze", files=_wav_file(b"OggS...", "a.ogg", "audio/ogg"), headers=alice)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Invalid file type")
    r = client.post("/voice/analyze", files=_wav_file(b"not really a wav"), headers=alice)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Invalid audio")


@pytest.mark.parametrize(
    "name,content_type",
    [("clip.webm", "audio/webm"), ("clip.mp3", "audio/mpeg"), ("clip.mp3", "audio/mp3")],
)
def test_browser_recording_types_are_accepted_for_decoding(client, alice, name, content_type):
    r = client.post("/voice/analyze", files=_wav_file(b"\x1a\x45\xdf\xa3 truncated", name, content_type), headers=alice)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Invalid audio")


def test_voice_analyze_rejects_wav_with_unusable_sample_rate(client, alice):
    low_rate = make_wav(freq_hz=5.0, seconds=20.0, rate=20)
    r = client.post("/voice/analyze", files=_wav_file(low_rate), headers=alice)
    assert r.status_code == 400
    assert "sample rate" in r.json()["detail"]


def test_voice_upload_size_limit(client, alice, settings):
    big = b"\x00" * (settings.max_upload_bytes + 1)
    r = client.post("/voice/analyze", files=_wav_file(big), headers=alice)
    assert r.status_code == 413


def test_voice_job_runs_to_completion(client, alice):
    r = client.post("/voice/jobs", files=_wav_file(), headers=alice)
    assert r.status_code == 202
    job = r.json()
    assert job["status"] == "uploaded"

    doc = client.get(f"/voice/analysis/{job['id']}", headers=alice).json()
    assert doc["status"] == "completed"
    assert doc["result"]["label"] == "low"


def test_voice_job_failure_is_recorded(client, alice):
    job = client.post("/voice/jobs", files=_wav_file(b"junk bytes"), headers=alice).json()
    doc = client.get(f"/voice/analysis/{job['id']}", headers=alice).json()
    assert doc["status"] == "error"
    assert doc["error"]


def test_other_users_cannot_read_an_analysis(client, alice, bob):
    body = client.post("/voice/analyze", files=_wav_file(), headers=alice).json()
    r = client.get(f"/voice/analysis/{body['id']}", headers=bob)
    assert r.status_code == 403


def test_unknown_analysis_is_404(client, alice):
    assert client.get("/voice/analysis/nope", headers=alice).status_code == 404


def test_voice_history_is_paginated_and_per_user(client, alice, bob):
    for _ in range(3):
        client.post("/voice/analyze", files=_wav_file(), headers=alice)
    client.post("/voice/analyze", files=_wav_file(), headers=bob)

    page = client.get("/voice/history", params={"page": 2, "limit": 2}, headers=alice).json()
    assert page["pagination"] == {"page": 2, "limit": 2, "totalItems": 3, "totalPages": 2}
    assert len(page["history"]) == 1
    assert all(item["user_id"] == "alice" for item in page["history"])


def test_history_limit_is_capped(client, alice, settings):
    page = client.get("/voice/history", params={"limit": 10_000}, headers=alice).json()
    assert page["pagination"]["limit"] == settings.page_limit_max


# ---- text screening ----

def test_text_screening(client, alice):
    r = client.post(
        "/screening/analyze",
        json={"text": "My family has a history of diabetes and I'm overweight"},
        headers=alice,
    )
    assert r.status_code == 200, r.text
    result = r.json()["result"]
    assert result["score"] == 30.0
    assert result["label"] == "medium"
    assert result["features"]["familyHistory"] is True
    assert result["features"]["fatigue"] is False

    history = client.get("/screening/history", headers=alice).json()
    assert history["pagination"]["totalItems"] == 1


def test_voice_analysis_is_not_served_as_text(client, alice):
    body = client.post("/voice/analyze", files=_wav_file(), headers=alice).json()
    assert client.get(f"/screening/analysis/{body['id']}", headers=alice).status_code == 404


def test_blank_text_is_rejected(client, alice):
    assert client.post("/screening/analyze", json={"text": "   "}, headers=alice).status_code == 400
    assert client.post("/screening/analyze", json={"text": ""}, headers=alice).status_code == 422


# ---- doctor advice ----

def test_advice_crud_and_doctors(client, alice):
    created = client.post(
        "/doctor/advice",
        json={
            "advice": "Patient is overweight and tired. Reduce sugary drinks.",
            "doctor_name": "Dr. Rao",
            "specialization": "Endocrinology",
            "visit_date": "2024-03-01T10:00:00+02:00",
        },
        headers=alice,
    )
    assert created.status_code == 201, created.text
    advice = created.json()
    assert advice["visit_date"] == "2024-03-01T08:00:00+00:00"
    assert advice["evaluation"]["score"] == 35.0
    assert advice["evaluation"]["label"] == "medium"

    updated = client.put(f"/doctor/advice/{advice['id']}", json={"advice": "All good, keep it up."}, headers=alice)
    assert updated.status_code == 200
    assert updated.json()["evaluation"]["score"] == 0.0
    assert updated.json()["doctor_name"] == "Dr. Rao"

    client.post(
        "/doctor/advice",
        json={"advice": "Follow up in three months.", "doctor_name": "Dr. Rao", "visit_date": "2024-06-01T00:00:00Z"},
        headers=alice,
    )
    doctors = client.get("/doctor/doctors", headers=alice).json()
    assert doctors == [{"name": "Dr. Rao", "specialization": None, "last_visit": "2024-06-01T00:00:00+00:00"}]

    listing = client.get("/doctor/advice", params={"doctor_name": "Dr. Rao"}, headers=alice).json()
    assert listing["pagination"]["totalItems"] == 2
    assert listing["advice_history"][0]["visit_date"] > listing["advice_history"][1]["visit_date"]

    assert client.delete(f"/doctor/advice/{advice['id']}", headers=alice).status_code == 200
    assert client.get(f"/doctor/advice/{advice['id']}", headers=alice).status_code == 404


def test_advice_with_bad_visit_date(client, alice):
    r = client.post("/doctor/advice", json={"advice": "rest", "visit_date": "not a date"}, headers=alice)
    assert r.status_code == 400


# ---- conversations ----

def test_conversation_from_transcript(client, alice):
    r = client.post(
        "/conversations",
        data={"title": "Checkup", "transcript": "I'm always thirsty. Let's do an HbA1c test."},
        headers=alice,
    )
    assert r.status_code == 202, r.text
    conv = client.get(f"/conversations/{r.json()['id']}", headers=alice).json()
    assert conv["status"] == "completed"
    assert conv["summary"]["mainComplaints"] == ["Increased thirst"]
    assert conv["summary"]["recommendedTests"] == ["HbA1c levels"]
    assert conv["screening"]["breakdown"]["polydipsia"] == 10.0

    listing = client.get("/conversations", headers=alice).json()
    assert listing["pagination"]["totalItems"] == 1

    assert client.delete(f"/conversations/{conv['id']}", headers=alice).status_code == 200
    assert client.get(f"/conversations/{conv['id']}", headers=alice).status_code == 404


def test_conversation_needs_audio_or_transcript(client, alice):
    assert client.post("/conversations", data={"title": "empty"}, headers=alice).status_code == 400


def test_conversation_audio_without_transcript_errors(client, alice):
    r = client.post("/conversations", files=_wav_file(), headers=alice)
    conv = client.get(f"/conversations/{r.json()['id']}", headers=alice).json()
    assert conv["status"] == "error"
    assert "transcription" in conv["error"]


# ---- health records ----

def test_health_records_and_stats(client, alice, bob):
    for value, day in [(110, "2024-01-01"), (130, "2024-01-02"), (95, "2024-01-03")]:
        r = client.post(
            "/health/records",
            json={"record_type": "blood_sugar", "value": value, "unit": "mg/dL", "record_date": f"{day}T08:00:00Z"},
            headers=alice,
        )
        assert r.status_code == 201, r.text
    client.post("/health/records", json={"record_type": "weight", "value": 80}, headers=alice)
    client.post("/health/records", json={"record_type": "blood_sugar", "value": 300}, headers=bob)

    page = client.get("/health/records", params={"record_type": "blood_sugar"}, headers=alice).json()
    assert page["pagination"]["totalItems"] == 3
    assert [r["value"] for r in page["records"]] == [95, 130, 110]

    ranged = client.get(
        "/health/records",
        params={"record_type": "blood_sugar", "start_date": "2024-01-02T00:00:00Z", "end_date": "2024-01-02T23:59:59Z"},
        headers=alice,
    ).json()
    assert [r["value"] for r in ranged["records"]] == [130]

    # a bare end date keeps readings taken later that day
    by_day = client.get(
        "/health/records",
        params={"record_type": "blood_sugar", "start_date": "2024-01-02", "end_date": "2024-01-02"},
        headers=alice,
    ).json()
    assert [r["value"] for r in by_day["records"]] == [130]
    day_stats = client.get(
        "/health/stats/blood_sugar", params={"end_date": "2024-01-02"}, headers=alice
    ).json()
    assert day_stats["count"] == 2

    stats = client.get("/health/stats/blood_sugar", headers=alice).json()
    assert stats["count"] == 3
    assert stats["min"] == 95
    assert stats["max"] == 130
    assert stats["mean"] == 111.667
    assert stats["latest"]["value"] == 95

    empty = client.get("/health/stats/cholesterol", headers=alice).json()
    assert empty == {"record_type": "cholesterol", "count": 0, "min": None, "max": None, "mean": None, "latest": None}


def test_health_record_update_and_delete(client, alice, bob):
    rec = client.post("/health/records", json={"record_type": "weight", "value": 82.5, "unit": "kg"}, headers=alice).json()

    assert client.put(f"/health/records/{rec['id']}", json={"value": 81.0}, headers=bob).status_code == 403
    updated = client.put(f"/health/records/{rec['id']}", json={"value": 81.0, "notes": "after holiday"}, headers=alice)
    assert updated.status_code == 200
    assert updated.json()["value"] == 81.0
    assert updated.json()["unit"] == "kg"

    assert client.delete(f"/health/records/{rec['id']}", headers=alice).status_code == 200
    assert client.put(f"/health/records/{rec['id']}", json={"value": 1}, headers=alice).status_code == 404
