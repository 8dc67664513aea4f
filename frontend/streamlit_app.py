from datetime import date, datetime, time, timezone

import pandas as pd
import requests
import streamlit as st

from ui_kit import set_page, risk_badge, show_result, to_df_history


set_page()

API_BASE = st.sidebar.text_input("API Base URL", value="http://127.0.0.1:8000")
if "user_id" not in st.session_state:
    st.session_state["user_id"] = "demo_user"
_active = st.sidebar.text_input("User ID", value=st.session_state["user_id"], key="active_user_id")
st.session_state["user_id"] = _active.strip() or "demo_user"

st.title("Health Risk Screening — Prototype")
st.caption("Rule-based screening from voice, symptoms, doctor advice and conversations. Not a diagnosis.")

tabs = st.tabs([
    "Voice Check",
    "Symptom Screening",
    "Doctor Advice",
    "Conversations",
    "Health Tracker",
])


# -----------------------
# Helpers
# -----------------------
def _headers() -> dict:
    return {"X-User-Id": st.session_state["user_id"]}


def api_get(path: str, params: dict = None):
    url = f"{API_BASE}{path}"
    try:
        r = requests.get(url, params=params, headers=_headers(), timeout=20)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        st.error(f"GET failed: {url}\n{e}")
        return None


def api_send(method: str, path: str, payload: dict = None, files=None, form: bool = False):
    url = f"{API_BASE}{path}"
    try:
        if files or form:
            r = requests.request(method, url, data=payload, files=files, headers=_headers(), timeout=60)
        else:
            r = requests.request(method, url, json=payload, headers=_headers(), timeout=60)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        st.error(f"{method} failed: {url}\n{e}")
        return None


def history_view(path: str, items_key: str, result_key: str = "result") -> None:
    data = api_get(path, params={"limit": 50})
    if not data:
        return
    df = to_df_history(data.get(items_key), result_key=result_key)
    if df.empty:
        st.info("Nothing recorded yet.")
        return
    st.dataframe(df, use_container_width=True)
    if df["score"].notna().any():
        st.line_chart(df.set_index("created_at")["score"])


def iso_at_noon(d: date) -> str:
    return datetime.combine(d, time(12, 0), tzinfo=timezone.utc).isoformat()


# -----------------------
# Voice
# -----------------------
with tabs[0]:
    st.subheader("Voice biomarker check")
    audio = st.file_uploader("Recording (WAV, MP3 or WebM)", type=["wav", "mp3", "webm"], key="voice_audio")
    transcript = st.text_area("What you said (optional)", key="voice_transcript")
    run_async = st.checkbox("Process in background", value=False)

    if st.button("Analyze voice", use_container_width=True) and audio is not None:
        files = {"audio": (audio.name, audio.getvalue(), audio.type or "audio/wav")}
        path = "/voice/jobs" if run_async else "/voice/analyze"
        out = api_send("POST", path, {"transcript": transcript}, files=files)
        if out is not None:
            if run_async:
                st.session_state["voice_job"] = out["id"]
                st.success(f"Job {out['id']} accepted.")
            else:
                st.session_state["voice_last"] = out

    job_id = st.session_state.get("voice_job")
    if job_id and st.button("Refresh job status"):
        doc = api_get(f"/voice/analysis/{job_id}")
        if doc is not None:
            st.write("Status:", doc["status"])
            if doc.get("error"):
                st.error(doc["error"])
            st.session_state["voice_last"] = doc

    last = st.session_state.get("voice_last")
    if last:
        show_result(last.get("result"))

    st.divider()
    st.subheader("Voice history")
    history_view("/voice/history", "history")


# -----------------------
# Symptoms
# -----------------------
with tabs[1]:
    st.subheader("Describe your symptoms")
    text = st.text_area(
        "Symptoms, lifestyle, family history",
        placeholder="I'm 52 years old, always thirsty and tired. My family has a history of diabetes.",
    )
    if st.button("Screen text", use_container_width=True) and text.strip():
        out = api_send("POST", "/screening/analyze", {"text": text})
        if out is not None:
            st.session_state["text_last"] = out

    last = st.session_state.get("text_last")
    if last:
        show_result(last.get("result"))
        with st.expander("Detected features"):
            st.json(last["result"].get("features", {}))

    st.divider()
    st.subheader("Screening history")
    history_view("/screening/history", "history")


# -----------------------
# Doctor advice
# -----------------------
with tabs[2]:
    st.subheader("Record doctor advice")
    with st.form("advice_form"):
        doctor = st.text_input("Doctor")
        spec = st.text_input("Specialization")
        visit = st.date_input("Visit date", value=date.today())
        advice = st.text_area("Advice")
        notes = st.text_input("Notes")
        submitted = st.form_submit_button("Save advice")
    if submitted and advice.strip():
        out = api_send(
            "POST",
            "/doctor/advice",
            {
                "advice": advice,
                "doctor_name": doctor or None,
                "specialization": spec or None,
                "visit_date": iso_at_noon(visit),
                "notes": notes or None,
            },
        )
        if out is not None:
            st.success("Advice saved.")
            show_result(out.get("evaluation"))

    doctors = api_get("/doctor/doctors") or []
    if doctors:
        st.caption("Your doctors")
        st.dataframe(pd.DataFrame(doctors), use_container_width=True)

    data = api_get("/doctor/advice", params={"limit": 50})
    for item in (data or {}).get("advice_history", []):
        label = (item.get("evaluation") or {}).get("label")
        with st.expander(f"{item['visit_date'][:10]} · {item.get('doctor_name') or 'Unknown'} · {risk_badge(label)}"):
            st.write(item["advice"])
            if st.button("Delete", key=f"del_advice_{item['id']}"):
                if api_send("DELETE", f"/doctor/advice/{item['id']}") is not None:
                    st.rerun()


# -----------------------
# Conversations
# -----------------------
with tabs[3]:
    st.subheader("Doctor conversation summary")
    title = st.text_input("Title", key="conv_title")
    conv_audio = st.file_uploader("Recording (optional)", type=["wav", "mp3", "webm"], key="conv_audio")
    conv_text = st.text_area("Transcript", key="conv_transcript")
    if st.button("Summarize", use_container_width=True):
        files = {"audio": (conv_audio.name, conv_audio.getvalue(), conv_audio.type or "audio/wav")} if conv_audio else None
        out = api_send("POST", "/conversations", {"title": title, "transcript": conv_text}, files=files, form=True)
        if out is not None:
            st.success(f"Conversation {out['id']} accepted.")

    data = api_get("/conversations", params={"limit": 20})
    for conv in (data or {}).get("conversations", []):
        with st.expander(f"{conv.get('title') or 'Untitled'} · {conv['status']}"):
            if conv.get("error"):
                st.error(conv["error"])
            if conv.get("summary"):
                st.json(conv["summary"])
            if conv.get("screening"):
                show_result(conv["screening"])
            if st.button("Delete", key=f"del_conv_{conv['id']}"):
                if api_send("DELETE", f"/conversations/{conv['id']}") is not None:
                    st.rerun()


# -----------------------
# Health tracker
# -----------------------
with tabs[4]:
    st.subheader("Health tracker")
    record_type = st.selectbox("Measurement", ["blood_sugar", "weight", "blood_pressure", "hba1c"])
    col1, col2, col3 = st.columns(3)
    value = col1.number_input("Value", value=0.0)
    unit = col2.text_input("Unit", value="mg/dL" if record_type == "blood_sugar" else "")
    when = col3.date_input("Date", value=date.today(), key="record_date")
    if st.button("Add record", use_container_width=True):
        out = api_send(
            "POST",
            "/health/records",
            {"record_type": record_type, "value": value, "unit": unit or None, "record_date": iso_at_noon(when)},
        )
        if out is not None:
            st.success("Record saved.")

    stats = api_get(f"/health/stats/{record_type}")
    if stats and stats["count"]:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Count", stats["count"])
        c2.metric("Mean", stats["mean"])
        c3.metric("Min / Max", f"{stats['min']} / {stats['max']}")
        c4.metric("Latest", stats["latest"]["value"])

    page = api_get("/health/records", params={"record_type": record_type, "limit": 100})
    records = (page or {}).get("records", [])
    if records:
        df = pd.DataFrame(records)
        df["record_date"] = pd.to_datetime(df["record_date"], errors="coerce", utc=True)
        df = df.sort_values("record_date")
        st.line_chart(df.set_index("record_date")["value"])
        st.dataframe(df[["record_date", "value", "unit", "notes"]], use_container_width=True)
