"""One-off migration script to rewrite stored screening results in the current schema.

Run manually:

    python -m scripts.migrate_results

Legacy (v1) analysis results, advice evaluations and conversation screenings
are normalized once and written back with ``schema_version`` set, so reads no
longer need to migrate them.
"""
from __future__ import annotations

from typing import Any

from healthscreen.db.models import Analysis, Conversation, DoctorAdvice
from healthscreen.db.session import build_engine, build_session_factory, init_db
from healthscreen.services.result_schema import SCHEMA_VERSION, detect_version, normalize_result
from healthscreen.settings import load_settings


def migrate() -> None:
    settings = load_settings()
    engine = build_engine(settings.database_url)
    init_db(engine)
    db = build_session_factory(engine)()
    try:
        changed = 0

        rows: list[Any] = db.query(Analysis).filter(Analysis.result.isnot(None)).all()
        for r in rows:
            if (r.schema_version or 1) >= SCHEMA_VERSION and detect_version(r.result) >= SCHEMA_VERSION:
                continue
            doc = normalize_result(r.result, r.schema_version)
            r.result = doc
            r.schema_version = SCHEMA_VERSION
            r.score = doc["score"]
            r.label = doc["label"]
            changed += 1

        for a in db.query(DoctorAdvice).filter(DoctorAdvice.evaluation.isnot(None)).all():
            if (a.schema_version or 1) >= SCHEMA_VERSION:
                continue
            a.evaluation = normalize_result(a.evaluation, a.schema_version)
            a.schema_version = SCHEMA_VERSION
            changed += 1

        # conversations carry no version column; detect from the document
        for c in db.query(Conversation).filter(Conversation.screening.isnot(None)).all():
            if detect_version(c.screening) < SCHEMA_VERSION:
                c.screening = normalize_result(c.screening)
                changed += 1

        db.commit()
        print(f"✅ Result migration complete ({changed} documents rewritten)")
    finally:
        db.close()


if __name__ == "__main__":
    migrate()
