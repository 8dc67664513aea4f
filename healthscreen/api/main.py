from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from healthscreen.api.routes.advice import router as advice_router
from healthscreen.api.routes.conversations import router as conversations_router
from healthscreen.api.routes.health import router as health_router
from healthscreen.api.routes.screening import router as screening_router
from healthscreen.api.routes.voice import router as voice_router
from healthscreen.db.session import build_engine, build_session_factory, init_db
from healthscreen.ml.risk.errors import ScoringError
from healthscreen.services.analysis_store import NotFound
from healthscreen.services.providers import KeywordSummarizer, Summarizer, TranscriptTranscriber, Transcriber
from healthscreen.services.status import InvalidStatusTransition
from healthscreen.settings import Settings, load_settings
from healthscreen.utils.logging import setup_logger

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transcriber: Optional[Transcriber] = None,
    summarizer: Optional[Summarizer] = None,
) -> FastAPI:
    """Build the API with its collaborators constructed once and kept on ``app.state``."""
    settings = settings or load_settings()
    setup_logger("healthscreen", log_file=settings.log_file, level=getattr(logging, settings.log_level, logging.INFO))

    app = FastAPI(title="Health Risk Screening API", version="0.1.0")
    engine = build_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.transcriber = transcriber or TranscriptTranscriber()
    app.state.summarizer = summarizer or KeywordSummarizer()

    app.include_router(voice_router)
    app.include_router(screening_router)
    app.include_router(advice_router)
    app.include_router(conversations_router)
    app.include_router(health_router)

    @app.on_event("startup")
    def _startup() -> None:
        """Initialize database schema on startup."""
        init_db(engine)
        logger.info("database ready at %s", settings.database_url)

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidStatusTransition)
    async def _bad_transition(request: Request, exc: InvalidStatusTransition):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ScoringError)
    async def _scoring_error(request: Request, exc: ScoringError):
        logger.error("scoring contract violation on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": f"Scoring failed: {exc}"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
