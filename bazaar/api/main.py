"""
bazaar.api.main — FastAPI application entry point
===================================================

Run with::

    uvicorn bazaar.api.main:app --reload --port 8000

or ``python -m bazaar serve``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from bazaar import __version__  # noqa: E402
from bazaar.api.deps import get_config, get_engine  # noqa: E402
from bazaar.api.routes.applications import router as applications_router  # noqa: E402
from bazaar.api.routes.gamification import router as gamification_router  # noqa: E402
from bazaar.api.routes.messaging import router as messaging_router  # noqa: E402
from bazaar.api.routes.notifications import router as notifications_router  # noqa: E402
from bazaar.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the engine and seed missing datasets."""
    engine = get_engine()
    init_db(engine)
    cfg = get_config()
    logger.info("%s API started — engine ready (%s)", cfg.community_name, engine.url.database)
    yield
    logger.info("%s API shutting down", cfg.community_name)


app = FastAPI(
    title="VolunteerBazaar API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gamification_router, prefix="/api")
app.include_router(messaging_router, prefix="/api")
app.include_router(applications_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
