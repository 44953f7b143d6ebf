"""FastAPI application entrypoint. No business logic; only wiring, startup and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.v1 import router as v1_router
from app.api.v1.health import API_VERSION
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.audit import audit_dispatcher
from app.services.bootstrap import run_bootstrap

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _bootstrap() -> None:
    db = SessionLocal()
    try:
        run_bootstrap(db, settings)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Seed defaults and start the audit writer before serving; drain it on shutdown."""
    if settings.BOOTSTRAP_ON_STARTUP:
        # bcrypt is CPU-bound; keep it off the event loop.
        await run_in_threadpool(_bootstrap)
    if settings.AUDIT_ENABLED:
        audit_dispatcher.start(SessionLocal, maxsize=settings.AUDIT_QUEUE_SIZE)
    try:
        yield
    finally:
        audit_dispatcher.stop()


app = FastAPI(
    title="Keystone Auth API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Keystone Auth API"}
