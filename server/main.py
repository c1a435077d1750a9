"""
server/main.py -- FastAPI application entry point for userdir.

Run with:      python main.py
               uvicorn asgi:app --reload

The web routes, the /images static mount, and the auth gate are attached by
asgi.py, not here. server/ knows nothing about web/.

Lifespan handles startup (directories, user store, session store, session
purge task) and shutdown (cancel purge task, close both stores) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from auth.store import RepositoryError, UserStore
from core.config import get_settings
from sessions.store import SessionStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("userdir.server")

_PURGE_INTERVAL = 60 * 60  # 1 hour

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Drop expired sessions every hour.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine.
    """
    while True:
        await asyncio.sleep(_PURGE_INTERVAL)
        removed = app.state.session_store.purge_expired()
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Directories first -- the static mount and the upload handler both
         expect them to exist.
      2. Stores second.
      3. Purge task last -- references app.state.session_store.
    """
    settings = get_settings()
    logger.info("userdir starting up")

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.state.upload_dir = settings.upload_dir

    app.state.user_store = UserStore(settings.database_url)
    try:
        if not app.state.user_store.has_users():
            logger.warning("users table is empty -- insert a row before anyone can log in")
    except RepositoryError as exc:
        logger.error("Could not inspect users table: %s", exc)
    app.state.session_store = SessionStore(settings.session_db_path, ttl=settings.session_expire_seconds)
    logger.info("Stores initialized")
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    # Shutdown
    app.state.purge_task.cancel()
    app.state.session_store.close()
    app.state.user_store.close()
    logger.info("userdir shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="userdir",
    description="Internal user directory.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every dispatched request passes through this coroutine. Wall-clock time is
# captured around call_next so latency is reported on every response.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Catch-all handler for unexpected server errors (e.g. a failed image write).

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return PlainTextResponse("Internal Server Error", status_code=500)
