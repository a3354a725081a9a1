import friendping.db.base  # noqa: F401

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi_mcp import FastApiMCP

from friendping.api.routes.codes import router as codes_router
from friendping.api.routes.friends import router as friends_router
from friendping.api.routes.health import router as health_router
from friendping.api.routes.messages import router as messages_router
from friendping.api.routes.signals import router as signals_router
from friendping.core.config import settings
from friendping.core.errors import StoreUnavailableError
from friendping.core.group_locks import GroupLocks
from friendping.core.observability import setup_logging
from friendping.db.session import build_database
from friendping.services.presence import PresenceSweeper


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)

    database = build_database(settings)
    # An unreachable store is fatal: fail startup instead of serving 503s.
    await database.check_connection()

    app.state.database = database
    app.state.group_locks = GroupLocks()

    sweeper = None
    if settings.presence_sweep_enabled:
        sweeper = PresenceSweeper(
            database,
            app.state.group_locks,
            interval_seconds=settings.presence_sweep_interval_seconds,
            max_age_seconds=settings.presence_timeout_seconds,
        )
        sweeper.start()

    logger.info("friendping API started env=%s", settings.env)
    yield

    if sweeper is not None:
        await sweeper.stop()
    await database.dispose()


app = FastAPI(title="friendping API", version="0.1.0", lifespan=lifespan)

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    # Details were logged where the store call failed.
    return JSONResponse({"detail": str(exc)}, status_code=503)


@app.exception_handler(Exception)
async def debug_exception_handler(request: Request, exc: Exception):
    if settings.env in {"local", "test"}:
        return PlainTextResponse(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            status_code=500,
        )
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    return PlainTextResponse("Internal Server Error", status_code=500)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(friends_router)
app.include_router(signals_router)
app.include_router(messages_router)
app.include_router(codes_router)

mcp = FastApiMCP(app)
mcp.mount_http()
