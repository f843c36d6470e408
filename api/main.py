# api/main.py

"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import asyncpg
import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import auth, signup, users
from config import get_settings
from database import db
from models.schemas import HealthResponse
from services.errors import ServiceError
from services.identity_providers import build_providers
from services.session_store import SessionStore
from services.user_store import UserStore
from utils.session_expiry import purge_expired_sessions_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not settings.database_url:
        logger.error("DATABASE_URL is not set, refusing to start")
        raise SystemExit(1)
    if not settings.session_secret:
        logger.warning(
            "SESSION_SECRET is not set; sessions are signed with a built-in fallback secret. "
            "Set SESSION_SECRET in production."
        )

    try:
        await db.connect()
        await db.init_schema()
    except (OSError, asyncio.TimeoutError, asyncpg.PostgresError) as exc:
        logger.error("User store unreachable at startup: %s", exc)
        await db.disconnect()
        raise SystemExit(1) from exc

    http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    user_store = UserStore(db)
    session_store = SessionStore(
        db,
        user_store,
        secret=settings.effective_session_secret,
        max_age_seconds=settings.session_max_age_seconds,
    )
    app.state.user_store = user_store
    app.state.session_store = session_store
    app.state.identity_providers = build_providers(settings, http_client)

    sweep_task = asyncio.create_task(
        purge_expired_sessions_loop(session_store, settings.session_sweep_interval_seconds)
    )

    yield

    # Cancel the sweeper before the pool goes away
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    await http_client.aclose()
    await db.disconnect()


app = FastAPI(
    title="Waitlist API",
    description="Waitlist signups with optional Google/LinkedIn sign-in",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(signup.router)
app.include_router(users.router)


@app.exception_handler(ServiceError)
async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": "Server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))
