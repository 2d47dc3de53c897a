import logging
import sys
import time
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from projecthub.api.v1 import companies, invitations, projects, tasks, teams, users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("projecthub").setLevel(logging.DEBUG)
from projecthub.config import settings
from projecthub.db.session import async_session_maker, init_db
from projecthub.schemas.envelope import (
    ResponseError,
    build_envelope,
    envelope_response,
    error_for_status,
)
from projecthub.services.invitations import expire_pending_invitations

logger = logging.getLogger("projecthub.access")

scheduler = AsyncIOScheduler()


async def scheduled_invitation_sweep():
    """Mark pending invitations past their expiry as EXPIRED."""
    async with async_session_maker() as session:
        await expire_pending_invitations(session)
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.validate_jwt_config()
    await init_db()
    scheduler.add_job(scheduled_invitation_sweep, "interval", minutes=max(settings.invitation_sweep_minutes, 1))
    scheduler.start()
    yield
    scheduler.shutdown()


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

app = FastAPI(
    title="ProjectHub API",
    description="Multi-tenant project management: companies, users, projects, teams, tasks",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else None
    return envelope_response(
        build_envelope(error=error_for_status(exc.status_code), error_details=detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return envelope_response(
        build_envelope(error=ResponseError.VALIDATION_ERROR, error_details=details),
        status_code=400,
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    response = envelope_response(
        build_envelope(error=ResponseError.TOO_MANY_REQUESTS, error_details=f"Rate limit exceeded: {exc.detail}"),
        status_code=429,
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return envelope_response(
        build_envelope(
            error=ResponseError.SERVER_ERROR,
            error_details=f"{type(exc).__name__}: {exc}" if settings.debug else None,
        ),
        status_code=500,
    )


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AccessLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "DELETE", "PATCH", "POST", "PUT"],
    allow_headers=["*"],
)
app.include_router(users.router, prefix="/api/v1")
app.include_router(companies.router, prefix="/api/v1")
app.include_router(projects.router, prefix="/api/v1")
app.include_router(teams.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")
app.include_router(invitations.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}
