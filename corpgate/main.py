"""FastAPI application entrypoint. No business logic; only wiring, middleware and error envelopes."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from corpgate.api import health
from corpgate.api import router as api_router
from corpgate.api.gates import GateRejection
from corpgate.core.config import settings
from corpgate.core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

app = FastAPI(
    title="CorpGate API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.rate_limiter = (
    RateLimiter(settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SEC)
    if settings.RATE_LIMIT_ENABLED
    else None
)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
}
# JSON-only responses; the /docs pages load their assets from a CDN and are left out.
API_SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cache-Control": "no-store",
}


def _is_api_path(path: str) -> bool:
    return path.startswith(f"{settings.API_PREFIX}/")


@app.middleware("http")
async def rate_limit_api(request: Request, call_next) -> Response:
    """Per-client budget on API routes; over budget answers 429 without running the route."""
    limiter: RateLimiter | None = request.app.state.rate_limiter
    if limiter is None or not _is_api_path(request.url.path):
        return await call_next(request)
    client = request.client.host if request.client else "unknown"
    result = limiter.hit(client)
    if not result.allowed:
        logger.warning("Rate limit exceeded for client=%s path=%s", client, request.url.path)
        return JSONResponse(
            status_code=429,
            content={"ok": False, "message": "Too many requests, please try again later"},
            headers=result.headers(),
        )
    response = await call_next(request)
    response.headers.update(result.headers())
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if _is_api_path(request.url.path):
        for name, value in API_SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.exception_handler(GateRejection)
async def gate_rejection_handler(request: Request, exc: GateRejection) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Unknown API routes get the {ok: false} envelope; everything else keeps FastAPI's default body."""
    if exc.status_code == 404 and _is_api_path(request.url.path):
        return JSONResponse(status_code=404, content={"ok": False, "message": "API endpoint not found"})
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = " ".join(p for p in (location, first.get("msg", "")) if p)
        message = f"Invalid request: {detail}" if detail else message
    return JSONResponse(status_code=422, content={"ok": False, "message": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content: dict[str, object] = {"ok": False, "message": "Internal server error"}
    if settings.APP_ENV == "dev" and settings.DEBUG:
        content["error"] = repr(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "CorpGate API"}
