"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.core.config import get_settings
from app.core.logging import setup_logging
from app.core.rate_limit import FixedWindowRateLimiter
from app.models.response import FieldError

# Setup logging
logger = setup_logging("main")

RATE_LIMITED_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the upstream-backed services at startup.

    Missing API keys are not checked here; each component fails its own
    calls when its key is absent.
    """
    from app.services.character import CharacterGenerator
    from app.services.content import ContentExtractor
    from app.services.image import ImageGenerator
    from app.services.wizard import CharacterWizardService

    settings = get_settings()
    app.state.wizard_service = CharacterWizardService(
        extractor=ContentExtractor(api_key=settings.exa_api_key),
        generator=CharacterGenerator(
            api_key=settings.gemini_api_key, model=settings.gemini_model
        ),
        image_generator=ImageGenerator(
            api_key=settings.runware_api_key, model=settings.runware_model
        ),
    )
    for name, key in (
        ("GEMINI_API_KEY", settings.gemini_api_key),
        ("EXA_API_KEY", settings.exa_api_key),
        ("RUNWARE_API_KEY", settings.runware_api_key),
    ):
        if not key:
            logger.warning("%s is not set; dependent calls will fail", name)
    logger.info("Services initialized successfully")

    yield


# Create FastAPI app
app = FastAPI(
    title="Character Wizard",
    description="Character and avatar generation backend for the character creation wizard",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()

app.state.rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.rate_limit_max,
    window_seconds=settings.rate_limit_window_ms / 1000,
)


@app.middleware("http")
async def rate_limit(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Apply the per-client request budget ahead of all API logic."""
    if not request.url.path.startswith(RATE_LIMITED_PREFIX):
        return await call_next(request)

    client = request.client.host if request.client else "unknown"
    result = request.app.state.rate_limiter.hit(client)
    if not result.allowed:
        logger.warning(
            "Rate limit exceeded",
            extra={"client": client, "path": request.url.path, "method": request.method},
        )
        return error_response(
            429,
            "Too many requests, please try again later.",
            headers=result.headers(),
        )

    response = await call_next(request)
    response.headers.update(result.headers())
    return response


# CORS configuration (added last so it wraps rate-limited responses too)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.frontend_port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Return 400 with field-level errors instead of FastAPI's default 422."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"] if part != "body") or "body",
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    logger.info(
        "Validation failed: %d errors",
        len(errors),
        extra={"path": request.url.path, "method": request.method},
    )
    return error_response(400, "Invalid input", errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> Response:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return error_response(500, "Something went wrong on the server", exc)


# Register routers
from app.api.character import router as character_router  # noqa: E402
from app.api.image import router as image_router  # noqa: E402

app.include_router(character_router)
app.include_router(image_router)


@app.get("/api/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "message": "API is running"}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    cfg = get_settings()
    uvicorn.run(app, host=cfg.backend_host, port=cfg.backend_port)


if __name__ == "__main__":
    run()
