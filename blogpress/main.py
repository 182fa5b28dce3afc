import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogpress import __version__
from blogpress.cache import cache
from blogpress.config import settings
from blogpress.database import engine
from blogpress.exceptions import BlogError
from blogpress.middleware import TimingMiddleware
from blogpress.routers import categories, posts, users

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure root logging once, at startup, from ``settings.LOG_LEVEL``."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Third-party libraries are noisy at INFO.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger.info("Blogpress API %s starting (env=%s)", __version__, settings.APP_ENV)
    await cache.connect()  # App works without Redis
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    """First pydantic error as ``"<field>" <message>``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    return f'"{field}" {first.get("msg", "is invalid")}' if field else first.get("msg", "Invalid request")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to ``{"success": false, "error": <message>}``.

        BlogError subclasses     → their own status_code
        RequestValidationError   → 400
        HTTPException            → its status code (404 unknown route, 405, ...)
        Exception (fallback)     → 500, message hidden unless DEBUG
    """

    @app.exception_handler(BlogError)
    async def handle_blog_error(request: Request, exc: BlogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s | %s", request.method, request.url.path, exc.message, exc.context)
        else:
            logger.debug("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return _error(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "Unexpected error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        message = str(exc) if settings.DEBUG else "Server Error"
        return _error(500, message)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Blogpress API",
        description="Blog posts, categories and comments over REST/JSON",
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(posts.router)
    app.include_router(categories.router)
    app.include_router(users.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
