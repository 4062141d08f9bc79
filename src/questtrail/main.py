"""FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from questtrail.api.router import api_router
from questtrail.auth.rate_limit import limiter
from questtrail.engine.service import get_engine
from questtrail.engine.token_codec import get_token_codec
from questtrail.errors import MissingStateError, TechnicalError
from questtrail.logging_context import RequestContextFilter, bind_request
from questtrail.settings import get_settings

TECHNICAL_ERROR_MESSAGE = "Something went wrong, please rescan the QR code"


def setup_logging() -> None:
    """Configure logging for the application."""
    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(path)s player=%(player)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # Console handler; the filter sits on the handler so records of every logger get the context
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(RequestContextFilter())
    root_logger.addHandler(console_handler)

    # Set specific loggers
    logging.getLogger("questtrail").setLevel(logging.DEBUG if get_settings().dev_mode else logging.INFO)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)


# Set up logging on import
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup: build the codec and load the catalog now, so a bad key or
    # scenario file stops the process instead of failing the first player.
    settings = get_settings()
    get_token_codec()
    engine = get_engine()
    logger.info(
        f"Starting QuestTrail server (dev_mode={settings.dev_mode}, "
        f"scenarios={len(engine.catalog.scenarios)}, "
        f"location_verification={engine.location_verification_enabled})"
    )

    yield

    # Shutdown
    logger.info("Shutting down QuestTrail server")


app = FastAPI(
    title="QuestTrail",
    description="Geolocated quest progression API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
# In dev mode, allow the local frontend. In production, allow the configured frontend URL.
settings = get_settings()
cors_origins = (
    ["http://localhost:5173", "http://127.0.0.1:5173"]
    if settings.dev_mode
    else [settings.frontend_url]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind the request path to the log records of this request."""
    bind_request(request.url.path)
    return await call_next(request)


@app.exception_handler(MissingStateError)
async def missing_state_handler(request: Request, exc: MissingStateError) -> JSONResponse:
    """Tell the player where the scenario starts."""
    logger.warning(f"Technical error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"view": "missingState", "lat": exc.lat, "lon": exc.lon},
    )


@app.exception_handler(TechnicalError)
async def technical_error_handler(request: Request, exc: TechnicalError) -> JSONResponse:
    """Hide the reason from the client; it is only logged."""
    logger.warning(f"Technical error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"view": "technicalError", "message": TECHNICAL_ERROR_MESSAGE},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "QuestTrail API", "version": "0.1.0"}


# Include API routers
app.include_router(api_router, prefix="/api")
