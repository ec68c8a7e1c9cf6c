"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.api.middleware import setup_cors, setup_rate_limiting
from src.auth.identity import IdentityProvider
from src.auth.session_store import SessionStore
from src.db.connection import db
from src.config import LOG_LEVEL, APP_VERSION
from src.exceptions import QuestFitError
from src.validators import format_validation_error
from src.services.container import init_container, reset_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    await db.init_pool()
    logger.info("Database pool initialized")

    init_container(db=db, identity=IdentityProvider(), session_store=SessionStore())

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    reset_container()
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="QuestFit API",
        description="Characters, XP, quests and badges for fitness gamification",
        version=APP_VERSION,
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(QuestFitError)
    async def questfit_exception_handler(request, exc: QuestFitError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    # Request body errors answer 400 rather than 422
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": format_validation_error(exc)})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app


app = create_api_application()
