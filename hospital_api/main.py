"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .auth.admin_router import router as admin_router
from .auth.router import router as auth_router
from .config import Settings, get_settings
from .core.bootstrap import bootstrap_admin_if_needed
from .core.middleware import setup_middlewares
from .core.security import PasswordHasher
from .core.tokens import TokenService
from .database import Base, build_engine, build_session_factory
from .exceptions import register_exception_handlers
# Import all models so their tables are registered on Base
from .auth import models  # noqa: F401
from .core import audit_models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info(f"Starting {settings.app_name} ({settings.environment})")

    # Create database tables if they don't exist
    Base.metadata.create_all(bind=app.state.engine)

    db = app.state.session_factory()
    try:
        bootstrap_admin_if_needed(db, settings, app.state.password_hasher)
    except Exception as e:
        logger.error(f"Bootstrap process failed: {str(e)}")
    finally:
        db.close()

    yield
    logger.info(f"Stopping {settings.app_name}")


def create_app(settings: Optional[Settings] = None, engine=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings, read from the environment when omitted
        engine: SQLAlchemy engine, built from settings when omitted

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
    if settings.is_production and settings.jwt_secret == Settings.model_fields["jwt_secret"].default:
        logger.warning("JWT_SECRET is using the default value in production")

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and access control API for the hospital management system",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine if engine is not None else build_engine(settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.password_hasher = PasswordHasher.from_settings(settings)
    app.state.token_service = TokenService.from_settings(settings)

    # Register exception handlers
    register_exception_handlers(app, debug=settings.debug)

    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Setup custom middleware
    setup_middlewares(app, settings)

    # Include routers
    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint for monitoring.
        """
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "environment": settings.environment,
        }

    @app.get("/api/version", tags=["Health"])
    def version():
        return {
            "version": __version__,
            "api_prefix": settings.api_prefix,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


def get_application() -> FastAPI:
    """Entry point for ``uvicorn --factory hospital_api.main:get_application``."""
    # Load environment variables from .env file first
    load_dotenv()
    return create_app()
