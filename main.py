"""
Lab Orders API - laboratory test order tracking REST service
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.auth.auth_handler import AuthHandler
from app.config import Settings
from app.database import Database
from app.routers import auth, orders
from app.utils.error_handler import register_exception_handlers
from app.utils.rate_limit import limiter, set_rate_limiting

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build an application bound to its own settings and database handle"""
    settings = settings or Settings.from_env()
    database = database or Database(settings.database_url)
    prefix = settings.api_prefix

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        logger.info(f"Starting Lab Orders API ({settings.environment})...")
        if not settings.jwt_secret:
            logger.critical("JWT_SECRET is not configured; token issuing and verification will fail")
        database.create_all()

        yield

        logger.info("Shutting down Lab Orders API...")
        database.dispose()

    app = FastAPI(
        title="Lab Orders API",
        description="REST API for creating laboratory test orders and tracking them through their workflow",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.auth_handler = AuthHandler(settings)

    # Rate limiting (process-wide, see app.utils.rate_limit)
    set_rate_limiting(settings.rate_limit_enabled)
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, include_details=settings.is_development)

    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["authentication"])
    app.include_router(orders.router, prefix=f"{prefix}/orders", tags=["orders"])

    @app.get("/health", tags=["health"])
    @app.get(f"{prefix}/health", tags=["health"])
    @limiter.limit("60/minute")
    async def health_check(request: Request):
        """Health check endpoint"""
        return {
            "success": True,
            "message": "API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
            "version": settings.version,
        }

    @app.get("/")
    @limiter.limit("30/minute")
    async def root(request: Request):
        """Root endpoint with the endpoint directory - publicly accessible"""
        base_url = str(request.base_url).rstrip("/")
        return {
            "success": True,
            "message": "Welcome to the Lab Orders API",
            "version": settings.version,
            "documentation": f"{base_url}/docs",
            "health": f"{base_url}/health",
            "endpoints": {
                "auth": {
                    "register": f"POST {prefix}/auth/register",
                    "login": f"POST {prefix}/auth/login",
                },
                "orders": {
                    "create": f"POST {prefix}/orders",
                    "list": f"GET {prefix}/orders",
                    "advance": f"PATCH {prefix}/orders/:id/advance",
                },
            },
        }

    return app


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
