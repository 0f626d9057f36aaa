"""
Main FastAPI application for the lead qualification bot.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import chat, leads
from .services import get_services, initialize_services
from .flows.engine import (
    ConversationClosedError,
    ConversationError,
    ConversationInProgressError,
    EmptyReplyError,
    InvalidLeadError,
    PersistenceError,
    SessionNotFoundError,
)
from config.settings import get_settings

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidLeadError: 400,
    EmptyReplyError: 400,
    SessionNotFoundError: 404,
    ConversationClosedError: 409,
    ConversationInProgressError: 409,
    PersistenceError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Lead qualification bot starting up...")

    session_factory = None
    if settings.session_store.lower() == "database":
        from database.session import init_db
        session_factory = await init_db(settings.resolved_database_url)

    initialize_services(session_factory)
    logger.info("Lead qualification bot ready")
    yield
    logger.info("Lead qualification bot shutting down...")

    if session_factory is not None:
        from database.session import close_db
        await close_db()


async def conversation_error_handler(request: Request, exc: ConversationError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        detail = "Internal server error"
    else:
        detail = str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Scripted lead qualification chat with rule-based and assisted lead scoring.",
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ConversationError, conversation_error_handler)

    app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
    app.include_router(chat.router, prefix="/api/v1", tags=["Chat"])

    # Root endpoint
    @app.get("/")
    async def root():
        services = get_services()
        profile = services.business_profile
        return {
            "service": profile.business_name if profile else "Lead Qualification Bot",
            "version": settings.api_version,
            "status": "operational",
            "industry": profile.industry if profile else settings.industry,
            "questions": profile.step_count if profile else 0,
            "docs": "/docs",
        }

    # Health check
    @app.get("/health")
    async def health():
        services = get_services()
        return {
            "status": "healthy" if services.is_ready else "degraded",
            "services": services.health(),
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
