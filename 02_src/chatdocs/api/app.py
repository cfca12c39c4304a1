"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..app import Application
from ..errors import ChatDocsError, NotFoundError, ProviderError, ValidationError
from ..logging_config import get_logger
from .routes import chats, documents, messages, organizations, realtime, system, webhook

logger = get_logger(__name__)


def error_status(error: ChatDocsError) -> int:
    """HTTP status for an application error."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ProviderError):
        return 502
    return 500


def _register_exception_handlers(fastapi_app: FastAPI) -> None:
    @fastapi_app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @fastapi_app.exception_handler(ChatDocsError)
    async def chatdocs_error_handler(request: Request, exc: ChatDocsError):
        status_code = error_status(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"message": str(exc)})

    @fastapi_app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"message": message})


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        # Startup
        owns_lifecycle = not application.started
        if owns_lifecycle:
            await application.start()
        yield
        # Shutdown
        if owns_lifecycle:
            await application.stop()

    fastapi_app = FastAPI(
        title="ChatDocs API",
        description="WhatsApp chats, organizations and OCR'd documents",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=application.settings.client_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(fastapi_app)

    @fastapi_app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok", "message": "Server is running"}

    # Include routers
    fastapi_app.include_router(webhook.create_webhook_router(application))
    fastapi_app.include_router(organizations.create_organizations_router(application))
    fastapi_app.include_router(chats.create_chats_router(application))
    fastapi_app.include_router(messages.create_messages_router(application))
    fastapi_app.include_router(documents.create_documents_router(application))
    fastapi_app.include_router(system.create_system_router(application))
    fastapi_app.include_router(realtime.create_realtime_router(application))

    return fastapi_app
