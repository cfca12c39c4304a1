"""System information route."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...app import Application
from ...logging_config import get_logger
from ...services import UNKNOWN_SYSTEM_INFO

logger = get_logger(__name__)


def create_system_router(app: Application) -> APIRouter:
    """Create system router."""
    router = APIRouter(prefix="/api/system", tags=["system"])

    @router.get("/info")
    async def get_system_info() -> JSONResponse:
        try:
            return JSONResponse(content=await app.system.info())
        except Exception as e:
            logger.error("Error getting system info: %s", e, exc_info=True)
            return JSONResponse(
                status_code=500, content={"message": str(e), **UNKNOWN_SYSTEM_INFO}
            )

    return router
