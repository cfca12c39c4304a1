"""Organization API routes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import Application
from ...errors import ChatDocsError


class OrganizationRequest(BaseModel):
    """Request model for creating or updating an organization."""

    name: str | None = None
    description: str | None = None


def create_organizations_router(app: Application) -> APIRouter:
    """Create organizations router."""
    router = APIRouter(prefix="/api/organizations", tags=["organizations"])

    @router.get("")
    async def list_organizations() -> list[dict]:
        try:
            return await app.organizations.list_all()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{organization_id}")
    async def get_organization(organization_id: str) -> dict:
        try:
            return await app.organizations.get(organization_id)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("", status_code=201)
    async def create_organization(request: OrganizationRequest) -> dict:
        try:
            return await app.organizations.create(request.name, request.description)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.put("/{organization_id}")
    async def update_organization(
        organization_id: str, request: OrganizationRequest
    ) -> dict:
        try:
            return await app.organizations.update(
                organization_id, request.name, request.description
            )
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.delete("/{organization_id}")
    async def delete_organization(organization_id: str) -> dict:
        try:
            await app.organizations.delete(organization_id)
            return {"message": "Organization deleted successfully"}
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/{organization_id}/chats/{chat_id}")
    async def add_chat(organization_id: str, chat_id: str) -> dict:
        """Assign a chat to an organization, creating the chat if needed."""
        try:
            return await app.organizations.add_chat(organization_id, chat_id)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.delete("/{organization_id}/chats/{chat_id}")
    async def remove_chat(organization_id: str, chat_id: str) -> dict:
        try:
            return await app.organizations.remove_chat(organization_id, chat_id)
        except ChatDocsError:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
