"""Organization CRUD and chat membership."""

import uuid

from fastapi.encoders import jsonable_encoder

from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import Organization
from ..pipeline.chats import ChatResolver
from ..storage import IStorage

logger = get_logger(__name__)


class OrganizationService:
    """Organizations with their member chats."""

    def __init__(self, storage: IStorage, resolver: ChatResolver):
        self._storage = storage
        self._resolver = resolver

    async def _with_chats(self, organization: Organization) -> dict:
        chats = await self._storage.get_chats_by_organization(organization.id)
        view = jsonable_encoder(organization)
        view["chats"] = jsonable_encoder(chats)
        return view

    async def _get(self, organization_id: str) -> Organization:
        organization = await self._storage.get_organization(organization_id)
        if organization is None:
            raise NotFoundError("Organization not found")
        return organization

    async def list_all(self) -> list[dict]:
        organizations = await self._storage.list_organizations()
        return [await self._with_chats(o) for o in organizations]

    async def get(self, organization_id: str) -> dict:
        return await self._with_chats(await self._get(organization_id))

    async def create(self, name: str | None, description: str | None = None) -> dict:
        if not name:
            raise ValidationError("Organization name is required")

        organization = Organization(
            id=str(uuid.uuid4()), name=name, description=description or ""
        )
        await self._storage.create_organization(organization)
        logger.info("Created organization %s", organization.id)
        return await self._with_chats(organization)

    async def update(
        self,
        organization_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> dict:
        """Partial update; empty name and missing description are ignored."""
        organization = await self._get(organization_id)
        if name:
            organization.name = name
        if description is not None:
            organization.description = description
        await self._storage.update_organization(organization)
        return await self._with_chats(organization)

    async def delete(self, organization_id: str) -> None:
        """Delete an organization after detaching its chats."""
        await self._get(organization_id)
        detached = await self._storage.clear_organization(organization_id)
        await self._storage.delete_organization(organization_id)
        logger.info(
            "Deleted organization %s (%d chats detached)", organization_id, detached
        )

    async def add_chat(self, organization_id: str, chat_id: str) -> dict:
        organization = await self._get(organization_id)
        chat = await self._resolver.resolve(chat_id)
        chat.organization_id = organization.id
        await self._storage.save_chat(chat)
        return await self._with_chats(organization)

    async def remove_chat(self, organization_id: str, chat_id: str) -> dict:
        organization = await self._get(organization_id)
        chat = await self._storage.get_chat(chat_id)
        if chat and chat.organization_id == organization.id:
            chat.organization_id = None
            await self._storage.save_chat(chat)
        return await self._with_chats(organization)
