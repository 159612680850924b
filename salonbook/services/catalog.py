# salonbook/services/catalog.py
"""
Service catalog and customer records backing the booking flow.
"""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import InvalidRequestError, NotFoundError
from salonbook.core.logging import get_logger
from salonbook.crud import service as service_crud
from salonbook.crud import user as user_crud
from salonbook.db.models.service import Service
from salonbook.db.models.user import User
from salonbook.schemas.service import ServiceCreate, ServiceUpdate
from salonbook.schemas.user import UserCreate

logger = get_logger(__name__)


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_services(self, active_only: bool = False) -> Sequence[Service]:
        return await service_crud.list_services(self.db, active_only=active_only)

    async def get_service(self, service_id: int) -> Service:
        service = await service_crud.get_service(self.db, service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    async def create_service(self, data: ServiceCreate) -> Service:
        if await service_crud.name_taken(self.db, data.name):
            raise InvalidRequestError(f"service name already exists: {data.name}")
        service = await service_crud.create_service(self.db, data)
        logger.info("service_created", service_id=service.id, name=service.name)
        return service

    async def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        # Booked appointments keep their ends_at snapshot when the duration changes
        service = await self.get_service(service_id)
        if data.name is not None and await service_crud.name_taken(self.db, data.name, exclude_id=service_id):
            raise InvalidRequestError(f"service name already exists: {data.name}")
        service = await service_crud.update_service(self.db, service, data)
        logger.info("service_updated", service_id=service.id, fields=sorted(data.model_fields_set))
        return service

    async def set_service_active(self, service_id: int, active: bool) -> Service:
        return await self.update_service(service_id, ServiceUpdate(active=active))

    async def create_user(self, data: UserCreate) -> User:
        if await user_crud.get_user_by_email(self.db, data.email) is not None:
            raise InvalidRequestError(f"email already registered: {data.email}")
        try:
            user = await user_crud.create_user(self.db, data)
        except IntegrityError:
            raise InvalidRequestError(f"email already registered: {data.email}")
        logger.info("user_created", user_id=user.id)
        return user

    async def get_user(self, user_id: int) -> User:
        user = await user_crud.get_user(self.db, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user
