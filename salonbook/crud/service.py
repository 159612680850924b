# salonbook/crud/service.py
from typing import Optional, Sequence
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.db.models.service import Service
from salonbook.schemas.service import ServiceCreate, ServiceUpdate


async def get_service(db: AsyncSession, service_id: int) -> Optional[Service]:
    return await db.get(Service, service_id)


async def name_taken(db: AsyncSession, name: str, *, exclude_id: Optional[int] = None) -> bool:
    stmt = sa.select(Service.id).where(Service.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Service.id != exclude_id)
    res = await db.execute(stmt)
    return res.first() is not None


async def list_services(db: AsyncSession, *, active_only: bool = False) -> Sequence[Service]:
    stmt = sa.select(Service)
    if active_only:
        stmt = stmt.where(Service.active.is_(True))
    res = await db.execute(stmt.order_by(Service.name.asc()))
    return res.scalars().all()


async def create_service(db: AsyncSession, data: ServiceCreate) -> Service:
    obj = Service(**data.model_dump())
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def update_service(db: AsyncSession, obj: Service, data: ServiceUpdate) -> Service:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for k, v in changes.items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj
