# salonbook/crud/user.py
from typing import Optional
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from salonbook.db.models.user import User
from salonbook.schemas.user import UserCreate


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    stmt = sa.select(User).where(User.email == email)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """Insert a new user. Raises IntegrityError when the email is already registered."""
    obj = User(full_name=data.full_name, email=data.email, mobile=data.mobile)
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    await db.refresh(obj)
    return obj
