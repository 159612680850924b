# salonbook/db/base.py

"""
Imports every ORM model so Alembic and create_all can discover them.
"""
from salonbook.db.models.user import User
from salonbook.db.models.service import Service
from salonbook.db.models.appointment import Appointment
from salonbook.db.session import engine, Base

async def init_db():
    """Create all tables; local development only, deployed databases go through Alembic"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
