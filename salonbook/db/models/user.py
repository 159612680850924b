# salonbook/db/models/user.py

from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from salonbook.db.session import Base, ID_TYPE

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    mobile: Mapped[str | None] = mapped_column(sa.String(20))
    # Server-side timestamp as a fallback for rows inserted outside the app
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(),
        server_default=sa.func.now(),
        nullable=False,
    )
