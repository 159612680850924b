# salonbook/db/models/service.py

from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from salonbook.db.session import Base, ID_TYPE

class Service(Base):
    """A bookable salon service (cut, colour, ...)."""

    __tablename__ = "services"
    __table_args__ = (
        sa.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        sa.CheckConstraint("price > 0", name="ck_services_price_positive"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(120), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(sa.Text)
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True, server_default=sa.true())
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(),
        server_default=sa.func.now(),
        nullable=False,
    )
