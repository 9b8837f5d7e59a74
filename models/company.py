from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    pairs = relationship(
        "Pair",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Pair.id",
    )
    assets = relationship(
        "Asset",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Asset.created_at.desc()",
    )
