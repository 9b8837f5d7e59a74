from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class Pair(Base):
    """A long leg (buy) and a short leg (sell) tracked as one position."""

    __tablename__ = "pairs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    analysis_record: Mapped[str | None] = mapped_column(Text, nullable=True)

    buy_shares: Mapped[int] = mapped_column(Integer)
    sell_shares: Mapped[int] = mapped_column(Integer)
    buy_price: Mapped[float] = mapped_column(Float)
    sell_price: Mapped[float] = mapped_column(Float)
    buy_stock_code: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    sell_stock_code: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)

    # last priced snapshot; frozen once settled
    current_buy_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_sell_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    profit_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    buy_profit_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    sell_profit_loss: Mapped[float | None] = mapped_column(Float, nullable=True)

    is_settled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    entry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    company = relationship("Company", back_populates="pairs")
