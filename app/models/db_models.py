"""SQLAlchemy ORM models for PostgreSQL persistence."""

from __future__ import annotations
from datetime import datetime
from sqlalchemy import DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CalculationAudit(Base):
    """Audit trail for tax computations served by the API."""

    __tablename__ = "calculation_audits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint: Mapped[str] = mapped_column(String(256), nullable=False)
    regime: Mapped[str | None] = mapped_column(String(32), nullable=True)
    assessment_year: Mapped[str] = mapped_column(String(16), nullable=False)
    gross_income: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    net_tax_liability: Mapped[float | None] = mapped_column(Float, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
