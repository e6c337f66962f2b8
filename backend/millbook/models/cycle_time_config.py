"""CycleTimeConfig: per-category line throughput and fixed overheads."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from millbook.database import Base


class CycleTimeConfig(Base):
    __tablename__ = "cycle_time_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    tons_per_hour: Mapped[float] = mapped_column(Float, nullable=False)
    setup_minutes: Mapped[int] = mapped_column(Integer, default=15)
    cleaning_minutes: Mapped[int] = mapped_column(Integer, default=20)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
