"""LoadRecord: physical data captured when a delivery finishes loading.

Exactly one per delivery booking.  Inserting it is what moves the booking
from ``loading`` to ``loaded``.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from millbook.database import Base


class LoadRecord(Base):
    __tablename__ = "load_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )

    # ── Timing ───────────────────────────────────────────────
    load_date: Mapped[date] = mapped_column(Date, nullable=False)
    load_start_time: Mapped[str | None] = mapped_column(String(5))
    load_end_time: Mapped[str | None] = mapped_column(String(5))

    # ── Operator ─────────────────────────────────────────────
    operator_id: Mapped[int | None] = mapped_column(Integer)
    operator_name: Mapped[str | None] = mapped_column(String(100))

    # ── Vehicle check ────────────────────────────────────────
    transport_fit: Mapped[bool] = mapped_column(Boolean, nullable=False)
    transport_fit_notes: Mapped[str | None] = mapped_column(Text)
    vehicle_plate: Mapped[str] = mapped_column(String(20), nullable=False)
    trailer_plate: Mapped[str | None] = mapped_column(String(20))
    driver_name: Mapped[str | None] = mapped_column(String(100))

    # ── Actual product ───────────────────────────────────────
    loaded_lot: Mapped[str] = mapped_column(String(50), nullable=False)
    lot_expiry: Mapped[date | None] = mapped_column(Date)
    loaded_weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    tare_weight_kg: Mapped[float | None] = mapped_column(Float)
    gross_weight_kg: Mapped[float | None] = mapped_column(Float)
    packaging_type: Mapped[str | None] = mapped_column(String(20))
    parcel_count: Mapped[int | None] = mapped_column(Integer)

    # ── Shipping document (DDT) ──────────────────────────────
    shipping_doc_number: Mapped[str | None] = mapped_column(String(50))
    shipping_doc_date: Mapped[date | None] = mapped_column(Date)

    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    booking = relationship("Booking", back_populates="load_record")
