"""Booking: a scheduled production run or delivery on the mill's grid.

A single table holds both kinds; ``booking_type`` selects which state graph
applies (see ``millbook.services.state_machine``) and which of the
type-specific columns are meaningful.

Production lifecycle:  planned → taken_in_charge → in_production → completed
Delivery lifecycle:    planned → taken_in_charge → in_preparation
                       → ready_to_load → loading → loaded → departed
Either may be cancelled before the work actually starts.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean, CheckConstraint, Date, DateTime, Float, ForeignKey,
    Index, Integer, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from millbook.database import Base


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("booking_type IN ('production', 'delivery')", name="ck_bookings_type"),
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_bookings_priority"),
        Index("ix_bookings_date_start", "planned_date", "planned_start_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Human-readable code, assigned by the planning office, not generated here
    booking_code: Mapped[str | None] = mapped_column(String(30), unique=True)
    booking_type: Mapped[str] = mapped_column(String(15), nullable=False, index=True)

    # ── Parties ──────────────────────────────────────────────
    client_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("clients.id"), index=True
    )
    carrier_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("carriers.id"), index=True
    )

    # ── Schedule ─────────────────────────────────────────────
    planned_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    planned_start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    planned_end_time: Mapped[str | None] = mapped_column(String(5))
    duration_minutes: Mapped[int | None] = mapped_column(Integer)

    # ── Product ──────────────────────────────────────────────
    product_code: Mapped[str | None] = mapped_column(String(50))
    product_description: Mapped[str | None] = mapped_column(String(200))
    # bulk | packaged_silo | packaged_bag
    product_category: Mapped[str | None] = mapped_column(String(30))

    # Flour specs: W (strength) and P/L (tenacity/extensibility ratio)
    strength_w: Mapped[float | None] = mapped_column(Float)
    strength_w_tolerance: Mapped[float | None] = mapped_column(Float)
    pl_ratio: Mapped[float | None] = mapped_column(Float)
    pl_ratio_tolerance: Mapped[float | None] = mapped_column(Float)
    extra_specs: Mapped[dict | None] = mapped_column(JSON)

    # ── Quantity ─────────────────────────────────────────────
    planned_quantity: Mapped[float | None] = mapped_column(Float)
    unit: Mapped[str | None] = mapped_column(String(10))  # kg | ton | sack | pallet
    quantity_kg: Mapped[float | None] = mapped_column(Float)
    # Product switch on the line before this run adds cleaning time
    changeover: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Lot ──────────────────────────────────────────────────
    planned_lot: Mapped[str | None] = mapped_column(String(50))
    planned_lot_expiry: Mapped[date | None] = mapped_column(Date)

    # ── Production specifics ─────────────────────────────────
    material_origin: Mapped[str | None] = mapped_column(String(20))  # silo | sack | big_bag
    source_silo: Mapped[str | None] = mapped_column(String(20))
    production_line: Mapped[str | None] = mapped_column(String(30))

    # ── Delivery specifics ───────────────────────────────────
    load_type: Mapped[str | None] = mapped_column(String(20))  # big_bag | sack | tanker | pallet
    order_reference: Mapped[str | None] = mapped_column(String(50))
    shipping_doc_reference: Mapped[str | None] = mapped_column(String(50))

    # Production run feeding a delivery, or the delivery a run is for
    linked_booking_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="SET NULL")
    )

    # ── Workflow ─────────────────────────────────────────────
    state: Mapped[str] = mapped_column(String(20), nullable=False, default="planned", index=True)
    priority: Mapped[int] = mapped_column(Integer, default=5)
    notes: Mapped[str | None] = mapped_column(Text)

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[int | None] = mapped_column(Integer)  # user id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    # Bumped on every UPDATE; a write based on a stale read fails instead
    # of silently overwriting a concurrent transition.
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    # ── Relationships ────────────────────────────────────────
    client = relationship("Client")
    carrier = relationship("Carrier")
    history = relationship(
        "BookingStateHistory", back_populates="booking",
        order_by="BookingStateHistory.changed_at",
        cascade="all, delete-orphan",
    )
    load_record = relationship(
        "LoadRecord", back_populates="booking", uselist=False,
        cascade="all, delete-orphan",
    )
