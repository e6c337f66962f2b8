"""Pydantic schemas for booking operations."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from millbook.schemas.load_record import LoadRecordOut
from millbook.schemas.validators import validate_hhmm

BookingTypeLiteral = Literal["production", "delivery"]
CategoryLiteral = Literal["bulk", "packaged_silo", "packaged_bag"]


# ── Create ───────────────────────────────────────────────────

class BookingCreate(BaseModel):
    booking_type: BookingTypeLiteral
    planned_date: date
    planned_start_time: str

    booking_code: str | None = Field(None, max_length=30)
    client_id: int | None = None
    carrier_id: int | None = None
    linked_booking_id: int | None = None

    # Product
    product_code: str | None = Field(None, max_length=50)
    product_description: str | None = Field(None, max_length=200)
    product_category: CategoryLiteral | None = None
    strength_w: float | None = None
    strength_w_tolerance: float | None = None
    pl_ratio: float | None = None
    pl_ratio_tolerance: float | None = None
    extra_specs: dict | None = None

    # Quantity: unit is free text; unknown units count as kg
    planned_quantity: float | None = Field(None, gt=0)
    unit: str | None = Field(None, max_length=10)
    quantity_kg: float | None = Field(None, gt=0)
    changeover: bool = False

    planned_lot: str | None = Field(None, max_length=50)
    planned_lot_expiry: date | None = None
    material_origin: str | None = Field(None, max_length=20)
    source_silo: str | None = Field(None, max_length=20)
    production_line: str | None = Field(None, max_length=30)
    load_type: str | None = Field(None, max_length=20)
    order_reference: str | None = Field(None, max_length=50)

    priority: int = Field(5, ge=1, le=10)
    notes: str | None = None

    @field_validator("planned_start_time")
    @classmethod
    def check_start_time(cls, v):
        return validate_hhmm(v)


# ── Update (partial) ─────────────────────────────────────────

class BookingUpdate(BaseModel):
    """Sparse update: fields left out keep their current value.

    Neither the booking type nor its state can be changed here.
    """
    booking_code: str | None = Field(None, max_length=30)
    client_id: int | None = None
    carrier_id: int | None = None
    linked_booking_id: int | None = None
    planned_date: date | None = None
    planned_start_time: str | None = None
    product_code: str | None = Field(None, max_length=50)
    product_description: str | None = Field(None, max_length=200)
    product_category: CategoryLiteral | None = None
    strength_w: float | None = None
    strength_w_tolerance: float | None = None
    pl_ratio: float | None = None
    pl_ratio_tolerance: float | None = None
    extra_specs: dict | None = None
    planned_quantity: float | None = Field(None, gt=0)
    unit: str | None = Field(None, max_length=10)
    quantity_kg: float | None = Field(None, gt=0)
    changeover: bool | None = None
    planned_lot: str | None = Field(None, max_length=50)
    planned_lot_expiry: date | None = None
    material_origin: str | None = Field(None, max_length=20)
    source_silo: str | None = Field(None, max_length=20)
    production_line: str | None = Field(None, max_length=30)
    load_type: str | None = Field(None, max_length=20)
    order_reference: str | None = Field(None, max_length=50)
    priority: int | None = Field(None, ge=1, le=10)
    notes: str | None = None

    @field_validator("planned_start_time")
    @classmethod
    def check_start_time(cls, v):
        return validate_hhmm(v)


# ── State change ─────────────────────────────────────────────

class StateChangeRequest(BaseModel):
    new_state: str = Field(..., min_length=1, max_length=20)
    notes: str | None = None


# ── Response ─────────────────────────────────────────────────

class BookingOut(BaseModel):
    id: int
    booking_code: str | None
    booking_type: str
    client_id: int | None
    carrier_id: int | None
    linked_booking_id: int | None
    planned_date: date
    planned_start_time: str
    planned_end_time: str | None
    duration_minutes: int | None
    product_code: str | None
    product_description: str | None
    product_category: str | None
    strength_w: float | None
    strength_w_tolerance: float | None
    pl_ratio: float | None
    pl_ratio_tolerance: float | None
    extra_specs: dict | None
    planned_quantity: float | None
    unit: str | None
    quantity_kg: float | None
    changeover: bool
    planned_lot: str | None
    planned_lot_expiry: date | None
    material_origin: str | None
    source_silo: str | None
    production_line: str | None
    load_type: str | None
    order_reference: str | None
    shipping_doc_reference: str | None
    state: str
    priority: int
    notes: str | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingSummary(BaseModel):
    """Row in list / calendar views."""
    id: int
    booking_code: str | None
    booking_type: str
    client_id: int | None
    client_name: str | None = None
    carrier_id: int | None
    carrier_name: str | None = None
    planned_date: date
    planned_start_time: str
    planned_end_time: str | None
    duration_minutes: int | None
    product_description: str | None
    product_category: str | None
    quantity_kg: float | None
    state: str
    priority: int

    model_config = ConfigDict(from_attributes=True)


class StateHistoryOut(BaseModel):
    id: int
    booking_id: int
    previous_state: str | None
    new_state: str
    changed_by: int | None
    notes: str | None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingDetailOut(BookingOut):
    client_name: str | None = None
    carrier_name: str | None = None
    history: list[StateHistoryOut] = []
    load_record: LoadRecordOut | None = None
    possible_transitions: list[str] = []


class StateChangeResponse(BaseModel):
    booking: BookingOut
    possible_transitions: list[str]
