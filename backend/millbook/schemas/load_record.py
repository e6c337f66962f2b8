"""Pydantic schemas for delivery load-completion records."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from millbook.schemas.validators import validate_hhmm


# ── Create ───────────────────────────────────────────────────

class LoadRecordCreate(BaseModel):
    """Payload captured at the loading bay.

    ``transport_fit`` is mandatory; when it is false the operator must say
    why in ``transport_fit_notes`` (checked by the recorder).
    """
    load_date: date
    vehicle_plate: str = Field(..., min_length=1, max_length=20)
    loaded_lot: str = Field(..., min_length=1, max_length=50)
    loaded_weight_kg: float = Field(..., ge=0)
    transport_fit: bool

    load_start_time: str | None = None
    load_end_time: str | None = None
    operator_name: str | None = Field(None, max_length=100)
    transport_fit_notes: str | None = None
    trailer_plate: str | None = Field(None, max_length=20)
    driver_name: str | None = Field(None, max_length=100)
    lot_expiry: date | None = None
    tare_weight_kg: float | None = Field(None, ge=0)
    gross_weight_kg: float | None = Field(None, ge=0)
    packaging_type: str | None = Field(None, max_length=20)
    parcel_count: int | None = Field(None, ge=0)
    shipping_doc_number: str | None = Field(None, max_length=50)
    shipping_doc_date: date | None = None

    @field_validator("load_start_time", "load_end_time")
    @classmethod
    def check_times(cls, v):
        return validate_hhmm(v)


# ── Update (partial) ─────────────────────────────────────────

class LoadRecordUpdate(BaseModel):
    load_date: date | None = None
    vehicle_plate: str | None = Field(None, min_length=1, max_length=20)
    loaded_lot: str | None = Field(None, min_length=1, max_length=50)
    loaded_weight_kg: float | None = Field(None, ge=0)
    transport_fit: bool | None = None
    load_start_time: str | None = None
    load_end_time: str | None = None
    operator_name: str | None = Field(None, max_length=100)
    transport_fit_notes: str | None = None
    trailer_plate: str | None = Field(None, max_length=20)
    driver_name: str | None = Field(None, max_length=100)
    lot_expiry: date | None = None
    tare_weight_kg: float | None = Field(None, ge=0)
    gross_weight_kg: float | None = Field(None, ge=0)
    packaging_type: str | None = Field(None, max_length=20)
    parcel_count: int | None = Field(None, ge=0)
    shipping_doc_number: str | None = Field(None, max_length=50)
    shipping_doc_date: date | None = None

    @field_validator("load_start_time", "load_end_time")
    @classmethod
    def check_times(cls, v):
        return validate_hhmm(v)


# ── Response ─────────────────────────────────────────────────

class LoadRecordOut(BaseModel):
    id: int
    booking_id: int
    load_date: date
    load_start_time: str | None
    load_end_time: str | None
    operator_id: int | None
    operator_name: str | None
    transport_fit: bool
    transport_fit_notes: str | None
    vehicle_plate: str
    trailer_plate: str | None
    driver_name: str | None
    loaded_lot: str
    lot_expiry: date | None
    loaded_weight_kg: float
    tare_weight_kg: float | None
    gross_weight_kg: float | None
    packaging_type: str | None
    parcel_count: int | None
    shipping_doc_number: str | None
    shipping_doc_date: date | None
    recorded_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
