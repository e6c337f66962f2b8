"""Pydantic schemas for cycle-time configuration and duration preview."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CycleTimeOut(BaseModel):
    id: int
    category: str
    tons_per_hour: float
    setup_minutes: int
    cleaning_minutes: int
    is_active: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CycleTimeUpdate(BaseModel):
    tons_per_hour: float | None = Field(None, gt=0)
    setup_minutes: int | None = Field(None, ge=0)
    cleaning_minutes: int | None = Field(None, ge=0)
    is_active: bool | None = None


class DurationRequest(BaseModel):
    product_category: str = Field(..., min_length=1)
    quantity_kg: float = Field(..., gt=0)
    changeover: bool = False


class DurationResponse(BaseModel):
    duration_minutes: int
    setup_minutes: int
    processing_minutes: float
    cleaning_minutes: int
    unrounded_minutes: float


class DashboardStats(BaseModel):
    today_by_state: dict[str, int]
    week_by_date: dict[str, int]
    planned: int
    taken_in_charge: int
    in_progress: int
