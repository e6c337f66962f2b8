"""Configuration router: cycle times, duration preview, dashboard.

Endpoints:
    GET    /api/config/cycle-times               Cycle-time rows per category
    PATCH  /api/config/cycle-times/{category}    Adjust one category
    POST   /api/config/compute-duration          Preview a run's duration
    GET    /api/config/dashboard-stats           Planning dashboard counters
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.auth.deps import Actor, get_current_actor, require_modify
from millbook.database import get_db
from millbook.schemas.config import (
    CycleTimeOut,
    CycleTimeUpdate,
    DashboardStats,
    DurationRequest,
    DurationResponse,
)
from millbook.services import cycle_times
from millbook.services.dashboard import dashboard_stats
from millbook.services.duration import duration_breakdown
from millbook.utils.cache import cached, invalidate_cache

router = APIRouter()


# ── Cycle times ──────────────────────────────────────────────

@router.get("/cycle-times", response_model=list[CycleTimeOut])
@cached(prefix="cycle_times")
async def list_cycle_times(
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    configs = await cycle_times.list_configs(db)
    return [CycleTimeOut.model_validate(c) for c in configs]


@router.patch("/cycle-times/{category}", response_model=CycleTimeOut)
async def update_cycle_time(
    category: str,
    body: CycleTimeUpdate,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(require_modify),
):
    """Change throughput or overheads; affects bookings created or edited later."""
    config = await cycle_times.update_config(
        db, category, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    await invalidate_cache("cycle_times:*")
    return config


@router.post("/compute-duration", response_model=DurationResponse)
async def compute_duration(
    body: DurationRequest,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    cycle_time = await cycle_times.resolve(db, body.product_category)
    return duration_breakdown(cycle_time, body.quantity_kg, body.changeover)


# ── Dashboard ────────────────────────────────────────────────

@router.get("/dashboard-stats", response_model=DashboardStats)
@cached(ttl=60, prefix="dashboard")
async def get_dashboard_stats(
    booking_type: str | None = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    stats = await dashboard_stats(db, booking_type=booking_type)
    return DashboardStats(**stats)
