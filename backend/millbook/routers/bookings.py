"""Booking router: planning grid, lifecycle and load completion.

Endpoints:
    GET    /api/bookings/                      List bookings (with filters)
    GET    /api/bookings/calendar              Bookings in a date range
    GET    /api/bookings/{booking_id}          Detail with history and load data
    GET    /api/bookings/{booking_id}/history  State history, newest first
    POST   /api/bookings/                      Create booking
    PATCH  /api/bookings/{booking_id}          Update booking fields
    PATCH  /api/bookings/{booking_id}/state    Move to the next state
    DELETE /api/bookings/{booking_id}          Delete a planned booking
    GET    /api/bookings/{booking_id}/load-data
    POST   /api/bookings/{booking_id}/load-data   Record load, mark loaded
    PATCH  /api/bookings/{booking_id}/load-data   Correct load data
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.auth.deps import Actor, get_current_actor, require_modify
from millbook.database import get_db
from millbook.schemas.booking import (
    BookingCreate,
    BookingDetailOut,
    BookingOut,
    BookingSummary,
    BookingUpdate,
    StateChangeRequest,
    StateChangeResponse,
    StateHistoryOut,
)
from millbook.schemas.common import PaginatedResponse
from millbook.schemas.load_record import LoadRecordCreate, LoadRecordOut, LoadRecordUpdate
from millbook.services import bookings as booking_service
from millbook.services import load_completion
from millbook.utils.cache import invalidate_cache

router = APIRouter()


def _summary(booking, client_name, carrier_name) -> BookingSummary:
    summary = BookingSummary.model_validate(booking)
    summary.client_name = client_name
    summary.carrier_name = carrier_name
    return summary


# ── List / calendar ──────────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[BookingSummary])
async def list_bookings(
    booking_type: str | None = Query(None, alias="type"),
    state: str | None = Query(None),
    client_id: int | None = Query(None),
    carrier_id: int | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    search: str | None = Query(None),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    rows, total = await booking_service.list_bookings(
        db,
        booking_type=booking_type,
        state=state,
        client_id=client_id,
        carrier_id=carrier_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        limit=limit,
        offset=offset,
    )
    return PaginatedResponse(
        items=[_summary(*row) for row in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/calendar", response_model=list[BookingSummary])
async def calendar(
    date_from: date = Query(...),
    date_to: date = Query(...),
    booking_type: str | None = Query(None, alias="type"),
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    rows = await booking_service.list_calendar(db, date_from, date_to, booking_type)
    return [_summary(*row) for row in rows]


# ── Single booking ───────────────────────────────────────────

@router.get("/{booking_id}", response_model=BookingDetailOut)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    detail = await booking_service.get_booking_detail(db, booking_id)
    load_record = detail["load_record"]
    return BookingDetailOut(
        **BookingOut.model_validate(detail["booking"]).model_dump(),
        client_name=detail["client_name"],
        carrier_name=detail["carrier_name"],
        history=[StateHistoryOut.model_validate(h) for h in detail["history"]],
        load_record=LoadRecordOut.model_validate(load_record) if load_record else None,
        possible_transitions=list(detail["possible_transitions"]),
    )


@router.get("/{booking_id}/history", response_model=list[StateHistoryOut])
async def get_history(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    return await booking_service.get_history(db, booking_id)


# ── Mutations ────────────────────────────────────────────────

@router.post("/", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_modify),
):
    booking = await booking_service.create_booking(db, body, actor_id=actor.id)
    await invalidate_cache("dashboard:*")
    return booking


@router.patch("/{booking_id}", response_model=BookingOut)
async def update_booking(
    booking_id: int,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(require_modify),
):
    booking = await booking_service.update_booking(db, booking_id, body)
    await invalidate_cache("dashboard:*")
    return booking


@router.patch("/{booking_id}/state", response_model=StateChangeResponse)
async def change_state(
    booking_id: int,
    body: StateChangeRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_modify),
):
    """Move the booking one step along its type's state graph.

    409 INVALID_TRANSITION lists the states that are reachable instead.
    """
    result = await booking_service.transition_state(
        db, booking_id, body.new_state, body.notes, actor_id=actor.id
    )
    await invalidate_cache("dashboard:*")
    return StateChangeResponse(
        booking=BookingOut.model_validate(result["booking"]),
        possible_transitions=list(result["possible_transitions"]),
    )


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(require_modify),
):
    await booking_service.delete_booking(db, booking_id)
    await invalidate_cache("dashboard:*")


# ── Load data ────────────────────────────────────────────────

@router.get("/{booking_id}/load-data", response_model=LoadRecordOut)
async def get_load_data(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(get_current_actor),
):
    return await load_completion.get_load(db, booking_id)


@router.post(
    "/{booking_id}/load-data",
    response_model=LoadRecordOut,
    status_code=status.HTTP_201_CREATED,
)
async def record_load_data(
    booking_id: int,
    body: LoadRecordCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_modify),
):
    """Record the load of a delivery in ``loading``; the booking becomes ``loaded``."""
    record = await load_completion.record_load(db, booking_id, body, actor_id=actor.id)
    await invalidate_cache("dashboard:*")
    return record


@router.patch("/{booking_id}/load-data", response_model=LoadRecordOut)
async def update_load_data(
    booking_id: int,
    body: LoadRecordUpdate,
    db: AsyncSession = Depends(get_db),
    _actor: Actor = Depends(require_modify),
):
    return await load_completion.update_load(db, booking_id, body)
