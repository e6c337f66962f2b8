"""Booking lifecycle: create, edit, move through states, delete.

Every function takes the request's ``AsyncSession`` and only flushes; the
session dependency commits or rolls back the whole unit of work, so a
booking row and the history entry that explains it are written together
or not at all.

Concurrency: mutations re-read the booking with ``SELECT ... FOR UPDATE``
and ``populate_existing`` so two requests racing on the same booking are
serialised and the second one is judged against the first one's result.
``Booking.version_id`` backs this up where row locks are unavailable: a
write based on a stale read raises ``ConcurrencyConflictError``.

Raises (all from ``millbook.middleware.exceptions``):
    ResourceNotFoundError      booking / referenced party missing
    InvalidTransitionError     state change not in the type's graph
    BusinessLogicError         rule violation (past date, missing note, ...)
    ConcurrencyConflictError   lost a race, caller may retry
"""

import logging
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.orm.exc import StaleDataError

from millbook.config import settings
from millbook.middleware.exceptions import (
    BusinessLogicError,
    ConcurrencyConflictError,
    InvalidTransitionError,
    ResourceNotFoundError,
)
from millbook.models.booking import Booking
from millbook.models.load_record import LoadRecord
from millbook.models.party import Carrier, Client
from millbook.models.state_history import BookingStateHistory
from millbook.schemas.booking import BookingCreate, BookingUpdate
from millbook.services import state_machine
from millbook.services.duration import (
    compute_duration_minutes,
    compute_end_time,
    convert_to_kg,
)
from millbook.services.state_machine import BookingType

logger = logging.getLogger(__name__)

# Inputs of the duration formula; touching any of them re-plans the slot
_DURATION_FIELDS = {"product_category", "quantity_kg", "planned_quantity", "unit", "changeover"}


# ── Internal helpers ─────────────────────────────────────────

async def get_booking(
    db: AsyncSession,
    booking_id: int,
    *,
    for_update: bool = False,
) -> Booking:
    """Load a booking or raise ResourceNotFoundError.

    ``for_update`` locks the row and refreshes any copy already in the
    session, so the caller decides on the latest committed state.
    """
    stmt = select(Booking).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    booking = (await db.execute(stmt)).scalar_one_or_none()
    if not booking:
        raise ResourceNotFoundError("Booking", booking_id)
    return booking


async def flush_versioned(db: AsyncSession, booking_id: int) -> None:
    """Flush pending writes, turning a lost optimistic-lock race into a 409."""
    try:
        await db.flush()
    except StaleDataError:
        logger.warning("Concurrent modification of booking %s", booking_id)
        raise ConcurrencyConflictError("Booking", booking_id) from None


async def _check_references(
    db: AsyncSession,
    *,
    client_id: int | None = None,
    carrier_id: int | None = None,
    linked_booking_id: int | None = None,
) -> None:
    if client_id is not None and await db.get(Client, client_id) is None:
        raise ResourceNotFoundError("Client", client_id)
    if carrier_id is not None and await db.get(Carrier, carrier_id) is None:
        raise ResourceNotFoundError("Carrier", carrier_id)
    if linked_booking_id is not None:
        linked = await db.execute(
            select(Booking.id).where(Booking.id == linked_booking_id)
        )
        if linked.scalar_one_or_none() is None:
            raise ResourceNotFoundError("Booking", linked_booking_id)


def _check_carrier_allowed(booking_type: str, carrier_id: int | None) -> None:
    if carrier_id is not None and booking_type != BookingType.DELIVERY:
        raise BusinessLogicError(
            "A carrier can only be assigned to a delivery booking",
            error_code="CARRIER_NOT_ALLOWED",
        )


def _add_history(
    db: AsyncSession,
    booking_id: int,
    previous_state: str | None,
    new_state: str,
    actor_id: int | None,
    notes: str | None,
) -> BookingStateHistory:
    entry = BookingStateHistory(
        booking_id=booking_id,
        previous_state=previous_state,
        new_state=new_state,
        changed_by=actor_id,
        notes=notes,
    )
    db.add(entry)
    return entry


def ensure_transition_allowed(booking: Booking, new_state: str) -> None:
    """Raise InvalidTransitionError unless ``new_state`` is one step away."""
    if not state_machine.is_valid_transition(booking.booking_type, booking.state, new_state):
        raise InvalidTransitionError(
            booking.state,
            new_state,
            state_machine.possible_transitions(booking.booking_type, booking.state),
        )


async def apply_transition(
    db: AsyncSession,
    booking: Booking,
    new_state: str,
    actor_id: int | None,
    notes: str | None,
) -> None:
    """Move ``booking`` to ``new_state`` and append the history entry.

    The caller has already run ``ensure_transition_allowed`` and any
    target-specific checks.
    """
    previous_state = booking.state
    booking.state = new_state
    _add_history(db, booking.id, previous_state, new_state, actor_id, notes)
    await flush_versioned(db, booking.id)
    logger.info(
        "Booking %s (%s): %s -> %s by user %s",
        booking.id, booking.booking_type, previous_state, new_state, actor_id,
    )


# ── Create ───────────────────────────────────────────────────

async def create_booking(
    db: AsyncSession,
    body: BookingCreate,
    actor_id: int | None,
) -> Booking:
    """Create a booking in the initial state, with its first history entry.

    Duration comes from the cycle-time rules when category, planned
    quantity and unit are all given; otherwise the default slot length
    applies.
    """
    if body.planned_date < date.today():
        raise BusinessLogicError(
            "Planned date cannot be in the past",
            error_code="DATE_IN_PAST",
        )
    _check_carrier_allowed(body.booking_type, body.carrier_id)
    await _check_references(
        db,
        client_id=body.client_id,
        carrier_id=body.carrier_id,
        linked_booking_id=body.linked_booking_id,
    )

    quantity_kg = body.quantity_kg
    duration = settings.default_duration_minutes
    if body.product_category and body.planned_quantity and body.unit:
        if not quantity_kg:
            quantity_kg = convert_to_kg(body.planned_quantity, body.unit)
        duration = await compute_duration_minutes(
            db, body.product_category, quantity_kg, body.changeover
        )

    data = body.model_dump()
    data.update(
        quantity_kg=quantity_kg,
        duration_minutes=duration,
        planned_end_time=compute_end_time(body.planned_start_time, duration),
        state=state_machine.INITIAL_STATE,
        created_by=actor_id,
    )
    booking = Booking(**data)
    db.add(booking)
    await db.flush()  # populate booking.id

    _add_history(db, booking.id, None, booking.state, actor_id, "created")
    await db.flush()

    logger.info(
        "Created %s booking %s for %s %s-%s (%s min)",
        booking.booking_type, booking.id, booking.planned_date,
        booking.planned_start_time, booking.planned_end_time, duration,
    )
    return booking


# ── Update ───────────────────────────────────────────────────

async def update_booking(
    db: AsyncSession,
    booking_id: int,
    body: BookingUpdate,
) -> Booking:
    """Apply a sparse field update to a booking that is not finished.

    Omitted (or null) fields keep their current value.  The slot is
    re-planned from the effective values when a duration input or the
    start time changes.  No history entry: only state changes are logged.
    """
    booking = await get_booking(db, booking_id, for_update=True)

    if state_machine.is_terminal(booking.booking_type, booking.state):
        raise BusinessLogicError(
            f"Booking is '{booking.state}' and can no longer be modified",
            error_code="BOOKING_CLOSED",
        )

    data = body.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        return booking

    _check_carrier_allowed(booking.booking_type, data.get("carrier_id"))
    if data.get("linked_booking_id") == booking_id:
        raise BusinessLogicError(
            "A booking cannot be linked to itself", error_code="SELF_LINK"
        )
    await _check_references(
        db,
        client_id=data.get("client_id"),
        carrier_id=data.get("carrier_id"),
        linked_booking_id=data.get("linked_booking_id"),
    )

    for field, value in data.items():
        setattr(booking, field, value)

    # Re-derive kg from the planned quantity unless kg was given explicitly
    if (
        ("planned_quantity" in data or "unit" in data)
        and "quantity_kg" not in data
        and booking.planned_quantity
        and booking.unit
    ):
        booking.quantity_kg = convert_to_kg(booking.planned_quantity, booking.unit)

    replan = bool(data.keys() & _DURATION_FIELDS)
    if replan and booking.product_category and booking.quantity_kg:
        booking.duration_minutes = await compute_duration_minutes(
            db, booking.product_category, booking.quantity_kg, booking.changeover
        )

    if (replan or "planned_start_time" in data) and booking.duration_minutes is not None:
        booking.planned_end_time = compute_end_time(
            booking.planned_start_time, booking.duration_minutes
        )

    await flush_versioned(db, booking_id)
    return booking


# ── State transition ─────────────────────────────────────────

async def transition_state(
    db: AsyncSession,
    booking_id: int,
    new_state: str,
    notes: str | None,
    actor_id: int | None,
) -> dict:
    """Move a booking one step along its type's graph.

    Returns:
        {
            "booking": Booking,
            "possible_transitions": tuple[str, ...],  # from the new state
        }
    """
    booking = await get_booking(db, booking_id, for_update=True)

    ensure_transition_allowed(booking, new_state)

    if state_machine.requires_cancellation_note(new_state) and not (notes and notes.strip()):
        raise BusinessLogicError(
            "A note explaining the cancellation is required",
            error_code="NOTE_REQUIRED",
        )

    if state_machine.requires_load_data(new_state):
        existing = await db.execute(
            select(LoadRecord.id).where(LoadRecord.booking_id == booking_id)
        )
        if existing.scalar_one_or_none() is None:
            raise BusinessLogicError(
                "Record the load data to mark the delivery as loaded",
                error_code="LOAD_DATA_REQUIRED",
            )

    await apply_transition(db, booking, new_state, actor_id, notes)

    return {
        "booking": booking,
        "possible_transitions": state_machine.possible_transitions(
            booking.booking_type, booking.state
        ),
    }


# ── Delete ───────────────────────────────────────────────────

async def delete_booking(db: AsyncSession, booking_id: int) -> None:
    """Permanently remove a booking that was never actioned.

    Anything past the initial state has to be cancelled instead, so its
    history survives.
    """
    booking = await get_booking(db, booking_id, for_update=True)

    if booking.state != state_machine.INITIAL_STATE:
        raise BusinessLogicError(
            f"Only '{state_machine.INITIAL_STATE}' bookings can be deleted; "
            f"cancel this one instead (current state: '{booking.state}')",
            error_code="DELETE_NOT_ALLOWED",
        )

    await db.delete(booking)
    await flush_versioned(db, booking_id)
    logger.info("Deleted booking %s", booking_id)


# ── Read side ────────────────────────────────────────────────

async def get_history(db: AsyncSession, booking_id: int) -> list[BookingStateHistory]:
    """State history, newest first."""
    await get_booking(db, booking_id)
    result = await db.execute(
        select(BookingStateHistory)
        .where(BookingStateHistory.booking_id == booking_id)
        .order_by(BookingStateHistory.changed_at.desc(), BookingStateHistory.id.desc())
    )
    return list(result.scalars().all())


async def get_booking_detail(db: AsyncSession, booking_id: int) -> dict:
    """Booking plus everything the detail page shows.

    Returns:
        {
            "booking": Booking,
            "client_name": str | None,
            "carrier_name": str | None,
            "history": list[BookingStateHistory],  # newest first
            "load_record": LoadRecord | None,
            "possible_transitions": tuple[str, ...],
        }
    """
    booking = await get_booking(db, booking_id)
    history = await get_history(db, booking_id)

    load_result = await db.execute(
        select(LoadRecord).where(LoadRecord.booking_id == booking_id)
    )

    client_name = carrier_name = None
    if booking.client_id is not None:
        client_name = await db.scalar(select(Client.name).where(Client.id == booking.client_id))
    if booking.carrier_id is not None:
        carrier_name = await db.scalar(select(Carrier.name).where(Carrier.id == booking.carrier_id))

    return {
        "booking": booking,
        "client_name": client_name,
        "carrier_name": carrier_name,
        "history": history,
        "load_record": load_result.scalar_one_or_none(),
        "possible_transitions": state_machine.possible_transitions(
            booking.booking_type, booking.state
        ),
    }


def _with_party_names():
    client = aliased(Client)
    carrier = aliased(Carrier)
    stmt = (
        select(Booking, client.name, carrier.name)
        .join(client, Booking.client_id == client.id, isouter=True)
        .join(carrier, Booking.carrier_id == carrier.id, isouter=True)
    )
    return stmt, client


async def list_bookings(
    db: AsyncSession,
    *,
    booking_type: str | None = None,
    state: str | None = None,
    client_id: int | None = None,
    carrier_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[tuple[Booking, str | None, str | None]], int]:
    """Filtered page of bookings with party names, plus the total count."""
    stmt, client = _with_party_names()

    if booking_type:
        stmt = stmt.where(Booking.booking_type == booking_type)
    if state:
        stmt = stmt.where(Booking.state == state)
    if client_id:
        stmt = stmt.where(Booking.client_id == client_id)
    if carrier_id:
        stmt = stmt.where(Booking.carrier_id == carrier_id)
    if date_from:
        stmt = stmt.where(Booking.planned_date >= date_from)
    if date_to:
        stmt = stmt.where(Booking.planned_date <= date_to)
    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                Booking.booking_code.ilike(q),
                Booking.product_description.ilike(q),
                client.name.ilike(q),
            )
        )

    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    result = await db.execute(
        stmt.order_by(Booking.planned_date.desc(), Booking.planned_start_time.asc())
        .limit(limit)
        .offset(offset)
    )
    return [tuple(row) for row in result.all()], total


async def list_calendar(
    db: AsyncSession,
    date_from: date,
    date_to: date,
    booking_type: str | None = None,
) -> list[tuple[Booking, str | None, str | None]]:
    """Bookings in a date range, in grid order."""
    stmt, _ = _with_party_names()
    stmt = stmt.where(Booking.planned_date >= date_from, Booking.planned_date <= date_to)
    if booking_type:
        stmt = stmt.where(Booking.booking_type == booking_type)

    result = await db.execute(
        stmt.order_by(Booking.planned_date.asc(), Booking.planned_start_time.asc())
    )
    return [tuple(row) for row in result.all()]

