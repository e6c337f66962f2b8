"""Load-completion data for delivery bookings.

Recording the load is the only way a delivery reaches ``loaded``: the
record insert, the ``loading -> loaded`` step and its history entry are
flushed in the same unit of work, so a booking is never ``loaded``
without its record and a record never exists for a booking still
``loading``.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.middleware.exceptions import (
    BusinessLogicError,
    ConcurrencyConflictError,
    ResourceNotFoundError,
)
from millbook.models.load_record import LoadRecord
from millbook.schemas.load_record import LoadRecordCreate, LoadRecordUpdate
from millbook.services import state_machine
from millbook.services.bookings import (
    apply_transition,
    ensure_transition_allowed,
    flush_versioned,
    get_booking,
)
from millbook.services.state_machine import BookingState, BookingType

logger = logging.getLogger(__name__)

LOAD_RECORDED_NOTE = "load data recorded"


def _check_transport_fit(transport_fit: bool, notes: str | None) -> None:
    if not transport_fit and not (notes and notes.strip()):
        raise BusinessLogicError(
            "Explain why the vehicle is not fit for transport",
            error_code="TRANSPORT_NOTE_REQUIRED",
        )


async def _find_load(db: AsyncSession, booking_id: int) -> LoadRecord | None:
    result = await db.execute(
        select(LoadRecord).where(LoadRecord.booking_id == booking_id)
    )
    return result.scalar_one_or_none()


async def get_load(db: AsyncSession, booking_id: int) -> LoadRecord:
    record = await _find_load(db, booking_id)
    if not record:
        raise ResourceNotFoundError("Load data for booking", booking_id)
    return record


async def record_load(
    db: AsyncSession,
    booking_id: int,
    body: LoadRecordCreate,
    actor_id: int | None,
) -> LoadRecord:
    """Store the load data of a delivery and mark it ``loaded``.

    Raises:
        ResourceNotFoundError: booking does not exist.
        BusinessLogicError: not a delivery, not ``loading``, vehicle unfit
            without a note, or load data already recorded.
        ConcurrencyConflictError: another request recorded it first.
    """
    booking = await get_booking(db, booking_id, for_update=True)

    if booking.booking_type != BookingType.DELIVERY:
        raise BusinessLogicError(
            "Load data can only be recorded for delivery bookings",
            error_code="NOT_A_DELIVERY",
        )
    if booking.state != BookingState.LOADING:
        raise BusinessLogicError(
            f"Load data can only be recorded while the booking is "
            f"'{BookingState.LOADING}' (current state: '{booking.state}')",
            error_code="WRONG_STATE",
        )
    _check_transport_fit(body.transport_fit, body.transport_fit_notes)

    if await _find_load(db, booking_id) is not None:
        raise BusinessLogicError(
            "Load data has already been recorded for this booking",
            error_code="LOAD_DATA_EXISTS",
        )

    record = LoadRecord(
        booking_id=booking_id,
        operator_id=actor_id,
        **body.model_dump(),
    )
    db.add(record)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning("Load data for booking %s inserted concurrently", booking_id)
        raise ConcurrencyConflictError("Load data for booking", booking_id) from None

    if body.shipping_doc_number:
        booking.shipping_doc_reference = body.shipping_doc_number

    ensure_transition_allowed(booking, BookingState.LOADED)
    await apply_transition(db, booking, BookingState.LOADED, actor_id, LOAD_RECORDED_NOTE)

    logger.info(
        "Load recorded for booking %s: lot %s, %.0f kg, vehicle %s",
        booking_id, record.loaded_lot, record.loaded_weight_kg, record.vehicle_plate,
    )
    return record


async def update_load(
    db: AsyncSession,
    booking_id: int,
    body: LoadRecordUpdate,
) -> LoadRecord:
    """Correct a stored load record.

    The booking's state and history are left alone.  A new shipping
    document number is copied to the booking unless it is already closed.
    """
    record = await get_load(db, booking_id)

    data = body.model_dump(exclude_unset=True, exclude_none=True)
    _check_transport_fit(
        data.get("transport_fit", record.transport_fit),
        data.get("transport_fit_notes", record.transport_fit_notes),
    )

    for field, value in data.items():
        setattr(record, field, value)

    if "shipping_doc_number" in data:
        booking = await get_booking(db, booking_id, for_update=True)
        if not state_machine.is_terminal(booking.booking_type, booking.state):
            booking.shipping_doc_reference = data["shipping_doc_number"]

    await flush_versioned(db, booking_id)
    logger.info("Updated load data for booking %s: %s", booking_id, sorted(data))
    return record
