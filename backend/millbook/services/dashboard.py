"""Counters for the planning dashboard."""

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.models.booking import Booking
from millbook.services.state_machine import BookingState

# Started but not yet out of the mill
IN_PROGRESS_STATES = (
    BookingState.IN_PRODUCTION,
    BookingState.IN_PREPARATION,
    BookingState.READY_TO_LOAD,
    BookingState.LOADING,
)

WEEK_DAYS = 7


async def dashboard_stats(
    db: AsyncSession,
    booking_type: str | None = None,
    today: date | None = None,
) -> dict:
    """Today's bookings by state, the coming week by date and open-work totals.

    Returns:
        {
            "today_by_state": {state: count},
            "week_by_date": {"YYYY-MM-DD": count},   # today .. today + 7
            "planned": int,
            "taken_in_charge": int,
            "in_progress": int,
        }
    """
    today = today or date.today()
    type_filter = [Booking.booking_type == booking_type] if booking_type else []

    today_rows = await db.execute(
        select(Booking.state, func.count(Booking.id))
        .where(Booking.planned_date == today, *type_filter)
        .group_by(Booking.state)
    )

    week_rows = await db.execute(
        select(Booking.planned_date, func.count(Booking.id))
        .where(
            Booking.planned_date >= today,
            Booking.planned_date <= today + timedelta(days=WEEK_DAYS),
            *type_filter,
        )
        .group_by(Booking.planned_date)
        .order_by(Booking.planned_date)
    )

    open_rows = await db.execute(
        select(Booking.state, func.count(Booking.id))
        .where(
            Booking.state.in_(
                (BookingState.PLANNED, BookingState.TAKEN_IN_CHARGE, *IN_PROGRESS_STATES)
            ),
            *type_filter,
        )
        .group_by(Booking.state)
    )
    open_counts = {state: count for state, count in open_rows.all()}

    return {
        "today_by_state": {state: count for state, count in today_rows.all()},
        "week_by_date": {d.isoformat(): count for d, count in week_rows.all()},
        "planned": open_counts.get(BookingState.PLANNED, 0),
        "taken_in_charge": open_counts.get(BookingState.TAKEN_IN_CHARGE, 0),
        "in_progress": sum(open_counts.get(s, 0) for s in IN_PROGRESS_STATES),
    }
