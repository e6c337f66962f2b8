"""Slot duration and end-time arithmetic for the planning grid.

Duration of a run:

    setup + (kg / 1000) * (60 / tons_per_hour)   [+ cleaning on changeover]

rounded UP to the next 15-minute slot.  End time is start + duration on a
24-hour clock with no date rollover: a run starting 23:00 and lasting 90
minutes ends at "00:30" of the same planned date.
"""

import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession

from millbook.config import settings
from millbook.services import cycle_times
from millbook.services.cycle_times import CycleTime

logger = logging.getLogger(__name__)


class Unit:
    KG = "kg"
    TON = "ton"
    SACK = "sack"
    PALLET = "pallet"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.KG, cls.TON, cls.SACK, cls.PALLET]


# Average weights used when planning in sacks / pallets
KG_PER_UNIT = {
    Unit.KG: 1,
    Unit.TON: 1000,
    Unit.SACK: 25,
    Unit.PALLET: 1000,
}


def convert_to_kg(quantity: float, unit: str | None) -> float:
    """Normalise a planned quantity to kilograms.

    An unrecognised unit is taken to be kilograms already.
    """
    factor = KG_PER_UNIT.get(unit)
    if factor is None:
        logger.warning("Unknown unit %r, treating quantity %s as kg", unit, quantity)
        return quantity
    return quantity * factor


def round_up_to_slot(minutes: float, slot: int | None = None) -> int:
    slot = slot or settings.slot_minutes
    return math.ceil(minutes / slot) * slot


def duration_breakdown(
    cycle_time: CycleTime,
    quantity_kg: float,
    changeover: bool = False,
) -> dict:
    """Components of a run's duration, before and after slot rounding."""
    minutes_per_ton = 60 / cycle_time.tons_per_hour
    processing = (quantity_kg / 1000) * minutes_per_ton
    cleaning = cycle_time.cleaning_minutes if changeover else 0
    total = cycle_time.setup_minutes + processing + cleaning
    return {
        "setup_minutes": cycle_time.setup_minutes,
        "processing_minutes": processing,
        "cleaning_minutes": cleaning,
        "unrounded_minutes": total,
        "duration_minutes": round_up_to_slot(total),
    }


def calculate_duration_minutes(
    cycle_time: CycleTime,
    quantity_kg: float,
    changeover: bool = False,
) -> int:
    return duration_breakdown(cycle_time, quantity_kg, changeover)["duration_minutes"]


async def compute_duration_minutes(
    db: AsyncSession,
    category: str | None,
    quantity_kg: float,
    changeover: bool = False,
) -> int:
    """Duration for ``quantity_kg`` of ``category`` using current configuration."""
    cycle_time = await cycle_times.resolve(db, category)
    return calculate_duration_minutes(cycle_time, quantity_kg, changeover)


def compute_end_time(start_time: str, duration_minutes: int) -> str:
    """``"HH:MM"`` + minutes, wrapping past midnight."""
    hours, minutes = (int(part) for part in start_time.split(":"))
    total = hours * 60 + minutes + duration_minutes
    end_hours = (total // 60) % 24
    end_minutes = total % 60
    return f"{end_hours:02d}:{end_minutes:02d}"
