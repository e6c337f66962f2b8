"""Cycle-time configuration lookup.

The planning office maintains one row per product category (line throughput
plus fixed setup / cleaning minutes).  When a category has no active row the
built-in defaults below apply, and an unknown category falls back to the
packaged-silo figures.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.middleware.exceptions import ResourceNotFoundError
from millbook.models.cycle_time_config import CycleTimeConfig

logger = logging.getLogger(__name__)


class ProductCategory:
    BULK = "bulk"
    PACKAGED_SILO = "packaged_silo"
    PACKAGED_BAG = "packaged_bag"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.BULK, cls.PACKAGED_SILO, cls.PACKAGED_BAG]


@dataclass(frozen=True)
class CycleTime:
    tons_per_hour: float
    setup_minutes: int
    cleaning_minutes: int


DEFAULT_CYCLE_TIMES: Mapping[str, CycleTime] = MappingProxyType({
    ProductCategory.BULK: CycleTime(tons_per_hour=10, setup_minutes=15, cleaning_minutes=20),
    ProductCategory.PACKAGED_SILO: CycleTime(tons_per_hour=4, setup_minutes=15, cleaning_minutes=20),
    ProductCategory.PACKAGED_BAG: CycleTime(tons_per_hour=2, setup_minutes=15, cleaning_minutes=25),
})

FALLBACK_CATEGORY = ProductCategory.PACKAGED_SILO


def default_cycle_time(category: str | None) -> CycleTime:
    return DEFAULT_CYCLE_TIMES.get(category, DEFAULT_CYCLE_TIMES[FALLBACK_CATEGORY])


async def lookup(db: AsyncSession, category: str) -> CycleTimeConfig | None:
    """Return the active configuration row for ``category``, or None."""
    result = await db.execute(
        select(CycleTimeConfig).where(
            CycleTimeConfig.category == category,
            CycleTimeConfig.is_active == True,  # noqa: E712
        )
    )
    return result.scalar_one_or_none()


async def resolve(db: AsyncSession, category: str | None) -> CycleTime:
    """Effective cycle time for ``category``: active row, else default."""
    config = await lookup(db, category) if category else None
    if config is None:
        logger.debug("No active cycle-time row for %s, using defaults", category)
        return default_cycle_time(category)
    return CycleTime(
        tons_per_hour=float(config.tons_per_hour),
        setup_minutes=config.setup_minutes,
        cleaning_minutes=config.cleaning_minutes,
    )


async def list_configs(db: AsyncSession) -> list[CycleTimeConfig]:
    result = await db.execute(
        select(CycleTimeConfig).order_by(CycleTimeConfig.category)
    )
    return list(result.scalars().all())


async def update_config(db: AsyncSession, category: str, fields: dict) -> CycleTimeConfig:
    """Apply a partial update to a category row (administrators only)."""
    result = await db.execute(
        select(CycleTimeConfig).where(CycleTimeConfig.category == category)
    )
    config = result.scalar_one_or_none()
    if not config:
        raise ResourceNotFoundError("Cycle-time configuration", category)

    for field, value in fields.items():
        setattr(config, field, value)

    await db.flush()
    logger.info("Updated cycle-time configuration for %s: %s", category, fields)
    return config
