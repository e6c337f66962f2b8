"""Duration calculator tests."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.models import CycleTimeConfig
from millbook.services import cycle_times
from millbook.services.cycle_times import CycleTime, ProductCategory
from millbook.services.duration import (
    calculate_duration_minutes,
    compute_duration_minutes,
    compute_end_time,
    convert_to_kg,
    duration_breakdown,
    round_up_to_slot,
)

BULK = CycleTime(tons_per_hour=10, setup_minutes=15, cleaning_minutes=20)


@pytest.mark.unit
class TestConversion:

    @pytest.mark.parametrize("quantity,unit,expected", [
        (5, "ton", 5000),
        (3, "sack", 75),
        (2, "pallet", 2000),
        (750, "kg", 750),
    ])
    def test_known_units(self, quantity, unit, expected):
        assert convert_to_kg(quantity, unit) == expected

    def test_unknown_unit_passes_through(self):
        assert convert_to_kg(42, "bucket") == 42
        assert convert_to_kg(42, None) == 42


@pytest.mark.unit
class TestDurationFormula:

    def test_bulk_ten_tons(self):
        assert calculate_duration_minutes(BULK, 10000) == 75

    def test_changeover_adds_cleaning(self):
        # 15 + 60 + 20 = 95 -> 105
        assert calculate_duration_minutes(BULK, 10000, changeover=True) == 105

    def test_rounds_up_to_slot(self):
        # 15 + 6 = 21 -> 30
        assert calculate_duration_minutes(BULK, 1000) == 30

    def test_round_up_exact_multiple_unchanged(self):
        assert round_up_to_slot(45) == 45
        assert round_up_to_slot(45.01) == 60
        assert round_up_to_slot(10, slot=30) == 30

    def test_breakdown(self):
        parts = duration_breakdown(BULK, 10000, changeover=True)
        assert parts["setup_minutes"] == 15
        assert parts["processing_minutes"] == pytest.approx(60)
        assert parts["cleaning_minutes"] == 20
        assert parts["unrounded_minutes"] == pytest.approx(95)
        assert parts["duration_minutes"] == 105

    def test_duration_is_monotone_in_quantity(self):
        previous = 0
        for kg in range(0, 40000, 500):
            minutes = calculate_duration_minutes(BULK, kg)
            assert minutes >= previous
            assert minutes % 15 == 0
            previous = minutes


@pytest.mark.unit
class TestEndTime:

    def test_same_day(self):
        assert compute_end_time("08:00", 90) == "09:30"

    def test_wraps_past_midnight(self):
        assert compute_end_time("23:00", 90) == "00:30"

    def test_zero_duration(self):
        assert compute_end_time("14:45", 0) == "14:45"


@pytest.mark.unit
@pytest.mark.asyncio
class TestConfiguredDuration:

    async def test_defaults_from_seeded_rows(self, db_session: AsyncSession):
        assert await compute_duration_minutes(db_session, ProductCategory.BULK, 10000) == 75
        assert await compute_duration_minutes(db_session, ProductCategory.BULK, 10000, True) == 105

    async def test_packaged_bag(self, db_session: AsyncSession):
        assert await compute_duration_minutes(db_session, ProductCategory.PACKAGED_BAG, 2000) == 75

    async def test_unknown_category_uses_packaged_silo(self, db_session: AsyncSession):
        # 15 + 4 t at 4 t/h = 75
        assert await compute_duration_minutes(db_session, "semolina", 4000) == 75

    async def test_configuration_overrides_defaults(self, db_session: AsyncSession):
        await cycle_times.update_config(
            db_session, ProductCategory.BULK, {"tons_per_hour": 20, "setup_minutes": 30}
        )
        await db_session.commit()
        # 30 + 10 t at 20 t/h = 60
        assert await compute_duration_minutes(db_session, ProductCategory.BULK, 10000) == 60

    async def test_inactive_row_falls_back_to_default(self, db_session: AsyncSession):
        result = await db_session.execute(
            select(CycleTimeConfig).where(CycleTimeConfig.category == ProductCategory.BULK)
        )
        config = result.scalar_one()
        config.tons_per_hour = 1
        config.is_active = False
        await db_session.commit()

        assert await compute_duration_minutes(db_session, ProductCategory.BULK, 10000) == 75

    async def test_missing_rows_use_built_in_defaults(self, db_session: AsyncSession):
        result = await db_session.execute(select(CycleTimeConfig))
        for config in result.scalars().all():
            await db_session.delete(config)
        await db_session.commit()

        assert await cycle_times.resolve(db_session, ProductCategory.PACKAGED_BAG) == CycleTime(2, 15, 25)
