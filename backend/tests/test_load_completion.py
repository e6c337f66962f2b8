"""Load-completion recorder tests."""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from millbook.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from millbook.schemas.booking import BookingCreate, BookingUpdate
from millbook.schemas.load_record import LoadRecordCreate, LoadRecordUpdate
from millbook.services import bookings as booking_service
from millbook.services import load_completion
from millbook.services.state_machine import BookingState as S

ACTOR = 7


async def make_booking(db: AsyncSession, **overrides):
    fields = {
        "booking_type": "production",
        "planned_date": date.today(),
        "planned_start_time": "08:00",
    }
    fields.update(overrides)
    booking = await booking_service.create_booking(db, BookingCreate(**fields), actor_id=ACTOR)
    await db.commit()
    return booking


async def walk(db: AsyncSession, booking_id: int, *states: str) -> None:
    for state in states:
        await booking_service.transition_state(db, booking_id, state, None, actor_id=ACTOR)
    await db.commit()


def load_payload(**overrides) -> LoadRecordCreate:
    fields = {
        "load_date": date.today(),
        "vehicle_plate": "AB123CD",
        "loaded_lot": "L2026-0412",
        "loaded_weight_kg": 1980,
        "transport_fit": True,
    }
    fields.update(overrides)
    return LoadRecordCreate(**fields)


@pytest_asyncio.fixture
async def loading_delivery(db_session: AsyncSession):
    booking = await make_booking(
        db_session,
        booking_type="delivery",
        planned_date=date.today(),
        planned_start_time="09:00",
        product_category="packaged_bag",
        planned_quantity=2,
        unit="ton",
    )
    await walk(
        db_session, booking.id,
        S.TAKEN_IN_CHARGE, S.IN_PREPARATION, S.READY_TO_LOAD, S.LOADING,
    )
    return booking


@pytest.mark.unit
@pytest.mark.asyncio
class TestRecordLoad:

    async def test_unfit_vehicle_needs_note(self, db_session: AsyncSession, loading_delivery):
        booking_id = loading_delivery.id
        with pytest.raises(BusinessLogicError) as exc_info:
            await load_completion.record_load(
                db_session, booking_id, load_payload(transport_fit=False), ACTOR
            )
        assert exc_info.value.error_code == "TRANSPORT_NOTE_REQUIRED"
        await db_session.rollback()

        booking = await booking_service.get_booking(db_session, booking_id)
        assert booking.state == S.LOADING

        record = await load_completion.record_load(
            db_session,
            booking_id,
            load_payload(transport_fit=False, transport_fit_notes="floor washed before loading"),
            ACTOR,
        )
        await db_session.commit()

        assert record.operator_id == ACTOR
        booking = await booking_service.get_booking(db_session, booking_id)
        assert booking.state == S.LOADED

        history = await booking_service.get_history(db_session, booking_id)
        assert len(history) == 6
        assert history[0].previous_state == S.LOADING
        assert history[0].new_state == S.LOADED
        assert history[0].notes == load_completion.LOAD_RECORDED_NOTE

    async def test_shipping_doc_copied_to_booking(self, db_session: AsyncSession, loading_delivery):
        await load_completion.record_load(
            db_session, loading_delivery.id, load_payload(shipping_doc_number="DDT-881"), ACTOR
        )
        await db_session.commit()

        booking = await booking_service.get_booking(db_session, loading_delivery.id)
        assert booking.shipping_doc_reference == "DDT-881"

    async def test_only_once(self, db_session: AsyncSession, loading_delivery):
        await load_completion.record_load(db_session, loading_delivery.id, load_payload(), ACTOR)
        await db_session.commit()

        with pytest.raises(BusinessLogicError) as exc_info:
            await load_completion.record_load(db_session, loading_delivery.id, load_payload(), ACTOR)
        # The booking already left 'loading'
        assert exc_info.value.error_code == "WRONG_STATE"

    async def test_wrong_state(self, db_session: AsyncSession):
        booking = await make_booking(db_session, booking_type="delivery")
        await walk(db_session, booking.id, S.TAKEN_IN_CHARGE)

        with pytest.raises(BusinessLogicError) as exc_info:
            await load_completion.record_load(db_session, booking.id, load_payload(), ACTOR)
        assert exc_info.value.error_code == "WRONG_STATE"

    async def test_production_booking_rejected(self, db_session: AsyncSession):
        booking = await make_booking(db_session)
        with pytest.raises(BusinessLogicError) as exc_info:
            await load_completion.record_load(db_session, booking.id, load_payload(), ACTOR)
        assert exc_info.value.error_code == "NOT_A_DELIVERY"

    async def test_missing_booking(self, db_session: AsyncSession):
        with pytest.raises(ResourceNotFoundError):
            await load_completion.record_load(db_session, 404, load_payload(), ACTOR)

    async def test_loaded_then_departed(self, db_session: AsyncSession, loading_delivery):
        await load_completion.record_load(db_session, loading_delivery.id, load_payload(), ACTOR)
        await walk(db_session, loading_delivery.id, S.DEPARTED)

        booking = await booking_service.get_booking(db_session, loading_delivery.id)
        assert booking.state == S.DEPARTED
        with pytest.raises(BusinessLogicError):
            await booking_service.update_booking(
                db_session, booking.id, BookingUpdate(priority=1)
            )


@pytest.mark.unit
@pytest.mark.asyncio
class TestUpdateLoad:

    async def test_missing_record(self, db_session: AsyncSession, loading_delivery):
        with pytest.raises(ResourceNotFoundError):
            await load_completion.get_load(db_session, loading_delivery.id)
        with pytest.raises(ResourceNotFoundError):
            await load_completion.update_load(
                db_session, loading_delivery.id, LoadRecordUpdate(vehicle_plate="ZZ999ZZ")
            )

    async def test_fitness_rule_uses_stored_note(self, db_session: AsyncSession, loading_delivery):
        booking_id = loading_delivery.id
        await load_completion.record_load(db_session, booking_id, load_payload(), ACTOR)
        await db_session.commit()

        with pytest.raises(BusinessLogicError):
            await load_completion.update_load(
                db_session, booking_id, LoadRecordUpdate(transport_fit=False)
            )
        await db_session.rollback()

        await load_completion.update_load(
            db_session, booking_id,
            LoadRecordUpdate(transport_fit_notes="tarpaulin torn"),
        )
        record = await load_completion.update_load(
            db_session, booking_id, LoadRecordUpdate(transport_fit=False)
        )
        assert record.transport_fit is False
        assert record.transport_fit_notes == "tarpaulin torn"

    async def test_update_keeps_state_and_history(self, db_session: AsyncSession, loading_delivery):
        await load_completion.record_load(db_session, loading_delivery.id, load_payload(), ACTOR)
        await db_session.commit()

        record = await load_completion.update_load(
            db_session, loading_delivery.id,
            LoadRecordUpdate(loaded_weight_kg=2010, shipping_doc_number="DDT-902"),
        )
        await db_session.commit()

        assert record.loaded_weight_kg == 2010
        assert record.vehicle_plate == "AB123CD"
        booking = await booking_service.get_booking(db_session, loading_delivery.id)
        assert booking.state == S.LOADED
        assert booking.shipping_doc_reference == "DDT-902"
        assert len(await booking_service.get_history(db_session, loading_delivery.id)) == 6
