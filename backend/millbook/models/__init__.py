"""Aggregate model imports for Alembic auto-detection."""

from millbook.models.party import Client, Carrier  # noqa: F401
from millbook.models.cycle_time_config import CycleTimeConfig  # noqa: F401
from millbook.models.booking import Booking  # noqa: F401
from millbook.models.state_history import BookingStateHistory  # noqa: F401
from millbook.models.load_record import LoadRecord  # noqa: F401
