"""Booking state machine.

This module is the single source of truth for booking state transitions.
Each booking type has its own graph, kept as an immutable table of
``state -> allowed next states``; a booking's ``booking_type`` picks the
table.  Everything here is a pure lookup: no I/O, no state of its own.

Production:

    planned ──► taken_in_charge ──► in_production ──► completed
       │              │
       └──────────────┴──► cancelled

Delivery:

    planned ──► taken_in_charge ──► in_preparation ──► ready_to_load ──► loading ──► loaded ──► departed
       │              │                  │                  │
       └──────────────┴──────────────────┴──────────────────┴──► cancelled

``loading → loaded`` is driven by recording the load data
(``millbook.services.load_completion``), never by a bare state change.
"""

from types import MappingProxyType
from typing import Mapping


class BookingType:
    PRODUCTION = "production"
    DELIVERY = "delivery"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.PRODUCTION, cls.DELIVERY]


class BookingState:
    """State names, use these instead of strings."""
    PLANNED = "planned"
    TAKEN_IN_CHARGE = "taken_in_charge"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"
    IN_PREPARATION = "in_preparation"
    READY_TO_LOAD = "ready_to_load"
    LOADING = "loading"
    LOADED = "loaded"
    DEPARTED = "departed"
    CANCELLED = "cancelled"


INITIAL_STATE = BookingState.PLANNED


PRODUCTION_TRANSITIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    BookingState.PLANNED: (BookingState.TAKEN_IN_CHARGE, BookingState.CANCELLED),
    BookingState.TAKEN_IN_CHARGE: (BookingState.IN_PRODUCTION, BookingState.CANCELLED),
    BookingState.IN_PRODUCTION: (BookingState.COMPLETED,),
    BookingState.COMPLETED: (),
    BookingState.CANCELLED: (),
})

DELIVERY_TRANSITIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    BookingState.PLANNED: (BookingState.TAKEN_IN_CHARGE, BookingState.CANCELLED),
    BookingState.TAKEN_IN_CHARGE: (BookingState.IN_PREPARATION, BookingState.CANCELLED),
    BookingState.IN_PREPARATION: (BookingState.READY_TO_LOAD, BookingState.CANCELLED),
    BookingState.READY_TO_LOAD: (BookingState.LOADING, BookingState.CANCELLED),
    BookingState.LOADING: (BookingState.LOADED,),
    BookingState.LOADED: (BookingState.DEPARTED,),
    BookingState.DEPARTED: (),
    BookingState.CANCELLED: (),
})

_TABLES: Mapping[str, Mapping[str, tuple[str, ...]]] = MappingProxyType({
    BookingType.PRODUCTION: PRODUCTION_TRANSITIONS,
    BookingType.DELIVERY: DELIVERY_TRANSITIONS,
})

TERMINAL_STATES: Mapping[str, frozenset[str]] = MappingProxyType({
    BookingType.PRODUCTION: frozenset({BookingState.COMPLETED, BookingState.CANCELLED}),
    BookingType.DELIVERY: frozenset({BookingState.DEPARTED, BookingState.CANCELLED}),
})


def states_for(booking_type: str) -> tuple[str, ...]:
    """All legal states of a booking type (empty for an unknown type)."""
    return tuple(_TABLES.get(booking_type, {}).keys())


def possible_transitions(booking_type: str, current_state: str) -> tuple[str, ...]:
    """States reachable in one step; empty for unknown types or states."""
    return _TABLES.get(booking_type, {}).get(current_state, ())


def is_valid_transition(booking_type: str, current_state: str, new_state: str) -> bool:
    return new_state in possible_transitions(booking_type, current_state)


def is_terminal(booking_type: str, state: str) -> bool:
    return state in TERMINAL_STATES.get(booking_type, frozenset())


def requires_cancellation_note(new_state: str) -> bool:
    """Cancelling always needs a reason, whatever the booking type."""
    return new_state == BookingState.CANCELLED


def requires_load_data(new_state: str) -> bool:
    """Reaching ``loaded`` needs a load record to exist."""
    return new_state == BookingState.LOADED
