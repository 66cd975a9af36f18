"""
Event data for hotsnet.

This module provides:
    - Event: immutable (t, x, y, p) record
    - Events: chronologically ordered list of Event
    - Conversion functions: events_from_arrays, events_to_arrays
    - Ordering checks: is_chronological, check_chronological
"""

from .events import (
    # Exceptions
    EventError,
    EventFormatError,
    EventOrderError,
    # Data model
    Event,
    Events,
    # Conversion
    events_from_arrays,
    events_to_arrays,
    # Ordering
    is_chronological,
    check_chronological,
)

__all__ = [
    "EventError",
    "EventFormatError",
    "EventOrderError",
    "Event",
    "Events",
    "events_from_arrays",
    "events_to_arrays",
    "is_chronological",
    "check_chronological",
]
