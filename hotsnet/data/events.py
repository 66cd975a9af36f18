"""
Event data model for hotsnet.

An event is the atomic output of a neuromorphic vision sensor: a timestamp,
a pixel position and a channel. On raw sensor streams the channel is the
polarity; on the output of a layer it is the cluster id assigned to the
event's time surface.

Sequences of events are plain Python lists ordered by timestamp. Batches are
lists of sequences.

Example:
    >>> from hotsnet.data.events import Event, events_from_arrays
    >>>
    >>> ev = Event(t=10, x=2, y=1, p=0)
    >>> events = events_from_arrays(t, x, y, p)  # numpy arrays
    >>> check_chronological(events)
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence, Tuple, Union

import numpy as np


# =============================================================================
# EXCEPTIONS
# =============================================================================


class EventError(Exception):
    """Base exception for event data errors."""
    pass


class EventFormatError(EventError, ValueError):
    """Raised when event arrays are malformed."""
    pass


class EventOrderError(EventError, ValueError):
    """Raised when a sequence is not chronologically ordered."""
    pass


# =============================================================================
# DATA MODEL
# =============================================================================


class Event(NamedTuple):
    """
    A single sensor or layer event.

    Attributes:
        t: Timestamp.
        x: Horizontal coordinate.
        y: Vertical coordinate.
        p: Channel (polarity on input, cluster id on layer output).
    """
    t: Union[int, float]
    x: int
    y: int
    p: int


Events = List[Event]


# =============================================================================
# ARRAY CONVERSION
# =============================================================================


def events_from_arrays(
    t: Sequence,
    x: Sequence,
    y: Sequence,
    p: Sequence
) -> Events:
    """
    Build a sequence of events from parallel arrays.

    Args:
        t: Timestamps, shape (N,).
        x: X coordinates, shape (N,).
        y: Y coordinates, shape (N,).
        p: Polarities or channels, shape (N,).

    Returns:
        List of Event.

    Raises:
        EventFormatError: If the arrays are not 1D or lengths differ.
    """
    arrays = [np.asarray(a) for a in (t, x, y, p)]

    for name, arr in zip("txyp", arrays):
        if arr.ndim != 1:
            raise EventFormatError(f"{name} must be 1D, got shape {arr.shape}")

    lengths = {len(a) for a in arrays}
    if len(lengths) != 1:
        raise EventFormatError(
            f"Event arrays must have the same length, got {[len(a) for a in arrays]}"
        )

    t_arr, x_arr, y_arr, p_arr = arrays
    # Keep integer timestamps as ints, only fall back to float when needed
    if np.issubdtype(t_arr.dtype, np.integer):
        ts = [int(v) for v in t_arr]
    else:
        ts = [float(v) for v in t_arr]

    return [
        Event(tv, int(xv), int(yv), int(pv))
        for tv, xv, yv, pv in zip(ts, x_arr, y_arr, p_arr)
    ]


def events_to_arrays(
    events: Sequence[Event]
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Split a sequence of events into parallel arrays.

    Returns:
        Tuple (t, x, y, p). Coordinates and channels are int64; timestamps
        are int64 unless any timestamp is a float.
    """
    if len(events) == 0:
        empty = np.zeros(0, dtype=np.int64)
        return empty, empty.copy(), empty.copy(), empty.copy()

    t = np.asarray([ev.t for ev in events])
    x = np.asarray([ev.x for ev in events], dtype=np.int64)
    y = np.asarray([ev.y for ev in events], dtype=np.int64)
    p = np.asarray([ev.p for ev in events], dtype=np.int64)
    return t, x, y, p


# =============================================================================
# ORDERING
# =============================================================================


def is_chronological(events: Sequence[Event]) -> bool:
    """Check that timestamps are non-decreasing."""
    return all(a.t <= b.t for a, b in zip(events, events[1:]))


def check_chronological(events: Sequence[Event]) -> None:
    """
    Validate that timestamps are non-decreasing.

    Raises:
        EventOrderError: Pointing at the first out-of-order event.
    """
    for i in range(1, len(events)):
        if events[i].t < events[i - 1].t:
            raise EventOrderError(
                f"Event {i} has timestamp {events[i].t} earlier than "
                f"previous timestamp {events[i - 1].t}"
            )


__all__ = [
    # Exceptions
    "EventError",
    "EventFormatError",
    "EventOrderError",
    # Data model
    "Event",
    "Events",
    # Conversion
    "events_from_arrays",
    "events_to_arrays",
    # Ordering
    "is_chronological",
    "check_chronological",
]
