"""Night-range overlap detection.

Overlap formula:  (a.start < b.end) AND (b.start < a.end)
Ranges are half-open [start, end): a departure on day D never collides with
an arrival on day D. Comparisons are date-only.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from .models import Reservation


def nights_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Return True if [start_a, end_a) and [start_b, end_b) share a night."""
    return start_a < end_b and start_b < end_a


def find_overlaps(
    moving: Reservation,
    occupants: Iterable[Reservation],
) -> list[Reservation]:
    """Return the occupants whose stay shares a night with ``moving``.

    The moving reservation itself and non-participating reservations
    (cancelled, no-show) are skipped. Input order is preserved.

    Args:
        moving: Reservation being placed.
        occupants: Reservations currently assigned to the target room.

    Returns:
        Overlapping reservations, in the order they were given.
    """
    return [
        other
        for other in occupants
        if other.id != moving.id
        and other.participates
        and nights_overlap(moving.start, moving.end, other.start, other.end)
    ]


def split_by_occupancy(
    overlaps: Iterable[Reservation],
    today: date,
) -> tuple[list[Reservation], list[Reservation]]:
    """Partition overlaps into (in house as of today, future)."""
    in_house: list[Reservation] = []
    future: list[Reservation] = []
    for reservation in overlaps:
        if reservation.is_in_house(today):
            in_house.append(reservation)
        else:
            future.append(reservation)
    return in_house, future
