"""Builders for rack test data.

Regular functions (not fixtures) so tests can build rooms and reservations
inline with only the fields that matter to them.
"""

from __future__ import annotations

from datetime import date

from roomrack.domain.models import (
    RackSnapshot,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
)


def d(value: str) -> date:
    """Parse YYYY-MM-DD."""
    return date.fromisoformat(value)


def make_room(
    room_id: str,
    *,
    number: str | None = None,
    type: str = "Deluxe",
    floor: str | None = "1",
    status: RoomStatus = RoomStatus.CLEAN,
) -> Room:
    return Room(
        id=room_id,
        number=number or room_id,
        type=type,
        floor=floor,
        status=status,
    )


def make_reservation(
    reservation_id: str,
    room_id: str | None,
    start: str,
    end: str,
    *,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
    guest_name: str = "Guest",
) -> Reservation:
    return Reservation(
        id=reservation_id,
        room_id=room_id,
        guest_name=guest_name,
        start=d(start),
        end=d(end),
        status=status,
    )


def make_snapshot(rooms, reservations) -> RackSnapshot:
    return RackSnapshot.build(rooms, reservations)
