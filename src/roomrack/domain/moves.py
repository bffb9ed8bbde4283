"""Commit path for rack moves - transactional room reassignment.

The rack validator is an optimistic pre-check on a snapshot. These functions
are the authoritative arbiter: they re-read and lock the live rows, then
re-run the overlap rule before writing.

Orchestrates inside a single DB transaction:
lock reservation -> load target room -> guard status -> (displace) -> assert no conflict -> update.
"""

from __future__ import annotations

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from roomrack.infra.db import txn
from roomrack.infra.repositories.rack_repository import (
    get_property_timezone,
    get_reservation,
    get_room,
    set_reservation_room,
)
from roomrack.infra.time import local_today
from roomrack.observability.logging import get_logger
from roomrack.observability.redaction import safe_log_context

from .models import Reservation, ReservationStatus, Room
from .room_conflict import (
    ConflictingStay,
    RoomConflictError,
    assert_no_room_conflict,
    list_room_conflicts,
)

logger = get_logger(__name__)


class ReservationNotFoundError(Exception):
    """Raised when the reservation does not exist for the property."""

    pass


class ReservationNotMovableError(Exception):
    """Raised when the reservation holds no room (cancelled, no-show or unassigned)."""

    pass


class RoomNotFoundError(Exception):
    """Raised when the target room does not exist for the property."""

    pass


class RoomBlockedError(Exception):
    """Raised when the target room is under maintenance or out of order."""

    def __init__(self, room: Room) -> None:
        self.room_id = room.id
        self.status = room.status
        super().__init__(f"Room {room.id} is {room.status.value}")


def _lock_movable(cur: PgCursor, property_id: str, reservation_id: str) -> Reservation:
    reservation = get_reservation(cur, property_id, reservation_id, lock=True)
    if reservation is None:
        raise ReservationNotFoundError(f"Reservation {reservation_id} not found")
    if not reservation.participates:
        raise ReservationNotMovableError(
            f"Reservation {reservation_id} is {reservation.status.value}"
        )
    return reservation


def _open_room(cur: PgCursor, property_id: str, room_id: str) -> Room:
    room = get_room(cur, property_id, room_id)
    if room is None:
        raise RoomNotFoundError(f"Room {room_id} not found")
    if room.is_out_of_service:
        raise RoomBlockedError(room)
    return room


def _stay_in_house(stay: ConflictingStay, today: date) -> bool:
    return Reservation(
        id=stay.reservation_id,
        room_id=None,
        guest_name="",
        start=stay.checkin,
        end=stay.checkout,
        status=ReservationStatus(stay.status),
    ).is_in_house(today)


def _displace_future_stays(
    cur: PgCursor,
    *,
    property_id: str,
    reservation: Reservation,
    room_id: str,
    today: date,
) -> list[str]:
    """Unassign the future stays blocking ``room_id``; in-house ones abort."""
    stays = list_room_conflicts(
        cur,
        room_id=room_id,
        check_in=reservation.start,
        check_out=reservation.end,
        exclude_reservation_ids=(reservation.id,),
        lock=True,
    )
    for stay in stays:
        if _stay_in_house(stay, today):
            raise RoomConflictError(
                room_id=room_id,
                conflicting_reservation_id=stay.reservation_id,
                existing_checkin=stay.checkin,
                existing_checkout=stay.checkout,
            )

    displaced = [stay.reservation_id for stay in stays]
    for displaced_id in displaced:
        set_reservation_room(cur, displaced_id, None)

    if displaced:
        logger.info(
            "future reservations displaced",
            extra={
                "extra_fields": safe_log_context(
                    property_id=property_id,
                    room_id=room_id,
                    reservation_id=reservation.id,
                    displaced_count=len(displaced),
                )
            },
        )
    return displaced


def move_reservation(
    property_id: str,
    reservation_id: str,
    target_room_id: str,
    *,
    acknowledge_displacement: bool = False,
    today: date | None = None,
) -> dict:
    """Move a reservation to another room.

    This function:
    1. Locks the reservation with FOR UPDATE
    2. Validates the target room exists and is in service
    3. Returns early if the reservation is already in that room (no-op)
    4. With acknowledge_displacement, unassigns future stays in the way
       (a stay already in house still aborts the move)
    5. Asserts no overlapping stay remains, locking conflicting rows
    6. Updates reservations.room_id

    Args:
        property_id: Property ID (tenant isolation).
        reservation_id: Reservation to move.
        target_room_id: Destination room.
        acknowledge_displacement: Operator accepted unassigning future stays.
        today: Business date; defaults to today in the property timezone.

    Returns:
        Dict with result:
        - {"status": "unchanged", ...} if already in the target room
        - {"status": "moved", "reservation_id", "from_room_id", "to_room_id",
           "displaced_reservation_ids"}

    Raises:
        ReservationNotFoundError: Unknown reservation.
        ReservationNotMovableError: Cancelled or no-show reservation.
        RoomNotFoundError: Unknown target room.
        RoomBlockedError: Target room under maintenance / out of order.
        RoomConflictError: Target room occupied on an overlapping night.
    """
    with txn() as cur:
        reservation = _lock_movable(cur, property_id, reservation_id)
        room = _open_room(cur, property_id, target_room_id)

        if reservation.room_id == room.id:
            return {
                "status": "unchanged",
                "reservation_id": reservation.id,
                "room_id": room.id,
            }

        displaced: list[str] = []
        if acknowledge_displacement:
            if today is None:
                today = local_today(get_property_timezone(cur, property_id))
            displaced = _displace_future_stays(
                cur,
                property_id=property_id,
                reservation=reservation,
                room_id=room.id,
                today=today,
            )

        assert_no_room_conflict(
            cur,
            room_id=room.id,
            check_in=reservation.start,
            check_out=reservation.end,
            exclude_reservation_id=reservation.id,
            property_id=property_id,
            lock=True,
        )
        set_reservation_room(cur, reservation.id, room.id)

    logger.info(
        "reservation moved",
        extra={
            "extra_fields": safe_log_context(
                property_id=property_id,
                reservation_id=reservation.id,
                from_room_id=reservation.room_id,
                to_room_id=room.id,
                displaced_count=len(displaced),
            )
        },
    )
    return {
        "status": "moved",
        "reservation_id": reservation.id,
        "from_room_id": reservation.room_id,
        "to_room_id": room.id,
        "displaced_reservation_ids": displaced,
    }


def _assert_fits(
    cur: PgCursor,
    *,
    reservation: Reservation,
    room_id: str,
    exclude: tuple[str, ...],
) -> None:
    stays = list_room_conflicts(
        cur,
        room_id=room_id,
        check_in=reservation.start,
        check_out=reservation.end,
        exclude_reservation_ids=exclude,
        lock=True,
        limit=1,
    )
    if stays:
        raise RoomConflictError(
            room_id=room_id,
            conflicting_reservation_id=stays[0].reservation_id,
            existing_checkin=stays[0].checkin,
            existing_checkout=stays[0].checkout,
        )


def swap_reservations(
    property_id: str,
    reservation_id: str,
    other_reservation_id: str,
) -> dict:
    """Trade the rooms of two assigned reservations in one transaction.

    Rows are locked in id order so concurrent swaps cannot deadlock. The
    first reservation is parked without a room while the second moves, so a
    database-level overlap constraint never sees an intermediate collision.

    Raises:
        ReservationNotFoundError: Either reservation unknown.
        ReservationNotMovableError: Either reservation cancelled, no-show or unassigned.
        RoomNotFoundError / RoomBlockedError: A destination room is unusable.
        RoomConflictError: A third stay occupies one of the rooms.
    """
    if reservation_id == other_reservation_id:
        raise ValueError("Cannot swap a reservation with itself")

    with txn() as cur:
        locked = {
            rid: _lock_movable(cur, property_id, rid)
            for rid in sorted((reservation_id, other_reservation_id))
        }
        first, second = locked[reservation_id], locked[other_reservation_id]
        for res in (first, second):
            if res.room_id is None:
                raise ReservationNotMovableError(f"Reservation {res.id} has no room to swap")

        first_room = _open_room(cur, property_id, second.room_id)
        second_room = _open_room(cur, property_id, first.room_id)
        both = (first.id, second.id)
        _assert_fits(cur, reservation=first, room_id=first_room.id, exclude=both)
        _assert_fits(cur, reservation=second, room_id=second_room.id, exclude=both)

        set_reservation_room(cur, first.id, None)
        set_reservation_room(cur, second.id, second_room.id)
        set_reservation_room(cur, first.id, first_room.id)

    logger.info(
        "reservations swapped",
        extra={
            "extra_fields": safe_log_context(
                property_id=property_id,
                reservation_id=first.id,
                other_reservation_id=second.id,
            )
        },
    )
    return {
        "status": "swapped",
        "reservation_id": first.id,
        "room_id": first_room.id,
        "other_reservation_id": second.id,
        "other_room_id": second_room.id,
    }
