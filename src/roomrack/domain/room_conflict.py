"""Authoritative room conflict detection against Postgres.

Used by the commit path inside a transaction. The rack validator works on a
possibly stale snapshot; this module re-runs the same overlap rule on the
live rows and can lock them.

Overlap formula:  (new_checkin < existing_checkout) AND (new_checkout > existing_checkin)
Strict inequality allows check-out day == check-in day (touching dates are OK).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from psycopg2.extensions import cursor as PgCursor

from .models import PARTICIPATING_STATUSES

logger = logging.getLogger(__name__)

OPERATIONAL_STATUSES = tuple(sorted(status.value for status in PARTICIPATING_STATUSES))


@dataclass(frozen=True)
class ConflictingStay:
    """Live row of a reservation overlapping a requested stay."""

    reservation_id: str
    checkin: date
    checkout: date
    status: str


class RoomConflictError(Exception):
    """Raised when a room has an overlapping reservation."""

    def __init__(
        self,
        room_id: str,
        conflicting_reservation_id: str,
        existing_checkin: date,
        existing_checkout: date,
    ) -> None:
        self.room_id = room_id
        self.conflicting_reservation_id = conflicting_reservation_id
        self.existing_checkin = existing_checkin
        self.existing_checkout = existing_checkout
        super().__init__(
            f"Room {room_id} has a conflicting reservation "
            f"({existing_checkin} to {existing_checkout})"
        )


def list_room_conflicts(
    cur: PgCursor,
    *,
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_ids: tuple[str, ...] = (),
    lock: bool = False,
    limit: int | None = None,
) -> list[ConflictingStay]:
    """Return reservations occupying ``room_id`` on any night of the stay.

    Args:
        cur: Database cursor (should be within a transaction).
        room_id: Physical room identifier.
        check_in: Requested arrival (inclusive).
        check_out: Requested departure (exclusive).
        exclude_reservation_ids: Reservations to ignore (the one being moved).
        lock: Append FOR UPDATE to lock the conflicting rows.
        limit: Optional cap on returned rows.

    Returns:
        Conflicting stays ordered by check-in.
    """
    conditions = [
        "room_id = %s",
        "status = ANY(%s)",
        "checkin < %s",   # existing checkin < new checkout
        "checkout > %s",  # existing checkout > new checkin
    ]
    params: list = [room_id, list(OPERATIONAL_STATUSES), check_out, check_in]

    if exclude_reservation_ids:
        conditions.append("NOT (id = ANY(%s))")
        params.append(list(exclude_reservation_ids))

    where = " AND ".join(conditions)
    limit_clause = ""
    if limit is not None:
        limit_clause = "LIMIT %s"
        params.append(limit)
    suffix = "FOR UPDATE" if lock else ""

    cur.execute(
        f"""
        SELECT id, checkin, checkout, status
        FROM reservations
        WHERE {where}
        ORDER BY checkin
        {limit_clause}
        {suffix}
        """,
        params,
    )
    return [
        ConflictingStay(
            reservation_id=str(row[0]),
            checkin=row[1],
            checkout=row[2],
            status=row[3],
        )
        for row in cur.fetchall()
    ]


def check_room_conflict(
    cur: PgCursor,
    *,
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: str | None = None,
    property_id: str | None = None,
    lock: bool = False,
) -> ConflictingStay | None:
    """Return the first reservation overlapping the stay, or None."""
    exclude = (exclude_reservation_id,) if exclude_reservation_id else ()
    found = list_room_conflicts(
        cur,
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        exclude_reservation_ids=exclude,
        lock=lock,
        limit=1,
    )
    if not found:
        return None

    stay = found[0]
    # only ids and dates: guest data stays out of the logs
    logger.warning(
        "room conflict detected",
        extra={
            "extra_fields": {
                "room_id": room_id,
                "property_id": property_id,
                "requested_checkin": check_in.isoformat(),
                "requested_checkout": check_out.isoformat(),
                "conflicting_reservation_id": stay.reservation_id,
                "existing_checkin": stay.checkin.isoformat(),
                "existing_checkout": stay.checkout.isoformat(),
            },
        },
    )
    return stay


def assert_no_room_conflict(
    cur: PgCursor,
    *,
    room_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: str | None = None,
    property_id: str | None = None,
    lock: bool = False,
) -> None:
    """Raise RoomConflictError if the room has an overlapping reservation.

    All arguments are forwarded to check_room_conflict.
    """
    stay = check_room_conflict(
        cur,
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        exclude_reservation_id=exclude_reservation_id,
        property_id=property_id,
        lock=lock,
    )
    if stay is not None:
        raise RoomConflictError(
            room_id=room_id,
            conflicting_reservation_id=stay.reservation_id,
            existing_checkin=stay.checkin,
            existing_checkout=stay.checkout,
        )
