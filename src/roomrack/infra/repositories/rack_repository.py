"""Rack repository - reads rooms and reservations into a RackSnapshot."""

from __future__ import annotations

from datetime import date

from psycopg2.extensions import cursor as PgCursor

from roomrack.domain.models import (
    RackSnapshot,
    Reservation,
    ReservationStatus,
    Room,
    RoomStatus,
)
from roomrack.infra.db import fetchall, fetchone

_RESERVATION_COLUMNS = "id, room_id, guest_name, checkin, checkout, status"


def _row_to_room(row: tuple) -> Room:
    return Room(
        id=str(row[0]),
        number=row[1],
        type=row[2],
        floor=row[3],
        status=RoomStatus(row[4]),
    )


def _row_to_reservation(row: tuple) -> Reservation:
    return Reservation(
        id=str(row[0]),
        room_id=str(row[1]) if row[1] is not None else None,
        guest_name=row[2] or "",
        start=row[3],
        end=row[4],
        status=ReservationStatus(row[5]),
    )


def list_rooms(cur: PgCursor, property_id: str) -> list[Room]:
    rows = fetchall(
        cur,
        """
        SELECT id, number, room_type, floor, status
        FROM rooms
        WHERE property_id = %s
        ORDER BY number, id
        """,
        (property_id,),
    )
    return [_row_to_room(row) for row in rows]


def get_room(cur: PgCursor, property_id: str, room_id: str) -> Room | None:
    row = fetchone(
        cur,
        """
        SELECT id, number, room_type, floor, status
        FROM rooms
        WHERE property_id = %s AND id = %s
        """,
        (property_id, room_id),
    )
    return _row_to_room(row) if row else None


def list_reservations(
    cur: PgCursor,
    property_id: str,
    start: date,
    end: date,
) -> list[Reservation]:
    """Reservations with at least one night inside [start, end)."""
    rows = fetchall(
        cur,
        f"""
        SELECT {_RESERVATION_COLUMNS}
        FROM reservations
        WHERE property_id = %s
          AND checkin < %s
          AND checkout > %s
        ORDER BY checkin, id
        """,
        (property_id, end, start),
    )
    return [_row_to_reservation(row) for row in rows]


def get_reservation(
    cur: PgCursor,
    property_id: str,
    reservation_id: str,
    *,
    lock: bool = False,
) -> Reservation | None:
    """Fetch one reservation, optionally locking its row (FOR UPDATE)."""
    suffix = "FOR UPDATE" if lock else ""
    row = fetchone(
        cur,
        f"""
        SELECT {_RESERVATION_COLUMNS}
        FROM reservations
        WHERE property_id = %s AND id = %s
        {suffix}
        """,
        (property_id, reservation_id),
    )
    return _row_to_reservation(row) if row else None


def load_snapshot(
    cur: PgCursor,
    property_id: str,
    start: date,
    end: date,
) -> RackSnapshot:
    """Build the rack read model for the window [start, end)."""
    return RackSnapshot.build(
        list_rooms(cur, property_id),
        list_reservations(cur, property_id, start, end),
        start=start,
        end=end,
    )


def get_property_timezone(cur: PgCursor, property_id: str) -> str | None:
    row = fetchone(
        cur,
        "SELECT timezone FROM properties WHERE id = %s",
        (property_id,),
    )
    return row[0] if row and row[0] else None


def set_reservation_room(cur: PgCursor, reservation_id: str, room_id: str | None) -> None:
    cur.execute(
        """
        UPDATE reservations
        SET room_id = %s, updated_at = now()
        WHERE id = %s
        """,
        (room_id, reservation_id),
    )
