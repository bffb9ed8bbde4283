"""Tests for the rack repository (mocked cursor)."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from roomrack.domain.models import ReservationStatus, RoomStatus
from roomrack.infra.repositories.rack_repository import (
    get_property_timezone,
    get_reservation,
    get_room,
    load_snapshot,
    set_reservation_room,
)


@pytest.fixture
def cur():
    return MagicMock()


_ROOM_ROWS = [
    ("room-101", "101", "Deluxe", "1", "clean"),
    ("room-205", "205", "Suite", None, "maintenance"),
]
_RES_ROWS = [
    ("res-a", "room-101", "Ana", date(2025, 8, 13), date(2025, 8, 15), "checked_in"),
    ("res-b", None, None, date(2025, 8, 14), date(2025, 8, 16), "confirmed"),
]


class TestLoadSnapshot:
    def test_maps_rows_to_domain(self, cur):
        cur.fetchall.side_effect = [_ROOM_ROWS, _RES_ROWS]

        snapshot = load_snapshot(cur, "prop-1", date(2025, 8, 13), date(2025, 8, 20))

        assert [room.id for room in snapshot.rooms] == ["room-101", "room-205"]
        assert snapshot.room("room-205").status is RoomStatus.MAINTENANCE
        assert snapshot.room("room-205").floor is None
        a, b = snapshot.reservations
        assert a.status is ReservationStatus.CHECKED_IN
        assert a.guest_name == "Ana"
        assert b.room_id is None
        assert b.guest_name == ""
        assert snapshot.start == date(2025, 8, 13)
        assert snapshot.end == date(2025, 8, 20)

    def test_window_params(self, cur):
        cur.fetchall.side_effect = [[], []]

        load_snapshot(cur, "prop-1", date(2025, 8, 13), date(2025, 8, 20))

        query, params = cur.execute.call_args_list[1][0]
        assert "checkin < %s" in query
        assert "checkout > %s" in query
        assert params == ("prop-1", date(2025, 8, 20), date(2025, 8, 13))

    def test_unknown_status_fails_loudly(self, cur):
        cur.fetchall.side_effect = [[("room-1", "1", "Deluxe", None, "flooded")], []]

        with pytest.raises(ValueError):
            load_snapshot(cur, "prop-1", date(2025, 8, 13), date(2025, 8, 20))


class TestSingleRows:
    def test_get_reservation_with_lock(self, cur):
        cur.fetchone.return_value = _RES_ROWS[0]

        reservation = get_reservation(cur, "prop-1", "res-a", lock=True)

        assert reservation.id == "res-a"
        assert "FOR UPDATE" in cur.execute.call_args[0][0]

    def test_get_reservation_missing(self, cur):
        cur.fetchone.return_value = None

        assert get_reservation(cur, "prop-1", "nope") is None
        assert "FOR UPDATE" not in cur.execute.call_args[0][0]

    def test_get_room(self, cur):
        cur.fetchone.return_value = _ROOM_ROWS[0]

        room = get_room(cur, "prop-1", "room-101")

        assert room.number == "101"
        assert cur.execute.call_args[0][1] == ("prop-1", "room-101")

    def test_property_timezone(self, cur):
        cur.fetchone.return_value = ("Africa/Abidjan",)
        assert get_property_timezone(cur, "prop-1") == "Africa/Abidjan"

        cur.fetchone.return_value = (None,)
        assert get_property_timezone(cur, "prop-1") is None

    def test_set_reservation_room(self, cur):
        set_reservation_room(cur, "res-a", None)

        query, params = cur.execute.call_args[0]
        assert "UPDATE reservations" in query
        assert params == (None, "res-a")
