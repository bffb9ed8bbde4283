"""Tests for night-range overlap detection."""

from __future__ import annotations

import pytest

from helpers import d, make_reservation
from roomrack.domain.models import ReservationStatus
from roomrack.domain.overlap import find_overlaps, nights_overlap, split_by_occupancy


class TestNightsOverlap:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            (("2025-08-13", "2025-08-15"), ("2025-08-14", "2025-08-16"), True),   # tail
            (("2025-08-14", "2025-08-16"), ("2025-08-13", "2025-08-15"), True),   # head
            (("2025-08-10", "2025-08-20"), ("2025-08-12", "2025-08-13"), True),   # contains
            (("2025-08-12", "2025-08-13"), ("2025-08-10", "2025-08-20"), True),   # inside
            (("2025-08-13", "2025-08-15"), ("2025-08-15", "2025-08-17"), False),  # touching
            (("2025-08-15", "2025-08-17"), ("2025-08-13", "2025-08-15"), False),  # touching
            (("2025-08-01", "2025-08-03"), ("2025-08-10", "2025-08-12"), False),  # apart
        ],
    )
    def test_half_open_intersection(self, a, b, expected):
        assert nights_overlap(d(a[0]), d(a[1]), d(b[0]), d(b[1])) is expected

    def test_symmetric(self):
        args = (d("2025-08-13"), d("2025-08-15"), d("2025-08-14"), d("2025-08-16"))
        assert nights_overlap(*args) == nights_overlap(*args[2:], *args[:2])


class TestFindOverlaps:
    def test_skips_self_and_inactive(self):
        moving = make_reservation("m", "room-2", "2025-08-14", "2025-08-16")
        occupants = [
            make_reservation("m", "room-1", "2025-08-14", "2025-08-16"),
            make_reservation(
                "x", "room-1", "2025-08-14", "2025-08-16",
                status=ReservationStatus.CANCELLED,
            ),
            make_reservation(
                "y", "room-1", "2025-08-14", "2025-08-16",
                status=ReservationStatus.NO_SHOW,
            ),
            make_reservation("z", "room-1", "2025-08-15", "2025-08-18"),
        ]

        assert [r.id for r in find_overlaps(moving, occupants)] == ["z"]

    def test_empty_room(self):
        moving = make_reservation("m", None, "2025-08-14", "2025-08-16")
        assert find_overlaps(moving, []) == []


def test_split_by_occupancy():
    in_house = make_reservation(
        "a", "room-1", "2025-08-13", "2025-08-15", status=ReservationStatus.CHECKED_IN
    )
    future = make_reservation("b", "room-1", "2025-08-15", "2025-08-17")

    current, upcoming = split_by_occupancy([in_house, future], d("2025-08-14"))

    assert current == [in_house]
    assert upcoming == [future]
