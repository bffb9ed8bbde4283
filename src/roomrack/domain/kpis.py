"""Rack status bar counters computed from a snapshot."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from .models import RackSnapshot, ReservationStatus, RoomStatus

_AVAILABLE_STATUSES = frozenset({RoomStatus.CLEAN, RoomStatus.INSPECTED})
_ISSUE_STATUSES = frozenset({RoomStatus.DIRTY, RoomStatus.MAINTENANCE, RoomStatus.OUT_OF_ORDER})


@dataclass(frozen=True)
class RackKpis:
    occupancy_rate: float
    arrivals: int
    in_house: int
    departures: int
    pending_checkins: int
    available_rooms: int
    out_of_service: int
    issues: int

    def to_dict(self) -> dict:
        return asdict(self)


def compute_kpis(snapshot: RackSnapshot, today: date) -> RackKpis:
    """Compute the front desk counters for ``today``.

    Occupancy is measured against in-service rooms only: a room under
    maintenance cannot be sold, so it does not dilute the rate.
    """
    active = [r for r in snapshot.reservations if r.participates]
    in_service = {room.id for room in snapshot.rooms if not room.is_out_of_service}

    occupied_rooms = {
        r.room_id for r in active if r.room_id in in_service and r.covers(today)
    }
    occupancy_rate = (
        round(100.0 * len(occupied_rooms) / len(in_service), 1) if in_service else 0.0
    )

    return RackKpis(
        occupancy_rate=occupancy_rate,
        arrivals=sum(1 for r in active if r.start == today),
        in_house=sum(1 for r in active if r.status is ReservationStatus.CHECKED_IN),
        departures=sum(1 for r in active if r.end == today),
        pending_checkins=sum(
            1 for r in active if r.start == today and r.status is ReservationStatus.CONFIRMED
        ),
        available_rooms=sum(1 for room in snapshot.rooms if room.status in _AVAILABLE_STATUSES),
        out_of_service=sum(1 for room in snapshot.rooms if room.is_out_of_service),
        issues=sum(1 for room in snapshot.rooms if room.status in _ISSUE_STATUSES),
    )
