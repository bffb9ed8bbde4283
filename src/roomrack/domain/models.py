"""Rack read model: rooms, reservations and the snapshot the validator runs on.

All types are immutable. A snapshot is built once per data fetch and is never
mutated by the domain functions that read it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterator, Sequence


class RoomStatus(str, Enum):
    """Housekeeping / service status of a physical room."""

    CLEAN = "clean"
    DIRTY = "dirty"
    MAINTENANCE = "maintenance"
    INSPECTED = "inspected"
    OUT_OF_ORDER = "out_of_order"


class ReservationStatus(str, Enum):
    """Lifecycle status of a reservation."""

    OPTION = "option"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"


# Every RoomStatus must appear here; tests assert the mapping is exhaustive.
ROOM_ACCEPTS_PLACEMENT: dict[RoomStatus, bool] = {
    RoomStatus.CLEAN: True,
    RoomStatus.DIRTY: True,
    RoomStatus.INSPECTED: True,
    RoomStatus.MAINTENANCE: False,
    RoomStatus.OUT_OF_ORDER: False,
}

# Statuses that hold a room for their nights.
PARTICIPATING_STATUSES = frozenset(
    {
        ReservationStatus.OPTION,
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CHECKED_OUT,
    }
)


@dataclass(frozen=True)
class Room:
    """A physical room on the rack."""

    id: str
    number: str
    type: str
    status: RoomStatus = RoomStatus.CLEAN
    floor: str | None = None

    @property
    def is_out_of_service(self) -> bool:
        return not ROOM_ACCEPTS_PLACEMENT[self.status]


@dataclass(frozen=True)
class Reservation:
    """Placement-relevant view of a reservation.

    ``end`` is the departure day and is exclusive: a stay from D to D+2
    occupies nights D and D+1.
    """

    id: str
    room_id: str | None
    guest_name: str
    start: date
    end: date
    status: ReservationStatus = ReservationStatus.CONFIRMED

    @property
    def participates(self) -> bool:
        """True when the reservation holds its room for its nights."""
        return self.status in PARTICIPATING_STATUSES

    @property
    def is_well_formed(self) -> bool:
        return self.start < self.end

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def is_in_house(self, today: date) -> bool:
        """True when the stay is already physically occupying its room.

        Checked-out stays have consumed their nights; checked-in stays count
        once their arrival day has been reached.
        """
        if self.status is ReservationStatus.CHECKED_OUT:
            return True
        return self.status is ReservationStatus.CHECKED_IN and self.start <= today

    def covers(self, day: date) -> bool:
        """True when the night starting on ``day`` belongs to this stay."""
        return self.start <= day < self.end


@dataclass(frozen=True)
class RackSnapshot:
    """Rooms and reservations for a visible date window ``[start, end)``.

    Ordering of both sequences is preserved as loaded; the validator reports
    conflicts and alternatives in that order.
    """

    rooms: tuple[Room, ...]
    reservations: tuple[Reservation, ...]
    start: date | None = None
    end: date | None = None
    _rooms_by_id: dict[str, Room] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        # frozen dataclass: populate the index through object.__setattr__
        object.__setattr__(self, "rooms", tuple(self.rooms))
        object.__setattr__(self, "reservations", tuple(self.reservations))
        object.__setattr__(self, "_rooms_by_id", {room.id: room for room in self.rooms})

    @classmethod
    def build(
        cls,
        rooms: Sequence[Room],
        reservations: Sequence[Reservation],
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> RackSnapshot:
        return cls(rooms=tuple(rooms), reservations=tuple(reservations), start=start, end=end)

    def room(self, room_id: str) -> Room | None:
        return self._rooms_by_id.get(room_id)

    def reservation(self, reservation_id: str) -> Reservation | None:
        for reservation in self.reservations:
            if reservation.id == reservation_id:
                return reservation
        return None

    def reservations_in_room(self, room_id: str) -> Iterator[Reservation]:
        """Yield the participating reservations assigned to ``room_id``."""
        for reservation in self.reservations:
            if reservation.room_id == room_id and reservation.participates:
                yield reservation

    def unassigned(self) -> list[Reservation]:
        return [r for r in self.reservations if r.room_id is None and r.participates]
