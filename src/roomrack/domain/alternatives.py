"""Alternative room suggestion for a conflicting drop."""

from __future__ import annotations

from datetime import date

from .drop_policy import DropOutcome, validate_drop
from .models import RackSnapshot, Reservation, Room


def suggest_alternatives(
    snapshot: RackSnapshot,
    moving: Reservation,
    original_room: Room,
    today: date,
) -> list[Room]:
    """Rooms of the same type that are free for the whole stay of ``moving``.

    Rooms on the same floor as ``original_room`` come first; within each group
    the snapshot order is kept. The original room and the reservation's
    current room are never suggested. The full list is returned, callers
    truncate for display.
    """
    if not moving.is_well_formed:
        return []

    candidates: list[Room] = []
    for room in snapshot.rooms:
        if room.type != original_room.type:
            continue
        if room.id in (original_room.id, moving.room_id):
            continue
        decision = validate_drop(snapshot, moving, room.id, today, strict=False)
        if decision.outcome is DropOutcome.OK:
            candidates.append(room)

    if original_room.floor is None:
        return candidates
    # sorted() is stable, so snapshot order survives inside each group
    return sorted(candidates, key=lambda room: room.floor != original_room.floor)
