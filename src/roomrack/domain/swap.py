"""Follow-up options for a conflicting drop: room swap and displacement.

A swap trades the rooms of the moving reservation and its single conflicting
reservation. Displacement unassigns the future reservations standing in the
way; they go back to the unassigned pool and are never relocated
automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from .drop_policy import DropDecision, DropOutcome, validate_drop
from .models import RackSnapshot, Reservation


@dataclass(frozen=True)
class SwapPlan:
    """Two reservations trading rooms."""

    reservation_id: str
    reservation_room_id: str
    other_reservation_id: str
    other_room_id: str

    def to_dict(self) -> dict:
        return {
            "reservation_id": self.reservation_id,
            "from_room_id": self.reservation_room_id,
            "other_reservation_id": self.other_reservation_id,
            "to_room_id": self.other_room_id,
        }


def evaluate_swap(
    snapshot: RackSnapshot,
    moving: Reservation,
    target_room_id: str,
    today: date,
) -> SwapPlan | None:
    """Return a SwapPlan if ``moving`` and its blocker can trade rooms.

    Requires an assigned moving reservation, exactly one conflicting
    reservation that is not in house yet, and both stays fitting their new
    room once the other has left.
    """
    if moving.room_id is None:
        return None

    decision = validate_drop(snapshot, moving, target_room_id, today, strict=False)
    if decision.outcome is not DropOutcome.FUTURE_CONFLICT or len(decision.conflicts) != 1:
        return None
    other = decision.conflicts[0]

    # Rebuild the rack as if both reservations had left their rooms.
    vacated = RackSnapshot.build(
        snapshot.rooms,
        [r for r in snapshot.reservations if r.id not in (moving.id, other.id)],
        start=snapshot.start,
        end=snapshot.end,
    )
    other_moved = replace(other, room_id=None)
    moving_moved = replace(moving, room_id=None)

    back = validate_drop(vacated, other_moved, moving.room_id, today, strict=False)
    if back.outcome is not DropOutcome.OK:
        return None
    forth = validate_drop(vacated, moving_moved, target_room_id, today, strict=False)
    if forth.outcome is not DropOutcome.OK:
        return None

    return SwapPlan(
        reservation_id=moving.id,
        reservation_room_id=moving.room_id,
        other_reservation_id=other.id,
        other_room_id=target_room_id,
    )


def preview_displacement(decision: DropDecision) -> list[Reservation]:
    """Reservations an acknowledged future-conflict move would unassign."""
    if decision.outcome is not DropOutcome.FUTURE_CONFLICT:
        return []
    return list(decision.conflicts)
