"""Drop policy: classify a proposed reservation move on the rack.

Checks, in order:
  1. target room out of service (maintenance, out_of_order)  -> blocked
  2. target room is the reservation's current room           -> same_room
  3. overlaps with a stay already in house as of today       -> conflict
  4. overlaps only with stays that have not started yet      -> future_conflict
  5. no overlap                                              -> ok

The decision is advisory. The snapshot may be stale, so the commit path
re-checks under row locks (see roomrack.domain.moves).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from roomrack.settings import strict_validation

from .models import RackSnapshot, Reservation
from .overlap import find_overlaps, split_by_occupancy

logger = logging.getLogger(__name__)


class DropOutcome(str, Enum):
    OK = "ok"
    BLOCKED = "blocked"
    SAME_ROOM = "same_room"
    CONFLICT = "conflict"
    FUTURE_CONFLICT = "future_conflict"


_REASONS: dict[DropOutcome, str | None] = {
    DropOutcome.OK: None,
    DropOutcome.BLOCKED: "BLOCKED",
    DropOutcome.SAME_ROOM: "SAME_ROOM",
    DropOutcome.CONFLICT: "CONFLICT",
    DropOutcome.FUTURE_CONFLICT: "FUTURE_CONFLICT",
}


class InvalidDropError(Exception):
    """Raised in strict mode when the caller passes an impossible drop."""

    def __init__(self, reservation_id: str, target_room_id: str, problem: str) -> None:
        self.reservation_id = reservation_id
        self.target_room_id = target_room_id
        self.problem = problem
        super().__init__(
            f"Invalid drop of reservation {reservation_id} "
            f"onto room {target_room_id}: {problem}"
        )


@dataclass(frozen=True)
class DropDecision:
    """Result of validate_drop. Built per event, never cached."""

    outcome: DropOutcome
    target_room_id: str
    conflicts: tuple[Reservation, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.outcome is DropOutcome.OK

    @property
    def reason(self) -> str | None:
        return _REASONS[self.outcome]

    @property
    def is_conflict(self) -> bool:
        return self.outcome in (DropOutcome.CONFLICT, DropOutcome.FUTURE_CONFLICT)

    def to_dict(self) -> dict:
        data: dict = {"ok": self.ok, "outcome": self.outcome.value}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.conflicts:
            data["conflicts"] = [reservation.id for reservation in self.conflicts]
        return data


def _contract_violation(
    moving: Reservation,
    target_room_id: str,
    problem: str,
    strict: bool,
) -> DropDecision:
    if strict:
        raise InvalidDropError(moving.id, target_room_id, problem)
    logger.warning(
        "invalid drop degraded to blocked",
        extra={
            "extra_fields": {
                "reservation_id": moving.id,
                "target_room_id": target_room_id,
                "problem": problem,
            }
        },
    )
    return DropDecision(DropOutcome.BLOCKED, target_room_id)


def validate_drop(
    snapshot: RackSnapshot,
    moving: Reservation,
    target_room_id: str,
    today: date,
    *,
    strict: bool | None = None,
) -> DropDecision:
    """Classify the placement of ``moving`` into ``target_room_id``.

    Args:
        snapshot: Rooms and reservations currently shown on the rack.
        moving: The reservation being dragged.
        target_room_id: Room the reservation is dropped on.
        today: Property-local business date.
        strict: Raise InvalidDropError on contract violations instead of
            degrading to blocked. Defaults to the RACK_STRICT_VALIDATION
            setting.

    Returns:
        DropDecision; conflicts are listed in snapshot order.

    Raises:
        InvalidDropError: Only in strict mode, for an unknown target room or
            a stay whose departure is not after its arrival.
    """
    if strict is None:
        strict = strict_validation()

    room = snapshot.room(target_room_id)
    if room is None:
        return _contract_violation(moving, target_room_id, "unknown room", strict)
    if not moving.is_well_formed:
        return _contract_violation(moving, target_room_id, "departure not after arrival", strict)

    if room.is_out_of_service:
        return DropDecision(DropOutcome.BLOCKED, target_room_id)

    if moving.room_id == target_room_id:
        return DropDecision(DropOutcome.SAME_ROOM, target_room_id)

    overlaps = find_overlaps(moving, snapshot.reservations_in_room(target_room_id))
    if not overlaps:
        return DropDecision(DropOutcome.OK, target_room_id)

    in_house, _future = split_by_occupancy(overlaps, today)
    outcome = DropOutcome.CONFLICT if in_house else DropOutcome.FUTURE_CONFLICT
    return DropDecision(outcome, target_room_id, tuple(overlaps))
