"""Rack endpoints: room x date grid, drop validation and moves.

GET  /rack?property_id=...&start_date=...&end_date=...   → snapshot
GET  /rack/kpis?property_id=...&target_date=...          → status bar counters
POST /rack/validate-drop                                 → advisory decision
POST /rack/moves                                         → commit a move
POST /rack/swaps                                         → commit a room swap
"""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query
from psycopg2 import errors as pg_errors
from pydantic import BaseModel, ConfigDict

from roomrack.domain.alternatives import suggest_alternatives
from roomrack.domain.drop_policy import InvalidDropError, validate_drop
from roomrack.domain.kpis import compute_kpis
from roomrack.domain.models import RackSnapshot, Reservation, Room
from roomrack.domain.moves import (
    ReservationNotFoundError,
    ReservationNotMovableError,
    RoomBlockedError,
    RoomNotFoundError,
    move_reservation,
    swap_reservations,
)
from roomrack.domain.room_conflict import RoomConflictError
from roomrack.domain.swap import evaluate_swap, preview_displacement
from roomrack.observability.correlation import get_correlation_id
from roomrack.observability.logging import get_logger
from roomrack.observability.redaction import safe_log_context
from roomrack.settings import max_alternatives

router = APIRouter(prefix="/rack", tags=["rack"])

logger = get_logger(__name__)

MAX_RANGE_DAYS = 90


# ── Schemas ───────────────────────────────────────────────────────────────────


class ValidateDropRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    property_id: str
    reservation_id: str
    target_room_id: str
    today: date | None = None


class MoveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    property_id: str
    reservation_id: str
    target_room_id: str
    acknowledge_displacement: bool = False
    today: date | None = None


class SwapRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    property_id: str
    reservation_id: str
    other_reservation_id: str


# ── Serialization ─────────────────────────────────────────────────────────────


def _room_to_dict(room: Room) -> dict:
    return {
        "id": room.id,
        "number": room.number,
        "type": room.type,
        "floor": room.floor,
        "status": room.status.value,
    }


def _reservation_to_dict(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "room_id": reservation.room_id,
        "guest_name": reservation.guest_name,
        "start": reservation.start.isoformat(),
        "end": reservation.end.isoformat(),
        "status": reservation.status.value,
    }


# ── Data access ───────────────────────────────────────────────────────────────


def _load_rack(property_id: str, start: date, end: date) -> tuple[RackSnapshot, date]:
    """Load the snapshot for [start, end) and the property's business date."""
    from roomrack.infra.db import txn
    from roomrack.infra.repositories.rack_repository import (
        get_property_timezone,
        load_snapshot,
    )
    from roomrack.infra.time import local_today

    with txn() as cur:
        snapshot = load_snapshot(cur, property_id, start, end)
        tz_name = get_property_timezone(cur, property_id)

    return snapshot, local_today(tz_name)


def _property_today(property_id: str) -> date:
    """Return today's date in the property's local timezone."""
    from roomrack.infra.db import txn
    from roomrack.infra.repositories.rack_repository import get_property_timezone
    from roomrack.infra.time import local_today

    with txn() as cur:
        tz_name = get_property_timezone(cur, property_id)
    return local_today(tz_name)


def _get_reservation(property_id: str, reservation_id: str) -> Reservation | None:
    from roomrack.infra.db import txn
    from roomrack.infra.repositories.rack_repository import get_reservation

    with txn() as cur:
        return get_reservation(cur, property_id, reservation_id)


# ── GET /rack ─────────────────────────────────────────────────────────────────


@router.get("")
def get_rack(
    property_id: str = Query(..., description="Property ID"),
    start_date: date = Query(..., description="Start date (YYYY-MM-DD, inclusive)"),
    end_date: date = Query(..., description="End date (YYYY-MM-DD, exclusive)"),
) -> dict:
    """Rooms and reservations for the visible window."""
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")
    if (end_date - start_date).days > MAX_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"date range cannot exceed {MAX_RANGE_DAYS} days",
        )

    snapshot, today = _load_rack(property_id, start_date, end_date)

    return {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "today": today.isoformat(),
        "rooms": [_room_to_dict(room) for room in snapshot.rooms],
        "reservations": [_reservation_to_dict(r) for r in snapshot.reservations],
        "unassigned_ids": [r.id for r in snapshot.unassigned()],
    }


# ── GET /rack/kpis ────────────────────────────────────────────────────────────


@router.get("/kpis")
def get_rack_kpis(
    property_id: str = Query(..., description="Property ID"),
    target_date: date | None = Query(None, description="Date (YYYY-MM-DD), defaults to today"),
) -> dict:
    """Status bar counters (no PII)."""
    if target_date is None:
        target_date = _property_today(property_id)
    # departures end on target_date, so the window starts a day earlier
    snapshot, _ = _load_rack(
        property_id, target_date - timedelta(days=1), target_date + timedelta(days=1)
    )

    return {"date": target_date.isoformat(), **compute_kpis(snapshot, target_date).to_dict()}


# ── POST /rack/validate-drop ─────────────────────────────────────────────────


@router.post("/validate-drop")
def post_validate_drop(body: ValidateDropRequest) -> dict:
    """Advisory decision for dropping a reservation on a room.

    Adds, for conflicting drops, same-type alternatives (capped at
    RACK_MAX_ALTERNATIVES), a swap option when one exists and the list of
    reservations a displacement would unassign.
    """
    reservation = _get_reservation(body.property_id, body.reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="reservation_not_found")
    # cancelled and no-show stays hold no room; the move would refuse them too
    if not reservation.participates:
        raise HTTPException(status_code=422, detail="reservation_not_movable")
    if not reservation.is_well_formed:
        raise HTTPException(status_code=422, detail="invalid_stay")

    snapshot, property_today = _load_rack(body.property_id, reservation.start, reservation.end)
    today = body.today or property_today

    try:
        decision = validate_drop(snapshot, reservation, body.target_room_id, today)
    except InvalidDropError as exc:
        raise HTTPException(status_code=422, detail=exc.problem.replace(" ", "_"))

    result = decision.to_dict()
    result["conflicts"] = [_reservation_to_dict(r) for r in decision.conflicts]
    result["alternatives"] = []
    result["swap"] = None
    result["displacement"] = [r.id for r in preview_displacement(decision)]

    if decision.is_conflict:
        target_room = snapshot.room(body.target_room_id)
        alternatives = suggest_alternatives(snapshot, reservation, target_room, today)
        result["alternatives"] = [
            _room_to_dict(room) for room in alternatives[: max_alternatives()]
        ]
        # the blocker may extend past the stay: widen the window before
        # checking whether it fits the reservation's current room
        swap_start = min([reservation.start] + [r.start for r in decision.conflicts])
        swap_end = max([reservation.end] + [r.end for r in decision.conflicts])
        if (swap_start, swap_end) != (reservation.start, reservation.end):
            snapshot, _ = _load_rack(body.property_id, swap_start, swap_end)
        plan = evaluate_swap(snapshot, reservation, body.target_room_id, today)
        result["swap"] = plan.to_dict() if plan else None

    logger.info(
        "drop validated",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                property_id=body.property_id,
                reservation_id=reservation.id,
                target_room_id=body.target_room_id,
                outcome=decision.outcome,
                conflicts=len(decision.conflicts),
            )
        },
    )
    return result


# ── POST /rack/moves, /rack/swaps ────────────────────────────────────────────

# Row-lock contention between concurrent moves (a deadlock, or NOWAIT)
# aborts one transaction and is reported as a room conflict.
_LOCK_ERRORS = (pg_errors.DeadlockDetected, pg_errors.LockNotAvailable)


def _raise_for_commit_error(exc: Exception, room_id: str | None = None) -> None:
    if isinstance(exc, ReservationNotFoundError):
        raise HTTPException(status_code=404, detail="reservation_not_found")
    if isinstance(exc, RoomNotFoundError):
        raise HTTPException(status_code=404, detail="room_not_found")
    if isinstance(exc, ReservationNotMovableError):
        raise HTTPException(status_code=422, detail="reservation_not_movable")
    if isinstance(exc, RoomBlockedError):
        raise HTTPException(status_code=422, detail="room_blocked")
    if isinstance(exc, RoomConflictError):
        raise HTTPException(
            status_code=409,
            detail={
                "code": "room_conflict",
                "room_id": exc.room_id,
                "conflicting_reservation_id": exc.conflicting_reservation_id,
            },
        )
    if isinstance(exc, _LOCK_ERRORS):
        raise HTTPException(
            status_code=409,
            detail={
                "code": "room_conflict",
                "room_id": room_id,
                "conflicting_reservation_id": None,
            },
        )
    raise exc


_COMMIT_ERRORS = (
    ReservationNotFoundError,
    ReservationNotMovableError,
    RoomNotFoundError,
    RoomBlockedError,
    RoomConflictError,
) + _LOCK_ERRORS


@router.post("/moves")
def post_move(body: MoveRequest) -> dict:
    """Commit a move. The database re-check is authoritative (409 on conflict).

    ``today`` should repeat the value used for validate-drop so that an
    acknowledged displacement sees the same in-house split.
    """
    try:
        return move_reservation(
            body.property_id,
            body.reservation_id,
            body.target_room_id,
            acknowledge_displacement=body.acknowledge_displacement,
            today=body.today,
        )
    except _COMMIT_ERRORS as exc:
        logger.warning(
            "move rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    property_id=body.property_id,
                    reservation_id=body.reservation_id,
                    target_room_id=body.target_room_id,
                    error=type(exc).__name__,
                )
            },
        )
        _raise_for_commit_error(exc, room_id=body.target_room_id)


@router.post("/swaps")
def post_swap(body: SwapRequest) -> dict:
    """Commit a room swap between two reservations."""
    if body.reservation_id == body.other_reservation_id:
        raise HTTPException(status_code=400, detail="cannot swap a reservation with itself")
    try:
        return swap_reservations(
            body.property_id,
            body.reservation_id,
            body.other_reservation_id,
        )
    except _COMMIT_ERRORS as exc:
        logger.warning(
            "swap rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    property_id=body.property_id,
                    reservation_id=body.reservation_id,
                    other_reservation_id=body.other_reservation_id,
                    error=type(exc).__name__,
                )
            },
        )
        _raise_for_commit_error(exc)
