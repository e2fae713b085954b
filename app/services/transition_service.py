# app/services/transition_service.py
"""
The single write path for vehicle moves and status changes.

Every caller (the vehicles router, scripts) goes through attempt_transition():
  1. validate_transition()   — pure checks, no I/O
  2. one commit              — location/status + field updates + history rows
  3. notify observers        — cache invalidation and any subscribed listener

No version check: two concurrent writers on the same vehicle resolve as
last-write-wins at the database.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.vehicle import Vehicle
from app.models.vehicle_movement import VehicleMovement
from app.services.errors import FieldsWithoutTransition, PersistenceFailure
from app.services.state_machine import TransitionPlan, validate_transition
from app.services.vehicle_cache import vehicle_cache
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Fields a caller may set in the same request as a transition.
TRANSITION_FIELDS = frozenset({
    "client_name", "client_id", "expected_price", "selling_price",
    "reservation_date", "invoice_id", "delivery_date", "work_order_id",
})

Observer = Callable[[Vehicle, TransitionPlan], None]

_observers: list = []


def add_observer(observer: Observer) -> None:
    """Register a callback run after every committed transition."""
    if observer not in _observers:
        _observers.append(observer)


def remove_observer(observer: Observer) -> None:
    if observer in _observers:
        _observers.remove(observer)


def _invalidate_cache(vehicle: Vehicle, plan: TransitionPlan) -> None:
    vehicle_cache.invalidate(vehicle.id)


add_observer(_invalidate_cache)


def _notify(vehicle: Vehicle, plan: TransitionPlan) -> None:
    for observer in list(_observers):
        try:
            observer(vehicle, plan)
        except Exception as e:
            logger.error(f"Transition observer {observer!r} failed for {vehicle.vin}: {e}", exc_info=True)


def _movement(vehicle: Vehicle, kind: str, from_value, to_value, changed_by, reason, now) -> VehicleMovement:
    return VehicleMovement(
        vehicle_id=vehicle.id,
        vin=vehicle.vin,
        kind=kind,
        from_value=from_value,
        to_value=to_value,
        changed_by=changed_by,
        reason=reason,
        changed_at=now,
    )


async def attempt_transition(
    db: Session,
    vehicle: Vehicle,
    target_location=None,
    target_status=None,
    changed_by: Optional[str] = None,
    reason: Optional[str] = None,
    field_updates: Optional[dict] = None,
) -> Vehicle:
    """
    Move a vehicle and/or change its status.

    field_updates (see TRANSITION_FIELDS) are validated as if already on the
    record and written in the same commit. A request that changes neither
    location nor status is a no-op: nothing is written, and field_updates
    sent with it raise FieldsWithoutTransition.

    Raises InvalidTransition, MissingRequiredField, MissingClient before any
    database work, or PersistenceFailure if the commit fails. On failure the
    vehicle object keeps its previous values.
    """
    field_updates = dict(field_updates or {})
    unknown = set(field_updates) - TRANSITION_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be set with a transition: {', '.join(sorted(unknown))}")

    plan = validate_transition(vehicle, target_location, target_status, overrides=field_updates)
    if plan.is_noop:
        if field_updates:
            raise FieldsWithoutTransition(field_updates)
        logger.debug(f"[MOVE] {vehicle.vin}: no change requested — skipped")
        return vehicle

    now = datetime.utcnow()
    changes = dict(field_updates)
    changes["location"] = plan.to_location
    changes["status"] = plan.to_status
    changes["updated_at"] = now
    previous = {field: getattr(vehicle, field) for field in changes}

    for field, value in changes.items():
        setattr(vehicle, field, value)
    if plan.location_changed:
        db.add(_movement(vehicle, "location", plan.from_location, plan.to_location, changed_by, reason, now))
    if plan.status_changed:
        db.add(_movement(vehicle, "status", plan.from_status, plan.to_status, changed_by, reason, now))

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        for field, value in previous.items():
            setattr(vehicle, field, value)
        message = str(getattr(e, "orig", None) or e)
        logger.error(f"[MOVE] {vehicle.vin}: write failed — {message}")
        raise PersistenceFailure(message) from e

    if plan.location_changed:
        logger.info(f"[MOVE] {vehicle.vin}: {plan.from_location} → {plan.to_location}")
    if plan.status_changed:
        logger.info(f"[STATUS] {vehicle.vin}: {plan.from_status} → {plan.to_status}")

    _notify(vehicle, plan)
    return vehicle
