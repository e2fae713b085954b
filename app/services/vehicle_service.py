# app/services/vehicle_service.py
"""
Vehicle registry: lookups by id or VIN, registration (arrival), detail and
warranty edits, PDI results, and receiving ordered cars.

Moves and status changes do NOT happen here — see transition_service.
The one exception is receive_ordered_vehicle(): admitting an ordered car into
CAR_INVENTORY is its own operation, not a move between floors.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.vehicle import Vehicle
from app.models.vehicle_movement import VehicleMovement
from app.services.errors import (
    DuplicateVehicle, InvalidTransition, InvalidVIN, PersistenceFailure, VehicleNotFound,
)
from app.services.state_machine import Location, Status, check_field_edit
from app.services.transition_service import TRANSITION_FIELDS
from app.services.vehicle_cache import snapshot, vehicle_cache
from app.utils.logger import get_logger
from app.utils.vin import looks_like_vin, normalize_vin, vin_problem

logger = get_logger(__name__)

WARRANTY_FIELDS = frozenset({"vehicle_warranty_expiry", "battery_warranty_expiry", "dms_warranty_deadline"})
DETAIL_FIELDS = TRANSITION_FIELDS | {"brand", "model", "year", "color", "notes"}


# ── Lookups ──────────────────────────────────────────────────────────────────

def get_vehicle(db: Session, vehicle_id: int) -> Optional[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()


def get_vehicle_by_vin(db: Session, vin: str) -> Optional[Vehicle]:
    return db.query(Vehicle).filter(Vehicle.vin == normalize_vin(vin)).first()


def resolve_vehicle(db: Session, key) -> Vehicle:
    """Find a vehicle by numeric id or by VIN. Raises VehicleNotFound."""
    key = str(key).strip()
    vehicle = get_vehicle_by_vin(db, key) if looks_like_vin(key) else get_vehicle(db, int(key))
    if vehicle is None:
        raise VehicleNotFound(key)
    return vehicle


def get_vehicle_snapshot(db: Session, key) -> dict:
    """Cached read of a vehicle as a dict. Misses fall through to the database."""
    key = str(key).strip()
    cache_key = normalize_vin(key) if looks_like_vin(key) else int(key)
    cached = vehicle_cache.get(cache_key)
    if cached is not None:
        return cached
    data = snapshot(resolve_vehicle(db, key))
    vehicle_cache.put(data)
    return data


def list_vehicles(db: Session, location: Optional[str] = None, status: Optional[str] = None) -> list:
    q = db.query(Vehicle)
    if location:
        q = q.filter(Vehicle.location == Location(location.upper()).value)
    if status:
        q = q.filter(Vehicle.status == Status(status.upper()).value)
    return q.order_by(Vehicle.id).all()


# ── Writes ───────────────────────────────────────────────────────────────────

def _commit(db: Session, vehicle: Vehicle, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        message = str(getattr(e, "orig", None) or e)
        logger.error(f"[{action}] {vehicle.vin}: write failed — {message}")
        raise PersistenceFailure(message) from e
    vehicle_cache.invalidate(vehicle.id)


def register_vehicle(db: Session, data: dict, registered_by: Optional[str] = None) -> Vehicle:
    """
    Register a newly arrived (or newly ordered) vehicle.
    data holds Vehicle column values; 'vin' is required, 'ordered' puts the
    car in ORDERED_CARS instead of CAR_INVENTORY.
    """
    data = dict(data)
    vin = normalize_vin(data.pop("vin", None))
    problem = vin_problem(vin)
    if problem:
        raise InvalidVIN(vin, problem)
    if get_vehicle_by_vin(db, vin) is not None:
        raise DuplicateVehicle(vin)

    location = Location.ORDERED_CARS if data.pop("ordered", False) else Location.CAR_INVENTORY
    now = datetime.utcnow()
    vehicle = Vehicle(
        vin=vin,
        location=location.value,
        status=Status.AVAILABLE.value,
        pdi_completed=False,
        arrived_at=now,
        updated_at=now,
        **data,
    )
    db.add(vehicle)
    try:
        db.flush()
        db.add(VehicleMovement(
            vehicle_id=vehicle.id, vin=vin, kind="location", from_value=None,
            to_value=location.value, changed_by=registered_by,
            reason="Initial arrival" if location == Location.CAR_INVENTORY else "Ordered",
            changed_at=now,
        ))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateVehicle(vin) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(str(getattr(e, "orig", None) or e)) from e

    logger.info(f"[ARRIVAL] {vin} registered at {location.value}")
    return vehicle


def update_vehicle_details(db: Session, vehicle: Vehicle, updates: dict) -> Vehicle:
    """Edit descriptive and deal fields. Location and status are not editable here."""
    unknown = set(updates) - DETAIL_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    check_field_edit(vehicle, updates)
    for field, value in updates.items():
        setattr(vehicle, field, value)
    vehicle.updated_at = datetime.utcnow()
    _commit(db, vehicle, "EDIT")
    return vehicle


def update_warranty_dates(db: Session, vehicle: Vehicle, dates: dict) -> Vehicle:
    """Set or clear any of the three warranty deadlines. Only keys present in dates change."""
    unknown = set(dates) - WARRANTY_FIELDS
    if unknown:
        raise ValueError(f"Not warranty fields: {', '.join(sorted(unknown))}")
    for field, value in dates.items():
        setattr(vehicle, field, value)
    vehicle.updated_at = datetime.utcnow()
    _commit(db, vehicle, "WARRANTY")
    logger.info(f"[WARRANTY] {vehicle.vin}: deadlines updated ({', '.join(sorted(dates))})")
    return vehicle


def record_pdi(db: Session, vehicle: Vehicle, passed: bool, technician: Optional[str] = None,
               notes: Optional[str] = None) -> Vehicle:
    """Store a pre-delivery inspection result. A failed PDI clears the flag."""
    vehicle.pdi_completed = bool(passed)
    vehicle.pdi_date = datetime.utcnow()
    vehicle.pdi_technician = technician
    vehicle.pdi_notes = notes
    vehicle.updated_at = vehicle.pdi_date
    _commit(db, vehicle, "PDI")
    logger.info(f"[PDI] {vehicle.vin}: {'passed' if passed else 'failed'} ({technician or 'unknown'})")
    return vehicle


def receive_ordered_vehicle(db: Session, vehicle: Vehicle, received_by: Optional[str] = None) -> Vehicle:
    """Admit an ordered car into CAR_INVENTORY. Only valid from ORDERED_CARS."""
    if vehicle.location != Location.ORDERED_CARS.value:
        raise InvalidTransition(vehicle.location, Location.CAR_INVENTORY.value, kind="location",
                                message=f"Only vehicles in {Location.ORDERED_CARS.value} can be received")
    now = datetime.utcnow()
    previous = {field: getattr(vehicle, field) for field in ("location", "arrived_at", "updated_at")}
    vehicle.location = Location.CAR_INVENTORY.value
    vehicle.arrived_at = now
    vehicle.updated_at = now
    db.add(VehicleMovement(
        vehicle_id=vehicle.id, vin=vehicle.vin, kind="location",
        from_value=Location.ORDERED_CARS.value, to_value=Location.CAR_INVENTORY.value,
        changed_by=received_by, reason="Received", changed_at=now,
    ))
    try:
        _commit(db, vehicle, "RECEIVE")
    except PersistenceFailure:
        for field, value in previous.items():
            setattr(vehicle, field, value)
        raise
    logger.info(f"[RECEIVE] {vehicle.vin}: {Location.ORDERED_CARS.value} → {Location.CAR_INVENTORY.value}")
    return vehicle


def movement_history(db: Session, vehicle: Vehicle, limit: int = 100) -> list:
    return (
        db.query(VehicleMovement)
        .filter(VehicleMovement.vehicle_id == vehicle.id)
        .order_by(VehicleMovement.changed_at.desc(), VehicleMovement.id.desc())
        .limit(limit)
        .all()
    )
