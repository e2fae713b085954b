# app/routers/vehicles.py
"""Vehicle registry, moves/status changes, PDI and receive endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleOut
from app.schemas.transition import TransitionRequest, DestinationsOut, ReceiveRequest, PdiRequest
from app.schemas.movement import MovementOut
from app.services import vehicle_service
from app.services.state_machine import Location, Status, allowed_destinations, allowed_statuses
from app.services.transition_service import attempt_transition, TRANSITION_FIELDS

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles — filter by floor or status")
def list_vehicles(location: Optional[Location] = None, status: Optional[Status] = None,
                  db: Session = Depends(get_db)):
    return vehicle_service.list_vehicles(
        db,
        location=location.value if location else None,
        status=status.value if status else None,
    )


@router.post("/vehicles", response_model=VehicleOut, status_code=201, summary="Register a new arrival")
def register_vehicle(body: VehicleCreate, registered_by: Optional[str] = None, db: Session = Depends(get_db)):
    return vehicle_service.register_vehicle(db, body.model_dump(), registered_by=registered_by)


@router.get("/vehicles/{key}", response_model=VehicleOut, summary="Look up a vehicle by id or VIN")
def get_vehicle(key: str, db: Session = Depends(get_db)):
    return vehicle_service.get_vehicle_snapshot(db, key)


@router.patch("/vehicles/{key}", response_model=VehicleOut, summary="Edit client, price and descriptive fields")
def update_vehicle(key: str, body: VehicleUpdate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    return vehicle_service.update_vehicle_details(db, vehicle, updates)


@router.get("/vehicles/{key}/destinations", response_model=DestinationsOut,
            summary="Floors and statuses reachable in one step")
def get_destinations(key: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    destinations = [loc.value for loc in allowed_destinations(vehicle.location) if loc.value != vehicle.location]
    return {
        "vin": vehicle.vin,
        "location": vehicle.location,
        "status": vehicle.status,
        "destinations": sorted(destinations),
        "statuses": sorted(s.value for s in allowed_statuses(vehicle.status)),
    }


@router.post("/vehicles/{key}/transition", response_model=VehicleOut, summary="Move a vehicle and/or change its status")
async def transition_vehicle(key: str, body: TransitionRequest, db: Session = Depends(get_db)):
    """
    Rejections: 409 invalid_transition, 422 missing_required_field (lists every
    missing field), 422 missing_client, 503 persistence_failure.
    """
    vehicle = vehicle_service.resolve_vehicle(db, key)
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if k in TRANSITION_FIELDS}
    return await attempt_transition(
        db, vehicle,
        target_location=body.target_location,
        target_status=body.target_status,
        changed_by=body.changed_by,
        reason=body.reason,
        field_updates=fields,
    )


@router.post("/vehicles/{key}/receive", response_model=VehicleOut, summary="Receive an ordered car into inventory")
def receive_vehicle(key: str, body: ReceiveRequest, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    return vehicle_service.receive_ordered_vehicle(db, vehicle, received_by=body.received_by)


@router.post("/vehicles/{key}/pdi", response_model=VehicleOut, summary="Record a pre-delivery inspection")
def record_pdi(key: str, body: PdiRequest, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    return vehicle_service.record_pdi(db, vehicle, body.passed, body.technician, body.notes)


@router.get("/vehicles/{key}/history", response_model=list[MovementOut], summary="Location and status history")
def get_history(key: str, limit: int = 100, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    return vehicle_service.movement_history(db, vehicle, limit=limit)
