# app/routers/warranty.py
"""Warranty deadlines, derived status and expiry scan."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.warranty import WarrantyUpdate, WarrantyOut
from app.services import vehicle_service
from app.services.warranty import (
    BadgeVariant, WARRANTY_TYPES, aggregate_warranty_status, classify_warranty,
    days_remaining, render_warranty_badge, vehicle_deadlines, warranty_summary_text,
)
from app.services.warranty_monitor import scan_warranties

router = APIRouter()


def _warranty_view(vehicle, variant: BadgeVariant) -> dict:
    deadlines = vehicle_deadlines(vehicle)
    badge = render_warranty_badge(*deadlines, variant=variant)
    rows = []
    for name, deadline in zip(WARRANTY_TYPES, deadlines):
        days = days_remaining(deadline)
        rows.append({
            "type": name,
            "deadline": deadline,
            "status": classify_warranty(deadline).value,
            "days_remaining": max(0, days) if days is not None else None,
        })
    return {
        "vin": vehicle.vin,
        "status": aggregate_warranty_status(*deadlines).value,
        "summary": warranty_summary_text(*deadlines),
        "deadlines": rows,
        "badge": {"variant": badge.variant.value, "label": badge.label,
                  "color": badge.color, "detail": badge.detail},
    }


@router.get("/vehicles/{key}/warranty", response_model=WarrantyOut, summary="Warranty status for a vehicle")
def get_warranty(key: str, variant: BadgeVariant = BadgeVariant.COMPACT, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    return _warranty_view(vehicle, variant)


@router.put("/vehicles/{key}/warranty", response_model=WarrantyOut, summary="Set or clear warranty deadlines")
def update_warranty(key: str, body: WarrantyUpdate, db: Session = Depends(get_db)):
    vehicle = vehicle_service.resolve_vehicle(db, key)
    vehicle_service.update_warranty_dates(db, vehicle, body.model_dump(exclude_unset=True))
    return _warranty_view(vehicle, BadgeVariant.DETAILED)


@router.post("/warranty/scan", summary="Raise alerts for expiring and expired warranties")
async def run_warranty_scan(db: Session = Depends(get_db)):
    return await scan_warranties(db)
