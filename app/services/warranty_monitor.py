# app/services/warranty_monitor.py
"""
Warranty expiry alerts.
Walks every unsold vehicle, computes its aggregate warranty status and raises
a warranty_expiring / warranty_expired alert. An unresolved alert of the same
type for the same vehicle within WARRANTY_ALERT_COOLDOWN_DAYS suppresses a repeat.
Run on demand: POST /api/v1/warranty/scan or scripts/setup/scan_warranties.py.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.alert import Alert
from app.models.vehicle import Vehicle
from app.services.alert_service import create_alert
from app.services.state_machine import Status
from app.services.warranty import (
    AggregateWarrantyStatus, aggregate_warranty_status, vehicle_deadlines, warranty_summary_text,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

ALERT_TYPES = {
    AggregateWarrantyStatus.EXPIRING_SOON: "warranty_expiring",
    AggregateWarrantyStatus.EXPIRED: "warranty_expired",
}


def _recent_alert(db: Session, vehicle: Vehicle, alert_type: str):
    cooldown = timedelta(days=settings.WARRANTY_ALERT_COOLDOWN_DAYS)
    return db.query(Alert).filter(
        Alert.vehicle_id == vehicle.id, Alert.alert_type == alert_type,
        Alert.is_resolved == 0,
        Alert.triggered_at >= datetime.utcnow() - cooldown,
    ).first()


async def check_vehicle_warranty(db: Session, vehicle: Vehicle, today: Optional[date] = None):
    """Raise an alert for one vehicle if its warranty needs attention. Returns the alert or None."""
    status = aggregate_warranty_status(*vehicle_deadlines(vehicle), today=today)
    alert_type = ALERT_TYPES.get(status)
    if alert_type is None:
        return None
    if _recent_alert(db, vehicle, alert_type):
        return None

    summary = warranty_summary_text(*vehicle_deadlines(vehicle), today=today)
    label = "expired" if status == AggregateWarrantyStatus.EXPIRED else "expiring soon"
    desc = f"Warranty {label} for {vehicle.brand or ''} {vehicle.model or ''} {vehicle.vin}: {summary}"
    return await create_alert(db, alert_type, vehicle, " ".join(desc.split()))


async def scan_warranties(db: Session, today: Optional[date] = None) -> dict:
    """Check every unsold vehicle. Returns counts per outcome."""
    vehicles = db.query(Vehicle).filter(Vehicle.status != Status.SOLD.value).all()
    raised = 0
    for vehicle in vehicles:
        if await check_vehicle_warranty(db, vehicle, today):
            raised += 1
    logger.info(f"[WARRANTY] scanned {len(vehicles)} vehicles, raised {raised} alerts")
    return {"scanned": len(vehicles), "alerts_raised": raised}
