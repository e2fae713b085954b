# app/services/alert_service.py
"""
Shared alert creation service.
Used by warranty_monitor. Extend here to add push notifications, SMS, email, etc.
"""

from datetime import datetime
from app.models.alert import Alert
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def create_alert(db, alert_type, vehicle, description):
    """Create and persist an alert record. Always commits immediately."""
    alert = Alert(alert_type=alert_type, vehicle_id=vehicle.id, vin=vehicle.vin,
                  location=vehicle.location, description=description,
                  is_resolved=0, triggered_at=datetime.utcnow())
    db.add(alert)
    db.commit()
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    return alert


def resolve_alert(db, alert):
    alert.is_resolved = 1
    alert.resolved_at = datetime.utcnow()
    db.commit()
    logger.info(f"[ALERT] #{alert.id} resolved")
    return alert
