# app/routers/alerts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.alert import Alert
from app.schemas.alert import AlertOut
from app.services.alert_service import resolve_alert
from typing import Optional

router = APIRouter()

@router.get("/alerts", response_model=list[AlertOut], summary="All alerts — filterable by type")
def get_all_alerts(
    alert_type: Optional[str] = None,
    is_resolved: Optional[int] = None,
    vin: Optional[str] = None,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """Combined alerts endpoint. Filter by alert_type, is_resolved or vin."""
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if is_resolved is not None:
        q = q.filter(Alert.is_resolved == is_resolved)
    if vin:
        q = q.filter(Alert.vin == vin.strip().upper())
    return q.order_by(Alert.triggered_at.desc()).limit(limit).all()


@router.put("/alerts/{alert_id}/resolve", response_model=AlertOut, summary="Mark an alert as resolved")
def resolve(alert_id: int, db: Session = Depends(get_db)):
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise HTTPException(status_code=404, detail=f"Alert {alert_id} not found")
    return resolve_alert(db, alert)
