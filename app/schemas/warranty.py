# app/schemas/warranty.py
from pydantic import BaseModel
from datetime import date
from typing import Optional


class WarrantyUpdate(BaseModel):
    """Only fields sent are changed; send null to clear a deadline."""
    vehicle_warranty_expiry: Optional[date] = None
    battery_warranty_expiry: Optional[date] = None
    dms_warranty_deadline: Optional[date] = None


class WarrantyDeadlineOut(BaseModel):
    type: str                       # Vehicle | Battery | DMS
    deadline: Optional[date]
    status: str                     # NONE | ACTIVE | EXPIRING_SOON | EXPIRED
    days_remaining: Optional[int]   # clamped to 0 for display


class WarrantyBadgeOut(BaseModel):
    variant: str
    label: str
    color: str
    detail: Optional[str] = None


class WarrantyOut(BaseModel):
    vin: str
    status: str                     # NO_WARRANTY | ACTIVE | EXPIRING_SOON | EXPIRED
    summary: str
    deadlines: list[WarrantyDeadlineOut]
    badge: WarrantyBadgeOut
