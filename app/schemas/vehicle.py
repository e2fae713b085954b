# app/schemas/vehicle.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class VehicleCreate(BaseModel):
    vin: str
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    ordered: bool = False    # True = not yet received, lands in ORDERED_CARS
    vehicle_warranty_expiry: Optional[date] = None
    battery_warranty_expiry: Optional[date] = None
    dms_warranty_deadline: Optional[date] = None


class VehicleUpdate(BaseModel):
    """Descriptive and deal fields. Location/status change only via /transition."""
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    expected_price: Optional[float] = None
    selling_price: Optional[float] = None
    reservation_date: Optional[date] = None
    invoice_id: Optional[str] = None
    delivery_date: Optional[date] = None
    work_order_id: Optional[str] = None


class VehicleOut(BaseModel):
    id: int
    vin: str
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    location: str
    status: str
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    expected_price: Optional[float] = None
    selling_price: Optional[float] = None
    reservation_date: Optional[date] = None
    invoice_id: Optional[str] = None
    delivery_date: Optional[date] = None
    work_order_id: Optional[str] = None
    pdi_completed: bool = False
    pdi_date: Optional[datetime] = None
    pdi_technician: Optional[str] = None
    vehicle_warranty_expiry: Optional[date] = None
    battery_warranty_expiry: Optional[date] = None
    dms_warranty_deadline: Optional[date] = None
    notes: Optional[str] = None
    arrived_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
