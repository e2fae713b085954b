# app/schemas/transition.py
from pydantic import BaseModel
from datetime import date
from typing import Optional


class TransitionRequest(BaseModel):
    """
    Move and/or status change. At least one target is required.
    Deal fields sent here are validated as part of the transition and
    saved only if it succeeds.
    """
    target_location: Optional[str] = None
    target_status: Optional[str] = None
    changed_by: Optional[str] = None
    reason: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[str] = None
    expected_price: Optional[float] = None
    selling_price: Optional[float] = None
    reservation_date: Optional[date] = None
    invoice_id: Optional[str] = None
    delivery_date: Optional[date] = None
    work_order_id: Optional[str] = None


class DestinationsOut(BaseModel):
    vin: str
    location: str
    status: str
    destinations: list[str]
    statuses: list[str]


class ReceiveRequest(BaseModel):
    received_by: Optional[str] = None


class PdiRequest(BaseModel):
    passed: bool
    technician: Optional[str] = None
    notes: Optional[str] = None
