# app/models/vehicle.py
"""
Vehicles table — one row per car tracked by the dealership.
Location and status only change through transition_service (or the
receive path in vehicle_service). Warranty status is never stored here:
it is derived from the three deadline columns on every read.
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, Text, Boolean, Numeric
from app.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vin = Column(String(17), unique=True, nullable=False, index=True)
    brand = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    color = Column(String(50))

    location = Column(String(30), nullable=False, index=True, default="CAR_INVENTORY")
    status = Column(String(30), nullable=False, index=True, default="AVAILABLE")

    # Fields gating status transitions
    client_name = Column(String(200))
    client_id = Column(String(100))
    expected_price = Column(Numeric(12, 2))
    selling_price = Column(Numeric(12, 2))
    reservation_date = Column(Date)
    invoice_id = Column(String(100))
    delivery_date = Column(Date)
    work_order_id = Column(String(100))

    # Pre-delivery inspection
    pdi_completed = Column(Boolean, default=False, nullable=False)
    pdi_date = Column(DateTime)
    pdi_technician = Column(String(200))
    pdi_notes = Column(Text)

    # Warranty deadlines
    vehicle_warranty_expiry = Column(Date)
    battery_warranty_expiry = Column(Date)
    dms_warranty_deadline = Column(Date)

    notes = Column(Text)
    arrived_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<Vehicle {self.vin} location={self.location} status={self.status}>"
