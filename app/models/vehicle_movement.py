# app/models/vehicle_movement.py
"""
Location and status history. One row per changed dimension per transition,
plus the initial arrival row written when a vehicle is registered.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class VehicleMovement(Base):
    __tablename__ = "vehicle_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    vin = Column(String(17), nullable=False, index=True)
    kind = Column(String(20), nullable=False)        # location | status
    from_value = Column(String(30))                  # None for the arrival row
    to_value = Column(String(30), nullable=False)
    changed_by = Column(String(200))
    reason = Column(Text)
    changed_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<VehicleMovement {self.vin} {self.kind} {self.from_value}->{self.to_value}>"
