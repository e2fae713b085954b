# app/models/alert.py
"""
Alerts table — stores generated alerts (warranty expiring, warranty expired).
Written by alert_service, read by the alerts router.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), index=True)
    vin = Column(String(17))
    location = Column(String(30))
    description = Column(Text)
    is_resolved = Column(Integer, default=0, nullable=False)
    triggered_at = Column(DateTime, nullable=False, index=True)
    resolved_at = Column(DateTime)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} resolved={self.is_resolved}>"
