# app/schemas/movement.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class MovementOut(BaseModel):
    id: int
    vin: str
    kind: str
    from_value: Optional[str]
    to_value: str
    changed_by: Optional[str]
    reason: Optional[str]
    changed_at: datetime

    class Config:
        from_attributes = True
