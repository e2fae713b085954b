# Monza Fleet — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle import Vehicle                    # noqa
from app.models.vehicle_movement import VehicleMovement   # noqa
from app.models.alert import Alert                        # noqa
