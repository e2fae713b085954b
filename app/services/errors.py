# app/services/errors.py
"""
Domain errors raised by the fleet services.
Each carries the HTTP status it maps to and a JSON body (to_dict) so the
single handler in main.py can turn any of them into a response.
"""

from typing import Optional


class FleetError(Exception):
    error = "fleet_error"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class InvalidTransition(FleetError):
    """Requested location or status is not reachable in one hop from the current one."""
    error = "invalid_transition"
    status_code = 409

    def __init__(self, origin: Optional[str], destination: Optional[str], kind: str = "location",
                 message: Optional[str] = None):
        self.origin = origin
        self.destination = destination
        self.kind = kind
        super().__init__(message or f"Cannot change {kind} from {origin} to {destination}")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body.update({"kind": self.kind, "origin": self.origin, "destination": self.destination})
        return body


class MissingRequiredField(FleetError):
    """One or more fields required by the target status are empty. Lists all of them."""
    error = "missing_required_field"
    status_code = 422

    def __init__(self, target_status: str, missing_fields: list[str]):
        self.target_status = target_status
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Cannot set status {target_status}: missing {', '.join(self.missing_fields)}"
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        body.update({"target_status": self.target_status, "missing_fields": self.missing_fields})
        return body


class MissingClient(FleetError):
    error = "missing_client"
    status_code = 422

    def __init__(self, target_status: str):
        self.target_status = target_status
        super().__init__(f"Status {target_status} requires a client to be assigned")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["target_status"] = self.target_status
        return body


class FieldsWithoutTransition(FleetError):
    """Deal fields sent with a request that changes neither location nor status."""
    error = "fields_without_transition"
    status_code = 400

    def __init__(self, fields):
        self.fields = sorted(fields)
        super().__init__(
            f"Nothing to transition; edit {', '.join(self.fields)} with PATCH /vehicles/{{key}} instead"
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["fields"] = self.fields
        return body


class PersistenceFailure(FleetError):
    """The database write failed. The message is the backend's, unchanged."""
    error = "persistence_failure"
    status_code = 503


class VehicleNotFound(FleetError):
    error = "vehicle_not_found"
    status_code = 404

    def __init__(self, key):
        self.key = key
        super().__init__(f"Vehicle '{key}' not found")


class DuplicateVehicle(FleetError):
    error = "duplicate_vehicle"
    status_code = 400

    def __init__(self, vin: str):
        self.vin = vin
        super().__init__(f"Vehicle with VIN {vin} already exists")


class InvalidVIN(FleetError):
    error = "invalid_vin"
    status_code = 400

    def __init__(self, vin: str, reason: str):
        self.vin = vin
        super().__init__(f"Invalid VIN '{vin}': {reason}")
