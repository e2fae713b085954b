# app/services/state_machine.py
"""
Vehicle location ("floor") and status rules.

Pure functions only: nothing here touches the database. transition_service
calls validate_transition() before it writes anything, so a rejected request
never costs a round-trip and never half-applies.

Locations:
  CAR_INVENTORY, SHOWROOM_1, SHOWROOM_2, GARAGE_INVENTORY, SCHEDULE  (live)
  ORDERED_CARS  (not yet received; leaves only via vehicle_service.receive_ordered_vehicle)

Statuses:
  AVAILABLE, RESERVED, IN_SERVICE, TEST_DRIVE, SOLD (terminal)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from app.services.errors import InvalidTransition, MissingClient, MissingRequiredField


class Location(str, Enum):
    CAR_INVENTORY = "CAR_INVENTORY"
    SHOWROOM_1 = "SHOWROOM_1"
    SHOWROOM_2 = "SHOWROOM_2"
    GARAGE_INVENTORY = "GARAGE_INVENTORY"
    SCHEDULE = "SCHEDULE"
    ORDERED_CARS = "ORDERED_CARS"


class Status(str, Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    IN_SERVICE = "IN_SERVICE"
    SOLD = "SOLD"
    TEST_DRIVE = "TEST_DRIVE"


LIVE_LOCATIONS = (
    Location.CAR_INVENTORY,
    Location.SHOWROOM_1,
    Location.SHOWROOM_2,
    Location.GARAGE_INVENTORY,
    Location.SCHEDULE,
)

# Every live location can reach every other live location in one hop.
ALLOWED_DESTINATIONS: dict[Location, frozenset] = {
    origin: frozenset(loc for loc in LIVE_LOCATIONS if loc != origin)
    for origin in LIVE_LOCATIONS
}
ALLOWED_DESTINATIONS[Location.ORDERED_CARS] = frozenset()

ALLOWED_STATUS_TRANSITIONS: dict[Status, frozenset] = {
    Status.AVAILABLE: frozenset({Status.RESERVED, Status.IN_SERVICE, Status.TEST_DRIVE, Status.SOLD}),
    Status.RESERVED: frozenset({Status.AVAILABLE, Status.SOLD, Status.IN_SERVICE, Status.TEST_DRIVE}),
    Status.IN_SERVICE: frozenset({Status.AVAILABLE, Status.RESERVED, Status.TEST_DRIVE}),
    Status.TEST_DRIVE: frozenset({Status.AVAILABLE, Status.RESERVED, Status.IN_SERVICE}),
    Status.SOLD: frozenset(),
}

# Field names are Vehicle column names. Order is the order they are reported in.
REQUIRED_FIELDS: dict[Status, tuple] = {
    Status.AVAILABLE: ("pdi_completed",),
    Status.RESERVED: ("client_name", "expected_price", "reservation_date"),
    Status.SOLD: ("selling_price", "invoice_id", "delivery_date"),
    Status.IN_SERVICE: ("work_order_id",),
    Status.TEST_DRIVE: (),
}

CLIENT_REQUIRED_STATUSES = frozenset({Status.RESERVED, Status.SOLD, Status.TEST_DRIVE})
CLIENT_FIELDS = ("client_name", "client_id")


@dataclass(frozen=True)
class TransitionPlan:
    """What a validated request will change. Produced by validate_transition()."""
    from_location: Optional[str]
    to_location: Optional[str]
    from_status: Optional[str]
    to_status: Optional[str]

    @property
    def location_changed(self) -> bool:
        return self.to_location != self.from_location

    @property
    def status_changed(self) -> bool:
        return self.to_status != self.from_status

    @property
    def is_noop(self) -> bool:
        return not (self.location_changed or self.status_changed)


def _parse(enum_cls, value, kind: str, origin: Optional[str]):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise InvalidTransition(origin, str(value), kind=kind,
                                message=f"Unknown {kind} '{value}'")


def _current(enum_cls, value):
    """Current value of the record, or None when it holds something outside the enum."""
    try:
        return enum_cls(value)
    except ValueError:
        return None


def allowed_destinations(origin: Union[Location, str]) -> frozenset:
    """Locations reachable in one move from origin. Empty for ORDERED_CARS."""
    loc = _parse(Location, origin, "location", None)
    return ALLOWED_DESTINATIONS[loc]


def allowed_statuses(current: Union[Status, str]) -> frozenset:
    """Statuses reachable in one change from current. Empty for SOLD."""
    st = _parse(Status, current, "status", None)
    return ALLOWED_STATUS_TRANSITIONS[st]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _value(vehicle, overrides: Mapping[str, Any], field: str):
    if field in overrides:
        return overrides[field]
    return getattr(vehicle, field, None)


def missing_fields_for(target: Status, vehicle, overrides: Optional[Mapping[str, Any]] = None) -> list[str]:
    """Every required field for target that is empty on the record (with overrides applied)."""
    overrides = overrides or {}
    missing = []
    for field in REQUIRED_FIELDS[target]:
        value = _value(vehicle, overrides, field)
        if field == "pdi_completed":
            if value is not True:
                missing.append(field)
        elif is_empty(value):
            missing.append(field)
    return missing


def has_client(vehicle, overrides: Optional[Mapping[str, Any]] = None) -> bool:
    overrides = overrides or {}
    return any(not is_empty(_value(vehicle, overrides, f)) for f in CLIENT_FIELDS)


def check_field_edit(vehicle, updates: Mapping[str, Any]) -> None:
    """
    Reject an edit that would empty a field the current status depends on.
    Only fields named in updates are judged, so records that already lack a
    field can still be edited elsewhere.

    Raises MissingRequiredField or MissingClient.
    """
    current = _current(Status, vehicle.status)
    if current is None:
        return
    blanked = [f for f in missing_fields_for(current, vehicle, updates) if f in updates]
    if blanked:
        raise MissingRequiredField(current.value, blanked)
    if (current in CLIENT_REQUIRED_STATUSES
            and any(f in updates for f in CLIENT_FIELDS)
            and not has_client(vehicle, updates)):
        raise MissingClient(current.value)


def validate_transition(
    vehicle,
    target_location: Optional[Union[Location, str]] = None,
    target_status: Optional[Union[Status, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> TransitionPlan:
    """
    Check a requested move and/or status change against the rules.

    overrides are field values the caller is about to write together with
    the transition; they count as present on the record.

    Raises InvalidTransition, MissingRequiredField or MissingClient.
    Returns the TransitionPlan; a plan with is_noop=True needs no write.
    """
    if target_location is None and target_status is None:
        raise InvalidTransition(vehicle.location, None, kind="location",
                                message="A target location or a target status is required")

    from_location = vehicle.location
    from_status = vehicle.status
    to_location = from_location
    to_status = from_status

    if target_location is not None:
        dest = _parse(Location, target_location, "location", from_location)
        to_location = dest.value
        if to_location != from_location:
            origin = _current(Location, from_location)
            if origin is None or dest not in ALLOWED_DESTINATIONS[origin]:
                raise InvalidTransition(from_location, to_location, kind="location")

    if target_status is not None:
        target = _parse(Status, target_status, "status", from_status)
        to_status = target.value
        if to_status != from_status:
            current = _current(Status, from_status)
            if current is None or target not in ALLOWED_STATUS_TRANSITIONS[current]:
                raise InvalidTransition(from_status, to_status, kind="status")

            missing = missing_fields_for(target, vehicle, overrides)
            if missing:
                raise MissingRequiredField(to_status, missing)

            if target in CLIENT_REQUIRED_STATUSES and not has_client(vehicle, overrides):
                raise MissingClient(to_status)

    return TransitionPlan(from_location, to_location, from_status, to_status)
