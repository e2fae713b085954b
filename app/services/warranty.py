# app/services/warranty.py
"""
Warranty lifecycle: per-deadline classification, the aggregate status over a
vehicle's three deadlines (vehicle, battery, DMS), the display summary, and
the badge renderer every warranty badge goes through.

Nothing is stored. Status is recomputed from the raw dates on every read.

Classification (days = deadline - today, calendar days):
  NONE           deadline absent
  EXPIRED        days < 0
  EXPIRING_SOON  0 <= days < 30
  ACTIVE         days >= 30

Aggregate precedence: EXPIRED > EXPIRING_SOON > ACTIVE; NO_WARRANTY only
when all three deadlines are absent.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from app.config import settings

EXPIRING_SOON_DAYS = settings.WARRANTY_EXPIRING_SOON_DAYS

DateLike = Union[date, datetime, str, None]


class WarrantyStatus(str, Enum):
    NONE = "NONE"
    ACTIVE = "ACTIVE"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


class AggregateWarrantyStatus(str, Enum):
    NO_WARRANTY = "NO_WARRANTY"
    ACTIVE = "ACTIVE"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


class BadgeVariant(str, Enum):
    COMPACT = "compact"      # table cell pill
    DETAILED = "detailed"    # car detail dialog
    COLUMN = "column"        # inventory warranty column


# Display order is fixed: Vehicle, Battery, DMS.
WARRANTY_TYPES = ("Vehicle", "Battery", "DMS")


def to_date(value: DateLike) -> Optional[date]:
    """Truncate to a calendar date. Accepts date, datetime, ISO string or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def days_remaining(deadline: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Whole calendar days until deadline. Negative once it has passed. None if absent."""
    end = to_date(deadline)
    if end is None:
        return None
    today = to_date(today) or date.today()
    return (end - today).days


def classify_warranty(deadline: DateLike, today: Optional[date] = None) -> WarrantyStatus:
    days = days_remaining(deadline, today)
    if days is None:
        return WarrantyStatus.NONE
    if days < 0:
        return WarrantyStatus.EXPIRED
    if days < EXPIRING_SOON_DAYS:
        return WarrantyStatus.EXPIRING_SOON
    return WarrantyStatus.ACTIVE


def aggregate_warranty_status(
    vehicle_deadline: DateLike,
    battery_deadline: DateLike,
    dealer_deadline: DateLike,
    today: Optional[date] = None,
) -> AggregateWarrantyStatus:
    statuses = [
        classify_warranty(d, today)
        for d in (vehicle_deadline, battery_deadline, dealer_deadline)
    ]
    if all(s == WarrantyStatus.NONE for s in statuses):
        return AggregateWarrantyStatus.NO_WARRANTY
    if WarrantyStatus.EXPIRED in statuses:
        return AggregateWarrantyStatus.EXPIRED
    if WarrantyStatus.EXPIRING_SOON in statuses:
        return AggregateWarrantyStatus.EXPIRING_SOON
    return AggregateWarrantyStatus.ACTIVE


def warranty_summary_text(
    vehicle_deadline: DateLike,
    battery_deadline: DateLike,
    dealer_deadline: DateLike,
    today: Optional[date] = None,
) -> str:
    """e.g. 'Vehicle: 120 days | Battery: Expired'. 'No Warranty Set' when nothing is present."""
    parts = []
    for name, deadline in zip(WARRANTY_TYPES, (vehicle_deadline, battery_deadline, dealer_deadline)):
        days = days_remaining(deadline, today)
        if days is None:
            continue
        if days < 0:
            parts.append(f"{name}: Expired")
        else:
            parts.append(f"{name}: {max(0, days)} days")
    return " | ".join(parts) if parts else "No Warranty Set"


def vehicle_deadlines(vehicle) -> tuple:
    """The three deadlines of a Vehicle row in display order."""
    return (
        vehicle.vehicle_warranty_expiry,
        vehicle.battery_warranty_expiry,
        vehicle.dms_warranty_deadline,
    )


# ── Badges ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class WarrantyBadge:
    status: AggregateWarrantyStatus
    variant: BadgeVariant
    label: str
    color: str
    detail: Optional[str] = None


BADGE_COLORS = {
    AggregateWarrantyStatus.ACTIVE: "green",
    AggregateWarrantyStatus.EXPIRING_SOON: "orange",
    AggregateWarrantyStatus.EXPIRED: "red",
    AggregateWarrantyStatus.NO_WARRANTY: "gray",
}

SHORT_LABELS = {
    AggregateWarrantyStatus.ACTIVE: "Active",
    AggregateWarrantyStatus.EXPIRING_SOON: "Expiring Soon",
    AggregateWarrantyStatus.EXPIRED: "Expired",
    AggregateWarrantyStatus.NO_WARRANTY: "No Warranty",
}

LONG_LABELS = {
    AggregateWarrantyStatus.ACTIVE: "Warranty Active",
    AggregateWarrantyStatus.EXPIRING_SOON: "Warranty Expiring Soon",
    AggregateWarrantyStatus.EXPIRED: "Warranty Expired",
    AggregateWarrantyStatus.NO_WARRANTY: "No Warranty Set",
}


def _nearest_days(deadlines, today) -> Optional[int]:
    days = [d for d in (days_remaining(x, today) for x in deadlines) if d is not None]
    return min(days) if days else None


def render_warranty_badge(
    vehicle_deadline: DateLike,
    battery_deadline: DateLike,
    dealer_deadline: DateLike,
    variant: Union[BadgeVariant, str] = BadgeVariant.COMPACT,
    today: Optional[date] = None,
) -> WarrantyBadge:
    """One renderer for every badge. Variants differ in copy only, never in status."""
    variant = BadgeVariant(variant)
    deadlines = (vehicle_deadline, battery_deadline, dealer_deadline)
    status = aggregate_warranty_status(*deadlines, today=today)
    color = BADGE_COLORS[status]

    if variant == BadgeVariant.COMPACT:
        return WarrantyBadge(status, variant, SHORT_LABELS[status], color)

    summary = warranty_summary_text(*deadlines, today=today)
    if variant == BadgeVariant.DETAILED:
        return WarrantyBadge(status, variant, LONG_LABELS[status], color, summary)

    nearest = _nearest_days(deadlines, today)
    if nearest is None:
        label = SHORT_LABELS[status]
    elif nearest < 0:
        label = "Expired"
    else:
        label = f"{nearest} days left"
    return WarrantyBadge(status, variant, label, color, summary)
