"""
Entity Models for Move-Master

Jobs, Receipts, Drivers, Trucks, Dispatch rows and Inventory items.

Every model doubles as its own normalizer: construction never fails.
Persisted JSON is untrusted input on every load, so each field has a
"before" validator that coerces whatever it is given (missing, wrong
type, unknown enum value) into the documented default instead of
raising. ``normalize_x(normalize_x(p)) == normalize_x(p)`` for every
entity kind.

Python attributes are snake_case. The persisted representation uses the
camelCase names (``driverId``, ``createdAt``...) and both spellings are
accepted on input.
"""

import math
from datetime import date as calendar_date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from movemaster.utils.dates import date_key, split_date_key, today_key
from movemaster.utils.ids import new_id
from movemaster.utils.money import ZERO, to_money


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class JobStatus(str, Enum):
    """
    Job status.

    User-assigned at any time, any state to any state. The only behavior
    that depends on it is revenue: cancelled jobs contribute nothing.
    """
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReceiptCategory(str, Enum):
    """Known receipt categories. Unknown values normalize to OTHER."""
    FUEL = "Fuel"
    TOLLS = "Tolls"
    SUPPLIES = "Supplies"
    PARKING = "Parking"
    MEALS = "Meals"
    MAINTENANCE = "Maintenance"
    LODGING = "Lodging"
    OTHER = "Other"


# =============================================================================
# COERCION HELPERS
# =============================================================================

def utc_now() -> datetime:
    """Current UTC time truncated to whole milliseconds."""
    return _truncate_ms(datetime.now(timezone.utc))


def _truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def clean_text(value: Any) -> str:
    """Trimmed string; anything that is not text or a number becomes ""."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float, Decimal)):
        return str(value).strip()
    return ""


def clean_number(value: Any) -> float:
    """Finite float; unusable input (text, NaN, booleans, "1_000") becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def clean_date_key(value: Any) -> str:
    """
    Canonical ``YYYY-MM-DD`` key.

    Empty input means today. Parseable but unpadded keys are padded.
    Anything else non-empty is kept verbatim so month aggregation can
    recognise and skip it.
    """
    if isinstance(value, (datetime, calendar_date)):
        return date_key(value)
    text = clean_text(value)
    if not text:
        return today_key()
    parts = split_date_key(text)
    if parts is None:
        return text
    year, month, day = parts
    return f"{year:04d}-{month:02d}-{day:02d}"


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from epoch milliseconds, ISO-8601 text or a datetime.

    Returns an aware UTC datetime truncated to milliseconds, or None when
    the value is unusable. Naive datetimes are read as local time.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            stamp = value.astimezone(timezone.utc)
        elif isinstance(value, (int, float)):
            if not math.isfinite(value) or value <= 0:
                return None
            stamp = EPOCH + timedelta(milliseconds=int(value))
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.isdigit():
                stamp = EPOCH + timedelta(milliseconds=int(text))
            else:
                stamp = datetime.fromisoformat(text.replace("Z", "+00:00"))
                stamp = stamp.astimezone(timezone.utc)
        else:
            return None
    except (OverflowError, ValueError):
        return None
    return _truncate_ms(stamp)


def to_epoch_ms(value: datetime) -> int:
    return (value - EPOCH) // ONE_MS


# =============================================================================
# BASE ENTITY
# =============================================================================

class LedgerEntity(BaseModel):
    """
    Fields and behavior shared by every persisted entity.

    IDs and ``created_at`` are preserved when present, otherwise generated.
    ``updated_at`` defaults to ``created_at`` and never precedes it.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Prefix for generated IDs
    id_kind: ClassVar[str] = "id"
    IMMUTABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"id", "created_at"})
    # Older persisted names still accepted in patches
    LEGACY_NAMES: ClassVar[dict[str, str]] = {}

    id: str = Field(default="", validate_default=True)
    created_at: datetime = Field(default=None, validate_default=True)
    updated_at: datetime = Field(default=None, validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            data = data.model_dump()
        if not isinstance(data, dict):
            return {}
        return cls._upgrade_legacy(dict(data))

    @classmethod
    def _upgrade_legacy(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Map field names from older persisted shapes. Override per entity."""
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        return clean_text(value) or new_id(cls.id_kind)

    @field_validator("created_at", mode="before")
    @classmethod
    def _ensure_created_at(cls, value: Any) -> datetime:
        return coerce_timestamp(value) or utc_now()

    @field_validator("updated_at", mode="before")
    @classmethod
    def _ensure_updated_at(cls, value: Any, info: ValidationInfo) -> datetime:
        created_at = info.data.get("created_at")
        stamp = coerce_timestamp(value)
        if stamp is None:
            return created_at or utc_now()
        if created_at is not None and stamp < created_at:
            return created_at
        return stamp

    @field_serializer("created_at", "updated_at", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> int:
        return to_epoch_ms(value)

    # -------------------------------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        """Plain JSON-ready dict in the persisted (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True)

    def touch(self, now: Optional[datetime] = None) -> None:
        """Bump ``updated_at``; it never moves backwards."""
        stamp = now or utc_now()
        if stamp > self.updated_at:
            self.updated_at = stamp

    def with_changes(self, patch: Optional[dict[str, Any]]) -> "LedgerEntity":
        """
        Return a normalized copy with ``patch`` applied.

        Patch keys may be attribute names or persisted names. Unknown keys
        and immutable fields (``id``, ``created_at``) are ignored.
        """
        record = self.model_dump()
        for key, value in (patch or {}).items():
            name = self.field_name_for(key)
            if name is None or name in self.IMMUTABLE_FIELDS:
                continue
            record[name] = value
        return type(self).model_validate(record)

    def apply(self, other: "LedgerEntity") -> None:
        """Copy every field of ``other`` onto this instance in place."""
        for name in type(self).model_fields:
            setattr(self, name, getattr(other, name))

    @classmethod
    def field_name_for(cls, key: str) -> Optional[str]:
        key = cls.LEGACY_NAMES.get(key, key)
        if key in cls.model_fields:
            return key
        for name, field in cls.model_fields.items():
            if field.alias == key:
                return name
        return None


def _legacy_active(status: Any, inactive: set[str]) -> bool:
    return clean_text(status).lower() not in inactive


# =============================================================================
# JOB
# =============================================================================

class Job(LedgerEntity):
    """A scheduled move on a date."""
    id_kind: ClassVar[str] = "job"

    date: str = Field(default="", validate_default=True)
    job_number: str = ""
    customer: str = ""
    pickup: str = ""
    dropoff: str = ""
    notes: str = ""
    amount: Decimal = ZERO
    status: JobStatus = JobStatus.SCHEDULED

    # Weak references; "" means unassigned
    driver_id: str = ""
    truck_id: str = ""

    @field_validator(
        "job_number", "customer", "pickup", "dropoff", "notes",
        "driver_id", "truck_id",
        mode="before",
    )
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("date", mode="before")
    @classmethod
    def _clean_date(cls, value: Any) -> str:
        return clean_date_key(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _clean_amount(cls, value: Any) -> Decimal:
        return to_money(value)

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> JobStatus:
        if isinstance(value, JobStatus):
            return value
        try:
            return JobStatus(clean_text(value).lower())
        except ValueError:
            return JobStatus.SCHEDULED

    @field_serializer("amount", when_used="json")
    def _serialize_amount(self, value: Decimal) -> float:
        return float(value)

    @property
    def counts_toward_revenue(self) -> bool:
        return self.status != JobStatus.CANCELLED


# =============================================================================
# RECEIPT
# =============================================================================

class Receipt(LedgerEntity):
    """An expense, optionally linked to a Job."""
    id_kind: ClassVar[str] = "rcpt"
    LEGACY_NAMES: ClassVar[dict[str, str]] = {"linkedJobId": "job_id"}

    date: str = Field(default="", validate_default=True)
    vendor: str = ""
    category: str = ""
    notes: str = ""
    amount: Decimal = ZERO
    job_id: str = ""

    @field_validator(
        "vendor", "notes", "job_id", mode="before",
    )
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @classmethod
    def _upgrade_legacy(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("jobId") and not data.get("job_id") and data.get("linkedJobId"):
            data["jobId"] = data["linkedJobId"]
        return data

    @field_validator("date", mode="before")
    @classmethod
    def _clean_date(cls, value: Any) -> str:
        return clean_date_key(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _clean_amount(cls, value: Any) -> Decimal:
        return to_money(value)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> str:
        """Empty stays empty; known names are matched case-insensitively."""
        text = clean_text(value)
        if not text:
            return ""
        for category in ReceiptCategory:
            if category.value.lower() == text.lower():
                return category.value
        return ReceiptCategory.OTHER.value

    @field_serializer("amount", when_used="json")
    def _serialize_amount(self, value: Decimal) -> float:
        return float(value)


# =============================================================================
# ROSTER: DRIVERS AND TRUCKS
# =============================================================================

class Driver(LedgerEntity):
    """Roster entry."""
    id_kind: ClassVar[str] = "drv"

    name: str = ""
    phone: str = ""
    role: str = "Driver"
    active: bool = True
    notes: str = ""

    @field_validator(
        "name", "phone", "notes", mode="before",
    )
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @classmethod
    def _upgrade_legacy(cls, data: dict[str, Any]) -> dict[str, Any]:
        # Older rosters stored "Active" / "Off" / "Suspended"
        if "active" not in data and "status" in data:
            data["active"] = _legacy_active(data["status"], {"off", "suspended", "inactive"})
        return data

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> str:
        return clean_text(value) or "Driver"

    @field_validator("active", mode="before")
    @classmethod
    def _strict_bool(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True


class Truck(LedgerEntity):
    """Fleet entry."""
    id_kind: ClassVar[str] = "trk"
    LEGACY_NAMES: ClassVar[dict[str, str]] = {"unit": "label"}

    label: str = ""
    plate: str = ""
    capacity: str = ""
    active: bool = True
    notes: str = ""

    @field_validator(
        "label", "plate", "capacity", "notes", mode="before",
    )
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @classmethod
    def _upgrade_legacy(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not clean_text(data.get("label")) and data.get("unit"):
            data["label"] = data["unit"]
        # Older fleets stored "Ready" / "In Shop" / "Assigned"
        if "active" not in data and "status" in data:
            data["active"] = _legacy_active(data["status"], {"in shop", "inactive"})
        return data

    @field_validator("active", mode="before")
    @classmethod
    def _strict_bool(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True


# =============================================================================
# DISPATCH
# =============================================================================

class DispatchAssignment(LedgerEntity):
    """
    A dispatch row: a time window for a Job on a date.

    The Job's own ``driver_id``/``truck_id`` stay authoritative for who is
    assigned; rows only add the schedule.
    """
    id_kind: ClassVar[str] = "dsp"

    DEFAULT_START: ClassVar[str] = "08:00"
    DEFAULT_END: ClassVar[str] = "12:00"

    date: str = Field(default="", validate_default=True)
    job_id: str = ""
    driver_id: str = ""
    truck_id: str = ""
    start_time: str = Field(default="", validate_default=True)
    end_time: str = Field(default="", validate_default=True)
    notes: str = ""

    @field_validator(
        "job_id", "driver_id", "truck_id", "notes", mode="before",
    )
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("date", mode="before")
    @classmethod
    def _clean_date(cls, value: Any) -> str:
        return clean_date_key(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _default_start(cls, value: Any) -> str:
        return clean_text(value) or cls.DEFAULT_START

    @field_validator("end_time", mode="before")
    @classmethod
    def _default_end(cls, value: Any) -> str:
        return clean_text(value) or cls.DEFAULT_END


# =============================================================================
# INVENTORY
# =============================================================================

class InventoryItem(LedgerEntity):
    """
    Supplies and equipment on hand.

    ``date`` optionally ties the item to a move date and may stay empty.
    An item is low on stock once ``qty`` falls to ``low_stock_at``; a
    threshold of 0 turns the alert off.
    """
    id_kind: ClassVar[str] = "inv"

    name: str = ""
    category: str = Field(default="", validate_default=True)
    qty: float = 0.0
    unit: str = Field(default="", validate_default=True)
    location: str = ""
    condition: str = Field(default="", validate_default=True)
    low_stock_at: float = 0.0
    notes: str = ""
    date: str = ""
    active: bool = True

    @field_validator("name", "location", "notes", mode="before")
    @classmethod
    def _clean_strings(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        return clean_text(value) or "General"

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, value: Any) -> str:
        return clean_text(value) or "pcs"

    @field_validator("condition", mode="before")
    @classmethod
    def _default_condition(cls, value: Any) -> str:
        return clean_text(value) or "Good"

    @field_validator("qty", "low_stock_at", mode="before")
    @classmethod
    def _clean_numbers(cls, value: Any) -> float:
        return clean_number(value)

    @field_validator("date", mode="before")
    @classmethod
    def _optional_date(cls, value: Any) -> str:
        if isinstance(value, (datetime, calendar_date)) or clean_text(value):
            return clean_date_key(value)
        return ""

    @field_validator("active", mode="before")
    @classmethod
    def _strict_bool(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True

    @property
    def is_low_stock(self) -> bool:
        return self.active and self.low_stock_at > 0 and self.qty <= self.low_stock_at


# =============================================================================
# NORMALIZERS
# =============================================================================

def _payload(partial: Any) -> Any:
    # model_validate returns an instance of the same class as-is; copy it
    if isinstance(partial, BaseModel):
        return partial.model_dump()
    return partial if partial is not None else {}


def normalize_job(partial: Any = None) -> Job:
    """Canonical Job from partial or untrusted data. Never raises."""
    return Job.model_validate(_payload(partial))


def normalize_receipt(partial: Any = None) -> Receipt:
    """Canonical Receipt from partial or untrusted data. Never raises."""
    return Receipt.model_validate(_payload(partial))


def normalize_driver(partial: Any = None) -> Driver:
    return Driver.model_validate(_payload(partial))


def normalize_truck(partial: Any = None) -> Truck:
    return Truck.model_validate(_payload(partial))


def normalize_dispatch(partial: Any = None) -> DispatchAssignment:
    return DispatchAssignment.model_validate(_payload(partial))


def normalize_inventory_item(partial: Any = None) -> InventoryItem:
    return InventoryItem.model_validate(_payload(partial))
