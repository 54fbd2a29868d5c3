from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from app.models.shared.enums import ShipmentStatus, ShipmentPriority, SortOrder
from app.utils.datetime_utils import as_utc

# API sort field -> Shipment column attribute
SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "pickupDate": "pickup_date",
    "deliveryDate": "delivery_date",
    "rate": "rate",
    "weight": "weight",
    "status": "status",
    "priority": "priority",
    "shipperName": "shipper_name",
    "carrierName": "carrier_name",
    "trackingNumber": "tracking_number",
}

# Update fields that may be explicitly cleared
NULLABLE_UPDATE_FIELDS = {"special_instructions"}


def _strip_required(v):
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
    return v


class ShipmentBase(BaseModel):
    shipper_name: str = Field(..., max_length=255)
    carrier_name: str = Field(..., max_length=255)
    pickup_location: str = Field(..., max_length=255)
    pickup_date: date
    delivery_location: str = Field(..., max_length=255)
    delivery_date: date
    tracking_number: str = Field(..., max_length=50)
    rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    weight: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    dimensions: str = Field(..., max_length=100)
    special_instructions: Optional[str] = None

    @field_validator(
        "shipper_name", "carrier_name", "pickup_location",
        "delivery_location", "tracking_number", "dimensions",
    )
    @classmethod
    def not_blank(cls, v):
        return _strip_required(v)

    @field_validator("rate", "weight", mode="before")
    @classmethod
    def round_amount(cls, v):
        if isinstance(v, float):
            return Decimal(str(round(v, 2)))
        return v


class ShipmentCreate(ShipmentBase):
    status: ShipmentStatus = ShipmentStatus.PENDING
    priority: ShipmentPriority = ShipmentPriority.MEDIUM
    flagged: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return ShipmentStatus.PENDING if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v):
        return ShipmentPriority.MEDIUM if v is None else v

    @field_validator("flagged", mode="before")
    @classmethod
    def default_flagged(cls, v):
        return False if v is None else v


class ShipmentUpdate(BaseModel):
    """Partial update; only fields explicitly provided are applied"""
    shipper_name: Optional[str] = Field(None, max_length=255)
    carrier_name: Optional[str] = Field(None, max_length=255)
    pickup_location: Optional[str] = Field(None, max_length=255)
    pickup_date: Optional[date] = None
    delivery_location: Optional[str] = Field(None, max_length=255)
    delivery_date: Optional[date] = None
    status: Optional[ShipmentStatus] = None
    priority: Optional[ShipmentPriority] = None
    tracking_number: Optional[str] = Field(None, max_length=50)
    rate: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    weight: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    dimensions: Optional[str] = Field(None, max_length=100)
    special_instructions: Optional[str] = None
    flagged: Optional[bool] = None

    @field_validator(
        "shipper_name", "carrier_name", "pickup_location",
        "delivery_location", "tracking_number", "dimensions",
    )
    @classmethod
    def not_blank(cls, v):
        return _strip_required(v)

    @field_validator("rate", "weight", mode="before")
    @classmethod
    def round_amount(cls, v):
        if isinstance(v, float):
            return Decimal(str(round(v, 2)))
        return v

    @model_validator(mode="after")
    def reject_null_required(self):
        for field in self.model_fields_set - NULLABLE_UPDATE_FIELDS:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TrackingEventCreate(BaseModel):
    timestamp: datetime
    location: str = Field(..., max_length=255)
    status: str = Field(..., max_length=100)
    description: str

    @field_validator("location", "status", "description")
    @classmethod
    def not_blank(cls, v):
        return _strip_required(v)

    @field_validator("timestamp")
    @classmethod
    def to_utc(cls, v):
        # Stored in UTC; SQLite drops the offset
        return as_utc(v)


class ShipmentFilters(BaseModel):
    status: Optional[ShipmentStatus] = None
    priority: Optional[ShipmentPriority] = None
    search: Optional[str] = None
    flagged: Optional[bool] = None

    @field_validator("search")
    @classmethod
    def empty_search_is_none(cls, v):
        if v is not None:
            v = v.strip()
        return v or None


class ShipmentSort(BaseModel):
    field: str
    order: SortOrder = SortOrder.DESC

    @field_validator("field")
    @classmethod
    def known_field(cls, v):
        if v not in SORTABLE_FIELDS:
            allowed = ", ".join(sorted(SORTABLE_FIELDS))
            raise ValueError(f"Cannot sort by '{v}'. Allowed fields: {allowed}")
        return v

    @property
    def column_name(self) -> str:
        return SORTABLE_FIELDS[self.field]

