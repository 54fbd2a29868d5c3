from datetime import date, datetime
from typing import List, Optional

import strawberry
from strawberry.types import Info

from app.models.auth.user import User
from app.models.logistics.shipment import Shipment
from app.models.logistics.tracking_event import TrackingEvent
from app.models.shared.enums import Role, ShipmentPriority, ShipmentStatus, SortOrder
from app.schemas.common.pagination import PageInfo
from app.utils.datetime_utils import as_utc

# Expose the model enums as GraphQL enums; members serialize by name
strawberry.enum(Role)
strawberry.enum(ShipmentStatus)
strawberry.enum(ShipmentPriority)
strawberry.enum(SortOrder)


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    email: str
    name: str
    role: Role
    created_at: datetime

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=strawberry.ID(str(user.id)),
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at,
        )


@strawberry.type(name="TrackingEvent")
class TrackingEventType:
    id: strawberry.ID
    timestamp: datetime
    location: str
    status: str
    description: str

    @classmethod
    def from_model(cls, event: TrackingEvent) -> "TrackingEventType":
        return cls(
            id=strawberry.ID(str(event.id)),
            timestamp=as_utc(event.timestamp),
            location=event.location,
            status=event.status,
            description=event.description,
        )


@strawberry.type(name="Shipment")
class ShipmentType:
    id: strawberry.ID
    shipper_name: str
    carrier_name: str
    pickup_location: str
    pickup_date: date
    delivery_location: str
    delivery_date: date
    status: ShipmentStatus
    priority: ShipmentPriority
    tracking_number: str
    rate: float
    weight: float
    dimensions: str
    special_instructions: Optional[str]
    flagged: bool
    created_at: datetime
    updated_at: datetime

    pk: strawberry.Private[int]
    created_by_id: strawberry.Private[Optional[int]]
    updated_by_id: strawberry.Private[Optional[int]]

    @strawberry.field
    async def tracking_events(self, info: Info) -> List[TrackingEventType]:
        """Newest first"""
        events = await info.context.loaders.tracking_events.load(self.pk)
        return [TrackingEventType.from_model(event) for event in events]

    @strawberry.field
    async def created_by(self, info: Info) -> Optional[UserType]:
        return await _load_user(info, self.created_by_id)

    @strawberry.field
    async def updated_by(self, info: Info) -> Optional[UserType]:
        return await _load_user(info, self.updated_by_id)

    @classmethod
    def from_model(cls, shipment: Shipment) -> "ShipmentType":
        return cls(
            id=strawberry.ID(str(shipment.id)),
            shipper_name=shipment.shipper_name,
            carrier_name=shipment.carrier_name,
            pickup_location=shipment.pickup_location,
            pickup_date=shipment.pickup_date,
            delivery_location=shipment.delivery_location,
            delivery_date=shipment.delivery_date,
            status=shipment.status,
            priority=shipment.priority,
            tracking_number=shipment.tracking_number,
            rate=float(shipment.rate),
            weight=float(shipment.weight),
            dimensions=shipment.dimensions,
            special_instructions=shipment.special_instructions,
            flagged=shipment.flagged,
            created_at=shipment.created_at,
            updated_at=shipment.updated_at,
            pk=shipment.id,
            created_by_id=shipment.created_by_id,
            updated_by_id=shipment.updated_by_id,
        )


async def _load_user(info: Info, user_id: Optional[int]) -> Optional[UserType]:
    if user_id is None:
        return None
    user = await info.context.loaders.users.load(user_id)
    return UserType.from_model(user) if user else None


@strawberry.type(name="PageInfo")
class PageInfoType:
    has_next_page: bool
    has_previous_page: bool
    total_count: int
    total_pages: int
    current_page: int

    @classmethod
    def from_schema(cls, page_info: PageInfo) -> "PageInfoType":
        return cls(**page_info.model_dump())


@strawberry.type
class ShipmentConnection:
    nodes: List[ShipmentType]
    page_info: PageInfoType


@strawberry.type
class StatusCount:
    status: ShipmentStatus
    count: int


@strawberry.type
class PriorityCount:
    priority: ShipmentPriority
    count: int


@strawberry.type
class ShipmentStats:
    total_shipments: int
    by_status: List[StatusCount]
    by_priority: List[PriorityCount]
    total_revenue: float


@strawberry.type
class AuthPayload:
    token: str
    user: UserType


# Inputs. UNSET marks a field the client left out, as opposed to an explicit null.

@strawberry.input(name="ShipmentFilters")
class ShipmentFiltersInput:
    status: Optional[ShipmentStatus] = strawberry.UNSET
    priority: Optional[ShipmentPriority] = strawberry.UNSET
    search: Optional[str] = strawberry.UNSET
    flagged: Optional[bool] = strawberry.UNSET


@strawberry.input(name="ShipmentSort")
class ShipmentSortInput:
    field: str
    order: SortOrder = SortOrder.DESC


@strawberry.input
class CreateShipmentInput:
    shipper_name: str
    carrier_name: str
    pickup_location: str
    pickup_date: date
    delivery_location: str
    delivery_date: date
    tracking_number: str
    rate: float
    weight: float
    dimensions: str
    status: Optional[ShipmentStatus] = strawberry.UNSET
    priority: Optional[ShipmentPriority] = strawberry.UNSET
    special_instructions: Optional[str] = strawberry.UNSET
    flagged: Optional[bool] = strawberry.UNSET


@strawberry.input
class UpdateShipmentInput:
    shipper_name: Optional[str] = strawberry.UNSET
    carrier_name: Optional[str] = strawberry.UNSET
    pickup_location: Optional[str] = strawberry.UNSET
    pickup_date: Optional[date] = strawberry.UNSET
    delivery_location: Optional[str] = strawberry.UNSET
    delivery_date: Optional[date] = strawberry.UNSET
    status: Optional[ShipmentStatus] = strawberry.UNSET
    priority: Optional[ShipmentPriority] = strawberry.UNSET
    tracking_number: Optional[str] = strawberry.UNSET
    rate: Optional[float] = strawberry.UNSET
    weight: Optional[float] = strawberry.UNSET
    dimensions: Optional[str] = strawberry.UNSET
    special_instructions: Optional[str] = strawberry.UNSET
    flagged: Optional[bool] = strawberry.UNSET


@strawberry.input
class AddTrackingEventInput:
    timestamp: datetime
    location: str
    status: str
    description: str


def provided_fields(value) -> dict:
    """Fields of a strawberry input the client actually sent, keyed by python name"""
    return {
        name: getattr(value, name)
        for name in value.__dataclass_fields__
        if getattr(value, name) is not strawberry.UNSET
    }
