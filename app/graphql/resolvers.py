import logging
from typing import Annotated, Optional, Type, TypeVar

import strawberry
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from strawberry.types import Info

from app.core.exceptions import NotFoundError, ValidationError
from app.core.request_context import get_request_context
from app.graphql.permissions import OperationPolicy
from app.graphql.types import (
    AddTrackingEventInput,
    AuthPayload,
    CreateShipmentInput,
    PageInfoType,
    PriorityCount,
    ShipmentConnection,
    ShipmentFiltersInput,
    ShipmentSortInput,
    ShipmentStats,
    ShipmentType,
    StatusCount,
    UpdateShipmentInput,
    UserType,
    provided_fields,
)
from app.schemas.auth.user import LoginRequest, RegisterRequest
from app.schemas.common.pagination import PaginationParams
from app.schemas.logistics.shipment_schema import (
    ShipmentCreate,
    ShipmentFilters,
    ShipmentSort,
    ShipmentUpdate,
    TrackingEventCreate,
)
from app.services.auth.auth_service import AuthService
from app.services.logistics.shipment_service import ShipmentService

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate_input(schema: Type[SchemaT], data: dict) -> SchemaT:
    """Validate resolver arguments against a pydantic schema, raising BAD_USER_INPUT on failure"""
    try:
        return schema(**data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(details)


def parse_id(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@strawberry.type
class Query:
    @strawberry.field(permission_classes=[OperationPolicy])
    async def me(self, info: Info) -> Optional[UserType]:
        user = await info.context.loaders.users.load(info.context.auth.user_id)
        return UserType.from_model(user) if user else None

    @strawberry.field(permission_classes=[OperationPolicy])
    async def shipments(
        self,
        info: Info,
        filters: Optional[ShipmentFiltersInput] = None,
        sort: Optional[ShipmentSortInput] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ShipmentConnection:
        shipment_filters = validate_input(ShipmentFilters, provided_fields(filters) if filters else {})
        shipment_sort = validate_input(ShipmentSort, {"field": sort.field, "order": sort.order}) if sort else None
        pagination = validate_input(PaginationParams, {"page": page, "limit": limit})

        async with info.context.use_session() as session:
            result = await ShipmentService(session).get_shipments(shipment_filters, shipment_sort, pagination)

        return ShipmentConnection(
            nodes=[ShipmentType.from_model(shipment) for shipment in result.data],
            page_info=PageInfoType.from_schema(result.page_info),
        )

    @strawberry.field(permission_classes=[OperationPolicy])
    async def shipment(self, info: Info, id: strawberry.ID) -> Optional[ShipmentType]:
        shipment_id = parse_id(id)
        if shipment_id is None:
            return None

        async with info.context.use_session() as session:
            shipment = await ShipmentService(session).get_shipment(shipment_id, with_relations=True)
        if shipment is None:
            return None

        info.context.loaders.prime_shipment(shipment)
        return ShipmentType.from_model(shipment)

    @strawberry.field(permission_classes=[OperationPolicy])
    async def shipment_stats(self, info: Info) -> ShipmentStats:
        async with info.context.use_session() as session:
            stats = await ShipmentService(session).get_shipment_statistics()

        return ShipmentStats(
            total_shipments=stats["total_shipments"],
            by_status=[StatusCount(**row) for row in stats["by_status"]],
            by_priority=[PriorityCount(**row) for row in stats["by_priority"]],
            total_revenue=stats["total_revenue"],
        )


@strawberry.type
class Mutation:
    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def login(self, info: Info, email: str, password: str) -> AuthPayload:
        credentials = validate_input(LoginRequest, {"email": email, "password": password})
        request_context = get_request_context(info.context.request)

        async with info.context.use_session() as session:
            service = AuthService(session)
            user = await service.authenticate_user(
                credentials,
                ip_address=request_context["ip_address"],
                user_agent=request_context["user_agent"],
            )
            token = service.create_token(user)

        logger.info(f"User {user.email} logged in (request_id={request_context['request_id']})")
        return AuthPayload(token=token, user=UserType.from_model(user))

    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def register(self, info: Info, email: str, password: str, name: str) -> AuthPayload:
        data = validate_input(RegisterRequest, {"email": email, "password": password, "name": name})

        async with info.context.use_session() as session:
            service = AuthService(session)
            user = await service.register_user(data)
            token = service.create_token(user)

        logger.info(f"User registered: {user.email}")
        return AuthPayload(token=token, user=UserType.from_model(user))

    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def create_shipment(
        self,
        info: Info,
        data: Annotated[CreateShipmentInput, strawberry.argument(name="input")],
    ) -> ShipmentType:
        shipment_data = validate_input(ShipmentCreate, provided_fields(data))

        async with info.context.use_session() as session:
            shipment = await ShipmentService(session).create_shipment(shipment_data, info.context.auth.user_id)

        info.context.loaders.prime_shipment(shipment)
        return ShipmentType.from_model(shipment)

    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def update_shipment(
        self,
        info: Info,
        id: strawberry.ID,
        data: Annotated[UpdateShipmentInput, strawberry.argument(name="input")],
    ) -> ShipmentType:
        shipment_id = parse_id(id)
        if shipment_id is None:
            raise NotFoundError("Shipment not found")
        shipment_data = validate_input(ShipmentUpdate, provided_fields(data))

        async with info.context.use_session() as session:
            shipment = await ShipmentService(session).update_shipment(
                shipment_id, shipment_data, info.context.auth.user_id
            )

        info.context.loaders.prime_shipment(shipment)
        return ShipmentType.from_model(shipment)

    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def delete_shipment(self, info: Info, id: strawberry.ID) -> bool:
        shipment_id = parse_id(id)
        if shipment_id is None:
            return True

        async with info.context.use_session() as session:
            deleted = await ShipmentService(session).delete_shipment(shipment_id, info.context.auth.user_id)

        info.context.loaders.forget_shipment(shipment_id)
        return deleted

    @strawberry.mutation(permission_classes=[OperationPolicy])
    async def add_tracking_event(
        self,
        info: Info,
        shipment_id: strawberry.ID,
        data: Annotated[AddTrackingEventInput, strawberry.argument(name="input")],
    ) -> ShipmentType:
        parent_id = parse_id(shipment_id)
        if parent_id is None:
            raise NotFoundError("Shipment not found")
        event_data = validate_input(TrackingEventCreate, provided_fields(data))

        async with info.context.use_session() as session:
            shipment = await ShipmentService(session).add_tracking_event(
                parent_id, event_data, info.context.auth.user_id
            )

        info.context.loaders.prime_shipment(shipment)
        return ShipmentType.from_model(shipment)
