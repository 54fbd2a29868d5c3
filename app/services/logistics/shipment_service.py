# app/services/logistics/shipment_service.py
import logging
from typing import List, Optional, Dict, Any, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func, delete
from sqlalchemy.orm import selectinload

from app.core.exceptions import BaseAppException, NotFoundError
from app.core.logging import log_user_action
from app.models.logistics.shipment import Shipment
from app.models.logistics.tracking_event import TrackingEvent
from app.models.shared.enums import ShipmentStatus, ShipmentPriority, SortOrder
from app.schemas.common.pagination import PageInfo, PaginatedResponse, PaginationParams
from app.schemas.logistics.shipment_schema import (
    ShipmentCreate, ShipmentUpdate, TrackingEventCreate,
    ShipmentFilters, ShipmentSort
)
from app.utils.datetime_utils import next_timestamp, utcnow

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = (
    Shipment.shipper_name,
    Shipment.carrier_name,
    Shipment.pickup_location,
    Shipment.delivery_location,
    Shipment.tracking_number,
)


class ShipmentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # Read path

    async def get_shipments(
        self,
        filters: Optional[ShipmentFilters] = None,
        sort: Optional[ShipmentSort] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> PaginatedResponse:
        """Get one page of shipments; relations are left unloaded"""
        filters = filters or ShipmentFilters()
        pagination = pagination or PaginationParams()

        conditions = self._filter_conditions(filters)

        query = (
            select(Shipment)
            .where(*conditions)
            .order_by(*self._ordering(sort))
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.session.execute(query)
        shipments = list(result.scalars().all())

        total_count = await self.session.execute(
            select(func.count(Shipment.id)).where(*conditions)
        )

        return PaginatedResponse(
            data=shipments,
            page_info=PageInfo.build(pagination.page, pagination.limit, total_count.scalar() or 0),
        )

    async def get_shipment(self, shipment_id: int, with_relations: bool = False) -> Optional[Shipment]:
        """Get shipment by ID, optionally with events and creator/updater loaded"""
        query = select(Shipment).where(Shipment.id == shipment_id)
        if with_relations:
            query = query.options(
                selectinload(Shipment.tracking_events),
                selectinload(Shipment.created_by),
                selectinload(Shipment.updated_by),
            ).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_tracking_events_by_shipment_ids(self, shipment_ids: Sequence[int]) -> List[TrackingEvent]:
        """All events of the given shipments, newest first"""
        if not shipment_ids:
            return []
        result = await self.session.execute(
            select(TrackingEvent)
            .where(TrackingEvent.shipment_id.in_(list(shipment_ids)))
            .order_by(TrackingEvent.timestamp.desc(), TrackingEvent.id.desc())
        )
        return list(result.scalars().all())

    async def get_shipment_statistics(self) -> Dict[str, Any]:
        """Totals per status and priority plus the summed rate of all shipments"""
        total_shipments = (await self.session.execute(
            select(func.count(Shipment.id))
        )).scalar() or 0

        status_rows = await self.session.execute(
            select(Shipment.status, func.count(Shipment.id)).group_by(Shipment.status)
        )
        status_counts = {status: count for status, count in status_rows.all()}

        priority_rows = await self.session.execute(
            select(Shipment.priority, func.count(Shipment.id)).group_by(Shipment.priority)
        )
        priority_counts = {priority: count for priority, count in priority_rows.all()}

        total_revenue = (await self.session.execute(
            select(func.coalesce(func.sum(Shipment.rate), 0))
        )).scalar()

        return {
            "total_shipments": total_shipments,
            "by_status": [
                {"status": status, "count": status_counts.get(status, 0)}
                for status in ShipmentStatus
            ],
            "by_priority": [
                {"priority": priority, "count": priority_counts.get(priority, 0)}
                for priority in ShipmentPriority
            ],
            "total_revenue": float(total_revenue or 0),
        }

    # Write path

    async def create_shipment(self, shipment_data: ShipmentCreate, user_id: int) -> Shipment:
        """Create a new shipment attributed to ``user_id``"""
        try:
            now = utcnow()
            shipment = Shipment(
                **shipment_data.model_dump(),
                created_by_id=user_id,
                updated_by_id=user_id,
                created_at=now,
                updated_at=now,
            )
            self.session.add(shipment)
            await self.session.commit()

            log_user_action(user_id, "create", "shipment", shipment.id)
            logger.info(f"Shipment created successfully: {shipment.tracking_number}")
            return await self.get_shipment(shipment.id, with_relations=True)

        except BaseAppException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating shipment: {str(e)}")
            raise

    async def update_shipment(self, shipment_id: int, shipment_data: ShipmentUpdate, user_id: int) -> Shipment:
        """Apply a partial update and re-stamp the updater"""
        try:
            shipment = await self.get_shipment(shipment_id)
            if not shipment:
                raise NotFoundError("Shipment not found")

            # No transition graph: any status may follow any other
            update_data = shipment_data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                setattr(shipment, field, value)

            shipment.updated_at = next_timestamp(shipment.updated_at)
            shipment.updated_by_id = user_id
            await self.session.commit()

            log_user_action(user_id, "update", "shipment", shipment_id)
            logger.info(f"Shipment {shipment_id} updated successfully")
            return await self.get_shipment(shipment_id, with_relations=True)

        except BaseAppException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating shipment {shipment_id}: {str(e)}")
            raise

    async def delete_shipment(self, shipment_id: int, user_id: int) -> bool:
        """Delete a shipment and its tracking events; a missing id is a no-op"""
        try:
            await self.session.execute(
                delete(TrackingEvent).where(TrackingEvent.shipment_id == shipment_id)
            )
            result = await self.session.execute(
                delete(Shipment).where(Shipment.id == shipment_id)
            )
            await self.session.commit()

            if result.rowcount:
                log_user_action(user_id, "delete", "shipment", shipment_id)
            else:
                logger.info(f"Delete requested for missing shipment {shipment_id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting shipment {shipment_id}: {str(e)}")
            raise

    async def add_tracking_event(self, shipment_id: int, event_data: TrackingEventCreate, user_id: int) -> Shipment:
        """Append a tracking event and return the parent with its full history"""
        try:
            shipment = await self.get_shipment(shipment_id)
            if not shipment:
                raise NotFoundError("Shipment not found")

            tracking = TrackingEvent(
                shipment_id=shipment_id,
                **event_data.model_dump(),
            )
            self.session.add(tracking)
            await self.session.commit()

            log_user_action(user_id, "add tracking event to", "shipment", shipment_id)
            return await self.get_shipment(shipment_id, with_relations=True)

        except BaseAppException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error adding tracking event to shipment {shipment_id}: {str(e)}")
            raise

    # Helper methods

    def _filter_conditions(self, filters: ShipmentFilters) -> list:
        conditions = []

        if filters.status:
            conditions.append(Shipment.status == filters.status)

        if filters.priority:
            conditions.append(Shipment.priority == filters.priority)

        if filters.flagged is not None:
            conditions.append(Shipment.flagged == filters.flagged)

        if filters.search:
            conditions.append(
                or_(*(column.icontains(filters.search, autoescape=True) for column in SEARCH_COLUMNS))
            )

        return conditions

    def _ordering(self, sort: Optional[ShipmentSort]) -> list:
        if sort is None:
            return [Shipment.created_at.desc(), Shipment.id.desc()]

        column = getattr(Shipment, sort.column_name)
        if sort.order == SortOrder.ASC:
            return [column.asc(), Shipment.id.asc()]
        return [column.desc(), Shipment.id.desc()]
