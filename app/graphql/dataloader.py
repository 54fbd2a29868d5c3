"""DataLoaders for N+1 query prevention.

Loaders are built per request by ``create_dataloaders`` and hold their cache
only for that request. Concurrent ``load`` calls issued while resolving one
level of the result tree are coalesced by strawberry's DataLoader into a
single call of the batch function below. Batch functions take the request's
session lock because one AsyncSession cannot run two statements at once.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.dataloader import DataLoader

from app.models.auth.user import User
from app.models.logistics.shipment import Shipment
from app.models.logistics.tracking_event import TrackingEvent
from app.services.auth.user_service import UserService
from app.services.logistics.shipment_service import ShipmentService

logger = logging.getLogger(__name__)


async def batch_load_users(session: AsyncSession, user_ids: List[int]) -> List[Optional[User]]:
    """One bulk lookup, mapped back positionally; None for unknown ids"""
    users = await UserService(session).get_users_by_ids(user_ids)
    user_map = {user.id: user for user in users}
    logger.debug(f"Batch loaded {len(users)} users for {len(user_ids)} keys")
    return [user_map.get(user_id) for user_id in user_ids]


async def batch_load_tracking_events(session: AsyncSession, shipment_ids: List[int]) -> List[List[TrackingEvent]]:
    """One bulk lookup grouped per shipment, newest first; [] for shipments without events"""
    events = await ShipmentService(session).get_tracking_events_by_shipment_ids(shipment_ids)
    event_map: Dict[int, List[TrackingEvent]] = defaultdict(list)
    for event in events:
        event_map[event.shipment_id].append(event)
    logger.debug(f"Batch loaded {len(events)} tracking events for {len(shipment_ids)} shipments")
    return [event_map.get(shipment_id, []) for shipment_id in shipment_ids]


@dataclass
class DataLoaders:
    users: DataLoader[int, Optional[User]]
    tracking_events: DataLoader[int, List[TrackingEvent]]

    def prime_shipment(self, shipment: Shipment) -> None:
        """Replace cached relations of ``shipment`` with its freshly loaded ones.

        Expects ``tracking_events``, ``created_by`` and ``updated_by`` to be
        loaded on the instance already.
        """
        self.tracking_events.clear(shipment.id)
        self.tracking_events.prime(shipment.id, list(shipment.tracking_events))
        for user in (shipment.created_by, shipment.updated_by):
            if user is not None:
                self.users.clear(user.id)
                self.users.prime(user.id, user)

    def forget_shipment(self, shipment_id: int) -> None:
        self.tracking_events.clear(shipment_id)


def create_dataloaders(session: AsyncSession, session_lock: Optional[asyncio.Lock] = None) -> DataLoaders:
    """Build a fresh set of loaders bound to one request's session"""
    session_lock = session_lock or asyncio.Lock()

    async def load_users(keys: List[int]) -> List[Optional[User]]:
        async with session_lock:
            return await batch_load_users(session, keys)

    async def load_tracking_events(keys: List[int]) -> List[List[TrackingEvent]]:
        async with session_lock:
            return await batch_load_tracking_events(session, keys)

    return DataLoaders(
        users=DataLoader(load_fn=load_users),
        tracking_events=DataLoader(load_fn=load_tracking_events),
    )
