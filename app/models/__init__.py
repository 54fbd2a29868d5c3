from app.models.auth.user import User
from app.models.logistics.shipment import Shipment
from app.models.logistics.tracking_event import TrackingEvent


__all__ = [
    "User",
    "Shipment",
    "TrackingEvent",
]
