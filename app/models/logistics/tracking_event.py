from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import Base
from app.utils.datetime_utils import utcnow

class TrackingEvent(Base):
    """Append-only status update; rows are never updated once written"""
    __tablename__ = 'tracking_events'

    id = Column(Integer, primary_key=True, index=True)
    shipment_id = Column(Integer, ForeignKey('shipments.id', ondelete='CASCADE'), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    status = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    shipment = relationship("Shipment", back_populates="tracking_events")
