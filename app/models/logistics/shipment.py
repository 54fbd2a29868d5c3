from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import ShipmentStatus, ShipmentPriority

class Shipment(BaseModel):
    __tablename__ = 'shipments'

    shipper_name = Column(String(255), nullable=False, index=True)
    carrier_name = Column(String(255), nullable=False, index=True)
    pickup_location = Column(String(255), nullable=False)
    pickup_date = Column(Date, nullable=False)
    delivery_location = Column(String(255), nullable=False)
    delivery_date = Column(Date, nullable=False)
    status = Column(SQLEnum(ShipmentStatus, name="shipment_status"), nullable=False, default=ShipmentStatus.PENDING, index=True)
    priority = Column(SQLEnum(ShipmentPriority, name="shipment_priority"), nullable=False, default=ShipmentPriority.MEDIUM, index=True)
    tracking_number = Column(String(50), unique=True, nullable=False, index=True)
    rate = Column(Numeric(12, 2), nullable=False)
    weight = Column(Numeric(12, 2), nullable=False)
    dimensions = Column(String(100), nullable=False)
    special_instructions = Column(Text)
    flagged = Column(Boolean, nullable=False, default=False, index=True)
    created_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    updated_by_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    # Relationships
    created_by = relationship("User", foreign_keys=[created_by_id])
    updated_by = relationship("User", foreign_keys=[updated_by_id])
    tracking_events = relationship(
        "TrackingEvent",
        back_populates="shipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TrackingEvent.timestamp.desc()",
    )

    def __repr__(self):
        return f"<Shipment {self.tracking_number}>"
