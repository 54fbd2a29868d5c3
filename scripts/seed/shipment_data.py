"""
Shipment Seed Data (async)
- Admin and employee users (idempotent)
- Random shipments with tracking events
Run:  python scripts/seed/shipment_data.py [count]
"""

import os, sys
import asyncio
import random
import string
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import Database
from app.core.security import get_password_hash
from app.models.auth.user import User
from app.models.logistics.shipment import Shipment
from app.models.logistics.tracking_event import TrackingEvent
from app.models.shared.enums import Role, ShipmentPriority, ShipmentStatus
from app.utils.datetime_utils import utcnow

# ----------------------------------------------------------------------
# SEED DATA
# ----------------------------------------------------------------------

USERS_SEED = [
    {"email": "admin@tms.com",    "password": "admin123",    "name": "Admin User",    "role": Role.ADMIN},
    {"email": "employee@tms.com", "password": "employee123", "name": "Employee User", "role": Role.EMPLOYEE},
]

CARRIERS = ["FedEx", "UPS", "DHL", "USPS", "Blue Dart", "XPO Logistics"]
SHIPPERS = ["ABC Corp", "XYZ Ltd", "Global Shipping Inc", "Tech Solutions", "Fashion Retail"]
LOCATIONS = [
    "New York, NY", "Los Angeles, CA", "Chicago, IL", "Houston, TX", "Phoenix, AZ",
    "Philadelphia, PA", "San Antonio, TX", "San Diego, CA", "Dallas, TX", "San Jose, CA",
    "Mumbai, India", "Delhi, India", "Bangalore, India", "London, UK", "Paris, France",
]
EVENT_STATUSES = ["In Transit", "Out for Delivery", "Arrived at Hub", "Departed"]
EVENT_ACTIONS = ["scanned", "arrived", "departed", "in transit"]

SEED_START_DATE = date(2024, 1, 1)
DEFAULT_SHIPMENT_COUNT = 50

# ----------------------------------------------------------------------
# ASYNC HELPERS
# ----------------------------------------------------------------------

async def get_or_create_user(db: AsyncSession, data: dict) -> User:
    result = await db.execute(select(User).where(User.email == data["email"]))
    obj = result.scalar_one_or_none()
    if obj:
        return obj
    obj = User(
        email=data["email"],
        hashed_password=get_password_hash(data["password"]),
        name=data["name"],
        role=data["role"],
    )
    db.add(obj)
    await db.flush()
    return obj


def random_date(start: date, end: date) -> date:
    span = max((end - start).days, 0)
    return start + timedelta(days=random.randint(0, span))


def generate_tracking_number() -> str:
    return "TRK" + "".join(random.choices(string.ascii_uppercase + string.digits, k=9))


def build_shipment(creator: User, updater: User, today: date) -> Shipment:
    pickup_location = random.choice(LOCATIONS)
    pickup_date = random_date(SEED_START_DATE, today)
    now = utcnow()
    return Shipment(
        shipper_name=random.choice(SHIPPERS),
        carrier_name=random.choice(CARRIERS),
        pickup_location=pickup_location,
        pickup_date=pickup_date,
        delivery_location=random.choice([loc for loc in LOCATIONS if loc != pickup_location]),
        delivery_date=random_date(pickup_date, today),
        status=random.choice(list(ShipmentStatus)),
        priority=random.choice(list(ShipmentPriority)),
        tracking_number=generate_tracking_number(),
        rate=Decimal(random.randint(500, 5499)),
        weight=Decimal(random.randint(10, 1009)),
        dimensions=f"{random.randint(10, 59)}x{random.randint(10, 59)}x{random.randint(10, 59)} cm",
        special_instructions="Handle with care - Fragile items" if random.random() > 0.7 else None,
        flagged=random.random() > 0.8,
        created_by_id=creator.id,
        updated_by_id=updater.id,
        created_at=now,
        updated_at=now,
    )


def build_tracking_events(shipment: Shipment) -> list:
    start = datetime.combine(shipment.pickup_date, time(9, 0), tzinfo=timezone.utc)
    return [
        TrackingEvent(
            shipment_id=shipment.id,
            timestamp=start + timedelta(days=day),
            location=random.choice(LOCATIONS),
            status=random.choice(EVENT_STATUSES),
            description=f"Package {random.choice(EVENT_ACTIONS)} at facility",
        )
        for day in range(random.randint(1, 5))
    ]

# ----------------------------------------------------------------------
# MAIN ASYNC SEED LOGIC
# ----------------------------------------------------------------------

async def seed(db: AsyncSession, count: int = DEFAULT_SHIPMENT_COUNT):
    # 1) Ensure users
    users = [await get_or_create_user(db, u) for u in USERS_SEED]
    await db.commit()
    print(f"✓ Users ready: {len(users)}")

    # 2) Shipments with their tracking history
    today = date.today()
    events_created = 0
    for _ in range(count):
        shipment = build_shipment(random.choice(users), random.choice(users), today)
        db.add(shipment)
        await db.flush()

        events = build_tracking_events(shipment)
        db.add_all(events)
        events_created += len(events)
    await db.commit()
    print(f"✓ Shipments created: {count} ({events_created} tracking events)")

# ----------------------------------------------------------------------
# ASYNC ENTRY POINT
# ----------------------------------------------------------------------

async def main(count: int = DEFAULT_SHIPMENT_COUNT):
    database = Database(settings.DATABASE_URL)
    await database.init()
    # Create tables (safe if already created)
    await database.create_all()

    try:
        async with database.session() as db:
            try:
                await seed(db, count)
                print("✅ Shipment seed completed successfully!")
                for u in USERS_SEED:
                    print(f"   {u['role'].value}: {u['email']} / {u['password']}")
            except Exception as ex:
                await db.rollback()
                print(f"❌ Seed failed: {ex}")
                raise
    finally:
        await database.teardown()

if __name__ == "__main__":
    asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_SHIPMENT_COUNT))
