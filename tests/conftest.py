import asyncio
import os

# Keep the module-level engine off disk and every external backend disabled
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)
os.environ.pop("TELEGRAM_BOT_TOKEN", None)

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
import pytz  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from slotbook.database import Base, build_engine, get_db  # noqa: E402
from slotbook.domain.bookings.router import get_booking_service  # noqa: E402
from slotbook.domain.bookings.service import BookingService  # noqa: E402
from slotbook.domain.scheduling.router import get_availability_service  # noqa: E402
from slotbook.domain.scheduling.service import AvailabilityService  # noqa: E402
from slotbook.main import app  # noqa: E402
from slotbook.models import Provider, Service  # noqa: E402
from slotbook.slot_lock import InProcessSlotLock  # noqa: E402

# Monday 2026-03-02, 08:00 in Europe/Berlin (UTC+1 before the DST switch)
NOW = datetime(2026, 3, 2, 7, 0, tzinfo=pytz.utc)

WEEKDAYS_SCHEDULE = {"workingDays": [1, 2, 3, 4, 5], "startTime": "09:00", "endTime": "17:00"}


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def notify(self, channel, message):
        self.sent.append((channel, message))
        return True


class FailingNotifier:
    async def notify(self, channel, message):
        raise RuntimeError("telegram is down")


class SlowNotifier(RecordingNotifier):
    async def notify(self, channel, message):
        await asyncio.sleep(2)
        return await super().notify(channel, message)


def fixed_clock():
    return NOW


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'slotbook-test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def provider(db):
    provider = Provider(
        name="Anna Schmidt",
        telegram_chat_id="4242",
        timezone="Europe/Berlin",
        schedule=dict(WEEKDAYS_SCHEDULE),
    )
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


@pytest.fixture
def unconfigured_provider(db):
    provider = Provider(name="New Provider", timezone="Europe/Berlin", schedule=None)
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


@pytest.fixture
def haircut(db, provider):
    service = Service(provider_id=provider.id, title="Haircut", duration_min=60, price=35.0)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def coloring(db, provider):
    service = Service(provider_id=provider.id, title="Coloring", duration_min=90, price=80.0)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def slot_lock():
    return InProcessSlotLock(wait_timeout=5)


@pytest.fixture
def availability_service(db):
    return AvailabilityService(db, clock=fixed_clock)


@pytest.fixture
def booking_service(db, notifier, slot_lock):
    return BookingService(db, notifier=notifier, slot_lock=slot_lock, clock=fixed_clock)


@pytest.fixture
def client(session_factory, notifier, slot_lock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_booking_service(db: Session = Depends(get_db)):
        return BookingService(db, notifier=notifier, slot_lock=slot_lock, clock=fixed_clock)

    def override_availability_service(db: Session = Depends(get_db)):
        return AvailabilityService(db, clock=fixed_clock)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_service] = override_booking_service
    app.dependency_overrides[get_availability_service] = override_availability_service
    yield TestClient(app)
    app.dependency_overrides.clear()
