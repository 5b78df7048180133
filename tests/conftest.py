import os

# Must be set before the app modules create the engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.domain.scheduling.service import BookingService  # noqa: E402
from app.main import app  # noqa: E402
from app.domain.scheduling.repository import SchedulingRepository  # noqa: E402
from app.models import TrainerBooking, TrainerService  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def booking_service(db):
    return BookingService(db)


@pytest.fixture
def make_service(db):
    def _make(tier="custom", duration_text="10 days", frequency="daily", days_per_week=None, **kwargs):
        service = TrainerService(
            trainer_id=kwargs.pop("trainer_id", "trainer-1"),
            service_name=kwargs.pop("service_name", "Puppy Basics"),
            tier=tier,
            base_price=kwargs.pop("base_price", 100.0),
            price=kwargs.pop("price", 120.0),
            duration_text=duration_text,
            frequency=frequency,
            days_per_week=days_per_week,
            **kwargs,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture
def make_legacy_booking(db, make_service):
    """Insert a booking shaped like rows written by older clients"""

    def _make(with_plan_record=False, plan_session_time="10:30", **columns):
        service = columns.pop("service", None) or make_service()
        booking = TrainerBooking(
            trainer_id=service.trainer_id,
            service_id=service.id,
            service_name=service.service_name,
            tier=service.tier,
            duration_text=service.duration_text,
            frequency=service.frequency,
            time_of_day=columns.pop("time_of_day", "10:30"),
            status=columns.pop("status", "pending"),
            **columns,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)

        if with_plan_record:
            embedded = (booking.training_plan or {}).get("sessionDates") or []
            SchedulingRepository.create_plan(
                db,
                booking.id,
                booking.trainer_id,
                name=service.service_name,
                duration_text=service.duration_text,
                session_time=plan_session_time,
                session_dates=[dict(entry) for entry in embedded],
            )
        return booking

    return _make
