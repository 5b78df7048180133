import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class TrainerService(Base):
    """A priced plan template a trainer offers (tier1/tier2/tier3 or custom)"""

    __tablename__ = "trainer_services"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    trainer_id = Column(String(255), nullable=False, index=True)
    service_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    tier = Column(String(20), nullable=False)  # tier1, tier2, tier3, custom
    base_price = Column(Float, nullable=False, default=0)
    price = Column(Float, nullable=False, default=0)
    # Only meaningful for custom plans; fixed tiers derive these at read time
    duration_text = Column(String(100), nullable=True)  # e.g. "2 weeks", "10 days"
    frequency = Column(String(20), nullable=True)  # daily, alternate, days_per_week
    days_per_week = Column(Integer, nullable=True)  # 1-6, only for days_per_week
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("TrainerBooking", back_populates="service")


class TrainerBooking(Base):
    """
    A client booked against a trainer service, with its generated session calendar.

    `sessions` is the canonical schedule. `day_wise_status`, `session_dates` and
    `training_plan` are legacy copies still present on rows written by older
    clients; they are only kept in sync when already populated.
    """

    __tablename__ = "trainer_bookings"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    trainer_id = Column(String(255), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("trainer_services.id"), nullable=True)

    # Client / pet references (owned by other services)
    client_id = Column(String(255), nullable=True)
    pet_id = Column(String(255), nullable=True)
    client_name = Column(String(255), nullable=True)
    pet_name = Column(String(255), nullable=True)

    # Plan parameters copied from the service at creation time
    service_name = Column(String(255), nullable=True)
    tier = Column(String(20), nullable=True)
    duration_text = Column(String(100), nullable=True)
    frequency = Column(String(20), nullable=True)
    days_per_week = Column(Integer, nullable=True)
    price = Column(Float, nullable=True)

    start_date = Column(DateTime, nullable=True)
    time_of_day = Column(String(10), nullable=True)  # HH:MM format
    appointment_time = Column(DateTime, nullable=True)  # Next upcoming session

    # Status workflow: pending → in_progress → completed, or cancelled at any point
    status = Column(String(50), default="pending", nullable=False, index=True)
    accepted_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Follow-up recorded on explicit completion
    follow_up_required = Column(Boolean, nullable=True)
    follow_up_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    # Schedule
    sessions = Column(JSON, nullable=True)  # [{seq, date, status, progressNotes}]
    day_wise_status = Column(JSON, nullable=True)  # legacy [{date, status, progressNotes}]
    session_dates = Column(JSON, nullable=True)  # legacy [iso datetime]
    training_plan = Column(JSON, nullable=True)  # legacy {sessionTime, sessionDates: [...]}

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("TrainerService", back_populates="bookings")
    plan = relationship(
        "TrainingPlan", back_populates="booking", uselist=False, cascade="all, delete-orphan"
    )


class TrainingPlan(Base):
    """Standalone plan record mirroring a booking's sessions for trainer-facing read paths"""

    __tablename__ = "training_plans"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    trainer_id = Column(String(255), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("trainer_bookings.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    duration_text = Column(String(100), nullable=True)
    session_time = Column(String(10), nullable=True)
    # [{day, date, time, dateTime, status, progressNotes}]
    session_dates = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("TrainerBooking", back_populates="plan")
