"""Scheduling repository - Database operations for services, bookings and plan records"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models import TrainerBooking, TrainerService, TrainingPlan


class SchedulingRepository:
    """Repository for scheduling database operations"""

    # Services
    @staticmethod
    def get_service_by_public_id(db: Session, public_id: str) -> Optional[TrainerService]:
        return db.query(TrainerService).filter(TrainerService.public_id == public_id).first()

    @staticmethod
    def create_service(db: Session, trainer_id: str, **service_data) -> TrainerService:
        service = TrainerService(trainer_id=trainer_id, **service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    # Bookings
    @staticmethod
    def get_booking_by_public_id(db: Session, public_id: str) -> Optional[TrainerBooking]:
        return db.query(TrainerBooking).filter(TrainerBooking.public_id == public_id).first()

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[TrainerBooking]:
        return db.query(TrainerBooking).filter(TrainerBooking.id == booking_id).first()

    @staticmethod
    def get_bookings(
        db: Session,
        trainer_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[TrainerBooking]:
        """Get bookings, optionally scoped to a trainer and status"""
        query = db.query(TrainerBooking)

        if trainer_id:
            query = query.filter(TrainerBooking.trainer_id == trainer_id)

        if status:
            query = query.filter(TrainerBooking.status == status)

        return query.order_by(TrainerBooking.created_at.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> TrainerBooking:
        booking = TrainerBooking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking_columns(db: Session, booking_id: int, values: dict) -> int:
        """
        Targeted UPDATE of the given columns only; the rest of the row is not rewritten.
        Does not commit. Returns the number of matched rows.
        """
        values = dict(values)
        values["updated_at"] = datetime.now()
        result = db.execute(
            update(TrainerBooking)
            .where(TrainerBooking.id == booking_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # Plan records
    @staticmethod
    def get_plan_for_booking(db: Session, booking_id: int) -> Optional[TrainingPlan]:
        return db.query(TrainingPlan).filter(TrainingPlan.booking_id == booking_id).first()

    @staticmethod
    def create_plan(db: Session, booking_id: int, trainer_id: str, **plan_data) -> TrainingPlan:
        plan = TrainingPlan(booking_id=booking_id, trainer_id=trainer_id, **plan_data)
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    @staticmethod
    def update_plan_sessions(db: Session, plan_id: int, session_dates: list) -> int:
        """Targeted UPDATE of a plan record's session array. Does not commit."""
        result = db.execute(
            update(TrainingPlan)
            .where(TrainingPlan.id == plan_id)
            .values(session_dates=session_dates, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
