"""Booking service - Business logic for trainer bookings and their session schedules"""

import logging
from datetime import datetime, time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import BOOKING_LIST_LIMIT, DEFAULT_SESSION_TIME, SESSION_NOTES_MAX_LENGTH
from ...models import TrainerBooking
from ...shared.validators import parse_calendar_date, parse_optional_datetime
from ...utils.sanitization import clean_notes, escape_text
from .date_math import try_parse_datetime
from .errors import InvalidStatus, NotFoundError, StorageError, ValidationError
from .extension import extend_sessions, next_upcoming
from .generator import generate_session_dates
from .legacy import to_day_wise_status, to_session_dates
from .repository import SchedulingRepository
from .schemas import (
    BookingComplete,
    BookingCreate,
    BookingResponse,
    DayStatusResponse,
    ServiceDetailsResponse,
    SessionResponse,
    TrainerServiceCreate,
)
from .synchronizer import ReconciledSchedule, ScheduleSynchronizer, booking_plan
from .tiers import CUSTOM, resolve_plan_parameters, validate_plan_parameters
from .tracker import (
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_IN_PROGRESS,
    BOOKING_PENDING,
    BOOKING_STATUSES,
    SESSION_STATUSES,
    index_for_sequence,
    new_sessions,
    normalize_booking_status,
    overall_status,
    set_status,
)

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking schedule operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()
        self.sync = ScheduleSynchronizer(db)

    # ------------------------------------------------------------------
    # Service definitions
    # ------------------------------------------------------------------

    def create_service(self, data: TrainerServiceCreate) -> ServiceDetailsResponse:
        """Define a bookable plan after checking its tier and plan parameters"""
        if not data.serviceName or not data.serviceName.strip():
            raise ValidationError("serviceName is required")
        if not data.tier:
            raise ValidationError("tier is required")

        price = data.price if data.price is not None else data.basePrice
        if price < data.basePrice:
            raise ValidationError("price must not be lower than basePrice")

        params = validate_plan_parameters(data.tier, data.duration, data.frequency, data.daysPerWeek)
        custom = params.tier == CUSTOM

        try:
            service = self.repo.create_service(
                self.db,
                data.trainerId,
                service_name=escape_text(data.serviceName.strip()),
                description=escape_text(data.description),
                tier=params.tier,
                base_price=data.basePrice,
                price=price,
                duration_text=params.duration_text if custom else None,
                frequency=params.frequency if custom else None,
                days_per_week=params.days_per_week if custom else None,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create service for trainer {data.trainerId}: {e}")
            raise StorageError("Failed to create service")

        logger.info(f"✅ Created {params.tier} service {service.public_id} for trainer {service.trainer_id}")
        return self._service_details(service)

    def get_service(self, service_id: str) -> ServiceDetailsResponse:
        try:
            service = self.repo.get_service_by_public_id(self.db, service_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load service {service_id}: {e}")
            raise StorageError("Booking store unavailable")
        if not service:
            raise NotFoundError("Service not found")
        return self._service_details(service)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> BookingResponse:
        """Get a booking with its reconciled session list"""
        return self.to_response(self._get_booking(booking_id))

    def list_bookings(
        self,
        trainer_id: Optional[str] = None,
        status: Optional[str] = None,
        day: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[BookingResponse]:
        """List bookings ordered by their next session, optionally filtered to one day"""
        try:
            bookings = self.repo.get_bookings(self.db, trainer_id, status)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to list bookings: {e}")
            raise StorageError("Booking store unavailable")

        if day:
            try:
                target = parse_calendar_date(day)
            except ValueError as e:
                raise ValidationError(str(e))
            bookings = [b for b in bookings if self._anchor(b) and self._anchor(b).date() == target]

        bookings.sort(key=lambda b: (self._anchor(b) is None, self._anchor(b) or datetime.min))
        limit = limit if limit and limit > 0 else BOOKING_LIST_LIMIT
        return [self.to_response(b) for b in bookings[:limit]]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate) -> BookingResponse:
        """Create a booking and generate its full session calendar"""
        if not data.serviceId or not data.startDate:
            raise ValidationError("serviceId and startDate are required")
        try:
            start_date = parse_calendar_date(data.startDate)
        except ValueError as e:
            raise ValidationError(str(e))

        try:
            service = self.repo.get_service_by_public_id(self.db, data.serviceId)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load service {data.serviceId}: {e}")
            raise StorageError("Booking store unavailable")
        if not service:
            raise NotFoundError("Service not found")

        params = validate_plan_parameters(
            service.tier,
            service.duration_text,
            service.frequency,
            service.days_per_week,
            require_custom_fields=False,
        )
        dates = generate_session_dates(
            params.tier,
            start_date,
            data.timeOfDay or DEFAULT_SESSION_TIME,
            duration=params.duration_text,
            frequency=params.frequency,
            days_per_week=params.days_per_week,
        )
        logger.info(
            f"📅 Generated {len(dates)} sessions for service {service.public_id} "
            f"(tier={params.tier}, start={start_date.isoformat()})"
        )

        booking_data = {
            "trainer_id": service.trainer_id,
            "service_id": service.id,
            "client_id": data.ownerId,
            "pet_id": data.petId,
            "client_name": escape_text(data.clientName),
            "pet_name": escape_text(data.petName),
            "service_name": service.service_name,
            "tier": params.tier,
            "duration_text": params.duration_text,
            "frequency": params.frequency,
            "days_per_week": params.days_per_week,
            "price": service.price,
            "start_date": datetime.combine(start_date, time()),
            "time_of_day": data.timeOfDay,
            "appointment_time": dates[0] if dates else None,
            "status": BOOKING_PENDING,
            "sessions": new_sessions(dates),
        }

        try:
            booking = self.repo.create_booking(self.db, **booking_data)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create booking for service {service.public_id}: {e}")
            raise StorageError("Failed to create booking")

        logger.info(f"✅ Created booking {booking.public_id} for trainer {booking.trainer_id}")
        return self.to_response(booking)

    def update_session_status(
        self, booking_id: str, index: int, status: str, progress_notes: Optional[str] = None
    ) -> BookingResponse:
        """Update one session by position and recompute the booking status"""
        if status not in SESSION_STATUSES:
            raise InvalidStatus("Invalid session status")

        booking = self._get_booking(booking_id)
        schedule = self.sync.read_sessions(booking)
        return self._apply_session_update(booking, schedule, index, status, progress_notes)

    def update_session_status_by_sequence(
        self, booking_id: str, seq: int, status: str, progress_notes: Optional[str] = None
    ) -> BookingResponse:
        """Update one session by its stable sequence number"""
        if status not in SESSION_STATUSES:
            raise InvalidStatus("Invalid session status")

        booking = self._get_booking(booking_id)
        schedule = self.sync.read_sessions(booking)
        index = index_for_sequence(schedule.sessions, seq)
        return self._apply_session_update(booking, schedule, index, status, progress_notes)

    def _apply_session_update(
        self,
        booking: TrainerBooking,
        schedule: ReconciledSchedule,
        index: int,
        status: str,
        progress_notes: Optional[str],
    ) -> BookingResponse:
        notes = self._clean_notes(progress_notes)
        sessions = schedule.sessions
        set_status(sessions, index, status, notes)

        changes = self._derived_status_changes(booking, overall_status(sessions))
        logger.info(
            f"📅 Booking {booking.public_id} session {index} → {status} "
            f"(source={schedule.source}, booking status={changes.get('status', booking.status)})"
        )

        public_id = booking.public_id
        self.sync.write_session_update(booking, sessions, index, changes)
        return self.get_booking(public_id)

    def update_booking_status(self, booking_id: str, status: str) -> BookingResponse:
        """Set the overall booking status directly (including cancellation)"""
        if status not in BOOKING_STATUSES:
            raise InvalidStatus("Invalid status")

        booking = self._get_booking(booking_id)
        now = datetime.now()
        changes = {"status": status}
        if status == BOOKING_IN_PROGRESS and not booking.accepted_at:
            changes["accepted_at"] = now
        if status == BOOKING_COMPLETED:
            changes["completed_at"] = now

        public_id = booking.public_id
        self.sync.write_booking_fields(booking, changes)
        logger.info(f"✅ Booking {public_id} status set to {status}")
        return self.get_booking(public_id)

    def extend_booking(
        self, booking_id: str, additional_days, time_of_day: Optional[str] = None
    ) -> BookingResponse:
        """Append `additional_days` worth of sessions after the last scheduled one"""
        days = self._positive_int(additional_days)
        booking = self._get_booking(booking_id)

        schedule = self.sync.read_sessions(booking)
        sessions = schedule.sessions
        previous_length = len(sessions)

        extension = extend_sessions(
            sessions,
            booking_plan(booking),
            booking.start_date,
            days,
            time_of_day or booking.time_of_day or DEFAULT_SESSION_TIME,
        )

        changes = self._derived_status_changes(booking, extension.status)
        changes["appointment_time"] = extension.appointment_time

        public_id = booking.public_id
        self.sync.write_extension(booking, sessions, previous_length, changes)
        logger.info(
            f"✅ Extended booking {public_id} by {len(extension.added)} sessions "
            f"({previous_length} → {len(sessions)})"
        )
        return self.get_booking(public_id)

    def complete_booking(self, booking_id: str, data: BookingComplete) -> BookingResponse:
        """
        Mark a booking completed regardless of its session statuses,
        optionally recording follow-up details.
        """
        booking = self._get_booking(booking_id)

        changes = {"status": BOOKING_COMPLETED, "completed_at": datetime.now()}
        if data.followUpRequired is not None:
            changes["follow_up_required"] = bool(data.followUpRequired)
        if data.followUpDate:
            follow_up = parse_optional_datetime(data.followUpDate)
            if follow_up:
                changes["follow_up_date"] = follow_up
            else:
                logger.warning(f"Invalid followUpDate ignored for booking {booking_id}: {data.followUpDate}")
        if data.notes is not None:
            changes["notes"] = self._clean_notes(data.notes)

        public_id = booking.public_id
        self.sync.write_booking_fields(booking, changes)
        logger.info(f"✅ Booking {public_id} completed explicitly")
        return self.get_booking(public_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_booking(self, booking_id: str) -> TrainerBooking:
        try:
            booking = self.repo.get_booking_by_public_id(self.db, booking_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load booking {booking_id}: {e}")
            raise StorageError("Booking store unavailable")
        if not booking:
            raise NotFoundError("Appointment not found")
        return booking

    @staticmethod
    def _derived_status_changes(booking: TrainerBooking, derived: str) -> dict:
        """Booking field changes for a status derived from sessions; cancelled bookings stay cancelled"""
        current = normalize_booking_status(booking.status)
        if current == BOOKING_CANCELLED:
            return {}

        changes = {"status": derived}
        if derived in (BOOKING_IN_PROGRESS, BOOKING_COMPLETED) and not booking.accepted_at:
            changes["accepted_at"] = datetime.now()
        if derived == BOOKING_COMPLETED and current != BOOKING_COMPLETED:
            changes["completed_at"] = datetime.now()
        return changes

    @staticmethod
    def _clean_notes(notes: Optional[str]) -> Optional[str]:
        if notes is None:
            return None
        try:
            return clean_notes(notes, SESSION_NOTES_MAX_LENGTH)
        except ValueError as e:
            raise ValidationError(str(e))

    @staticmethod
    def _positive_int(value) -> int:
        if isinstance(value, bool):
            raise ValidationError("additionalDays must be a positive integer")
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValidationError("additionalDays must be a positive integer")
            value = int(value)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if not isinstance(value, int) or value <= 0:
            raise ValidationError("additionalDays must be a positive integer")
        return value

    @staticmethod
    def _anchor(booking: TrainerBooking) -> Optional[datetime]:
        return booking.appointment_time or booking.start_date

    def to_response(self, booking: TrainerBooking) -> BookingResponse:
        schedule = self.sync.read_sessions(booking)
        sessions = schedule.sessions

        service = booking.service
        service_details = self._service_details(service) if service is not None else None

        appointment_time = booking.appointment_time
        if appointment_time is None and sessions:
            appointment_time = next_upcoming(sessions) if schedule.persisted else try_parse_datetime(
                sessions[0].get("date")
            )

        return BookingResponse(
            id=booking.public_id,
            trainerId=booking.trainer_id,
            serviceId=service.public_id if service else None,
            serviceName=booking.service_name,
            tier=booking.tier,
            clientId=booking.client_id,
            petId=booking.pet_id,
            clientName=booking.client_name,
            petName=booking.pet_name,
            price=booking.price,
            duration=booking.duration_text,
            startDate=booking.start_date,
            timeOfDay=booking.time_of_day,
            appointmentTime=appointment_time,
            status=normalize_booking_status(booking.status),
            acceptedAt=booking.accepted_at,
            completedAt=booking.completed_at,
            followUpRequired=booking.follow_up_required,
            followUpDate=booking.follow_up_date,
            notes=booking.notes,
            sessions=[
                SessionResponse(
                    seq=s.get("seq", i + 1),
                    date=s.get("date"),
                    status=s.get("status"),
                    progressNotes=s.get("progressNotes") or "",
                )
                for i, s in enumerate(sessions)
            ],
            sessionDates=to_session_dates(sessions),
            dayWiseStatus=[DayStatusResponse(**entry) for entry in to_day_wise_status(sessions)],
            scheduleSource=schedule.source,
            serviceDetails=service_details,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )

    @staticmethod
    def _service_details(service) -> ServiceDetailsResponse:
        params = resolve_plan_parameters(
            service.tier, service.duration_text, service.frequency, service.days_per_week
        )
        return ServiceDetailsResponse(
            id=service.public_id,
            trainerId=service.trainer_id,
            serviceName=service.service_name,
            description=service.description,
            tier=service.tier,
            basePrice=service.base_price,
            price=service.price,
            duration=params.duration_text,
            frequency=params.frequency,
            daysPerWeek=params.days_per_week,
        )
