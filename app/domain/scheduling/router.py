"""Trainer booking router - FastAPI endpoints for session schedules"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .errors import ValidationError
from .schemas import (
    BookingComplete,
    BookingCreate,
    BookingExtend,
    BookingResponse,
    BookingStatusUpdate,
    ServiceDetailsResponse,
    SessionStatusUpdate,
    TrainerServiceCreate,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trainer-bookings", tags=["Trainer Bookings"])
services_router = APIRouter(prefix="/trainer-services", tags=["Trainer Services"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _path_int(value: str, name: str) -> int:
    """Path segments are parsed here so a bad index is a 400, not FastAPI's 422"""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


# ============================================================================
# SERVICE DEFINITIONS
# ============================================================================


@services_router.post("", response_model=ServiceDetailsResponse, status_code=201)
async def create_trainer_service(
    data: TrainerServiceCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Define a tier or custom plan that clients can be booked against"""
    return service.create_service(data)


@services_router.get("/{service_id}", response_model=ServiceDetailsResponse)
async def get_trainer_service(
    service_id: str,
    service: BookingService = Depends(get_booking_service),
):
    return service.get_service(service_id)


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    trainerId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings ordered by their next session, optionally for a single day"""
    return service.list_bookings(trainerId, status, date, limit)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Book a client against a service and generate the full session calendar"""
    return service.create_booking(data)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Get a booking with its reconciled session list"""
    return service.get_booking(booking_id)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    return service.update_booking_status(booking_id, data.status)


# ============================================================================
# SESSION STATUS
# ============================================================================


@router.patch("/{booking_id}/sessions/seq/{seq}", response_model=BookingResponse)
async def update_session_status_by_sequence(
    booking_id: str,
    seq: str,
    data: SessionStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Update a session by its stable sequence number"""
    return service.update_session_status_by_sequence(
        booking_id, _path_int(seq, "seq"), data.status, data.progressNotes
    )


@router.patch("/{booking_id}/sessions/{index}", response_model=BookingResponse)
async def update_session_status(
    booking_id: str,
    index: str,
    data: SessionStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Update the session at a zero-based position ("Day index+1")"""
    return service.update_session_status(
        booking_id, _path_int(index, "index"), data.status, data.progressNotes
    )


# ============================================================================
# EXTENSION & COMPLETION
# ============================================================================


@router.post("/{booking_id}/extend", response_model=BookingResponse)
async def extend_booking(
    booking_id: str,
    data: BookingExtend,
    service: BookingService = Depends(get_booking_service),
):
    """Append sessions after the last scheduled one"""
    return service.extend_booking(booking_id, data.additionalDays, data.timeOfDay)


@router.patch("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str,
    data: Optional[BookingComplete] = None,
    service: BookingService = Depends(get_booking_service),
):
    """Mark the booking completed regardless of its session statuses"""
    return service.complete_booking(booking_id, data or BookingComplete())
