"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_time_of_day


class TrainerServiceCreate(BaseModel):
    """Schema for defining a trainer service (a bookable plan)"""

    trainerId: str
    serviceName: Optional[str] = None
    description: Optional[str] = None
    tier: Optional[str] = None
    basePrice: float = 0
    price: Optional[float] = None
    duration: Optional[str] = None
    frequency: Optional[str] = None
    daysPerWeek: Optional[Any] = None


class BookingCreate(BaseModel):
    """Schema for booking a client against a trainer service"""

    # Required; missing or malformed values are reported by the service as validation errors
    serviceId: Optional[str] = None
    startDate: Optional[str] = None
    timeOfDay: Optional[str] = None
    ownerId: Optional[str] = None
    petId: Optional[str] = None
    clientName: Optional[str] = None
    petName: Optional[str] = None

    @field_validator("timeOfDay")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)


class SessionStatusUpdate(BaseModel):
    """Schema for updating one session ("Day X")"""

    status: str
    progressNotes: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    """Schema for setting the booking's overall status directly"""

    status: str


class BookingExtend(BaseModel):
    """Schema for appending sessions to a booking"""

    # Checked by the service so bad values surface as validation errors, not 422s
    additionalDays: Any = None
    timeOfDay: Optional[str] = None

    @field_validator("timeOfDay")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)


class BookingComplete(BaseModel):
    """Schema for explicitly completing a booking"""

    followUpRequired: Optional[bool] = None
    followUpDate: Optional[str] = None
    notes: Optional[str] = None


class SessionResponse(BaseModel):
    seq: int
    date: Optional[str]
    status: str
    progressNotes: str = ""


class DayStatusResponse(BaseModel):
    """Legacy per-day status view"""

    date: Optional[str]
    status: str
    progressNotes: str = ""


class ServiceDetailsResponse(BaseModel):
    id: str
    trainerId: Optional[str] = None
    serviceName: str
    description: Optional[str] = None
    tier: str
    basePrice: float
    price: float
    duration: Optional[str] = None
    frequency: Optional[str] = None
    daysPerWeek: Optional[int] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    trainerId: str
    serviceId: Optional[str] = None
    serviceName: Optional[str] = None
    tier: Optional[str] = None
    clientId: Optional[str] = None
    petId: Optional[str] = None
    clientName: Optional[str] = None
    petName: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[str] = None
    startDate: Optional[datetime] = None
    timeOfDay: Optional[str] = None
    appointmentTime: Optional[datetime] = None
    status: str
    acceptedAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None
    followUpRequired: Optional[bool] = None
    followUpDate: Optional[datetime] = None
    notes: Optional[str] = None
    sessions: list[SessionResponse]
    # Legacy-compatible views of `sessions`
    sessionDates: list[Optional[str]]
    dayWiseStatus: list[DayStatusResponse]
    scheduleSource: str
    serviceDetails: Optional[ServiceDetailsResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
