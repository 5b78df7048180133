"""Scheduling domain errors"""


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling engine"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input to a booking operation"""

    status_code = 400


class InvalidStatus(ValidationError):
    """Status value outside the allowed set"""


class NotFoundError(SchedulingError):
    """Booking, service or plan record does not exist"""

    status_code = 404


class IndexOutOfRange(SchedulingError):
    """Session index outside the booking's session list"""

    status_code = 400


class StorageError(SchedulingError):
    """The document store could not be reached"""

    status_code = 503


class ReconciliationWarning(SchedulingError):
    """Non-fatal divergence found while propagating a write to legacy copies"""

    pass
