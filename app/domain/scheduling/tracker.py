"""
Per-session status tracking and booking status aggregation.

Sessions are JSON-shaped dicts so they can be stored as-is:
{"seq": 3, "date": "2025-03-05T10:30:00", "status": "pending", "progressNotes": ""}

`seq` is assigned once at generation time and never reused, so a session
can be addressed either by its position (display order) or by `seq`.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .date_math import format_datetime
from .errors import IndexOutOfRange, InvalidStatus

SESSION_PENDING = "pending"
SESSION_COMPLETED = "completed"
SESSION_MISSED = "missed"
SESSION_STATUSES = (SESSION_PENDING, SESSION_COMPLETED, SESSION_MISSED)

BOOKING_PENDING = "pending"
BOOKING_IN_PROGRESS = "in_progress"
BOOKING_COMPLETED = "completed"
BOOKING_CANCELLED = "cancelled"
BOOKING_STATUSES = (BOOKING_PENDING, BOOKING_IN_PROGRESS, BOOKING_COMPLETED, BOOKING_CANCELLED)


def new_sessions(dates: Iterable[datetime], start_seq: int = 1) -> List[dict]:
    """Wrap generated dates as pending sessions numbered from `start_seq`"""
    return [
        {
            "seq": start_seq + i,
            "date": format_datetime(d),
            "status": SESSION_PENDING,
            "progressNotes": "",
        }
        for i, d in enumerate(dates)
    ]


def next_sequence(sessions: List[dict]) -> int:
    seqs = [s.get("seq") for s in sessions if isinstance(s.get("seq"), int)]
    return max(seqs + [len(sessions)]) + 1


def normalize_session_status(status: Optional[str]) -> str:
    if not status:
        return SESSION_PENDING
    return status


def normalize_booking_status(status: Optional[str]) -> str:
    # Older clients wrote "in-progress"
    if status == "in-progress":
        return BOOKING_IN_PROGRESS
    return status or BOOKING_PENDING


def set_status(
    sessions: List[dict], index: int, status: str, notes: Optional[str] = None
) -> dict:
    """
    Update one session in place.

    Notes, when given, replace the previous notes.

    Raises:
        InvalidStatus: status is not pending/completed/missed
        IndexOutOfRange: index outside [0, len(sessions))
    """
    if status not in SESSION_STATUSES:
        raise InvalidStatus(f"Invalid session status: {status}")
    if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index >= len(sessions):
        raise IndexOutOfRange(
            f"Session index {index} out of range (sessions length: {len(sessions)})"
        )

    session = sessions[index]
    session["status"] = status
    if notes is not None:
        session["progressNotes"] = notes
    return session


def index_for_sequence(sessions: List[dict], seq: int) -> int:
    for i, session in enumerate(sessions):
        if session.get("seq") == seq:
            return i
    raise IndexOutOfRange(f"Session #{seq} not found")


def overall_status(sessions: List[dict]) -> str:
    """
    Booking status derived from its sessions.

    completed only when every session is completed, in_progress once any
    session is completed, pending otherwise. A missed session therefore keeps
    the booking in_progress until it is completed explicitly.
    """
    statuses = [s.get("status") for s in sessions]
    if statuses and all(status == SESSION_COMPLETED for status in statuses):
        return BOOKING_COMPLETED
    if any(status == SESSION_COMPLETED for status in statuses):
        return BOOKING_IN_PROGRESS
    return BOOKING_PENDING
