"""
Read-compatibility adapters between the canonical session list and the
legacy schedule shapes.

Legacy shapes still found on older rows:
- day_wise_status: [{"date", "status", "progressNotes"}]
- session_dates:   ["2025-03-03T10:30:00", ...] (dates only, statuses live in day_wise_status)
- plan sessions:   [{"day", "date", "time", "dateTime", "status", "progressNotes"}]
  used by the standalone plan record and the booking's embedded training_plan
"""

from typing import List, Optional

from .date_math import format_datetime, try_parse_datetime
from .tracker import normalize_session_status


def _iso(date_value) -> Optional[str]:
    parsed = try_parse_datetime(date_value)
    if parsed is None and date_value not in (None, ""):
        # Unreadable legacy value is passed through untouched
        return str(date_value)
    return format_datetime(parsed)


def _canonical(seq: int, date_value, status: Optional[str], notes: Optional[str]) -> dict:
    return {
        "seq": seq,
        "date": _iso(date_value),
        "status": normalize_session_status(status),
        "progressNotes": notes or "",
    }


def from_day_wise_status(entries: Optional[list]) -> List[dict]:
    return [
        _canonical(i + 1, entry.get("date"), entry.get("status"), entry.get("progressNotes"))
        for i, entry in enumerate(entries or [])
        if isinstance(entry, dict)
    ]


def plan_entry_datetime(entry: dict):
    return entry.get("dateTime") or entry.get("date")


def from_plan_session_dates(entries: Optional[list]) -> List[dict]:
    sessions = []
    for i, entry in enumerate(entries or []):
        if not isinstance(entry, dict):
            continue
        day = entry.get("day")
        sessions.append(
            _canonical(
                day if isinstance(day, int) else i + 1,
                plan_entry_datetime(entry),
                entry.get("status"),
                entry.get("progressNotes"),
            )
        )
    return sessions


def from_root_session_dates(entries: Optional[list]) -> List[dict]:
    """Root-level dates carry no status; entries may also be plan-shaped dicts"""
    sessions = []
    for i, entry in enumerate(entries or []):
        if isinstance(entry, dict):
            sessions.append(
                _canonical(i + 1, plan_entry_datetime(entry), entry.get("status"), entry.get("progressNotes"))
            )
        else:
            sessions.append(_canonical(i + 1, entry, None, None))
    return sessions


def embedded_plan_dates(training_plan) -> Optional[list]:
    if isinstance(training_plan, dict) and isinstance(training_plan.get("sessionDates"), list):
        return training_plan["sessionDates"]
    return None


def to_day_wise_status(sessions: List[dict]) -> List[dict]:
    return [
        {
            "date": s.get("date"),
            "status": normalize_session_status(s.get("status")),
            "progressNotes": s.get("progressNotes") or "",
        }
        for s in sessions
    ]


def to_session_dates(sessions: List[dict]) -> List[str]:
    return [s.get("date") for s in sessions]


def to_plan_entry(session: dict, position: int, session_time: Optional[str], existing: Optional[dict] = None) -> dict:
    """
    Plan-shaped entry for a session. The day number is kept from `existing`;
    its display date/time are kept only while they point at the session's date.
    """
    existing = existing if isinstance(existing, dict) else {}
    when = try_parse_datetime(session.get("date"))
    display = existing if when is None or try_parse_datetime(plan_entry_datetime(existing)) == when else {}
    return {
        "day": existing["day"] if existing.get("day") is not None else position + 1,
        "date": display.get("date") or (when.date().isoformat() if when else None),
        "time": display.get("time") or session_time or "",
        "dateTime": display.get("dateTime") or format_datetime(when),
        "status": normalize_session_status(session.get("status")),
        "progressNotes": session.get("progressNotes") or "",
    }


def to_plan_session_dates(
    sessions: List[dict], session_time: Optional[str], existing: Optional[list] = None
) -> List[dict]:
    existing = existing or []
    return [
        to_plan_entry(s, i, session_time, existing[i] if i < len(existing) else None)
        for i, s in enumerate(sessions)
    ]
