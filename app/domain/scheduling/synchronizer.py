"""
Schedule synchronizer.

A booking's schedule can live in up to four places: the canonical
`sessions` column, the legacy `day_wise_status` / `session_dates` columns,
the booking's embedded `training_plan` and a standalone plan record. Reads
return one reconciled list; writes go to every copy that already exists.

Writes are attempted as targeted column updates first. When a legacy copy
does not have the shape the update expects, the whole booking is re-read,
every copy is rebuilt from the canonical list and saved. A final
best-effort pass copies the plan record over the embedded plan if the two
disagree; failures there are logged and never fail the request.
"""

import copy
import logging
from datetime import datetime
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_SESSION_TIME
from ...models import TrainerBooking, TrainingPlan
from .date_math import try_parse_datetime
from .errors import ReconciliationWarning, StorageError
from .generator import generate_session_dates
from .legacy import (
    embedded_plan_dates,
    from_day_wise_status,
    from_plan_session_dates,
    from_root_session_dates,
    plan_entry_datetime,
    to_day_wise_status,
    to_plan_session_dates,
    to_session_dates,
)
from .repository import SchedulingRepository
from .tiers import CUSTOM, PlanParameters, resolve_plan_parameters
from .tracker import new_sessions, normalize_session_status

logger = logging.getLogger(__name__)

SOURCE_SESSIONS = "sessions"
SOURCE_DAY_WISE = "day_wise_status"
SOURCE_TRAINING_PLAN = "training_plan"
SOURCE_SESSION_DATES = "session_dates"
SOURCE_GENERATED = "generated"

# Plan length used when regenerating a legacy booking that recorded none
REGENERATE_FALLBACK_DAYS = 7

SET = "set"
APPEND = "append"


class ReconciledSchedule(NamedTuple):
    sessions: List[dict]
    source: str

    @property
    def persisted(self) -> bool:
        return self.source != SOURCE_GENERATED


class PartialUpdateError(Exception):
    """A targeted update cannot be addressed against the stored document shape"""

    pass


def booking_plan(booking: TrainerBooking) -> PlanParameters:
    """Plan parameters recorded on the booking, falling back to its service for legacy rows"""
    service = booking.service
    tier = booking.tier or (service.tier if service else None) or CUSTOM
    return resolve_plan_parameters(
        tier,
        booking.duration_text or (service.duration_text if service else None),
        booking.frequency or (service.frequency if service else None),
        booking.days_per_week or (service.days_per_week if service else None),
    )


def _non_empty(value) -> bool:
    return isinstance(value, list) and len(value) > 0


def _entry_date(entry):
    raw = plan_entry_datetime(entry) if isinstance(entry, dict) else entry
    return try_parse_datetime(raw) or raw


def _entry_key(entry) -> tuple:
    """What a stored copy must agree on with the canonical list: date, plus status and notes where kept"""
    if not isinstance(entry, dict):
        return (_entry_date(entry),)
    return (
        _entry_date(entry),
        normalize_session_status(entry.get("status")),
        entry.get("progressNotes") or "",
    )


class ScheduleSynchronizer:
    """Keeps the canonical session list and its legacy copies consistent"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def read_sessions(self, booking: TrainerBooking) -> ReconciledSchedule:
        """
        The booking's session list, from the first populated copy:
        canonical sessions, day_wise_status, embedded plan, root session_dates.
        With none populated a fresh list is generated for the response only.
        """
        if _non_empty(booking.sessions):
            return ReconciledSchedule(self._canonical_copy(booking.sessions), SOURCE_SESSIONS)

        if _non_empty(booking.day_wise_status):
            return ReconciledSchedule(from_day_wise_status(booking.day_wise_status), SOURCE_DAY_WISE)

        embedded = embedded_plan_dates(booking.training_plan)
        if _non_empty(embedded):
            return ReconciledSchedule(from_plan_session_dates(embedded), SOURCE_TRAINING_PLAN)

        if _non_empty(booking.session_dates):
            return ReconciledSchedule(
                from_root_session_dates(booking.session_dates), SOURCE_SESSION_DATES
            )

        logger.info(f"📅 No stored sessions for booking {booking.public_id}, regenerating for response")
        return ReconciledSchedule(self.regenerate(booking), SOURCE_GENERATED)

    @staticmethod
    def _canonical_copy(sessions: list) -> List[dict]:
        out = []
        for i, session in enumerate(copy.deepcopy(sessions)):
            if not isinstance(session, dict):
                continue
            session.setdefault("seq", i + 1)
            session["status"] = normalize_session_status(session.get("status"))
            session["progressNotes"] = session.get("progressNotes") or ""
            out.append(session)
        return out

    def regenerate(self, booking: TrainerBooking) -> List[dict]:
        params = booking_plan(booking)
        start = booking.start_date or booking.appointment_time or datetime.now()
        dates = generate_session_dates(
            params.tier,
            start,
            booking.time_of_day or DEFAULT_SESSION_TIME,
            duration=params.duration_text or REGENERATE_FALLBACK_DAYS,
            frequency=params.frequency,
            days_per_week=params.days_per_week,
        )
        return new_sessions(dates)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def write_session_update(
        self, booking: TrainerBooking, sessions: List[dict], index: int, changes: dict
    ) -> None:
        """Persist a single-session mutation plus booking field `changes` to every copy"""
        self._write(booking, sessions, changes, SET, index)

    def write_extension(
        self, booking: TrainerBooking, sessions: List[dict], previous_length: int, changes: dict
    ) -> None:
        """Persist sessions appended after `previous_length` plus `changes` to every copy"""
        self._write(booking, sessions, changes, APPEND, previous_length)

    def write_booking_fields(self, booking: TrainerBooking, changes: dict) -> None:
        """Persist booking-level fields (status, completion metadata) only"""
        booking_id = booking.id
        try:
            if self.repo.update_booking_columns(self.db, booking_id, changes) == 0:
                raise PartialUpdateError(f"booking {booking_id} not matched")
            self.db.commit()
            return
        except (PartialUpdateError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.warning(
                f"⚠️ Targeted update of booking {booking_id} failed, falling back to save: {e}"
            )

        try:
            fresh = self.repo.get_booking_by_id(self.db, booking_id)
            if fresh is None:
                raise StorageError(f"Booking {booking_id} disappeared during save")
            for key, value in changes.items():
                setattr(fresh, key, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Fallback save of booking {booking_id} failed: {e}")
            raise StorageError("Failed to persist booking update")

    def _write(
        self, booking: TrainerBooking, sessions: List[dict], changes: dict, mode: str, position: int
    ) -> None:
        booking_id = booking.id
        public_id = booking.public_id
        try:
            plan = self.repo.get_plan_for_booking(self.db, booking_id)
            values, plan_dates = self._partial_values(booking, plan, sessions, changes, mode, position)
            copies = sorted(set(values) - set(changes))
            if plan is not None:
                copies.append("plan record")
            if self.repo.update_booking_columns(self.db, booking_id, values) == 0:
                raise PartialUpdateError(f"booking {booking_id} not matched")
            if plan is not None:
                self.repo.update_plan_sessions(self.db, plan.id, plan_dates)
            self.db.commit()
            logger.info(f"🔄 Synced {', '.join(copies)} for booking {public_id}")
        except (PartialUpdateError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.warning(
                f"⚠️ Targeted schedule update of booking {booking_id} failed, falling back to save: {e}"
            )
            self._save_document(booking_id, sessions, changes)

        self.reconcile_embedded_plan(booking_id)

    def _partial_values(
        self,
        booking: TrainerBooking,
        plan: Optional[TrainingPlan],
        sessions: List[dict],
        changes: dict,
        mode: str,
        position: int,
    ) -> tuple:
        values = dict(changes)
        values["sessions"] = sessions

        if _non_empty(booking.day_wise_status):
            values["day_wise_status"] = self._merge(
                booking.day_wise_status, to_day_wise_status(sessions), mode, position, "day_wise_status"
            )

        if _non_empty(booking.session_dates):
            values["session_dates"] = self._merge(
                booking.session_dates, to_session_dates(sessions), mode, position, "session_dates"
            )

        plan_dates = None
        if plan is not None:
            existing = plan.session_dates if plan.session_dates is not None else []
            session_time = plan.session_time or booking.time_of_day
            plan_dates = self._merge(
                existing,
                to_plan_session_dates(sessions, session_time, existing if isinstance(existing, list) else None),
                mode,
                position,
                f"training_plans[{plan.id}].session_dates",
            )

        embedded = embedded_plan_dates(booking.training_plan)
        if embedded is not None:
            if plan_dates is None:
                session_time = booking.training_plan.get("sessionTime") or booking.time_of_day
                plan_dates_embedded = self._merge(
                    embedded,
                    to_plan_session_dates(sessions, session_time, embedded),
                    mode,
                    position,
                    "training_plan.sessionDates",
                )
            else:
                plan_dates_embedded = plan_dates
            values["training_plan"] = {**booking.training_plan, "sessionDates": plan_dates_embedded}

        return values, plan_dates

    @staticmethod
    def _merge(existing, target: list, mode: str, position: int, label: str) -> list:
        """
        Apply the touched entries of `target` onto a stored copy.

        SET replaces entry `position`; APPEND adds everything after `position`.
        A copy that cannot be addressed that way raises PartialUpdateError.
        A copy that is addressable but disagrees elsewhere is replaced with
        `target` and the divergence logged.
        """
        if not isinstance(existing, list):
            raise PartialUpdateError(f"{label} is not an array")

        if mode == SET:
            if position >= len(existing):
                raise PartialUpdateError(f"{label}.{position} cannot be resolved (length {len(existing)})")
            merged = list(existing)
            merged[position] = target[position]
        else:
            if len(existing) != position:
                raise PartialUpdateError(
                    f"{label} has {len(existing)} entries, expected {position} before append"
                )
            merged = list(existing) + target[position:]

        if len(merged) != len(target) or any(
            _entry_key(a) != _entry_key(b) for a, b in zip(merged, target)
        ):
            logger.warning(f"⚠️ {label} diverged from canonical sessions, repairing from canonical list")
            return target
        return merged

    def _save_document(self, booking_id: int, sessions: List[dict], changes: dict) -> None:
        """Full read-modify-save of the booking and its plan record"""
        try:
            booking = self.repo.get_booking_by_id(self.db, booking_id)
            if booking is None:
                raise StorageError(f"Booking {booking_id} disappeared during save")

            for key, value in changes.items():
                setattr(booking, key, value)
            booking.sessions = sessions
            booking.updated_at = datetime.now()

            if _non_empty(booking.day_wise_status):
                booking.day_wise_status = to_day_wise_status(sessions)
            if _non_empty(booking.session_dates):
                booking.session_dates = to_session_dates(sessions)

            plan = self.repo.get_plan_for_booking(self.db, booking_id)
            if plan is not None:
                existing = plan.session_dates if isinstance(plan.session_dates, list) else None
                plan.session_dates = to_plan_session_dates(
                    sessions, plan.session_time or booking.time_of_day, existing
                )

            embedded = embedded_plan_dates(booking.training_plan)
            if embedded is not None:
                if plan is not None:
                    rebuilt = plan.session_dates
                else:
                    session_time = booking.training_plan.get("sessionTime") or booking.time_of_day
                    rebuilt = to_plan_session_dates(sessions, session_time, embedded)
                booking.training_plan = {**booking.training_plan, "sessionDates": rebuilt}

            self.db.commit()
            logger.info(f"✅ Saved booking {booking.public_id} via full document fallback")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Fallback save of booking {booking_id} failed: {e}")
            raise StorageError("Failed to persist session update")

    # ------------------------------------------------------------------
    # Post-write reconciliation
    # ------------------------------------------------------------------

    def reconcile_embedded_plan(self, booking_id: int) -> bool:
        """
        Re-read the plan record and copy its sessions over the booking's
        embedded plan when they differ. Best effort: returns False and logs
        on failure, never raises.
        """
        try:
            plan = self.repo.get_plan_for_booking(self.db, booking_id)
            if plan is None:
                return True
            self.db.refresh(plan)

            booking = self.repo.get_booking_by_id(self.db, booking_id)
            if booking is None:
                raise ReconciliationWarning(f"booking {booking_id} no longer exists")

            embedded = embedded_plan_dates(booking.training_plan)
            if embedded is None:
                return True
            if not isinstance(plan.session_dates, list):
                raise ReconciliationWarning(f"plan record {plan.public_id} has no session array")

            if embedded != plan.session_dates:
                logger.warning(
                    f"🔄 Embedded plan of booking {booking.public_id} diverged from plan record "
                    f"{plan.public_id}, copying from plan record"
                )
                self.repo.update_booking_columns(
                    self.db,
                    booking_id,
                    {"training_plan": {**booking.training_plan, "sessionDates": plan.session_dates}},
                )
                self.db.commit()
            return True
        except (ReconciliationWarning, SQLAlchemyError) as e:
            self.db.rollback()
            logger.warning(f"⚠️ Reconciliation pass for booking {booking_id} failed: {e}")
            return False
