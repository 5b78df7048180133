import logging
from datetime import datetime

from sqlalchemy.exc import OperationalError

from app.domain.scheduling.repository import SchedulingRepository
from app.domain.scheduling.synchronizer import (
    SOURCE_DAY_WISE,
    SOURCE_GENERATED,
    SOURCE_SESSION_DATES,
    SOURCE_SESSIONS,
    SOURCE_TRAINING_PLAN,
    ScheduleSynchronizer,
)
from app.models import TrainerBooking, TrainingPlan

DATES = ["2025-03-03T10:30:00", "2025-03-04T10:30:00", "2025-03-05T10:30:00"]


def _day_wise(*statuses):
    return [{"date": d, "status": s, "progressNotes": ""} for d, s in zip(DATES, statuses)]


def _plan_entries(*statuses):
    return [
        {
            "day": i + 1,
            "date": d[:10],
            "time": "10:30",
            "dateTime": d,
            "status": s,
            "progressNotes": "",
        }
        for i, (d, s) in enumerate(zip(DATES, statuses))
    ]


def _canonical(*statuses):
    return [
        {"seq": i + 1, "date": d, "status": s, "progressNotes": ""}
        for i, (d, s) in enumerate(zip(DATES, statuses))
    ]


def _reload(db, booking_id):
    db.expire_all()
    return db.query(TrainerBooking).filter(TrainerBooking.id == booking_id).one()


def test_read_prefers_canonical_sessions(db, make_legacy_booking):
    booking = make_legacy_booking(
        sessions=_canonical("completed", "pending", "pending"),
        day_wise_status=_day_wise("pending", "pending", "pending"),
    )

    schedule = ScheduleSynchronizer(db).read_sessions(booking)

    assert schedule.source == SOURCE_SESSIONS
    assert schedule.sessions[0]["status"] == "completed"


def test_read_order_for_legacy_rows(db, make_legacy_booking):
    sync = ScheduleSynchronizer(db)

    day_wise = make_legacy_booking(
        day_wise_status=_day_wise("completed", "pending", "pending"),
        training_plan={"sessionDates": _plan_entries("pending", "pending", "pending")},
    )
    embedded = make_legacy_booking(
        training_plan={"sessionDates": _plan_entries("missed", "pending", "pending")},
        session_dates=DATES,
    )
    root = make_legacy_booking(session_dates=DATES)

    assert sync.read_sessions(day_wise).source == SOURCE_DAY_WISE
    assert sync.read_sessions(day_wise).sessions[0]["status"] == "completed"
    assert sync.read_sessions(embedded).source == SOURCE_TRAINING_PLAN
    assert sync.read_sessions(embedded).sessions[0]["status"] == "missed"
    assert sync.read_sessions(root).source == SOURCE_SESSION_DATES


def test_empty_booking_is_regenerated_without_writing(db, make_service, make_legacy_booking):
    service = make_service(tier="tier1", duration_text=None, frequency=None)
    booking = make_legacy_booking(service=service, start_date=datetime(2025, 3, 3))

    schedule = ScheduleSynchronizer(db).read_sessions(booking)

    assert schedule.source == SOURCE_GENERATED
    assert not schedule.persisted
    assert len(schedule.sessions) == 7
    assert schedule.sessions[0]["date"] == "2025-03-03T10:30:00"
    assert _reload(db, booking.id).sessions is None


def test_regeneration_falls_back_to_appointment_time(db, make_service, make_legacy_booking):
    service = make_service(tier="custom", duration_text=None, frequency=None)
    booking = make_legacy_booking(service=service, appointment_time=datetime(2025, 4, 7, 8, 0))

    schedule = ScheduleSynchronizer(db).read_sessions(booking)

    assert len(schedule.sessions) == 7
    assert schedule.sessions[0]["date"].startswith("2025-04-07")


def test_update_on_day_wise_row_converges(db, booking_service, make_legacy_booking):
    booking = make_legacy_booking(
        day_wise_status=_day_wise("pending", "pending", "pending"),
        session_dates=DATES,
    )

    response = booking_service.update_session_status(booking.public_id, 1, "completed", "Loose leash")

    assert response.scheduleSource == SOURCE_SESSIONS
    assert response.sessions[1].status == "completed"
    assert response.status == "in_progress"

    row = _reload(db, booking.id)
    assert row.sessions[1]["status"] == "completed"
    assert row.sessions[1]["progressNotes"] == "Loose leash"
    assert row.day_wise_status[1]["status"] == "completed"
    assert row.session_dates == DATES
    assert row.accepted_at is not None


def test_update_on_embedded_plan_row_updates_plan_record(db, booking_service, make_legacy_booking):
    booking = make_legacy_booking(
        training_plan={"sessionTime": "10:30", "sessionDates": _plan_entries("pending", "pending", "pending")},
        with_plan_record=True,
    )

    response = booking_service.update_session_status(booking.public_id, 0, "completed")

    assert response.sessions[0].status == "completed"

    row = _reload(db, booking.id)
    plan = db.query(TrainingPlan).filter(TrainingPlan.booking_id == booking.id).one()
    assert plan.session_dates[0]["status"] == "completed"
    assert plan.session_dates[0]["day"] == 1
    assert row.training_plan["sessionDates"] == plan.session_dates
    assert row.training_plan["sessionTime"] == "10:30"
    assert row.sessions[0]["status"] == "completed"


def test_update_on_root_session_dates_row(db, booking_service, make_legacy_booking):
    booking = make_legacy_booking(session_dates=DATES)

    response = booking_service.update_session_status(booking.public_id, 2, "missed")

    assert [s.status for s in response.sessions] == ["pending", "pending", "missed"]
    assert response.status == "pending"
    row = _reload(db, booking.id)
    assert len(row.sessions) == 3
    assert row.session_dates == DATES


def test_short_mirror_falls_back_to_full_save(db, booking_service, make_legacy_booking, caplog):
    booking = make_legacy_booking(
        sessions=_canonical("pending", "pending", "pending"),
        day_wise_status=_day_wise("pending", "pending"),
    )

    with caplog.at_level(logging.WARNING):
        booking_service.update_session_status(booking.public_id, 2, "completed")

    assert "falling back to save" in caplog.text
    row = _reload(db, booking.id)
    assert len(row.day_wise_status) == 3
    assert row.day_wise_status[2]["status"] == "completed"
    assert row.sessions[2]["status"] == "completed"


def test_divergent_mirror_is_repaired_from_canonical(db, booking_service, make_legacy_booking, caplog):
    booking = make_legacy_booking(
        sessions=_canonical("completed", "pending", "pending"),
        day_wise_status=_day_wise("pending", "pending", "pending"),
    )

    with caplog.at_level(logging.WARNING):
        booking_service.update_session_status(booking.public_id, 1, "completed")

    assert "diverged" in caplog.text
    row = _reload(db, booking.id)
    assert [e["status"] for e in row.day_wise_status] == ["completed", "completed", "pending"]


def test_reconcile_copies_plan_record_over_embedded_plan(db, make_legacy_booking):
    booking = make_legacy_booking(
        training_plan={"sessionDates": _plan_entries("pending", "pending", "pending")},
        with_plan_record=True,
    )
    plan = db.query(TrainingPlan).filter(TrainingPlan.booking_id == booking.id).one()
    plan.session_dates = _plan_entries("completed", "pending", "pending")
    db.commit()

    assert ScheduleSynchronizer(db).reconcile_embedded_plan(booking.id) is True

    row = _reload(db, booking.id)
    assert row.training_plan["sessionDates"][0]["status"] == "completed"


def test_reconciliation_failure_does_not_fail_the_write(
    db, booking_service, make_legacy_booking, monkeypatch, caplog
):
    booking = make_legacy_booking(
        training_plan={"sessionDates": _plan_entries("pending", "pending", "pending")},
        with_plan_record=True,
    )
    original = SchedulingRepository.get_plan_for_booking
    calls = []

    def flaky_get_plan(db_, booking_id):
        calls.append(booking_id)
        if len(calls) > 1:
            raise OperationalError("SELECT training_plans", {}, Exception("database is locked"))
        return original(db_, booking_id)

    monkeypatch.setattr(SchedulingRepository, "get_plan_for_booking", staticmethod(flaky_get_plan))

    with caplog.at_level(logging.WARNING):
        response = booking_service.update_session_status(booking.public_id, 0, "completed")

    assert response.sessions[0].status == "completed"
    assert "Reconciliation pass" in caplog.text
    assert _reload(db, booking.id).sessions[0]["status"] == "completed"


def test_reconcile_without_plan_record_is_a_no_op(db, make_legacy_booking):
    booking = make_legacy_booking(sessions=_canonical("pending", "pending", "pending"))

    assert ScheduleSynchronizer(db).reconcile_embedded_plan(booking.id) is True


def test_unreadable_legacy_date_does_not_break_reads(db, booking_service, make_legacy_booking):
    booking = make_legacy_booking(
        day_wise_status=[
            {"date": "not-a-date", "status": "pending"},
            {"date": DATES[1], "status": "completed"},
        ],
    )

    response = booking_service.get_booking(booking.public_id)

    assert [s.date for s in response.sessions] == ["not-a-date", DATES[1]]
    assert response.appointmentTime == datetime(2025, 3, 4, 10, 30)
    assert len(booking_service.list_bookings()) == 1

    response = booking_service.extend_booking(booking.public_id, 1)
    assert response.sessions[-1].date == "2025-03-05T10:30:00"


def test_extension_appends_to_every_legacy_copy(db, booking_service, make_legacy_booking):
    booking = make_legacy_booking(
        day_wise_status=_day_wise("completed", "pending", "pending"),
        session_dates=DATES,
        training_plan={"sessionTime": "10:30", "sessionDates": _plan_entries("completed", "pending", "pending")},
        with_plan_record=True,
    )

    response = booking_service.extend_booking(booking.public_id, 2)

    assert [s.date for s in response.sessions[3:]] == ["2025-03-06T10:30:00", "2025-03-07T10:30:00"]
    assert [s.seq for s in response.sessions] == [1, 2, 3, 4, 5]

    row = _reload(db, booking.id)
    plan = db.query(TrainingPlan).filter(TrainingPlan.booking_id == booking.id).one()
    assert len(row.sessions) == 5
    assert len(row.day_wise_status) == 5
    assert row.day_wise_status[:3] == _day_wise("completed", "pending", "pending")
    assert row.session_dates == DATES + ["2025-03-06T10:30:00", "2025-03-07T10:30:00"]
    assert len(plan.session_dates) == 5
    assert plan.session_dates[3]["day"] == 4
    assert plan.session_dates[4]["dateTime"] == "2025-03-07T10:30:00"
    assert row.training_plan["sessionDates"] == plan.session_dates
    assert row.status == "in_progress"


def test_extension_with_short_mirror_falls_back_to_full_save(
    db, booking_service, make_legacy_booking, caplog
):
    booking = make_legacy_booking(
        sessions=_canonical("pending", "pending", "pending"),
        session_dates=DATES[:2],
    )

    with caplog.at_level(logging.WARNING):
        booking_service.extend_booking(booking.public_id, 2)

    assert "falling back to save" in caplog.text
    row = _reload(db, booking.id)
    assert len(row.sessions) == 5
    assert row.session_dates == [s["date"] for s in row.sessions]


def test_mirror_with_wrong_dates_is_repaired(db, booking_service, make_legacy_booking, caplog):
    moved = _day_wise("pending", "pending", "pending")
    moved[2]["date"] = "2025-03-09T10:30:00"
    booking = make_legacy_booking(sessions=_canonical("pending", "pending", "pending"), day_wise_status=moved)

    with caplog.at_level(logging.WARNING):
        booking_service.update_session_status(booking.public_id, 0, "completed")

    assert "diverged" in caplog.text
    row = _reload(db, booking.id)
    assert [e["date"] for e in row.day_wise_status] == DATES
