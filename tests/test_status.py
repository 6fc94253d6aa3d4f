from datetime import date, datetime

from conftest import NOW, LAST_WEEK, make_lecture, make_mark, make_student
from lecture_app.services.status import attendance_window, effective_status, reconcile_lectures


def test_recurring_lecture_ignores_stale_completed_status():
    lecture = make_lecture(status="completed")
    assert effective_status(lecture, week_count=0, total_count=12) == "scheduled"


def test_recurring_lecture_completed_with_marks_this_week():
    lecture = make_lecture(status="scheduled")
    assert effective_status(lecture, week_count=1) == "completed"


def test_dated_lecture_uses_any_attendance():
    lecture = make_lecture(day_of_week=None, date=date(2026, 9, 1), status="scheduled")
    assert effective_status(lecture, week_count=0, total_count=3) == "completed"


def test_dated_lecture_falls_back_to_stored_status():
    lecture = make_lecture(day_of_week=None, date=date(2026, 9, 1), status="cancelled")
    assert effective_status(lecture, week_count=0, total_count=0) == "cancelled"


async def test_reconcile_lectures_scopes_recurring_to_current_week(db, seed):
    stale = make_lecture(subject="Operating Systems", status="completed")
    fresh = make_lecture(subject="Networks", day_of_week="Tuesday")
    untouched = make_lecture(subject="Compilers", day_of_week="Friday", status="completed")
    dated = make_lecture(subject="Guest Talk", day_of_week=None, date=date(2026, 10, 2))
    student = make_student("Asha Patil")
    await seed(stale, fresh, untouched, dated, student)
    await seed(
        make_mark(stale, student, "present", LAST_WEEK),
        make_mark(fresh, student, "late", NOW),
        make_mark(dated, student, "present", LAST_WEEK),
    )

    statuses = await reconcile_lectures(db, [stale, fresh, untouched, dated], NOW)

    assert statuses == {
        stale.id: "scheduled",
        fresh.id: "completed",
        untouched.id: "scheduled",
        dated.id: "completed",
    }


async def test_reconcile_empty_list(db):
    assert await reconcile_lectures(db, [], NOW) == {}


def test_attendance_window_is_week_for_recurring_and_unbounded_for_dated():
    assert attendance_window(make_lecture(), NOW) == datetime(2026, 10, 18)
    assert attendance_window(make_lecture(day_of_week=None, date=date(2026, 10, 17)), NOW) is None
