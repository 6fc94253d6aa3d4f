from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import NOW, LAST_WEEK, make_lecture, make_mark, make_student
from lecture_app.models.attendance import AttendanceRecord
from lecture_app.models.lecture import Lecture
from lecture_app.services import marking
from lecture_app.services.marking import mark_all_present, mark_student


async def _rows(session_factory, lecture_id):
    async with session_factory() as session:
        result = await session.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.lecture_id == lecture_id)
            .order_by(AttendanceRecord.student_id, AttendanceRecord.created_at)
        )
        return list(result.scalars().all())


async def test_remarking_in_same_week_updates_single_row(client, session_factory, ty_a_class):
    lecture, students, _ = ty_a_class
    payload = {"lecture_id": lecture.id, "student_id": students[0].id, "user_id": 7}

    first = await client.post("/attendance/mark", json={**payload, "status": "absent"})
    second = await client.post("/attendance/mark", json={**payload, "status": "late"})

    assert first.json()["attendance_id"] == second.json()["attendance_id"]
    rows = await _rows(session_factory, lecture.id)
    assert len(rows) == 1
    assert rows[0].status == "late"
    assert rows[0].updated_at == NOW


async def test_marking_in_new_week_keeps_old_row(session_factory, db, seed, ty_a_class):
    lecture, students, _ = ty_a_class
    await seed(make_mark(lecture, students[0], "absent", LAST_WEEK))

    await mark_student(db, lecture.id, students[0].id, "present", NOW, user_id=7)
    # release the transaction the post-commit refresh opened on the shared connection
    await db.close()

    rows = await _rows(session_factory, lecture.id)
    assert [(r.status, r.created_at) for r in rows] == [("absent", LAST_WEEK), ("present", NOW)]


async def test_mark_does_not_touch_stored_lecture_status(client, session_factory, ty_a_class):
    lecture, students, _ = ty_a_class

    await client.post("/attendance/mark", json={
        "lecture_id": lecture.id, "student_id": students[0].id, "status": "present", "user_id": 7,
    })

    async with session_factory() as session:
        stored = await session.scalar(select(Lecture.status).where(Lecture.id == lecture.id))
    assert stored == "scheduled"


async def test_mark_rejects_unknown_ids_and_bad_status(client, ty_a_class):
    lecture, students, _ = ty_a_class

    missing_lecture = await client.post("/attendance/mark", json={
        "lecture_id": 999, "student_id": students[0].id, "status": "present",
    })
    missing_student = await client.post("/attendance/mark", json={
        "lecture_id": lecture.id, "student_id": 999, "status": "present",
    })
    bad_status = await client.post("/attendance/mark", json={
        "lecture_id": lecture.id, "student_id": students[0].id, "status": "pending",
    })

    assert missing_lecture.status_code == 404
    assert missing_student.status_code == 404
    assert bad_status.status_code == 422


async def test_mark_all_only_moves_pending_and_absent(client, seed, session_factory, ty_a_class):
    lecture, students, outsiders = ty_a_class
    await seed(
        make_mark(lecture, students[0], "late", NOW - timedelta(hours=2)),
        make_mark(lecture, students[1], "absent", NOW - timedelta(hours=2)),
    )

    response = await client.post("/attendance/mark-all", json={
        "lecture_id": lecture.id, "class_year": "TY", "user_id": 7,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["updated"], body["unchanged"], body["failed"], body["total"]) == (2, 1, 0, 3)

    roster = (await client.get(f"/attendance/roster/{lecture.id}/TY")).json()["roster"]
    assert {s["id"]: s["status"] for s in roster} == {
        students[0].id: "late",
        students[1].id: "present",
        students[2].id: "present",
    }

    rows = await _rows(session_factory, lecture.id)
    assert len(rows) == 3
    assert not {r.student_id for r in rows} & {s.id for s in outsiders}


async def test_mark_all_leaves_present_untouched(client, seed, session_factory, ty_a_class):
    lecture, students, _ = ty_a_class
    await seed(make_mark(lecture, students[0], "present", NOW - timedelta(hours=2)))

    await client.post("/attendance/mark-all", json={"lecture_id": lecture.id, "class_year": "TY"})

    rows = await _rows(session_factory, lecture.id)
    first = [r for r in rows if r.student_id == students[0].id]
    assert len(first) == 1
    assert first[0].updated_at is None


async def test_mark_all_ignores_last_week(client, seed, session_factory, ty_a_class):
    lecture, students, _ = ty_a_class
    await seed(*[make_mark(lecture, s, "present", LAST_WEEK) for s in students])

    response = await client.post("/attendance/mark-all", json={"lecture_id": lecture.id, "class_year": "TY"})

    assert response.json()["updated"] == len(students)
    rows = await _rows(session_factory, lecture.id)
    assert len(rows) == 2 * len(students)


async def test_mark_all_failure_does_not_roll_back_siblings(db, session_factory, ty_a_class, monkeypatch):
    lecture, students, _ = ty_a_class
    real_write = marking.write_mark
    failing_id = students[1].id

    async def flaky_write(session, **kwargs):
        if kwargs["student_id"] == failing_id:
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return await real_write(session, **kwargs)

    monkeypatch.setattr(marking, "write_mark", flaky_write)

    result = await mark_all_present(db, lecture.id, "TY", NOW, user_id=7)

    assert (result.updated, result.failed, result.unchanged) == (2, 1, 0)
    rows = await _rows(session_factory, lecture.id)
    assert {r.student_id for r in rows} == {students[0].id, students[2].id}


async def test_mark_all_errors(client, ty_a_class):
    lecture, _, _ = ty_a_class

    missing = await client.post("/attendance/mark-all", json={"lecture_id": 999, "class_year": "TY"})
    mismatch = await client.post("/attendance/mark-all", json={"lecture_id": lecture.id, "class_year": "FY"})

    assert missing.status_code == 404
    assert mismatch.status_code == 400


async def test_mark_all_on_empty_class(client, seed):
    lecture = make_lecture(class_year="BE", division="C")
    await seed(lecture)

    response = await client.post("/attendance/mark-all", json={"lecture_id": lecture.id, "class_year": "BE"})

    assert response.status_code == 200
    assert response.json()["total"] == 0


async def test_reset_deletes_all_rows(client, seed, session_factory, ty_a_class):
    lecture, students, _ = ty_a_class
    await seed(
        make_mark(lecture, students[0], "present", LAST_WEEK),
        make_mark(lecture, students[1], "absent", NOW),
    )

    response = await client.delete(f"/attendance/{lecture.id}")

    assert response.json() == {"success": True, "deleted": 2}
    assert await _rows(session_factory, lecture.id) == []
    assert (await client.delete("/attendance/999")).status_code == 404


async def test_remarking_dated_lecture_from_earlier_week_updates_row(client, seed, session_factory):
    lecture = make_lecture(subject="Guest Talk", day_of_week=None, date=date(2026, 10, 17))
    student = make_student("Asha Patil", roll_number="TYA01")
    await seed(lecture, student)
    earlier, = await seed(make_mark(lecture, student, "present", datetime(2026, 10, 17, 11, 0)))

    response = await client.post("/attendance/mark", json={
        "lecture_id": lecture.id, "student_id": student.id, "status": "absent", "user_id": 7,
    })

    assert response.json()["attendance_id"] == earlier.id
    rows = await _rows(session_factory, lecture.id)
    assert [(r.id, r.status) for r in rows] == [(earlier.id, "absent")]


async def test_mark_all_on_dated_lecture_counts_earlier_marks(client, seed, session_factory):
    lecture = make_lecture(subject="Guest Talk", day_of_week=None, date=date(2026, 10, 17))
    attended = make_student("Asha Patil", roll_number="TYA01")
    missing = make_student("Bilal Khan", roll_number="TYA02")
    await seed(lecture, attended, missing)
    await seed(make_mark(lecture, attended, "late", datetime(2026, 10, 17, 11, 0)))

    response = await client.post("/attendance/mark-all", json={"lecture_id": lecture.id, "class_year": "TY"})

    body = response.json()
    assert (body["updated"], body["unchanged"]) == (1, 1)
    rows = await _rows(session_factory, lecture.id)
    assert sorted(r.status for r in rows) == ["late", "present"]
