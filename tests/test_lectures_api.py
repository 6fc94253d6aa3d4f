from datetime import date, timedelta

from conftest import NOW, LAST_WEEK, make_lecture, make_mark, make_student
from lecture_app.schemas.student_schema import StudentResponse


async def test_create_recurring_lecture(client):
    response = await client.post("/lectures", json={
        "subject": "Operating Systems",
        "class_year": "TY",
        "division": "A",
        "day_of_week": "monday",
        "start_time": "11:00",
        "end_time": "12:00",
        "room": "B-204",
        "scheduled_teacher_id": 3,
    })

    assert response.status_code == 201
    body = response.json()
    assert body["day_of_week"] == "Monday"
    assert body["status"] == "scheduled"
    assert body["stored_status"] == "scheduled"


async def test_create_lecture_validation(client):
    base = {
        "subject": "Networks",
        "class_year": "SY",
        "start_time": "10:00",
        "end_time": "11:00",
        "scheduled_teacher_id": 3,
    }

    no_slot = await client.post("/lectures", json=base)
    bad_day = await client.post("/lectures", json={**base, "day_of_week": "Funday"})
    backwards = await client.post("/lectures", json={**base, "day_of_week": "Friday", "end_time": "09:00"})
    bad_time = await client.post("/lectures", json={**base, "day_of_week": "Friday", "start_time": "9am"})

    assert no_slot.status_code == 422
    assert bad_day.status_code == 422
    assert backwards.status_code == 422
    assert bad_time.status_code == 422


async def test_list_lectures_by_teacher(client, seed):
    own = make_lecture(subject="Algorithms", scheduled_teacher_id=3)
    covering = make_lecture(subject="Databases", scheduled_teacher_id=5, substitute_teacher_id=3)
    other = make_lecture(subject="Graphics", scheduled_teacher_id=5)
    await seed(own, covering, other)

    response = await client.get("/lectures", params={"teacher_id": 3})

    assert response.status_code == 200
    assert {l["id"] for l in response.json()["lectures"]} == {own.id, covering.id}
    everything = await client.get("/lectures")
    assert len(everything.json()["lectures"]) == 3


async def test_schedule_for_weekday_is_ordered_and_reconciled(client, seed):
    late = make_lecture(subject="Compilers", start_time="14:00", end_time="15:00", status="completed")
    early = make_lecture(subject="Maths", start_time="08:00", end_time="09:00")
    tuesday = make_lecture(subject="Physics", day_of_week="Tuesday")
    student = make_student("Asha Patil")
    await seed(late, early, tuesday, student)
    await seed(
        make_mark(late, student, "present", LAST_WEEK),
        make_mark(early, student, "present", NOW - timedelta(days=2)),
    )

    response = await client.get("/lectures/schedule", params={"day": "Monday"})

    schedule = response.json()["schedule"]
    assert [l["subject"] for l in schedule] == ["Maths", "Compilers"]
    assert [l["status"] for l in schedule] == ["completed", "scheduled"]
    assert schedule[1]["stored_status"] == "completed"


async def test_schedule_for_date(client, seed):
    talk = make_lecture(subject="Guest Talk", day_of_week=None, date=date(2026, 10, 23), status="cancelled")
    weekly = make_lecture()
    await seed(talk, weekly)

    response = await client.get("/lectures/schedule", params={"day": "2026-10-23"})

    schedule = response.json()["schedule"]
    assert [l["id"] for l in schedule] == [talk.id]
    assert schedule[0]["status"] == "cancelled"


async def test_schedule_rejects_unknown_day(client):
    response = await client.get("/lectures/schedule", params={"day": "someday"})
    assert response.status_code == 400


async def test_get_lecture_reports_effective_status(client, seed):
    lecture = make_lecture(status="completed")
    await seed(lecture)

    response = await client.get(f"/lectures/{lecture.id}")

    assert response.json()["status"] == "scheduled"
    assert response.json()["stored_status"] == "completed"
    assert (await client.get("/lectures/999")).status_code == 404


async def test_patch_status_only_changes_stored_hint(client, seed):
    weekly = make_lecture()
    dated = make_lecture(day_of_week=None, date=date(2026, 10, 30))
    await seed(weekly, dated)

    weekly_resp = await client.patch(f"/lectures/{weekly.id}/status", json={"status": "completed"})
    dated_resp = await client.patch(f"/lectures/{dated.id}/status", json={"status": "cancelled"})
    invalid = await client.patch(f"/lectures/{weekly.id}/status", json={"status": "finished"})

    assert weekly_resp.json()["stored_status"] == "completed"
    assert weekly_resp.json()["status"] == "scheduled"
    assert dated_resp.json()["status"] == "cancelled"
    assert invalid.status_code == 422


async def test_assign_substitute(client, seed):
    lecture = make_lecture(scheduled_teacher_id=7)
    await seed(lecture)

    same = await client.post(f"/lectures/{lecture.id}/substitute", json={"substitute_teacher_id": 7})
    response = await client.post(f"/lectures/{lecture.id}/substitute", json={"substitute_teacher_id": 9})
    missing = await client.post("/lectures/999/substitute", json={"substitute_teacher_id": 9})

    assert same.status_code == 400
    assert response.status_code == 200
    assert response.json()["substitute_teacher_id"] == 9
    assert response.json()["stored_status"] == "sub_assigned"
    assert missing.status_code == 404


async def test_update_details(client, seed):
    lecture = make_lecture()
    await seed(lecture)

    response = await client.post("/lectures/update-details", json={
        "id": lecture.id, "topic_covered": "AVL trees", "syllabus_topic_id": 12,
    })
    missing = await client.post("/lectures/update-details", json={"id": 999, "topic_covered": "x"})

    assert response.json()["success"] is True
    detail = (await client.get(f"/lectures/{lecture.id}")).json()
    assert detail["topic_covered"] == "AVL trees"
    assert detail["syllabus_topic_id"] == 12
    assert missing.status_code == 404


async def test_student_directory(client, seed):
    await seed(
        make_student("Asha Patil", roll_number="TYA01"),
        make_student("Bilal Khan", roll_number="TYA02"),
        make_student("Dev Shah", roll_number="TYB01", division="B"),
        make_student("Esha Nair", roll_number="SYA01", class_year="SY", department="Mechanical"),
    )

    first_page = await client.get("/students", params={"limit": 2})
    division_b = await client.get("/students", params={"class_year": "TY", "division": "B"})
    mechanical = await client.get("/students", params={"department": "Mechanical"})
    search = await client.get("/students", params={"search": "khan"})

    assert first_page.json()["total"] == 4
    assert first_page.json()["total_pages"] == 2
    assert len(first_page.json()["students"]) == 2
    assert [s["name"] for s in division_b.json()["students"]] == ["Dev Shah"]
    assert [s["name"] for s in mechanical.json()["students"]] == ["Esha Nair"]
    assert [s["roll_number"] for s in search.json()["students"]] == ["TYA02"]


async def test_create_and_fetch_student(client):
    response = await client.post("/students", json={
        "name": "Farah Ali",
        "roll_number": "TYA04",
        "class_year": "TY",
        "division": "A",
        "department": "Computer Science",
        "email": "farah.ali@pccoe.edu.in",
    })

    assert response.status_code == 201
    student_id = response.json()["id"]
    fetched = await client.get(f"/students/{student_id}")
    assert fetched.json()["email"] == "farah.ali@pccoe.edu.in"
    assert (await client.get("/students/999")).status_code == 404


def test_student_response_reads_orm_objects():
    student = make_student("Asha Patil", id=5, roll_number="TYA01", created_at=NOW)

    response = StudentResponse.model_validate(student)

    assert StudentResponse.model_config["from_attributes"] is True
    assert (response.id, response.roll_number, response.created_at) == (5, "TYA01", NOW)
