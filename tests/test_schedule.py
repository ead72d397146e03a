from datetime import timedelta

from app.db.models.database import Chapter, LiveStream, Purchase
from app.libs.formats.datetime import now

# ==============================
# 🎥 LIVESTREAMS
# ==============================


async def test_teacher_creates_and_student_joins_stream(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher)
    await add(
        Chapter(course_id=course.id, title="Intro", position=1, is_published=True),
        Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"),
    )
    teacher_headers = await login(teacher)

    res = await client.post(
        "/api/v1/teacher/livestreams",
        json={
            "course_id": str(course.id),
            "title": "Revision",
            "meeting_url": "https://zoom.us/j/1234567890",
        },
        headers=teacher_headers,
    )
    assert res.status_code == 201, res.text
    stream = res.json()
    assert stream["meeting_type"] == "zoom"
    assert stream["meeting_id"] == "1234567890"
    assert stream["position"] == 2
    assert stream["duration"] == 60

    await client.patch(f"/api/v1/teacher/livestreams/{stream['id']}/publish", headers=teacher_headers)

    headers = await login(student)
    url = f"/api/v1/courses/{course.id}/livestreams/{stream['id']}"
    res = await client.get(url, headers=headers)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["embed_url"] == "https://zoom.us/meeting/join/1234567890"
    assert body["previous_content_type"] == "chapter"
    assert body["next_content_id"] is None

    assert (await client.post(f"{url}/attend", headers=headers)).json() == {"success": True}
    await client.post(f"{url}/attend", headers=headers)

    streams = (await client.get("/api/v1/teacher/livestreams", headers=await login(teacher))).json()
    assert streams[0]["attendance_count"] == 1


async def test_invalid_meeting_url(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher)
    res = await client.post(
        "/api/v1/teacher/livestreams",
        json={"course_id": str(course.id), "title": "Live", "meeting_url": "https://example.com/x"},
        headers=await login(teacher),
    )
    assert res.status_code == 400


async def test_ended_stream_is_gone(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher, is_free=True)
    stream = await add(
        LiveStream(
            course_id=course.id,
            created_by=teacher.id,
            title="Old session",
            meeting_url="https://meet.google.com/abc-defg-hij",
            meeting_type="google_meet",
            meeting_id="abc-defg-hij",
            scheduled_at=now() - timedelta(hours=3),
            duration=60,
            is_published=True,
        )
    )
    res = await client.get(
        f"/api/v1/courses/{course.id}/livestreams/{stream.id}", headers=await login(student)
    )
    assert res.status_code == 410


async def test_stream_needs_purchase(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher)
    stream = await add(
        LiveStream(
            course_id=course.id,
            created_by=teacher.id,
            title="Paid session",
            meeting_url="https://zoom.us/j/1234567890",
            meeting_type="zoom",
            is_published=True,
        )
    )
    res = await client.get(
        f"/api/v1/courses/{course.id}/livestreams/{stream.id}", headers=await login(student)
    )
    assert res.status_code == 403


# ==============================
# 🗓 TIMETABLES
# ==============================


async def test_timetable_crud_and_visibility(client, make_user, make_course, add, login):
    admin = await make_user("ADMIN")
    teacher = await make_user("TEACHER")
    student = await make_user()
    outsider = await make_user()
    course = await make_course(teacher)
    await add(Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"))
    admin_headers = await login(admin)

    res = await client.post(
        "/api/v1/timetables",
        json={
            "course_id": str(course.id),
            "day_of_week": 2,
            "start_time": "16:00",
            "end_time": "17:30",
            "title": "Algebra",
        },
        headers=admin_headers,
    )
    assert res.status_code in (200, 201), res.text
    timetable_id = res.json()["id"]

    res = await client.patch(
        f"/api/v1/timetables/{timetable_id}", json={"end_time": "15:00"}, headers=admin_headers
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "End time must be after start time"

    res = await client.patch(
        f"/api/v1/timetables/{timetable_id}", json={"start_time": "25:00"}, headers=admin_headers
    )
    assert res.status_code == 422

    student_view = (await client.get("/api/v1/timetables", headers=await login(student))).json()
    assert [t["title"] for t in student_view] == ["Algebra"]

    teacher_view = (
        await client.get(f"/api/v1/timetables/course/{course.id}", headers=await login(teacher))
    ).json()
    assert len(teacher_view) == 1

    res = await client.get(f"/api/v1/timetables/course/{course.id}", headers=await login(outsider))
    assert res.status_code == 403

    res = await client.delete(f"/api/v1/timetables/{timetable_id}", headers=await login(admin))
    assert res.status_code == 204


async def test_only_admins_write_timetables(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher)
    res = await client.post(
        "/api/v1/timetables",
        json={
            "course_id": str(course.id),
            "day_of_week": 1,
            "start_time": "10:00",
            "end_time": "11:00",
            "title": "Physics",
        },
        headers=await login(teacher),
    )
    assert res.status_code == 403


async def test_parents_cannot_read_timetables(client, make_user, login):
    parent = await make_user("PARENT")
    res = await client.get("/api/v1/timetables", headers=await login(parent))
    assert res.status_code == 403
