from app.db.models.database import Chapter, HomeworkSubmission, Purchase
from app.services.shares.currency_service import reset_rates_cache

# ==============================
# 🧩 ACTIVITIES AND HOMEWORK
# ==============================


async def test_activity_submissions_are_counted(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher)
    chapter = await add(Chapter(course_id=course.id, title="Intro", position=1, is_published=True))
    await add(Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"))
    teacher_headers = await login(teacher)

    res = await client.post(
        f"/api/v1/teacher/chapters/{chapter.id}/activities",
        json={"title": " Draw a cell ", "description": "Label every part"},
        headers=teacher_headers,
    )
    assert res.status_code == 201, res.text
    activity = res.json()
    assert activity["title"] == "Draw a cell"

    res = await client.post(
        f"/api/v1/courses/{course.id}/chapters/{chapter.id}/activities/{activity['id']}/submission",
        json={"image_url": "https://cdn.example.com/cell.png"},
        headers=await login(student),
    )
    assert res.status_code == 200, res.text

    activities = (
        await client.get(
            f"/api/v1/teacher/chapters/{chapter.id}/activities", headers=await login(teacher)
        )
    ).json()
    assert activities[0]["submission_count"] == 1


async def test_activity_needs_title(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher)
    chapter = await add(Chapter(course_id=course.id, title="Intro", position=1))
    res = await client.post(
        f"/api/v1/teacher/chapters/{chapter.id}/activities",
        json={"title": "  "},
        headers=await login(teacher),
    )
    assert res.status_code == 400


async def test_homework_correction(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    other = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher)
    chapter = await add(Chapter(course_id=course.id, title="Intro", position=1, is_published=True))
    homework = await add(
        HomeworkSubmission(
            student_id=student.id, chapter_id=chapter.id, image_url="https://cdn.example.com/hw.png"
        )
    )
    url = f"/api/v1/teacher/homework/{chapter.id}"
    body = {"homework_id": str(homework.id), "corrected_image_url": "https://cdn.example.com/fix.png"}

    res = await client.patch(url, json=body, headers=await login(other))
    assert res.status_code == 403

    headers = await login(teacher)
    res = await client.patch(url, json=body, headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["corrected_image_urls"] == ["https://cdn.example.com/fix.png"]
    assert res.json()["student"]["id"] == str(student.id)

    res = await client.patch(url, json={"homework_id": str(homework.id)}, headers=headers)
    assert res.status_code == 400

    listing = (await client.get(url, headers=headers)).json()
    assert len(listing) == 1


# ==============================
# 🎓 STUDENT ACCOUNTS
# ==============================


async def test_teacher_creates_student_without_parent(client, make_user, login):
    teacher = await make_user("TEACHER")
    res = await client.post(
        "/api/v1/teacher/create-account",
        json={
            "full_name": "Mona Adel",
            "phone_number": "01055554444",
            "email": "mona@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "grade": "3",
        },
        headers=await login(teacher),
    )
    assert res.status_code == 200, res.text
    assert res.json()["success"] is True
    assert res.json()["user"]["role"] == "USER"


async def test_only_teachers_create_accounts(client, make_user, login):
    admin = await make_user("ADMIN")
    res = await client.post(
        "/api/v1/teacher/create-account",
        json={"full_name": "X"},
        headers=await login(admin),
    )
    assert res.status_code == 403


async def test_teacher_sees_own_students(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    mine = await make_user()
    await make_user()
    course = await make_course(teacher)
    await add(Purchase(user_id=mine.id, course_id=course.id, status="ACTIVE"))

    users = (await client.get("/api/v1/teacher/users", headers=await login(teacher))).json()
    assert [u["id"] for u in users] == [str(mine.id)]
    assert users[0]["counts"]["purchases"] == 1


# ==============================
# 🏅 CERTIFICATES
# ==============================


async def test_certificates_reach_student_and_parent(client, make_user, login):
    teacher = await make_user("TEACHER")
    parent = await make_user("PARENT")
    student = await make_user(parent_phone_number=parent.phone_number)

    res = await client.post(
        "/api/v1/certificates",
        json={
            "student_id": str(student.id),
            "image_url": "https://cdn.example.com/cert.png",
            "title": "Top of class",
        },
        headers=await login(teacher),
    )
    assert res.status_code == 200, res.text
    assert res.json()["teacher"]["id"] == str(teacher.id)

    mine = (
        await client.get("/api/v1/certificates/my-certificates", headers=await login(student))
    ).json()
    assert [c["title"] for c in mine] == ["Top of class"]
    assert "email" not in mine[0]["student"]

    children = (await client.get("/api/v1/parent/certificates", headers=await login(parent))).json()
    assert len(children) == 1


async def test_certificate_needs_a_student(client, make_user, login):
    teacher = await make_user("TEACHER")
    other_teacher = await make_user("TEACHER")
    headers = await login(teacher)

    res = await client.post("/api/v1/certificates", json={"title": "x"}, headers=headers)
    assert res.status_code == 400

    res = await client.post(
        "/api/v1/certificates",
        json={"student_id": str(other_teacher.id), "image_url": "https://cdn.example.com/c.png"},
        headers=headers,
    )
    assert res.status_code == 404


# ==============================
# 💬 STUDENT MESSAGES
# ==============================


async def test_messages_are_filtered_by_target(client, make_user, login):
    supervisor = await make_user("SUPERVISOR")
    admin = await make_user("ADMIN")
    student = await make_user(curriculum="egyptian", grade="3")
    headers = await login(supervisor)

    res = await client.post("/api/v1/admin/messages", json={"message": "Exams on Sunday"}, headers=headers)
    assert res.status_code == 200, res.text
    general = res.json()
    await client.post(
        "/api/v1/admin/messages",
        json={"message": "Grade 2 only", "target_grade": "2"},
        headers=headers,
    )
    res = await client.post("/api/v1/admin/messages", json={"message": " "}, headers=headers)
    assert res.status_code == 400

    seen = (await client.get("/api/v1/dashboard/messages", headers=await login(student))).json()
    assert [m["message"] for m in seen] == ["Exams on Sunday"]

    res = await client.patch(
        f"/api/v1/admin/messages/{general['id']}",
        json={"message": "Exams on Sunday", "is_active": False},
        headers=headers,
    )
    assert res.status_code == 403

    admin_headers = await login(admin)
    res = await client.patch(
        f"/api/v1/admin/messages/{general['id']}",
        json={"message": "Exams on Sunday", "is_active": False},
        headers=admin_headers,
    )
    assert res.status_code == 200

    seen = (await client.get("/api/v1/dashboard/messages", headers=await login(student))).json()
    assert seen == []

    res = await client.delete(f"/api/v1/admin/messages/{general['id']}", headers=await login(admin))
    assert res.json() == {"message": "Message deleted"}


# ==============================
# 📊 DASHBOARDS
# ==============================


async def test_student_dashboard(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher, title="Algebra")
    chapter = await add(Chapter(course_id=course.id, title="Intro", position=1, is_published=True))
    await add(
        Chapter(course_id=course.id, title="Next", position=2, is_published=True),
        Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"),
    )
    headers = await login(student)
    await client.put(f"/api/v1/courses/{course.id}/chapters/{chapter.id}/progress", headers=headers)

    body = (await client.get("/api/v1/dashboard/student", headers=headers)).json()
    assert body["student_stats"]["total_courses"] == 1
    assert body["student_stats"]["completed_chapters"] == 1
    assert body["courses_with_progress"][0]["progress"] == 50
    assert body["user"]["points"] == 10

    new_content = (await client.get("/api/v1/student/new-content", headers=headers)).json()
    assert {item["title"] for item in new_content["new_content"]} == {"Intro", "Next"}


async def test_new_content_is_empty_for_teachers(client, make_user, login):
    teacher = await make_user("TEACHER")
    res = await client.get("/api/v1/student/new-content", headers=await login(teacher))
    assert res.json() == {"new_content": []}


async def test_parent_sees_children(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    parent = await make_user("PARENT")
    child = await make_user(parent_phone_number=parent.phone_number)
    course = await make_course(teacher)
    await add(Purchase(user_id=child.id, course_id=course.id, status="ACTIVE"))

    children = (await client.get("/api/v1/parent/children", headers=await login(parent))).json()
    assert [c["id"] for c in children] == [str(child.id)]
    assert children[0]["courses_count"] == 1

    res = await client.get("/api/v1/parent/children", headers=await login(child))
    assert res.status_code == 403


async def test_admin_teacher_overview(client, make_user, make_course, login):
    admin = await make_user("ADMIN")
    teacher = await make_user("TEACHER")
    await make_course(teacher)
    await make_course(teacher, is_published=False)

    teachers = (await client.get("/api/v1/admin/teachers", headers=await login(admin))).json()
    assert teachers[0]["id"] == str(teacher.id)
    assert (teachers[0]["total_courses"], teachers[0]["published_courses"]) == (2, 1)


# ==============================
# 💱 EXCHANGE RATES
# ==============================


async def test_exchange_rates_are_cached(client):
    reset_rates_cache()
    first = (await client.get("/api/v1/exchange-rates")).json()
    assert first == {"success": True, "rates": {"EGP": 1.0, "USD": 0.02}, "cached": False}

    second = (await client.get("/api/v1/exchange-rates")).json()
    assert second["cached"] is True
    reset_rates_cache()
