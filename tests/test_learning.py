import asyncio

from app.db.models.database import Chapter, LiveStream, Purchase, User


async def _enrolled(make_user, make_course, add):
    teacher = await make_user("TEACHER")
    student = await make_user()
    course = await make_course(teacher)
    chapter = await add(Chapter(course_id=course.id, title="Intro", position=1, is_published=True))
    await add(Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"))
    return teacher, student, course, chapter


async def test_completing_a_chapter_awards_points_once(client, make_user, make_course, add, fetch, login):
    _, student, course, chapter = await _enrolled(make_user, make_course, add)
    headers = await login(student)
    url = f"/api/v1/courses/{course.id}/chapters/{chapter.id}/progress"

    res = await client.put(url, headers=headers)
    assert res.status_code == 200
    assert res.json()["is_completed"] is True
    await client.put(url, headers=headers)
    assert (await fetch(User, student.id)).points == 10

    res = await client.delete(url, headers=headers)
    assert res.status_code == 204
    assert (await fetch(User, student.id)).points == 0

    res = await client.delete(url, headers=headers)
    assert res.status_code == 404


async def test_progress_requires_login(client, make_user, make_course, add):
    _, _, course, chapter = await _enrolled(make_user, make_course, add)
    res = await client.put(f"/api/v1/courses/{course.id}/chapters/{chapter.id}/progress")
    assert res.status_code == 401


async def test_content_is_merged_by_position(client, make_user, make_course, add, login):
    teacher, student, course, chapter = await _enrolled(make_user, make_course, add)
    await add(
        LiveStream(
            course_id=course.id,
            created_by=teacher.id,
            title="Live review",
            meeting_url="https://zoom.us/j/1234567890",
            meeting_type="zoom",
            position=2,
            is_published=True,
        ),
        Chapter(course_id=course.id, title="Draft", position=3, is_published=False),
    )

    res = await client.get(f"/api/v1/courses/{course.id}/content", headers=await login(student))
    assert res.status_code == 200
    assert [(item["type"], item["title"]) for item in res.json()] == [
        ("chapter", "Intro"),
        ("livestream", "Live review"),
    ]


async def test_homework_submission(client, make_user, make_course, add, login):
    _, student, course, chapter = await _enrolled(make_user, make_course, add)
    headers = await login(student)
    url = f"/api/v1/courses/{course.id}/chapters/{chapter.id}/homework"

    res = await client.post(url, json={"image_url": "https://cdn.example.com/hw.png"}, headers=headers)
    assert res.status_code in (200, 201), res.text
    res = await client.get(url, headers=headers)
    assert res.json()["image_url"] == "https://cdn.example.com/hw.png"


async def test_quiz_flow(client, make_user, make_course, add, login):
    teacher, student, course, _ = await _enrolled(make_user, make_course, add)
    teacher_headers = await login(teacher)

    res = await client.post(
        "/api/v1/teacher/quizzes",
        json={
            "course_id": str(course.id),
            "title": "Week 1",
            "max_attempts": 1,
            "questions": [
                {"text": "2 + 2", "type": "MULTIPLE_CHOICE", "options": ["3", "4"], "correct_answer": 1, "points": 2},
                {"text": "Capital of Egypt", "type": "SHORT_ANSWER", "correct_answer": "Cairo"},
            ],
        },
        headers=teacher_headers,
    )
    assert res.status_code == 201, res.text
    quiz = res.json()
    assert quiz["position"] == 2
    assert quiz["questions"][0]["correct_answer"] == "4"

    res = await client.patch(
        f"/api/v1/teacher/quizzes/{quiz['id']}/publish",
        json={"is_published": True},
        headers=teacher_headers,
    )
    assert res.status_code == 200

    headers = await login(student)
    base = f"/api/v1/courses/{course.id}/quizzes/{quiz['id']}"
    taking = (await client.get(base, headers=headers)).json()
    assert "correct_answer" not in taking["questions"][0]
    assert taking["current_attempt"] == 1

    mc, short = taking["questions"]
    res = await client.post(
        f"{base}/submit",
        json={"answers": [{"question_id": mc["id"], "answer": "4"}, {"question_id": short["id"], "answer": "cairo"}]},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    assert (res.json()["score"], res.json()["total_points"], res.json()["percentage"]) == (3, 3, 100)

    res = await client.post(f"{base}/submit", json={"answers": []}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Maximum attempts reached for this quiz"

    result = (await client.get(f"{base}/result", headers=headers)).json()
    assert result["attempt_number"] == 1


async def test_quiz_requires_course_access(client, make_user, make_course, add, login):
    teacher, _, course, _ = await _enrolled(make_user, make_course, add)
    outsider = await make_user()
    res = await client.post(
        "/api/v1/teacher/quizzes",
        json={"course_id": str(course.id), "title": "Locked"},
        headers=await login(teacher),
    )
    quiz_id = res.json()["id"]
    await client.patch(
        f"/api/v1/teacher/quizzes/{quiz_id}/publish",
        json={"is_published": True},
        headers=await login(teacher),
    )

    res = await client.get(
        f"/api/v1/courses/{course.id}/quizzes/{quiz_id}", headers=await login(outsider)
    )
    assert res.status_code == 403


async def test_teachers_cannot_author_quizzes_in_foreign_courses(client, make_user, make_course, login):
    owner = await make_user("TEACHER")
    other = await make_user("TEACHER")
    course = await make_course(owner)
    res = await client.post(
        "/api/v1/teacher/quizzes",
        json={"course_id": str(course.id), "title": "Nope"},
        headers=await login(other),
    )
    assert res.status_code == 404


async def test_concurrent_completions_each_award_points(client, make_user, make_course, add, fetch, login):
    _, student, course, first = await _enrolled(make_user, make_course, add)
    chapters = [first] + [
        await add(Chapter(course_id=course.id, title=f"Part {i}", position=i, is_published=True))
        for i in range(2, 6)
    ]
    headers = await login(student)

    responses = await asyncio.gather(
        *(
            client.put(f"/api/v1/courses/{course.id}/chapters/{c.id}/progress", headers=headers)
            for c in chapters
        )
    )
    assert [r.status_code for r in responses] == [200] * 5
    assert (await fetch(User, student.id)).points == 50


async def test_reset_keeps_points_from_going_negative(
    client, make_user, make_course, add, fetch, login, session_factory
):
    _, student, course, chapter = await _enrolled(make_user, make_course, add)
    headers = await login(student)
    url = f"/api/v1/courses/{course.id}/chapters/{chapter.id}/progress"
    await client.put(url, headers=headers)

    async with session_factory() as session:
        (await session.get(User, student.id)).points = 4
        await session.commit()

    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await fetch(User, student.id)).points == 4


async def test_admin_quiz_edit_maps_option_index(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    supervisor = await make_user("SUPERVISOR")
    course = await make_course(teacher)
    quiz_id = (
        await client.post(
            "/api/v1/teacher/quizzes",
            json={"course_id": str(course.id), "title": "Draft"},
            headers=await login(teacher),
        )
    ).json()["id"]

    res = await client.patch(
        f"/api/v1/admin/quizzes/{quiz_id}",
        json={
            "title": "Week 2",
            "questions": [
                {"text": "Largest planet", "type": "MULTIPLE_CHOICE", "options": ["Mars", "Jupiter"], "correct_answer": 1},
                {"text": "Water boils at 100C", "type": "TRUE_FALSE", "correct_answer": "true"},
            ],
        },
        headers=await login(supervisor),
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["title"] == "Week 2"
    assert [q["correct_answer"] for q in body["questions"]] == ["Jupiter", "true"]
    assert [q["position"] for q in body["questions"]] == [1, 2]
