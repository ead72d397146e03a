from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from app.db.models.database import Chapter, Purchase, Subscription, SubscriptionPlan
from app.libs.formats.datetime import now


async def _subscriber(make_user, add, grade="3"):
    student = await make_user(curriculum="egyptian", grade=grade)
    plan = await add(SubscriptionPlan(curriculum="egyptian", grade=grade, price=Decimal("300")))
    await add(
        Subscription(
            user_id=student.id,
            plan_id=plan.id,
            status="ACTIVE",
            start_date=now() - timedelta(days=1),
            end_date=now() + timedelta(days=29),
        )
    )
    return student


async def _purchase_of(session_factory, student, course):
    async with session_factory() as session:
        return await session.scalar(
            select(Purchase).where(Purchase.user_id == student.id, Purchase.course_id == course.id)
        )


# ==============================
# 📣 PUBLISHING
# ==============================


async def test_publish_requires_complete_course(client, make_user, make_course, add, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher, is_published=False, description=None)
    headers = await login(teacher)

    res = await client.patch(f"/api/v1/courses/{course.id}/publish", headers=headers)
    assert res.status_code == 401
    assert res.json()["detail"] == "Missing required fields"

    # complete but the only chapter is a draft
    await client.patch(
        f"/api/v1/courses/{course.id}",
        json={"description": "Full syllabus", "image_url": "https://cdn.example.com/c.png"},
        headers=headers,
    )
    await add(Chapter(course_id=course.id, title="Draft", position=1, is_published=False))
    res = await client.patch(f"/api/v1/courses/{course.id}/publish", headers=headers)
    assert res.status_code == 401


async def test_publishing_grants_matching_subscribers(
    client, make_user, make_course, add, login, session_factory
):
    teacher = await make_user("TEACHER")
    student = await _subscriber(make_user, add)
    other_grade = await _subscriber(make_user, add, grade="2")
    course = await make_course(
        teacher,
        is_published=False,
        description="Algebra",
        image_url="https://cdn.example.com/a.png",
        target_curriculum="egyptian",
        target_grade="3",
    )
    await add(Chapter(course_id=course.id, title="Intro", position=1, is_published=True))

    res = await client.patch(f"/api/v1/courses/{course.id}/publish", headers=await login(teacher))
    assert res.status_code == 200, res.text
    assert res.json()["is_published"] is True
    assert res.json()["courses_granted"] == 1

    purchase = await _purchase_of(session_factory, student, course)
    assert purchase.status == "ACTIVE"
    assert purchase.price_paid is None
    assert await _purchase_of(session_factory, other_grade, course) is None


async def test_changing_targets_regrants_published_course(
    client, make_user, make_course, add, login, session_factory
):
    teacher = await make_user("TEACHER")
    student = await _subscriber(make_user, add)
    course = await make_course(teacher, target_curriculum="egyptian", target_grade="2")
    headers = await login(teacher)

    res = await client.patch(
        f"/api/v1/courses/{course.id}", json={"title": "Renamed"}, headers=headers
    )
    assert res.json()["courses_granted"] == 0

    res = await client.patch(
        f"/api/v1/courses/{course.id}", json={"target_grade": "3"}, headers=headers
    )
    assert res.status_code == 200, res.text
    assert res.json()["courses_granted"] == 1
    assert (await _purchase_of(session_factory, student, course)).status == "ACTIVE"


async def test_only_owner_or_admin_deletes_course(client, make_user, make_course, login):
    owner = await make_user("TEACHER")
    other = await make_user("TEACHER")
    admin = await make_user("ADMIN")
    course = await make_course(owner)
    second = await make_course(owner)

    res = await client.delete(f"/api/v1/courses/{course.id}", headers=await login(other))
    assert res.status_code == 403

    res = await client.delete(f"/api/v1/courses/{course.id}", headers=await login(owner))
    assert res.json() == {"success": True}
    res = await client.delete(f"/api/v1/courses/{second.id}", headers=await login(admin))
    assert res.json() == {"success": True}


# ==============================
# 📖 CHAPTERS
# ==============================


async def test_chapter_authoring(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher, is_published=False)
    headers = await login(teacher)
    base = f"/api/v1/courses/{course.id}/chapters"

    first = await client.post(base, json={"title": "Intro"}, headers=headers)
    second = await client.post(base, json={"title": "Equations"}, headers=headers)
    assert first.status_code == 201, first.text
    assert (first.json()["position"], second.json()["position"]) == (1, 2)
    chapter_url = f"{base}/{second.json()['id']}"

    res = await client.post(
        f"{chapter_url}/youtube", json={"youtube_url": "https://example.com/watch"}, headers=headers
    )
    assert res.status_code == 400

    res = await client.post(
        f"{chapter_url}/youtube",
        json={"youtube_url": "https://youtu.be/dQw4w9WgXcQ"},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    assert res.json()["youtube_video_id"] == "dQw4w9WgXcQ"

    res = await client.post(
        f"{chapter_url}/upload",
        json={"video_url": "https://cdn.example.com/lesson.mp4"},
        headers=headers,
    )
    assert res.json() == {"success": True, "url": "https://cdn.example.com/lesson.mp4"}

    chapter = (await client.get(chapter_url, headers=headers)).json()
    assert chapter["video_type"] == "UPLOAD"
    assert chapter["youtube_video_id"] is None

    res = await client.post(
        f"{chapter_url}/attachments",
        json={"name": " Worksheet ", "url": "https://cdn.example.com/w.pdf"},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    attachment = res.json()
    assert attachment["name"] == "Worksheet"
    assert [a["id"] for a in (await client.get(chapter_url, headers=headers)).json()["attachments"]] == [
        attachment["id"]
    ]

    res = await client.delete(f"{chapter_url}/attachments/{attachment['id']}", headers=headers)
    assert res.json() == {"success": True}
    assert (await client.get(chapter_url, headers=headers)).json()["attachments"] == []


async def test_attachment_must_belong_to_chapter(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    course = await make_course(teacher)
    headers = await login(teacher)
    base = f"/api/v1/courses/{course.id}/chapters"
    one = (await client.post(base, json={"title": "One"}, headers=headers)).json()
    two = (await client.post(base, json={"title": "Two"}, headers=headers)).json()

    attachment = (
        await client.post(
            f"{base}/{one['id']}/attachments",
            json={"name": "Notes", "url": "https://cdn.example.com/n.pdf"},
            headers=headers,
        )
    ).json()
    res = await client.delete(f"{base}/{two['id']}/attachments/{attachment['id']}", headers=headers)
    assert res.status_code == 403


async def test_foreign_teacher_cannot_add_chapters(client, make_user, make_course, login):
    owner = await make_user("TEACHER")
    other = await make_user("TEACHER")
    course = await make_course(owner)
    res = await client.post(
        f"/api/v1/courses/{course.id}/chapters", json={"title": "Nope"}, headers=await login(other)
    )
    assert res.status_code == 401
