from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from app.db.models.database import Purchase, Quiz, Subscription, SubscriptionPlan
from app.libs.formats.datetime import now
from app.services.shares.subscription_access import SubscriptionAccessService


async def _setup(make_user, make_course):
    admin = await make_user("ADMIN")
    teacher = await make_user("TEACHER")
    student = await make_user(curriculum="egyptian", grade="3")
    course = await make_course(teacher, target_curriculum="egyptian", target_grade="3")
    await make_course(teacher, target_curriculum="egyptian", target_grade="2")
    return admin, student, course


async def test_subscription_lifecycle(client, make_user, make_course, login, session_factory):
    admin, student, course = await _setup(make_user, make_course)
    admin_headers = await login(admin)

    res = await client.post(
        "/api/v1/admin/subscription-plans",
        json={"curriculum": "egyptian", "grade": "3", "price": 300, "duration": 30},
        headers=admin_headers,
    )
    assert res.status_code == 200, res.text
    plan_id = res.json()["id"]

    res = await client.post(
        "/api/v1/admin/subscription-plans",
        json={"curriculum": "egyptian", "grade": "3", "price": 250},
        headers=admin_headers,
    )
    assert res.status_code == 400

    headers = await login(student)
    plans = (await client.get("/api/v1/subscription-plans", headers=headers)).json()
    assert [p["id"] for p in plans] == [plan_id]

    body = {"plan_id": plan_id, "transaction_image": "https://cdn.example.com/receipt.png"}
    res = await client.post("/api/v1/subscriptions", json=body, headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["status"] == "PENDING"

    res = await client.post("/api/v1/subscriptions", json=body, headers=headers)
    assert res.status_code == 400

    admin_headers = await login(admin)
    requests = (
        await client.get(
            "/api/v1/admin/subscription-requests", params={"status": "PENDING"}, headers=admin_headers
        )
    ).json()
    assert len(requests) == 1

    res = await client.patch(
        f"/api/v1/admin/subscription-requests/{requests[0]['id']}",
        json={"action": "approve"},
        headers=admin_headers,
    )
    assert res.status_code == 200, res.text
    assert res.json()["courses_granted"] == 1
    assert res.json()["subscription"]["status"] == "ACTIVE"

    res = await client.patch(
        f"/api/v1/admin/subscription-requests/{requests[0]['id']}",
        json={"action": "deny"},
        headers=admin_headers,
    )
    assert res.json()["detail"] == "Request already processed"

    headers = await login(student)
    access = (await client.get(f"/api/v1/courses/{course.id}/access", headers=headers)).json()
    assert access["has_access"] is True

    # push the end date into the past
    async with session_factory() as session:
        subscription = await session.scalar(
            select(Subscription).where(Subscription.user_id == student.id)
        )
        subscription.end_date = now() - timedelta(days=1)
        await session.commit()

    # listing subscriptions expires overdue ones and revokes what they granted
    res = await client.get("/api/v1/subscriptions", headers=headers)
    assert res.json()[0]["status"] == "EXPIRED"

    access = (await client.get(f"/api/v1/courses/{course.id}/access", headers=headers)).json()
    assert access["has_access"] is False
    assert access["subscription_expired"] is True

    async with session_factory() as session:
        purchase = await session.scalar(
            select(Purchase).where(Purchase.user_id == student.id, Purchase.course_id == course.id)
        )
        subscription = await session.scalar(
            select(Subscription).where(Subscription.user_id == student.id)
        )
    assert purchase.status == "INACTIVE"
    assert subscription.status == "EXPIRED"


async def test_expiry_keeps_paid_purchases(client, make_user, make_course, add, login):
    _, student, course = await _setup(make_user, make_course)
    plan = await add(SubscriptionPlan(curriculum="egyptian", grade="3", price=Decimal("300")))
    await add(
        Subscription(
            user_id=student.id,
            plan_id=plan.id,
            status="ACTIVE",
            start_date=now() - timedelta(days=31),
            end_date=now() - timedelta(days=1),
        ),
        Purchase(user_id=student.id, course_id=course.id, status="ACTIVE", price_paid=Decimal("100")),
    )

    headers = await login(student)
    res = await client.get("/api/v1/subscriptions", headers=headers)
    assert res.json()[0]["status"] == "EXPIRED"

    access = (await client.get(f"/api/v1/courses/{course.id}/access", headers=headers)).json()
    assert access == {"has_access": True, "reason": "purchase"}


async def test_denied_request(client, make_user, make_course, login):
    admin, student, _ = await _setup(make_user, make_course)
    admin_headers = await login(admin)
    plan_id = (
        await client.post(
            "/api/v1/admin/subscription-plans",
            json={"curriculum": "egyptian", "grade": "3", "price": 300},
            headers=admin_headers,
        )
    ).json()["id"]

    headers = await login(student)
    await client.post(
        "/api/v1/subscriptions",
        json={"plan_id": plan_id, "transaction_image": "https://cdn.example.com/r.png"},
        headers=headers,
    )

    admin_headers = await login(admin)
    request_id = (
        await client.get("/api/v1/admin/subscription-requests", headers=admin_headers)
    ).json()[0]["id"]
    res = await client.patch(
        f"/api/v1/admin/subscription-requests/{request_id}",
        json={"action": "deny"},
        headers=admin_headers,
    )
    assert res.json()["subscription"]["status"] == "DENIED"
    assert res.json()["courses_granted"] == 0


async def test_subscription_routes_need_login(client):
    assert (await client.get("/api/v1/subscription-plans")).status_code == 401
    assert (await client.get("/api/v1/admin/subscription-plans")).status_code == 401


async def _overdue_subscriber(make_user, make_course, add):
    teacher = await make_user("TEACHER")
    student = await make_user(curriculum="egyptian", grade="3")
    course = await make_course(teacher, target_curriculum="egyptian", target_grade="3")
    plan = await add(SubscriptionPlan(curriculum="egyptian", grade="3", price=Decimal("300")))
    subscription = await add(
        Subscription(
            user_id=student.id,
            plan_id=plan.id,
            status="ACTIVE",
            start_date=now() - timedelta(days=31),
            end_date=now() - timedelta(days=1),
        )
    )
    return teacher, student, course, subscription


async def test_quiz_reports_expired_subscription(client, make_user, make_course, add, fetch, login):
    teacher, student, course, subscription = await _overdue_subscriber(make_user, make_course, add)
    quiz = await add(Quiz(course_id=course.id, title="Week 1", is_published=True))

    res = await client.get(
        f"/api/v1/courses/{course.id}/quizzes/{quiz.id}", headers=await login(student)
    )
    assert res.status_code == 403
    detail = res.json()["detail"]
    assert detail["error"] == "SUBSCRIPTION_EXPIRED"
    assert detail["subscription_end_date"] is not None

    # the expiry found while checking access is kept
    assert (await fetch(Subscription, subscription.id)).status == "EXPIRED"


async def test_expiry_job_revokes_granted_courses(make_user, make_course, add, fetch, session_factory):
    teacher, student, course, subscription = await _overdue_subscriber(make_user, make_course, add)
    granted = await add(Purchase(user_id=student.id, course_id=course.id, status="ACTIVE"))
    bought_course = await make_course(teacher, target_curriculum="egyptian", target_grade="3")
    bought = await add(
        Purchase(user_id=student.id, course_id=bought_course.id, status="ACTIVE", price_paid=Decimal("100"))
    )

    async with session_factory() as session:
        assert await SubscriptionAccessService(session).expire_overdue_subscriptions_async() == 1
    async with session_factory() as session:
        assert await SubscriptionAccessService(session).expire_overdue_subscriptions_async() == 0

    assert (await fetch(Subscription, subscription.id)).status == "EXPIRED"
    assert (await fetch(Purchase, granted.id)).status == "INACTIVE"
    assert (await fetch(Purchase, bought.id)).status == "ACTIVE"


async def test_grant_access_backfills_active_subscriptions(client, make_user, make_course, add, login, session_factory):
    admin, student, course = await _setup(make_user, make_course)
    plan = await add(SubscriptionPlan(curriculum="egyptian", grade="3", price=Decimal("300")))
    await add(
        Subscription(
            user_id=student.id,
            plan_id=plan.id,
            status="ACTIVE",
            start_date=now(),
            end_date=now() + timedelta(days=30),
        )
    )
    headers = await login(admin)

    res = await client.post("/api/v1/admin/subscriptions/grant-access", headers=headers)
    assert res.status_code == 200, res.text
    assert res.json() == {"success": True, "subscriptions_processed": 1, "courses_granted": 1}

    res = await client.post("/api/v1/admin/subscriptions/grant-access", headers=headers)
    assert res.json()["courses_granted"] == 0

    async with session_factory() as session:
        purchase = await session.scalar(
            select(Purchase).where(Purchase.user_id == student.id, Purchase.course_id == course.id)
        )
    assert purchase.status == "ACTIVE"


async def test_grant_access_is_admin_only(client, make_user, login):
    supervisor = await make_user("SUPERVISOR")
    res = await client.post("/api/v1/admin/subscriptions/grant-access", headers=await login(supervisor))
    assert res.status_code == 403
