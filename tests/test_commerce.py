from decimal import Decimal

from sqlalchemy import select

from app.db.models.database import PromoCode, Purchase, User


async def test_promocode_request_and_issue(client, make_user, login):
    student = await make_user()
    teacher = await make_user("TEACHER")
    student_headers = await login(student)
    teacher_headers = await login(teacher)

    res = await client.post("/api/v1/user/promocode", headers=student_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "requested"

    res = await client.post("/api/v1/user/promocode", headers=student_headers)
    assert res.json()["detail"] == "You already have a pending request"

    res = await client.post(
        "/api/v1/admin/promocodes",
        json={"student_id": str(student.id), "discount_percentage": 20},
        headers=teacher_headers,
    )
    assert res.status_code == 200
    issued = res.json()
    assert issued["status"] == "approved"
    assert len(issued["code"]) == 8

    mine = (await client.get("/api/v1/user/promocode", headers=student_headers)).json()
    assert mine["promocode"]["code"] == issued["code"]
    assert mine["has_pending_request"] is False

    # an unused approved code blocks new requests
    res = await client.post("/api/v1/user/promocode", headers=student_headers)
    assert res.json()["detail"] == "You already have an unused promocode"

    listing = (await client.get("/api/v1/admin/promocodes", headers=teacher_headers)).json()
    row = next(r for r in listing if r["id"] == str(student.id))
    assert row["has_promocode"] is True


async def test_promocode_percentage_is_validated(client, make_user, login):
    student = await make_user()
    admin = await make_user("ADMIN")
    res = await client.post(
        "/api/v1/admin/promocodes",
        json={"student_id": str(student.id), "discount_percentage": 150},
        headers=await login(admin),
    )
    assert res.status_code == 422


async def test_students_cannot_issue_promocodes(client, make_user, login):
    student = await make_user()
    res = await client.post(
        "/api/v1/admin/promocodes",
        json={"student_id": str(student.id), "discount_percentage": 10},
        headers=await login(student),
    )
    assert res.status_code == 403


async def test_purchase_with_promocode(client, make_user, make_course, add, fetch, login):
    teacher = await make_user("TEACHER")
    admin = await make_user("ADMIN")
    student = await make_user()
    course = await make_course(teacher, price=Decimal("100.00"))
    other = await make_course(teacher, price=Decimal("10.00"))
    promo = await add(
        PromoCode(student_id=student.id, code="ABCD1234", discount_percentage=20, status="approved")
    )

    res = await client.patch(
        f"/api/v1/admin/users/{student.id}/balance",
        json={"new_balance": 100},
        headers=await login(admin),
    )
    assert res.status_code == 200

    headers = await login(student)
    res = await client.post(
        f"/api/v1/courses/{course.id}/purchase",
        json={"promo_code": "abcd1234"},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["discount_applied"] is True
    assert Decimal(str(body["price_paid"])) == Decimal("80.00")
    assert Decimal(str(body["balance"])) == Decimal("20.00")

    assert (await fetch(PromoCode, promo.id)).is_used is True
    assert (await fetch(User, student.id)).balance == Decimal("20.00")

    res = await client.post(f"/api/v1/courses/{course.id}/purchase", headers=headers)
    assert res.json()["detail"] == "Course already purchased"

    res = await client.post(
        f"/api/v1/courses/{other.id}/purchase",
        json={"promo_code": "ABCD1234"},
        headers=headers,
    )
    assert res.json()["detail"] == "Promocode already used"

    ledger = (await client.get("/api/v1/balance/transactions", headers=headers)).json()
    assert ledger["total_items"] == 2
    assert {tx["type"] for tx in ledger["items"]} == {"ADJUSTMENT", "PURCHASE"}


async def test_purchase_needs_balance(client, make_user, make_course, login, session_factory):
    teacher = await make_user("TEACHER")
    student = await make_user(balance=Decimal("5.00"))
    course = await make_course(teacher)

    res = await client.post(f"/api/v1/courses/{course.id}/purchase", headers=await login(student))
    assert res.status_code == 400
    assert res.json()["detail"] == "Insufficient balance"

    async with session_factory() as session:
        assert (await session.get(User, student.id)).balance == Decimal("5.00")
        assert await session.scalar(select(Purchase).where(Purchase.user_id == student.id)) is None


async def test_free_and_unpublished_courses_cannot_be_bought(client, make_user, make_course, login):
    teacher = await make_user("TEACHER")
    student = await make_user(balance=Decimal("500.00"))
    free = await make_course(teacher, is_free=True, price=None)
    draft = await make_course(teacher, is_published=False)
    headers = await login(student)

    res = await client.post(f"/api/v1/courses/{free.id}/purchase", headers=headers)
    assert res.json()["detail"] == "Course is free"
    res = await client.post(f"/api/v1/courses/{draft.id}/purchase", headers=headers)
    assert res.status_code == 404


async def test_balance_must_not_go_negative(client, make_user, login):
    admin = await make_user("ADMIN")
    student = await make_user()
    res = await client.patch(
        f"/api/v1/admin/users/{student.id}/balance",
        json={"new_balance": -1},
        headers=await login(admin),
    )
    assert res.status_code == 400


async def test_points(client, make_user, login):
    student = await make_user(points=3)
    headers = await login(student)
    assert (await client.get("/api/v1/user/points", headers=headers)).json() == {"points": 3}
    res = await client.post("/api/v1/user/points/add", headers=headers)
    assert res.json() == {"points": 13}
