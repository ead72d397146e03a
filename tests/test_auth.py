from datetime import timedelta

from sqlalchemy import select

from app.db.models.database import User
from app.libs.formats.datetime import now
from app.services.shares.session import SessionService

REGISTER_BODY = {
    "full_name": "Omar Khaled",
    "phone_number": "01011112222",
    "email": "omar@example.com",
    "parent_phone_number": "01099998888",
    "password": "secret123",
    "confirm_password": "secret123",
    "curriculum": "egyptian",
    "grade": "3",
    "recaptcha_token": "ok",
}


async def test_register_creates_student_and_parent(client, session_factory):
    res = await client.post("/api/v1/auth/register", json=REGISTER_BODY)
    assert res.status_code == 201, res.text
    assert res.json()["user"]["role"] == "USER"

    async with session_factory() as session:
        parent = await session.scalar(select(User).where(User.phone_number == "01099998888"))
    assert parent.role == "PARENT"
    assert parent.full_name == "Omar's Parent"
    assert parent.email == "parent_01099998888@mhm.academy"


async def test_register_reuses_existing_parent(client, make_user, session_factory):
    await make_user("PARENT", phone_number="01099998888")
    res = await client.post("/api/v1/auth/register", json=REGISTER_BODY)
    assert res.status_code == 201

    async with session_factory() as session:
        parents = (
            await session.scalars(select(User).where(User.phone_number == "01099998888"))
        ).all()
    assert len(parents) == 1


async def test_register_rejects_bad_input(client, make_user):
    res = await client.post("/api/v1/auth/register", json={**REGISTER_BODY, "recaptcha_token": "bad"})
    assert res.status_code == 400
    assert res.json()["detail"] == "reCAPTCHA verification failed"

    res = await client.post("/api/v1/auth/register", json={**REGISTER_BODY, "confirm_password": "other"})
    assert res.json()["detail"] == "Passwords do not match"

    res = await client.post(
        "/api/v1/auth/register",
        json={**REGISTER_BODY, "parent_phone_number": REGISTER_BODY["phone_number"]},
    )
    assert res.status_code == 400

    await make_user("TEACHER", phone_number="01099998888")
    res = await client.post("/api/v1/auth/register", json=REGISTER_BODY)
    assert res.json()["detail"] == "Parent phone number is already registered to another account"


async def test_login_errors(client, make_user):
    user = await make_user()
    res = await client.post(
        "/api/v1/auth/login", json={"phone_number": user.phone_number, "password": "nope"}
    )
    assert res.status_code == 401
    assert res.json()["detail"]["error_code"] == "WrongPassword"

    res = await client.post("/api/v1/auth/login", json={"phone_number": "000", "password": "x"})
    assert res.json()["detail"]["error_code"] == "UserNotFound"

    suspended = await make_user(is_suspended=True)
    res = await client.post(
        "/api/v1/auth/login",
        json={"phone_number": suspended.phone_number, "password": "secret123"},
    )
    assert res.status_code == 403


async def test_new_login_ends_previous_session(client, make_user, login):
    user = await make_user()
    first = await login(user)
    assert (await client.get("/api/v1/auth/me", headers=first)).status_code == 200

    second = await login(user)
    res = await client.get("/api/v1/auth/me", headers=first)
    assert res.status_code == 401
    assert res.json()["detail"] == "Session expired"
    assert (await client.get("/api/v1/auth/me", headers=second)).status_code == 200


async def test_logout_clears_session(client, make_user, login):
    user = await make_user()
    headers = await login(user)
    res = await client.post("/api/v1/auth/logout", headers=headers)
    assert res.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401


async def test_cookie_login(client, make_user):
    user = await make_user()
    await client.post(
        "/api/v1/auth/login", json={"phone_number": user.phone_number, "password": "secret123"}
    )
    res = await client.get("/api/v1/auth/session")
    assert res.status_code == 200
    assert res.json()["valid"] is True


async def test_redirect_endpoint(client, make_user, login):
    teacher = await make_user("TEACHER")
    headers = await login(teacher)
    res = await client.get("/api/v1/auth/redirect", params={"path": "/dashboard"}, headers=headers)
    assert res.json() == {
        "redirect": "/dashboard/teacher/courses",
        "dashboard": "/dashboard/teacher/courses",
    }

    res = await client.get("/api/v1/auth/redirect", params={"path": "/dashboard/parent"})
    assert res.json()["redirect"] == "/sign-in"


async def test_cleanup_ends_stale_sessions(make_user, fetch, session_factory):
    stale = await make_user(session_id="old", last_login_at=now() - timedelta(hours=25))
    fresh = await make_user(session_id="new", last_login_at=now() - timedelta(hours=1))

    async with session_factory() as session:
        assert await SessionService(session).cleanup_expired_sessions_async() == 1

    assert (await fetch(User, stale.id)).session_id is None
    assert (await fetch(User, fresh.id)).session_id == "new"
