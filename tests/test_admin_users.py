from io import BytesIO

import pandas as pd


async def test_list_users_with_search_and_paging(client, make_user, login):
    supervisor = await make_user("SUPERVISOR")
    await make_user(full_name="Salma Hassan")
    await make_user(full_name="Youssef Ali")
    headers = await login(supervisor)

    res = await client.get("/api/v1/admin/users", params={"search": "salma"}, headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["total_items"] == 1
    assert body["items"][0]["full_name"] == "Salma Hassan"

    res = await client.get(
        "/api/v1/admin/users",
        params={"role": "USER", "size": 1, "sort_by": "password"},
        headers=headers,
    )
    body = res.json()
    assert (body["total_pages"], body["has_next"]) == (2, True)


async def test_export_users_to_excel(client, make_user, login):
    admin = await make_user("ADMIN")
    await make_user(full_name="Salma Hassan")

    res = await client.get("/api/v1/admin/users/export", headers=await login(admin))
    assert res.status_code == 200
    assert "user_export.xlsx" in res.headers["content-disposition"]

    df = pd.read_excel(BytesIO(res.content), engine="openpyxl")
    assert set(df["Full name"]) >= {"Salma Hassan"}
    assert "Last login" in df.columns


async def test_suspend_user(client, make_user, login):
    admin = await make_user("ADMIN")
    supervisor = await make_user("SUPERVISOR")
    student = await make_user()
    student_headers = await login(student)
    admin_headers = await login(admin)

    res = await client.patch(
        f"/api/v1/admin/users/{student.id}/suspend",
        json={"is_suspended": True},
        headers=admin_headers,
    )
    assert res.json() == {"message": "User suspended", "is_suspended": True}

    # the active session is dropped with the suspension
    res = await client.get("/api/v1/user/points", headers=student_headers)
    assert res.status_code == 401

    res = await client.patch(
        f"/api/v1/admin/users/{supervisor.id}/suspend",
        json={"is_suspended": True},
        headers=admin_headers,
    )
    assert res.status_code == 400
