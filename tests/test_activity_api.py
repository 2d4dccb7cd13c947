async def test_activity_feed_is_newest_first(client, auth_headers, create_client_record):
    await create_client_record(auth_headers, name="Levi Family")

    response = await client.get("/activity/", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert [a["message"] for a in data["items"]] == [
        "owner@builder.co.il created client Levi Family",
        "owner@builder.co.il registered",
    ]
    assert all(a["email_snapshot"] == "owner@builder.co.il" for a in data["items"])


async def test_activity_search_and_paging(client, auth_headers, create_client_record):
    await create_client_record(auth_headers, name="Levi Family", email="levi@builder.co.il")
    await create_client_record(auth_headers, name="Mizrahi Ltd", email="office@mizrahi.co.il")

    response = await client.get("/activity/", params={"search": "mizrahi"}, headers=auth_headers)
    assert response.json()["data"]["total"] == 1

    response = await client.get(
        "/activity/", params={"page_size": 1, "page": 3, "sort_order": "desc"}, headers=auth_headers
    )
    data = response.json()["data"]
    assert data["total_pages"] == 3
    assert data["items"][0]["message"] == "owner@builder.co.il registered"


async def test_activity_is_private(client, register, create_client_record):
    owner, _ = await register()
    stranger, _ = await register(email="stranger@builder.co.il")
    await create_client_record(owner)

    response = await client.get("/activity/", headers=stranger)
    messages = [a["message"] for a in response.json()["data"]["items"]]
    assert messages == ["stranger@builder.co.il registered"]
