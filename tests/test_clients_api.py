async def test_create_and_get_client(client, auth_headers, create_client_record):
    created = await create_client_record(auth_headers, email="Levi@Builder.co.il", contact_person="Moshe Levi")

    assert created["email"] == "levi@builder.co.il"
    assert created["version"] == 1

    response = await client.get(f"/clients/{created['id']}", headers=auth_headers)
    assert response.status_code == 200
    detail = response.json()["data"]
    assert detail["contact_person"] == "Moshe Levi"
    assert detail["quotes"] == []
    assert detail["projects"] == []


async def test_duplicate_email_per_user(client, register, create_client_record):
    owner, _ = await register()
    other, _ = await register(email="other@builder.co.il")

    await create_client_record(owner)
    response = await client.post(
        "/clients/",
        json={"name": "Levi Again", "email": "LEVI@builder.co.il", "phone": "052-1111111", "address": "Haifa"},
        headers=owner,
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "CLIENT_EMAIL_EXISTS"

    # another contractor may have the same client
    await create_client_record(other)


async def test_clients_are_private(client, register, create_client_record):
    owner, _ = await register()
    stranger, _ = await register(email="stranger@builder.co.il")
    created = await create_client_record(owner)

    response = await client.get(f"/clients/{created['id']}", headers=stranger)
    assert response.status_code == 404
    assert response.json()["error_code"] == "CLIENT_NOT_FOUND"

    response = await client.get("/clients/", headers=stranger)
    assert response.json()["data"]["total"] == 0


async def test_list_search_and_paging(client, auth_headers, create_client_record):
    await create_client_record(auth_headers, name="Levi Family", email="levi@builder.co.il")
    await create_client_record(auth_headers, name="Mizrahi Ltd", email="office@mizrahi.co.il")
    await create_client_record(auth_headers, name="Ben David", email="ben@builder.co.il")

    response = await client.get(
        "/clients/", params={"sort_by": "name", "sort_order": "asc", "page_size": 2}, headers=auth_headers
    )
    data = response.json()["data"]
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert [c["name"] for c in data["items"]] == ["Ben David", "Levi Family"]
    assert data["items"][0]["quotes_count"] == 0

    response = await client.get("/clients/", params={"search": "mizrahi"}, headers=auth_headers)
    assert [c["name"] for c in response.json()["data"]["items"]] == ["Mizrahi Ltd"]


async def test_quick_search(client, auth_headers, create_client_record):
    await create_client_record(auth_headers, name="Levi Family", email="levi@builder.co.il")
    await create_client_record(auth_headers, name="Mizrahi Ltd", email="office@mizrahi.co.il")

    response = await client.get("/clients/search", params={"q": "lev"}, headers=auth_headers)
    assert [c["name"] for c in response.json()["data"]] == ["Levi Family"]

    response = await client.get("/clients/search", params={"q": "  "}, headers=auth_headers)
    assert response.json()["data"] == []


async def test_update_with_version(client, auth_headers, create_client_record):
    created = await create_client_record(auth_headers)

    response = await client.put(
        f"/clients/{created['id']}",
        json={"phone": "054-9999999", "version": 1},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["version"] == 2

    # stale version
    response = await client.put(
        f"/clients/{created['id']}",
        json={"phone": "054-8888888", "version": 1},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "CLIENT_VERSION_CONFLICT"
    assert response.json()["details"]["current_version"] == 2

    response = await client.put(
        f"/clients/{created['id']}",
        json={"phone": "054-9999999", "version": 2},
        headers=auth_headers,
    )
    assert response.status_code == 400


async def test_update_email_collision(client, auth_headers, create_client_record):
    await create_client_record(auth_headers, email="levi@builder.co.il")
    second = await create_client_record(auth_headers, name="Mizrahi Ltd", email="office@mizrahi.co.il")

    response = await client.put(
        f"/clients/{second['id']}",
        json={"email": "levi@builder.co.il", "version": 1},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "CLIENT_EMAIL_EXISTS"


async def test_delete_client(client, auth_headers, create_client_record, create_quote):
    free = await create_client_record(auth_headers)
    busy = await create_client_record(auth_headers, name="Mizrahi Ltd", email="office@mizrahi.co.il")
    await create_quote(auth_headers, busy["id"])

    response = await client.delete(f"/clients/{busy['id']}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "CLIENT_HAS_QUOTES"

    response = await client.delete(f"/clients/{free['id']}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.get(f"/clients/{free['id']}", headers=auth_headers)
    assert response.status_code == 404


async def test_client_detail_lists_quotes(client, auth_headers, create_client_record, create_quote):
    created = await create_client_record(auth_headers)
    quote = await create_quote(auth_headers, created["id"])

    response = await client.get("/clients/", headers=auth_headers)
    assert response.json()["data"]["items"][0]["quotes_count"] == 1

    response = await client.get(f"/clients/{created['id']}", headers=auth_headers)
    quotes = response.json()["data"]["quotes"]
    assert [q["quote_number"] for q in quotes] == [quote["quote_number"]]


async def test_delete_client_with_projects(client, auth_headers, create_client_record):
    customer = await create_client_record(auth_headers)
    response = await client.post(
        "/projects/", json={"client_id": customer["id"], "name": "Garden deck", "budget": "1000"}, headers=auth_headers
    )
    assert response.status_code == 201

    response = await client.delete(f"/clients/{customer['id']}", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "CLIENT_HAS_PROJECTS"
