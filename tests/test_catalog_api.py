from decimal import Decimal

import pytest

from qbuilder.constants.professions import DEFAULT_PROFESSIONS


@pytest.fixture
async def profession(client, admin_headers):
    response = await client.post(
        "/professions/",
        json={"name": "tiling", "name_hebrew": "ריצוף"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_professions_require_admin_to_write(client, auth_headers):
    response = await client.post(
        "/professions/", json={"name": "tiling", "name_hebrew": "ריצוף"}, headers=auth_headers
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "PERMISSION_DENIED"

    response = await client.get("/professions/", headers=auth_headers)
    assert response.status_code == 200


async def test_seed_is_idempotent(client, admin_headers):
    response = await client.post("/professions/seed", headers=admin_headers)
    assert response.json()["data"] == {"created": len(DEFAULT_PROFESSIONS), "existing": 0}

    response = await client.post("/professions/seed", headers=admin_headers)
    assert response.json()["data"] == {"created": 0, "existing": len(DEFAULT_PROFESSIONS)}

    response = await client.get("/professions/", headers=admin_headers)
    assert len(response.json()["data"]) == len(DEFAULT_PROFESSIONS)


async def test_profession_name_unique(client, admin_headers, profession):
    response = await client.post(
        "/professions/", json={"name": "Tiling", "name_hebrew": "ריצוף"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "PROFESSION_EXISTS"


async def test_update_and_delete_profession(client, admin_headers, profession):
    response = await client.put(
        f"/professions/{profession['id']}", json={"name_hebrew": "ריצוף וחיפוי"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["name_hebrew"] == "ריצוף וחיפוי"

    response = await client.delete(f"/professions/{profession['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/professions/{profession['id']}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "PROFESSION_NOT_FOUND"


async def test_catalog_item_crud(client, admin_headers, auth_headers, profession):
    response = await client.post(
        "/catalog/",
        json={
            "profession_id": profession["id"],
            "name": "Floor tiling",
            "unit": "sqm",
            "default_price": "120.00",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    item = response.json()["data"]
    assert item["profession_name"] == "tiling"
    assert item["profession_name_hebrew"] == "ריצוף"

    # contractors read the shared catalog but cannot change it
    response = await client.get(f"/catalog/{item['id']}", headers=auth_headers)
    assert response.status_code == 200
    response = await client.delete(f"/catalog/{item['id']}", headers=auth_headers)
    assert response.status_code == 403

    response = await client.put(
        f"/catalog/{item['id']}", json={"default_price": "135.50"}, headers=admin_headers
    )
    assert Decimal(response.json()["data"]["default_price"]) == Decimal("135.50")

    response = await client.put(
        f"/catalog/{item['id']}", json={"default_price": None}, headers=admin_headers
    )
    assert response.json()["data"]["default_price"] is None

    response = await client.delete(f"/catalog/{item['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/catalog/{item['id']}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "CATALOG_ITEM_NOT_FOUND"


async def test_profession_with_items_cannot_be_deleted(client, admin_headers, profession):
    await client.post(
        "/catalog/",
        json={"profession_id": profession["id"], "name": "Floor tiling", "unit": "sqm"},
        headers=admin_headers,
    )

    response = await client.delete(f"/professions/{profession['id']}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "PROFESSION_HAS_ITEMS"

    response = await client.get("/professions/counts", headers=admin_headers)
    counts = {p["name"]: p["catalog_items_count"] for p in response.json()["data"]}
    assert counts["tiling"] == 1


async def test_csv_import(client, admin_headers, profession):
    await client.post(
        "/catalog/",
        json={"profession_id": profession["id"], "name": "Floor tiling", "unit": "sqm"},
        headers=admin_headers,
    )

    content = (
        "name,unit,price\n"
        "Wall tiling,sqm,110\n"
        "floor TILING,sqm,100\n"
        "Grouting,sqm,abc\n"
        "Skirting,m,35\n"
    ).encode()

    response = await client.post(
        f"/catalog/professions/{profession['id']}/import",
        files={"file": ("tiling.csv", content, "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert [i["name"] for i in data["created"]] == ["Wall tiling", "Skirting"]
    assert data["skipped"] == [
        {"row": 3, "reason": "Item already exists: floor TILING"},
        {"row": 4, "reason": "Invalid price"},
    ]

    response = await client.get(
        "/catalog/", params={"profession_id": profession["id"]}, headers=admin_headers
    )
    assert [i["name"] for i in response.json()["data"]] == ["Floor tiling", "Skirting", "Wall tiling"]

    response = await client.get("/catalog/", params={"search": "wall"}, headers=admin_headers)
    assert [i["name"] for i in response.json()["data"]] == ["Wall tiling"]


async def test_csv_import_rejects_bad_header(client, admin_headers, profession):
    response = await client.post(
        f"/catalog/professions/{profession['id']}/import",
        files={"file": ("bad.csv", b"title,price\nWall,10\n", "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "CATALOG_IMPORT_FAILED"


async def test_statistics_and_clear(client, admin_headers, profession):
    for name, price in (("Wall tiling", "100"), ("Skirting", "50"), ("Site visit", None)):
        body = {"profession_id": profession["id"], "name": name, "unit": "unit"}
        if price:
            body["default_price"] = price
        await client.post("/catalog/", json=body, headers=admin_headers)

    response = await client.get("/catalog/statistics", headers=admin_headers)
    stats = response.json()["data"]
    assert stats["total_items"] == 3
    assert Decimal(stats["average_default_price"]) == Decimal("75.00")
    assert stats["by_profession"][0]["count"] == 3

    response = await client.delete(
        f"/catalog/professions/{profession['id']}/items", headers=admin_headers
    )
    assert response.json()["data"] == {"profession_id": profession["id"], "deleted": 3}

    response = await client.get("/catalog/statistics", headers=admin_headers)
    assert response.json()["data"]["total_items"] == 0
    assert response.json()["data"]["average_default_price"] is None
