"""
Category endpoint tests: public reads, admin-only writes, name
uniqueness, colour validation, and what happens to posts when their
category is deleted.
"""
import pytest
from httpx import AsyncClient


async def _create_category(client: AsyncClient, headers: dict, body: dict) -> dict:
    resp = await client.post("/api/categories", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_categories_sorted_by_name(async_client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    for name in ["Travel", "Food", "Music"]:
        await _create_category(async_client, headers, {"name": name})

    body = (await async_client.get("/api/categories")).json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [c["name"] for c in body["data"]] == ["Food", "Music", "Travel"]


@pytest.mark.asyncio
async def test_get_category_by_id_and_slug(async_client: AsyncClient, admin, auth_headers):
    created = await _create_category(
        async_client, auth_headers(admin), {"name": "Web Development", "description": "All things web"}
    )
    assert created["slug"] == "web-development"

    by_id = (await async_client.get(f"/api/categories/{created['id']}")).json()
    by_slug = (await async_client.get("/api/categories/web-development")).json()
    assert by_id["data"] == by_slug["data"]
    assert by_slug["data"]["description"] == "All things web"


@pytest.mark.asyncio
@pytest.mark.parametrize("ident", ["99999", "missing-slug"])
async def test_get_category_not_found(async_client: AsyncClient, ident: str):
    resp = await async_client.get(f"/api/categories/{ident}")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Category not found"}


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_category_defaults(async_client: AsyncClient, admin, auth_headers):
    resp = await async_client.post("/api/categories", json={"name": "Science"}, headers=auth_headers(admin))
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["name"] == "Science"
    assert data["slug"] == "science"
    assert data["color"] == "#3B82F6"
    assert data["description"] is None
    assert data["createdAt"] is not None
    assert data["updatedAt"] is not None


@pytest.mark.asyncio
async def test_create_category_duplicate_name(async_client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    await _create_category(async_client, headers, {"name": "Books"})
    resp = await async_client.post("/api/categories", json={"name": "Books"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Category with this name already exists"}


@pytest.mark.asyncio
@pytest.mark.parametrize("color", ["#ABC", "#AABBCC", "#a1b2c3"])
async def test_create_category_valid_colors(async_client: AsyncClient, admin, auth_headers, color: str):
    resp = await async_client.post(
        "/api/categories", json={"name": "Colourful", "color": color}, headers=auth_headers(admin)
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["color"] == color


@pytest.mark.asyncio
@pytest.mark.parametrize("color", ["#ZZZ", "AABBCC", "#ABCD", "#AABBCCDD"])
async def test_create_category_invalid_colors(async_client: AsyncClient, admin, auth_headers, color: str):
    resp = await async_client.post(
        "/api/categories", json={"name": "Colourful", "color": color}, headers=auth_headers(admin)
    )
    assert resp.status_code == 400
    assert resp.json()["error"].startswith('"color"')


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"name": "A"},
        {"name": "n" * 51},
        {"name": "Valid", "description": "d" * 201},
        {"description": "no name"},
        {"name": "Valid", "slug": "custom"},
    ],
)
async def test_create_category_validation(async_client: AsyncClient, admin, auth_headers, body: dict):
    resp = await async_client.post("/api/categories", json=body, headers=auth_headers(admin))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_category_requires_admin(async_client: AsyncClient, author, auth_headers):
    resp = await async_client.post("/api/categories", json={"name": "Nope"}, headers=auth_headers(author))
    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "error": "User role user is not authorized to access this route",
    }


@pytest.mark.asyncio
async def test_create_category_requires_token(async_client: AsyncClient):
    resp = await async_client.post("/api/categories", json={"name": "Nope"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_category(async_client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    created = await _create_category(async_client, headers, {"name": "Gadgets", "color": "#111111"})

    resp = await async_client.put(
        f"/api/categories/{created['id']}",
        json={"name": "Hardware", "description": "Things you can drop"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Hardware"
    assert data["slug"] == "hardware"
    assert data["description"] == "Things you can drop"
    assert data["color"] == "#111111"
    assert data["updatedAt"] is not None


@pytest.mark.asyncio
async def test_update_category_duplicate_name(async_client: AsyncClient, admin, auth_headers):
    headers = auth_headers(admin)
    await _create_category(async_client, headers, {"name": "Alpha"})
    beta = await _create_category(async_client, headers, {"name": "Beta"})

    resp = await async_client.put(f"/api/categories/{beta['id']}", json={"name": "Alpha"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Category with this name already exists"

    # Keeping its own name is not a duplicate.
    same = await async_client.put(f"/api/categories/{beta['id']}", json={"name": "Beta"}, headers=headers)
    assert same.status_code == 200


@pytest.mark.asyncio
async def test_update_category_not_found(async_client: AsyncClient, admin, auth_headers):
    resp = await async_client.put("/api/categories/99999", json={"name": "Ghost"}, headers=auth_headers(admin))
    assert resp.status_code == 404
    assert resp.json()["error"] == "Category not found"


@pytest.mark.asyncio
async def test_update_category_requires_admin(async_client: AsyncClient, author, category, auth_headers):
    resp = await async_client.put(
        f"/api/categories/{category.id}", json={"name": "Renamed"}, headers=auth_headers(author)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_renamed_category_shows_on_posts(
    async_client: AsyncClient, admin, author, category, auth_headers, post_payload
):
    await async_client.post("/api/posts", json=post_payload(), headers=auth_headers(author))
    await async_client.put(
        f"/api/categories/{category.id}", json={"name": "Technology"}, headers=auth_headers(admin)
    )
    item = (await async_client.get("/api/posts")).json()["data"][0]
    assert item["category"]["name"] == "Technology"


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_category(async_client: AsyncClient, admin, category, auth_headers):
    resp = await async_client.delete(f"/api/categories/{category.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": {}}
    assert (await async_client.get(f"/api/categories/{category.id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_category_not_found(async_client: AsyncClient, admin, auth_headers):
    resp = await async_client.delete("/api/categories/99999", headers=auth_headers(admin))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_category_requires_admin(async_client: AsyncClient, author, category, auth_headers):
    resp = await async_client.delete(f"/api/categories/{category.id}", headers=auth_headers(author))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_category_leaves_posts_uncategorised(
    async_client: AsyncClient, admin, author, category, auth_headers, post_payload
):
    """Posts survive their category's deletion and serialise ``category: null``."""
    created = (
        await async_client.post("/api/posts", json=post_payload(), headers=auth_headers(author))
    ).json()["data"]

    resp = await async_client.delete(f"/api/categories/{category.id}", headers=auth_headers(admin))
    assert resp.status_code == 200

    detail = await async_client.get(f"/api/posts/{created['id']}")
    assert detail.status_code == 200
    assert detail.json()["data"]["category"] is None

    listed = (await async_client.get("/api/posts")).json()
    assert listed["count"] == 1
    assert listed["data"][0]["category"] is None
