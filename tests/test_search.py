"""
Search endpoint tests: GET /api/posts/search?q=...

Search shares its filter with the list endpoint but returns a flat,
unpaginated array capped at SEARCH_RESULT_LIMIT.
"""
import pytest
from httpx import AsyncClient

from blogpress.config import settings


async def _create_post(client: AsyncClient, headers: dict, body: dict) -> dict:
    resp = await client.post("/api/posts", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_search_route_not_shadowed_by_slug(async_client: AsyncClient):
    """'/search' resolves to the search handler, not to a post slug lookup."""
    resp = await async_client.get("/api/posts/search?q=anything")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "count": 0, "data": []}


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "?q=", "?q=%20%20%20"])
async def test_search_requires_query(async_client: AsyncClient, query: str):
    resp = await async_client.get(f"/api/posts/search{query}")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Search query is required"}


@pytest.mark.asyncio
async def test_search_published_only(async_client: AsyncClient, author, auth_headers, post_payload):
    headers = auth_headers(author)
    await _create_post(async_client, headers, post_payload(title="Redis in practice"))
    await _create_post(async_client, headers, post_payload(title="Redis draft", isPublished=False))

    body = (await async_client.get("/api/posts/search?q=redis")).json()
    assert body["count"] == 1
    assert body["data"][0]["title"] == "Redis in practice"
    assert "pagination" not in body


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_covers_tags(
    async_client: AsyncClient, author, auth_headers, post_payload
):
    headers = auth_headers(author)
    await _create_post(async_client, headers, post_payload(title="KUBERNETES basics"))
    await _create_post(async_client, headers, post_payload(title="Cluster notes", tags=["Kubernetes"]))

    body = (await async_client.get("/api/posts/search?q=kubernetes")).json()
    assert body["count"] == 2


@pytest.mark.asyncio
async def test_search_caps_results(async_client: AsyncClient, author, auth_headers, post_payload):
    headers = auth_headers(author)
    total = settings.SEARCH_RESULT_LIMIT + 3
    for i in range(total):
        await _create_post(async_client, headers, post_payload(title=f"Matching post {i}"))

    body = (await async_client.get("/api/posts/search?q=matching")).json()
    assert body["count"] == settings.SEARCH_RESULT_LIMIT
    # Newest first
    assert body["data"][0]["title"] == f"Matching post {total - 1}"


@pytest.mark.asyncio
async def test_search_wildcards_match_literally(async_client: AsyncClient, author, auth_headers, post_payload):
    headers = auth_headers(author)
    await _create_post(async_client, headers, post_payload(title="Get 50% off today"))
    await _create_post(async_client, headers, post_payload(title="500 things to know"))
    await _create_post(async_client, headers, post_payload(title="snake_case naming"))
    await _create_post(async_client, headers, post_payload(title="snakeXcase naming"))

    percent = (await async_client.get("/api/posts/search", params={"q": "50%"})).json()
    assert [p["title"] for p in percent["data"]] == ["Get 50% off today"]

    underscore = (await async_client.get("/api/posts/search", params={"q": "snake_case"})).json()
    assert [p["title"] for p in underscore["data"]] == ["snake_case naming"]


@pytest.mark.asyncio
async def test_search_trims_query(async_client: AsyncClient, author, auth_headers, post_payload):
    await _create_post(async_client, auth_headers(author), post_payload(title="Docker tips"))
    body = (await async_client.get("/api/posts/search", params={"q": "  docker  "})).json()
    assert body["count"] == 1
