"""Tag endpoint tests: CRUD, uniqueness and the per-article listing."""
import pytest
from httpx import AsyncClient

from app.config import settings

AUTH = {"X-API-Key": settings.API_KEY}


async def _create_tag(client: AsyncClient, name: str, **extra) -> dict:
    resp = await client.post("/api/tags", json={"name": name, **extra}, headers=AUTH)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_and_get_tag(async_client: AsyncClient):
    created = await _create_tag(async_client, "Cloud Native", description="CNCF things")
    assert created["slug"] == "cloud-native"
    assert created["description"] == "CNCF things"

    resp = await async_client.get(f"/api/tags/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Cloud Native"

    by_slug = await async_client.get("/api/tags/slug/cloud-native")
    assert by_slug.json()["data"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_list_tags_sorted_and_filtered(async_client: AsyncClient):
    for name in ("redis", "docker", "django"):
        await _create_tag(async_client, name)

    data = (await async_client.get("/api/tags")).json()["data"]
    assert [t["name"] for t in data["result"]] == ["django", "docker", "redis"]

    filtered = (await async_client.get("/api/tags", params={"keyword": "d"})).json()["data"]
    assert filtered["metadata"]["total"] == 3
    filtered = (await async_client.get("/api/tags", params={"keyword": "dj"})).json()["data"]
    assert [t["name"] for t in filtered["result"]] == ["django"]


@pytest.mark.asyncio
async def test_duplicate_tag_name_returns_422(async_client: AsyncClient):
    await _create_tag(async_client, "python")

    resp = await async_client.post(
        "/api/tags", json={"name": "python", "slug": "python-again"}, headers=AUTH
    )

    assert resp.status_code == 422
    assert resp.json()["errors"] == {"name": "Tag name already exists"}


@pytest.mark.asyncio
async def test_duplicate_tag_slug_returns_422(async_client: AsyncClient):
    await _create_tag(async_client, "Go Lang")

    resp = await async_client.post("/api/tags", json={"name": "go-lang"}, headers=AUTH)

    assert resp.status_code == 422
    assert resp.json()["errors"] == {"slug": "Slug already exists"}


@pytest.mark.asyncio
async def test_update_tag(async_client: AsyncClient):
    created = await _create_tag(async_client, "js")

    resp = await async_client.put(
        f"/api/tags/{created['id']}", json={"name": "javascript"}, headers=AUTH
    )

    assert resp.status_code == 200
    assert resp.json()["data"]["slug"] == "javascript"


@pytest.mark.asyncio
async def test_delete_tag_detaches_articles(async_client: AsyncClient):
    t1 = await _create_tag(async_client, "first")
    t2 = await _create_tag(async_client, "second")
    article = (await async_client.post(
        "/api/articles",
        json={"title": "Tagged Twice", "content": "x", "tagIds": [t1["id"], t2["id"]]},
        headers=AUTH,
    )).json()["data"]

    resp = await async_client.delete(f"/api/tags/{t1['id']}", headers=AUTH)
    assert resp.json() == {"status": 200, "message": "Tag deleted successfully"}

    tags = (await async_client.get(f"/api/tags/article/{article['id']}")).json()["data"]
    assert [t["id"] for t in tags] == [t2["id"]]
    reloaded = (await async_client.get(f"/api/articles/{article['id']}")).json()["data"]
    assert [t["id"] for t in reloaded["tags"]] == [t2["id"]]


@pytest.mark.asyncio
async def test_tags_of_unknown_article_returns_404(async_client: AsyncClient):
    resp = await async_client.get("/api/tags/article/55")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Article not found"


@pytest.mark.asyncio
async def test_delete_unknown_tag_returns_404(async_client: AsyncClient):
    resp = await async_client.delete("/api/tags/8", headers=AUTH)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Tag not found"
