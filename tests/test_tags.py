"""
Tag endpoint tests: public reads, authenticated creation, staff-only edits.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_tags_are_public_and_sorted(api, async_client: AsyncClient):
    await api.register("author@example.com")
    await api.create_article("One", ["zeta", "alpha"])
    await api.logout()

    resp = await async_client.get("/api/v1/tags")
    assert resp.status_code == 200
    assert [t["name"] for t in resp.json()] == ["alpha", "zeta"]

    tag_id = resp.json()[0]["id"]
    resp = await async_client.get(f"/api/v1/tags/{tag_id}")
    assert resp.json()["name"] == "alpha"


@pytest.mark.asyncio
async def test_create_tag(api, async_client: AsyncClient):
    resp = await async_client.post("/api/v1/tags", json={"name": "anon"})
    assert resp.status_code == 401

    await api.register("tagger@example.com")
    resp = await async_client.post("/api/v1/tags", json={"name": "python"})
    assert resp.status_code == 201
    assert resp.json()["name"] == "python"

    resp = await async_client.post("/api/v1/tags", json={"name": "python"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_edit_and_delete_tag_are_staff_only(api, async_client: AsyncClient):
    await api.register("author@example.com")
    article = await api.create_article("Tagged", ["old"])
    tag_id = article["tags"][0]["id"]

    resp = await async_client.put(f"/api/v1/tags/{tag_id}", json={"name": "new"})
    assert resp.status_code == 403
    resp = await async_client.delete(f"/api/v1/tags/{tag_id}")
    assert resp.status_code == 403

    await api.register_with_role("mod@example.com", "Moderator")
    resp = await async_client.put(f"/api/v1/tags/{tag_id}", json={"name": "new"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "new"

    resp = await async_client.get("/api/v1/articles", params={"tag": "new"})
    assert [a["id"] for a in resp.json()] == [article["id"]]

    resp = await async_client.delete(f"/api/v1/tags/{tag_id}")
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/v1/articles/{article['id']}")
    assert resp.json()["tags"] == []


@pytest.mark.asyncio
async def test_missing_tag_returns_404(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/tags/321")
    assert resp.status_code == 404
