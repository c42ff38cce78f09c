"""
HTTP tests for the /api/redirects admin endpoints.
"""

import pytest
from sqlmodel import select, func

from firstlink.core.setting import settings
from firstlink.core.validators import SLUG_ALPHABET
from firstlink.db.models import Visit

VALID_BODY = {"slug": "ABCDE", "firstUrl": "https://a.example", "nextUrl": "https://b.example"}


class TestCreateRedirect:
    """POST /api/redirects"""

    @pytest.mark.asyncio
    async def test_create(self, client, fetch_redirect):
        response = await client.post("/api/redirects", json=VALID_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "ABCDE"
        assert body["link"] == f"{settings.BASE_URL.rstrip('/')}/ABCDE"

        redirect = await fetch_redirect("ABCDE")
        assert redirect.id == body["id"]
        assert redirect.first_used is False

    @pytest.mark.asyncio
    async def test_created_redirect_resolves(self, client):
        await client.post("/api/redirects", json=VALID_BODY)

        assert (await client.get("/ABCDE")).headers["location"] == "https://a.example"
        assert (await client.get("/ABCDE")).headers["location"] == "https://b.example"

    @pytest.mark.asyncio
    async def test_duplicate_slug_is_409(self, client):
        await client.post("/api/redirects", json=VALID_BODY)

        response = await client.post("/api/redirects", json=VALID_BODY)

        assert response.status_code == 409
        assert response.json() == {"error": "Slug already exists"}

    @pytest.mark.asyncio
    async def test_missing_urls_is_400(self, client):
        response = await client.post("/api/redirects", json={"slug": "ABCDE", "firstUrl": "https://a.example"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: firstUrl, nextUrl"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_url", ["not-a-url", "ftp://example.com", "javascript:alert(1)", "http://"])
    async def test_invalid_url_is_400(self, client, bad_url):
        response = await client.post(
            "/api/redirects",
            json={**VALID_BODY, "nextUrl": bad_url},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid URL format"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_slug", ["has space", "health", "x" * 51, "sl/ash"])
    async def test_invalid_slug_is_400(self, client, bad_slug):
        response = await client.post("/api/redirects", json={**VALID_BODY, "slug": bad_slug})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid slug format"}

    @pytest.mark.asyncio
    async def test_malformed_body_is_400(self, client):
        response = await client.post(
            "/api/redirects",
            content=b"not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_generated_slug(self, client):
        response = await client.post(
            "/api/redirects",
            json={"firstUrl": "https://a.example", "nextUrl": "https://b.example"},
        )

        assert response.status_code == 201
        slug = response.json()["slug"]
        assert len(slug) == settings.SLUG_LENGTH
        assert set(slug) <= set(SLUG_ALPHABET)


class TestReadRedirects:
    """GET /api/redirects and GET /api/redirects/{id}"""

    @pytest.mark.asyncio
    async def test_list_with_visit_counts(self, client, make_redirect):
        await make_redirect("OLDER")
        await make_redirect("NEWER")
        await client.get("/NEWER", headers={"x-forwarded-for": "1.2.3.4"})
        await client.get("/NEWER", headers={"x-forwarded-for": "5.6.7.8"})
        await client.get("/NEWER", headers={"x-forwarded-for": "1.2.3.4"})

        response = await client.get("/api/redirects")

        assert response.status_code == 200
        records = response.json()
        assert [r["slug"] for r in records] == ["NEWER", "OLDER"]
        assert records[0]["visitCount"] == 2
        assert records[1]["visitCount"] == 0
        assert records[0]["firstUrl"] == "https://a.example"
        assert records[0]["firstUsed"] is False

    @pytest.mark.asyncio
    async def test_get_by_id(self, client, make_redirect):
        redirect = await make_redirect()

        response = await client.get(f"/api/redirects/{redirect.id}")

        assert response.status_code == 200
        assert response.json()["slug"] == "ABCDE"
        assert response.json()["nextUrl"] == "https://b.example"

    @pytest.mark.asyncio
    async def test_get_unknown_id_is_404(self, client):
        response = await client.get("/api/redirects/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Redirect not found"}


class TestDeleteRedirect:
    """DELETE /api/redirects/{id}"""

    @pytest.mark.asyncio
    async def test_delete_cascades_visits(self, client, make_redirect, session_maker):
        redirect = await make_redirect()
        await client.get("/ABCDE", headers={"x-forwarded-for": "1.2.3.4"})

        response = await client.delete(f"/api/redirects/{redirect.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Redirect deleted successfully", "slug": "ABCDE"}

        async with session_maker() as session:
            remaining = (await session.exec(select(func.count(Visit.id)))).one()
        assert remaining == 0

        assert (await client.get("/ABCDE")).status_code == 404

    @pytest.mark.asyncio
    async def test_recreated_slug_starts_fresh(self, client, make_redirect):
        redirect = await make_redirect()
        await client.get("/ABCDE")
        await client.delete(f"/api/redirects/{redirect.id}")

        await client.post("/api/redirects", json=VALID_BODY)

        assert (await client.get("/ABCDE")).headers["location"] == "https://a.example"

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_404(self, client):
        response = await client.delete("/api/redirects/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Redirect not found"}
