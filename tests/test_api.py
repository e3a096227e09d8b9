"""Tests for the HTTP API."""

from httpx import ASGITransport, AsyncClient

from shorturl.config import Config
from shorturl.web_app import create_app


async def shorten(client, url="https://example.com/page", **fields):
    return await client.post("/api/shorturl", json={"original_url": url, **fields})


class TestCreateEndpoint:
    """Test POST /api/shorturl."""

    async def test_create(self, client):
        response = await shorten(client)

        assert response.status_code == 201
        data = response.json()
        assert data["original_url"] == "https://example.com/page"
        assert data["short_url"] == f"http://testserver/{data['short_code']}"
        assert data["clicks"] == 0

    async def test_create_with_custom_code_and_expiry(self, client):
        response = await shorten(client, custom_code="promo", expires_in=7, tags=["launch"])

        assert response.status_code == 201
        data = response.json()
        assert data["short_code"] == "promo"
        assert data["expires_at"] is not None
        assert data["tags"] == ["launch"]

    async def test_short_url_honours_forwarded_headers(self, client):
        response = await client.post(
            "/api/shorturl",
            json={"original_url": "https://example.com"},
            headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "sho.rt"},
        )

        data = response.json()
        assert data["short_url"] == f"https://sho.rt/{data['short_code']}"

    async def test_invalid_url(self, client):
        response = await shorten(client, url="javascript:alert(1)")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_URL"

    async def test_missing_url(self, client):
        response = await client.post("/api/shorturl", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_invalid_expiry(self, client):
        response = await shorten(client, expires_in=0)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_invalid_custom_code(self, client):
        response = await shorten(client, custom_code="no spaces")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SHORT_CODE"

    async def test_custom_code_conflict(self, client):
        await shorten(client, custom_code="taken")
        response = await shorten(client, url="https://other.example.com", custom_code="taken")

        assert response.status_code == 409
        assert response.json()["code"] == "CODE_CONFLICT"

    async def test_same_owner_gets_existing(self, client):
        headers = {"X-Owner-Id": "alice"}
        first = await client.post("/api/shorturl", json={"original_url": "https://example.com"}, headers=headers)
        second = await client.post("/api/shorturl", json={"original_url": "https://example.com"}, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["short_code"] == first.json()["short_code"]
        assert second.json()["owner_id"] == "alice"


class TestRedirect:
    """Test redirects under /api and at the root."""

    async def test_api_redirect(self, client):
        code = (await shorten(client)).json()["short_code"]

        response = await client.get(f"/api/shorturl/{code}")

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/page"

    async def test_root_redirect(self, client):
        code = (await shorten(client)).json()["short_code"]

        response = await client.get(f"/{code}")

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/page"

    async def test_unknown_code(self, client):
        for path in ("/api/shorturl/missing1", "/missing1"):
            response = await client.get(path)
            assert response.status_code == 404
            assert response.json()["code"] == "NOT_FOUND"

    async def test_visit_details_recorded(self, client, test_db):
        code = (await shorten(client)).json()["short_code"]

        await client.get(
            f"/{code}",
            headers={
                "X-Forwarded-For": "198.51.100.1, 10.0.0.1",
                "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) Firefox/125.0",
                "Referer": "https://news.example.com/",
            },
        )

        stored = await test_db.get_by_code(code, with_analytics=True)
        visit = stored.analytics[0]
        assert visit.ip == "198.51.100.1"
        assert visit.referrer == "https://news.example.com/"
        assert "Firefox" in visit.user_agent

    async def test_peer_address_used_without_forwarding(self, client, test_db):
        code = (await shorten(client)).json()["short_code"]

        await client.get(f"/{code}")

        stored = await test_db.get_by_code(code, with_analytics=True)
        assert stored.analytics[0].ip == "203.0.113.7"


class TestStatsEndpoint:
    """Test GET /api/shorturl/{code}/stats."""

    async def test_stats(self, client, service):
        code = (await shorten(client)).json()["short_code"]
        await client.get(f"/{code}", headers={"Referer": "https://news.example.com/"})
        await client.get(f"/{code}")
        await service.wait_for_background_tasks()

        response = await client.get(f"/api/shorturl/{code}/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["short_code"] == code
        assert data["total_clicks"] == 2
        assert data["last_day_clicks"] == 2
        assert {"value": "direct", "count": 1} in data["by_referrer"]

    async def test_stats_unknown_code(self, client):
        response = await client.get("/api/shorturl/missing1/stats")
        assert response.status_code == 404


class TestDeleteEndpoint:
    """Test DELETE /api/shorturl/{code}."""

    async def test_delete(self, client):
        code = (await shorten(client)).json()["short_code"]

        response = await client.delete(f"/api/shorturl/{code}")
        assert response.status_code == 204

        assert (await client.get(f"/{code}")).status_code == 404
        assert (await client.get(f"/api/shorturl/{code}/stats")).status_code == 404

    async def test_delete_owned_without_identity(self, client):
        response = await client.post(
            "/api/shorturl",
            json={"original_url": "https://example.com"},
            headers={"X-Owner-Id": "alice"},
        )
        code = response.json()["short_code"]

        response = await client.delete(f"/api/shorturl/{code}")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    async def test_delete_other_owner(self, client):
        response = await client.post(
            "/api/shorturl",
            json={"original_url": "https://example.com"},
            headers={"X-Owner-Id": "alice"},
        )
        code = response.json()["short_code"]

        response = await client.delete(f"/api/shorturl/{code}", headers={"X-Owner-Id": "bob"})

        assert response.status_code == 404


class TestListEndpoint:
    """Test GET /api/shorturl."""

    async def test_pagination(self, client, clock):
        headers = {"X-Owner-Id": "alice"}
        for i in range(5):
            await client.post("/api/shorturl", json={"original_url": f"https://example.com/{i}"}, headers=headers)
            clock.advance(1)

        response = await client.get("/api/shorturl", params={"limit": 2, "offset": 1}, headers=headers)

        data = response.json()
        assert data["count"] == 2
        assert data["limit"] == 2
        assert [u["original_url"] for u in data["urls"]] == [
            "https://example.com/3",
            "https://example.com/2",
        ]

    async def test_owners_are_separate(self, client):
        await client.post("/api/shorturl", json={"original_url": "https://example.com"}, headers={"X-Owner-Id": "alice"})

        response = await client.get("/api/shorturl", headers={"X-Owner-Id": "bob"})

        assert response.json()["count"] == 0

    async def test_limit_capped(self, client):
        response = await client.get("/api/shorturl", params={"limit": 10000})
        assert response.json()["limit"] == 200


class TestServiceEndpoints:
    """Test health and statistics."""

    async def test_root_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_api_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_statistics(self, client):
        await shorten(client)

        response = await client.get("/api/stats")

        data = response.json()
        assert data["total_urls"] == 1
        assert data["database"] == "memory"
        assert data["custom_codes_enabled"]

    async def test_store_failure_is_generic_500(self, client, test_db, monkeypatch):
        async def broken_lookup(*args, **kwargs):
            raise RuntimeError("password authentication failed for user shorturl")

        monkeypatch.setattr(test_db, "get_resolvable", broken_lookup)

        response = await client.get("/api/shorturl/abc123/stats")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "INTERNAL"
        assert data["error"] == "An unexpected error occurred"
        assert "password" not in response.text


class TestRateLimit:
    """Test the create endpoint rate limit."""

    @staticmethod
    def limited_app(test_db, cache, service, **overrides):
        config = Config(
            database_url="memory://",
            base_url="http://testserver",
            fetch_titles=False,
            rate_limit_requests=2,
            rate_limit_window_seconds=60,
            **overrides,
        )
        return create_app(db_instance=test_db, cache_instance=cache, service_instance=service, config=config)

    @staticmethod
    def client_for(app, peer):
        return AsyncClient(transport=ASGITransport(app=app, client=(peer, 51000)), base_url="http://testserver")

    async def test_create_rate_limited(self, test_db, cache, service):
        app = self.limited_app(test_db, cache, service)

        async with self.client_for(app, "203.0.113.7") as client:
            statuses = [(await shorten(client, url=f"https://example.com/{i}")).status_code for i in range(3)]
            health = await client.get("/health")
        async with self.client_for(app, "198.51.100.9") as other_client:
            other = await shorten(other_client, url="https://example.com/other")

        assert statuses == [201, 201, 429]
        assert health.status_code == 200
        assert other.status_code == 201

    async def test_forged_forwarded_for_does_not_reset_limit(self, test_db, cache, service):
        app = self.limited_app(test_db, cache, service)

        async with self.client_for(app, "203.0.113.7") as client:
            statuses = [
                (await client.post(
                    "/api/shorturl",
                    json={"original_url": f"https://example.com/{i}"},
                    headers={"X-Forwarded-For": f"192.0.2.{i}"},
                )).status_code
                for i in range(10)
            ]

        assert statuses == [201, 201] + [429] * 8
        assert app.state.rate_limiter.tracked_clients() == 1

    async def test_trusted_proxy_hop_identifies_client(self, test_db, cache, service):
        app = self.limited_app(test_db, cache, service, trusted_proxy_hops=1)

        async with self.client_for(app, "10.0.0.2") as proxy:
            first = [
                (await client_post_via(proxy, "198.51.100.1", i)).status_code for i in range(3)
            ]
            second = await client_post_via(proxy, "198.51.100.2", 99)

        assert first == [201, 201, 429]
        assert second.status_code == 201


async def client_post_via(proxy, client_ip, i):
    return await proxy.post(
        "/api/shorturl",
        json={"original_url": f"https://example.com/{i}"},
        headers={"X-Forwarded-For": client_ip},
    )

class TestCORS:
    """Test CORS configuration."""

    async def test_wildcard_origin(self, client):
        response = await client.get("/api/health", headers={"Origin": "https://app.example.com"})

        assert response.headers["access-control-allow-origin"] == "*"
