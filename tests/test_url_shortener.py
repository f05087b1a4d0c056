from fastapi.testclient import TestClient


class TestCreateEndpoint:
    """POST /shorturls"""

    def test_create_short_url(self, client: TestClient):
        """Test creating a short URL with a custom code"""
        url_data = {"url": "https://www.google.com/", "validity": 10, "shortcode": "goog1"}

        response = client.post("/shorturls", json=url_data)
        assert response.status_code == 201

        data = response.json()
        assert data["shortLink"] == "http://testserver/goog1"
        assert data["expiry"].endswith("Z")

    def test_create_generated_code(self, client: TestClient):
        """Without a shortcode one is generated"""
        response = client.post("/shorturls", json={"url": "https://www.github.com/"})
        assert response.status_code == 201

        code = response.json()["shortLink"].rsplit("/", 1)[1]
        assert len(code) == 6

    def test_invalid_url(self, client: TestClient):
        """Test creating URL with invalid URL"""
        response = client.post("/shorturls", json={"url": "not-a-valid-url"})
        assert response.status_code == 400

        detail = response.json()["detail"]
        assert detail["error"] == "validation"
        assert "url" in detail["fields"]

    def test_invalid_validity_type(self, client: TestClient):
        response = client.post("/shorturls", json={"url": "https://example.com", "validity": "soon"})
        assert response.status_code == 400
        assert response.json()["detail"]["fields"]["validity"] == "Validity must be an integer"

    def test_shortcode_taken(self, client: TestClient):
        """Second create with the same shortcode is a conflict"""
        url_data = {"url": "https://example.com/a", "shortcode": "abcd"}
        assert client.post("/shorturls", json=url_data).status_code == 201

        response = client.post("/shorturls", json=url_data)
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "conflict"

    def test_batch_partial_failure(self, client: TestClient):
        """Array body: per-entry results, bad entries never block good ones"""
        response = client.post("/shorturls", json=[
            {"url": "https://example.com/1"},
            {"url": "not a url"},
            {"url": "https://example.com/3", "shortcode": "third"},
        ])
        assert response.status_code == 200

        results = response.json()["results"]
        assert [r["ok"] for r in results] == [True, False, True]
        assert results[1]["error"]["error"] == "validation"
        assert results[2]["shortLink"] == "http://testserver/third"

        first_code = results[0]["shortLink"].rsplit("/", 1)[1]
        redirect = client.get(f"/{first_code}", follow_redirects=False)
        assert redirect.headers["location"] == "https://example.com/1"

    def test_batch_too_large(self, client: TestClient):
        batch = [{"url": f"https://example.com/{i}"} for i in range(6)]

        response = client.post("/shorturls", json=batch)
        assert response.status_code == 400

    def test_empty_batch(self, client: TestClient):
        assert client.post("/shorturls", json=[]).status_code == 400


class TestRedirectEndpoint:
    """GET /{shortcode}"""

    def test_redirect_url(self, client: TestClient):
        """Test URL redirection"""
        client.post("/shorturls", json={"url": "https://www.github.com/", "shortcode": "gh01"})

        response = client.get("/gh01", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_nonexistent_url(self, client: TestClient):
        """Test redirecting non-existent URL"""
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

    def test_redirect_expired_url(self, client: TestClient, clock):
        """Expired codes answer 410 even before the sweep"""
        client.post("/shorturls", json={"url": "https://example.com/a", "validity": 1, "shortcode": "abcd"})
        clock.advance(minutes=2)

        response = client.get("/abcd", follow_redirects=False)
        assert response.status_code == 410
        assert response.json()["detail"]["error"] == "expired"


class TestStatsEndpoint:
    """GET /shorturls/{shortcode}"""

    def test_url_stats(self, client: TestClient):
        """Test getting URL statistics"""
        client.post("/shorturls", json={"url": "https://www.stackoverflow.com/", "shortcode": "so01"})

        client.get(
            "/so01",
            headers={"Referer": "https://twitter.com/", "User-Agent": "pytest-agent", "CF-IPCountry": "IN"},
            follow_redirects=False,
        )
        client.get("/so01", follow_redirects=False)

        response = client.get("/shorturls/so01")
        assert response.status_code == 200

        data = response.json()
        assert data["shortcode"] == "so01"
        assert data["originalUrl"] == "https://www.stackoverflow.com/"
        assert data["totalClicks"] == 2
        assert {"createdAt", "expiresAt"} <= set(data)

        first, second = data["clicks"]
        assert first["referrer"] == "https://twitter.com/"
        assert first["userAgent"] == "pytest-agent"
        assert first["location"] == "IN"
        assert second["referrer"] == "Direct"

    def test_stats_nonexistent(self, client: TestClient):
        response = client.get("/shorturls/nonexistent")
        assert response.status_code == 404


class TestServiceEndpoints:
    """Root and health"""

    def test_health(self, client: TestClient):
        client.post("/shorturls", json={"url": "https://example.com/"})

        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["urls"] == 1

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "POST /shorturls" in response.json()["endpoints"]
