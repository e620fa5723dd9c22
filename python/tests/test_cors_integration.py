"""End-to-end CORS tests through a Starlette app.

Verifies:
- Wildcard policy answers every request with Access-Control-Allow-Origin: *
- Handler bodies are preserved on non-preflight requests
- Preflight requests never reach the handler
- Strict https policy: exact match, scheme rewrite, subdomain rejection
- Missing Origin: handler runs, no CORS headers
"""

from datetime import timedelta

import pytest

CORS_HEADERS = (
    "access-control-allow-origin",
    "access-control-allow-methods",
    "access-control-allow-headers",
    "access-control-max-age",
    "access-control-allow-credentials",
)


class TestDefaultPolicy:
    """Default options: any domain, no credentials."""

    def test_preflight(self, make_client, handler_calls):
        client = make_client()

        response = client.options("/")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-max-age"] == "600"
        assert response.headers["access-control-allow-methods"] == "GET,OPTIONS,POST"
        assert "access-control-allow-credentials" not in response.headers
        assert response.text == ""
        assert handler_calls == []

    @pytest.mark.parametrize("origin", [None, "https://example.org", "not a url"])
    def test_get_keeps_handler_body(self, make_client, handler_calls, origin):
        """CORS headers are added, the handler response is unchanged."""
        client = make_client()
        headers = {"Origin": origin} if origin else {}

        response = client.get("/", headers=headers)

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["x-handler"] == "1"
        assert response.headers["access-control-allow-origin"] == "*"
        assert "access-control-allow-credentials" not in response.headers
        assert handler_calls == ["/"]

    def test_request_headers_echoed(self, make_client):
        client = make_client()

        response = client.options(
            "/",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Example, Content-Type",
            },
        )

        assert response.headers["access-control-allow-headers"] == "X-Example, Content-Type"


class TestHttpsPolicy:
    """scheme=https, allow_domain=[example.com], credentials, max age 20s."""

    def test_exact_origin_preflight(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.options("/", headers={"Origin": "https://example.com"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://example.com"
        assert response.headers["access-control-max-age"] == "20"
        assert response.headers["access-control-allow-credentials"] == "true"
        assert response.headers["vary"] == "Origin"
        assert handler_calls == []

    def test_subdomain_preflight_rejected(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.options("/", headers={"Origin": "https://a.example.com"})

        assert response.status_code == 400
        assert "https://a.example.com" in response.text
        for name in CORS_HEADERS:
            assert name not in response.headers
        assert handler_calls == []

    def test_scheme_rewritten(self, make_client, https_options):
        client = make_client(https_options)

        response = client.options("/", headers={"Origin": "http://example.com"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://example.com"

    def test_missing_origin_runs_handler(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "ok"
        for name in CORS_HEADERS:
            assert name not in response.headers
        assert "vary" not in response.headers
        assert handler_calls == ["/"]

    def test_matched_get_runs_handler(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.post("/", headers={"Origin": "https://example.com"})

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "https://example.com"
        assert response.headers["access-control-allow-credentials"] == "true"
        assert handler_calls == ["/"]

    def test_prohibited_get_skips_handler(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.get("/", headers={"Origin": "https://evil.test"})

        assert response.status_code == 400
        assert response.text == "CORS request from prohibited domain https://evil.test"
        assert handler_calls == []

    def test_malformed_origin(self, make_client, https_options, handler_calls):
        client = make_client(https_options)

        response = client.get("/", headers={"Origin": "http://example.com:99999"})

        assert response.status_code == 400
        assert response.text.startswith("Failed to parse CORS origin header. Reason: ")
        assert handler_calls == []


class TestAnyDomainSentinel:
    """'!*' echoes any origin and supports credentials."""

    def test_origin_echoed(self, make_client):
        client = make_client(
            {"allow_domain": ["!*"], "scheme": "*", "allow_credentials": True}
        )

        response = client.get("/", headers={"Origin": "https://app.somewhere.test:3000"})

        assert response.status_code == 200
        assert (
            response.headers["access-control-allow-origin"] == "https://app.somewhere.test:3000"
        )
        assert response.headers["access-control-allow-credentials"] == "true"
        assert response.headers["vary"] == "Origin"


class TestRepeatability:
    """Identical requests get identical headers."""

    def test_same_headers_twice(self, make_client, https_options):
        client = make_client(https_options)
        headers = {
            "Origin": "http://example.com",
            "Access-Control-Request-Headers": "X-Token",
        }

        first = client.options("/", headers=headers)
        second = client.options("/", headers=headers)

        assert dict(first.headers) == dict(second.headers)

    def test_methods_round_trip(self, make_client):
        methods = ["PATCH", "GET", "DELETE", "OPTIONS"]
        client = make_client({"methods": methods, "max_age": timedelta(seconds=5)})

        response = client.options("/")

        assert response.headers["access-control-allow-methods"].split(",") == methods
        assert response.headers["access-control-max-age"] == "5"
