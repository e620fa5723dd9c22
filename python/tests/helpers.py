"""Test helpers for building raw ASGI scopes and reading sent messages."""


def http_scope(method: str = "GET", path: str = "/", headers: dict[str, str] | None = None) -> dict:
    """Build a minimal ASGI HTTP scope."""
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "root_path": "",
        "headers": raw,
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


def response_headers(messages: list[dict]) -> dict[str, str]:
    """Decode headers of the http.response.start message."""
    start = next(m for m in messages if m["type"] == "http.response.start")
    return {k.decode("latin-1"): v.decode("latin-1") for k, v in start.get("headers", [])}
