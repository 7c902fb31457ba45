"""Tests for the chat forwarding route."""

import httpx

from conftest import MockUpstream

VALID_KEY = "sk-ant-test-key"


def test_status(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "Veritas API Proxy is running"}


def test_bad_key_rejected_without_upstream_call(client, upstream):
    response = client.post("/api/claude", json={"apiKey": "bad", "messages": []})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid API key format. Key must start with sk-ant-"}
    assert upstream.requests == []


def test_missing_key_rejected(client, upstream):
    response = client.post("/api/claude", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 400
    assert upstream.requests == []


def test_non_string_key_rejected(client, upstream):
    response = client.post("/api/claude", json={"apiKey": 12345, "messages": []})
    assert response.status_code == 400
    assert upstream.requests == []


def test_unparseable_body_rejected(client, upstream):
    response = client.post(
        "/api/claude",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert upstream.requests == []


def test_outbound_body_and_headers(client, upstream):
    messages = [{"role": "user", "content": "Summarize this"}]
    client.post("/api/claude", json={
        "apiKey": VALID_KEY,
        "system": "Be brief",
        "messages": messages,
        "maxTokens": 256,
    })

    assert len(upstream.requests) == 1
    sent = upstream.requests[0]
    assert sent.method == "POST"
    assert str(sent.url) == "https://api.anthropic.com/v1/messages"
    assert sent.headers["x-api-key"] == VALID_KEY
    assert sent.headers["anthropic-version"] == "2023-06-01"
    assert sent.headers["content-type"] == "application/json"

    assert upstream.json_bodies()[0] == {
        "model": "claude-sonnet-4-20250514",
        "max_tokens": 256,
        "system": "Be brief",
        "messages": messages,
    }


def test_max_tokens_defaults_to_1000(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "system": "s", "messages": []})
    assert upstream.json_bodies()[0]["max_tokens"] == 1000


def test_zero_max_tokens_falls_back_to_default(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": [], "maxTokens": 0})
    assert upstream.json_bodies()[0]["max_tokens"] == 1000


def test_absent_system_is_not_sent(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})
    assert "system" not in upstream.json_bodies()[0]


def test_null_system_is_kept(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "system": None, "messages": []})
    sent = upstream.json_bodies()[0]
    assert "system" in sent
    assert sent["system"] is None


def test_non_list_messages_forwarded_unchanged(client, upstream):
    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": "hi"})

    assert response.status_code == 200
    assert len(upstream.requests) == 1
    assert upstream.json_bodies()[0]["messages"] == "hi"


def test_string_max_tokens_forwarded_unchanged(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": [], "maxTokens": "500"})
    assert upstream.json_bodies()[0]["max_tokens"] == "500"


def test_non_ascii_key_maps_to_internal_error(client, upstream):
    response = client.post(
        "/api/claude",
        json={"apiKey": "sk-ant-é", "messages": []},
        headers={"Origin": "https://example.org"},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert body["message"].startswith("Could not build request to Anthropic")
    assert response.headers["access-control-allow-origin"] == "*"
    assert upstream.requests == []


def test_key_not_included_in_body(client, upstream):
    client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})
    assert "apiKey" not in upstream.json_bodies()[0]


def test_success_relayed_verbatim(make_client):
    reply = {
        "id": "msg_01",
        "type": "message",
        "content": [{"type": "text", "text": "Hello"}],
        "usage": {"input_tokens": 5, "output_tokens": 1},
    }
    client = make_client(MockUpstream(status_code=200, body=reply))

    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})

    assert response.status_code == 200
    assert response.json() == reply


def test_upstream_error_status_relayed(make_client):
    error = {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}}
    client = make_client(MockUpstream(status_code=401, body=error))

    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})

    assert response.status_code == 401
    assert response.json() == error


def test_upstream_overloaded_status_relayed(make_client):
    client = make_client(MockUpstream(status_code=529, body={"type": "error"}))
    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})
    assert response.status_code == 529


def test_unparseable_upstream_body(make_client):
    client = make_client(MockUpstream(status_code=502, body=b"<html>Bad Gateway</html>"))

    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "Invalid JSON from Anthropic" in body["message"]


def test_transport_error(make_client):
    mock = MockUpstream()
    mock.fail("api.anthropic.com", httpx.ConnectError("connection refused"))
    client = make_client(mock)

    response = client.post("/api/claude", json={"apiKey": VALID_KEY, "messages": []})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "message": "connection refused"}


def test_cors_allows_any_origin(client):
    response = client.get("/", headers={"Origin": "https://example.org"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_preflight(client):
    response = client.options(
        "/api/claude",
        headers={
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert response.status_code == 200
