from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

import routes.limiter as limiter_module
from main import create_app
from utils.timewindow import utcnow

BLOCKED_URL = "https://spam-domain-configured.example/offer"
URL = "https://example.com/articles/42"
# Starlette's TestClient reports this as the client host
CLIENT_IP = "testclient"


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def _create(client, url=URL, code=None):
    payload = {"original_url": url}
    if code is not None:
        payload["custom_code"] = code
    return client.post("/api/shortlink/create", json=payload)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_create_with_custom_code(client):
    res = _create(client, code="my-link")
    assert res.status_code == 201
    body = res.json()
    assert body["short_code"] == "my-link"
    assert body["short_url"] == "http://testserver/my-link"
    assert body["original_url"] == URL
    assert body["accepted"] is True
    assert body["existing"] is False


def test_public_base_url_is_used_for_short_url(settings):
    with TestClient(create_app(replace(settings, public_base_url="https://sho.rt/"))) as c:
        res = _create(c, code="my-link")
    assert res.json()["short_url"] == "https://sho.rt/my-link"


def test_duplicate_policy_returns_existing_with_200(settings):
    with TestClient(create_app(replace(settings, duplicate_url_policy="per_ip"))) as c:
        first = _create(c)
        second = _create(c)
    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["existing"] is True
    assert second.json()["short_code"] == first.json()["short_code"]


def test_custom_code_conflict(client):
    assert _create(client, code="taken").status_code == 201
    res = _create(client, code="taken")
    assert res.status_code == 409
    assert res.json() == {"detail": "Short code already exists"}


def test_invalid_request_lists_field_errors(client):
    res = _create(client, url="not a url", code="x")
    assert res.status_code == 400
    fields = {e["field"] for e in res.json()["errors"]}
    assert fields == {"original_url", "custom_code"}


def test_reserved_code_is_rejected(client):
    res = _create(client, code="health")
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "custom_code"


def test_spam_rejection_reports_reason_only(client):
    res = _create(client, url=BLOCKED_URL)
    assert res.status_code == 429
    body = res.json()
    assert body["reason"] == "BLOCKED_DOMAIN"
    assert "spam-domain-configured" not in body["detail"]


def test_repeated_spam_blocks_the_client(client, settings):
    for _ in range(settings.spam_event_threshold):
        assert _create(client, url=BLOCKED_URL).status_code == 429

    res = _create(client)
    assert res.status_code == 403
    assert "blocked" in res.json()["detail"]

    listing = client.get(f"/api/shortlink/by-ip/{CLIENT_IP}").json()
    assert listing["blocked"] is True


def test_redirect_and_info(client):
    _create(client, code="go-here")
    res = client.get("/go-here", follow_redirects=False, headers={"user-agent": "pytest-ua"})
    assert res.status_code == 302
    assert res.headers["location"] == URL

    info = client.get("/api/shortlink/info/go-here")
    assert info.status_code == 200
    body = info.json()
    assert body["clicks"] == 1
    assert body["last_clicked_at"] is not None
    assert body["days"] == 30
    assert body["offset"] == 0
    assert len(body["click_history"]) == 1
    bucket = body["click_history"][0]
    assert bucket["count"] == 1
    assert bucket["samples"][0]["user_agent"] == "pytest-ua"


def test_info_day_window_query(client):
    _create(client, code="go-here")
    client.get("/go-here", follow_redirects=False)
    body = client.get("/api/shortlink/info/go-here", params={"days": 1, "offset": 1}).json()
    assert body["days"] == 1
    assert body["click_history"] == []


@pytest.mark.parametrize("path", ["/unknown", "/a", "/has.dot", "/api/shortlink/info/unknown"])
def test_not_found(client, path):
    res = client.get(path, follow_redirects=False)
    assert res.status_code == 404
    assert res.json() == {"detail": "Short code not found"}


def test_stats(client):
    _create(client, code="counted")
    for _ in range(3):
        client.get("/counted", follow_redirects=False)
    today = utcnow().date().isoformat()

    default = client.get("/api/shortlink/stats/counted").json()
    assert default == {"short_code": "counted", "clicks": 3, "total_clicks": 3}

    by_day = client.get("/api/shortlink/stats/counted", params={"date": "2001-01-01"}).json()
    assert by_day["clicks"] == 0
    assert by_day["total_clicks"] == 3

    ranged = client.get(
        "/api/shortlink/stats/counted", params={"start_date": "2001-01-01", "end_date": today}
    ).json()
    assert ranged["clicks"] == 3


def test_stats_half_open_range_is_rejected(client):
    _create(client, code="counted")
    res = client.get("/api/shortlink/stats/counted", params={"start_date": "2025-01-01"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "end_date"


def test_stats_unknown_code(client):
    assert client.get("/api/shortlink/stats/nope").status_code == 404


def test_deactivate_then_redirect_is_gone(client):
    _create(client, code="short-lived")
    res = client.patch("/api/shortlink/deactivate/short-lived")
    assert res.status_code == 200
    assert res.json() == {"success": True, "detail": "Link deactivated successfully"}

    assert client.get("/short-lived", follow_redirects=False).status_code == 404
    assert client.get("/api/shortlink/info/short-lived").json()["is_active"] is False


def test_deactivate_unknown(client):
    assert client.patch("/api/shortlink/deactivate/nope").status_code == 404


def test_links_by_ip(client):
    for code in ("first", "second", "third"):
        _create(client, code=code)

    res = client.get(f"/api/shortlink/by-ip/{CLIENT_IP}", params={"limit": 2})
    assert res.status_code == 200
    body = res.json()
    assert body["ip_address"] == CLIENT_IP
    assert body["blocked"] is False
    assert body["limit"] == 2
    assert body["total"] == 2
    assert {link["short_code"] for link in body["links"]} <= {"first", "second", "third"}

    other = client.get("/api/shortlink/by-ip/203.0.113.1").json()
    assert other["links"] == []


def test_overview(client):
    _create(client, code="one")
    _create(client, code="two")
    client.get("/one", follow_redirects=False)
    client.patch("/api/shortlink/deactivate/two")

    res = client.get("/api/shortlink/stats/overview")
    assert res.status_code == 200
    assert res.json() == {
        "total_links": 2,
        "active_links": 1,
        "links_today": 2,
        "total_clicks": 1,
        "blocked_ips": 0,
    }


def test_rate_limiter_follows_settings(settings):
    app = create_app(replace(settings, rate_limit_enabled=True))
    assert app.state.limiter.enabled is True
    app = create_app(settings)
    assert app.state.limiter.enabled is False


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"custom_code": "abc"}, "original_url"),
        ({"original_url": 123}, "original_url"),
        ({"original_url": URL, "custom_code": 5}, "custom_code"),
    ],
)
def test_malformed_body_gets_field_errors(client, payload, field):
    res = client.post("/api/shortlink/create", json=payload)
    assert res.status_code == 400
    body = res.json()
    assert body["detail"] == "Validation failed"
    assert [e["field"] for e in body["errors"]] == [field]


def test_missing_url_message(client):
    res = client.post("/api/shortlink/create", json={})
    assert res.json()["errors"] == [{"field": "original_url", "message": "original_url is required"}]


def test_bad_query_parameter_gets_field_errors(client):
    res = client.get("/api/shortlink/all", params={"limit": 0})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "limit"


def test_all_links_newest_first_with_paging(client):
    for code in ("first", "second", "third"):
        _create(client, code=code)

    body = client.get("/api/shortlink/all").json()
    assert body["total"] == 3
    assert body["limit"] == 50
    assert {link["short_code"] for link in body["links"]} == {"first", "second", "third"}

    page = client.get("/api/shortlink/all", params={"limit": 2, "offset": 2}).json()
    assert page["total"] == 1
    assert page["offset"] == 2


def test_click_leaderboard(client):
    for code in ("busy", "quiet", "unused"):
        _create(client, code=code)
    for _ in range(3):
        client.get("/busy", follow_redirects=False)
    client.get("/quiet", follow_redirects=False)

    res = client.get("/api/shortlink/stats/clicks")
    assert res.status_code == 200
    body = res.json()
    assert body["total_links"] == 3
    assert body["total_clicks"] == 4
    assert body["links_with_clicks"] == 2
    assert body["links_without_clicks"] == 1
    assert body["avg_clicks"] == 1.33
    assert [link["short_code"] for link in body["top_performers"]] == ["busy", "quiet"]
    assert {link["short_code"] for link in body["recent_activity"]} == {"busy", "quiet"}


@pytest.fixture
def limited_app(settings, monkeypatch):
    monkeypatch.setattr(limiter_module, "RATE_LIMIT", "1/minute")
    monkeypatch.setattr(limiter_module, "REDIRECT_RATE_LIMIT", "1/minute")
    limiter_module.limiter.reset()
    app = create_app(replace(settings, rate_limit_enabled=True))
    yield app
    limiter_module.limiter.reset()
    limiter_module.limiter.enabled = False


def test_create_over_the_limit_is_throttled(limited_app):
    with TestClient(limited_app) as c:
        assert _create(c, code="one").status_code == 201
        res = _create(c, code="two")
    assert res.status_code == 429
    assert "Rate limit exceeded" in res.text


def test_redirect_over_the_limit_is_throttled(limited_app):
    with TestClient(limited_app) as c:
        assert _create(c, code="hot").status_code == 201
        assert c.get("/hot", follow_redirects=False).status_code == 302
        res = c.get("/hot", follow_redirects=False)
    assert res.status_code == 429
