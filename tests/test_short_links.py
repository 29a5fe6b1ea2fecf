# --- File: tests/test_short_links.py ---
from hotelops.config.settings import settings
from hotelops.services.qr.short_link_service import merge_query, sanitize_target_url

SHORTEN_URL = "/url-shortener/shorten"


def _shorten(client, url="/guest/qr/room-101-a7f3c9", tenant_id="tenant-1"):
    return client.post(SHORTEN_URL, json={"url": url, "tenantId": tenant_id})


def test_shorten_returns_code_and_url(client):
    response = _shorten(client)

    assert response.status_code == 200
    body = response.json()
    assert len(body["short_code"]) >= 8
    assert body["short_code"].isalnum()
    assert body["short_url"].endswith(f"/q/{body['short_code']}")
    assert body["target_url"] == "/guest/qr/room-101-a7f3c9"


def test_codes_are_unique(client):
    codes = {_shorten(client).json()["short_code"] for _ in range(20)}

    assert len(codes) == 20


def test_missing_fields_are_required(client):
    for payload in ({"tenantId": "tenant-1"}, {"url": "/guest/qr/abc123"}, {}):
        response = client.post(SHORTEN_URL, json=payload)
        assert response.status_code == 400
        assert "required" in response.json()["error"]["message"]


def test_invalid_url_is_rejected(client):
    response = _shorten(client, url="javascript:alert(1)")

    assert response.status_code == 400
    assert "invalid URL" in response.json()["error"]["message"]


def test_unsafe_characters_are_encoded():
    sanitized = sanitize_target_url('/guest/qr/abc123?name=<script>"x"</script>')

    assert "<" not in sanitized
    assert '"' not in sanitized
    assert sanitized.startswith("/guest/qr/abc123?name=")


def test_redirect_preserves_query_and_counts_clicks(client):
    code = _shorten(client).json()["short_code"]

    response = client.get(f"/q/{code}?utm_source=tent-card", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/guest/qr/room-101-a7f3c9?utm_source=tent-card"

    analytics = client.get(f"/url-shortener/analytics/{code}", headers={"X-Tenant-ID": "tenant-1"})
    assert analytics.status_code == 200
    assert analytics.json()["click_count"] == 1
    assert analytics.json()["last_clicked_at"] is not None


def test_unknown_code_is_not_found(client):
    response = client.get("/q/doesnotexist", follow_redirects=False)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SHORT_LINK_NOT_FOUND"


def test_analytics_are_tenant_isolated(client):
    code = _shorten(client, tenant_id="tenant-1").json()["short_code"]

    assert client.get(f"/url-shortener/analytics/{code}", headers={"X-Tenant-ID": "tenant-2"}).status_code == 403
    assert client.get(f"/url-shortener/analytics/{code}").status_code == 403


def test_shortening_is_rate_limited_per_tenant(client, monkeypatch):
    monkeypatch.setattr(settings, "SHORTEN_RATE_LIMIT", 2)

    assert _shorten(client).status_code == 200
    assert _shorten(client).status_code == 200
    assert _shorten(client).status_code == 429
    assert _shorten(client, tenant_id="tenant-2").status_code == 200


def test_merge_query_keeps_target_query():
    assert merge_query("/guest/qr/abc123?lang=en", "utm=sms") == "/guest/qr/abc123?lang=en&utm=sms"
    assert merge_query("/guest/qr/abc123", "") == "/guest/qr/abc123"


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "ok"
