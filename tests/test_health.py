from __future__ import annotations


def test_health_ok(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_metrics_exposes_http_counters(client) -> None:
    client.get("/health")
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "http_requests_total" in res.text
    assert 'route="/health"' in res.text


def test_unknown_route_uses_error_envelope(client) -> None:
    res = client.get("/nope")
    assert res.status_code == 404
    assert res.json() == {"error": "Not Found"}
