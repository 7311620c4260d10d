import pytest


@pytest.mark.asyncio
async def test_liveness(api_client):
    response = await api_client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_reports_missing_database(api_client):
    response = await api_client.get("/health/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["postgres"]["ok"] is False


@pytest.mark.asyncio
async def test_metrics_exposed(api_client):
    await api_client.get("/health/live")
    response = await api_client.get("/metrics")
    assert response.status_code == 200
    assert "sc_http_requests_total" in response.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client):
    response = await api_client.get("/health/live", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"
