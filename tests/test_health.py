def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200

    payload = response.json()
    assert payload["status_code"] == 200
    assert payload["status"] == "success"
    assert payload["message"] == "Service is healthy"
    assert payload["data"] == {"status": "ok", "service": "Accessibility Checker"}


def test_versioned_health_check(client):
    assert client.get("/api/v1/health").status_code == 200


def test_root_info(client):
    response = client.get("/")
    assert response.status_code == 200
    payload = response.json()
    assert payload["app_name"] == "Accessibility Checker API"
    assert payload["version"] == "1.0.0"
    assert payload["docs_url"] == "/docs"
    assert payload["api_base"] == "/api/v1"


def test_lifespan_wires_rate_limiter_and_pipeline(client):
    state = client.app.state

    assert state.scan_pipeline.rate_limiter is state.rate_limiter
    assert state.rate_limiter.max_requests == 5
