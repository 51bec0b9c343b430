def test_health_check(client):
    """Test the health check endpoint."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "database": "available",
        "version": "0.1.0",
        "environment": "test",
        "profile": "local",
    }


def test_health_check_reports_unreachable_database(make_client, unreachable_database_url):
    """The health check degrades instead of terminating the request."""
    client = make_client(DEPLOYMENT_PROFILE="vm", DATABASE_URL=unreachable_database_url)

    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "unavailable"
    assert data["profile"] == "vm"


def test_health_check_does_not_start_session(client):
    response = client.get("/api/v1/health")
    assert "apv_session" not in response.cookies


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<title>My First Application</title>" in response.text
    assert "<h1>My First Application</h1>" in response.text


def test_unknown_page(client):
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    data = response.json()
    assert data["status_code"] == 404
    assert "error_id" in data
