"""Basic app tests"""


def test_health_endpoint(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Clinic Billing API"


def test_webhook_rejects_get(client):
    response = client.get("/webhooks/stripe")
    assert response.status_code == 405
