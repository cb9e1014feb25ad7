from storyforge.app.providers.mock import MockProvider


def test_health(api):
    resp = api.client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["components"]["provider"] == {"status": "ok", "name": "mock"}
    assert data["components"]["rate_limiters"] == {"api": 0, "generation": 0, "auth": 0}


def test_health_degraded_when_provider_unhealthy(api):
    api.use_provider(MockProvider(error=RuntimeError("down")))

    data = api.client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["components"]["provider"]["status"] == "error"


def test_health_reports_limiter_sizes(api):
    api.sign_in("user-1")
    api.client.post("/api/generate-title", json={"prompt": "p", "genre": "comedy", "tone": "humorous"})

    assert api.client.get("/health").json()["components"]["rate_limiters"]["api"] == 1
