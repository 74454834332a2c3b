from fastapi.testclient import TestClient

from github_insights.settings import Settings


def test_read_root_returns_ok(api_client: TestClient) -> None:
    response = api_client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_live_returns_ok(api_client: TestClient) -> None:
    response = api_client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_API_BASE_URL", "https://ghe.example.com/api/v3")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("CACHE_DEDUPE_IN_FLIGHT", "false")

    settings = Settings()

    assert settings.github_api_base_url == "https://ghe.example.com/api/v3"
    assert settings.cache_ttl_seconds == 60
    assert settings.cache_dedupe_in_flight is False


def test_repeated_requests_are_served_from_cache(
    api_client: TestClient, fake_github
) -> None:
    fake_github.add("/users/octocat/repos", [])

    api_client.get("/users/octocat/analytics")
    api_client.get("/users/octocat/repos")

    assert fake_github.calls("/users/octocat/repos") == 1


def test_clear_cache_forces_refetch(api_client: TestClient, fake_github) -> None:
    fake_github.add("/users/octocat/repos", [])
    api_client.get("/users/octocat/analytics")

    response = api_client.delete("/cache")
    api_client.get("/users/octocat/analytics")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "removed": 1}
    assert fake_github.calls("/users/octocat/repos") == 2


def test_invalidate_single_cache_entry(api_client: TestClient, fake_github) -> None:
    fake_github.add("/users/octocat/repos", [])
    api_client.get("/users/octocat/analytics")
    url = "https://api.github.test/users/octocat/repos?per_page=100&sort=updated"

    removed = api_client.delete("/cache/entry", params={"url": url})
    missing = api_client.delete("/cache/entry", params={"url": url})

    assert removed.json() == {"status": "ok", "removed": 1}
    assert missing.json() == {"status": "ok", "removed": 0}


def test_stale_data_is_served_when_github_fails(
    api_client: TestClient, fake_github
) -> None:
    fake_github.add("/repos/octocat/hello-world/languages", {"Python": 10})
    first = api_client.get("/repos/octocat/hello-world/languages")

    api_client.app.state.cache.default_ttl = 0
    fake_github.add("/repos/octocat/hello-world/languages", {}, status_code=500)
    second = api_client.get("/repos/octocat/hello-world/languages")

    assert second.status_code == 200
    assert second.json() == first.json()
    assert fake_github.calls("/repos/octocat/hello-world/languages") == 2
