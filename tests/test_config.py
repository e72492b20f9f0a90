from app.core.config import Settings


def test_env_aliases_and_defaults(monkeypatch):
    monkeypatch.setenv("EXTERNAL_API_URL", "http://erp.example")
    monkeypatch.setenv("CORS_ORIGINS", "Https://dash.example/, http://localhost:3000 ,")
    monkeypatch.setenv("REGISTRATION_STORE_PATH", "/tmp/registered.json")

    settings = Settings(_env_file=None)

    assert settings.erp_api_url == "http://erp.example"
    assert settings.backend_cors_origins == ["https://dash.example", "http://localhost:3000"]
    assert settings.registration_store_path == "/tmp/registered.json"
    assert settings.container_cache_ttl_seconds == 120
    assert settings.registered_order_cache_ttl_seconds == 60
    assert settings.has_privileged_credentials is False


def test_no_cors_origins(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)

    assert Settings(_env_file=None).backend_cors_origins == []
