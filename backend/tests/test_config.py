import pytest
from fastapi.testclient import TestClient

from tailorshop import config
from tailorshop.db.session import BackendClient
from tailorshop.errors import ConfigError
from tailorshop.main import create_app


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "API_KEY", "JWT_SECRET", "FORWARD_ONLY_STATUS", "LINING_SURCHARGE",
                 "CORS_ORIGINS", "ACCESS_TOKEN_EXPIRE_MINUTES"):
        monkeypatch.delenv(config.ENV_PREFIX + name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda: False)
    return monkeypatch


def test_missing_backend_config_is_fatal(clean_env):
    with pytest.raises(ConfigError) as exc:
        config.load_settings()
    assert "TAILOR_DATABASE_URL" in str(exc.value)
    assert "TAILOR_API_KEY" in str(exc.value)


def test_startup_fails_without_config(clean_env):
    with pytest.raises(ConfigError):
        with TestClient(create_app()):
            pass


def test_settings_from_env(clean_env):
    clean_env.setenv("TAILOR_DATABASE_URL", "sqlite://")
    clean_env.setenv("TAILOR_API_KEY", "anon-key")
    clean_env.setenv("TAILOR_FORWARD_ONLY_STATUS", "true")
    clean_env.setenv("TAILOR_LINING_SURCHARGE", "450")
    clean_env.setenv("TAILOR_CORS_ORIGINS", "https://shop.example.com, http://localhost:5173")

    settings = config.load_settings()
    assert settings.api_key == "anon-key"
    assert settings.forward_only_status is True
    assert settings.pricing.lining_surcharge == 450
    assert settings.pricing.fabric_meters == 2
    assert settings.cors_origins == ["https://shop.example.com", "http://localhost:5173"]
    assert settings.signing_key == "anon-key"


def test_malformed_numbers_are_config_errors(clean_env):
    clean_env.setenv("TAILOR_DATABASE_URL", "sqlite://")
    clean_env.setenv("TAILOR_API_KEY", "anon-key")
    clean_env.setenv("TAILOR_LINING_SURCHARGE", "three hundred")
    with pytest.raises(ConfigError) as exc:
        config.load_settings()
    assert "pricing.lining_surcharge" in str(exc.value)

    clean_env.delenv("TAILOR_LINING_SURCHARGE")
    clean_env.setenv("TAILOR_ACCESS_TOKEN_EXPIRE_MINUTES", "soon")
    with pytest.raises(ConfigError) as exc:
        config.load_settings()
    assert "access_token_expire_minutes" in str(exc.value)


def test_cors_origins_from_env_apply_to_default_app(clean_env):
    clean_env.setenv("TAILOR_DATABASE_URL", "sqlite://")
    clean_env.setenv("TAILOR_API_KEY", "anon-key")
    clean_env.setenv("TAILOR_CORS_ORIGINS", "https://shop.example.com")

    client = BackendClient("sqlite://")
    with TestClient(create_app(client=client)) as api:
        preflight = {"Origin": "https://shop.example.com", "Access-Control-Request-Method": "GET"}
        res = api.options("/fabrics", headers=preflight)
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == "https://shop.example.com"

        res = api.options("/fabrics", headers={**preflight, "Origin": "https://elsewhere.example.com"})
        assert res.status_code == 400
