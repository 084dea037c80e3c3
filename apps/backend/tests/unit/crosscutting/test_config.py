"""
Name: Settings Tests

Responsibilities:
  - Defaults del entorno de desarrollo
  - Validación de modo de secuencia y rate limit
  - Guardas de producción (JWT secret fuerte, sin dev seed)
"""

import pytest
from bizops.crosscutting.config import Settings
from pydantic import ValidationError

pytestmark = pytest.mark.unit

_DB = "postgresql://u:p@localhost:5432/bizops"
_STRONG = "k" * 40


def _settings(**overrides) -> Settings:
    values = {"database_url": _DB, "app_env": "development", **overrides}
    return Settings(**values)


def test_defaults(monkeypatch):
    for var in ("JWT_SECRET", "RATE_LIMIT_RPS", "APP_ENV", "LOG_JSON"):
        monkeypatch.delenv(var, raising=False)

    settings = _settings()

    assert settings.jwt_secret == "dev-secret"
    assert settings.rate_limit_rps == pytest.approx(100 / 900)
    assert settings.rate_limit_burst == 100
    assert settings.sequence_mode == "racy"
    assert settings.is_development()


def test_sequence_mode_normalized():
    assert _settings(sequence_mode=" STRICT ").sequence_mode == "strict"


@pytest.mark.parametrize(
    "overrides",
    [
        {"sequence_mode": "optimistic"},
        {"sequence_max_attempts": 0},
        {"rate_limit_rps": -1},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        _settings(**overrides)


def test_allowed_origins_list():
    settings = _settings(allowed_origins="http://a.com, ,http://b.com ")

    assert settings.get_allowed_origins_list() == ["http://a.com", "http://b.com"]


@pytest.mark.parametrize("secret", ["dev-secret", "short-secret", ""])
def test_production_requires_strong_secret(secret):
    with pytest.raises(ValidationError, match="JWT_SECRET"):
        _settings(app_env="production", jwt_secret=secret)


def test_production_rejects_dev_seed():
    with pytest.raises(ValidationError, match="DEV_SEED_ADMIN"):
        _settings(app_env="production", jwt_secret=_STRONG, dev_seed_admin=True)


def test_production_ok():
    settings = _settings(app_env="Production", jwt_secret=_STRONG)

    assert settings.is_production()
    assert not settings.is_development()
