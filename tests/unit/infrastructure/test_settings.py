"""Settings validation (persistence backend, lookup mode, production secrets)."""

import pytest
from pydantic import ValidationError

from contact_directory.crosscutting.config import Settings

pytestmark = pytest.mark.unit


def test_defaults_are_valid():
    settings = Settings()
    assert settings.persistence_backend == "memory"
    assert settings.origin_lookup_mode == "request"


@pytest.mark.parametrize(
    "overrides",
    [
        {"persistence_backend": "mongo"},
        {"origin_lookup_mode": "guess"},
        {"origin_lookup_timeout_seconds": 0},
        {"min_password_length": 0},
        {"persistence_backend": "postgres", "database_url": "  "},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_production_requires_strong_secret_and_secure_cookie():
    with pytest.raises(ValidationError):
        Settings(app_env="production", jwt_secret="dev-secret", jwt_cookie_secure=True)
    with pytest.raises(ValidationError):
        Settings(app_env="production", jwt_secret="short", jwt_cookie_secure=True)
    with pytest.raises(ValidationError):
        Settings(app_env="production", jwt_secret="x" * 40, jwt_cookie_secure=False)

    settings = Settings(app_env="production", jwt_secret="x" * 40, jwt_cookie_secure=True)
    assert settings.is_production()


def test_allowed_origins_list():
    settings = Settings(allowed_origins=" http://a.test, ,http://b.test ")
    assert settings.get_allowed_origins_list() == ["http://a.test", "http://b.test"]
