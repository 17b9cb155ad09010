import pytest

from app.core.config import Settings, validate_settings


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


def test_url_without_credentials():
    config = make_settings(MONGO_HOST="db:27017")
    assert config.mongodb_url == "mongodb://db:27017/users"


def test_url_escapes_credentials():
    config = make_settings(MONGO_HOST="db", MONGO_USER="svc", MONGO_PASS="p@ss/word")
    assert config.mongodb_url == "mongodb://svc:p%40ss%2Fword@db/users"


def test_password_without_user_is_rejected():
    with pytest.raises(ValueError):
        make_settings(MONGO_PASS="secret")


def test_production_requires_credentials():
    with pytest.raises(ValueError, match="MONGO_USER"):
        validate_settings(make_settings(ENVIRONMENT="production"))

    config = make_settings(ENVIRONMENT="production", MONGO_USER="svc", MONGO_PASS="pw")
    assert validate_settings(config) is True
