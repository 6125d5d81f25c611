"""Unit tests for settings validation and the MongoDB holder."""

import pytest

from common.database import MongoDB
from rndvx.config import Settings


def _settings(**overrides):
    values = {"JWT_SECRET": "s" * 40, "ENVIRONMENT": "development", "CORS_ORIGINS": "http://localhost:5173"}
    values.update(overrides)
    return Settings(**values)


class TestValidateRequired:
    def test_valid_development_settings(self):
        _settings().validate_required()

    def test_missing_secret(self):
        with pytest.raises(ValueError, match="JWT_SECRET is required"):
            _settings(JWT_SECRET=None).validate_required()

    def test_short_secret_only_rejected_in_production(self):
        _settings(JWT_SECRET="short").validate_required()

        with pytest.raises(ValueError, match="at least 32"):
            _settings(JWT_SECRET="short", ENVIRONMENT="production").validate_required()

    def test_wildcard_cors_rejected_in_production(self):
        with pytest.raises(ValueError, match="CORS_ORIGINS"):
            _settings(ENVIRONMENT="production", CORS_ORIGINS="*").validate_required()

    def test_unknown_environment(self):
        with pytest.raises(ValueError, match="ENVIRONMENT"):
            _settings(ENVIRONMENT="qa").validate_required()


class TestCorsOrigins:
    def test_comma_separated(self):
        settings = _settings(CORS_ORIGINS="http://a.test, http://b.test,")

        assert settings.get_cors_origins() == ["http://a.test", "http://b.test"]

    def test_wildcard(self):
        assert _settings(CORS_ORIGINS="*").get_cors_origins() == ["*"]


class TestMongoDB:
    @pytest.mark.asyncio
    async def test_ping_without_connection_is_false(self):
        assert await MongoDB().ping() is False

    def test_db_before_connect_raises(self):
        with pytest.raises(RuntimeError):
            MongoDB().db
