"""
Tests for settings validation and the exception hierarchy
"""

from unittest.mock import patch

import pytest

from minimall.core.config import settings
from minimall.core.exceptions import ConfigurationError, StorageError, WebhookError


class TestValidateConfiguration:
    def test_development_skips_checks(self):
        with patch.object(settings, "ENVIRONMENT", "development"):
            settings.validate_configuration()
            assert settings.is_development

    def test_production_rejects_default_token(self):
        with patch.object(settings, "ENVIRONMENT", "production"), patch.object(
            settings.security, "INTERNAL_API_TOKEN", "dev-token"
        ):
            with pytest.raises(ConfigurationError) as exc_info:
                settings.validate_configuration()
            assert not settings.is_development

        assert exc_info.value.details["config_key"] == "INTERNAL_API_TOKEN"

    def test_production_requires_api_secret(self):
        with patch.object(settings, "ENVIRONMENT", "Production"), patch.object(
            settings.security, "INTERNAL_API_TOKEN", "rotated-token"
        ), patch.object(
            settings.security, "SESSION_SECRET", "rotated-session-secret"
        ), patch.object(settings.shopify, "SHOPIFY_API_SECRET", ""):
            with pytest.raises(ConfigurationError) as exc_info:
                settings.validate_configuration()

        assert exc_info.value.details["config_key"] == "SHOPIFY_API_SECRET"


class TestExceptions:
    def test_str_includes_code(self):
        error = StorageError("R2 request failed", status_code=503, key="configs/a.json")

        assert str(error) == "[STORAGE_ERROR] R2 request failed"
        assert error.to_dict()["details"] == {"status_code": 503, "key": "configs/a.json"}

    def test_webhook_error_carries_status(self):
        error = WebhookError(
            "Too many requests", error_code="RATE_LIMITED", status_code=429, topic="orders/create"
        )

        assert error.status_code == 429
        assert error.error_code == "RATE_LIMITED"
