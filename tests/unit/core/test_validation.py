"""
Unit tests for ConfigurationValidator.
"""

import pytest

from bulk_sourcing.core.validation import (
    ConfigurationValidator, InvalidConfigurationError, ValidationError, ValidationResult
)


class TestValidateStore:
    """Test store address and token validation."""

    def test_valid_store(self):
        result = ConfigurationValidator().validate_store("test-shop.myshopify.com", "shpat_abc")

        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_https_url_accepted(self):
        result = ConfigurationValidator().validate_store("https://test-shop.myshopify.com/", "shpat_abc")

        assert result.valid

    def test_missing_values(self):
        result = ConfigurationValidator().validate_store("", "")

        assert not result.valid
        assert {error.code for error in result.errors} == {"MISSING_STORE", "MISSING_CREDENTIAL"}

    def test_http_rejected(self):
        result = ConfigurationValidator().validate_store("http://test-shop.myshopify.com", "shpat_abc")

        assert not result.valid
        assert result.errors[0].code == "INVALID_PROTOCOL"

    def test_not_a_domain(self):
        result = ConfigurationValidator().validate_store("localhost", "shpat_abc")

        assert not result.valid
        assert result.errors[0].code == "INVALID_STORE_DOMAIN"

    def test_custom_domain_and_token_warnings(self):
        result = ConfigurationValidator().validate_store("shop.example.com", "token123")

        assert result.valid
        assert len(result.warnings) == 2


class TestValidatePolling:
    """Test polling and retry settings validation."""

    def test_defaults_valid(self):
        result = ConfigurationValidator().validate_polling({
            "poll_interval_ms": "1000",
            "max_poll_attempts": "3600",
            "max_restarts": "3",
            "request_timeout_seconds": "30",
            "api_version": "2024-01",
        })

        assert result.valid
        assert result.warnings == []

    def test_empty_config_valid(self):
        assert ConfigurationValidator().validate_polling({}).valid

    @pytest.mark.parametrize("field,value,code", [
        ("poll_interval_ms", "fast", "INVALID_NUMBER_FORMAT"),
        ("poll_interval_ms", "-5", "VALUE_TOO_SMALL"),
        ("poll_interval_ms", "0", "VALUE_TOO_SMALL"),
        ("max_poll_attempts", "0", "VALUE_TOO_SMALL"),
        ("max_restarts", "-1", "VALUE_TOO_SMALL"),
        ("request_timeout_seconds", "0", "VALUE_TOO_SMALL"),
        ("request_timeout_seconds", "soon", "INVALID_NUMBER_FORMAT"),
        ("api_version", "2024-02", "INVALID_API_VERSION"),
    ])
    def test_invalid_values(self, field, value, code):
        result = ConfigurationValidator().validate_polling({field: value})

        assert not result.valid
        assert result.errors[0].field == field
        assert result.errors[0].code == code

    def test_unstable_api_version_valid(self):
        assert ConfigurationValidator().validate_polling({"api_version": "unstable"}).valid

    def test_short_interval_warnings(self):
        result = ConfigurationValidator().validate_polling({"poll_interval_ms": "10", "max_poll_attempts": "5"})

        assert result.valid
        assert len(result.warnings) == 2


class TestCompleteConfiguration:

    def test_merges_errors_and_warnings(self):
        result = ConfigurationValidator().validate_complete_configuration(
            "", "token123", {"max_poll_attempts": "0"}
        )

        assert not result.valid
        assert len(result.errors) == 2
        assert len(result.warnings) == 1

    def test_error_summary(self):
        result = ValidationResult(
            valid=False,
            errors=[ValidationError("credentials", None, "is required", "Set SHOPIFY_ACCESS_TOKEN")],
            warnings=["heads up"]
        )

        summary = result.get_error_summary()

        assert "Found 1 validation error(s)" in summary
        assert "Invalid credentials: is required (Suggestion: Set SHOPIFY_ACCESS_TOKEN)" in summary
        assert "heads up" in summary

    def test_invalid_configuration_error_message(self):
        result = ValidationResult(valid=False, errors=[ValidationError("store_identity", "", "is required")],
                                  warnings=[])

        error = InvalidConfigurationError(result)

        assert error.validation_result is result
        assert "Invalid store_identity: is required" in str(error)
