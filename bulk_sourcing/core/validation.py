"""
Configuration validation for bulk operation sourcing.

Provides detailed validation with clear error messages and suggestions
for store settings and polling options before a SourcingOptions is built.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


@dataclass
class ValidationError:
    """Represents a validation error with detailed context"""
    field: str
    value: Any
    message: str
    suggestion: Optional[str] = None
    code: Optional[str] = None

    def __str__(self) -> str:
        result = f"Invalid {self.field}: {self.message}"
        if self.suggestion:
            result += f" (Suggestion: {self.suggestion})"
        return result


@dataclass
class ValidationResult:
    """Result of validation operation"""
    valid: bool
    errors: List[ValidationError]
    warnings: List[str]

    @property
    def success(self) -> bool:
        return self.valid

    def get_error_summary(self) -> str:
        """Get human-readable summary of all errors"""
        if not self.errors:
            return "No validation errors"

        summary = f"Found {len(self.errors)} validation error(s):\n"
        for i, error in enumerate(self.errors, 1):
            summary += f"  {i}. {error}\n"

        if self.warnings:
            summary += f"\nWarnings ({len(self.warnings)}):\n"
            for i, warning in enumerate(self.warnings, 1):
                summary += f"  {i}. {warning}\n"

        return summary.strip()


class InvalidConfigurationError(Exception):
    """Exception raised when configuration validation fails"""

    def __init__(self, validation_result: ValidationResult):
        self.validation_result = validation_result
        super().__init__(validation_result.get_error_summary())


API_VERSION_PATTERN = re.compile(r"^\d{4}-(01|04|07|10)$|^unstable$")


class ConfigurationValidator:
    """Validates sourcing configuration with detailed error reporting"""

    def validate_store(self, store_identity: str, credentials: str) -> ValidationResult:
        """
        Validate store address and access token.

        Args:
            store_identity: Store domain, e.g. 'my-shop.myshopify.com'
            credentials: Admin API access token

        Returns:
            ValidationResult with detailed feedback
        """
        errors = []
        warnings = []

        if not store_identity:
            errors.append(ValidationError(
                field="store_identity",
                value=store_identity,
                message="is required",
                suggestion="Set SHOPIFY_STORE_URL environment variable (e.g., 'my-shop.myshopify.com')",
                code="MISSING_STORE"
            ))
        else:
            parsed = urlparse(store_identity if "://" in store_identity else f"https://{store_identity}")
            if parsed.scheme and parsed.scheme != "https":
                errors.append(ValidationError(
                    field="store_identity",
                    value=store_identity,
                    message=f"unsupported protocol '{parsed.scheme}'",
                    suggestion="Give the bare store domain; https is always used",
                    code="INVALID_PROTOCOL"
                ))
            if not parsed.hostname or "." not in parsed.hostname:
                errors.append(ValidationError(
                    field="store_identity",
                    value=store_identity,
                    message="is not a domain name",
                    suggestion="Use format: 'my-shop.myshopify.com'",
                    code="INVALID_STORE_DOMAIN"
                ))
            elif not parsed.hostname.endswith(".myshopify.com"):
                warnings.append(
                    f"Store '{parsed.hostname}' is not a *.myshopify.com domain - "
                    "the Admin API is usually only reachable on the myshopify.com domain"
                )

        if not credentials:
            errors.append(ValidationError(
                field="credentials",
                value=None,
                message="is required",
                suggestion="Set SHOPIFY_ACCESS_TOKEN environment variable",
                code="MISSING_CREDENTIAL"
            ))
        elif not credentials.startswith("shpat_") and not credentials.startswith("shpca_"):
            warnings.append("Access token does not look like an Admin API token (expected 'shpat_' prefix)")

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    def validate_polling(self, config: Dict[str, Any]) -> ValidationResult:
        """
        Validate polling and retry settings.

        Args:
            config: Dictionary with poll_interval_ms, max_poll_attempts, max_restarts,
                request_timeout_seconds and api_version (all optional)

        Returns:
            ValidationResult with detailed feedback
        """
        errors = []
        warnings = []

        minimums = {
            "poll_interval_ms": 1,
            "max_poll_attempts": 1,
            "max_restarts": 0,
        }
        values = {}
        for field, minimum in minimums.items():
            raw = config.get(field)
            if raw is None:
                continue
            try:
                value = int(raw)
            except (TypeError, ValueError):
                errors.append(ValidationError(
                    field=field,
                    value=raw,
                    message="must be a whole number",
                    suggestion=f"Use an integer >= {minimum}",
                    code="INVALID_NUMBER_FORMAT"
                ))
                continue
            if value < minimum:
                errors.append(ValidationError(
                    field=field,
                    value=raw,
                    message=f"must be at least {minimum}",
                    code="VALUE_TOO_SMALL"
                ))
                continue
            values[field] = value

        interval = values.get("poll_interval_ms")
        if interval is not None and interval < 100:
            warnings.append(f"Poll interval {interval}ms is very short - this spends API rate limit quickly")

        attempts = values.get("max_poll_attempts")
        if interval is not None and attempts is not None and interval * attempts < 60000:
            warnings.append("Polling gives up in under a minute - large exports will hit the poll timeout")

        timeout = config.get("request_timeout_seconds")
        if timeout is not None:
            try:
                if float(timeout) <= 0:
                    errors.append(ValidationError(
                        field="request_timeout_seconds",
                        value=timeout,
                        message="must be greater than 0",
                        code="VALUE_TOO_SMALL"
                    ))
            except (TypeError, ValueError):
                errors.append(ValidationError(
                    field="request_timeout_seconds",
                    value=timeout,
                    message="must be a number",
                    suggestion="Use seconds, e.g. 30",
                    code="INVALID_NUMBER_FORMAT"
                ))

        api_version = config.get("api_version")
        if api_version is not None and not API_VERSION_PATTERN.match(str(api_version)):
            errors.append(ValidationError(
                field="api_version",
                value=api_version,
                message="is not a Shopify API version",
                suggestion="Use a quarterly version such as '2024-01'",
                code="INVALID_API_VERSION"
            ))

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    def validate_complete_configuration(
        self,
        store_identity: str,
        credentials: str,
        polling_config: Dict[str, Any]
    ) -> ValidationResult:
        """Validate all configuration sections and merge the results"""
        results = [
            self.validate_store(store_identity, credentials),
            self.validate_polling(polling_config),
        ]

        errors = [error for result in results for error in result.errors]
        warnings = [warning for result in results for warning in result.warnings]

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )
