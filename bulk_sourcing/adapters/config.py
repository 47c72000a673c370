"""
Configuration adapter for Shopify bulk sourcing.

Reads store settings and polling options from environment variables
(optionally loaded from a .env file) and turns them into SourcingOptions.
"""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..core.domain import SourcingOptions
from ..core.validation import (
    ConfigurationValidator, InvalidConfigurationError, ValidationError, ValidationResult
)

TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in TRUE_VALUES


class EnvironmentConfigAdapter:
    """Configuration adapter that reads from environment variables with validation"""

    def __init__(self, env_file: Optional[str] = None, load_env: bool = True):
        self.validator = ConfigurationValidator()
        if load_env:
            load_dotenv(env_file)

    def get_store_config(self) -> Dict[str, str]:
        """Get store address and access token from environment"""
        return {
            'store_identity': os.getenv('SHOPIFY_STORE_URL', '').strip(),
            'credentials': os.getenv('SHOPIFY_ACCESS_TOKEN', '').strip(),
        }

    def get_polling_config(self) -> Dict[str, Any]:
        """Get raw polling settings; values stay strings until validated"""
        return {
            'poll_interval_ms': os.getenv('SHOPIFY_POLL_INTERVAL_MS', '1000'),
            'max_poll_attempts': os.getenv('SHOPIFY_MAX_POLL_ATTEMPTS', '3600'),
            'max_restarts': os.getenv('SHOPIFY_MAX_RESTARTS', '3'),
            'request_timeout_seconds': os.getenv('SHOPIFY_REQUEST_TIMEOUT', '30'),
            'api_version': os.getenv('SHOPIFY_API_VERSION', '2024-01'),
        }

    def validate_config_detailed(self) -> ValidationResult:
        """
        Perform detailed configuration validation with helpful error messages.

        Returns:
            ValidationResult with detailed feedback
        """
        store = self.get_store_config()
        return self.validator.validate_complete_configuration(
            store['store_identity'], store['credentials'], self.get_polling_config()
        )

    def get_options(
        self,
        download_images: Optional[bool] = None,
        cancel_in_progress: Optional[bool] = None
    ) -> SourcingOptions:
        """
        Build validated sourcing options.

        Args:
            download_images: Overrides SHOPIFY_DOWNLOAD_IMAGES when given
            cancel_in_progress: Overrides SHOPIFY_CANCEL_IN_PROGRESS when given

        Raises:
            InvalidConfigurationError: If any setting is missing or malformed
        """
        result = self.validate_config_detailed()
        if not result.valid:
            raise InvalidConfigurationError(result)

        store = self.get_store_config()
        polling = self.get_polling_config()

        if download_images is None:
            download_images = _as_bool(os.getenv('SHOPIFY_DOWNLOAD_IMAGES'), False)
        if cancel_in_progress is None:
            cancel_in_progress = _as_bool(os.getenv('SHOPIFY_CANCEL_IN_PROGRESS'), True)

        try:
            return SourcingOptions(
                store_identity=store['store_identity'],
                credentials=store['credentials'],
                download_images=download_images,
                poll_interval_ms=int(polling['poll_interval_ms']),
                max_poll_attempts=int(polling['max_poll_attempts']),
                max_restarts=int(polling['max_restarts']),
                cancel_in_progress=cancel_in_progress,
                api_version=polling['api_version'],
                request_timeout_seconds=float(polling['request_timeout_seconds']),
            )
        except ValueError as e:
            raise InvalidConfigurationError(ValidationResult(
                valid=False,
                errors=[ValidationError(
                    field="configuration",
                    value=None,
                    message=str(e),
                    suggestion="Check SHOPIFY_* environment variables",
                    code="VALIDATION_ERROR"
                )],
                warnings=result.warnings
            )) from e
