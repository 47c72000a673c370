"""
Error classification for sourcing runs.

Maps remote failure codes and local faults onto the small, stable set of
plugin error codes reported to the host, and decides halt versus continue.
"""

from typing import Dict

from .domain import PluginError
from .exceptions import (
    FatalSourcingError, NetworkError, OperationCanceledExternally, OperationFailed,
    PollTimeout, RecordError, RequestRejected, RetryBudgetExceeded
)


class PluginErrorCode:
    """Stable error codes reported to the host"""

    BULK_OPERATION_FAILED = "111000"
    UNKNOWN_SOURCING_FAILURE = "111001"
    UNKNOWN_API_ERROR = "111002"
    API_CONFLICT = "111003"


# Remote BulkOperation.errorCode values with a dedicated plugin code.
# Anything else, ACCESS_DENIED included, falls back to UNKNOWN_SOURCING_FAILURE.
REMOTE_ERROR_CODES: Dict[str, str] = {
    "INTERNAL_SERVER_ERROR": PluginErrorCode.UNKNOWN_API_ERROR,
    "TIMEOUT": PluginErrorCode.BULK_OPERATION_FAILED,
}


class ErrorClassifier:
    """Turns exceptions into PluginError reports"""

    def __init__(self, remote_codes: Dict[str, str] = None,
                 default_code: str = PluginErrorCode.UNKNOWN_SOURCING_FAILURE):
        self.remote_codes = dict(REMOTE_ERROR_CODES if remote_codes is None else remote_codes)
        self.default_code = default_code

    def classify(self, error: BaseException) -> PluginError:
        """
        Build the PluginError for a fault that halted a run.

        The context message always carries the raw remote error code or
        message so the failure can be diagnosed from the report alone.
        """
        if isinstance(error, OperationFailed):
            code = self.remote_codes.get(error.error_code or "", self.default_code)
            return PluginError(code=code, context_message=str(error))

        if isinstance(error, (RequestRejected, PollTimeout)):
            return PluginError(code=PluginErrorCode.BULK_OPERATION_FAILED, context_message=str(error))

        if isinstance(error, RetryBudgetExceeded):
            return PluginError(code=PluginErrorCode.API_CONFLICT, context_message=str(error))

        if isinstance(error, NetworkError):
            message = str(error)
            if error.original_error is not None:
                message += f" ({type(error.original_error).__name__}: {error.original_error})"
            return PluginError(code=PluginErrorCode.UNKNOWN_API_ERROR, context_message=message)

        return PluginError(
            code=self.default_code,
            context_message=f"{type(error).__name__}: {error}"
        )

    def is_fatal(self, error: BaseException) -> bool:
        """Record-level faults and external cancellations do not halt a run"""
        if isinstance(error, (RecordError, OperationCanceledExternally)):
            return False
        return True

    def is_retryable(self, error: BaseException) -> bool:
        """Only an externally canceled job is restarted; FAILED jobs never are"""
        return isinstance(error, OperationCanceledExternally)

    @staticmethod
    def is_domain_fault(error: BaseException) -> bool:
        """Whether the fault is one of the known kinds (no traceback needed in logs)"""
        return isinstance(error, (FatalSourcingError, NetworkError))
