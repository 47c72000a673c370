"""
Domain-Specific Exceptions

Defines domain-specific exceptions and error boundaries for bulk operation sourcing.
Two severities coexist: run-level faults derive from FatalSourcingError and halt
the run, record-level faults derive from RecordError and only skip or degrade a
single record.
"""

from typing import Any, Dict, List, Optional

from .domain import BulkOperation


# Base domain exception hierarchy
class SourcingDomainError(Exception):
    """Base exception for all sourcing domain errors"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.domain = "ShopifyBulkSourcing"


class FatalSourcingError(SourcingDomainError):
    """Base exception for errors that halt the whole run"""
    pass


class RecordError(SourcingDomainError):
    """Base exception for errors confined to a single result record"""
    pass


# Run-level exceptions
class RequestRejected(FatalSourcingError):
    """Raised when the remote API answers with inline user errors"""

    def __init__(self, messages: List[str], request: str = "request"):
        self.messages = list(messages) or ["no error message returned"]
        self.request = request
        super().__init__(
            f"Remote API rejected {request}: {'; '.join(self.messages)}",
            {"request": request, "messages": self.messages}
        )


class PollTimeout(FatalSourcingError):
    """Raised when a job did not reach a terminal status within the poll budget"""

    def __init__(self, operation_id: str, attempts: int):
        self.operation_id = operation_id
        self.attempts = attempts
        super().__init__(
            f"Bulk operation {operation_id} did not finish after {attempts} poll attempts",
            {"operation_id": operation_id, "attempts": attempts}
        )


class OperationFailed(FatalSourcingError):
    """Raised when the remote job ends in a failed terminal status"""

    def __init__(self, operation: BulkOperation, operation_id: Optional[str] = None):
        self.operation = operation
        self.operation_id = operation_id or operation.id
        self.error_code = operation.error_code
        super().__init__(
            f"Bulk operation {self.operation_id} ended with status {operation.status.value} "
            f"after {operation.object_count} objects (error code: {self.error_code or 'none'})",
            {"operation_id": self.operation_id, "status": operation.status.value,
             "error_code": self.error_code}
        )


class OperationCanceledExternally(SourcingDomainError):
    """Raised when a job started by this run is observed as CANCELED"""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(
            f"Bulk operation {operation_id} was canceled by another client",
            {"operation_id": operation_id}
        )


class RetryBudgetExceeded(FatalSourcingError):
    """Raised when external cancellations exhausted the restart budget"""

    def __init__(self, operation_id: str, restarts: int):
        self.operation_id = operation_id
        self.restarts = restarts
        super().__init__(
            f"Bulk operation {operation_id} was canceled externally again after {restarts} restart(s)",
            {"operation_id": operation_id, "restarts": restarts}
        )


# Record-level exceptions
class DecodeError(RecordError):
    """Raised when a result line cannot be decoded into a record"""

    def __init__(self, line_index: int, reason: str, line: str = ""):
        self.line_index = line_index
        self.reason = reason
        self.line = line
        super().__init__(
            f"Result line {line_index} could not be decoded: {reason}",
            {"line_index": line_index}
        )


class InvalidRecordError(RecordError):
    """Raised when a decoded record cannot be turned into a content node"""

    def __init__(self, message: str, record_id: Any = None):
        self.record_id = record_id
        super().__init__(message, {"record_id": record_id})


class MediaResolutionError(RecordError):
    """Raised when a remote image could not be materialized locally"""

    def __init__(self, url: str, reason: str, record_id: Optional[str] = None):
        self.url = url
        self.reason = reason
        self.record_id = record_id
        super().__init__(
            f"Could not materialize {url}: {reason}",
            {"url": url, "record_id": record_id}
        )


# Infrastructure boundary exceptions
class InfrastructureError(Exception):
    """Base exception for infrastructure-level errors that need translation"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class NetworkError(InfrastructureError):
    """Transport-level failure of a single request"""
    pass
