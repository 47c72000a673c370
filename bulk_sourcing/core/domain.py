"""
Core domain models for Shopify bulk operation sourcing.

These models define the fundamental data structures and value objects
used throughout the application, independent of any infrastructure concerns.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class BulkOperationStatus(str, Enum):
    """Status of a remote bulk operation"""

    CREATED = "CREATED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELING = "CANCELING"
    CANCELED = "CANCELED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    BulkOperationStatus.COMPLETED,
    BulkOperationStatus.CANCELED,
    BulkOperationStatus.FAILED,
    BulkOperationStatus.EXPIRED,
})

# Statuses the orchestrator treats as a failed job
FAILED_STATUSES = frozenset({BulkOperationStatus.FAILED, BulkOperationStatus.EXPIRED})


@dataclass(frozen=True)
class BulkOperation:
    """Snapshot of a remote bulk operation as returned by the API"""

    id: str
    status: BulkOperationStatus
    object_count: int = 0
    query: str = ""
    url: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_remote(cls, payload: Dict[str, Any]) -> 'BulkOperation':
        """
        Build an operation from a GraphQL ``BulkOperation`` object.

        ``objectCount`` arrives as a string (Shopify's UnsignedInt64 scalar),
        and ``url`` is empty or null until the job completes with results.
        """
        try:
            status = BulkOperationStatus(payload["status"])
        except (KeyError, ValueError):
            raise ValueError(f"Unknown bulk operation status in payload: {payload.get('status')!r}")

        return cls(
            id=payload.get("id") or "",
            status=status,
            object_count=int(payload.get("objectCount") or 0),
            query=payload.get("query") or "",
            url=payload.get("url") or None,
            error_code=payload.get("errorCode") or None,
        )


GLOBAL_ID_PATTERN = re.compile(
    r"^(?P<scheme>[a-z][a-z0-9+.-]*)://(?P<namespace>[^/]+)/(?P<type_name>[A-Za-z0-9_]+)/(?P<numeric_id>\d+)"
)


@dataclass(frozen=True)
class GlobalId:
    """Parsed form of ``scheme://namespace/Type/numeric-id``"""

    raw: str
    scheme: str
    namespace: str
    type_name: str
    numeric_id: str

    @classmethod
    def parse(cls, value: Any) -> 'GlobalId':
        if not isinstance(value, str):
            raise ValueError(f"Global id must be a string, got: {type(value).__name__}")

        match = GLOBAL_ID_PATTERN.match(value)
        if not match:
            raise ValueError(f"Not a global id: {value!r}")

        return cls(raw=value, **match.groupdict())


# One decoded line of a result artifact
ResultRecord = Dict[str, Any]


@dataclass(frozen=True)
class SourcingOptions:
    """Options for one sourcing run. Immutable for the duration of the run."""

    store_identity: str
    credentials: str = field(repr=False)
    download_images: bool = False
    poll_interval_ms: int = 1000
    max_poll_attempts: int = 3600
    max_restarts: int = 3
    cancel_in_progress: bool = True
    api_version: str = "2024-01"
    request_timeout_seconds: float = 30.0

    def __post_init__(self):
        """Validate numeric bounds and store identity"""
        if not self.store_identity:
            raise ValueError("store_identity is required")
        if self.poll_interval_ms < 1:
            raise ValueError(f"poll_interval_ms must be >= 1, got: {self.poll_interval_ms}")
        if self.max_poll_attempts < 1:
            raise ValueError(f"max_poll_attempts must be >= 1, got: {self.max_poll_attempts}")
        if self.max_restarts < 0:
            raise ValueError(f"max_restarts must be >= 0, got: {self.max_restarts}")
        if self.request_timeout_seconds <= 0:
            raise ValueError(f"request_timeout_seconds must be > 0, got: {self.request_timeout_seconds}")


@dataclass(frozen=True)
class ContentNode:
    """A result record reshaped for the host"""

    node_id: str
    shopify_id: str
    node_type: str
    fields: Dict[str, Any]
    content_digest: str
    parent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Host-facing shape of the node"""
        node = dict(self.fields)
        node["id"] = self.node_id
        node["shopifyId"] = self.shopify_id
        if self.parent_id is not None:
            node["parent"] = self.parent_id
        node["internal"] = {
            "type": self.node_type,
            "contentDigest": self.content_digest,
        }
        return node


@dataclass(frozen=True)
class PluginError:
    """Fatal error report handed to the host"""

    code: str
    context_message: str

    def to_report(self) -> Dict[str, Any]:
        return {"id": self.code, "context": {"sourceMessage": self.context_message}}


class SourcingState(str, Enum):
    """States of one sourcing run"""

    IDLE = "Idle"
    CANCELING = "Canceling"
    STARTING = "Starting"
    POLLING = "Polling"
    INGESTING = "Ingesting"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class SourcingRun:
    """Progress and outcome of one sourcing run"""

    name: str
    state: SourcingState = SourcingState.IDLE
    operation_id: Optional[str] = None
    restarts: int = 0
    nodes_emitted: int = 0
    transitions: List[SourcingState] = field(default_factory=list)
    record_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    plugin_error: Optional[PluginError] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.state == SourcingState.DONE

    @property
    def has_record_errors(self) -> bool:
        return len(self.record_errors) > 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()
