"""
Core domain layer

Contains the pure sourcing logic, domain models, and port interfaces
that are independent of infrastructure concerns.
"""

from .domain import (
    BulkOperation,
    BulkOperationStatus,
    ContentNode,
    GlobalId,
    PluginError,
    SourcingOptions,
    SourcingRun,
    SourcingState
)

from .canceller import OperationCanceller
from .poller import OperationPoller
from .ingester import ResultIngester
from .media import MediaResolver
from .node_builder import NodeBuilder
from .error_classifier import ErrorClassifier, PluginErrorCode
from .orchestrator import SourcingOrchestrator, LAST_OPERATION_CACHE_KEY

from .ports import (
    OperationClientPort,
    ResultFetchPort,
    FileMaterializerPort,
    ActivityTimerPort,
    ReporterPort,
    NodeCachePort,
    HostCapabilitiesPort
)

from .exceptions import (
    SourcingDomainError,
    FatalSourcingError,
    RecordError,
    RequestRejected,
    PollTimeout,
    OperationFailed,
    OperationCanceledExternally,
    RetryBudgetExceeded,
    DecodeError,
    InvalidRecordError,
    MediaResolutionError,
    InfrastructureError,
    NetworkError
)

__all__ = [
    # Domain models
    'BulkOperation',
    'BulkOperationStatus',
    'ContentNode',
    'GlobalId',
    'PluginError',
    'SourcingOptions',
    'SourcingRun',
    'SourcingState',

    # Services
    'OperationCanceller',
    'OperationPoller',
    'ResultIngester',
    'MediaResolver',
    'NodeBuilder',
    'ErrorClassifier',
    'PluginErrorCode',
    'SourcingOrchestrator',
    'LAST_OPERATION_CACHE_KEY',

    # Ports
    'OperationClientPort',
    'ResultFetchPort',
    'FileMaterializerPort',
    'ActivityTimerPort',
    'ReporterPort',
    'NodeCachePort',
    'HostCapabilitiesPort',

    # Exceptions
    'SourcingDomainError',
    'FatalSourcingError',
    'RecordError',
    'RequestRejected',
    'PollTimeout',
    'OperationFailed',
    'OperationCanceledExternally',
    'RetryBudgetExceeded',
    'DecodeError',
    'InvalidRecordError',
    'MediaResolutionError',
    'InfrastructureError',
    'NetworkError'
]
