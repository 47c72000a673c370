"""
Port interfaces for bulk operation sourcing.

These interfaces define the contracts between the domain layer and infrastructure.
They enable dependency inversion and allow for easy testing with mock implementations.
"""

from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol, Union

from .domain import BulkOperation, BulkOperationStatus, ContentNode, PluginError


# Suspends the caller for the given number of seconds (asyncio.sleep in production)
Sleeper = Callable[[float], Awaitable[None]]

# Starts a new bulk operation, supplied by the caller of the orchestrator
JobCreator = Callable[[], Awaitable[BulkOperation]]

# Receives (status, object_count) after every poll
ProgressCallback = Callable[[BulkOperationStatus, int], None]


class OperationClientPort(Protocol):
    """Port for the remote bulk operation API. Each call is one round trip."""

    async def start(self, query: str) -> BulkOperation:
        """
        Start a bulk query job.

        Raises:
            RequestRejected: If the API returned user errors
            NetworkError: If the request failed in transport
        """
        ...

    async def cancel(self, operation_id: str) -> BulkOperation:
        """
        Request cancellation of a job. The returned status is usually CANCELING.

        Raises:
            RequestRejected: If the API returned user errors
            NetworkError: If the request failed in transport
        """
        ...

    async def current(self) -> Optional[BulkOperation]:
        """
        Get the store's most recent bulk query job, or None if there is none.

        Raises:
            NetworkError: If the request failed in transport
        """
        ...

    async def by_id(self, operation_id: str) -> BulkOperation:
        """
        Get a job by id.

        Raises:
            NetworkError: If the request failed in transport
        """
        ...


class ResultFetchPort(Protocol):
    """Port for downloading a result artifact"""

    def fetch_lines(self, url: str) -> AsyncIterator[Union[str, bytes]]:
        """
        Stream the artifact at ``url`` line by line, in file order.

        Lines may be undecoded bytes; decoding is left to the consumer so a
        bad byte sequence stays confined to its line.

        Raises:
            NetworkError: If the download failed
        """
        ...


class FileMaterializerPort(Protocol):
    """Port for turning a remote file URL into a local file reference"""

    async def materialize_remote_file(self, url: str) -> str:
        """
        Fetch ``url`` and return the identifier of the local file.

        Raises:
            MediaResolutionError: If the file could not be stored
            NetworkError: If the download failed
        """
        ...


class ActivityTimerPort(Protocol):
    """Port for a named progress timer"""

    def start(self) -> None:
        ...

    def end(self) -> None:
        ...

    def set_status(self, message: str) -> None:
        """Replace the human-readable status line"""
        ...


class ReporterPort(Protocol):
    """Port for host-side reporting"""

    def info(self, message: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def panic(self, error: PluginError) -> None:
        """Report a fatal error for the run"""
        ...

    def activity_timer(self, name: str) -> ActivityTimerPort:
        ...


class NodeCachePort(Protocol):
    """Port for the host's key/value cache"""

    async def set(self, key: str, value: Any) -> None:
        ...

    async def get(self, key: str) -> Any:
        ...


class HostCapabilitiesPort(Protocol):
    """Capabilities injected by the host that consumes content nodes"""

    reporter: ReporterPort
    cache: NodeCachePort

    def create_node(self, node: ContentNode) -> None:
        """Take ownership of an emitted node"""
        ...

    def create_node_id(self, seed: str) -> str:
        """Derive a stable host node id from a remote id"""
        ...

    def create_content_digest(self, content: Any) -> str:
        ...
