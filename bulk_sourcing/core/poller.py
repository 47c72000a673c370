"""
Bulk operation poller.

Drives a job id to a terminal status. The remote API offers no push
notification, so the loop is bounded by a maximum number of attempts.
"""

import asyncio
import logging
from typing import Optional

from .domain import BulkOperation
from .exceptions import NetworkError, PollTimeout
from .ports import OperationClientPort, ProgressCallback, Sleeper

logger = logging.getLogger(__name__)


class OperationPoller:
    """Polls a bulk operation by id until it reaches a terminal status"""

    def __init__(
        self,
        client: OperationClientPort,
        poll_interval_ms: int = 1000,
        max_poll_attempts: int = 3600,
        sleeper: Sleeper = asyncio.sleep
    ):
        self.client = client
        self.poll_interval_ms = poll_interval_ms
        self.max_poll_attempts = max(max_poll_attempts, 1)
        self.sleeper = sleeper

    async def await_completion(
        self,
        operation_id: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> BulkOperation:
        """
        Poll until the operation is terminal and return the terminal snapshot.

        Every successful poll is reported through ``on_progress``. A transient
        NetworkError consumes one attempt and the next poll simply retries.

        Args:
            operation_id: Id of the job to wait for
            on_progress: Optional callback receiving (status, object_count)

        Returns:
            The first terminal BulkOperation observed

        Raises:
            PollTimeout: If no terminal status was seen within max_poll_attempts
        """
        for attempt in range(1, self.max_poll_attempts + 1):
            try:
                operation = await self.client.by_id(operation_id)
            except NetworkError as e:
                logger.warning(
                    "Poll %d/%d for bulk operation %s failed: %s",
                    attempt, self.max_poll_attempts, operation_id, e
                )
            else:
                logger.debug(
                    "Bulk operation %s is %s (%d objects)",
                    operation_id, operation.status.value, operation.object_count
                )
                if on_progress:
                    on_progress(operation.status, operation.object_count)
                if operation.is_terminal:
                    return operation

            if attempt < self.max_poll_attempts:
                await self.sleeper(self.poll_interval_ms / 1000)

        raise PollTimeout(operation_id, self.max_poll_attempts)
