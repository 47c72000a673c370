"""
Stale operation handling.

Shopify allows a single bulk query job per store. Before a run starts its own
job, any in-flight job is either canceled or waited out, so that on return no
non-terminal job exists for the store.
"""

import logging
from typing import Optional

from .domain import BulkOperation, BulkOperationStatus
from .poller import OperationPoller
from .ports import OperationClientPort, ReporterPort

logger = logging.getLogger(__name__)


class OperationCanceller:
    """Neutralizes a stale in-flight bulk operation"""

    def __init__(
        self,
        client: OperationClientPort,
        poller: OperationPoller,
        reporter: Optional[ReporterPort] = None
    ):
        self.client = client
        self.poller = poller
        self.reporter = reporter

    async def ensure_no_operation_in_progress(self) -> Optional[BulkOperation]:
        """
        Cancel the current job if it is still running and wait until it is terminal.

        Returns:
            The terminal snapshot of the canceled job, or None if nothing was in progress

        Raises:
            RequestRejected: If the cancel request was rejected
            PollTimeout: If the job did not settle within the poll budget
        """
        current = await self.client.current()
        if current is None or current.is_terminal:
            return None

        message = f"Canceling a currently running operation: {current.id}, this could take a few moments"
        logger.info(message)
        if self.reporter:
            self.reporter.info(message)

        # A job already in CANCELING only needs to be waited out
        if current.status != BulkOperationStatus.CANCELING:
            canceling = await self.client.cancel(current.id)
            logger.debug("Cancel requested for %s, status now %s", current.id, canceling.status.value)

        final = await self.poller.await_completion(current.id)
        logger.info("Previous bulk operation %s settled as %s", current.id, final.status.value)
        return final

    async def finish_last_operation(self) -> Optional[BulkOperation]:
        """
        Wait for the current job to finish on its own, without canceling it.

        Returns:
            The terminal snapshot of the waited-for job, or None if nothing was in progress
        """
        current = await self.client.current()
        if current is None or current.is_terminal:
            return None

        message = f"Waiting for operation {current.id} : {current.status.value}"
        logger.info(message)
        if self.reporter:
            self.reporter.info(message)

        return await self.poller.await_completion(current.id)
