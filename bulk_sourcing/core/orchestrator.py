"""
Sourcing Orchestrator

Core service that drives one bulk export job end to end:
cancel stale job -> start -> poll -> ingest -> resolve media -> emit nodes.

Record-level faults are collected on the run and never stop emission.
Run-level faults funnel through a single halt path that reports one
PluginError to the host; nodes emitted before the halt are not retracted.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from .canceller import OperationCanceller
from .domain import (
    BulkOperation, BulkOperationStatus, SourcingOptions, SourcingRun, SourcingState
)
from .error_classifier import ErrorClassifier
from .exceptions import (
    MediaResolutionError, OperationCanceledExternally, OperationFailed, RecordError,
    RetryBudgetExceeded, SourcingDomainError
)
from .ingester import ResultIngester
from .media import MediaResolver
from .node_builder import NodeBuilder
from .poller import OperationPoller
from .ports import (
    ActivityTimerPort, FileMaterializerPort, HostCapabilitiesPort, JobCreator,
    OperationClientPort, ResultFetchPort, Sleeper
)

logger = logging.getLogger(__name__)

LAST_OPERATION_CACHE_KEY = "LAST_SHOPIFY_BULK_OPERATION"


def format_poll_status(operation_id: str, status: BulkOperationStatus, object_count: int) -> str:
    """Progress line published while a job is polled"""
    return (
        f"Polling bulk operation: {operation_id}\n"
        f"Status: {status.value}\n"
        f"Object count: {object_count}"
    )


class SourcingOrchestrator:
    """
    Service for orchestrating a bulk operation sourcing run.

    All collaborators are injected; the orchestrator keeps no state between
    runs; each call to ``source`` threads its own SourcingRun through the steps.
    """

    def __init__(
        self,
        client: OperationClientPort,
        host: HostCapabilitiesPort,
        options: SourcingOptions,
        fetcher: ResultFetchPort,
        materializer: Optional[FileMaterializerPort] = None,
        sleeper: Sleeper = asyncio.sleep,
        classifier: Optional[ErrorClassifier] = None
    ):
        self.client = client
        self.host = host
        self.options = options
        self.poller = OperationPoller(
            client,
            poll_interval_ms=options.poll_interval_ms,
            max_poll_attempts=options.max_poll_attempts,
            sleeper=sleeper
        )
        self.canceller = OperationCanceller(client, self.poller, host.reporter)
        self.ingester = ResultIngester(fetcher)
        self.media_resolver = MediaResolver(materializer, enabled=options.download_images)
        self.node_builder = NodeBuilder(host)
        self.classifier = classifier or ErrorClassifier()

        if options.download_images and materializer is None:
            logger.warning("download_images is set but no file materializer was provided; images will not be downloaded")

    async def source(self, create_job: JobCreator, name: str = "bulk query") -> SourcingRun:
        """
        Run the full lifecycle for one job type.

        Args:
            create_job: Starts a new bulk operation and returns it
            name: Human-readable job name used in reports

        Returns:
            The finished SourcingRun, in state DONE or FAILED
        """
        run = SourcingRun(name=name)
        reporter = self.host.reporter
        timer = reporter.activity_timer(f"Source from bulk operation {name}")
        timer.start()

        try:
            self._transition(run, SourcingState.CANCELING)
            if self.options.cancel_in_progress:
                await self.canceller.ensure_no_operation_in_progress()
            else:
                await self.canceller.finish_last_operation()

            operation = await self._start_until_completed(run, create_job, timer)

            self._transition(run, SourcingState.INGESTING)
            await self._ingest(run, operation)

            await self.host.cache.set(LAST_OPERATION_CACHE_KEY, run.operation_id)
            self._transition(run, SourcingState.DONE)
            logger.info("Sourced %d nodes from bulk operation %s", run.nodes_emitted, run.operation_id)

        except Exception as e:
            self._halt(run, e)

        finally:
            run.finished_at = datetime.now()
            timer.end()

        return run

    async def _start_until_completed(
        self,
        run: SourcingRun,
        create_job: JobCreator,
        timer: ActivityTimerPort
    ) -> BulkOperation:
        """Start the job and poll it, restarting after external cancellations"""
        while True:
            self._transition(run, SourcingState.STARTING)
            self.host.reporter.info(f"Initiating bulk operation query {run.name}")
            started = await create_job()
            run.operation_id = started.id
            logger.info("Started bulk operation %s (%s)", started.id, started.status.value)

            self._transition(run, SourcingState.POLLING)
            try:
                return await self._poll(started, timer)
            except SourcingDomainError as e:
                if not self.classifier.is_retryable(e):
                    raise
                if run.restarts >= self.options.max_restarts:
                    raise RetryBudgetExceeded(started.id, run.restarts) from e
                run.restarts += 1
                message = (
                    f"Bulk operation {started.id} was canceled by another client, "
                    f"restarting ({run.restarts}/{self.options.max_restarts})"
                )
                logger.warning(message)
                run.warnings.append(message)
                self.host.reporter.info(message)

    async def _poll(self, started: BulkOperation, timer: ActivityTimerPort) -> BulkOperation:
        def on_progress(status: BulkOperationStatus, object_count: int) -> None:
            timer.set_status(format_poll_status(started.id, status, object_count))

        final = await self.poller.await_completion(started.id, on_progress)

        if final.status == BulkOperationStatus.COMPLETED:
            return final
        if final.status == BulkOperationStatus.CANCELED:
            raise OperationCanceledExternally(started.id)
        raise OperationFailed(final, operation_id=started.id)

    async def _ingest(self, run: SourcingRun, operation: BulkOperation) -> None:
        if not operation.url:
            logger.info("No data was returned for this operation")
            self.host.reporter.info(f"No data was returned for bulk operation {run.operation_id}")
            return

        def on_record_error(error: RecordError) -> None:
            self._record_fault(run, error)

        async for record in self.ingester.ingest(operation.url, on_error=on_record_error):
            resolved = await self.media_resolver.resolve(record, on_error=on_record_error)
            try:
                node = self.node_builder.build(resolved)
            except SourcingDomainError as e:
                if self.classifier.is_fatal(e):
                    raise
                self._record_fault(run, e)
                continue

            self.host.create_node(node)
            run.nodes_emitted += 1

    def _record_fault(self, run: SourcingRun, error: RecordError) -> None:
        """Record-level channel: log, surface, keep going"""
        message = str(error)
        logger.warning(message)
        if isinstance(error, MediaResolutionError):
            run.warnings.append(message)
        else:
            run.record_errors.append(message)
        self.host.reporter.warn(message)

    def _halt(self, run: SourcingRun, error: Exception) -> None:
        """Run-level channel: report exactly one PluginError and stop"""
        plugin_error = self.classifier.classify(error)
        run.plugin_error = plugin_error
        self._transition(run, SourcingState.FAILED)

        if self.classifier.is_domain_fault(error):
            logger.error("Sourcing %s failed [%s]: %s", run.name, plugin_error.code, error)
        else:
            logger.exception("Sourcing %s failed with an unexpected error", run.name)

        self.host.reporter.panic(plugin_error)

    @staticmethod
    def _transition(run: SourcingRun, state: SourcingState) -> None:
        logger.debug("Sourcing %s: %s -> %s", run.name, run.state.value, state.value)
        run.state = state
        run.transitions.append(state)
