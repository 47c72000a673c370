"""
Integration tests for SourcingOrchestrator.

Drive the full lifecycle (cancel stale job, start, poll, ingest, emit) through
scripted remote status sequences, with the real poller, canceller, ingester,
media resolver, node builder and error classifier wired together.
"""

from dataclasses import replace

import pytest

from bulk_sourcing.core.domain import BulkOperationStatus, SourcingState
from bulk_sourcing.core.error_classifier import ErrorClassifier
from bulk_sourcing.core.exceptions import NetworkError, RequestRejected
from bulk_sourcing.core.media import LOCAL_FILE_KEY
from bulk_sourcing.core.orchestrator import LAST_OPERATION_CACHE_KEY, SourcingOrchestrator, format_poll_status

from test_helpers import (
    OPERATION_ID, RESULT_URL, STALE_OPERATION_ID,
    FakeMaterializer, FakeOperationClient, FakeResultFetcher, jsonl, make_operation
)

SECOND_OPERATION_ID = "gid://shopify/BulkOperation/2"
SECOND_RESULT_URL = "https://storage.example.com/bulk/2.jsonl"
IMAGE_URL = "https://cdn.shopify.com/s/files/snowboard.png"

PRODUCT = {"id": "gid://shopify/Product/1", "title": "Snowboard"}


def orchestrator_for(client, host, options, fetcher, sleeper, materializer=None):
    return SourcingOrchestrator(
        client=client,
        host=host,
        options=options,
        fetcher=fetcher,
        materializer=materializer,
        sleeper=sleeper
    )


def job_creator(client, query="{ products { edges { node { id } } } }"):
    async def create_job():
        return await client.start(query)
    return create_job


def completed_client(records_url=RESULT_URL, object_count=1, current=None):
    return FakeOperationClient(
        current=current,
        started=[make_operation(status="CREATED")],
        polls={OPERATION_ID: [
            make_operation(status="CREATED"),
            make_operation(status="COMPLETED", object_count=object_count, url=records_url),
        ]}
    )


class PartialFetcher:
    """Serves some lines, then fails mid-stream"""

    def __init__(self, lines, error):
        self.lines = lines
        self.error = error

    async def fetch_lines(self, url):
        for line in self.lines:
            yield line
        raise self.error


class TestSuccessfulRuns:
    """Runs that end in Done."""

    @pytest.mark.asyncio
    async def test_single_record_run(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client()
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(PRODUCT)})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client), name="products")

        assert run.success
        assert run.state == SourcingState.DONE
        assert run.transitions == [
            SourcingState.CANCELING, SourcingState.STARTING, SourcingState.POLLING,
            SourcingState.INGESTING, SourcingState.DONE,
        ]
        assert run.operation_id == OPERATION_ID
        assert run.nodes_emitted == 1
        assert [node.shopify_id for node in fake_host.nodes] == ["gid://shopify/Product/1"]

        fake_host.timer.set_status.assert_called_with(
            format_poll_status(OPERATION_ID, BulkOperationStatus.COMPLETED, 1)
        )
        last_status = fake_host.timer.set_status.call_args.args[0]
        assert OPERATION_ID in last_status
        assert "Status: COMPLETED" in last_status
        assert "Object count: 1" in last_status

        assert fake_host.panics == []
        assert fake_host.cache.data[LAST_OPERATION_CACHE_KEY] == OPERATION_ID
        assert fake_host.timer.name == "Source from bulk operation products"
        assert fake_host.timer.started and fake_host.timer.ended
        assert "Initiating bulk operation query products" in fake_host.info_messages

    @pytest.mark.asyncio
    async def test_stale_job_canceled_before_start(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(current=make_operation(STALE_OPERATION_ID, "RUNNING"))
        client.polls[STALE_OPERATION_ID] = [
            make_operation(STALE_OPERATION_ID, "CANCELING"),
            make_operation(STALE_OPERATION_ID, "CANCELED"),
        ]
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(PRODUCT)})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client), name="products")

        assert run.success
        assert client.cancel_calls == [STALE_OPERATION_ID]
        assert client.calls.index(("cancel", STALE_OPERATION_ID)) < client.calls.index(
            ("start", "{ products { edges { node { id } } } }"))
        # Stale job reached CANCELED before the new job started
        last_stale_poll = max(i for i, call in enumerate(client.calls) if call == ("by_id", STALE_OPERATION_ID))
        first_start = next(i for i, call in enumerate(client.calls) if call[0] == "start")
        assert last_stale_poll < first_start
        assert len(fake_host.nodes) == 1
        assert any("Canceling a currently running operation" in message for message in fake_host.info_messages)

    @pytest.mark.asyncio
    async def test_external_cancellation_restarts_job(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED"), make_operation(SECOND_OPERATION_ID, "CREATED")],
            polls={
                OPERATION_ID: [make_operation(status="RUNNING"), make_operation(status="CANCELED")],
                SECOND_OPERATION_ID: [
                    make_operation(SECOND_OPERATION_ID, "COMPLETED", object_count=1, url=SECOND_RESULT_URL)
                ],
            }
        )
        fetcher = FakeResultFetcher({SECOND_RESULT_URL: jsonl(PRODUCT)})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client), name="products")

        assert run.success
        assert client.start_calls == 2
        assert run.restarts == 1
        assert run.operation_id == SECOND_OPERATION_ID
        assert fetcher.fetched == [SECOND_RESULT_URL]
        assert [node.shopify_id for node in fake_host.nodes] == ["gid://shopify/Product/1"]
        assert run.transitions.count(SourcingState.STARTING) == 2
        assert len(run.warnings) == 1
        assert fake_host.cache.data[LAST_OPERATION_CACHE_KEY] == SECOND_OPERATION_ID

    @pytest.mark.asyncio
    async def test_every_line_becomes_one_node_in_order(
        self, fake_host, sourcing_options, immediate_sleeper, sample_product_records
    ):
        client = completed_client(object_count=3)
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(*sample_product_records)})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.nodes_emitted == 3
        assert [node.shopify_id for node in fake_host.nodes] == [record["id"] for record in sample_product_records]
        product, image, variant = fake_host.nodes
        assert image.parent_id == product.node_id
        assert variant.parent_id == product.node_id
        assert variant.node_type == "ShopifyProductVariant"

    @pytest.mark.asyncio
    async def test_completed_without_url_emits_nothing(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(records_url=None, object_count=0)
        fetcher = FakeResultFetcher()
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        assert run.nodes_emitted == 0
        assert fetcher.fetched == []
        assert fake_host.cache.data[LAST_OPERATION_CACHE_KEY] == OPERATION_ID

    @pytest.mark.asyncio
    async def test_wait_mode_does_not_cancel(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(current=make_operation(STALE_OPERATION_ID, "RUNNING"))
        client.polls[STALE_OPERATION_ID] = [
            make_operation(STALE_OPERATION_ID, "RUNNING"),
            make_operation(STALE_OPERATION_ID, "COMPLETED", url="https://storage.example.com/bulk/0.jsonl"),
        ]
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(PRODUCT)})
        options = replace(sourcing_options, cancel_in_progress=False)
        orchestrator = orchestrator_for(client, fake_host, options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        assert client.cancel_calls == []
        assert client.poll_calls(STALE_OPERATION_ID) == 2
        assert fetcher.fetched == [RESULT_URL]


class TestRecordLevelFaults:
    """Faults that skip or degrade one record without stopping the run."""

    @pytest.mark.asyncio
    async def test_malformed_line_skipped(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(object_count=3)
        lines = ['{"id": "gid://shopify/Product/1"}', '{"id": ', '{"id": "gid://shopify/Product/3"}']
        fetcher = FakeResultFetcher({RESULT_URL: lines})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        assert run.nodes_emitted == 2
        assert run.has_record_errors
        assert "Result line 1" in run.record_errors[0]
        assert fake_host.warn_messages == run.record_errors
        assert fake_host.panics == []

    @pytest.mark.asyncio
    async def test_record_without_global_id_skipped(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(object_count=2)
        fetcher = FakeResultFetcher({RESULT_URL: jsonl({"id": "12345"}, PRODUCT)})
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        assert run.nodes_emitted == 1
        assert len(run.record_errors) == 1

    @pytest.mark.asyncio
    async def test_downloaded_image_attached(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client()
        record = {"id": "gid://shopify/Product/1", "featuredImage": {"originalSrc": IMAGE_URL}}
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(record)})
        materializer = FakeMaterializer()
        options = replace(sourcing_options, download_images=True)
        orchestrator = orchestrator_for(client, fake_host, options, fetcher, immediate_sleeper, materializer)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        expected = await FakeMaterializer().materialize_remote_file(IMAGE_URL)
        assert fake_host.nodes[0].fields["featuredImage"][LOCAL_FILE_KEY] == expected

    @pytest.mark.asyncio
    async def test_failed_image_still_emits_node(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client()
        record = {"id": "gid://shopify/Product/1", "featuredImage": {"originalSrc": IMAGE_URL}}
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(record)})
        materializer = FakeMaterializer({IMAGE_URL: NetworkError("connection reset")})
        options = replace(sourcing_options, download_images=True)
        orchestrator = orchestrator_for(client, fake_host, options, fetcher, immediate_sleeper, materializer)

        run = await orchestrator.source(job_creator(client))

        assert run.success
        assert run.nodes_emitted == 1
        assert LOCAL_FILE_KEY not in fake_host.nodes[0].fields["featuredImage"]
        assert run.has_warnings
        assert not run.has_record_errors
        assert len(fake_host.warn_messages) == 1

    @pytest.mark.asyncio
    async def test_images_ignored_when_disabled(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client()
        record = {"id": "gid://shopify/Product/1", "featuredImage": {"originalSrc": IMAGE_URL}}
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(record)})
        materializer = FakeMaterializer()
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper, materializer)

        await orchestrator.source(job_creator(client))

        assert materializer.requested == []
        assert LOCAL_FILE_KEY not in fake_host.nodes[0].fields["featuredImage"]


class TestFatalFaults:
    """Faults that halt the run with exactly one fatal report."""

    @pytest.mark.asyncio
    async def test_failed_job_reports_default_code(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED")],
            polls={OPERATION_ID: [make_operation(status="FAILED", error_code="ACCESS_DENIED")]}
        )
        fetcher = FakeResultFetcher()
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client), name="products")

        assert run.state == SourcingState.FAILED
        assert fake_host.reporter.panic.call_count == 1
        plugin_error = fake_host.panics[0]
        assert plugin_error.code == "111001"
        assert "ACCESS_DENIED" in plugin_error.context_message
        assert run.plugin_error == plugin_error
        assert fake_host.nodes == []
        assert client.start_calls == 1
        assert LAST_OPERATION_CACHE_KEY not in fake_host.cache.data
        assert fake_host.timer.ended

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_code,expected", [("INTERNAL_SERVER_ERROR", "111002"), ("TIMEOUT", "111000")])
    async def test_failed_job_known_codes(self, fake_host, sourcing_options, immediate_sleeper, error_code, expected):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED")],
            polls={OPERATION_ID: [make_operation(status="FAILED", error_code=error_code)]}
        )
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, FakeResultFetcher(), immediate_sleeper)

        await orchestrator.source(job_creator(client))

        assert fake_host.panics[0].code == expected

    @pytest.mark.asyncio
    async def test_expired_job_treated_as_failed(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED")],
            polls={OPERATION_ID: [make_operation(status="EXPIRED")]}
        )
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, FakeResultFetcher(), immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert client.start_calls == 1
        assert "EXPIRED" in fake_host.panics[0].context_message

    @pytest.mark.asyncio
    async def test_rejected_start(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[RequestRejected(["query Invalid bulk query"], "bulk operation start")]
        )
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, FakeResultFetcher(), immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.transitions == [SourcingState.CANCELING, SourcingState.STARTING, SourcingState.FAILED]
        assert fake_host.panics[0].code == "111000"
        assert "query Invalid bulk query" in fake_host.panics[0].context_message

    @pytest.mark.asyncio
    async def test_retry_budget_exceeded(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED"), make_operation(SECOND_OPERATION_ID, "CREATED")],
            polls={
                OPERATION_ID: [make_operation(status="CANCELED")],
                SECOND_OPERATION_ID: [make_operation(SECOND_OPERATION_ID, "CANCELED")],
            }
        )
        options = replace(sourcing_options, max_restarts=1)
        orchestrator = orchestrator_for(client, fake_host, options, FakeResultFetcher(), immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert client.start_calls == 2
        assert run.restarts == 1
        assert fake_host.panics[0].code == "111003"
        assert fake_host.reporter.panic.call_count == 1

    @pytest.mark.asyncio
    async def test_poll_timeout(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED")],
            polls={OPERATION_ID: [make_operation(status="RUNNING")]}
        )
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, FakeResultFetcher(), immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert fake_host.panics[0].code == "111000"
        assert client.poll_calls(OPERATION_ID) == sourcing_options.max_poll_attempts
        assert immediate_sleeper.delays == [1.0] * (sourcing_options.max_poll_attempts - 1)

    @pytest.mark.asyncio
    async def test_download_failure_keeps_emitted_nodes(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(object_count=2)
        fetcher = PartialFetcher(jsonl(PRODUCT), NetworkError("connection reset"))
        orchestrator = orchestrator_for(client, fake_host, sourcing_options, fetcher, immediate_sleeper)

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert run.nodes_emitted == 1
        assert len(fake_host.nodes) == 1
        assert fake_host.panics[0].code == "111002"

    @pytest.mark.asyncio
    async def test_unexpected_error_uses_default_code(self, fake_host, sourcing_options, immediate_sleeper):
        async def broken_job():
            raise RuntimeError("query builder crashed")

        orchestrator = orchestrator_for(
            FakeOperationClient(), fake_host, sourcing_options, FakeResultFetcher(), immediate_sleeper
        )

        run = await orchestrator.source(broken_job)

        assert run.state == SourcingState.FAILED
        assert fake_host.panics[0].code == "111001"
        assert fake_host.panics[0].context_message == "RuntimeError: query builder crashed"
        assert fake_host.timer.ended


class NeverRetryClassifier(ErrorClassifier):
    def is_retryable(self, error):
        return False


class StrictRecordClassifier(ErrorClassifier):
    def is_fatal(self, error):
        return True


class TestClassifierDecisions:
    """The orchestrator asks its classifier whether to restart or halt."""

    @pytest.mark.asyncio
    async def test_cancellation_not_restarted_when_not_retryable(self, fake_host, sourcing_options, immediate_sleeper):
        client = FakeOperationClient(
            started=[make_operation(status="CREATED")],
            polls={OPERATION_ID: [make_operation(status="CANCELED")]}
        )
        orchestrator = SourcingOrchestrator(
            client=client, host=fake_host, options=sourcing_options, fetcher=FakeResultFetcher(),
            sleeper=immediate_sleeper, classifier=NeverRetryClassifier()
        )

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert client.start_calls == 1
        assert run.restarts == 0
        assert fake_host.panics[0].code == "111001"

    @pytest.mark.asyncio
    async def test_unbuildable_record_halts_when_fatal(self, fake_host, sourcing_options, immediate_sleeper):
        client = completed_client(object_count=2)
        fetcher = FakeResultFetcher({RESULT_URL: jsonl(PRODUCT, {"id": "12345"})})
        orchestrator = SourcingOrchestrator(
            client=client, host=fake_host, options=sourcing_options, fetcher=fetcher,
            sleeper=immediate_sleeper, classifier=StrictRecordClassifier()
        )

        run = await orchestrator.source(job_creator(client))

        assert run.state == SourcingState.FAILED
        assert run.nodes_emitted == 1
        assert run.record_errors == []
        assert len(fake_host.panics) == 1
