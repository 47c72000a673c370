"""
Sourcing Factory

Infrastructure layer wiring: builds a SourcingOrchestrator with concrete
Shopify, result download and media adapters so that the core never
imports them.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Union

from ..core.domain import BulkOperation, SourcingOptions
from ..core.orchestrator import SourcingOrchestrator
from ..core.ports import HostCapabilitiesPort, JobCreator, OperationClientPort, Sleeper
from .media.downloader import RemoteFileDownloader
from .shopify.client import ShopifyOperationClient
from .shopify.queries import BULK_QUERIES
from .shopify.results import HttpResultFetcher

DEFAULT_IMAGES_DIR = ".cache/shopify-images"


class UnknownJobTypeError(ValueError):
    """Raised when no bulk query is registered for a job type"""

    def __init__(self, job_type: str, supported: List[str]):
        self.job_type = job_type
        self.supported = supported
        super().__init__(
            f"Unknown job type '{job_type}'. Supported types: {', '.join(supported)}"
        )


def get_supported_job_types() -> List[str]:
    """Get list of job types with a registered bulk query"""
    return sorted(BULK_QUERIES)


def create_operation_client(options: SourcingOptions) -> ShopifyOperationClient:
    return ShopifyOperationClient(
        store_url=options.store_identity,
        access_token=options.credentials,
        api_version=options.api_version,
        timeout_seconds=options.request_timeout_seconds
    )


def make_job_creator(client: OperationClientPort, job_type: str) -> JobCreator:
    """
    Bind a job type to the bulk query that starts it.

    Raises:
        UnknownJobTypeError: If ``job_type`` has no registered query
    """
    if job_type not in BULK_QUERIES:
        raise UnknownJobTypeError(job_type, get_supported_job_types())
    query = BULK_QUERIES[job_type]

    async def create_job() -> BulkOperation:
        return await client.start(query)

    return create_job


def create_orchestrator(
    options: SourcingOptions,
    host: HostCapabilitiesPort,
    images_dir: Optional[Union[str, Path]] = None,
    client: Optional[OperationClientPort] = None,
    sleeper: Sleeper = asyncio.sleep
) -> SourcingOrchestrator:
    """
    Create an orchestrator wired to the real Shopify adapters.

    Args:
        options: Validated sourcing options
        host: Host capabilities that receive nodes and reports
        images_dir: Where downloaded images are stored (only used with download_images)
        client: Operation client override; defaults to the Admin GraphQL client
        sleeper: Delay function used between polls

    Returns:
        Configured SourcingOrchestrator
    """
    client = client or create_operation_client(options)
    materializer = None
    if options.download_images:
        materializer = RemoteFileDownloader(
            images_dir or DEFAULT_IMAGES_DIR,
            timeout_seconds=options.request_timeout_seconds
        )

    return SourcingOrchestrator(
        client=client,
        host=host,
        options=options,
        fetcher=HttpResultFetcher(),
        materializer=materializer,
        sleeper=sleeper
    )
