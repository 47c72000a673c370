"""
Shopify Admin GraphQL client for bulk operations.

Implements OperationClientPort over aiohttp. Transport failures become
NetworkError, GraphQL errors and user errors become RequestRejected.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ...core.domain import BulkOperation
from ...core.exceptions import NetworkError, RequestRejected
from .queries import (
    BULK_OPERATION_RUN_QUERY, CANCEL_OPERATION, OPERATION_BY_ID, OPERATION_STATUS
)

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-01"

# Statuses worth another attempt at the next poll
TRANSIENT_HTTP_STATUSES = {429, 500, 502, 503, 504}


def format_user_errors(user_errors: List[Dict[str, Any]]) -> List[str]:
    """Render Shopify userErrors as 'field.path message' strings"""
    messages = []
    for error in user_errors:
        message = error.get("message") or "unknown error"
        field = error.get("field")
        if field:
            message = f"{'.'.join(str(part) for part in field)} {message}"
        messages.append(message)
    return messages


class ShopifyOperationClient:
    """Client for the Shopify Admin GraphQL bulk operation API"""

    def __init__(
        self,
        store_url: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = 30.0
    ):
        """
        Initialize client.

        Args:
            store_url: Store domain, e.g. 'my-shop.myshopify.com' (scheme optional)
            access_token: Admin API access token
            api_version: Admin API version
            timeout_seconds: Total timeout for each request
        """
        store = store_url.split("://", 1)[-1].rstrip("/")
        self.graphql_url = f"https://{store}/admin/api/{api_version}/graphql.json"
        self._access_token = access_token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.

        Raises:
            NetworkError: On transport failures, timeouts and transient HTTP statuses
            RequestRejected: On other HTTP errors or top-level GraphQL errors
        """
        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self._access_token,
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.graphql_url, json=payload, headers=headers) as response:
                    if response.status in TRANSIENT_HTTP_STATUSES:
                        raise NetworkError(f"Shopify API returned HTTP {response.status}")
                    if response.status >= 400:
                        text = await response.text()
                        raise RequestRejected([f"HTTP {response.status}: {text[:200]}"], "GraphQL request")
                    try:
                        body = await response.json(content_type=None)
                    except ValueError as e:
                        raise NetworkError("Shopify API returned a non-JSON response", original_error=e)

        except aiohttp.ClientError as e:
            raise NetworkError(f"Network error calling Shopify API: {e}", original_error=e)
        except asyncio.TimeoutError as e:
            raise NetworkError("Shopify API request timed out", original_error=e)

        # Proxies and maintenance pages can answer 200 with something other than a GraphQL object
        if not isinstance(body, dict):
            raise NetworkError(f"Shopify API returned an unexpected {type(body).__name__} response")

        if body.get("errors"):
            messages = [error.get("message", str(error)) for error in body["errors"]]
            raise RequestRejected(messages, "GraphQL request")

        return body.get("data") or {}

    async def start(self, query: str) -> BulkOperation:
        data = await self.execute(BULK_OPERATION_RUN_QUERY, {"query": query})
        return self._operation_from_mutation(data.get("bulkOperationRunQuery"), "bulk operation start")

    async def cancel(self, operation_id: str) -> BulkOperation:
        data = await self.execute(CANCEL_OPERATION, {"id": operation_id})
        return self._operation_from_mutation(data.get("bulkOperationCancel"), f"cancel of {operation_id}")

    async def current(self) -> Optional[BulkOperation]:
        data = await self.execute(OPERATION_STATUS)
        payload = data.get("currentBulkOperation")
        if not payload:
            return None
        return BulkOperation.from_remote(payload)

    async def by_id(self, operation_id: str) -> BulkOperation:
        data = await self.execute(OPERATION_BY_ID, {"id": operation_id})
        payload = data.get("node")
        if not payload:
            raise RequestRejected([f"No bulk operation found with id {operation_id}"], "operation lookup")
        return BulkOperation.from_remote(payload)

    @staticmethod
    def _operation_from_mutation(result: Optional[Dict[str, Any]], request: str) -> BulkOperation:
        if not result:
            raise RequestRejected(["empty mutation result"], request)

        user_errors = result.get("userErrors") or []
        if user_errors:
            raise RequestRejected(format_user_errors(user_errors), request)

        operation = result.get("bulkOperation")
        if not operation:
            raise RequestRejected(["no bulk operation returned"], request)

        logger.debug("%s returned operation %s", request, operation.get("id"))
        return BulkOperation.from_remote(operation)
