"""
Media resolution for result records.

Finds nested image objects carrying a remote URL and attaches the identifier
of a locally materialized copy as ``localFile``, next to the original fields.
"""

import logging
from typing import Any, Callable, Optional

from .domain import ResultRecord
from .exceptions import InfrastructureError, MediaResolutionError, RecordError
from .ports import FileMaterializerPort

logger = logging.getLogger(__name__)

# Shopify-specific image source key, an image wherever it appears
IMAGE_SOURCE_KEY = "originalSrc"

# Generic source keys only count next to image metadata
GENERIC_SOURCE_KEYS = ("src", "url")
IMAGE_METADATA_KEYS = ("altText", "width", "height")

LOCAL_FILE_KEY = "localFile"


def remote_image_url(value: Any) -> Optional[str]:
    """Return the remote URL of an image-shaped object, or None"""
    if not isinstance(value, dict):
        return None
    keys = [IMAGE_SOURCE_KEY]
    if any(key in value for key in IMAGE_METADATA_KEYS):
        keys.extend(GENERIC_SOURCE_KEYS)
    for key in keys:
        url = value.get(key)
        if isinstance(url, str) and url.startswith(("http://", "https://")):
            return url
    return None


class MediaResolver:
    """Replaces remote image references with local file references"""

    def __init__(self, materializer: Optional[FileMaterializerPort], enabled: bool = False):
        self.materializer = materializer
        self.enabled = enabled and materializer is not None

    async def resolve(
        self,
        record: ResultRecord,
        on_error: Optional[Callable[[RecordError], None]] = None
    ) -> ResultRecord:
        """
        Return a copy of ``record`` whose image objects carry ``localFile``.

        When disabled the record is returned unchanged. A failed image is
        reported as a MediaResolutionError and left without ``localFile``.
        """
        if not self.enabled:
            return record
        return await self._resolve_value(record, record.get("id"), on_error)

    async def _resolve_value(self, value: Any, record_id: Optional[str], on_error) -> Any:
        if isinstance(value, list):
            return [await self._resolve_value(item, record_id, on_error) for item in value]

        if not isinstance(value, dict):
            return value

        resolved = {}
        for key, item in value.items():
            resolved[key] = await self._resolve_value(item, record_id, on_error)

        url = remote_image_url(value)
        if url and LOCAL_FILE_KEY not in value:
            try:
                resolved[LOCAL_FILE_KEY] = await self.materializer.materialize_remote_file(url)
            except MediaResolutionError as e:
                self._report(e, on_error)
            except (InfrastructureError, OSError) as e:
                self._report(MediaResolutionError(url, str(e), record_id), on_error)

        return resolved

    @staticmethod
    def _report(error: MediaResolutionError, on_error) -> None:
        if on_error:
            on_error(error)
        else:
            logger.warning("%s", error)
