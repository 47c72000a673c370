"""
Result artifact ingestion.

Decodes the newline-delimited JSON artifact of a completed bulk operation
into records, lazily and in file order.
"""

import json
import logging
from typing import AsyncIterator, Callable, Optional, Union

from .domain import ResultRecord
from .exceptions import DecodeError, RecordError
from .ports import ResultFetchPort

logger = logging.getLogger(__name__)

RecordErrorHandler = Callable[[RecordError], None]


def decode_line(raw_line: Union[str, bytes]) -> str:
    """Strip a raw artifact line, decoding bytes as UTF-8"""
    if isinstance(raw_line, bytes):
        raw_line = raw_line.decode("utf-8")
    return raw_line.strip()


class ResultIngester:
    """Streams records out of a result artifact"""

    def __init__(self, fetcher: ResultFetchPort):
        self.fetcher = fetcher

    async def ingest(
        self,
        url: str,
        on_error: Optional[RecordErrorHandler] = None
    ) -> AsyncIterator[ResultRecord]:
        """
        Yield one record per non-empty line of the artifact at ``url``.

        A malformed line is reported as a DecodeError through ``on_error``
        (or logged, when no handler is given) and ingestion continues with
        the next line. The sequence is single-pass.

        Raises:
            NetworkError: If the artifact could not be downloaded
        """
        line_index = -1
        async for raw_line in self.fetcher.fetch_lines(url):
            line_index += 1
            try:
                line = decode_line(raw_line)
            except UnicodeDecodeError as e:
                self._report(DecodeError(line_index, f"invalid UTF-8: {e.reason}"), on_error)
                continue

            if not line:
                continue

            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                self._report(DecodeError(line_index, e.msg, line), on_error)
                continue

            if not isinstance(record, dict):
                self._report(DecodeError(line_index, f"expected an object, got {type(record).__name__}", line), on_error)
                continue
            if "id" not in record:
                self._report(DecodeError(line_index, "record has no id field", line), on_error)
                continue

            yield record

        logger.debug("Read %d lines from %s", line_index + 1, url)

    @staticmethod
    def _report(error: RecordError, on_error: Optional[RecordErrorHandler]) -> None:
        if on_error:
            on_error(error)
        else:
            logger.warning("%s", error)
