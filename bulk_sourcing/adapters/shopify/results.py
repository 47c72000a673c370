"""
Result artifact download.

Streams a bulk operation's JSONL file over HTTP and splits it into lines
locally, so long lines and large files never have to fit one read buffer.
"""

import asyncio
from typing import AsyncIterator

import aiohttp

from ...core.exceptions import NetworkError

CHUNK_SIZE = 64 * 1024


class HttpResultFetcher:
    """ResultFetchPort implementation backed by aiohttp"""

    def __init__(self, read_timeout_seconds: float = 60.0, chunk_size: int = CHUNK_SIZE):
        # No total timeout: artifacts can take minutes to stream
        self.timeout = aiohttp.ClientTimeout(total=None, sock_connect=read_timeout_seconds,
                                             sock_read=read_timeout_seconds)
        self.chunk_size = chunk_size

    async def fetch_lines(self, url: str) -> AsyncIterator[bytes]:
        """
        Yield the artifact's lines (without line terminators) in file order.

        Lines stay undecoded, so one line with invalid UTF-8 only spoils that
        line.
        """
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url) as response:
                    response.raise_for_status()

                    buffer = b""
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        buffer += chunk
                        *lines, buffer = buffer.split(b"\n")
                        for line in lines:
                            yield line

                    if buffer:
                        yield buffer

        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to download result artifact: {e}", original_error=e)
        except asyncio.TimeoutError as e:
            raise NetworkError("Result artifact download timed out", original_error=e)
