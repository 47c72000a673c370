"""
Remote file downloader.

FileMaterializerPort implementation that stores remote images in a local
directory. The file id is derived from the URL, so repeated runs reuse
files that were already downloaded.
"""

import asyncio
import hashlib
import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse

import aiohttp

from ...core.exceptions import MediaResolutionError, NetworkError

logger = logging.getLogger(__name__)


def file_id_for_url(url: str) -> str:
    """Stable identifier of the local copy of ``url``"""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:32]


class RemoteFileDownloader:
    """Downloads remote files into a directory"""

    def __init__(self, directory: Union[str, Path], timeout_seconds: float = 30.0):
        self.directory = Path(directory)
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def path_for(self, url: str) -> Path:
        suffix = PurePosixPath(urlparse(url).path).suffix[:8]
        return self.directory / f"{file_id_for_url(url)}{suffix}"

    def find(self, file_id: str) -> Optional[Path]:
        """Locate a previously materialized file by id"""
        matches = sorted(self.directory.glob(f"{file_id}*"))
        return matches[0] if matches else None

    async def materialize_remote_file(self, url: str) -> str:
        """
        Download ``url`` unless it is already present and return its file id.

        Raises:
            NetworkError: If the download failed in transport
            MediaResolutionError: If the server refused the file or it could not be written
        """
        path = self.path_for(url)
        file_id = file_id_for_url(url)
        if path.exists():
            logger.debug("Reusing %s for %s", path, url)
            return file_id

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise MediaResolutionError(url, f"HTTP {response.status}")
                    content = await response.read()
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to download {url}: {e}", original_error=e)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Download of {url} timed out", original_error=e)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            partial = path.with_name(path.name + ".part")
            partial.write_bytes(content)
            partial.replace(path)
        except OSError as e:
            raise MediaResolutionError(url, f"could not write {path}: {e}")

        logger.debug("Downloaded %s to %s (%d bytes)", url, path, len(content))
        return file_id
