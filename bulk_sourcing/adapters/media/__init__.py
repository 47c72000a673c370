"""
Media adapters
"""

from .downloader import RemoteFileDownloader, file_id_for_url

__all__ = ["RemoteFileDownloader", "file_id_for_url"]
