"""
Host adapters for standalone runs
"""

from .local import JsonFileCache, LocalHost
from .reporter import LoggingReporter

__all__ = ["JsonFileCache", "LocalHost", "LoggingReporter"]
