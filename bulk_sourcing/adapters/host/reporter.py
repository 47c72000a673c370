"""
Logging Reporter

ReporterPort implementation for standalone runs: messages go to the
standard logging system and fatal reports are kept for the caller.
"""

import logging
from typing import List, Optional

from ...core.domain import PluginError
from ..progress.cli import create_activity_timer

logger = logging.getLogger("bulk_sourcing.reporter")


class LoggingReporter:
    """Reporter that logs messages and records panics instead of exiting"""

    def __init__(self, progress_type: str = "auto", reporter_logger: Optional[logging.Logger] = None):
        self.progress_type = progress_type
        self.logger = reporter_logger or logger
        self.panics: List[PluginError] = []

    @property
    def panicked(self) -> bool:
        return len(self.panics) > 0

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warn(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def panic(self, error: PluginError) -> None:
        self.panics.append(error)
        self.logger.critical("[%s] %s", error.code, error.context_message)

    def activity_timer(self, name: str):
        return create_activity_timer(name, self.progress_type)
