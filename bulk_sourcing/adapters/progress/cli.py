"""
CLI Progress Adapters

Activity timers for command-line use: a rich live spinner for terminals
and plain print statements when output is redirected.
"""

import sys
import time
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .silent import SilentActivityTimer


class RichActivityTimer:
    """Activity timer rendered as a rich status spinner"""

    def __init__(self, name: str, console: Optional[Console] = None):
        self.name = name
        self.console = console or Console()
        self.current_status = ""
        self._status = None
        self._started_at: Optional[float] = None

    def start(self) -> None:
        """Show the spinner"""
        self._started_at = time.monotonic()
        self._status = self.console.status(f"[bold blue]{escape(self.name)}")
        self._status.start()

    def set_status(self, message: str) -> None:
        """Replace the status text under the timer name"""
        self.current_status = message
        if self._status:
            self._status.update(f"[bold blue]{escape(self.name)}[/]\n{escape(message)}")

    def end(self) -> None:
        """Stop the spinner and print the elapsed time"""
        if self._status:
            self._status.stop()
            self._status = None
        elapsed = time.monotonic() - self._started_at if self._started_at else 0.0
        self.console.print(f"[green]done[/] {escape(self.name)} - {elapsed:.1f}s")


class SimpleActivityTimer:
    """Activity timer without live rendering"""

    def __init__(self, name: str):
        self.name = name
        self.current_status = ""
        self._started_at: Optional[float] = None

    def start(self) -> None:
        self._started_at = time.monotonic()
        print(f"Starting: {self.name}")

    def set_status(self, message: str) -> None:
        # Only print if the status changed to reduce output noise
        if message != self.current_status:
            self.current_status = message
            print(f"[{self.name}] {message}")

    def end(self) -> None:
        elapsed = time.monotonic() - self._started_at if self._started_at else 0.0
        print(f"Finished: {self.name} - {elapsed:.1f}s")


def create_activity_timer(name: str, progress_type: str = "auto", **kwargs):
    """
    Factory function to create appropriate activity timer.

    Args:
        name: Timer name shown to the user
        progress_type: Type of timer ("rich", "simple", "silent", "auto")
        **kwargs: Additional arguments for the timer (``console`` for rich)

    Returns:
        Configured activity timer
    """
    if progress_type == "auto":
        if sys.stdout.isatty():
            return RichActivityTimer(name, console=kwargs.get("console"))
        return SimpleActivityTimer(name)

    elif progress_type == "rich":
        return RichActivityTimer(name, console=kwargs.get("console"))

    elif progress_type == "simple":
        return SimpleActivityTimer(name)

    elif progress_type == "silent":
        return SilentActivityTimer(name)

    else:
        raise ValueError(f"Unknown progress type: {progress_type}")
