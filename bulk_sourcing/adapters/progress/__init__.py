"""
Progress adapters
"""

from .cli import RichActivityTimer, SimpleActivityTimer, create_activity_timer
from .silent import SilentActivityTimer

__all__ = [
    "RichActivityTimer",
    "SimpleActivityTimer",
    "SilentActivityTimer",
    "create_activity_timer",
]
