"""
Silent Progress Adapter

No-op activity timer for batch jobs or situations where
progress reporting is not desired.
"""


class SilentActivityTimer:
    """Activity timer that only remembers the last status"""

    def __init__(self, name: str = ""):
        self.name = name
        self.current_status = ""

    def start(self) -> None:
        """Silent - do nothing"""
        pass

    def set_status(self, message: str) -> None:
        self.current_status = message

    def end(self) -> None:
        """Silent - do nothing"""
        pass
