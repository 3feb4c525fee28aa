"""
WikiAPI Server - Continuation Cursor Models

Tagged cursor variants for resuming a sorted file listing.
NameCursor is used with sort=name, TimestampCursor with sort=timestamp.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NameCursor:
    """Resume position of a name-sorted scan"""
    name: str

    def Encode(self) -> str:
        return self.name


@dataclass(frozen=True)
class TimestampCursor:
    """
    Resume position of a timestamp-sorted scan
    The name breaks ties between files uploaded in the same second.
    """
    timestamp: str  # YYYYMMDDHHMMSS
    name: str

    def Encode(self) -> str:
        return f"{self.timestamp}|{self.name}"
