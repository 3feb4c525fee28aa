"""
WikiAPI Server - Status Model

Dataclass for the outcome of a domain operation.
A status carries an ok flag, an optional value and message lists,
so expected failures travel as data instead of exceptions.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class StatusMessage:
    """A single error or warning: message key plus rendered text"""
    code: str
    info: str


@dataclass
class Status:
    """
    Result of a domain operation such as a page deletion
    """
    ok: bool = True
    value: Any = None
    errors: List[StatusMessage] = field(default_factory=list)
    warnings: List[StatusMessage] = field(default_factory=list)

    @classmethod
    def NewGood(cls, value: Any = None) -> "Status":
        """Create a successful status"""
        return cls(ok=True, value=value)

    @classmethod
    def NewFatal(cls, code: str, info: str) -> "Status":
        """Create a failed status with one error message"""
        return cls(ok=False, errors=[StatusMessage(code, info)])

    def IsOK(self) -> bool:
        return self.ok

    def Warning(self, code: str, info: str) -> None:
        """Add a non-fatal message"""
        self.warnings.append(StatusMessage(code, info))

    def Fatal(self, code: str, info: str) -> None:
        """Add an error message and mark the status as failed"""
        self.errors.append(StatusMessage(code, info))
        self.ok = False

    def HasMessage(self, code: str) -> bool:
        """Check whether any error or warning carries the given key"""
        return any(m.code == code for m in self.errors + self.warnings)

    def FirstError(self) -> Optional[StatusMessage]:
        return self.errors[0] if self.errors else None
