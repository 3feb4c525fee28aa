"""
WikiAPI Server - Local File Model

Dataclass view over a file version held by a file repository.
"""

from dataclasses import dataclass
from typing import Optional, Union

from models.database import Image, OldImage


@dataclass
class LocalFile:
    """
    A file as seen through a repository lookup

    record is None when no version exists for the title.
    redirected holds the title key the lookup started from when the
    title is a file redirect and record belongs to the redirect target.
    """
    name: str
    record: Optional[Union[Image, OldImage]] = None
    repo_name: str = "local"
    redirected: Optional[str] = None
    archive_name: Optional[str] = None

    def Exists(self) -> bool:
        return self.record is not None

    def IsLocal(self) -> bool:
        return self.repo_name == "local"

    def GetRedirected(self) -> Optional[str]:
        return self.redirected
