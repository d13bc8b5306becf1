"""Base class for places where license artifacts are kept."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, BinaryIO, Mapping, Optional


class ArtifactStorage(ABC):
    """A store addressed by the relative paths it hands out from ``save``."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Write ``file_obj`` under ``filename`` and return its relative path."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove ``path``; a missing file is not an error."""

    def discard(self, reference: Optional[Mapping[str, object]]) -> None:
        """Delete the file behind an upload reference returned by intake."""

        if not reference:
            return
        path = reference.get("path")
        if isinstance(path, str) and path:
            self.delete(path)
