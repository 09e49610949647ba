from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO


class StorageAdapter(ABC):
    @abstractmethod
    def put_file(self, key: str, fileobj: BinaryIO, content_type: str | None = None) -> str:
        """Store content from file-like object under key and return its public URL."""
