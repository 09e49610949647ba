from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import BinaryIO

from app.storage.base import StorageAdapter


class LocalStorageAdapter(StorageAdapter):
    """Writes uploads below ``root``; the app serves that directory as static media."""

    def __init__(self, root: Path, base_url: str) -> None:
        self._root = root.resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._base_url = base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def _normalize_key(self, key: str) -> str:
        normalized = key.strip().lstrip("/")
        path_key = PurePosixPath(normalized)
        if not normalized or path_key.is_absolute() or ".." in path_key.parts:
            raise ValueError(f"invalid storage key: {key!r}")
        return str(path_key)

    def _path_for_key(self, key: str) -> Path:
        normalized = self._normalize_key(key)
        return self._root.joinpath(*PurePosixPath(normalized).parts)

    def put_file(self, key: str, fileobj: BinaryIO, content_type: str | None = None) -> str:
        path = self._path_for_key(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as out:
            while True:
                chunk = fileobj.read(1024 * 1024)
                if not chunk:
                    break
                out.write(chunk)
        return self._url_for(key)

    def _url_for(self, key: str) -> str:
        return f"{self._base_url}/{self._normalize_key(key)}"
