from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from app.core.config import settings
from app.storage.base import StorageAdapter
from app.storage.cloudinary import CloudinaryStorageAdapter
from app.storage.local import LocalStorageAdapter


def create_storage(
    backend: str | None = None,
    root: str | Path | None = None,
) -> StorageAdapter:
    selected_backend = (backend or settings.storage_backend).strip().lower()
    if selected_backend == "local":
        storage_root = Path(root or settings.storage_root)
        return LocalStorageAdapter(storage_root, settings.public_media_base_url)
    if selected_backend == "cloudinary":
        if not (
            settings.cloudinary_cloud_name
            and settings.cloudinary_api_key
            and settings.cloudinary_api_secret
        ):
            raise ValueError("cloudinary storage requires CLOUDINARY_* credentials")
        return CloudinaryStorageAdapter(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            timeout=settings.cloudinary_timeout_seconds,
        )
    raise ValueError(f"unsupported storage backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_storage() -> StorageAdapter:
    return create_storage()
