from app.storage.base import StorageAdapter
from app.storage.cloudinary import CloudinaryStorageAdapter
from app.storage.factory import create_storage, get_storage
from app.storage.local import LocalStorageAdapter

__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
    "CloudinaryStorageAdapter",
    "create_storage",
    "get_storage",
]
