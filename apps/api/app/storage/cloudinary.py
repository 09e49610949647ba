from __future__ import annotations

import hashlib
import time
from pathlib import PurePosixPath
from typing import BinaryIO

import httpx

from app.storage.base import StorageAdapter

API_BASE_URL = "https://api.cloudinary.com/v1_1"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature: sha1 over the sorted ``k=v`` pairs plus the secret."""
    payload = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] != "")
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryStorageAdapter(StorageAdapter):
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._client = client or httpx.Client(timeout=timeout)

    @staticmethod
    def _public_id(key: str) -> str:
        path = PurePosixPath(key.strip().lstrip("/"))
        return str(path.with_suffix(""))

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        params["signature"] = sign_params(params, self._api_secret)
        params["api_key"] = self._api_key
        return params

    def put_file(self, key: str, fileobj: BinaryIO, content_type: str | None = None) -> str:
        data = self._signed({"public_id": self._public_id(key)})
        files = {
            "file": (
                PurePosixPath(key).name,
                fileobj,
                content_type or "application/octet-stream",
            )
        }
        resp = self._client.post(
            f"{API_BASE_URL}/{self._cloud_name}/image/upload",
            data=data,
            files=files,
        )
        resp.raise_for_status()
        secure_url = resp.json().get("secure_url")
        if not secure_url:
            raise RuntimeError("cloudinary response did not include secure_url")
        return secure_url
