"""
Object store collaborator.

The core only ever calls ``put``, ``get``, ``delete`` and ``presign``. The
local implementation spreads objects over the configured storage paths, always
writing to the one with the most free space, and serves presigned links
through the ``/objects/{token}`` endpoint.
"""
import logging
import os
import shutil
from datetime import timedelta
from typing import List, Optional

from jose import JWTError

from cloudvault.core import security
from cloudvault.core.config import settings
from cloudvault.core.errors import NotFound, UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

PRESIGN_TOKEN_TYPE = "object"


class ObjectStore:
    def put(self, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> bytes:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Idempotent: deleting a missing key is not an error."""
        raise NotImplementedError

    def presign(self, key: str, ttl: int) -> str:
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    def __init__(self, storage_paths: List[str], base_url: Optional[str] = None):
        if not storage_paths:
            raise ValueError("No storage paths configured")
        self.storage_paths = list(storage_paths)
        self.base_url = base_url if base_url is not None else f"{settings.PUBLIC_BASE_URL}{settings.API_V1_STR}"

    @staticmethod
    def _split_key(key: str) -> List[str]:
        parts = key.split("/")
        if not key or any(part in ("", ".", "..") for part in parts) or "\\" in key:
            raise ValidationError(f"Invalid storage key: {key!r}")
        return parts

    def _path_in(self, base: str, key: str) -> str:
        return os.path.join(base, *self._split_key(key))

    def _find(self, key: str) -> Optional[str]:
        for base in self.storage_paths:
            path = self._path_in(base, key)
            if os.path.isfile(path):
                return path
        return None

    def get_best_storage_path(self) -> str:
        """
        Selects the storage path with the most available space.
        """
        best_path = None
        max_free_space = -1

        for path in self.storage_paths:
            try:
                os.makedirs(path, exist_ok=True)
                usage = shutil.disk_usage(path)
                if usage.free > max_free_space:
                    max_free_space = usage.free
                    best_path = path
            except OSError as e:
                logger.warning("Could not check disk usage for path %s: %s", path, e)
                continue

        if best_path is None:
            raise UpstreamUnavailable("No usable storage paths found")

        return best_path

    def put(self, key: str, data: bytes, content_type: str) -> None:
        # Overwrites in place if the key already lives on some path
        path = self._find(key) or self._path_in(self.get_best_storage_path(), key)
        tmp_path = f"{path}.part"
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(tmp_path, "wb") as buffer:
                buffer.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error("Object put failed for %s: %s", key, e)
            raise UpstreamUnavailable("Failed to upload file to storage")
        logger.info("Stored object %s (%d bytes, %s)", key, len(data), content_type)

    def get(self, key: str) -> bytes:
        path = self._find(key)
        if path is None:
            raise NotFound("File not found in storage")
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error("Object get failed for %s: %s", key, e)
            raise UpstreamUnavailable("Failed to retrieve file from storage")

    def open_path(self, key: str) -> str:
        """Filesystem path of a stored object, for streaming responses."""
        path = self._find(key)
        if path is None:
            raise NotFound("File not found in storage")
        return path

    def delete(self, key: str) -> None:
        for base in self.storage_paths:
            path = self._path_in(base, key)
            try:
                os.remove(path)
                logger.info("Deleted object %s", key)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Object delete failed for %s: %s", key, e)
                raise UpstreamUnavailable("Failed to delete file from storage")

    def presign(self, key: str, ttl: int) -> str:
        self._split_key(key)
        token = security.create_token({"typ": PRESIGN_TOKEN_TYPE, "key": key}, timedelta(seconds=ttl))
        return f"{self.base_url}/objects/{token}"

    def resolve_presigned(self, token: str) -> str:
        """Key a presigned token grants access to; NotFound if invalid or expired."""
        try:
            payload = security.decode_token(token)
        except JWTError:
            raise NotFound("Download link not found or expired")
        if payload.get("typ") != PRESIGN_TOKEN_TYPE or not payload.get("key"):
            raise NotFound("Download link not found or expired")
        return payload["key"]


_store: Optional[LocalObjectStore] = None


def get_object_store() -> LocalObjectStore:
    global _store
    if _store is None:
        _store = LocalObjectStore(settings.STORAGE_PATHS)
    return _store
