"""Session folder conventions over an object store."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass
from typing import Protocol

from storefront_customizer.domain.errors import BackendUnavailableError
from storefront_customizer.domain.storage import StoredObject

ORIGINAL_FILE_NAME = "original.png"
_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


class ObjectStore(Protocol):
    """Key/value object store with prefix listing."""

    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Store bytes at path, replacing any existing object."""

    def list(self, prefix: str) -> list[StoredObject]:
        """Return the entries directly under prefix."""

    def get(self, path: str) -> bytes:
        """Return the bytes stored at path."""

    def remove(self, paths: list[str]) -> None:
        """Delete the objects at the given paths."""

    def public_url(self, path: str) -> str:
        """Return the public URL for path without cache busting."""


@dataclass
class SessionStoreGateway:
    """Folder-scoped access to session assets."""

    store: ObjectStore | None
    root: str = "customizer"

    @property
    def available(self) -> bool:
        """Whether a store client was initialized."""
        return self.store is not None

    def ensure_available(self) -> ObjectStore:
        """Return the store or fail fast when it is not configured."""
        if self.store is None:
            raise BackendUnavailableError(
                "Storage is not configured. Set SUPABASE_URL and "
                "SUPABASE_SERVICE_KEY environment variables."
            )
        return self.store

    def folder_path(self, folder_name: str) -> str:
        """Return the bucket path for a session folder."""
        return f"{self.root}/{folder_name}"

    def list_folders(self) -> list[str]:
        """Return the names of all top-level session folders."""
        entries = self.ensure_available().list(self.root)
        return [entry.name for entry in entries if not entry.name.startswith(".")]

    def list_files(self, folder_path: str) -> list[StoredObject]:
        """Return the files in a session folder."""
        entries = self.ensure_available().list(folder_path)
        return [entry for entry in entries if not entry.name.startswith(".")]

    def folders_for_session(self, session_id: str) -> list[str]:
        """Return folders named `session_id` or `session_id-<product>`."""
        return [
            name
            for name in self.list_folders()
            if name == session_id or name.startswith(f"{session_id}-")
        ]

    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Store bytes at a bucket path."""
        self.ensure_available().put(path, data, content_type)

    def get(self, path: str) -> bytes:
        """Return bytes stored at a bucket path."""
        return self.ensure_available().get(path)

    def remove(self, paths: list[str]) -> None:
        """Remove objects at bucket paths."""
        if paths:
            self.ensure_available().remove(paths)

    def remove_folder(self, folder_path: str, files: list[StoredObject]) -> int:
        """Remove every listed file of a folder, or the folder itself if empty."""
        if not files:
            self.remove([folder_path])
            return 0
        self.remove([f"{folder_path}/{entry.name}" for entry in files])
        return len(files)

    def public_url(self, path: str) -> str:
        """Return a cache-busted public URL, or an empty string if none."""
        base_url = self.ensure_available().public_url(path)
        return with_cache_buster(base_url)


def with_cache_buster(base_url: str) -> str:
    """Append a `v=<epochMillis>_<token>` query parameter to a URL."""
    if not base_url:
        return ""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}v={cache_buster_token()}"


def cache_buster_token() -> str:
    """Return `<epochMillis>_<random token>`."""
    token = "".join(random.choices(_TOKEN_ALPHABET, k=6))
    return f"{epoch_millis()}_{token}"


def epoch_millis() -> int:
    """Return the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def shaped_file_name(shape: str, timestamp_ms: int) -> str:
    """Return the append-only file name for a shaped render."""
    return f"{shape}_{timestamp_ms}.png"
