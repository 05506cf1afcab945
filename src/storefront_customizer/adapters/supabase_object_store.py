"""Supabase Storage-backed object store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from storefront_customizer.domain.errors import StorageOperationError
from storefront_customizer.domain.storage import StoredObject
from storefront_customizer.services.storage import ObjectStore

_LIST_LIMIT = 1000
_CACHE_CONTROL_SECONDS = "3600"
_TIMESTAMP_FIELDS = ("updated_at", "last_modified", "created_at", "timeCreated")


@dataclass
class SupabaseObjectStore(ObjectStore):
    """Object store backed by a Supabase Storage bucket."""

    client: Client
    bucket: str

    def put(self, path: str, data: bytes, content_type: str) -> None:
        """Upload bytes, replacing an existing object at path."""
        try:
            self._bucket().upload(
                path,
                data,
                file_options={
                    "content-type": content_type,
                    "cache-control": _CACHE_CONTROL_SECONDS,
                    "upsert": "true",
                },
            )
        except Exception as exc:
            raise StorageOperationError(f"Failed to upload {path}: {exc}") from exc

    def list(self, prefix: str) -> list[StoredObject]:
        """List every entry directly under a prefix, one page at a time."""
        entries: list[StoredObject] = []
        offset = 0
        while True:
            try:
                rows = self._bucket().list(
                    prefix, {"limit": _LIST_LIMIT, "offset": offset}
                )
            except Exception as exc:
                raise StorageOperationError(
                    f"Failed to list {prefix}: {exc}"
                ) from exc
            page = rows or []
            entries.extend(
                StoredObject(
                    name=row["name"], last_modified_at=parse_entry_timestamp(row)
                )
                for row in page
                if isinstance(row, dict) and row.get("name")
            )
            if len(page) < _LIST_LIMIT:
                return entries
            offset += len(page)

    def get(self, path: str) -> bytes:
        """Download the bytes stored at path."""
        try:
            return self._bucket().download(path)
        except Exception as exc:
            raise StorageOperationError(f"Failed to download {path}: {exc}") from exc

    def remove(self, paths: list[str]) -> None:
        """Delete objects at the given paths."""
        try:
            self._bucket().remove(paths)
        except Exception as exc:
            raise StorageOperationError(f"Failed to remove {paths}: {exc}") from exc

    def public_url(self, path: str) -> str:
        """Return the bucket public URL for path."""
        url = self._bucket().get_public_url(path)
        return url if isinstance(url, str) else ""

    def _bucket(self):  # type: ignore[no-untyped-def]
        return self.client.storage.from_(self.bucket)


def parse_entry_timestamp(row: dict[str, object]) -> datetime | None:
    """Return the first parseable timestamp of a storage list entry."""
    candidates = [row.get(field) for field in _TIMESTAMP_FIELDS]
    metadata = row.get("metadata")
    if isinstance(metadata, dict):
        candidates.extend([metadata.get("updated_at"), metadata.get("lastModified")])
    for value in candidates:
        if not isinstance(value, str) or not value:
            continue
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            continue
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None
