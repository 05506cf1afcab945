"""Domain models for stored customizer assets."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredObject:
    """An entry returned when listing a store prefix."""

    name: str
    last_modified_at: datetime | None = None


@dataclass(frozen=True)
class ShapedAsset:
    """A rendered shape variant with its public URL."""

    folder: str
    name: str
    public_url: str
    timestamp: int = 0


@dataclass(frozen=True)
class DownloadedFile:
    """File bytes fetched from the store."""

    content: bytes
    mime_type: str
    name: str


@dataclass(frozen=True)
class ProductUpload:
    """External product record that references a customizer session."""

    code: str
    session_id: str
