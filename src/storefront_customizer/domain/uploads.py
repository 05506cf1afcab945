"""Domain models for the upload entrypoint."""

from dataclasses import dataclass

ALLOWED_MIME_TYPES = frozenset({"image/png", "image/jpeg"})


@dataclass(frozen=True)
class UploadRequest:
    """Raw upload input as received from the HTTP layer."""

    session_id: str
    product_id: str
    x: object
    y: object
    zoom: object
    shape: object
    image_bytes: bytes
    mime_type: str


@dataclass(frozen=True)
class UploadResult:
    """Stored locations and identity for a completed upload."""

    final_session_id: str
    product_id: str
    changed: bool
    reason: str
    original_path: str
    shaped_path: str
    original_url: str
    shaped_url: str


@dataclass(frozen=True)
class SessionFilesResult:
    """Public URLs for files stored through the session-only path."""

    original_url: str
    shape_url: str
    qr_url: str
