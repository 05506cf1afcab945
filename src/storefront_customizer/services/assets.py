"""Read-side lookups over stored session assets."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from storefront_customizer.domain.errors import (
    NotFoundError,
    StorageOperationError,
    ValidationError,
)
from storefront_customizer.domain.placement import Shape
from storefront_customizer.domain.storage import (
    DownloadedFile,
    ShapedAsset,
    StoredObject,
)
from storefront_customizer.services.storage import (
    ORIGINAL_FILE_NAME,
    SessionStoreGateway,
)

logger = logging.getLogger(__name__)

_KNOWN_SHAPES = frozenset(shape.value for shape in Shape)
_SHAPE_PREFIX = re.compile(r"^([a-z]+)")
_TIMESTAMP_DIGITS = re.compile(r"(\d{10,})")
_QR_NAMES = frozenset({"qr.png", "qr_code.png", "qrcode.png"})
_MIME_BY_EXTENSION = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


@dataclass
class AssetLookupService:
    """Find, download and delete assets stored for a session."""

    store: SessionStoreGateway

    def session_info(self, session_id: str) -> dict[str, str]:
        """Return the folder path for a bare session id."""
        session_id = _require_session(session_id)
        return {
            "session_id": session_id,
            "folder_path": self.store.folder_path(session_id),
        }

    def delete_session_files(self, session_id: str) -> int:
        """Delete every file in the bare session folder and return the count."""
        session_id = _require_session(session_id)
        folder_path = self.store.folder_path(session_id)
        logger.info("Deleting session folder: %s", folder_path)
        files = self.store.list_files(folder_path)
        if not files:
            return 0
        self.store.remove([f"{folder_path}/{entry.name}" for entry in files])
        logger.info("Deleted %s files from session: %s", len(files), session_id)
        return len(files)

    def list_shapes(self, session_id: str) -> list[dict[str, object]]:
        """Return shaped PNGs with public URLs for each folder of a session."""
        session_id = _require_session(session_id)
        folders = []
        for folder_name in self.store.folders_for_session(session_id):
            folder_path = self.store.folder_path(folder_name)
            files = self._list_or_skip(folder_path)
            if files is None:
                continue
            shaped_files = []
            for entry in files:
                lower = entry.name.lower()
                if lower == ORIGINAL_FILE_NAME or not lower.endswith(".png"):
                    continue
                public_url = self.store.public_url(f"{folder_path}/{entry.name}")
                if public_url:
                    shaped_files.append({"name": entry.name, "public_url": public_url})
            folders.append({"folder": folder_path, "shaped_files": shaped_files})
        return folders

    def latest_shape(
        self,
        session_id: str,
        shape: str | None = None,
        product_id: str | None = None,
    ) -> ShapedAsset:
        """Return the most recent shaped asset for a session."""
        session_id = _require_session(session_id)
        wanted_shape = shape.lower() if shape else None
        folder_names = self.store.folders_for_session(session_id)
        if product_id:
            exact = f"{session_id}-{product_id}"
            folder_names = [name for name in folder_names if name in {exact, session_id}]

        best: tuple[int, str, str] | None = None
        for folder_name in folder_names:
            folder_path = self.store.folder_path(folder_name)
            files = self._list_or_skip(folder_path)
            if files is None:
                continue
            for entry in files:
                candidate = shape_of(entry.name)
                if candidate is None:
                    continue
                if wanted_shape and wanted_shape != candidate:
                    continue
                timestamp = asset_timestamp(entry)
                if best is None or timestamp > best[0]:
                    best = (timestamp, folder_path, entry.name)

        if best is None:
            raise NotFoundError("No shaped image found for this session")
        timestamp, folder_path, name = best
        return ShapedAsset(
            folder=folder_path,
            name=name,
            public_url=self.store.public_url(f"{folder_path}/{name}"),
            timestamp=timestamp,
        )

    def fetch_latest_shape_bytes(
        self,
        session_id: str,
        shape: str | None = None,
        product_id: str | None = None,
    ) -> DownloadedFile:
        """Download the most recent shaped asset."""
        asset = self.latest_shape(session_id, shape=shape, product_id=product_id)
        content = self.store.get(f"{asset.folder}/{asset.name}")
        return DownloadedFile(content=content, mime_type="image/png", name=asset.name)

    def shape_types(self, session_id: str) -> dict[str, object]:
        """Return the known shapes stored for a session, overall and per folder."""
        session_id = _require_session(session_id)
        found: list[str] = []
        folders = []
        for folder_name in self.store.folders_for_session(session_id):
            folder_path = self.store.folder_path(folder_name)
            files = self._list_or_skip(folder_path)
            if files is None:
                continue
            in_folder: list[str] = []
            for entry in files:
                candidate = shape_of(entry.name)
                if candidate and candidate not in in_folder:
                    in_folder.append(candidate)
                if candidate and candidate not in found:
                    found.append(candidate)
            folders.append({"folder": folder_path, "shapes": in_folder})
        return {"session_id": session_id, "shapes": found, "folders": folders}

    def original_file(self, session_id: str) -> DownloadedFile:
        """Download the original upload for a session."""
        return self._download_first(
            session_id,
            lambda name: name.startswith("original"),
            "Original file not found for this session",
        )

    def qr_file(self, session_id: str) -> DownloadedFile:
        """Download the QR code stored for a session."""
        return self._download_first(
            session_id,
            lambda name: name in _QR_NAMES or name.startswith("qr"),
            "QR not found for this session",
        )

    def _download_first(
        self, session_id: str, matches: Callable[[str], bool], missing_message: str
    ) -> DownloadedFile:
        session_id = _require_session(session_id)
        for folder_name in self.store.folders_for_session(session_id):
            folder_path = self.store.folder_path(folder_name)
            files = self._list_or_skip(folder_path)
            if files is None:
                continue
            for entry in files:
                lower = entry.name.lower()
                if not matches(lower):
                    continue
                path = f"{folder_path}/{entry.name}"
                try:
                    content = self.store.get(path)
                except StorageOperationError as exc:
                    logger.warning("Failed to download %s: %s", path, exc)
                    continue
                return DownloadedFile(
                    content=content, mime_type=mime_for(lower), name=entry.name
                )
        raise NotFoundError(missing_message)

    def _list_or_skip(self, folder_path: str) -> list[StoredObject] | None:
        try:
            return self.store.list_files(folder_path)
        except StorageOperationError as exc:
            logger.warning("Skipping folder %s: %s", folder_path, exc)
            return None


def shape_of(file_name: str) -> str | None:
    """Return the known shape a shaped file name starts with, if any."""
    lower = file_name.lower()
    if lower == ORIGINAL_FILE_NAME or not lower.endswith(".png"):
        return None
    match = _SHAPE_PREFIX.match(lower.split(".")[0])
    if match and match.group(1) in _KNOWN_SHAPES:
        return match.group(1)
    return None


def asset_timestamp(entry: StoredObject) -> int:
    """Return the asset time in epoch millis from metadata or its file name."""
    if entry.last_modified_at is not None:
        return int(entry.last_modified_at.timestamp() * 1000)
    match = _TIMESTAMP_DIGITS.search(entry.name)
    if match:
        value = int(match.group(1))
        return value * 1000 if value < 10**12 else value
    return 0


def mime_for(file_name: str) -> str:
    """Infer a MIME type from a file extension."""
    for extension, mime_type in _MIME_BY_EXTENSION.items():
        if file_name.lower().endswith(extension):
            return mime_type
    return "application/octet-stream"


def _require_session(session_id: str | None) -> str:
    if session_id is None or not session_id.strip():
        raise ValidationError("Session ID is required")
    return session_id.strip()
