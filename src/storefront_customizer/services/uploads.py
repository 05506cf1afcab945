"""Upload entrypoints: render and persist customer images."""

import logging
from dataclasses import dataclass

from storefront_customizer.domain.errors import ValidationError
from storefront_customizer.domain.placement import parse_placement
from storefront_customizer.domain.uploads import (
    ALLOWED_MIME_TYPES,
    SessionFilesResult,
    UploadRequest,
    UploadResult,
)
from storefront_customizer.services.compositor import CANVAS_SIZE, render_shaped_png
from storefront_customizer.services.identity import SessionIdentityResolver
from storefront_customizer.services.storage import (
    ORIGINAL_FILE_NAME,
    SessionStoreGateway,
    epoch_millis,
    shaped_file_name,
)

logger = logging.getLogger(__name__)

_PNG = "image/png"


@dataclass
class UploadService:
    """Turn an uploaded photo into stored original and shaped assets."""

    store: SessionStoreGateway
    identity_resolver: SessionIdentityResolver
    canvas_size: int = CANVAS_SIZE

    async def upload_session_image(self, request: UploadRequest) -> UploadResult:
        """Resolve the folder, render the shape and store both images."""
        session_id = _require(request.session_id, "Session ID is required")
        product_id = _require(request.product_id, "Product ID is required")
        if not request.image_bytes:
            raise ValidationError("No file provided")
        if request.mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError("Only PNG and JPG files are allowed")
        placement = parse_placement(
            request.x, request.y, request.zoom, request.shape
        )
        self.store.ensure_available()

        identity = await self.identity_resolver.resolve(session_id, product_id)
        if identity.changed:
            logger.info(
                "Session ID changed for product %s: %s -> %s",
                product_id,
                session_id,
                identity.final_session_id,
            )

        shaped = render_shaped_png(
            request.image_bytes, placement, self.canvas_size, self.canvas_size
        )

        folder_path = self.store.folder_path(identity.folder_name)
        original_path = f"{folder_path}/{ORIGINAL_FILE_NAME}"
        shaped_path = (
            f"{folder_path}/{shaped_file_name(placement.shape, epoch_millis())}"
        )
        logger.info(
            "Uploading customized image for session: %s, product: %s (shape: %s)",
            identity.final_session_id,
            product_id,
            placement.shape,
        )
        self.store.put(original_path, request.image_bytes, request.mime_type)
        self.store.put(shaped_path, shaped, _PNG)

        return UploadResult(
            final_session_id=identity.final_session_id,
            product_id=product_id,
            changed=identity.changed,
            reason=identity.reason,
            original_path=original_path,
            shaped_path=shaped_path,
            original_url=self.store.public_url(original_path),
            shaped_url=self.store.public_url(shaped_path),
        )

    def store_session_files(
        self,
        session_id: str,
        original: bytes | None,
        shape: bytes | None,
        qr: bytes | None,
        content_types: dict[str, str] | None = None,
    ) -> SessionFilesResult:
        """Store pre-rendered files under the bare session folder."""
        session_id = _require(session_id, "sessionId is required")
        if not original or not shape or not qr:
            raise ValidationError("original, shape and qr files are required")
        types = content_types or {}
        folder_path = self.store.folder_path(session_id)
        paths = {
            "original": f"{folder_path}/{ORIGINAL_FILE_NAME}",
            "shape": f"{folder_path}/shape.png",
            "qr": f"{folder_path}/qr.png",
        }
        for field, data in (("original", original), ("shape", shape), ("qr", qr)):
            self.store.put(paths[field], data, types.get(field) or _PNG)

        logger.info("Stored session files for %s", session_id)
        return SessionFilesResult(
            original_url=self.store.public_url(paths["original"]),
            shape_url=self.store.public_url(paths["shape"]),
            qr_url=self.store.public_url(paths["qr"]),
        )


def _require(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()
