"""Customizer API endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from storefront_customizer.api.models import CleanupRequest, DeleteMissingRequest
from storefront_customizer.domain.errors import ValidationError
from storefront_customizer.domain.reclaim import ReclaimReport
from storefront_customizer.domain.storage import DownloadedFile
from storefront_customizer.domain.uploads import UploadRequest, UploadResult
from storefront_customizer.services.reclaimer import DEFAULT_GRACE_DAYS

if TYPE_CHECKING:
    from storefront_customizer.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customizer", tags=["customizer"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_cleanup_secret(
    request: Request, x_cleanup_secret: str | None = Header(default=None)
) -> None:
    """Require the cleanup secret when one is configured."""
    configured = _container(request).settings.cleanup_secret
    if not configured:
        logger.warning(
            "CLEANUP_SECRET not configured; allowing cleanup without secret "
            "(development mode)."
        )
        return
    if not x_cleanup_secret or x_cleanup_secret != configured:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_image(request: Request) -> dict[str, object]:
    """Render and store a customized image for a session and product."""
    form = await request.form()
    session_id = _first_field(form, "session", "sessionId", "session_id")
    product_id = _first_field(form, "productId", "product_id")
    logger.info(
        "Upload request received for session: %s, productId: %s",
        session_id,
        product_id,
    )
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ValidationError("No file provided")
    image_bytes = await _read_limited(upload)

    result = await _container(request).upload_service.upload_session_image(
        UploadRequest(
            session_id=session_id or "",
            product_id=product_id or "",
            x=form.get("x"),
            y=form.get("y"),
            zoom=form.get("zoom"),
            shape=form.get("shape"),
            image_bytes=image_bytes,
            mime_type=upload.content_type or "",
        )
    )
    return _envelope(
        status.HTTP_201_CREATED,
        _upload_payload(result),
        "Image uploaded successfully",
    )


@router.post("/session-upload")
async def upload_session_files(request: Request) -> dict[str, object]:
    """Store pre-rendered original, shape and QR files for a session."""
    form = await request.form()
    session_id = _first_field(form, "session", "sessionId", "session_id")
    if not session_id:
        raise ValidationError("session/sessionId is required")
    files: dict[str, UploadFile | None] = {
        "original": _first_file(form, "original", "file", "image"),
        "shape": _first_file(form, "shape", "shaped"),
        "qr": _first_file(form, "qr", "qrcode", "code"),
    }
    contents = {
        name: await _read_limited(upload) if upload else None
        for name, upload in files.items()
    }
    result = _container(request).upload_service.store_session_files(
        session_id,
        original=contents["original"],
        shape=contents["shape"],
        qr=contents["qr"],
        content_types={
            name: upload.content_type or ""
            for name, upload in files.items()
            if upload is not None
        },
    )
    return {
        "success": True,
        "originalUrl": result.original_url,
        "shapeUrl": result.shape_url,
        "qrUrl": result.qr_url,
    }


@router.delete("/cleanup/{session_id}")
async def cleanup_session(session_id: str, request: Request) -> dict[str, object]:
    """Remove every file in a session folder."""
    deleted = _container(request).asset_service.delete_session_files(session_id)
    message = (
        f"Session cleanup completed. {deleted} files deleted."
        if deleted
        else "No files to delete"
    )
    return _envelope(
        status.HTTP_200_OK,
        {"success": True, "message": message, "filesDeleted": deleted},
        "Session files deleted successfully",
    )


@router.post("/session/{session_id}")
async def session_info(session_id: str, request: Request) -> dict[str, object]:
    """Return the folder path for a session."""
    info = _container(request).asset_service.session_info(session_id)
    return _envelope(
        status.HTTP_200_OK,
        {"sessionId": info["session_id"], "folderPath": info["folder_path"]},
        "Session information retrieved",
    )


@router.get("/shape/{session_id}")
async def shapes_by_session(session_id: str, request: Request) -> dict[str, object]:
    """Return shaped image URLs for every folder of a session."""
    folders = _container(request).asset_service.list_shapes(session_id)
    return _envelope(
        status.HTTP_200_OK,
        {
            "sessionId": session_id,
            "folders": [
                {
                    "folder": folder["folder"],
                    "shapedFiles": [
                        {"name": item["name"], "publicUrl": item["public_url"]}
                        for item in folder["shaped_files"]
                    ],
                }
                for folder in folders
            ],
        },
        "Shapes retrieved",
    )


@router.get("/shape/{session_id}/latest")
async def latest_shape(
    session_id: str,
    request: Request,
    shape: str | None = None,
    product_id: str | None = None,
    productId: str | None = None,  # noqa: N803
) -> Response:
    """Return the bytes of the most recent shaped image."""
    downloaded = _container(request).asset_service.fetch_latest_shape_bytes(
        session_id, shape=shape, product_id=product_id or productId
    )
    return _file_response(downloaded, disposition="inline")


@router.get("/shape/{session_id}/types")
async def shape_types(session_id: str, request: Request) -> dict[str, object]:
    """Return the shape types stored for a session."""
    result = _container(request).asset_service.shape_types(session_id)
    return _envelope(
        status.HTTP_200_OK,
        {
            "sessionId": result["session_id"],
            "shapes": result["shapes"],
            "folders": result["folders"],
        },
        "Shape types retrieved",
    )


@router.get("/original/{session_id}")
async def original_file(session_id: str, request: Request) -> Response:
    """Download the original upload of a session."""
    downloaded = _container(request).asset_service.original_file(session_id)
    return _file_response(downloaded, disposition="attachment")


@router.get("/qr/{session_id}")
async def qr_file(session_id: str, request: Request) -> Response:
    """Download the QR code of a session."""
    downloaded = _container(request).asset_service.qr_file(session_id)
    return _file_response(downloaded, disposition="attachment")


@router.post("/cleanup", dependencies=[Depends(require_cleanup_secret)])
async def run_cleanup(
    request: Request, body: CleanupRequest | None = None
) -> dict[str, object]:
    """Delete orphaned session folders older than the grace period."""
    payload = body or CleanupRequest()
    grace_days = (
        payload.grace_days if payload.grace_days is not None else DEFAULT_GRACE_DAYS
    )
    report = await _container(request).reclaimer.cleanup_orphaned_sessions(
        grace_days=grace_days, force=payload.force
    )
    return _envelope(
        status.HTTP_200_OK, _report_payload(report), "Cleanup job completed"
    )


@router.post("/delete-missing-orders", dependencies=[Depends(require_cleanup_secret)])
async def delete_missing_orders(
    request: Request, body: DeleteMissingRequest | None = None
) -> dict[str, object]:
    """Delete sessions that no order references, with their product uploads."""
    payload = body or DeleteMissingRequest()
    report = await _container(request).reclaimer.delete_sessions_not_in_orders(
        force=payload.force
    )
    return _envelope(
        status.HTTP_200_OK,
        _report_payload(report),
        "Delete missing sessions completed",
    )


def _envelope(status_code: int, data: object, message: str) -> dict[str, object]:
    return {
        "statusCode": status_code,
        "success": True,
        "data": data,
        "message": message,
    }


def _upload_payload(result: UploadResult) -> dict[str, object]:
    return {
        "finalSessionId": result.final_session_id,
        "productId": result.product_id,
        "changed": result.changed,
        "reason": result.reason,
        "originalFileId": result.original_path,
        "shapedFileId": result.shaped_path,
        "originalUrl": result.original_url,
        "shapedUrl": result.shaped_url,
    }


def _report_payload(report: ReclaimReport) -> dict[str, object]:
    return {
        "deletedFolders": report.deleted_folders,
        "skippedFolders": report.skipped_folders,
        "deletedUploads": report.deleted_uploads,
        "errors": [
            {"scope": failure.scope, "error": failure.error}
            for failure in report.errors
        ],
    }


def _file_response(downloaded: DownloadedFile, disposition: str) -> Response:
    return Response(
        content=downloaded.content,
        media_type=downloaded.mime_type,
        headers={
            "Cache-Control": "no-cache",
            "Content-Disposition": f'{disposition}; filename="{downloaded.name}"',
        },
    )


def _first_field(form, *names: str) -> str | None:  # type: ignore[no-untyped-def]
    for name in names:
        value = form.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_file(form, *names: str) -> UploadFile | None:  # type: ignore[no-untyped-def]
    for name in names:
        value = form.get(name)
        if isinstance(value, UploadFile):
            return value
    return None


async def _read_limited(upload: UploadFile) -> bytes:
    data = await upload.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError("File exceeds the 10 MB upload limit")
    return data
