"""Reclaim storage held by abandoned session folders."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from storefront_customizer.domain.reclaim import ReclaimReport
from storefront_customizer.domain.storage import ProductUpload, StoredObject
from storefront_customizer.services.orders import (
    ORDER_PAGE_SIZE,
    ORDER_STATUS_ANY,
    OrderLedger,
    references_session,
)
from storefront_customizer.services.storage import SessionStoreGateway

logger = logging.getLogger(__name__)

DEFAULT_GRACE_DAYS = 7


class ProductUploadRepository(Protocol):
    """Persistence interface for product records that reference sessions."""

    def get_uploads_by_session(self, session_id: str) -> list[ProductUpload]:
        """Return product uploads created for a session."""

    def delete_upload(self, code: str) -> None:
        """Delete a product upload record."""


@dataclass
class OrphanReclaimer:
    """Delete session folders that no order references."""

    store: SessionStoreGateway
    order_ledger: OrderLedger
    product_uploads: ProductUploadRepository

    async def cleanup_orphaned_sessions(
        self, grace_days: float = DEFAULT_GRACE_DAYS, force: bool = False
    ) -> ReclaimReport:
        """Delete unreferenced folders whose newest file is past the grace period."""
        self.store.ensure_available()
        report = ReclaimReport()
        folder_names = self.store.list_folders()
        if not folder_names:
            return report
        orders = [] if force else await self._load_orders()
        if force:
            logger.warning("Force delete enabled: removing all session folders")

        now = datetime.now(tz=UTC)
        grace = timedelta(days=grace_days)
        for folder_name in folder_names:
            folder_path = self.store.folder_path(folder_name)
            try:
                files = self.store.list_files(folder_path)
                if not files or force:
                    self.store.remove_folder(folder_path, files)
                    report.deleted_folders.append(folder_path)
                    continue

                latest = latest_modified_at(files)
                if latest is None or now - latest <= grace:
                    report.skipped_folders.append(folder_path)
                    continue

                if references_session(orders, session_id_of(folder_name)):
                    report.skipped_folders.append(folder_path)
                    continue

                self.store.remove_folder(folder_path, files)
                report.deleted_folders.append(folder_path)
            except Exception as exc:
                logger.warning("Failed to reclaim %s: %s", folder_path, exc)
                report.record_error(folder_path, exc)

        logger.info(
            "Cleanup finished: %s deleted, %s skipped, %s errors",
            len(report.deleted_folders),
            len(report.skipped_folders),
            len(report.errors),
        )
        return report

    async def delete_sessions_not_in_orders(self, force: bool = False) -> ReclaimReport:
        """Delete every folder whose session is absent from orders, with uploads."""
        self.store.ensure_available()
        report = ReclaimReport()
        folder_names = self.store.list_folders()
        if not folder_names:
            return report
        orders = [] if force else await self._load_orders()

        for folder_name in folder_names:
            folder_path = self.store.folder_path(folder_name)
            try:
                session_id = session_id_of(folder_name)
                if not session_id:
                    report.skipped_folders.append(folder_path)
                    continue
                if not force and references_session(orders, session_id):
                    report.skipped_folders.append(folder_path)
                    continue

                files = self.store.list_files(folder_path)
                self.store.remove_folder(folder_path, files)
                report.deleted_folders.append(folder_path)
                if files:
                    self._delete_product_uploads(session_id, report)
            except Exception as exc:
                logger.warning("Failed to reclaim %s: %s", folder_path, exc)
                report.record_error(folder_path, exc)

        return report

    def _delete_product_uploads(self, session_id: str, report: ReclaimReport) -> None:
        try:
            uploads = self.product_uploads.get_uploads_by_session(session_id)
        except Exception as exc:
            logger.warning(
                "Failed to load product uploads for session %s: %s", session_id, exc
            )
            report.record_error(f"uploads:{session_id}", exc)
            return

        for upload in uploads:
            try:
                self.store.remove(
                    [
                        f"products/{upload.code}/{upload.code}.png",
                        f"products/{upload.code}/qr_code.png",
                    ]
                )
                self.product_uploads.delete_upload(upload.code)
                report.deleted_uploads.append(upload.code)
            except Exception as exc:
                report.record_error(f"product:{upload.code}", exc)

    async def _load_orders(self) -> list[dict[str, object]]:
        return await self.order_ledger.list_orders(ORDER_PAGE_SIZE, ORDER_STATUS_ANY)


def session_id_of(folder_name: str) -> str:
    """Return the session id segment of a `<session>-<product>` folder name."""
    return folder_name.split("-", 1)[0]


def latest_modified_at(files: list[StoredObject]) -> datetime | None:
    """Return the newest modification time across files, if any is known."""
    stamps = [entry.last_modified_at for entry in files if entry.last_modified_at]
    return max(stamps) if stamps else None
