"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from io import BytesIO

import pytest
from PIL import Image

from storefront_customizer.config import Settings
from storefront_customizer.containers import AppContainer
from storefront_customizer.domain.errors import (
    LedgerUnavailableError,
    StorageOperationError,
)
from storefront_customizer.domain.storage import ProductUpload, StoredObject
from storefront_customizer.services.assets import AssetLookupService
from storefront_customizer.services.identity import SessionIdentityResolver
from storefront_customizer.services.orders import OrderLedger
from storefront_customizer.services.reclaimer import (
    OrphanReclaimer,
    ProductUploadRepository,
)
from storefront_customizer.services.storage import ObjectStore, SessionStoreGateway
from storefront_customizer.services.uploads import UploadService

PUBLIC_BASE = "https://cdn.test/storage/v1/object/public/customizer-uploads"


@dataclass
class StoredBlob:
    data: bytes
    content_type: str
    modified_at: datetime | None


@dataclass
class InMemoryObjectStore(ObjectStore):
    """In-memory object store with folder-style listing."""

    objects: dict[str, StoredBlob] = field(default_factory=dict)
    empty_folders: set[str] = field(default_factory=set)
    failing_prefixes: set[str] = field(default_factory=set)
    removed: list[str] = field(default_factory=list)

    def seed(
        self,
        path: str,
        data: bytes = b"data",
        modified_at: datetime | None = None,
        content_type: str = "image/png",
    ) -> None:
        self.objects[path] = StoredBlob(data, content_type, modified_at)

    def put(self, path: str, data: bytes, content_type: str) -> None:
        self.objects[path] = StoredBlob(data, content_type, datetime.now(tz=UTC))

    def list(self, prefix: str) -> list[StoredObject]:
        if prefix in self.failing_prefixes:
            raise StorageOperationError(f"Failed to list {prefix}")
        entries: dict[str, StoredObject] = {}
        for path, blob in self.objects.items():
            if not path.startswith(f"{prefix}/"):
                continue
            remainder = path[len(prefix) + 1 :]
            head, _, tail = remainder.partition("/")
            if tail:
                entries.setdefault(head, StoredObject(name=head))
            else:
                entries[head] = StoredObject(
                    name=head, last_modified_at=blob.modified_at
                )
        for folder in self.empty_folders:
            if folder.startswith(f"{prefix}/"):
                name = folder[len(prefix) + 1 :]
                if "/" not in name:
                    entries.setdefault(name, StoredObject(name=name))
        return list(entries.values())

    def get(self, path: str) -> bytes:
        if path not in self.objects:
            raise StorageOperationError(f"Object not found: {path}")
        return self.objects[path].data

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.removed.append(path)
            self.objects.pop(path, None)
            self.empty_folders.discard(path)

    def public_url(self, path: str) -> str:
        return f"{PUBLIC_BASE}/{path}"


@dataclass
class FakeOrderLedger(OrderLedger):
    """Order ledger returning a fixed order page."""

    orders: list[dict[str, object]] = field(default_factory=list)
    calls: int = 0

    async def list_orders(
        self, page_size: int = 250, status: str = "any"
    ) -> list[dict[str, object]]:
        self.calls += 1
        return self.orders


@dataclass
class FailingOrderLedger(OrderLedger):
    """Order ledger that is always unreachable."""

    async def list_orders(
        self, page_size: int = 250, status: str = "any"
    ) -> list[dict[str, object]]:
        raise LedgerUnavailableError("Shopify unreachable")


@dataclass
class InMemoryProductUploadRepository(ProductUploadRepository):
    """In-memory product upload records."""

    uploads: list[ProductUpload] = field(default_factory=list)
    fail_codes: set[str] = field(default_factory=set)

    def get_uploads_by_session(self, session_id: str) -> list[ProductUpload]:
        return [upload for upload in self.uploads if upload.session_id == session_id]

    def delete_upload(self, code: str) -> None:
        if code in self.fail_codes:
            raise RuntimeError(f"cannot delete {code}")
        self.uploads = [upload for upload in self.uploads if upload.code != code]


def order_with(session_id: str, product_id: str) -> dict[str, object]:
    """Build a Shopify-like order whose line item carries session properties."""
    return {
        "id": 1001,
        "line_items": [
            {
                "title": "Engraved pendant",
                "properties": [
                    {"name": "session_id", "value": session_id},
                    {"name": "product_id", "value": product_id},
                ],
            }
        ],
    }


def solid_png(
    color: tuple[int, ...] = (255, 0, 0), size: tuple[int, int] = (500, 500)
) -> bytes:
    """Return PNG bytes of a single-color image."""
    mode = "RGBA" if len(color) == 4 else "RGB"
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url=None,
        supabase_service_key=None,
        shopify_shop_domain="example.myshopify.com",
        shopify_access_token="shpat-token",
        cleanup_secret="cleanup-secret",
    )


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def store(object_store: InMemoryObjectStore) -> SessionStoreGateway:
    return SessionStoreGateway(store=object_store)


@pytest.fixture
def order_ledger() -> FakeOrderLedger:
    return FakeOrderLedger()


@pytest.fixture
def product_uploads() -> InMemoryProductUploadRepository:
    return InMemoryProductUploadRepository()


@pytest.fixture
def container(
    settings: Settings,
    store: SessionStoreGateway,
    order_ledger: FakeOrderLedger,
    product_uploads: InMemoryProductUploadRepository,
) -> AppContainer:
    identity_resolver = SessionIdentityResolver(order_ledger=order_ledger, store=store)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        upload_service=UploadService(store=store, identity_resolver=identity_resolver),
        asset_service=AssetLookupService(store),
        reclaimer=OrphanReclaimer(
            store=store, order_ledger=order_ledger, product_uploads=product_uploads
        ),
        close_resources=close_resources,
    )
