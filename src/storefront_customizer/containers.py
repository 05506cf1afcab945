"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import Client, create_client

from storefront_customizer.adapters.shopify_order_ledger import (
    HttpxShopifyOrderLedger,
)
from storefront_customizer.adapters.supabase_object_store import SupabaseObjectStore
from storefront_customizer.adapters.supabase_product_upload_repository import (
    SupabaseProductUploadRepository,
)
from storefront_customizer.config import Settings
from storefront_customizer.services.assets import AssetLookupService
from storefront_customizer.services.identity import SessionIdentityResolver
from storefront_customizer.services.reclaimer import OrphanReclaimer
from storefront_customizer.services.storage import SessionStoreGateway
from storefront_customizer.services.uploads import UploadService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: SessionStoreGateway
    upload_service: UploadService
    asset_service: AssetLookupService
    reclaimer: OrphanReclaimer
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = _create_supabase_client(resolved_settings)
    store = SessionStoreGateway(
        store=(
            SupabaseObjectStore(supabase_client, resolved_settings.storage_bucket)
            if supabase_client is not None
            else None
        ),
        root=resolved_settings.storage_root,
    )
    order_ledger = HttpxShopifyOrderLedger.create(
        shop_domain=resolved_settings.shopify_shop_domain,
        access_token=resolved_settings.shopify_access_token,
        api_version=resolved_settings.shopify_api_version,
    )
    if not order_ledger.configured:
        logger.warning(
            "Shopify credentials not configured; session conflict checks disabled."
        )
    identity_resolver = SessionIdentityResolver(order_ledger=order_ledger, store=store)
    upload_service = UploadService(
        store=store,
        identity_resolver=identity_resolver,
        canvas_size=resolved_settings.canvas_size,
    )
    reclaimer = OrphanReclaimer(
        store=store,
        order_ledger=order_ledger,
        product_uploads=SupabaseProductUploadRepository(supabase_client),
    )

    async def close_resources() -> None:
        await order_ledger.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        upload_service=upload_service,
        asset_service=AssetLookupService(store),
        reclaimer=reclaimer,
        close_resources=close_resources,
    )


def _create_supabase_client(settings: Settings) -> Client | None:
    """Create the Supabase client once; None marks storage as degraded."""
    if not settings.storage_configured:
        logger.warning(
            "Supabase credentials not configured; storage features are disabled."
        )
        return None
    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception:
        logger.exception("Failed to initialize Supabase; storage features disabled")
        return None
