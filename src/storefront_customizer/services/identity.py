"""Resolve the storage identity for a session-product upload."""

import logging
import random
import string
from dataclasses import dataclass

from storefront_customizer.domain.errors import BackendUnavailableError
from storefront_customizer.domain.identity import SessionIdentity
from storefront_customizer.services.orders import (
    ORDER_PAGE_SIZE,
    ORDER_STATUS_ANY,
    OrderLedger,
    has_session_product,
)
from storefront_customizer.services.storage import SessionStoreGateway, epoch_millis

logger = logging.getLogger(__name__)

MAX_CANDIDATE_ATTEMPTS = 100
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class SessionIdentityResolver:
    """Pick a folder identity that does not collide with placed orders."""

    order_ledger: OrderLedger
    store: SessionStoreGateway
    max_attempts: int = MAX_CANDIDATE_ATTEMPTS

    async def resolve(self, base_session_id: str, product_id: str) -> SessionIdentity:
        """Return the identity to store this upload under."""
        try:
            orders = await self.order_ledger.list_orders(
                ORDER_PAGE_SIZE, ORDER_STATUS_ANY
            )
        except BackendUnavailableError as exc:
            logger.warning(
                "Could not check orders for session conflicts, using original id: %s",
                exc,
            )
            return SessionIdentity(
                base_session_id=base_session_id,
                product_id=product_id,
                final_session_id=base_session_id,
                changed=False,
                reason="Could not verify with Shopify orders. Using original session ID.",
            )

        if has_session_product(orders, base_session_id, product_id):
            return self._resolve_conflict(orders, base_session_id, product_id)
        return self._check_existing_folder(base_session_id, product_id)

    def _resolve_conflict(
        self, orders: list[dict[str, object]], base_session_id: str, product_id: str
    ) -> SessionIdentity:
        candidate = base_session_id
        exhausted = True
        for _ in range(self.max_attempts):
            candidate = candidate_session_id(base_session_id)
            if not has_session_product(orders, candidate, product_id):
                exhausted = False
                break

        logger.info(
            "Session ID conflict detected for product %s. Original: %s, New: %s",
            product_id,
            base_session_id,
            candidate,
        )
        reason = (
            f'Conflict detected: session_id "{base_session_id}" with product_id '
            f'"{product_id}" already exists in orders. '
            "Generated new unique session ID."
        )
        if exhausted:
            reason += (
                f" No conflict-free candidate found after {self.max_attempts} "
                "attempts; using the last candidate."
            )
        return SessionIdentity(
            base_session_id=base_session_id,
            product_id=product_id,
            final_session_id=candidate,
            changed=True,
            reason=reason,
        )

    def _check_existing_folder(
        self, base_session_id: str, product_id: str
    ) -> SessionIdentity:
        folder_path = self.store.folder_path(f"{base_session_id}-{product_id}")
        if self.store.list_files(folder_path):
            logger.info("Reusing existing session-product folder: %s", folder_path)
            reason = (
                "Session ID + Product ID not in Shopify orders. Folder exists in "
                "storage, reusing and replacing existing images."
            )
        else:
            logger.info("Session ID validated: %s. No conflicts.", base_session_id)
            reason = (
                "Session ID + Product ID not in Shopify orders and no existing "
                "folder. Creating new upload."
            )
        return SessionIdentity(
            base_session_id=base_session_id,
            product_id=product_id,
            final_session_id=base_session_id,
            changed=False,
            reason=reason,
        )


def candidate_session_id(base_session_id: str) -> str:
    """Return `<base>_<4 digit time suffix>_<random suffix>`."""
    time_suffix = str(epoch_millis())[-4:]
    random_suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=6))
    return f"{base_session_id}_{time_suffix}_{random_suffix}"
