"""Supabase-backed product upload records."""

from dataclasses import dataclass

from supabase import Client

from storefront_customizer.domain.errors import BackendUnavailableError
from storefront_customizer.domain.storage import ProductUpload
from storefront_customizer.services.reclaimer import ProductUploadRepository


@dataclass
class SupabaseProductUploadRepository(ProductUploadRepository):
    """Supabase implementation for product upload records."""

    client: Client | None

    def get_uploads_by_session(self, session_id: str) -> list[ProductUpload]:
        """Return product uploads created for a session."""
        response = (
            self._table()
            .select("code, session_id")
            .eq("session_id", session_id)
            .execute()
        )
        return [
            ProductUpload(code=str(row["code"]), session_id=str(row["session_id"]))
            for row in response.data or []
        ]

    def delete_upload(self, code: str) -> None:
        """Delete a product upload record by code."""
        self._table().delete().eq("code", code).execute()

    def _table(self):  # type: ignore[no-untyped-def]
        if self.client is None:
            raise BackendUnavailableError("Supabase is not configured")
        return self.client.table("product_uploads")
