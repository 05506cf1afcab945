"""Domain models for session identity resolution."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionIdentity:
    """Outcome of resolving the storage identity for an upload."""

    base_session_id: str
    product_id: str
    final_session_id: str
    changed: bool
    reason: str

    @property
    def folder_name(self) -> str:
        """Folder key for the session-product pair."""
        return f"{self.final_session_id}-{self.product_id}"
