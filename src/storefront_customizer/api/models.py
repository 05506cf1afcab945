"""Pydantic models for customizer request bodies."""

from pydantic import BaseModel, ConfigDict, Field


class CleanupRequest(BaseModel):
    """Body of the orphan cleanup job."""

    model_config = ConfigDict(populate_by_name=True)

    grace_days: float | None = Field(default=None, alias="graceDays", ge=0)
    force: bool = False


class DeleteMissingRequest(BaseModel):
    """Body of the delete-sessions-not-in-orders job."""

    force: bool = False
