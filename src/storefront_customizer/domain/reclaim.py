"""Domain models for storage reclamation runs."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PartialReclaimFailure:
    """A failure scoped to one folder or record during a reclaim run."""

    scope: str
    error: str


@dataclass
class ReclaimReport:
    """Aggregated result of a reclaim run."""

    deleted_folders: list[str] = field(default_factory=list)
    skipped_folders: list[str] = field(default_factory=list)
    deleted_uploads: list[str] = field(default_factory=list)
    errors: list[PartialReclaimFailure] = field(default_factory=list)

    def record_error(self, scope: str, error: object) -> None:
        """Collect a failure without aborting the run."""
        self.errors.append(PartialReclaimFailure(scope=scope, error=str(error)))
