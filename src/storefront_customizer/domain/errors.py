"""Error taxonomy for the customizer core."""


class CustomizerError(Exception):
    """Base class for customizer failures."""


class ValidationError(CustomizerError):
    """Invalid or missing user input."""


class InvalidShapeError(ValidationError):
    """Requested shape is not one of the supported shapes."""

    def __init__(self, shape: str) -> None:
        super().__init__(f"Invalid shape: {shape}")
        self.shape = shape


class NotFoundError(CustomizerError):
    """No stored asset matched a lookup."""


class BackendUnavailableError(CustomizerError):
    """Store or ledger is not configured or cannot be reached."""


class LedgerUnavailableError(BackendUnavailableError):
    """The order ledger could not be queried."""


class StorageOperationError(CustomizerError):
    """A single object store call failed."""


class ImageProcessingFailed(CustomizerError):
    """Compositing or masking failed for a shape."""

    def __init__(self, shape: str) -> None:
        super().__init__(f"Failed to apply {shape} mask")
        self.shape = shape
