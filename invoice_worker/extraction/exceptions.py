class ExtractionError(Exception):
    """Raised when an extraction strategy cannot produce a usable result."""


class ExtractionValidationError(ExtractionError):
    """Raised when an extraction payload violates the expected structure."""


class ExtractionNetworkError(ExtractionError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
