class RecognitionError(Exception):
    """Raised when a recognition engine cannot process a document."""


class RecognitionEngineNotAvailableError(RecognitionError):
    """Raised when the configured engine is missing on this host."""
