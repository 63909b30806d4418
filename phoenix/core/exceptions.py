"""Exception hierarchy for the claim enrichment service.

Format problems in model output have no exception type; the fraud parser
returns a fallback result for them.
"""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an LLM or embedding API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an LLM or embedding API call times out."""
    pass


class DatabaseError(AppError):
    """Raised when a relational or vector store operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails (bad provider name, temperature, payload)."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class MessageDecodeError(ValidationError):
    """Raised when a CDC message cannot be decoded into a claim change event."""

    def __init__(self, message: str, raw: str = "", original_error: Exception = None):
        super().__init__(message, original_error=original_error)
        self.raw = raw
