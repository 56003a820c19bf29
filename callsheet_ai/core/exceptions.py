"""Custom exception classes for the extraction engine."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    def __init__(
        self,
        message: str,
        original_error: Exception = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class InputError(AppError):
    """Raised when the document text is empty or unusable."""
    pass


class TextAcquisitionError(InputError):
    """Raised when no usable text can be acquired from a document."""
    pass


class UnsupportedFormatError(TextAcquisitionError):
    """Raised when the document mime type has no text acquirer."""
    pass


class CorruptInputError(TextAcquisitionError):
    """Raised when the document bytes cannot be decoded."""
    pass


class PatternFailure(AppError):
    """A single pattern failed while matching; the engine skips it."""
    def __init__(self, pattern_name: str, message: str, original_error: Exception = None):
        super().__init__(f"Pattern '{pattern_name}' failed: {message}", original_error=original_error)
        self.pattern_name = pattern_name


class AIFailure(AppError):
    """Base class for AI collaborator failures."""
    reason = "ai_error"


class AITimeoutError(AIFailure):
    """The AI call exceeded its time allowance."""
    reason = "timeout"


class AICancelledError(AIFailure):
    """The AI call was cancelled by the caller."""
    reason = "cancelled"


class AIAuthError(AIFailure):
    """The AI provider rejected the credentials."""
    reason = "auth"


class AIMalformedResponseError(AIFailure):
    """The AI provider returned something that is not a contact payload."""
    reason = "malformed_response"


class BudgetExceededError(AppError):
    """Raised when the shared AI budget cannot cover another call."""
    def __init__(self, message: str, tokens_remaining: int = 0, calls_remaining: int = 0):
        super().__init__(message)
        self.tokens_remaining = tokens_remaining
        self.calls_remaining = calls_remaining
