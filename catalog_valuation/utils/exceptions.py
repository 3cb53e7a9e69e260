"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the catalog
valuation system. Every exception carries a human-readable message that
is safe to show to a user, plus a ``details`` dictionary with internal
diagnostic context.

Exception Hierarchy:
    CatalogValuationError (base)
    ├── InputError
    │   ├── UnsupportedFormatError
    │   ├── CorruptedFileError
    │   └── FileTooLargeError
    ├── OCRError
    │   ├── OCREngineNotAvailableError
    │   └── OCRProcessingError
    ├── ExtractionError
    │   └── RateLimitExceededError
    ├── ValidationError
    │   └── InvalidConfigError
    ├── PipelineError
    ├── BatchNotFoundError
    ├── ValuationError
    │   ├── NoDataAvailableError
    │   └── ValuationNotFoundError
    └── DatabaseError
"""


class CatalogValuationError(Exception):
    """
    Base exception for all catalog valuation errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(CatalogValuationError):
    """Base exception for input handling errors."""
    pass


class UnsupportedFormatError(InputError):
    """
    Raised when a file extension is not one of the supported formats.

    Example:
        >>> raise UnsupportedFormatError(".txt", [".csv", ".pdf"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class CorruptedFileError(InputError):
    """Raised when a file appears to be corrupted or unreadable."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Corrupted or unreadable file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class FileTooLargeError(InputError):
    """Raised when a file exceeds the configured size limit."""

    def __init__(self, filepath: str, size: int, limit: int):
        message = f"File {filepath} exceeds the {limit // (1024 * 1024)}MB limit"
        details = {"filepath": filepath, "size": size, "limit": limit}
        super().__init__(message, details)


# =============================================================================
# OCR ERRORS
# =============================================================================

class OCRError(CatalogValuationError):
    """Base exception for OCR-related errors."""
    pass


class OCREngineNotAvailableError(OCRError):
    """Raised when the configured OCR engine is not available."""

    def __init__(self, engine_name: str):
        message = f"OCR engine not available: {engine_name}"
        details = {"engine": engine_name}
        super().__init__(message, details)


class OCRProcessingError(OCRError):
    """Raised when OCR processing fails."""

    def __init__(self, source: str, reason: str = None):
        message = f"OCR processing failed for: {source}"
        details = {"source": source, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(CatalogValuationError):
    """Raised when a document cannot be turned into stream records."""

    def __init__(self, reason: str, details: dict = None):
        message = f"Failed to analyze document: {reason}"
        super().__init__(message, details)


class RateLimitExceededError(ExtractionError):
    """
    Raised when the extraction service signals throttling.

    The gateway absorbs this with a bounded retry; callers only see it
    once every retry has been used.
    """

    def __init__(self, attempts: int = 1, reason: str = None):
        super().__init__(
            "extraction service rate limit exceeded",
            {"attempts": attempts, "reason": reason}
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(CatalogValuationError):
    """Raised when input data is structurally invalid."""

    def __init__(self, field: str, value, reason: str = None):
        message = f"Validation failed for field '{field}'"
        details = {"field": field, "value": repr(value), "reason": reason}
        super().__init__(message, details)


class InvalidConfigError(ValidationError):
    """Raised when a valuation configuration is missing fields or out of range."""

    def __init__(self, errors: dict):
        CatalogValuationError.__init__(
            self,
            "Invalid configuration",
            {"errors": errors}
        )
        self.errors = errors


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(CatalogValuationError):
    """Raised when a batch fails outside of per-file handling."""

    def __init__(self, reason: str, batch_id: str = None):
        super().__init__(reason, {"batch_id": batch_id} if batch_id else None)
        self.batch_id = batch_id


class BatchNotFoundError(CatalogValuationError):
    """Raised when a batch id is unknown to the store."""

    def __init__(self, batch_id: str):
        super().__init__("Batch not found", {"batch_id": batch_id})


# =============================================================================
# VALUATION ERRORS
# =============================================================================

class ValuationError(CatalogValuationError):
    """Base exception for valuation errors."""
    pass


class NoDataAvailableError(ValuationError):
    """Raised when a valuation is requested without usable records."""

    def __init__(self, reason: str = None):
        message = (
            "No valid streaming data found. "
            "Please ensure files are processed correctly."
        )
        super().__init__(message, {"reason": reason} if reason else None)


class ValuationNotFoundError(ValuationError):
    """Raised when a valuation id is unknown to the store."""

    def __init__(self, valuation_id):
        super().__init__("Valuation not found", {"id": valuation_id})


# =============================================================================
# STORAGE ERRORS
# =============================================================================

class DatabaseError(CatalogValuationError):
    """Raised when database operations fail."""

    def __init__(self, operation: str, reason: str = None):
        message = f"Database operation failed: {operation}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details)


# Export all exceptions
__all__ = [
    'CatalogValuationError',
    'InputError',
    'UnsupportedFormatError',
    'CorruptedFileError',
    'FileTooLargeError',
    'OCRError',
    'OCREngineNotAvailableError',
    'OCRProcessingError',
    'ExtractionError',
    'RateLimitExceededError',
    'ValidationError',
    'InvalidConfigError',
    'PipelineError',
    'BatchNotFoundError',
    'ValuationError',
    'NoDataAvailableError',
    'ValuationNotFoundError',
    'DatabaseError',
]
