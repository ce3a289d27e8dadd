"""MasterContractor error handling.

Custom exceptions and error codes for the reconciliation engine.

Domain outcomes (unsafe matches, missing scope, invariant violations) are
returned as data. These exceptions are reserved for configuration failures
and callers that breach the input contract.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Configuration Errors (2xxx)
    CONFIG_ERROR = "CONFIG_ERROR"
    INVALID_SETTING = "INVALID_SETTING"

    # Ratebook Errors (3xxx)
    RATEBOOK_NOT_FOUND = "RATEBOOK_NOT_FOUND"
    RATEBOOK_INVALID = "RATEBOOK_INVALID"


class MasterContractorError(Exception):
    """Base exception for MasterContractor errors.

    Provides structured error information for callers and CLI output.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize MasterContractorError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"MasterContractorError(code={self.code!r}, message={self.message!r})"


class ValidationError(MasterContractorError):
    """Validation-specific error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class ConfigError(MasterContractorError):
    """Settings could not be applied."""

    def __init__(self, message: str, setting: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.INVALID_SETTING,
            message=message,
            details={**(details or {}), "setting": setting}
        )
        self.setting = setting


class RatebookError(MasterContractorError):
    """Ratebook file missing or malformed."""

    def __init__(
        self,
        code: str,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "path": path}
        )
        self.path = path
