"""
Error types for token generation and verification.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""

    SECRET = "ESECRET"
    VALID_AT = "EVALIDAT"
    EXPIRES_AT = "EEXPIRESAT"
    SERIALIZE = "ESERIALIZE"
    ENCRYPTION = "EENCRYPTION"
    PARSE = "EPARSE"
    TIME = "ETIME"
    WINDOW = "EWINDOW"
    OPTIONS = "EOPTIONS"


class ErrorCategory(str, Enum):
    """Broad classes of failure a caller usually branches on."""

    CONFIGURATION = "configuration"
    TOKEN = "token"
    WINDOW = "window"


_CATEGORIES = {
    ErrorCode.SECRET: ErrorCategory.CONFIGURATION,
    ErrorCode.VALID_AT: ErrorCategory.CONFIGURATION,
    ErrorCode.EXPIRES_AT: ErrorCategory.CONFIGURATION,
    ErrorCode.SERIALIZE: ErrorCategory.CONFIGURATION,
    ErrorCode.OPTIONS: ErrorCategory.CONFIGURATION,
    ErrorCode.ENCRYPTION: ErrorCategory.TOKEN,
    ErrorCode.PARSE: ErrorCategory.TOKEN,
    ErrorCode.TIME: ErrorCategory.TOKEN,
    ErrorCode.WINDOW: ErrorCategory.WINDOW,
}


class ErrorResponse(BaseModel):
    """Serializable error description."""

    code: ErrorCode
    category: ErrorCategory
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class TWTError(Exception):
    """Raised for every generation and verification failure."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.code = ErrorCode(code)
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self.code]

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        details = dict(self.details)
        if self.cause is not None:
            details.setdefault("cause", f"{type(self.cause).__name__}: {self.cause}")

        return ErrorResponse(
            code=self.code,
            category=self.category,
            message=self.message,
            details=details,
        )

    def __repr__(self) -> str:
        return f"TWTError(code={self.code.value!r}, message={self.message!r})"
