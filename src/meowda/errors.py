"""Error types for meowda."""
import logging
from typing import Any, Dict, Optional

from mcp.types import (
    ErrorData,
    INVALID_REQUEST,
    INVALID_PARAMS,
    INTERNAL_ERROR
)

from meowda.logging import log_with_data


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger("meowda.errors")

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, MeowdaError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    log_with_data(logger, logging.ERROR, "Operation failed", error_info)


class MeowdaError(Exception):
    """Base error class for meowda."""
    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(
            code=self.code,
            message=str(self),
            data=self.details
        )


class ConfigError(MeowdaError):
    """Store location could not be determined."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_PARAMS, details=details)


class PreconditionError(MeowdaError):
    """Operation is not valid for the current store state."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INVALID_REQUEST, details=details)


class StoreIOError(MeowdaError):
    """Filesystem failure while reading or changing the store."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INTERNAL_ERROR, details=details)


class LockError(MeowdaError):
    """Store lock file could not be opened or locked."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to acquire lock {path}: {reason}",
            code=INTERNAL_ERROR,
            details={"path": path, "reason": reason}
        )


class ExternalToolError(MeowdaError):
    """Provisioning tool could not be run or exited with an error."""
    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if returncode is not None:
            details["returncode"] = returncode
        super().__init__(message, code=INTERNAL_ERROR, details=details)
        self.returncode = returncode
