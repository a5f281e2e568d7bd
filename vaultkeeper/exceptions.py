"""Custom exception hierarchy for VaultKeeper.

Authorization *denials* are not exceptions: the access engine returns an
``AccessDecision``. The classes below are raised by the service layer once a
denial has to become an HTTP response, and by the store when the database
cannot be reached.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Resource errors
    VAULT_NOT_FOUND = "VAULT_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ACL_NOT_FOUND = "ACL_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Concurrency / uniqueness
    CONFLICT = "CONFLICT"

    # Store unreachable
    INFRASTRUCTURE_ERROR = "INFRASTRUCTURE_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class KeeperException(Exception):
    """
    Base exception for all VaultKeeper errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ResourceNotFoundError(KeeperException):
    """Vault, folder, item, ACL entry or group not found (or not visible to the caller)."""

    _CODES = {
        "vault": ErrorCode.VAULT_NOT_FOUND,
        "folder": ErrorCode.FOLDER_NOT_FOUND,
        "item": ErrorCode.ITEM_NOT_FOUND,
        "acl": ErrorCode.ACL_NOT_FOUND,
        "group": ErrorCode.GROUP_NOT_FOUND,
        "member": ErrorCode.MEMBER_NOT_FOUND,
    }

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type.capitalize()} not found: {resource_id}",
            self._CODES.get(resource_type, ErrorCode.VALIDATION_ERROR),
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ValidationError(KeeperException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(KeeperException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(KeeperException):
    """Authenticated caller lacks permission for the requested action."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        reason: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
            details={"reason": reason} if reason else None,
        )


class ConflictError(KeeperException):
    """Write conflicts with an existing record."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


class InfrastructureError(KeeperException):
    """The resource store could not be reached or failed mid-query.

    Kept distinct from authorization denials so callers never mistake
    "unreachable" for "unauthorized".
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.INFRASTRUCTURE_ERROR,
            status_code=503,
            details=details
        )
