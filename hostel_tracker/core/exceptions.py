"""
Error taxonomy for the hostel tracker.

Engines raise these instead of HTTPException so the same rules can be
exercised without a request. A single handler in ``main.py`` renders them:

    {"detail": "<message>", "code": "<CODE>", ...details}
"""

from typing import Any, Dict, Optional


class HostelTrackerError(Exception):
    """Base exception for all hostel tracker errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            **self.details,
        }


class ValidationError(HostelTrackerError):
    """Missing or malformed input, rejected before any mutation"""

    status_code = 400

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class AuthenticationError(HostelTrackerError):
    """Missing, invalid or expired credential token"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(HostelTrackerError):
    """Authenticated actor lacks permission for the action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", reason: Optional[str] = None):
        super().__init__(message, code="NOT_AUTHORIZED", details={"reason": reason} if reason else None)
        self.reason = reason


class NotFoundError(HostelTrackerError):
    """Referenced resource does not exist"""

    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", code="NOT_FOUND")


class ConflictError(HostelTrackerError):
    """Action collides with existing state (duplicate claim, already claimed item)"""

    status_code = 409

    def __init__(self, message: str = "Conflict", reason: Optional[str] = None):
        super().__init__(message, code="CONFLICT", details={"reason": reason} if reason else None)
        self.reason = reason


class UpstreamError(HostelTrackerError):
    """Media storage or data store operation failed"""

    status_code = 502

    def __init__(self, message: str = "Upstream service failed"):
        super().__init__(message, code="UPSTREAM_ERROR")
