# Error types surfaced to the user by every dashboard action

from typing import Optional


class CivicPulseError(Exception):
    """Base class; ``str(err)`` is the message shown to the user."""


class NetworkError(CivicPulseError):
    """The backend could not be reached (no response)."""


class RequestTimedOut(NetworkError):
    pass


class ApiError(CivicPulseError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail or f"Request failed with status {status_code}"
        super().__init__(self.detail)


class NotFound(ApiError):
    def __init__(self, detail: Optional[str] = None):
        super().__init__(404, detail or "Not found")


class SessionExpired(ApiError):
    def __init__(self, detail: Optional[str] = None):
        super().__init__(401, detail or "Session expired. Please login again.")


class ValidationFailed(CivicPulseError):
    """Client-side validation or business-rule check failed; nothing was sent."""


class ActionCancelled(CivicPulseError):
    """The user declined a confirmation prompt."""


class ActionInProgress(CivicPulseError):
    """The same action is already in flight."""


class RedirectRequired(CivicPulseError):
    """The current view cannot be shown; the user belongs on ``target``."""

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(message)
