"""Shared error codes, exceptions and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
CAPTURE_UNAVAILABLE = "CAPTURE_UNAVAILABLE"
TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
SERVICE_ERROR = "SERVICE_ERROR"
INPUT_TOO_SHORT = "INPUT_TOO_SHORT"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone permission is required.",
    CAPTURE_UNAVAILABLE: "Microphone is unavailable, please retry.",
    TRANSCRIPTION_FAILED: "Summary failed, please retry.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    QUOTA_EXCEEDED: "Service quota exceeded, please retry later.",
    MALFORMED_RESPONSE: "Service response format is invalid.",
    SERVICE_ERROR: "Service failed, please retry.",
    INPUT_TOO_SHORT: "Please enter a question at least 10 characters long to simplify.",
}


class CaptureError(RuntimeError):
    pass


class ServiceError(RuntimeError):
    def __init__(self, code: str, message: str = "", retryable: bool = False) -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code
        self.retryable = retryable


class InputTooShortError(ValueError):
    pass


def classify_exception(exc: Exception) -> tuple[str, bool]:
    """Map an SDK/network exception to an error code and retryable flag."""
    low = str(exc).lower()
    if "401" in low or "403" in low or "auth" in low or "api key" in low:
        return AUTH_FAILED, False
    if "429" in low or "quota" in low or "throttl" in low or "rate limit" in low:
        return QUOTA_EXCEEDED, True
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return NETWORK_ERROR, True
    if "timeout" in low or "network" in low or "connection" in low:
        return NETWORK_ERROR, True
    return SERVICE_ERROR, True


def http_status_code(status: int) -> str:
    if status in (401, 403):
        return AUTH_FAILED
    if status == 429:
        return QUOTA_EXCEEDED
    return SERVICE_ERROR
