"""ETF tracker error types."""

from __future__ import annotations

from enum import Enum


class TrackerErrorCode(Enum):
    """Error classification codes."""

    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    BAD_PAYLOAD = "bad_payload"
    SYNC_IN_PROGRESS = "sync_in_progress"


class TrackerError(Exception):
    """Tracker exception with error code and retryable flag.

    Attributes:
        message: Human-readable error description.
        code: Structured error code for programmatic handling.
        retryable: Whether the caller may try the next endpoint or retry later.
    """

    def __init__(
        self,
        message: str,
        code: TrackerErrorCode = TrackerErrorCode.PROVIDER_ERROR,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable


class SourceError(TrackerError):
    """Raised inside a source client when one endpoint call fails.

    Never escapes a source client's public methods; the client maps it to
    an empty result.
    """


class SyncInProgressError(TrackerError):
    """Raised when a sync is triggered while another run is in flight."""

    def __init__(self, message: str = "Sync already running") -> None:
        super().__init__(message, code=TrackerErrorCode.SYNC_IN_PROGRESS, retryable=True)
