"""Exceptions raised by the ingestion and publishing pipeline."""

import httpx

RETRYABLE_STATUSES = {408, 425, 429, 500, 502, 503, 504}


class PipelineError(Exception):
    """Base class for pipeline failures."""


class TransientNetworkError(PipelineError):
    """Timeout, connection failure, 5xx or empty response. Retried with backoff."""


class ValidationFailure(PipelineError):
    """Bad input or rejected content. Never retried."""


class InvalidUrlError(ValidationFailure):
    """URL is not an absolute http(s) URL."""


class ContentTooLargeError(ValidationFailure):
    """Fetched page exceeds the decoded-size ceiling."""


class FeedFetchError(PipelineError):
    """Raised when a feed cannot be fetched after all retries."""


class StoreUnavailableError(PipelineError):
    """The key-value store is not configured or cannot be reached."""


class ExternalAPIError(PipelineError):
    """Non-success response from the content store or an email API."""

    def __init__(self, message: str, status: int | None = None, body: str = "", retryable: bool | None = None):
        super().__init__(message)
        self.status = status
        self.body = body
        if retryable is None:
            retryable = status in RETRYABLE_STATUSES
        self.retryable = retryable


def is_retryable(exc: BaseException) -> bool:
    """Whether a failed attempt is worth repeating."""
    if isinstance(exc, ValidationFailure):
        return False
    if isinstance(exc, TransientNetworkError):
        return True
    if isinstance(exc, ExternalAPIError):
        return exc.retryable
    return isinstance(exc, httpx.TransportError)
