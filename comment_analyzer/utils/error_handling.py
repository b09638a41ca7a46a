"""
Centralized error handling for the application.
"""

from typing import List, Optional, Sequence


class CommentAnalyzerError(Exception):
    """Base class for errors raised by the comment analyzer."""


class ConfigurationError(CommentAnalyzerError):
    """A required setting (usually an API key) is missing."""


class UpstreamHTTPError(CommentAnalyzerError):
    """
    An external service answered with a non-success HTTP status.

    5xx and 429 are transient; every other status is permanent.
    """

    def __init__(self, status: int, message: str, service: str = "upstream"):
        self.status = status
        self.message = message
        self.service = service
        super().__init__(f"{service} API error: {status} - {message}")

    @property
    def transient(self) -> bool:
        return self.status == 429 or 500 <= self.status < 600


class VideoNotFoundError(UpstreamHTTPError):
    """The video does not exist or is not accessible."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(404, f"Video {video_id} does not exist or is not accessible", service="YouTube")


class CapacityRejectedError(CommentAnalyzerError):
    """The concurrency gate is saturated."""

    def __init__(self, active_count: int, active_ids: Sequence[str], retry_after: int):
        self.active_count = active_count
        self.active_ids = list(active_ids)
        self.retry_after = retry_after
        super().__init__(f"System busy: {active_count} job(s) currently running")


class AllBatchesFailedError(CommentAnalyzerError):
    """Every summary batch failed, so there is nothing to merge."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        detail = "; ".join(self.errors) if self.errors else "no batches were summarized"
        super().__init__(f"All {len(self.errors)} summary batches failed: {detail}")


class NoCommentsSelectedError(CommentAnalyzerError, ValueError):
    """The chosen strategy selected no comments."""


class JobCancelledError(CommentAnalyzerError):
    """The job's cancellation token was triggered."""


def describe_error(error: BaseException, prefix: Optional[str] = None) -> str:
    """
    Build the message placed in streamed ``error`` events.

    Args:
        error: The exception to describe
        prefix: Optional context, e.g. "Failed to fetch page 3"

    Returns:
        Human readable message
    """
    message = str(error) or error.__class__.__name__
    if prefix:
        return f"{prefix}: {message}"
    return message
