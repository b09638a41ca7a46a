from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from comment_analyzer.models.schemas import Comment, SummaryStrategy
from comment_analyzer.utils.error_handling import CapacityRejectedError


class CamelRequest(BaseModel):
    """Request body accepting camelCase or snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommentsRequest(CamelRequest):
    """Model for requesting a comment collection stream."""
    video_id: str = Field(..., min_length=1, description="Video id or YouTube URL")


class TranslateRequest(CamelRequest):
    """Model for translation stream requests."""
    comments: List[Comment]
    target_language: Optional[str] = None


class SummarizeRequest(CamelRequest):
    """Model for summary requests."""
    comments: List[Comment]
    strategy: SummaryStrategy = SummaryStrategy.FULL


class AnalyzeRequest(CamelRequest):
    """Model for full analysis stream requests."""
    video_id: str = Field(..., min_length=1, description="Video id or YouTube URL")
    strategy: SummaryStrategy = SummaryStrategy.FULL
    translate: bool = False


class StatusResponse(BaseModel):
    """Model for concurrency status responses."""
    activeCount: int
    activeIds: List[str]
    capacityRemaining: int
    maxConcurrent: int
    canStartNew: bool


class RejectionResponse(BaseModel):
    """Model for capacity rejections."""
    error: str
    details: str
    activeJobs: int
    activeProcesses: List[str]
    retryAfter: int

    @classmethod
    def from_error(cls, error: CapacityRejectedError) -> "RejectionResponse":
        return cls(
            error="System busy",
            details=f"{error.active_count} job(s) currently running, please retry in {error.retry_after}s",
            activeJobs=error.active_count,
            activeProcesses=error.active_ids,
            retryAfter=error.retry_after,
        )
