"""
Data models for the YouTube comment analyzer application.
"""
import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from comment_analyzer.config import config


class WireModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Comment(WireModel):
    """A top-level comment (level 0) or a reply (level 1)."""
    id: str
    text_display: str = ""
    text_original: str = ""
    translated_text: Optional[str] = None
    author_display_name: str = ""
    author_channel_id: Optional[str] = None
    like_count: int = Field(default=0, ge=0)
    reply_count: int = Field(default=0, ge=0)
    published_at: str = ""
    updated_at: str = ""
    level: int = Field(default=0, ge=0, le=1)
    parent_id: Optional[str] = None

    @field_validator("like_count", "reply_count", mode="before")
    @classmethod
    def default_missing_counts(cls, v):
        return 0 if v is None else v

    @property
    def source_text(self) -> str:
        """Text sent to translation: display text, falling back to the original."""
        return self.text_display or self.text_original or ""


class VideoInfo(WireModel):
    """Video metadata, immutable once fetched."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    video_id: str
    title: str = ""
    description: str = ""
    channel_title: str = ""
    published_at: str = ""
    view_count: Optional[str] = None
    like_count: Optional[str] = None
    comment_count: Optional[str] = None
    video_url: str = ""

    def estimated_total(self, default: int = config.DEFAULT_ESTIMATED_TOTAL) -> int:
        """Comment count as an integer, used only for progress display."""
        try:
            total = int(self.comment_count)
        except (TypeError, ValueError):
            return default
        return total if total > 0 else default


class EventType(str, Enum):
    """Types of streamed progress events."""
    PROGRESS = "progress"
    VIDEO_INFO = "videoInfo"
    COMMENTS = "comments"
    TRANSLATED = "translated"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressEvent(BaseModel):
    """A typed event streamed to the consumer as one NDJSON line."""
    type: EventType
    data: Any = None

    @classmethod
    def progress(cls, stage: str, percentage: float, current: Optional[int] = None,
                 total: Optional[int] = None) -> "ProgressEvent":
        data: Dict[str, Any] = {"stage": stage, "percentage": round(percentage, 2)}
        if current is not None:
            data["current"] = current
        if total is not None:
            data["total"] = total
        return cls(type=EventType.PROGRESS, data=data)

    @classmethod
    def error(cls, message: str, fatal: bool, **extra: Any) -> "ProgressEvent":
        return cls(type=EventType.ERROR, data={"message": message, "fatal": fatal, **extra})

    @property
    def is_terminal(self) -> bool:
        if self.type == EventType.COMPLETE:
            return True
        return self.type == EventType.ERROR and bool((self.data or {}).get("fatal"))

    def to_ndjson(self) -> str:
        return json.dumps({"type": self.type.value, "data": self.data}, ensure_ascii=False) + "\n"


class RetryPolicy(BaseModel):
    """Configuration for the retry engine."""
    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1.0)
    jitter: bool = True


class CollectorConfig(BaseModel):
    """Configuration for paginated comment collection."""
    page_size: int = config.PAGE_SIZE
    max_pages: int = config.MAX_PAGES
    page_delay: float = config.PAGE_DELAY
    request_timeout: Optional[float] = config.REQUEST_TIMEOUT
    metadata_retry: RetryPolicy = RetryPolicy(
        max_retries=config.METADATA_MAX_RETRIES,
        initial_delay=config.METADATA_INITIAL_DELAY,
        **config.retry_settings(),
    )
    page_retry: RetryPolicy = RetryPolicy(
        max_retries=config.PAGE_MAX_RETRIES,
        initial_delay=config.PAGE_INITIAL_DELAY,
        **config.retry_settings(),
    )


class TranslationConfig(BaseModel):
    """Configuration for batch translation."""
    model: str = config.DEFAULT_TRANSLATION_MODEL
    target_language: str = config.TRANSLATION_TARGET_LANGUAGE
    temperature: float = config.TRANSLATION_TEMPERATURE
    max_tokens: int = config.TRANSLATION_MAX_TOKENS
    batch_size: int = Field(default=config.TRANSLATION_BATCH_SIZE, ge=1)
    batch_delay: float = config.TRANSLATION_DELAY
    request_timeout: Optional[float] = config.REQUEST_TIMEOUT
    retry: RetryPolicy = RetryPolicy(
        max_retries=config.TRANSLATION_MAX_RETRIES,
        initial_delay=config.TRANSLATION_INITIAL_DELAY,
        max_delay=config.RETRY_MAX_DELAY,
        backoff_factor=config.TRANSLATION_BACKOFF_FACTOR,
        jitter=config.RETRY_JITTER,
    )


class SummaryStrategy(str, Enum):
    """Named selection rules choosing which comments feed summarization."""
    FULL = "full"
    POPULAR = "popular"
    RECENT = "recent"
    SENTIMENT = "sentiment"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SummaryConfig(BaseModel):
    """Configuration for summarization operations."""
    model: str = config.DEFAULT_SUMMARY_MODEL
    language: str = config.SUMMARY_LANGUAGE
    temperature: float = config.SUMMARY_TEMPERATURE
    max_tokens: int = config.SUMMARY_MAX_TOKENS
    threshold: int = Field(default=config.SUMMARY_THRESHOLD, ge=1)
    batch_size: int = Field(default=config.SUMMARY_BATCH_SIZE, ge=1)
    batch_delay: float = config.SUMMARY_BATCH_DELAY
    max_parallel: int = Field(default=config.SUMMARY_MAX_PARALLEL, ge=1)
    popular_limit: int = config.POPULAR_LIMIT
    recent_limit: int = config.RECENT_LIMIT
    sentiment_limit: int = config.SENTIMENT_LIMIT
    mixed_sentiment_limit: int = config.MIXED_SENTIMENT_LIMIT
    full_limit: Optional[int] = config.FULL_STRATEGY_LIMIT
    request_timeout: Optional[float] = config.REQUEST_TIMEOUT
    retry: RetryPolicy = RetryPolicy(
        max_retries=config.SUMMARY_MAX_RETRIES,
        initial_delay=config.SUMMARY_INITIAL_DELAY,
        max_delay=config.SUMMARY_MAX_DELAY,
        backoff_factor=config.RETRY_BACKOFF_FACTOR,
        jitter=config.RETRY_JITTER,
    )


class BatchSummary(BaseModel):
    """Summary of one contiguous batch, consumed once by the merge step."""
    batch_index: int
    comment_count: int
    summary: str
    failed: bool = False


class SummarySections(WireModel):
    """The five analytical dimensions parsed out of a summary."""
    user_likes: str = ""
    user_dislikes: str = ""
    user_expectations: str = ""
    improvements: str = ""
    user_profile: str = ""


class SummaryResult(SummarySections):
    """Structured summary record returned to the consumer."""
    strategy: SummaryStrategy
    analyzed_comments: int
    total_comments: int
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    raw_summary: str
    batch_processed: bool = False
    batch_count: int = 1
    failed_batches: List[int] = Field(default_factory=list)
