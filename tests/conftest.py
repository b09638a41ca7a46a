"""
Configuration for pytest tests.
"""

import os

# Set before the application reads its configuration
os.environ.setdefault("GROQ_API_KEY", "test_api_key")
os.environ.setdefault("YOUTUBE_API_KEY", "test_youtube_key")
os.environ["ENVIRONMENT"] = "development"

import pytest
from typing import Any, Dict, List, Optional

from comment_analyzer.models.schemas import (
    CollectorConfig,
    Comment,
    RetryPolicy,
    SummaryConfig,
    TranslationConfig,
    VideoInfo,
)
from comment_analyzer.utils.error_handling import UpstreamHTTPError

NO_WAIT = RetryPolicy(max_retries=2, initial_delay=0, max_delay=0, jitter=False)


def make_comment(index: int, text: Optional[str] = None, likes: int = 0,
                 published_at: str = "2024-01-01T00:00:00Z", **extra) -> Comment:
    """Build a valid comment with a unique id and text."""
    return Comment(
        id=f"c{index}",
        text_display=text if text is not None else f"comment number {index}",
        text_original=text if text is not None else f"comment number {index}",
        author_display_name=f"user{index}",
        like_count=likes,
        published_at=published_at,
        **extra,
    )


def make_thread(thread_id: str, text: str, likes: int = 0, replies: Optional[List[Dict[str, str]]] = None
                ) -> Dict[str, Any]:
    """Build a commentThreads item as returned by the YouTube Data API."""
    thread: Dict[str, Any] = {
        "id": thread_id,
        "snippet": {
            "totalReplyCount": len(replies or []),
            "topLevelComment": {
                "id": thread_id,
                "snippet": {
                    "textDisplay": text,
                    "textOriginal": text,
                    "authorDisplayName": "author",
                    "authorChannelId": {"value": "channel"},
                    "likeCount": likes,
                    "publishedAt": "2024-01-01T00:00:00Z",
                    "updatedAt": "2024-01-01T00:00:00Z",
                },
            },
        },
    }
    if replies:
        thread["replies"] = {"comments": [
            {"id": reply["id"], "snippet": {"textDisplay": reply["text"], "textOriginal": reply["text"],
                                            "authorDisplayName": "replier", "likeCount": 0,
                                            "publishedAt": "2024-01-02T00:00:00Z"}}
            for reply in replies
        ]}
    return thread


class FakeCommentSource:
    """In-memory comment source serving a fixed list of pages."""

    def __init__(self, pages: List[Dict[str, Any]], video_info: Optional[VideoInfo] = None,
                 info_error: Optional[Exception] = None, page_errors: Optional[Dict[int, Exception]] = None):
        self.pages = pages
        self.video_info = video_info or VideoInfo(video_id="dQw4w9WgXcQ", title="Test Video",
                                                  channel_title="Test Channel", comment_count="10")
        self.info_error = info_error
        self.page_errors = page_errors or {}
        self.info_calls = 0
        self.page_calls: List[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def fetch_video_info(self, video_id: str) -> VideoInfo:
        self.info_calls += 1
        if self.info_error is not None:
            raise self.info_error
        return self.video_info

    async def fetch_comment_threads(self, video_id: str, page_token: str = "", max_results: int = 100):
        self.page_calls.append(page_token)
        index = len(self.page_calls) - 1
        if index in self.page_errors:
            raise self.page_errors[index]
        return self.pages[index]


class FakeCompletion:
    """
    Scripted completion client.

    ``responder`` receives (system_prompt, text) and returns the reply or
    raises; every call is recorded.
    """

    def __init__(self, responder=None):
        self.responder = responder or (lambda system_prompt, text: text)
        self.calls: List[Dict[str, str]] = []

    async def complete(self, system_prompt: str, text: str) -> str:
        self.calls.append({"system_prompt": system_prompt, "text": text})
        return self.responder(system_prompt, text)


def server_error(*_):
    raise UpstreamHTTPError(500, "backend error", service="Groq")


def bad_request(*_):
    raise UpstreamHTTPError(400, "invalid request", service="Groq")


@pytest.fixture
def comments():
    """Twelve distinct valid comments."""
    return [make_comment(i, likes=i) for i in range(12)]


@pytest.fixture
def collector_config():
    return CollectorConfig(page_size=2, max_pages=100, page_delay=0, request_timeout=5,
                           metadata_retry=NO_WAIT, page_retry=NO_WAIT)


@pytest.fixture
def translation_config():
    return TranslationConfig(batch_size=10, batch_delay=0, request_timeout=5, retry=NO_WAIT)


@pytest.fixture
def summary_config():
    return SummaryConfig(threshold=500, batch_size=500, batch_delay=0, request_timeout=5, retry=NO_WAIT)
