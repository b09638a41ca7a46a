"""
Paginated comment collector.

Drives cursor pagination against a comment source and streams incremental
results as progress events:

    Init -> FetchingVideoMeta -> CollectingPage(n) -> Done | Failed
"""

from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol

from comment_analyzer.core.cancellation import CancellationToken
from comment_analyzer.core.comment_filter import drop_orphaned_replies, filter_comments
from comment_analyzer.core.retry import execute_with_retry
from comment_analyzer.models.schemas import (
    CollectorConfig,
    Comment,
    EventType,
    ProgressEvent,
    VideoInfo,
)
from comment_analyzer.utils.error_handling import JobCancelledError, describe_error
from comment_analyzer.utils.logger import logging

# Share of the overall progress bar owned by each collection phase
METADATA_SHARE = 5.0
COLLECTION_CAP = 75.0


class CommentSource(Protocol):
    """External cursor-paginated comment source."""

    async def fetch_video_info(self, video_id: str) -> VideoInfo:
        ...

    async def fetch_comment_threads(self, video_id: str, page_token: str = "",
                                    max_results: int = 100) -> Dict[str, Any]:
        ...


class CollectorState(str, Enum):
    INIT = "init"
    FETCHING_VIDEO_META = "fetching_video_meta"
    COLLECTING_PAGE = "collecting_page"
    DONE = "done"
    FAILED = "failed"


class CollectionOutcome(str, Enum):
    EXHAUSTED = "exhausted"
    MAX_PAGES = "max_pages"
    PAGE_ERROR = "page_error"


def _snippet_to_comment(comment_id: str, snippet: Dict[str, Any], level: int,
                        parent_id: Optional[str], reply_count: int = 0) -> Comment:
    return Comment(
        id=comment_id,
        text_display=snippet.get("textDisplay") or "",
        text_original=snippet.get("textOriginal") or "",
        author_display_name=snippet.get("authorDisplayName") or "",
        author_channel_id=(snippet.get("authorChannelId") or {}).get("value"),
        like_count=snippet.get("likeCount") or 0,
        reply_count=reply_count,
        published_at=snippet.get("publishedAt") or "",
        updated_at=snippet.get("updatedAt") or "",
        level=level,
        parent_id=parent_id,
    )


def threads_to_comments(threads: Iterable[Dict[str, Any]]) -> List[Comment]:
    """Flatten comment threads: each top-level comment followed by its replies."""
    comments = []
    for thread in threads:
        thread_snippet = thread.get("snippet", {})
        top_level = thread_snippet.get("topLevelComment", {})
        top_level_id = top_level.get("id") or thread.get("id")
        comments.append(_snippet_to_comment(
            top_level_id,
            top_level.get("snippet", {}),
            level=0,
            parent_id=None,
            reply_count=thread_snippet.get("totalReplyCount") or 0,
        ))
        for reply in (thread.get("replies") or {}).get("comments", []):
            comments.append(_snippet_to_comment(
                reply.get("id"),
                reply.get("snippet", {}),
                level=1,
                parent_id=top_level_id,
            ))
    return comments


def collection_percentage(total_fetched: int, estimated_total: int) -> float:
    """5 % reserved for metadata, then linear up to 75 %."""
    ratio = min(1.0, total_fetched / estimated_total) if estimated_total > 0 else 1.0
    return METADATA_SHARE + (COLLECTION_CAP - METADATA_SHARE) * ratio


class CommentCollector:
    """
    Collect every comment of one video.

    The collected comments, video info and outcome stay available on the
    instance after ``run`` finishes.
    """

    def __init__(self, source: CommentSource, collector_config: Optional[CollectorConfig] = None,
                 token: Optional[CancellationToken] = None):
        self.source = source
        self.config = collector_config or CollectorConfig()
        self.token = token or CancellationToken()
        self.state = CollectorState.INIT
        self.video_info: Optional[VideoInfo] = None
        self.comments: List[Comment] = []
        self.total_fetched = 0
        self.pages = 0
        self.outcome: Optional[CollectionOutcome] = None

    async def _fetch_video_info(self, video_id: str) -> VideoInfo:
        return await execute_with_retry(
            lambda: self.token.guard(self.source.fetch_video_info(video_id)),
            self.config.metadata_retry,
            timeout=self.config.request_timeout,
            sleep=self.token.sleep,
            description=f"Video info request for {video_id}",
        )

    async def _fetch_page(self, video_id: str, page_token: str) -> Dict[str, Any]:
        return await execute_with_retry(
            lambda: self.token.guard(
                self.source.fetch_comment_threads(video_id, page_token, self.config.page_size)
            ),
            self.config.page_retry,
            timeout=self.config.request_timeout,
            sleep=self.token.sleep,
            description=f"Comment page {self.pages} request for {video_id}",
        )

    async def run(self, video_id: str) -> AsyncIterator[ProgressEvent]:
        """Stream progress, video info, comment batches and one terminal event."""
        self.token.raise_if_cancelled()
        self.state = CollectorState.FETCHING_VIDEO_META
        yield ProgressEvent.progress("Fetching video info...", 0)

        try:
            self.video_info = await self._fetch_video_info(video_id)
        except JobCancelledError:
            raise
        except Exception as e:
            self.state = CollectorState.FAILED
            logging.error(f"Failed to fetch video info for {video_id}: {e}")
            yield ProgressEvent.error(describe_error(e, "Failed to fetch video info"), fatal=True)
            return

        yield ProgressEvent(type=EventType.VIDEO_INFO, data=self.video_info.to_wire())
        yield ProgressEvent.progress("Collecting comments...", METADATA_SHARE)

        estimated_total = self.video_info.estimated_total()
        page_token = ""
        while True:
            self.pages += 1
            self.state = CollectorState.COLLECTING_PAGE
            yield ProgressEvent.progress(
                f"Collecting page {self.pages}...",
                collection_percentage(self.total_fetched, estimated_total),
                current=self.total_fetched,
                total=estimated_total,
            )

            try:
                data = await self._fetch_page(video_id, page_token)
                page_comments = threads_to_comments(data.get("items") or [])
            except JobCancelledError:
                raise
            except Exception as e:
                logging.error(f"Failed to fetch page {self.pages} for {video_id}: {e}")
                self.outcome = CollectionOutcome.PAGE_ERROR
                yield ProgressEvent.error(
                    describe_error(e, f"Failed to fetch page {self.pages}"), fatal=False, page=self.pages
                )
                break

            filtered = drop_orphaned_replies(filter_comments(page_comments))
            logging.info(
                f"Page {self.pages}: {len(page_comments)} comments fetched, {len(filtered)} kept after filtering"
            )
            self.total_fetched += len(page_comments)
            self.comments.extend(filtered)
            if filtered:
                yield ProgressEvent(type=EventType.COMMENTS, data=[c.to_wire() for c in filtered])
            yield ProgressEvent.progress(
                f"Collected {self.total_fetched} comments",
                collection_percentage(self.total_fetched, estimated_total),
                current=self.total_fetched,
                total=estimated_total,
            )

            page_token = data.get("nextPageToken") or ""
            if not page_token:
                self.outcome = CollectionOutcome.EXHAUSTED
                break
            if self.pages >= self.config.max_pages:
                logging.warning(f"Stopped collecting {video_id} after the maximum of {self.config.max_pages} pages")
                self.outcome = CollectionOutcome.MAX_PAGES
                break

            await self.token.sleep(self.config.page_delay)

        self.state = CollectorState.DONE
        yield ProgressEvent.progress(
            f"Collection finished, {len(self.comments)} valid comments",
            COLLECTION_CAP,
            current=len(self.comments),
            total=len(self.comments),
        )
        yield ProgressEvent(type=EventType.COMPLETE, data={
            "totalComments": len(self.comments),
            "totalFetched": self.total_fetched,
            "pages": self.pages,
            "reason": self.outcome.value,
            "videoInfo": self.video_info.to_wire(),
        })
