"""
Comment analysis service: one pipeline shared by the HTTP and CLI transports.
"""

from functools import lru_cache
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from comment_analyzer.core.cancellation import CancellationToken
from comment_analyzer.core.collector import COLLECTION_CAP, CommentCollector
from comment_analyzer.core.comment_filter import comment_stats
from comment_analyzer.core.concurrency import ConcurrencyGate
from comment_analyzer.core.llm import ChatCompletion, CompletionModel
from comment_analyzer.core.summarizer import CommentSummarizer
from comment_analyzer.core.translator import BatchTranslator
from comment_analyzer.core.youtube_client import YouTubeDataClient
from comment_analyzer.models.schemas import (
    CollectorConfig,
    Comment,
    EventType,
    ProgressEvent,
    SummaryConfig,
    SummaryResult,
    SummaryStrategy,
    TranslationConfig,
)
from comment_analyzer.utils.error_handling import (
    ConfigurationError,
    JobCancelledError,
    describe_error,
)
from comment_analyzer.utils.logger import logging

TRANSLATION_CAP = 90.0


class CommentAnalysisService:
    """
    Builds collectors, translators and summarizers for each job.

    Completion clients are created on first use so that a missing key only
    fails the stages that need it.
    """

    def __init__(self, gate: Optional[ConcurrencyGate] = None,
                 source_factory: Callable[[], Any] = YouTubeDataClient,
                 translation_completion: Optional[CompletionModel] = None,
                 summary_completion: Optional[CompletionModel] = None,
                 collector_config: Optional[CollectorConfig] = None,
                 translation_config: Optional[TranslationConfig] = None,
                 summary_config: Optional[SummaryConfig] = None):
        self.gate = gate or ConcurrencyGate()
        self.source_factory = source_factory
        self.collector_config = collector_config or CollectorConfig()
        self.translation_config = translation_config or TranslationConfig()
        self.summary_config = summary_config or SummaryConfig()
        self._translation_completion = translation_completion
        self._summary_completion = summary_completion

    @property
    def translation_completion(self) -> CompletionModel:
        if self._translation_completion is None:
            self._translation_completion = ChatCompletion(
                model=self.translation_config.model,
                temperature=self.translation_config.temperature,
                max_tokens=self.translation_config.max_tokens,
            )
        return self._translation_completion

    @property
    def summary_completion(self) -> CompletionModel:
        if self._summary_completion is None:
            self._summary_completion = ChatCompletion(
                model=self.summary_config.model,
                temperature=self.summary_config.temperature,
                max_tokens=self.summary_config.max_tokens,
            )
        return self._summary_completion

    async def stream_comments(self, video_id: str, token: Optional[CancellationToken] = None
                              ) -> AsyncIterator[ProgressEvent]:
        """Collect every comment of a video as a stream of events."""
        token = token or CancellationToken()
        try:
            source = self.source_factory()
        except ConfigurationError as e:
            logging.error(f"Cannot collect comments for {video_id}: {e}")
            yield ProgressEvent.error(describe_error(e), fatal=True)
            return

        async with source:
            collector = CommentCollector(source, self.collector_config, token)
            async for event in collector.run(video_id):
                yield event

    def stream_translation(self, comments: List[Comment], token: Optional[CancellationToken] = None,
                           target_language: Optional[str] = None) -> AsyncIterator[ProgressEvent]:
        """Translate comments as a stream of events."""
        translation_config = self.translation_config
        if target_language:
            translation_config = translation_config.model_copy(update={"target_language": target_language})
        translator = BatchTranslator(translation_config, self.translation_completion, token)
        return translator.run(comments)

    async def summarize(self, comments: List[Comment], strategy: SummaryStrategy = SummaryStrategy.FULL,
                        token: Optional[CancellationToken] = None) -> SummaryResult:
        """Summarize comments into a structured record."""
        summarizer = CommentSummarizer(self.summary_config, self.summary_completion, token)
        return await summarizer.create_summary(comments, strategy)

    async def stream_analysis(self, video_id: str, strategy: SummaryStrategy = SummaryStrategy.FULL,
                              translate: bool = False, token: Optional[CancellationToken] = None
                              ) -> AsyncIterator[ProgressEvent]:
        """
        Collect, optionally translate, and summarize one video.

        Progress runs 0-75 % for collection, 75-90 % for translation and
        90-100 % for the summary; the summary record is carried by the final
        ``complete`` event.
        """
        token = token or CancellationToken()
        collection: Dict[str, Any] = {}
        comments: List[Comment] = []

        async for event in self.stream_comments(video_id, token):
            if event.type == EventType.COMPLETE:
                collection = event.data
                continue
            yield event
            if event.is_terminal:
                return
            if event.type == EventType.COMMENTS:
                comments.extend(Comment.model_validate(item) for item in event.data)

        translation: Optional[Dict[str, Any]] = None
        completion: Optional[CompletionModel] = None
        if translate and comments:
            try:
                completion = self.translation_completion
            except ConfigurationError as e:
                logging.error(f"Skipping translation for {video_id}: {e}")
                yield ProgressEvent.error(describe_error(e, "Translation skipped"), fatal=False)

        if completion is not None:
            translator = BatchTranslator(
                self.translation_config, completion, token,
                progress_span=(COLLECTION_CAP, TRANSLATION_CAP),
            )
            async for event in translator.run(comments):
                if event.type == EventType.COMPLETE:
                    translation = event.data
                    continue
                yield event
            comments = translator.apply(comments)

        yield ProgressEvent.progress("Generating summary...", TRANSLATION_CAP)
        try:
            summary = await self.summarize(comments, strategy, token)
        except JobCancelledError:
            raise
        except Exception as e:
            logging.error(f"Summary for {video_id} failed: {e}")
            yield ProgressEvent.error(describe_error(e, "Summary failed"), fatal=True)
            return

        yield ProgressEvent.progress("Analysis finished", 100)
        yield ProgressEvent(type=EventType.COMPLETE, data={
            **collection,
            "translation": translation,
            "commentStats": comment_stats(comments),
            "summary": summary.to_wire(),
        })


@lru_cache()
def get_service() -> CommentAnalysisService:
    """Process-wide service instance used by the API."""
    return CommentAnalysisService()
