"""
Module for summarizing comments using LLM models.
"""

import asyncio
from typing import List, Optional

from comment_analyzer.core.cancellation import CancellationToken
from comment_analyzer.core.comment_filter import classify_sentiment, rank_by_popularity, rank_by_recency
from comment_analyzer.core.llm import ChatCompletion, CompletionModel
from comment_analyzer.core.prompts import (
    build_merge_prompt,
    build_summary_prompt,
    format_batch_summaries,
    format_comments_for_ai,
)
from comment_analyzer.core.retry import execute_with_retry
from comment_analyzer.core.section_parser import parse_summary_sections
from comment_analyzer.models.schemas import (
    BatchSummary,
    Comment,
    SummaryConfig,
    SummaryResult,
    SummaryStrategy,
)
from comment_analyzer.utils.error_handling import (
    AllBatchesFailedError,
    JobCancelledError,
    NoCommentsSelectedError,
    describe_error,
)
from comment_analyzer.utils.helpers import split_into_batches
from comment_analyzer.utils.logger import logging


class CommentSummarizer:
    """Class to handle comment summarization operations."""

    def __init__(self, summary_config: Optional[SummaryConfig] = None,
                 completion: Optional[CompletionModel] = None,
                 token: Optional[CancellationToken] = None):
        """
        Initialize the summarizer.

        Args:
            summary_config: Configuration for summarization
            completion: Completion client (if None, a Groq chat model is built from the config)
            token: Cancellation token of the surrounding job
        """
        self.config = summary_config or SummaryConfig()
        self.completion = completion or ChatCompletion(
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        self.token = token or CancellationToken()

    def select_comments(self, comments: List[Comment], strategy: SummaryStrategy) -> List[Comment]:
        """
        Choose the comments that feed the summary.

        Args:
            comments: Every collected comment
            strategy: Selection rule

        Returns:
            Selected subset, in the order the strategy ranks them
        """
        if not comments:
            return []

        if strategy == SummaryStrategy.POPULAR:
            return rank_by_popularity(comments, self.config.popular_limit)
        if strategy == SummaryStrategy.RECENT:
            return rank_by_recency(comments, self.config.recent_limit)

        if strategy in (SummaryStrategy.SENTIMENT, SummaryStrategy.POSITIVE,
                        SummaryStrategy.NEGATIVE, SummaryStrategy.NEUTRAL):
            buckets = classify_sentiment(comments)
            if strategy == SummaryStrategy.SENTIMENT:
                limit = self.config.mixed_sentiment_limit
                return buckets["positive"][:limit] + buckets["negative"][:limit] + buckets["neutral"][:limit]
            return buckets[strategy.value][:self.config.sentiment_limit]

        if self.config.full_limit:
            return list(comments[:self.config.full_limit])
        return list(comments)

    async def _complete(self, system_prompt: str, text: str, description: str) -> str:
        return await execute_with_retry(
            lambda: self.token.guard(self.completion.complete(system_prompt, text)),
            self.config.retry,
            timeout=self.config.request_timeout,
            sleep=self.token.sleep,
            description=description,
        )

    async def summarize_batch(self, batch: List[Comment], strategy: SummaryStrategy,
                              batch_index: int, batch_count: int) -> BatchSummary:
        """
        Summarize one batch; failures are recorded instead of raised.

        Returns:
            BatchSummary, with ``failed`` set when the call failed after retries
        """
        system_prompt = build_summary_prompt(
            strategy, self.config.language, len(batch), batch=batch_count > 1
        )
        try:
            summary = await self._complete(
                system_prompt,
                format_comments_for_ai(batch),
                f"Summary batch {batch_index}/{batch_count}",
            )
        except JobCancelledError:
            raise
        except Exception as e:
            logging.error(f"Summary batch {batch_index}/{batch_count} failed: {e}")
            return BatchSummary(
                batch_index=batch_index,
                comment_count=len(batch),
                summary=describe_error(e, f"Batch {batch_index} failed"),
                failed=True,
            )

        logging.info(f"Summarized batch {batch_index}/{batch_count} ({len(batch)} comments)")
        return BatchSummary(batch_index=batch_index, comment_count=len(batch), summary=summary)

    async def summarize_batches(self, batches: List[List[Comment]], strategy: SummaryStrategy) -> List[BatchSummary]:
        """Summarize every batch, returning results ordered by batch index."""
        batch_count = len(batches)

        # Sequential: one batch at a time with a pause in between
        if self.config.max_parallel <= 1:
            results = []
            for index, batch in enumerate(batches, start=1):
                results.append(await self.summarize_batch(batch, strategy, index, batch_count))
                if index < batch_count:
                    await self.token.sleep(self.config.batch_delay)
            return results

        # Bounded parallelism: completion order is not guaranteed
        semaphore = asyncio.Semaphore(self.config.max_parallel)

        async def run(index: int, batch: List[Comment]) -> BatchSummary:
            async with semaphore:
                return await self.summarize_batch(batch, strategy, index, batch_count)

        results = await asyncio.gather(*(run(i, b) for i, b in enumerate(batches, start=1)))
        return sorted(results, key=lambda result: result.batch_index)

    async def merge_batch_summaries(self, batch_summaries: List[BatchSummary], strategy: SummaryStrategy,
                                    total_comments: int) -> str:
        """
        Merge batch summaries into one report.

        Args:
            batch_summaries: Every batch result, failed ones included
            strategy: Selection strategy, mentioned in the merge prompt
            total_comments: Number of summarized comments

        Returns:
            The merged summary text

        Raises:
            AllBatchesFailedError: If no batch succeeded
        """
        successful = [b for b in batch_summaries if not b.failed]
        if not successful:
            raise AllBatchesFailedError([b.summary for b in batch_summaries])
        if len(successful) == 1:
            return successful[0].summary

        labeled = format_batch_summaries(successful)
        system_prompt = build_merge_prompt(strategy, self.config.language, total_comments, len(successful))
        try:
            return await self._complete(system_prompt, labeled, "Summary merge")
        except JobCancelledError:
            raise
        except Exception as e:
            logging.warning(f"Merging {len(successful)} batch summaries failed, concatenating them instead: {e}")
            return (
                "## Comment analysis summary\n\n"
                f"Total comments: {total_comments}\n"
                f"Batches: {len(successful)}\n\n"
                f"{labeled}"
            )

    async def summarize(self, comments: List[Comment], strategy: SummaryStrategy):
        """
        Summarize selected comments, batching above the threshold.

        Returns:
            Tuple of (raw summary text, batch results; empty for a single call)
        """
        # For smaller sets: one call over everything
        if len(comments) <= self.config.threshold:
            summary = await self._complete(
                build_summary_prompt(strategy, self.config.language, len(comments)),
                format_comments_for_ai(comments),
                "Summary request",
            )
            return summary, []

        # For larger sets: summarize batches, then merge
        batches = split_into_batches(comments, self.config.batch_size)
        logging.info(f"Summarizing {len(comments)} comments in {len(batches)} batches")
        batch_summaries = await self.summarize_batches(batches, strategy)
        summary = await self.merge_batch_summaries(batch_summaries, strategy, len(comments))
        return summary, batch_summaries

    async def create_summary(self, comments: List[Comment],
                             strategy: SummaryStrategy = SummaryStrategy.FULL) -> SummaryResult:
        """
        Create a full structured summary.

        Args:
            comments: Every available comment
            strategy: Selection strategy

        Returns:
            SummaryResult object

        Raises:
            NoCommentsSelectedError: If the strategy selects nothing
            AllBatchesFailedError: If every batch failed
        """
        self.token.raise_if_cancelled()
        selected = self.select_comments(comments, strategy)
        if not selected:
            raise NoCommentsSelectedError(f"No comments selected by the '{strategy.value}' strategy")

        logging.info(f"Summarizing {len(selected)}/{len(comments)} comments with the '{strategy.value}' strategy")
        raw_summary, batch_summaries = await self.summarize(selected, strategy)
        sections = parse_summary_sections(raw_summary)

        return SummaryResult(
            **sections.model_dump(),
            strategy=strategy,
            analyzed_comments=len(selected),
            total_comments=len(comments),
            raw_summary=raw_summary,
            batch_processed=bool(batch_summaries),
            batch_count=len(batch_summaries) or 1,
            failed_batches=[b.batch_index for b in batch_summaries if b.failed],
        )
