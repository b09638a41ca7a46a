"""
Batch translator: translates comments in fixed-size chunks, one line per comment.
"""

from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from comment_analyzer.core.cancellation import CancellationToken
from comment_analyzer.core.llm import ChatCompletion, CompletionModel
from comment_analyzer.core.prompts import build_translation_prompt
from comment_analyzer.core.retry import execute_with_retry
from comment_analyzer.models.schemas import Comment, EventType, ProgressEvent, TranslationConfig
from comment_analyzer.utils.error_handling import JobCancelledError, describe_error
from comment_analyzer.utils.helpers import clean_text, split_into_batches
from comment_analyzer.utils.logger import logging


def align_translations(response: str, originals: Sequence[str]) -> List[str]:
    """
    Pair response lines with inputs by position.

    Missing or blank lines fall back to the original text unchanged.
    """
    lines = [line for line in (response or "").split("\n") if line.strip()]
    aligned = []
    for index, original in enumerate(originals):
        translated = clean_text(lines[index]) if index < len(lines) else ""
        aligned.append(translated or original)
    return aligned


class BatchTranslator:
    """
    Translate comments chunk by chunk.

    A chunk that still fails after retries keeps its original texts and is
    reported with a non-fatal ``error`` event; later chunks still run.
    """

    def __init__(self, translation_config: Optional[TranslationConfig] = None,
                 completion: Optional[CompletionModel] = None,
                 token: Optional[CancellationToken] = None,
                 progress_span: Tuple[float, float] = (0.0, 100.0)):
        self.config = translation_config or TranslationConfig()
        self.completion = completion or ChatCompletion(
            model=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        self.token = token or CancellationToken()
        self.progress_span = progress_span
        self.translations: Dict[str, str] = {}
        self.success_count = 0

    def _percentage(self, processed: int, total: int) -> float:
        start, end = self.progress_span
        ratio = processed / total if total else 1.0
        return start + (end - start) * ratio

    async def translate_texts(self, texts: List[str]) -> List[str]:
        """Translate one chunk with retries; raises once retries are exhausted."""
        system_prompt = build_translation_prompt(self.config.target_language)
        framed = "\n".join(clean_text(text) for text in texts)
        response = await execute_with_retry(
            lambda: self.token.guard(self.completion.complete(system_prompt, framed)),
            self.config.retry,
            timeout=self.config.request_timeout,
            sleep=self.token.sleep,
            description="Translation request",
        )
        return align_translations(response, texts)

    async def run(self, comments: List[Comment]) -> AsyncIterator[ProgressEvent]:
        """Stream ``translated`` batches, progress, and a final ``complete`` event."""
        total = len(comments)
        self.token.raise_if_cancelled()
        yield ProgressEvent.progress("Starting translation...", self._percentage(0, total), current=0, total=total)

        batches = split_into_batches(comments, self.config.batch_size)
        processed = 0
        for number, batch in enumerate(batches, start=1):
            yield ProgressEvent.progress(
                f"Translating batch {number}/{len(batches)}...",
                self._percentage(processed, total),
                current=processed,
                total=total,
            )

            originals = [comment.source_text for comment in batch]
            failure = None
            try:
                translated = await self.translate_texts(originals)
            except JobCancelledError:
                raise
            except Exception as e:
                logging.error(f"Translation batch {number} failed, keeping original texts: {e}")
                translated = originals
                failure = e

            items = []
            for comment, original, text in zip(batch, originals, translated):
                self.translations[comment.id] = text
                if failure is None and text != original:
                    self.success_count += 1
                items.append({"id": comment.id, "translatedText": text, "originalText": original})
            processed += len(batch)

            yield ProgressEvent(type=EventType.TRANSLATED, data=items)
            if failure is not None:
                yield ProgressEvent.error(
                    describe_error(failure, f"Translation batch {number} failed, original text kept"),
                    fatal=False,
                    batch=number,
                )
            yield ProgressEvent.progress(
                f"Translated {processed}/{total} comments",
                self._percentage(processed, total),
                current=processed,
                total=total,
            )

            if number < len(batches):
                await self.token.sleep(self.config.batch_delay)

        yield ProgressEvent(type=EventType.COMPLETE, data={
            "totalTranslated": processed,
            "successCount": self.success_count,
        })

    def apply(self, comments: List[Comment]) -> List[Comment]:
        """Copies of ``comments`` with ``translated_text`` set from this run."""
        return [
            comment.model_copy(update={"translated_text": self.translations[comment.id]})
            if comment.id in self.translations else comment
            for comment in comments
        ]
