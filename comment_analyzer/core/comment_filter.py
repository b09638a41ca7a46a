"""
Comment filtering, de-duplication, ranking and keyword sentiment bucketing.
"""

import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from comment_analyzer.models.schemas import Comment
from comment_analyzer.utils.helpers import clean_text

MIN_TEXT_LENGTH = 5
MAX_TEXT_LENGTH = 1000

# Emoji blocks; zero-width joiner and variation selectors count as part of emoji runs
EMOJI_ONLY_PATTERN = re.compile(
    "^["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "\U0001F900-\U0001F9FF"
    "\U0001F018-\U0001F270"
    "\u238C"
    "\u200B-\u200D"
    "\uFE0E\uFE0F"
    "\U0001F3FB-\U0001F3FF"
    r"\s"
    "]*$"
)

POSITIVE_KEYWORDS = (
    "好", "棒", "喜欢", "爱", "赞", "优秀", "完美",
    "amazing", "great", "love", "awesome", "perfect", "excellent",
)
NEGATIVE_KEYWORDS = (
    "差", "烂", "讨厌", "不好", "糟糕", "垃圾",
    "bad", "hate", "terrible", "awful", "worst", "sucks",
)


def is_emoji_only(text: str) -> bool:
    return bool(EMOJI_ONLY_PATTERN.match(text))


def is_valid(comment: Optional[Comment]) -> bool:
    """Check length bounds and reject emoji-only comments."""
    if comment is None or not comment.text_display:
        return False
    text = clean_text(comment.text_display)
    if len(text) < MIN_TEXT_LENGTH or len(text) > MAX_TEXT_LENGTH:
        return False
    return not is_emoji_only(text)


def filter_comments(comments: Optional[Iterable[Comment]]) -> List[Comment]:
    """Keep valid comments, dropping case-insensitive duplicates after the first."""
    if not comments:
        return []

    seen = set()
    filtered = []
    for comment in comments:
        if not is_valid(comment):
            continue
        key = clean_text(comment.text_display).lower()
        if key in seen:
            continue
        seen.add(key)
        filtered.append(comment)
    return filtered


def drop_orphaned_replies(comments: Iterable[Comment]) -> List[Comment]:
    """Drop replies whose parent is not an earlier top-level comment in the same sequence."""
    kept_parents = set()
    result = []
    for comment in comments:
        if comment.level == 0:
            kept_parents.add(comment.id)
        elif comment.parent_id not in kept_parents:
            continue
        result.append(comment)
    return result


def rank_by_popularity(comments: Optional[Iterable[Comment]], limit: int = 50) -> List[Comment]:
    """Most-liked first, ties kept in input order."""
    if not comments:
        return []
    ranked = sorted(comments, key=lambda c: c.like_count or 0, reverse=True)
    return ranked[:max(0, limit)]


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def rank_by_recency(comments: Optional[Iterable[Comment]], limit: int = 100) -> List[Comment]:
    """
    Newest first; comments without a parseable ``published_at`` are dropped.

    Timestamps without an offset are read as UTC.
    """
    if not comments:
        return []
    dated = [(c, _parse_timestamp(c.published_at)) for c in comments]
    dated = [(c, ts) for c, ts in dated if ts is not None]
    dated.sort(key=lambda pair: pair[1], reverse=True)
    return [c for c, _ in dated[:max(0, limit)]]


def classify_sentiment(comments: Optional[Iterable[Comment]]) -> Dict[str, List[Comment]]:
    """
    Bucket comments by keyword: positive-only, negative-only, otherwise neutral.

    Comments containing keywords from both lists, or from neither, are neutral.
    """
    buckets: Dict[str, List[Comment]] = {"positive": [], "negative": [], "neutral": []}
    if not comments:
        return buckets

    for comment in comments:
        text = clean_text(comment.text_display).lower()
        has_positive = any(keyword in text for keyword in POSITIVE_KEYWORDS)
        has_negative = any(keyword in text for keyword in NEGATIVE_KEYWORDS)
        if has_positive and not has_negative:
            buckets["positive"].append(comment)
        elif has_negative and not has_positive:
            buckets["negative"].append(comment)
        else:
            buckets["neutral"].append(comment)
    return buckets


def comment_stats(comments: Optional[Iterable[Comment]]) -> Dict[str, int]:
    """Counts of main comments and replies, total likes and average cleaned length."""
    stats = {"total": 0, "mainComments": 0, "replies": 0, "totalLikes": 0, "avgLength": 0}
    if not comments:
        return stats

    total_length = 0
    for comment in comments:
        stats["total"] += 1
        if comment.level == 0:
            stats["mainComments"] += 1
        else:
            stats["replies"] += 1
        stats["totalLikes"] += comment.like_count or 0
        total_length += len(clean_text(comment.text_display))

    stats["avgLength"] = round(total_length / stats["total"])
    return stats
