"""
Lenient parser splitting free-text summaries into the five analytical sections.

The output of a language model is not a grammar, so parsing is a fallback chain:

    1. numbered markers "1." .. "5." (heading-styled markers win when present)
    2. keyword headings, grouping lines under the last recognized heading
    3. the whole text as the first section

Parsing is deterministic and never raises; absent sections stay empty.
"""

import re
from typing import Dict, List, Optional, Tuple

from comment_analyzer.models.schemas import SummarySections

SECTION_FIELDS = ["user_likes", "user_dislikes", "user_expectations", "improvements", "user_profile"]

# Optional markdown heading/bold prefix, a digit 1-5 and a delimiter
MARKER_PATTERN = re.compile(r"^(?P<hashes>#+)?\s*(?P<bold>\*\*)?\s*(?P<number>[1-5])\s*[.)、:：]\s*(?P<rest>.*)$")

# Checked in this order; dislikes come before likes so that "dislike" never reads as "like"
HEADING_KEYWORDS: List[Tuple[str, re.Pattern]] = [
    ("user_dislikes", re.compile(r"不喜欢|不满|吐槽|批评|缺点|\bdislike\w*|\bcomplain\w*|\bcriticism\b", re.I)),
    ("user_likes", re.compile(r"喜欢|喜爱|好评|优点|\blikes?\b|\bappreciat\w*|\benjoy\w*|\bpraise\w*", re.I)),
    ("user_expectations", re.compile(r"期待|期望|希望|\bexpectation\w*|\bexpect\w*|\bwish\w*", re.I)),
    ("improvements", re.compile(r"改进|改善|建议|\bimprov\w*|\bsuggestion\w*", re.I)),
    ("user_profile", re.compile(r"画像|用户群|受众|观众群体|\bprofile\w*|\bdemographic\w*", re.I)),
]

MAX_PLAIN_HEADING_LENGTH = 12


def _strip_decoration(text: str) -> str:
    return text.strip().strip("*#").strip()


def _join_lines(lines: List[str]) -> str:
    return " ".join(cleaned for cleaned in (_strip_decoration(raw) for raw in lines) if cleaned)


def _parse_numbered(lines: List[str]) -> Dict[str, str]:
    markers = []
    for index, line in enumerate(lines):
        match = MARKER_PATTERN.match(line.strip())
        if match:
            styled = bool(match.group("hashes") or match.group("bold"))
            markers.append((index, int(match.group("number")), styled, match.group("rest")))

    if any(styled for _, _, styled, _ in markers):
        markers = [marker for marker in markers if marker[2]]

    accepted = []
    last_number = 0
    for marker in markers:
        if marker[1] > last_number:
            accepted.append(marker)
            last_number = marker[1]

    sections: Dict[str, str] = {}
    for position, (index, number, _, rest) in enumerate(accepted):
        end = accepted[position + 1][0] if position + 1 < len(accepted) else len(lines)
        sections[SECTION_FIELDS[number - 1]] = _join_lines([rest] + lines[index + 1:end])
    return sections


def _heading_section(line: str) -> Optional[str]:
    stripped = line.strip()
    if not stripped:
        return None
    styled = stripped.startswith("#") or stripped.startswith("**") or stripped.endswith((":", "："))
    if not styled and len(stripped) > MAX_PLAIN_HEADING_LENGTH:
        return None
    for field, pattern in HEADING_KEYWORDS:
        if pattern.search(stripped):
            return field
    return None


def _parse_keyword_headings(lines: List[str]) -> Dict[str, str]:
    grouped: Dict[str, List[str]] = {}
    current = None
    for line in lines:
        field = _heading_section(line)
        if field is not None:
            current = field
            grouped.setdefault(current, [])
            continue
        if current is not None:
            grouped[current].append(line)
    return {field: _join_lines(body) for field, body in grouped.items()}


def parse_summary_sections(text: Optional[str]) -> SummarySections:
    """
    Split a raw summary into ``SummarySections``.

    Args:
        text: Raw model output

    Returns:
        The five sections; missing ones are empty strings
    """
    if not text or not text.strip():
        return SummarySections()

    lines = text.replace("\r\n", "\n").split("\n")
    numbered = _parse_numbered(lines)
    if len(numbered) == len(SECTION_FIELDS):
        return SummarySections(**numbered)

    by_keyword = _parse_keyword_headings(lines)
    best = by_keyword if len(by_keyword) > len(numbered) else numbered
    if best:
        return SummarySections(**best)

    return SummarySections(user_likes=text.strip())
