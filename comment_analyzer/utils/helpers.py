"""
Helper utility functions for the YouTube comment analyzer.
"""

import json
import re
from typing import Dict, Any, List, Optional, Sequence
from urllib.parse import urlparse, parse_qs


VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# YouTube URL patterns
YOUTUBE_URL_PATTERNS = [
    r"(?:youtube\.com/watch\?v=)([A-Za-z0-9_-]{11})",
    r"(?:youtu\.be/)([A-Za-z0-9_-]{11})",
    r"(?:youtube\.com/embed/)([A-Za-z0-9_-]{11})",
    r"(?:youtube\.com/v/)([A-Za-z0-9_-]{11})",
    r"(?:youtube\.com/shorts/)([A-Za-z0-9_-]{11})",
]

YOUTUBE_HOSTS = ("youtube.com", "youtu.be")

THUMBNAIL_QUALITIES = {
    "default": "default",
    "medium": "mqdefault",
    "high": "hqdefault",
    "standard": "sddefault",
    "maxres": "maxresdefault",
}


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the 11-character video ID from a YouTube URL.

    Args:
        url: YouTube watch, short, embed, /v/ or shorts URL

    Returns:
        Video ID or None if the URL is not a YouTube video URL
    """
    if not url or not isinstance(url, str):
        return None

    url = url.strip()
    parsed = urlparse(url if "://" in url else f"https://{url}")
    if not is_youtube_host(parsed.hostname):
        return None

    for pattern in YOUTUBE_URL_PATTERNS:
        match = re.search(pattern, url)
        if match:
            return match.group(1)

    # Fallback: 'v' query parameter anywhere in a YouTube watch URL
    v = parse_qs(parsed.query).get("v", [None])[0]
    if v and VIDEO_ID_PATTERN.match(v):
        return v

    return None


def is_youtube_host(hostname: Optional[str]) -> bool:
    """True for youtube.com, youtu.be and their subdomains."""
    if not hostname:
        return False
    hostname = hostname.lower()
    return any(hostname == host or hostname.endswith(f".{host}") for host in YOUTUBE_HOSTS)


def resolve_video_id(value: Optional[str]) -> Optional[str]:
    """Accept either a bare video ID or a YouTube URL."""
    if not value:
        return None
    value = value.strip()
    if VIDEO_ID_PATTERN.match(value):
        return value
    return extract_video_id(value)


def is_valid_youtube_url(url: Optional[str]) -> bool:
    """Check whether a URL points at a YouTube video."""
    return extract_video_id(url) is not None


def format_youtube_url(video_id: str) -> str:
    """Build the canonical watch URL for a video ID."""
    return f"https://www.youtube.com/watch?v={video_id}"


def get_youtube_thumbnail(video_id: str, quality: str = "medium") -> str:
    """
    Build a thumbnail URL.

    Args:
        video_id: YouTube video ID
        quality: default, medium, high, standard or maxres

    Returns:
        Thumbnail image URL
    """
    quality_param = THUMBNAIL_QUALITIES.get(quality, THUMBNAIL_QUALITIES["medium"])
    return f"https://img.youtube.com/vi/{video_id}/{quality_param}.jpg"


def clean_text(text: Optional[str]) -> str:
    """Trim a text and collapse internal whitespace runs to single spaces."""
    if not text or not isinstance(text, str):
        return ""
    return re.sub(r"\s+", " ", text.strip())


def split_into_batches(items: Sequence, batch_size: int) -> List[list]:
    """Contiguous slices of ``batch_size``; the last one may be smaller."""
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


def save_json(data: Dict[str, Any], filepath: str, pretty: bool = True) -> None:
    """
    Save data to a JSON file.

    Args:
        data: Data to save
        filepath: Path to save the file
        pretty: Whether to format the JSON for readability
    """
    with open(filepath, 'w', encoding='utf-8') as f:
        if pretty:
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            json.dump(data, f, ensure_ascii=False)


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
