"""
Async client for the YouTube Data API v3 (video metadata and comment threads).
"""

from typing import Any, Dict, Optional

import aiohttp

from comment_analyzer.config import config
from comment_analyzer.models.schemas import VideoInfo
from comment_analyzer.utils.error_handling import ConfigurationError, UpstreamHTTPError, VideoNotFoundError
from comment_analyzer.utils.helpers import format_youtube_url
from comment_analyzer.utils.logger import logging


class YouTubeDataClient:
    """
    Thin wrapper over the ``videos`` and ``commentThreads`` endpoints.

    Use as an async context manager so the HTTP session is closed:

        async with YouTubeDataClient() as client:
            info = await client.fetch_video_info(video_id)
    """

    def __init__(self, api_key: Optional[str] = None, base_url: str = config.YOUTUBE_API_BASE_URL,
                 timeout: float = config.REQUEST_TIMEOUT, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the client with API key.

        Args:
            api_key: YouTube Data API key (if None, will try to get from config)
            base_url: API root
            timeout: Total timeout per HTTP request in seconds
            session: Optional externally managed session
        """
        self.api_key = api_key or config.YOUTUBE_API_KEY
        if not self.api_key:
            raise ConfigurationError("YouTube API key is required. Set YOUTUBE_API_KEY in the .env file.")
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "YouTubeDataClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError("YouTubeDataClient must be used inside 'async with'")

        query = {**params, "key": self.api_key}
        async with self._session.get(f"{self.base_url}/{endpoint}", params=query) as response:
            logging.debug(f"YouTube {endpoint} responded with status {response.status}")
            if response.status >= 400:
                try:
                    payload = await response.json(content_type=None)
                    message = (payload.get("error") or {}).get("message") or "Unknown error"
                except (aiohttp.ContentTypeError, ValueError, AttributeError):
                    message = "Unknown error"
                raise UpstreamHTTPError(response.status, message, service="YouTube")
            return await response.json(content_type=None)

    async def fetch_video_info(self, video_id: str) -> VideoInfo:
        """
        Fetch title and statistics of a video.

        Raises:
            VideoNotFoundError: If the API returns no item for the id
        """
        data = await self._get("videos", {"part": "snippet,statistics", "id": video_id})
        items = data.get("items") or []
        if not items:
            raise VideoNotFoundError(video_id)

        snippet = items[0].get("snippet", {})
        statistics = items[0].get("statistics", {})
        logging.info(f"Fetched video info for {video_id}: {snippet.get('title', '')}")
        return VideoInfo(
            video_id=video_id,
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            channel_title=snippet.get("channelTitle", ""),
            published_at=snippet.get("publishedAt", ""),
            view_count=statistics.get("viewCount"),
            like_count=statistics.get("likeCount"),
            comment_count=statistics.get("commentCount"),
            video_url=format_youtube_url(video_id),
        )

    async def fetch_comment_threads(self, video_id: str, page_token: str = "",
                                    max_results: int = config.PAGE_SIZE) -> Dict[str, Any]:
        """
        Fetch one page of comment threads, newest first.

        Returns:
            Raw API response with ``items`` and an optional ``nextPageToken``
        """
        params = {
            "part": "snippet,replies",
            "videoId": video_id,
            "maxResults": str(max_results),
            "order": "time",
        }
        if page_token:
            params["pageToken"] = page_token
        return await self._get("commentThreads", params)
