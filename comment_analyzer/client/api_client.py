"""
API client for communicating with the YouTube Comment Analyzer backend.
"""

import json
import requests
from typing import Dict, Iterator, List, Any, Optional
from urllib.parse import urljoin

from comment_analyzer.config import config
from comment_analyzer.utils.helpers import extract_video_id


class ServerBusyError(Exception):
    """The server rejected a job because its capacity is in use."""

    def __init__(self, payload: Dict[str, Any], retry_after: int):
        self.payload = payload
        self.retry_after = retry_after
        super().__init__(payload.get("details") or "System busy")


class ApiClient:
    """Client for interacting with the YouTube Comment Analyzer API."""

    def __init__(self, base_url: str = config.PUBLIC_URL, user_id: Optional[str] = None,
                 timeout: float = config.REQUEST_TIMEOUT):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the API
            user_id: Identity sent as X-User-Id
            timeout: Connect/read timeout for each request
        """
        self.base_url = base_url
        self.api_base = urljoin(base_url, "/api/v1/")
        self.timeout = timeout
        self.headers = {"X-User-Id": user_id} if user_id else {}

    def _url(self, endpoint: str) -> str:
        """Get the full URL for an endpoint."""
        return urljoin(self.api_base, endpoint)

    def _stream(self, endpoint: str, payload: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """POST a job and yield its NDJSON events as dictionaries."""
        with requests.post(self._url(endpoint), json=payload, headers=self.headers,
                           stream=True, timeout=self.timeout) as response:
            if response.status_code == 429:
                retry_after = int(response.headers.get("Retry-After", config.RETRY_AFTER_SECONDS))
                raise ServerBusyError(response.json(), retry_after)
            response.raise_for_status()

            for line in response.iter_lines(decode_unicode=True):
                if line:
                    yield json.loads(line)

    def stream_comments(self, video: str) -> Iterator[Dict[str, Any]]:
        """
        Stream comment collection events.

        Args:
            video: Video id or YouTube URL

        Returns:
            Iterator of {type, data} events
        """
        return self._stream("comments/stream", {"videoId": video})

    def stream_translation(self, comments: List[Dict[str, Any]],
                           target_language: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Stream translation events for already collected comments."""
        payload: Dict[str, Any] = {"comments": comments}
        if target_language:
            payload["targetLanguage"] = target_language
        return self._stream("translate/stream", payload)

    def stream_analysis(self, video: str, strategy: str = "full", translate: bool = False) -> Iterator[Dict[str, Any]]:
        """Stream a full analysis; the final complete event carries the summary."""
        return self._stream("analyze/stream", {"videoId": video, "strategy": strategy, "translate": translate})

    def collect_comments(self, video: str) -> List[Dict[str, Any]]:
        """
        Collect every comment of a video.

        Raises:
            RuntimeError: If the stream ends with a fatal error
        """
        comments = []
        for event in self.stream_comments(video):
            if event["type"] == "comments":
                comments.extend(event["data"])
            elif event["type"] == "error" and event["data"].get("fatal"):
                raise RuntimeError(event["data"]["message"])
        return comments

    def summarize(self, comments: List[Dict[str, Any]], strategy: str = "full") -> Dict[str, Any]:
        """
        Request a structured summary.

        Args:
            comments: Comments as returned by the comments stream
            strategy: Selection strategy

        Returns:
            Dictionary with the five sections and summary metadata
        """
        response = requests.post(
            self._url("summarize"),
            json={
                "comments": comments,
                "strategy": strategy
            },
            headers=self.headers,
            timeout=self.timeout,
        )

        response.raise_for_status()
        return response.json()

    def get_status(self) -> Dict[str, Any]:
        """Get the server's concurrency status."""
        response = requests.get(self._url("status"), headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def extract_video_id(self, url: str) -> Optional[str]:
        """
        Extract YouTube video ID from a URL.

        Args:
            url: YouTube URL

        Returns:
            Video ID or None if extraction fails
        """
        return extract_video_id(url)
