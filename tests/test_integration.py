"""
Integration tests for the YouTube Comment Analyzer.
"""

import asyncio
import json
import sys
import pytest
from unittest.mock import patch, MagicMock

from comment_analyzer import main as cli
from comment_analyzer.client.api_client import ApiClient, ServerBusyError
from comment_analyzer.core.concurrency import ConcurrencyGate
from comment_analyzer.core.service import CommentAnalysisService
from comment_analyzer.models.schemas import SummaryStrategy

from conftest import FakeCommentSource, FakeCompletion, make_thread

VIDEO_ID = "dQw4w9WgXcQ"
SECTIONED = "1. likes\n2. dislikes\n3. expectations\n4. improvements\n5. profile"


@pytest.fixture
def service(collector_config, translation_config, summary_config):
    source = FakeCommentSource([
        {"items": [make_thread("t1", "loved the ending", replies=[{"id": "r1", "text": "same here!"}])]},
    ])
    return CommentAnalysisService(
        gate=ConcurrencyGate(),
        source_factory=lambda: source,
        translation_completion=FakeCompletion(),
        summary_completion=FakeCompletion(lambda system_prompt, text: SECTIONED),
        collector_config=collector_config,
        translation_config=translation_config,
        summary_config=summary_config,
    )


def test_analyze_video(service):
    result = asyncio.run(cli.analyze_video(f"https://youtu.be/{VIDEO_ID}", SummaryStrategy.FULL, service=service))

    assert result["totalComments"] == 2
    assert result["summary"]["improvements"] == "improvements"
    assert result["commentStats"]["replies"] == 1
    assert result["translation"] is None


def test_analyze_video_invalid_url(service):
    with pytest.raises(ValueError):
        asyncio.run(cli.analyze_video("https://vimeo.com/1", service=service))


def test_analyze_video_fatal_error(service, collector_config):
    failing = CommentAnalysisService(
        source_factory=lambda: FakeCommentSource([], info_error=RuntimeError("video unavailable")),
        collector_config=collector_config,
    )

    with pytest.raises(RuntimeError, match="video unavailable"):
        asyncio.run(cli.analyze_video(VIDEO_ID, service=failing))


def test_save_summary(tmp_path):
    output = tmp_path / "nested" / "result.json"
    result = {"videoInfo": {"videoId": VIDEO_ID}, "summary": {"userLikes": "评论"}}

    path = cli.save_summary(result, str(output))

    assert path == output
    assert json.loads(output.read_text(encoding="utf-8")) == result


def test_cli_main(tmp_path, service, capsys):
    output = tmp_path / "summary.json"
    argv = ["comment-analyzer", VIDEO_ID, "--strategy", "popular", "--output", str(output)]

    with patch.object(sys, "argv", argv), patch.object(cli, "CommentAnalysisService", return_value=service):
        cli.main()

    saved = json.loads(output.read_text(encoding="utf-8"))
    assert saved["summary"]["strategy"] == "popular"
    assert "Audience likes" in capsys.readouterr().out


def test_cli_main_exits_on_invalid_url():
    with patch.object(sys, "argv", ["comment-analyzer", "https://vimeo.com/1"]):
        with pytest.raises(SystemExit) as exc_info:
            cli.main()

    assert exc_info.value.code == 1


def _streaming_response(lines, status_code=200, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.iter_lines.return_value = iter(lines)
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


def test_api_client_collects_comments():
    lines = [
        json.dumps({"type": "progress", "data": {"stage": "x", "percentage": 0}}),
        "",
        json.dumps({"type": "comments", "data": [{"id": "a"}, {"id": "b"}]}),
        json.dumps({"type": "complete", "data": {"totalComments": 2}}),
    ]
    with patch("comment_analyzer.client.api_client.requests.post", return_value=_streaming_response(lines)) as post:
        comments = ApiClient("http://testserver", user_id="alice").collect_comments(VIDEO_ID)

    assert [c["id"] for c in comments] == ["a", "b"]
    args, kwargs = post.call_args
    assert args[0] == "http://testserver/api/v1/comments/stream"
    assert kwargs["json"] == {"videoId": VIDEO_ID}
    assert kwargs["headers"] == {"X-User-Id": "alice"}
    assert kwargs["stream"] is True


def test_api_client_raises_on_fatal_error():
    lines = [json.dumps({"type": "error", "data": {"message": "video missing", "fatal": True}})]
    with patch("comment_analyzer.client.api_client.requests.post", return_value=_streaming_response(lines)):
        with pytest.raises(RuntimeError, match="video missing"):
            ApiClient("http://testserver").collect_comments(VIDEO_ID)


def test_api_client_busy_server():
    response = _streaming_response([], status_code=429, headers={"Retry-After": "12"})
    response.json.return_value = {"details": "1 job(s) currently running"}
    with patch("comment_analyzer.client.api_client.requests.post", return_value=response):
        with pytest.raises(ServerBusyError) as exc_info:
            list(ApiClient("http://testserver").stream_analysis(VIDEO_ID))

    assert exc_info.value.retry_after == 12


def test_api_client_summarize_passes_timeout():
    response = MagicMock()
    response.json.return_value = {"userLikes": "likes"}
    with patch("comment_analyzer.client.api_client.requests.post", return_value=response) as post:
        result = ApiClient("http://testserver", timeout=7).summarize([{"id": "a"}], "popular")

    assert result == {"userLikes": "likes"}
    args, kwargs = post.call_args
    assert args[0] == "http://testserver/api/v1/summarize"
    assert kwargs["json"] == {"comments": [{"id": "a"}], "strategy": "popular"}
    assert kwargs["timeout"] == 7


def test_api_client_extract_video_id():
    assert ApiClient("http://testserver").extract_video_id(f"https://youtu.be/{VIDEO_ID}") == VIDEO_ID
