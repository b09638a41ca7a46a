"""
Main entry point for the YouTube Comment Analyzer application.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from comment_analyzer.config import config
from comment_analyzer.core.prompts import SECTION_TITLES
from comment_analyzer.core.service import CommentAnalysisService
from comment_analyzer.models.schemas import EventType, SummaryStrategy
from comment_analyzer.utils.helpers import resolve_video_id, save_json, truncate_text
from comment_analyzer.utils.logger import logging

SECTION_KEYS = ["userLikes", "userDislikes", "userExpectations", "improvements", "userProfile"]


def save_summary(result: Dict[str, Any], output_file: Optional[str] = None) -> Path:
    """Save the analysis result to a JSON file."""
    if output_file is None:
        output_dir = Path(config.SUMMARIES_DIR)
        output_dir.mkdir(parents=True, exist_ok=True)
        video_id = (result.get("videoInfo") or {}).get("videoId") or "unknown"
        output_file = output_dir / f"{video_id}_summary.json"
    else:
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

    save_json(result, str(output_file))

    logging.info(f"Summary saved to: {output_file}")
    return output_file


async def analyze_video(
    url: str,
    strategy: SummaryStrategy = SummaryStrategy.FULL,
    translate: bool = False,
    service: Optional[CommentAnalysisService] = None,
) -> Dict[str, Any]:
    """
    Collect, optionally translate, and summarize the comments of a video.

    Args:
        url: YouTube video URL or id
        strategy: Summary selection strategy
        translate: Whether to translate comments before summarizing
        service: Service to run the job with (a default one is built if None)

    Returns:
        The data of the final complete event

    Raises:
        ValueError: If the URL holds no video id
        RuntimeError: If the analysis ends with a fatal error
    """
    video_id = resolve_video_id(url)
    if not video_id:
        raise ValueError(f"Invalid YouTube URL: {url}")

    service = service or CommentAnalysisService()
    async for event in service.stream_analysis(video_id, strategy, translate):
        if event.type == EventType.PROGRESS:
            logging.info(f"[{event.data['percentage']:5.1f}%] {event.data['stage']}")
        elif event.type == EventType.VIDEO_INFO:
            logging.info(f"Video: {truncate_text(event.data['title'], 80)} ({event.data['channelTitle']})")
        elif event.type == EventType.ERROR:
            if event.data.get("fatal"):
                raise RuntimeError(event.data["message"])
            logging.warning(event.data["message"])
        elif event.type == EventType.COMPLETE:
            return event.data

    raise RuntimeError("Analysis ended without a result")


def print_summary(result: Dict[str, Any]) -> None:
    summary = result["summary"]
    title = (result.get("videoInfo") or {}).get("title", "")
    print("\n" + "=" * 80)
    print(f"Comment analysis of '{title}' ({summary['analyzedComments']}/{summary['totalComments']} comments, "
          f"strategy: {summary['strategy']})")
    print("=" * 80)
    for heading, key in zip(SECTION_TITLES, SECTION_KEYS):
        print(f"\n## {heading}\n{summary[key] or '-'}")
    print("=" * 80)


def main():
    """Main function to run the application from command line."""
    parser = argparse.ArgumentParser(description="YouTube Comment Analyzer")
    parser.add_argument("url", help="YouTube video URL or id")
    parser.add_argument("--strategy", default=SummaryStrategy.FULL.value,
                        choices=[s.value for s in SummaryStrategy],
                        help="Which comments feed the summary")
    parser.add_argument("--translate", action="store_true", help="Translate comments before summarizing")
    parser.add_argument("--output", help="Output file path for the summary")

    args = parser.parse_args()

    # Load environment variables
    load_dotenv()
    config.initialize()

    try:
        result = asyncio.run(analyze_video(args.url, SummaryStrategy(args.strategy), args.translate))
    except (ValueError, RuntimeError) as e:
        logging.error(f"Analysis failed: {e}")
        sys.exit(1)

    save_summary(result, args.output)
    print_summary(result)


if __name__ == "__main__":
    main()
