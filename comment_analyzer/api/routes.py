"""
API routes for the YouTube Comment Analyzer application.
"""

from typing import AsyncIterator, Callable, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from comment_analyzer.api.schemas import (
    AnalyzeRequest,
    CommentsRequest,
    RejectionResponse,
    StatusResponse,
    SummarizeRequest,
    TranslateRequest,
)
from comment_analyzer.core.cancellation import CancellationToken
from comment_analyzer.core.concurrency import ConcurrencyGate, generate_job_id
from comment_analyzer.core.service import CommentAnalysisService, get_service
from comment_analyzer.models.schemas import ProgressEvent
from comment_analyzer.utils.error_handling import (
    AllBatchesFailedError,
    ConfigurationError,
    JobCancelledError,
    NoCommentsSelectedError,
    describe_error,
)
from comment_analyzer.utils.helpers import resolve_video_id
from comment_analyzer.utils.logger import logging

NDJSON_MEDIA_TYPE = "application/x-ndjson"

router = APIRouter(prefix="/api/v1", tags=["comments"])


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity used in job ids; anonymous when the header is absent."""
    return x_user_id or "anonymous"


def _require_video_id(value: str) -> str:
    video_id = resolve_video_id(value)
    if not video_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL or video id")
    return video_id


def _rejection_response(gate: ConcurrencyGate) -> JSONResponse:
    error = gate.rejection()
    return JSONResponse(
        status_code=429,
        content=RejectionResponse.from_error(error).model_dump(),
        headers={"Retry-After": str(error.retry_after)},
    )


async def _ndjson(events: AsyncIterator[ProgressEvent], token: CancellationToken, description: str,
                  release: Optional[Callable[[], None]] = None) -> AsyncIterator[str]:
    """
    Serialize events as NDJSON lines.

    Unexpected failures become one fatal ``error`` line; when the consumer
    goes away the job's token is cancelled and its slot released.
    """
    try:
        async for event in events:
            yield event.to_ndjson()
    except JobCancelledError:
        logging.info(f"{description} cancelled")
    except Exception as e:
        logging.error(f"{description} failed: {e}")
        yield ProgressEvent.error(describe_error(e), fatal=True).to_ndjson()
    finally:
        token.cancel()
        if release is not None:
            release()


def _gated_stream(service: CommentAnalysisService, job_id: str, token: CancellationToken,
                  events: AsyncIterator[ProgressEvent], description: str) -> StreamingResponse:
    def release() -> None:
        service.gate.finish(job_id)

    return StreamingResponse(
        _ndjson(events, token, description, release),
        media_type=NDJSON_MEDIA_TYPE,
        background=BackgroundTask(release),
    )


@router.post("/comments/stream")
async def stream_comments(
    request: CommentsRequest,
    user_id: str = Depends(get_user_id),
    service: CommentAnalysisService = Depends(get_service),
):
    """
    Stream every comment of a video as NDJSON events.

    - Rejected with 429 while another job is running
    - Events: progress, videoInfo, comments, error, complete
    """
    video_id = _require_video_id(request.video_id)
    job_id = generate_job_id(video_id, user_id)
    if not service.gate.try_start(job_id):
        return _rejection_response(service.gate)

    token = CancellationToken()
    return _gated_stream(
        service, job_id, token, service.stream_comments(video_id, token), f"Comment collection {job_id}"
    )


@router.post("/translate/stream")
async def stream_translation(
    request: TranslateRequest,
    service: CommentAnalysisService = Depends(get_service),
):
    """Stream translations of the given comments as NDJSON events."""
    if not request.comments:
        raise HTTPException(status_code=400, detail="Comments must be a non-empty list")

    token = CancellationToken()
    try:
        events = service.stream_translation(request.comments, token, request.target_language)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        _ndjson(events, token, f"Translation of {len(request.comments)} comments"),
        media_type=NDJSON_MEDIA_TYPE,
    )


@router.post("/summarize")
async def summarize_comments(
    request: SummarizeRequest,
    service: CommentAnalysisService = Depends(get_service),
):
    """Summarize comments with the chosen strategy."""
    if not request.comments:
        raise HTTPException(status_code=400, detail="Comments must be a non-empty list")

    try:
        summary = await service.summarize(request.comments, request.strategy)
    except NoCommentsSelectedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (AllBatchesFailedError, ConfigurationError) as e:
        logging.error(f"Summary failed: {e}")
        raise HTTPException(status_code=500, detail=f"Summary failed: {e}")

    return summary.to_wire()


@router.post("/analyze/stream")
async def stream_analysis(
    request: AnalyzeRequest,
    user_id: str = Depends(get_user_id),
    service: CommentAnalysisService = Depends(get_service),
):
    """
    Collect, optionally translate, and summarize a video as NDJSON events.

    The final complete event carries the summary record.
    """
    video_id = _require_video_id(request.video_id)
    job_id = generate_job_id(video_id, user_id)
    if not service.gate.try_start(job_id):
        return _rejection_response(service.gate)

    token = CancellationToken()
    events = service.stream_analysis(video_id, request.strategy, request.translate, token)
    return _gated_stream(service, job_id, token, events, f"Analysis {job_id}")


@router.get("/status", response_model=StatusResponse)
async def get_status(service: CommentAnalysisService = Depends(get_service)):
    """Current concurrency status."""
    return service.gate.status()
