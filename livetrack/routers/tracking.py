import asyncio
import logging
import threading
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from livetrack.dependencies import get_pipeline
from livetrack.models import CarrierMatch, Rejection
from livetrack.schemas import ErrorResponse, TrackResponse
from livetrack.services.classifier import classify
from livetrack.services.pipeline import ResolutionPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tracking"])

DISCONNECT_POLL_SECONDS = 0.25

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def json_response(model, status_code: int = 200) -> JSONResponse:
    # Optional error fields are omitted; null record fields are kept.
    exclude_none = isinstance(model, ErrorResponse)
    return JSONResponse(
        content=model.model_dump(mode="json", by_alias=True, exclude_none=exclude_none),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def resolve_while_connected(request: Request, pipeline: ResolutionPipeline, match: CarrierMatch):
    """
    Runs the blocking resolution in the threadpool and watches the caller.

    When the client disconnects, or this coroutine is cancelled, the cancel
    event stops the pipeline before its next backend call.
    """
    cancel = threading.Event()
    lookup = asyncio.ensure_future(
        run_in_threadpool(pipeline.resolve, match.tracking_number, match=match, cancel=cancel)
    )
    try:
        while True:
            done, _ = await asyncio.wait({lookup}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return lookup.result()
            if not cancel.is_set() and await request.is_disconnected():
                logger.info(f"[TRACK] caller disconnected, cancelling lookup for {match.tracking_number}")
                cancel.set()
    finally:
        cancel.set()


@router.post("/track", response_model=TrackResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def track_package(request: Request, pipeline: ResolutionPipeline = Depends(get_pipeline)):
    try:
        body = await request.json()
        tracking_number = body.get("trackingNumber") if isinstance(body, dict) else None

        if not isinstance(tracking_number, str) or not tracking_number:
            return json_response(ErrorResponse(error="Tracking number required"), 400)

        result = classify(tracking_number)
        if isinstance(result, Rejection):
            logger.info(f"[TRACK] rejected {tracking_number!r}: {result.reason}")
            return json_response(
                ErrorResponse(
                    error="Invalid tracking number",
                    reason=result.reason,
                    hoax_detected=result.hoax_detected,
                ),
                400,
            )

        record = await resolve_while_connected(request, pipeline, result)
        return json_response(TrackResponse(data=record, timestamp=utc_timestamp()))

    except Exception:
        logger.exception("[TRACK] unexpected failure while tracking")
        return json_response(ErrorResponse(error="Failed to track package"), 500)


@router.options("/track", status_code=204)
async def track_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)
