import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool

from livetrack.dependencies import get_assistant
from livetrack.errors import BackendError
from livetrack.routers.tracking import CORS_HEADERS, json_response, utc_timestamp
from livetrack.schemas import AssistantResponse, ErrorResponse
from livetrack.services.assistant import TrackingAssistant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assistant"])


@router.post("/ai-response", response_model=AssistantResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def ai_response(request: Request, assistant: TrackingAssistant = Depends(get_assistant)):
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        message = body.get("message")
        tracking_data = body.get("trackingData")

        if not isinstance(message, str) or not message.strip():
            return json_response(ErrorResponse(error="Message is required"), 400)
        if not isinstance(tracking_data, dict):
            tracking_data = None

        answer = await run_in_threadpool(assistant.answer, message.strip(), tracking_data)
        return json_response(AssistantResponse(response=answer, timestamp=utc_timestamp()))

    except BackendError as e:
        logger.warning(f"[ASSISTANT] no answer: {e}")
        return json_response(ErrorResponse(error="Failed to generate AI response"), 500)
    except Exception:
        logger.exception("[ASSISTANT] unexpected failure")
        return json_response(ErrorResponse(error="Failed to generate AI response"), 500)


@router.options("/ai-response", status_code=204)
async def ai_response_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)
