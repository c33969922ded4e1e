import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from livetrack.config import get_settings
from livetrack.routers.assistant import router as assistant_router
from livetrack.routers.offers import router as offers_router
from livetrack.routers.tracking import router as tracking_router

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers successful preflights with 204 No Content."""

    def preflight_response(self, request_headers):
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


app = FastAPI(title="LiveTrack Tracking Engine")

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tracking_router)
app.include_router(assistant_router)
app.include_router(offers_router)


@app.get("/")
async def root():
    return {"status": "ONLINE", "engine": "LiveTrack V1"}
