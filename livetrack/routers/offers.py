from fastapi import APIRouter

from livetrack.schemas import OffersResponse
from livetrack.services.offers import offers_for_status

router = APIRouter(prefix="/offers", tags=["Offers"])


@router.get("/{status_code}", response_model=OffersResponse)
async def get_offers(status_code: str):
    return OffersResponse(status_code=status_code.upper(), offers=offers_for_status(status_code))
