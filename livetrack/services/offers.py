from typing import List

from livetrack.schemas import Offer, StatusCode

OFFER_CATALOGUE = {
    "yendo": Offer(
        offer_id="yendo",
        title="Yendo Credit Card",
        description="2% cash back on all purchases. Build credit while you shop.",
        url="https://bit.ly/yend",
        cta="Apply Now",
    ),
    "sweepstake": Offer(
        offer_id="sweepstake",
        title="Exclusive Sweepstake",
        description="Enter to win $10,000! Free entry for all users.",
        url="https://smrturl.co/f4074be",
        cta="Enter Now",
    ),
}

DEFAULT_OFFERS = ["yendo", "sweepstake"]

STATUS_OFFERS = {
    StatusCode.IN_TRANSIT: DEFAULT_OFFERS,
    StatusCode.OUT_FOR_DELIVERY: DEFAULT_OFFERS,
    StatusCode.PROCESSING: DEFAULT_OFFERS,
    StatusCode.DELIVERED: ["sweepstake", "yendo"],
    StatusCode.EXCEPTION: ["yendo"],
    StatusCode.NOT_FOUND: [],
}


def offers_for_status(status_code: str) -> List[Offer]:
    """Offers for a status code; unknown codes get the default set."""
    try:
        code = StatusCode((status_code or "").strip().upper())
    except ValueError:
        offer_ids = DEFAULT_OFFERS
    else:
        offer_ids = STATUS_OFFERS[code]
    return [OFFER_CATALOGUE[offer_id] for offer_id in offer_ids]
