"""
Local stand-in for the rental search API.

Serves ``/api/rent/find`` in the same shape as the real endpoint. Every
request lists one more property at the top, so a bot pointed at it with
``FEED_URL=http://localhost:8000/api/rent/find`` sees a new listing each
poll.
"""

import argparse
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Query

app = FastAPI(title="Mock rental search API", version="1.0")

FIRST_LISTING_ID = 140_000_000
SEED_COUNT = 5

MOCK_LISTINGS: List[Dict[str, Any]] = [
    {
        "identifier": FIRST_LISTING_ID + n,
        "bedrooms": 2,
        "price": 1250 + 25 * n,
        "address": f"{10 + n} Mock Street, Bristol",
        "propertyType": "Flat",
    }
    for n in range(SEED_COUNT)
]

_STATE: Dict[str, int] = {"next_id": FIRST_LISTING_ID + len(MOCK_LISTINGS)}


def _new_listing() -> Dict[str, Any]:
    listing_id = _STATE["next_id"]
    _STATE["next_id"] += 1
    return {
        "identifier": listing_id,
        "bedrooms": 2,
        "price": 1400,
        "address": f"Flat {listing_id % 100}, New Build, Bristol",
        "propertyType": "Flat",
        "firstListedDate": datetime.now(timezone.utc).isoformat(),
    }


def reset() -> None:
    """Drop listings added by previous requests."""
    del MOCK_LISTINGS[SEED_COUNT:]
    _STATE["next_id"] = FIRST_LISTING_ID + len(MOCK_LISTINGS)


@app.get("/api/rent/find")
async def mock_find(
    locationIdentifier: str = Query("REGION^219"),
    minBedrooms: Optional[int] = Query(None),
    maxBedrooms: Optional[int] = Query(None),
    maxPrice: Optional[int] = Query(None),
    numberOfPropertiesRequested: int = Query(50, ge=1),
    sortType: int = Query(6),
) -> Dict[str, Any]:
    """
    Return the mock listings, newest first, after adding a fresh one.
    Bedroom and price filters are applied; the other parameters are accepted
    and ignored.
    """
    MOCK_LISTINGS.insert(0, _new_listing())

    result = [
        p
        for p in MOCK_LISTINGS
        if (minBedrooms is None or p["bedrooms"] >= minBedrooms)
        and (maxBedrooms is None or p["bedrooms"] <= maxBedrooms)
        and (maxPrice is None or p["price"] <= maxPrice)
    ]
    return {
        "totalAvailableResults": len(result),
        "locationIdentifier": locationIdentifier,
        "properties": result[:numberOfPropertiesRequested],
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Mock rental search API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
