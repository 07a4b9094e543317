"""Read-only visit endpoints.

GET /v1/counters    - scoreboard as JSON
GET /v1/coordinates - map points as JSON

Routers are thin: call services for the reads. These never record a visit.
"""

from fastapi import APIRouter, Depends, HTTPException

from country_counter.schemas import (
    CoordinateOut,
    CoordinatesResponse,
    CounterOut,
    CountersResponse,
    StoreErrorBody,
    StoreErrorEnvelope,
    StoreUnavailableResponse,
)
from country_counter.services.visits import ensure_schema, fetch_coordinates, fetch_counters
from country_counter.stores.database import Store, StoreError, get_store

router = APIRouter()


def _store_unavailable(e: StoreError) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail=StoreErrorEnvelope(error=StoreErrorBody(message=str(e))).model_dump(),
    )


@router.get(
    "/counters",
    response_model=CountersResponse,
    responses={503: {"model": StoreUnavailableResponse}},
)
async def get_counters(store: Store = Depends(get_store)) -> CountersResponse:
    """Get every counter row and the total number of visits.

    Raises:
        HTTPException 503: If the store cannot be read.
    """
    try:
        await ensure_schema(store)
        result = await fetch_counters(store)
    except StoreError as e:
        raise _store_unavailable(e) from e

    counters = [CounterOut(**row) for row in result.as_dicts()]
    return CountersResponse(counters=counters, total=sum(c.value for c in counters))


@router.get(
    "/coordinates",
    response_model=CoordinatesResponse,
    responses={503: {"model": StoreUnavailableResponse}},
)
async def get_coordinates(store: Store = Depends(get_store)) -> CoordinatesResponse:
    """Get every distinct map point.

    Raises:
        HTTPException 503: If the store cannot be read.
    """
    try:
        await ensure_schema(store)
        result = await fetch_coordinates(store)
    except StoreError as e:
        raise _store_unavailable(e) from e

    return CoordinatesResponse(
        coordinates=[CoordinateOut(**row) for row in result.as_dicts()],
    )
