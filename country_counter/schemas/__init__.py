"""Pydantic schemas for API request/response validation."""

from country_counter.schemas.visits import (
    CoordinateOut,
    CoordinatesResponse,
    CounterOut,
    CountersResponse,
    StoreErrorBody,
    StoreErrorEnvelope,
    StoreUnavailableResponse,
)

__all__ = [
    "CoordinateOut",
    "CoordinatesResponse",
    "CounterOut",
    "CountersResponse",
    "StoreErrorBody",
    "StoreErrorEnvelope",
    "StoreUnavailableResponse",
]
