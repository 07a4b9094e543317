"""Schemas for the read-only visit endpoints (/v1/counters, /v1/coordinates) and their errors."""

from pydantic import BaseModel, Field


class CounterOut(BaseModel):
    """Visit count for one location."""

    country: str
    city: str
    value: int = Field(ge=0)


class CountersResponse(BaseModel):
    """Scoreboard: every counter row plus the total number of visits."""

    counters: list[CounterOut]
    total: int = Field(ge=0)


class CoordinateOut(BaseModel):
    """A plotted map point."""

    lat: float
    long: float
    label: str


class CoordinatesResponse(BaseModel):
    """Every distinct point ever visited."""

    coordinates: list[CoordinateOut]


class StoreErrorBody(BaseModel):
    """What went wrong talking to the store."""

    code: str = "STORE_UNAVAILABLE"
    message: str
    detail: None = None


class StoreErrorEnvelope(BaseModel):
    error: StoreErrorBody


class StoreUnavailableResponse(BaseModel):
    """503 body of the read endpoints.

    Raised through HTTPException, so FastAPI nests it under "detail":
    { "detail": { "error": { "code": "STORE_UNAVAILABLE", "message": str, "detail": null } } }
    """

    detail: StoreErrorEnvelope
