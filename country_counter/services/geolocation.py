"""IP geolocation client backed by an external HTTP lookup + optional Redis cache.

The lookup is best-effort: callers treat GeolocationError / FormatError as
"location unknown" and carry on with sentinel values.

Default endpoint is ip-api.com, whose JSON shape is:
    {"status": "success", "country": "Poland", "city": "Warsaw", "lat": 52.2, "lon": 21.0}

If Redis is unavailable the client still works but skips caching.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
import math
from typing import Any

import httpx
from redis.exceptions import RedisError

from country_counter.settings import get_settings
from country_counter.stores.redis import get_geolocation_cache, set_geolocation_cache

logger = logging.getLogger("uvicorn.error")


class GeolocationError(RuntimeError):
    """Network failure or error status from the lookup service."""


class FormatError(ValueError):
    """Lookup response body is not a JSON object."""


@dataclass(frozen=True)
class GeoLocation:
    """Parsed lookup result. Fields are None when the service did not provide them."""

    country: str | None = None
    city: str | None = None
    lat: float | None = None
    lon: float | None = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.country, self.city, self.lat, self.lon)


def _norm(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


def _as_float(v: Any) -> float | None:
    # bool is an int subclass; a JSON true is not a coordinate.
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def parse_geolocation(data: Any) -> GeoLocation:
    """Parse a lookup response body.

    Missing or malformed fields become None; only a non-object body is an error.

    Raises:
        FormatError: If `data` is not a JSON object.
    """
    if not isinstance(data, dict):
        raise FormatError(f"Expected JSON object from geolocation service, got {type(data).__name__}")

    return GeoLocation(
        country=_norm(data.get("country")),
        city=_norm(data.get("city")),
        lat=_as_float(data.get("lat")),
        lon=_as_float(data.get("lon")),
    )


class GeolocationClient:
    """Client for the configured IP geolocation endpoint."""

    def __init__(
        self,
        url_template: str | None = None,
        timeout: float | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        use_cache: bool | None = None,
    ):
        """Initialize client.

        Args:
            url_template: Endpoint URL with an `{ip}` placeholder.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
            use_cache: Whether to consult Redis; defaults to settings.
        """
        settings = get_settings()
        self.url_template = url_template or settings.geolocation_url
        self.timeout = timeout if timeout is not None else settings.geolocation_timeout_seconds
        self.use_cache = settings.geolocation_cache_enabled if use_cache is None else use_cache
        self._transport = transport

    async def lookup(self, ip: str) -> GeoLocation:
        """Look up an IP address.

        Raises:
            GeolocationError: On network failure or non-2xx status.
            FormatError: On a body that is not a JSON object.
        """
        if self.use_cache:
            cached = await _try_get_cached(ip)
            if cached is not None:
                logger.debug("Geolocation cache hit for %s", ip)
                return cached

        data = await self._fetch(ip)
        location = parse_geolocation(data)

        if self.use_cache:
            await _try_set_cached(ip, location)
        return location

    async def _fetch(self, ip: str) -> Any:
        url = self.url_template.replace("{ip}", ip)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            raise GeolocationError(f"Geolocation request failed for {ip}: {e!r}") from e

        if resp.status_code != 200:
            raise GeolocationError(
                f"Geolocation service returned {resp.status_code} for {ip}: {resp.text[:200]}"
            )
        try:
            return resp.json()
        except ValueError as e:
            raise FormatError(f"Geolocation response for {ip} is not JSON") from e


async def _try_get_cached(ip: str) -> GeoLocation | None:
    try:
        payload = await get_geolocation_cache(ip)
    except (RuntimeError, RedisError, ValueError):
        return None
    if not payload:
        return None
    try:
        return parse_geolocation(payload)
    except FormatError:
        return None


async def _try_set_cached(ip: str, location: GeoLocation) -> None:
    # A lookup with any gap would be served back as sentinels for a day.
    if not location.is_complete:
        return
    try:
        await set_geolocation_cache(ip, asdict(location))
    except (RuntimeError, RedisError):
        # Redis may be unavailable in tests/local minimal env.
        return
