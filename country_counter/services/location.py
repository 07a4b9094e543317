"""Location resolution for a visit.

Two strategies, selected by the LOCATION_STRATEGY setting:
- fixed_sample: pick one of a handful of airports uniformly at random
- geolocation: look up the caller's address with the geolocation service

Resolution never fails: whatever goes wrong with the lookup, the caller gets
a fully populated LocationTuple (falling back to sentinel values).
"""

from __future__ import annotations

from dataclasses import dataclass
import ipaddress
import logging
import random
from typing import Protocol

from country_counter.services.geolocation import (
    FormatError,
    GeoLocation,
    GeolocationClient,
    GeolocationError,
)
from country_counter.settings import LocationStrategy, Settings, get_settings

logger = logging.getLogger("uvicorn.error")

# Sentinels for a location the lookup could not determine
UNKNOWN_COUNTRY = "Unknown country"
UNKNOWN_CITY = "Unknown city"
DEFAULT_LATITUDE = 0.0
DEFAULT_LONGITUDE = 0.0


@dataclass(frozen=True)
class LocationTuple:
    """Where a single visit came from."""

    code: str
    country: str
    city: str
    latitude: float
    longitude: float

    @property
    def label(self) -> str:
        """Map label: the airport code when known, otherwise the city."""
        return self.code or self.city


UNKNOWN_LOCATION = LocationTuple(
    code="",
    country=UNKNOWN_COUNTRY,
    city=UNKNOWN_CITY,
    latitude=DEFAULT_LATITUDE,
    longitude=DEFAULT_LONGITUDE,
)

FIXED_LOCATIONS: tuple[LocationTuple, ...] = (
    LocationTuple("WAW", "PL", "Warsaw", 52.22959, 21.0067),
    LocationTuple("EWR", "US", "Newark", 42.99259, -81.3321),
    LocationTuple("HAM", "DE", "Hamburg", 50.118801, 7.684300),
    LocationTuple("HEL", "FI", "Helsinki", 60.3183, 24.9497),
    LocationTuple("NSW", "AU", "Sydney", -33.9500, 151.1819),
)


@dataclass(frozen=True)
class RequestContext:
    """The parts of an inbound request the resolver cares about."""

    client_addr: str | None = None

    @property
    def client_ip(self) -> str | None:
        return extract_client_ip(self.client_addr)


def strip_port(addr: str) -> str:
    """Strip a `:port` suffix from `ip:port` or `[ipv6]:port`.

    A bare IPv6 address (several colons, no brackets) is returned unchanged.
    """
    addr = addr.strip()
    if addr.startswith("["):
        end = addr.find("]")
        return addr[1:end] if end != -1 else addr[1:]
    if addr.count(":") == 1:
        return addr.split(":", 1)[0]
    return addr


def extract_client_ip(value: str | None) -> str | None:
    """Extract the caller's IP from a client-address header value.

    The header may carry a proxy chain ("client, proxy1, proxy2"); the first
    entry is the original client.
    """
    if not value:
        return None
    first = value.split(",")[0].strip()
    if not first:
        return None
    ip = strip_port(first)
    return ip or None


def _is_routable(ip: str) -> bool:
    """Only globally routable addresses are worth a lookup (no private, shared, reserved or multicast)."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return addr.is_global and not addr.is_multicast


def location_from_geo(geo: GeoLocation | None) -> LocationTuple:
    """Build a fully populated LocationTuple, substituting sentinels for gaps."""
    if geo is None:
        return UNKNOWN_LOCATION
    return LocationTuple(
        code="",
        country=geo.country or UNKNOWN_COUNTRY,
        city=geo.city or UNKNOWN_CITY,
        latitude=geo.lat if geo.lat is not None else DEFAULT_LATITUDE,
        longitude=geo.lon if geo.lon is not None else DEFAULT_LONGITUDE,
    )


class LocationResolver(Protocol):
    async def resolve(self, context: RequestContext) -> LocationTuple: ...


class FixedSampleResolver:
    """Uniform random pick from FIXED_LOCATIONS, independently per call."""

    def __init__(
        self,
        locations: tuple[LocationTuple, ...] = FIXED_LOCATIONS,
        rng: random.Random | None = None,
    ):
        self.locations = locations
        self._rng = rng or random.Random()

    async def resolve(self, context: RequestContext) -> LocationTuple:
        return self._rng.choice(self.locations)


class GeolocationResolver:
    """Resolve the caller's address via the geolocation service (best-effort)."""

    def __init__(self, client: GeolocationClient | None = None):
        self.client = client or GeolocationClient()

    async def resolve(self, context: RequestContext) -> LocationTuple:
        ip = context.client_ip
        if not ip:
            logger.warning("No client address on request, using unknown location")
            return UNKNOWN_LOCATION
        if not _is_routable(ip):
            logger.info("Skipping geolocation for non-public address: %s", ip)
            return UNKNOWN_LOCATION

        try:
            geo = await self.client.lookup(ip)
        except (GeolocationError, FormatError) as e:
            logger.warning("Geolocation lookup failed, using unknown location: %s", e)
            return UNKNOWN_LOCATION

        if geo.lat is None or geo.lon is None:
            logger.warning("Geolocation for %s is missing coordinates, defaulting to 0.0", ip)
        return location_from_geo(geo)


def build_resolver(settings: Settings) -> LocationResolver:
    """Build the resolver for a strategy."""
    if settings.location_strategy == LocationStrategy.GEOLOCATION:
        return GeolocationResolver()
    return FixedSampleResolver()


def get_resolver() -> LocationResolver:
    """Resolver for the configured strategy (also used as a FastAPI dependency)."""
    return build_resolver(get_settings())


async def resolve_location(
    context: RequestContext,
    resolver: LocationResolver | None = None,
) -> LocationTuple:
    """Resolve the location for one request using the configured strategy."""
    resolver = resolver or get_resolver()
    return await resolver.resolve(context)
