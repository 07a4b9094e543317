"""Tests for location resolution (fixed sample + geolocation strategies)."""

from collections import Counter
import random

import httpx
import pytest

from country_counter.services.geolocation import GeolocationClient
from country_counter.services.location import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    FIXED_LOCATIONS,
    UNKNOWN_CITY,
    UNKNOWN_COUNTRY,
    UNKNOWN_LOCATION,
    FixedSampleResolver,
    GeolocationResolver,
    RequestContext,
    build_resolver,
    extract_client_ip,
    strip_port,
)
from country_counter.settings import LocationStrategy, Settings


def _geo_resolver(handler) -> GeolocationResolver:
    client = GeolocationClient(
        url_template="http://geo.test/json/{ip}",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
        use_cache=False,
    )
    return GeolocationResolver(client)


class TestStripPort:
    """Tests for client address parsing."""

    def test_ipv4_with_port(self):
        assert strip_port("81.2.69.142:51234") == "81.2.69.142"

    def test_ipv4_without_port(self):
        assert strip_port("81.2.69.142") == "81.2.69.142"

    def test_bracketed_ipv6_with_port(self):
        assert strip_port("[2001:db8::1]:8080") == "2001:db8::1"

    def test_bare_ipv6_unchanged(self):
        assert strip_port("2001:db8::1") == "2001:db8::1"

    def test_proxy_chain_takes_first(self):
        assert extract_client_ip("81.2.69.142:443, 10.0.0.1, 10.0.0.2") == "81.2.69.142"

    def test_missing_header(self):
        assert extract_client_ip(None) is None
        assert extract_client_ip("  ") is None


class TestFixedSampleResolver:
    """Tests for the fixed sample strategy."""

    @pytest.mark.asyncio
    async def test_always_returns_a_known_location(self):
        resolver = FixedSampleResolver()
        for _ in range(50):
            assert await resolver.resolve(RequestContext()) in FIXED_LOCATIONS

    @pytest.mark.asyncio
    async def test_distribution_is_uniform(self):
        resolver = FixedSampleResolver(rng=random.Random(1234))
        draws = 5000
        counts = Counter([await resolver.resolve(RequestContext()) for _ in range(draws)])

        assert set(counts) == set(FIXED_LOCATIONS)
        expected = draws / len(FIXED_LOCATIONS)
        for n in counts.values():
            assert abs(n - expected) < expected * 0.15

    def test_fixed_locations_carry_airport_labels(self):
        assert [loc.label for loc in FIXED_LOCATIONS] == ["WAW", "EWR", "HAM", "HEL", "NSW"]


class TestGeolocationResolver:
    """Tests for the geolocation strategy (no real network calls)."""

    @pytest.mark.asyncio
    async def test_full_response(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(
                200, json={"status": "success", "country": "Poland", "city": "Warsaw", "lat": 52.2, "lon": 21.0}
            )

        location = await _geo_resolver(handler).resolve(RequestContext("81.2.69.142:51234"))

        assert seen == ["http://geo.test/json/81.2.69.142"]
        assert location.country == "Poland"
        assert location.city == "Warsaw"
        assert location.latitude == 52.2
        assert location.longitude == 21.0
        assert location.label == "Warsaw"

    @pytest.mark.asyncio
    async def test_missing_lat_defaults_to_zero(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"country": "Poland", "city": "Warsaw", "lon": 21.0})

        location = await _geo_resolver(handler).resolve(RequestContext("81.2.69.142"))

        assert location.latitude == DEFAULT_LATITUDE == 0.0
        assert location.longitude == 21.0
        assert location.city == "Warsaw"

    @pytest.mark.asyncio
    async def test_missing_names_use_sentinels(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"lat": "48.85", "lon": 2.35, "city": "  "})

        location = await _geo_resolver(handler).resolve(RequestContext("81.2.69.142"))

        assert location.country == UNKNOWN_COUNTRY
        assert location.city == UNKNOWN_CITY
        assert location.latitude == 48.85

    @pytest.mark.asyncio
    async def test_error_status_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="down")

        assert await _geo_resolver(handler).resolve(RequestContext("81.2.69.142")) == UNKNOWN_LOCATION

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        assert await _geo_resolver(handler).resolve(RequestContext("81.2.69.142")) == UNKNOWN_LOCATION

    @pytest.mark.asyncio
    async def test_non_object_body_falls_back(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["not", "an", "object"])

        assert await _geo_resolver(handler).resolve(RequestContext("81.2.69.142")) == UNKNOWN_LOCATION

    @pytest.mark.asyncio
    async def test_private_address_skips_lookup(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("lookup should not be called")

        resolver = _geo_resolver(handler)
        assert await resolver.resolve(RequestContext("192.168.1.10:5000")) == UNKNOWN_LOCATION
        assert await resolver.resolve(RequestContext("127.0.0.1")) == UNKNOWN_LOCATION

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "addr",
        ["100.64.1.1", "240.0.0.1", "224.0.0.1", "169.254.1.1", "0.0.0.0", "::1", "fe80::1", "ff02::1"],
    )
    async def test_non_global_address_skips_lookup(self, addr):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("lookup should not be called")

        assert await _geo_resolver(handler).resolve(RequestContext(addr)) == UNKNOWN_LOCATION

    @pytest.mark.asyncio
    async def test_no_address_skips_lookup(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("lookup should not be called")

        location = await _geo_resolver(handler).resolve(RequestContext(None))
        assert location == UNKNOWN_LOCATION
        assert (location.latitude, location.longitude) == (DEFAULT_LATITUDE, DEFAULT_LONGITUDE)


def test_build_resolver_follows_strategy():
    assert isinstance(build_resolver(Settings(location_strategy="fixed_sample")), FixedSampleResolver)
    assert isinstance(
        build_resolver(Settings(location_strategy=LocationStrategy.GEOLOCATION)), GeolocationResolver
    )
