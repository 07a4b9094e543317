"""Visit recording and read-back.

Per page request the pipeline is strictly sequential:
1. ensure_schema   - CREATE TABLE IF NOT EXISTS for both tables
2. resolve         - location for this request
3. record_visit    - one atomic batch (insert-or-ignore counter, increment, insert-or-ignore coordinate)
4. fetch_counters  - full counter table
5. fetch_coordinates - full coordinates table

Reads run only after the batch has committed, so a request always sees its own
visit. Visits from concurrent requests may or may not be visible, depending on
the store's isolation level.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.expression import Executable

from country_counter.models import Coordinate, Counter
from country_counter.services.location import LocationResolver, LocationTuple, RequestContext
from country_counter.stores.database import ResultSet, Store, StoreError

logger = logging.getLogger("uvicorn.error")

counter_table = Counter.__table__
coordinates_table = Coordinate.__table__

# Dialect-specific INSERT constructs supporting ON CONFLICT DO NOTHING
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def ensure_schema(store: Store) -> None:
    """Create both tables if they do not exist yet.

    Raises:
        StoreError: If the store rejects the DDL.
    """
    for table in (counter_table, coordinates_table):
        await store.execute(CreateTable(table, if_not_exists=True))


def _insert_or_ignore(dialect_name: str, table, values: dict) -> Executable:
    insert = _INSERT_BY_DIALECT.get(dialect_name)
    if insert is None:
        raise StoreError(f"Insert-or-ignore is not supported for dialect {dialect_name!r}")
    return insert(table).values(**values).on_conflict_do_nothing()


def build_visit_batch(dialect_name: str, location: LocationTuple) -> list[Executable]:
    """The three statements of one visit, in execution order."""
    return [
        _insert_or_ignore(
            dialect_name,
            counter_table,
            {"country": location.country, "city": location.city, "value": 0},
        ),
        update(counter_table)
        .where(
            counter_table.c.country == location.country,
            counter_table.c.city == location.city,
        )
        .values(value=counter_table.c.value + 1),
        _insert_or_ignore(
            dialect_name,
            coordinates_table,
            {"lat": location.latitude, "long": location.longitude, "label": location.label},
        ),
    ]


async def record_visit(store: Store, location: LocationTuple) -> None:
    """Record one visit as a single atomic batch.

    Raises:
        StoreError: If the batch fails; nothing from it is applied.
    """
    await store.execute_batch(build_visit_batch(store.dialect_name, location))
    logger.info("Recorded visit from %s, %s (%s)", location.city, location.country, location.label)


async def fetch_counters(store: Store) -> ResultSet:
    """All counter rows as (country, city, value)."""
    c = counter_table.c
    return await store.execute(select(c.country, c.city, c.value))


async def fetch_coordinates(store: Store) -> ResultSet:
    """All coordinate rows as (lat, long, label)."""
    c = coordinates_table.c
    return await store.execute(select(c.lat, c.long, c.label))


@dataclass
class VisitOutcome:
    """Everything the page needs after a visit was recorded.

    A read that failed leaves its result None and carries the error text instead.
    """

    location: LocationTuple
    counters: ResultSet | None = None
    counters_error: str | None = None
    coordinates: ResultSet | None = None
    coordinates_error: str | None = None


async def handle_visit(
    store: Store,
    resolver: LocationResolver,
    context: RequestContext,
) -> VisitOutcome:
    """Run the full visit pipeline for one request.

    Raises:
        StoreError: If bootstrapping the schema or recording the visit fails.
    """
    await ensure_schema(store)
    location = await resolver.resolve(context)
    await record_visit(store, location)

    outcome = VisitOutcome(location=location)
    try:
        outcome.counters = await fetch_counters(store)
    except StoreError as e:
        logger.exception("Failed to read counters")
        outcome.counters_error = str(e)
    try:
        outcome.coordinates = await fetch_coordinates(store)
    except StoreError as e:
        logger.exception("Failed to read coordinates")
        outcome.coordinates_error = str(e)
    return outcome
