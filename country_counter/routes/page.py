"""Visit page.

GET / - records a visit for the caller's location and renders the scoreboard
and map of every location seen so far.

Error policy:
- Store failure while bootstrapping or recording: 503 with an error page, nothing recorded
- Store failure while reading: 200, the affected section shows the error instead
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from country_counter.services.location import LocationResolver, RequestContext, get_resolver
from country_counter.services.render import (
    render_error,
    render_error_page,
    render_map_script,
    render_page,
    render_table,
)
from country_counter.services.visits import handle_visit
from country_counter.settings import get_settings
from country_counter.stores.database import Store, StoreError, get_store

router = APIRouter()

logger = logging.getLogger("uvicorn.error")


def _request_context(request: Request) -> RequestContext:
    """Client address from the configured header, falling back to the socket peer."""
    header = get_settings().client_addr_header
    client_addr = request.headers.get(header)
    if not client_addr and request.client:
        client_addr = request.client.host
    return RequestContext(client_addr=client_addr)


@router.get("/", response_class=HTMLResponse)
async def visit_page(
    request: Request,
    store: Store = Depends(get_store),
    resolver: LocationResolver = Depends(get_resolver),
) -> HTMLResponse:
    """Record a visit and render the scoreboard + map page."""
    logger.debug("Request headers: %s", dict(request.headers))

    try:
        outcome = await handle_visit(store, resolver, _request_context(request))
    except StoreError as e:
        logger.exception("Visit could not be recorded")
        return HTMLResponse(render_error_page(str(e)), status_code=503)

    if outcome.counters is not None:
        scoreboard = render_table(outcome.counters)
    else:
        scoreboard = render_error(outcome.counters_error or "counters unavailable")

    if outcome.coordinates is not None:
        map_script = render_map_script(outcome.coordinates)
    else:
        map_script = render_error(outcome.coordinates_error or "coordinates unavailable")

    return HTMLResponse(render_page(scoreboard, map_script))
