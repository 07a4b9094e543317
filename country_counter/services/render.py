"""HTML rendering for the visit page.

Pure data-to-text mapping over Jinja2 templates; nothing here does I/O or
raises on bad data.
"""

from jinja2 import Environment, PackageLoader, select_autoescape

from country_counter.stores.database import ResultSet

_env = Environment(
    loader=PackageLoader("country_counter", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_table(result: ResultSet) -> str:
    """Render rows as an HTML table: one header cell per column, one row per data row."""
    return _env.get_template("table.html").render(columns=result.columns, rows=result.rows)


def render_map_script(result: ResultSet) -> str:
    """Render a p5.js/Mappa script plotting one labelled point per coordinate row.

    Expects `lat`, `long` and `label` columns; zero rows give a script with no points.
    """
    points = []
    for row in result.as_dicts():
        points.append({"lat": row.get("lat"), "long": row.get("long"), "label": row.get("label") or ""})
    return _env.get_template("map_script.html").render(points=points)


def render_error(message: str) -> str:
    """Plain-text error shown in place of a section or page body."""
    return _env.get_template("error.html").render(message=message)


def render_page(scoreboard: str, map_script: str) -> str:
    """Full page around an already rendered scoreboard and map script."""
    return _env.get_template("page.html").render(scoreboard=scoreboard, map_script=map_script)


def render_error_page(message: str) -> str:
    """Full page whose only content is the error message."""
    return _env.get_template("page.html").render(error=render_error(message))
