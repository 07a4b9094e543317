"""SQLAlchemy ORM models.

Models represent database tables:
- counter: visit count per (country, city)
- coordinates: every distinct (lat, long) ever visited, with a label
"""

from country_counter.models.coordinate import Coordinate
from country_counter.models.counter import Counter

__all__ = ["Coordinate", "Counter"]
