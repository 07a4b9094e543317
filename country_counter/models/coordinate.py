"""Coordinate model.

Rows are insert-or-ignore: the first label recorded for a point is kept.
"""

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from country_counter.stores.database import Base


class Coordinate(Base):
    """A plotted map point."""

    __tablename__ = "coordinates"

    lat: Mapped[float] = mapped_column(Float, primary_key=True)
    long: Mapped[float] = mapped_column(Float, primary_key=True)
    label: Mapped[str] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<Coordinate {self.label} ({self.lat}, {self.long})>"
