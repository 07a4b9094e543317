"""Counter model.

One row per distinct (country, city); `value` counts visits resolved to it.
"""

from sqlalchemy import Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from country_counter.stores.database import Base


class Counter(Base):
    """Visit counter keyed by location."""

    __tablename__ = "counter"
    __table_args__ = {"sqlite_with_rowid": False}

    country: Mapped[str] = mapped_column(String(100), primary_key=True)
    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))

    def __repr__(self) -> str:
        return f"<Counter {self.country}/{self.city}={self.value}>"
