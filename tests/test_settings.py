"""Tests for settings parsing."""

import pytest
from pydantic import ValidationError

from country_counter.settings import LocationStrategy, Settings


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@db.internal:5432/visits")
    assert settings.async_database_url == "postgresql+asyncpg://u:p@db.internal:5432/visits"


def test_plain_sqlite_url_gets_async_driver():
    settings = Settings(database_url="sqlite:///./visits.db")
    assert settings.async_database_url == "sqlite+aiosqlite:///./visits.db"


def test_async_url_unchanged():
    url = "sqlite+aiosqlite:///./visits.db"
    assert Settings(database_url=url).async_database_url == url


def test_store_url_alias(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("STORE_URL", "postgresql://u:p@h/db")
    assert Settings().async_database_url == "postgresql+asyncpg://u:p@h/db"


@pytest.mark.parametrize("raw", ["geolocation", "GEOLOCATION", " Geolocation "])
def test_location_strategy_spellings(raw):
    assert Settings(location_strategy=raw).location_strategy == LocationStrategy.GEOLOCATION


def test_location_strategy_hyphenated():
    assert Settings(location_strategy="fixed-sample").location_strategy == LocationStrategy.FIXED_SAMPLE


def test_unknown_location_strategy_rejected():
    with pytest.raises(ValidationError):
        Settings(location_strategy="carrier-pigeon")


def test_store_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(store_timeout_seconds=0)
