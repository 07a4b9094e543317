"""Data stores for persistence and caching.

Stores handle:
- SQL database: engine lifecycle, single statements and atomic batches
- Redis: optional cache for geolocation lookups

No visit/rendering logic in stores - that belongs in services.
"""
