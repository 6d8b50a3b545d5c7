"""Data stores for persistence and short-lived markers.

Stores handle:
- SQL (PostgreSQL / SQLite): DB session, offer and claim records, atomic updates
- Redis: claim throttle markers with TTL

No selection or claim policy in stores - that belongs in services.
"""
