"""
Persistence adapters.

Services depend on the repository rather than on SQLAlchemy sessions, so the
store client can be constructed once and injected.
"""
