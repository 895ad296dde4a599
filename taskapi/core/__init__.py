"""
Core utilities shared across the task API.

This package hosts configuration helpers (env vars, feature flags) and
cross-cutting services such as logging setup, password hashing and rate
limiting. Routers and services depend on these primitives instead of reading
os.environ directly.
"""
