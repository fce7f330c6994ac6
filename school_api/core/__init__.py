"""
Core utilities shared across the school content API.

This package hosts configuration helpers (env vars, storage paths, upload
limits), logging setup and small URL helpers. Routers and services should
depend on these primitives instead of reading os.environ directly.
"""
