"""
Core utilities shared across the Gostwear API.

This package hosts configuration helpers (env vars, paths, CORS origins) and
small cross-cutting helpers such as credential comparison. Services depend on
these primitives instead of reading the environment themselves.
"""
