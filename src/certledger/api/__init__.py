"""API layer: canonical query surface over the versioned ledger tables.

This module provides the stable read model API. Key rules:

1. No SQLAlchemy imports - only call store, planner and matcher functions
2. The head is resolved once per call and passed to every read
3. Return Pydantic models dumped to JSON-ready dicts
4. This is the canonical surface - callers (CLI, HTTP adapters) only serialize
"""
