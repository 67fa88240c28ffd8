"""
Shared utilities for the Access Layer authorize filter.

This package aggregates the common building blocks consumed by the
authorize service:

- config: Filter settings via pydantic-settings
- logging: Structured logging with trace correlation
- errors: Canonical error types and responses

Any cross-component logic should live here to avoid import cycles.
Do not import from service_* packages into shared/.
"""
