"""
Shared utilities for the Cloudflare exporter.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with scrape pass correlation
- metrics: Prometheus self-instrumentation helpers
- errors: Canonical error types and responses
- base_service: FastAPI application skeleton served by uvicorn

Any cross-cutting logic should live here. Do not import from service
packages into shared/, test_helpers excepted.
"""
