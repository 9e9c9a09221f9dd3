"""
Cloudflare exporter service package.

This package exposes the FastAPI application that scrapes Cloudflare
analytics and serves them as Prometheus metrics:

- app.main: Application entrypoint, CLI and lifecycle wiring.
- app.scheduler: Periodic scrape passes.
- app.inventory: Account and zone discovery, filters and batching.
- app.fetch: Family descriptors, query building, decoding and the
  per-pass orchestrator.
- app.registry: Metric catalogue and the aggregating registry.
- app.adapters: REST and GraphQL clients sharing one HTTP client.

Design notes:
- Module import must not perform network calls. All IO happens in scrape
  passes started from the application lifespan.
- Use the shared/ utilities for configuration, logging, metrics and errors.
- Nothing is persisted; every value is rebuilt after a restart.
"""
