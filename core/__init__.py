"""
Core utilities and configuration for the ingestion service.

Modules:
    config: Application configuration and environment variable management
    database: Engine/session construction and startup connectivity checks
    exceptions: Exception hierarchy (fetch, schema, write, config errors)
    identifiers: Entity name sanitization for dynamic table names
    logging: Logging configuration
    metrics: Prometheus counters and summaries

Usage:
    from core.config import settings
    from core.database import build_engine, build_session_maker
    from core.exceptions import FetchError, WriteError
    from core.logging import setup_logging
"""
