"""
Table definitions for the two ingestion stores.

Modules:
    base: Shared enums (SourceType)
    tables: Per-entity question/answer and issue tables, built on demand
            from a sanitized entity token

Database Schema:
    Tables are not declared up front. The schema provisioner asks
    ``qa_tables(entity)`` / ``repo_tables(entity)`` for an entity's table
    set and creates whatever is missing before the first write.

Usage:
    from models.base import SourceType
    from models.tables import qa_tables, repo_tables
"""
