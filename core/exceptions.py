"""
Custom exceptions for the ingestion service with structured error context.

Every failure the pipeline can raise carries a message, a context dictionary
(source, entity, ids, ...) and the original exception, so the entry point can
log one structured record before terminating.

Exception Hierarchy:
    IngestionError (base)
    ├── FetchError
    │   ├── AuthenticationError
    │   └── ResponseFormatError
    ├── SchemaError
    │   └── IdentifierError
    ├── WriteError
    └── ConfigError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, entity, ids, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchError(IngestionError):
    """
    Raised when a source client cannot produce records.

    Context should include:
        - source: "stackoverflow" or "github"
        - url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
    """
    pass


class AuthenticationError(FetchError):
    """Authentication failures (HTTP 401, 403) against the repository source."""
    pass


class ResponseFormatError(FetchError):
    """
    Raised when a response body is not valid JSON or does not match the
    expected shape.

    Context should include:
        - url: The endpoint that returned the body
        - response_body: Response body (truncated)
    """
    pass


# ============================================================================
# Schema Errors
# ============================================================================

class SchemaError(IngestionError):
    """
    Raised when destination tables cannot be provisioned.

    Context should include:
        - entity_name: Tracked entity being provisioned
        - table_name: Table that failed (if known)
    """
    pass


class IdentifierError(SchemaError):
    """An entity name that is unsafe to use as part of a table name."""
    pass


# ============================================================================
# Write Errors
# ============================================================================

class WriteError(IngestionError):
    """
    Raised when a row cannot be inserted.

    Context should include:
        - table_name: Target table
        - question_id / answer_id: Offending record (QA data)
        - item_index: Position in the batch (repository data)
    """
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigError(IngestionError):
    """Missing credential, invalid roster or unreachable database at startup."""
    pass
