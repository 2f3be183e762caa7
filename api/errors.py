"""
Error taxonomy for the matching core.

Route handlers translate these into HTTP responses; the core itself never
retries. Every error carries the offending entity id and operation when known
so that callers can retry a single unit of work.
"""

from typing import Optional


class MatchingError(Exception):
    """Base class for all matching service errors."""

    def __init__(
        self,
        message: str,
        entity_id: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id
        self.operation = operation

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "entity_id": self.entity_id,
            "operation": self.operation,
        }


class NotFoundInStore(MatchingError):
    """The relational record does not exist."""

    def __init__(self, entity_type: str, entity_id: str, operation: str = "sync"):
        super().__init__(
            f"{entity_type} {entity_id} not found in relational store",
            entity_id=entity_id,
            operation=operation,
        )
        self.entity_type = entity_type


class NotSyncedInIndex(MatchingError):
    """The entity has no entry in its vector index yet."""

    def __init__(self, entity_type: str, entity_id: str, operation: str = "match"):
        super().__init__(
            f"{entity_type} {entity_id} not found in vector index, sync it first",
            entity_id=entity_id,
            operation=operation,
        )
        self.entity_type = entity_type


class ExternalServiceError(MatchingError):
    """The embedding model or the vector index failed or was unreachable."""

    def __init__(
        self,
        service: str,
        operation: str,
        cause: Exception,
        entity_id: Optional[str] = None,
    ):
        super().__init__(
            f"{service} {operation} failed: {cause}",
            entity_id=entity_id,
            operation=operation,
        )
        self.service = service
        self.cause = cause


class ValidationError(MatchingError):
    """Malformed id, filter or limit. Raised before any external call."""


class UnknownEnumValue(ValidationError):
    """A value has no entry in its enum lookup table."""

    def __init__(self, enum_name: str, value: object):
        super().__init__(f"Unknown {enum_name} value: {value!r}")
        self.enum_name = enum_name
        self.value = value
