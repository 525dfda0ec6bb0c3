"""
Error taxonomy for the audit pipeline.

ConfigGenerationError, ConfigLoadError and DatabaseConfigError are fatal to a run.
ScanError, EnrichmentError and WriteError are caught at the smallest
enclosing item (field, collection, artifact) and only logged.
"""
from typing import Optional


class AuditError(Exception):
    """Base class for all audit errors."""
    stage = "audit"

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"[{self.stage}] {message} (path: {self.path})"
        return f"[{self.stage}] {message}"


class ConfigGenerationError(AuditError):
    """Failure report missing, unreadable or malformed."""
    stage = "generate"


class ConfigLoadError(AuditError):
    """Scan plan missing, unreadable or malformed."""
    stage = "load"


class DatabaseConfigError(AuditError):
    """Connection parameters rejected by the driver (bad URI, options)."""
    stage = "connect"


class ScanError(AuditError):
    """A single field or collection scan failed."""
    stage = "scan"

    def __init__(self, message: str, *, collection: str, field: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
        self.field = field


class EnrichmentError(AuditError):
    """Relationship metadata lookup failed."""
    stage = "enrich"

    def __init__(self, message: str, *, collection: str):
        super().__init__(message)
        self.collection = collection


class WriteError(AuditError):
    """A single report artifact could not be persisted."""
    stage = "write"
