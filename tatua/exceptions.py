"""Exceptions for the Tatua ticket desk.

Most failures in the grid and storage layers are recovered where they occur
(empty views, empty collections, fail-open crypto). The exceptions below are
reserved for caller mistakes that cannot be degraded into a sensible result.
"""

from typing import Any, Optional


class TatuaError(Exception):
    """Base error for the ticket desk."""

    def __init__(
        self,
        message: str = "Ticket desk error",
        error_code: str = "tatua_error",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidRecordError(TatuaError):
    """Raised when a record cannot be stored, e.g. it lacks its key field."""

    def __init__(self, message: str = "Invalid record", key_field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="invalid_record",
            details={"key_field": key_field} if key_field else {}
        )


class DuplicateRecordError(TatuaError):
    """Raised when saving a record whose key already exists."""

    def __init__(self, record_id: Any):
        super().__init__(
            message=f"Record with ID {record_id} already exists",
            error_code="duplicate_record",
            details={"record_id": record_id}
        )


class EditorSessionClosedError(TatuaError):
    """Raised when a rule editor session is used after submit, reset or cancel."""

    def __init__(self, kind: str = "rule"):
        super().__init__(
            message=f"The {kind} editor session is closed",
            error_code="editor_session_closed",
            details={"kind": kind}
        )


class ConfigLoadError(TatuaError):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="config_load_failed",
            details={"path": path} if path else {}
        )
