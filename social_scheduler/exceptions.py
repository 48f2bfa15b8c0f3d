"""
Error taxonomy of the scheduling core.

``NotFoundError`` and ``DuplicateCodeError`` are raised to the caller and
never retried here. ``StorageCleanupWarning`` is only ever *emitted*
(``warnings.warn`` plus a log record) when deleting a blob fails; the
surrounding operation carries on.
"""
from typing import Optional


class SchedulerError(Exception):
    """Base class for errors raised by :mod:`social_scheduler`."""


class NotFoundError(SchedulerError, LookupError):
    def __init__(self, kind: str, entity_id: Optional[str] = None, message: Optional[str] = None):
        self.kind = str(kind)
        self.entity_id = entity_id
        super().__init__(message or f"{self.kind} not found: {entity_id}")


class DuplicateCodeError(SchedulerError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Client code already exists: {code}")


class StorageCleanupWarning(UserWarning):
    """A blob could not be deleted; the primary records were still written."""
