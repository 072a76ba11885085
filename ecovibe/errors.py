"""
Exceptions raised by the data-access and catalog layers.
"""

from __future__ import annotations

from typing import Optional

# Postgres "query_canceled": raised on statement timeouts when the hosted
# database is busy.
TRANSIENT_BUSY_CODE = "57014"


class EcovibeError(Exception):
    """Base class for service errors."""


class NotFoundError(EcovibeError):
    def __init__(self, kind: str, record_id: Optional[str]):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class StoreBusyError(EcovibeError):
    """Transient backend error that is worth retrying."""

    def __init__(self, message: str = "Database busy", code: str = TRANSIENT_BUSY_CODE):
        super().__init__(message)
        self.code = code


class StorageError(EcovibeError):
    pass
