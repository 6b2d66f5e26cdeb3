"""
In-memory credential storage.

Credentials live for the lifetime of the process only. Each server builds its
own store and hands it to the components that need it.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from .errors import CredentialNotFoundError
from .models import CredentialRecord

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Storage interface for credential records keyed by Slack user ID."""

    def store(self, record: CredentialRecord) -> None:
        """Save a record, replacing any earlier record for the same user."""
        ...

    def get(self, user_id: str) -> CredentialRecord:
        """Return the record for ``user_id``.

        Raises:
            CredentialNotFoundError: If nothing is stored for the user
        """
        ...


class MemoryCredentialStore:
    """Thread-safe dict-backed credential store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, CredentialRecord] = {}

    def store(self, record: CredentialRecord) -> None:
        if not record.user_id:
            raise ValueError("Credential record must have a user_id")
        with self._lock:
            replaced = record.user_id in self._records
            self._records[record.user_id] = record
        logger.debug(f"Stored credentials for user={record.user_id} replaced={replaced}")

    def get(self, user_id: str) -> CredentialRecord:
        with self._lock:
            record = self._records.get(user_id)
        if record is None:
            raise CredentialNotFoundError(user_id)
        return record

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
