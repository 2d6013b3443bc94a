"""JSON file persistence for the agent record.

The record is read once at session start and written once at session end.
Writes go to a temporary file in the same directory and are moved into
place with ``os.replace`` so a crash never leaves a half-written record.

Example:
    >>> from reef_agent.memory.persistence import AgentRecordStore
    >>>
    >>> store = AgentRecordStore("state/reef-state.json")
    >>> record = store.load()
    >>> if record is not None:
    ...     record.lifetime.sessions += 1
    ...     store.save(record)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from reef_agent.models.records import PersistedAgentRecord
from reef_agent.runtime.recovery import ReefAgentError

logger = logging.getLogger(__name__)

DEFAULT_RECORD_PATH = Path("state/reef-state.json")


class PersistenceError(ReefAgentError):
    """Error raised when the record cannot be written."""


class CorruptedRecordError(PersistenceError):
    """Error raised when the record on disk cannot be parsed."""


class AgentRecordStore:
    """Load and atomically save the PersistedAgentRecord.

    Attributes:
        path: Location of the JSON document.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else DEFAULT_RECORD_PATH

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load_strict(self) -> PersistedAgentRecord | None:
        """Load the record, raising on corruption.

        Raises:
            CorruptedRecordError: If the file exists but is not a valid record.
        """
        if not self._path.exists():
            return None
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
            return PersistedAgentRecord.model_validate(document)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise CorruptedRecordError(f"Unreadable agent record at {self._path}: {e}") from e

    def load(self) -> PersistedAgentRecord | None:
        """Load the record, treating a corrupted file as absent."""
        try:
            return self.load_strict()
        except CorruptedRecordError as e:
            logger.warning("[PERSIST] %s; starting without a saved record", e)
            return None

    def save(self, record: PersistedAgentRecord) -> None:
        """Replace the record on disk.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        payload = json.dumps(record.to_document(), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to save agent record to {self._path}: {e}") from e
        logger.debug("[PERSIST] Saved agent record to %s", self._path)
