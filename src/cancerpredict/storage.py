"""Local JSON log of prediction records.

The whole log is rewritten on every append. Writers within one process are
serialised by a lock, and each write lands in a temporary file that is then
moved over the log, so the file on disk is always a complete JSON array.
Separate processes sharing the same file are not coordinated.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cancerpredict.errors import PersistenceError
from cancerpredict.ml.policy import Label

logger = logging.getLogger(__name__)


class PredictionRecord(BaseModel):
    """A persisted result of one classification request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    result: Label
    suggestion: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        alias="createdAt",
    )


_LOG_ADAPTER: TypeAdapter[list[PredictionRecord]] = TypeAdapter(list[PredictionRecord])


class PredictionStore:
    """Append-only prediction log backed by a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: PredictionRecord) -> None:
        """Read the whole log, add ``record`` and write the log back.

        Raises:
            PersistenceError: If the log cannot be read, parsed, or written.
        """
        with self._lock:
            records = self._read()
            records.append(record)
            self._write(records)
        logger.info("Prediction saved locally: %s (%s)", record.id, record.result)

    def read_all(self) -> list[PredictionRecord]:
        """Return every stored record in insertion order."""
        with self._lock:
            return self._read()

    # -- Internal -----------------------------------------------------------

    def _read(self) -> list[PredictionRecord]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self._path}: {exc}") from exc

        if not raw.strip():
            return []
        try:
            return _LOG_ADAPTER.validate_json(raw)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Corrupt prediction log {self._path}: {exc}") from exc

    def _write(self, records: list[PredictionRecord]) -> None:
        payload = _LOG_ADAPTER.dump_json(records, indent=2, by_alias=True)
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(payload)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self._path}: {exc}") from exc
