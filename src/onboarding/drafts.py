"""
Draft Persistence.

Keeps the in-progress answer snapshot in a namespaced key-value slot so an
interrupted wizard can be resumed. The storage medium is pluggable:

- MemoryDraftStore   - process memory (tests, ephemeral sessions)
- FileDraftStore     - one JSON file per draft key on local disk
- SupabaseDraftStore - one row per draft key in the wizard_drafts table

Failure policy: draft I/O never breaks the wizard. A failed read or write is
reported (logger, optional session logger, optional callback) and the
session continues in memory only.
"""

import json
import logging
import re
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from .answers import AnswerModel
from .validation import ErrorKind, StepError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "rami_wizard_v2"


def draft_key(namespace: str = DEFAULT_NAMESPACE, user_id: str | None = None) -> str:
    """Derive the storage key for a session's draft."""
    if user_id:
        return f"{namespace}_{user_id}"
    return namespace


# =============================================================================
# Stores
# =============================================================================


class DraftStore(ABC):
    """Minimal get/set/delete key-value contract."""

    @abstractmethod
    def get(self, key: str) -> dict | None:
        ...

    @abstractmethod
    def set(self, key: str, data: dict) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryDraftStore(DraftStore):
    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> dict | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, data: dict) -> None:
        # Stored serialized so callers can't alias the saved snapshot
        self._data[key] = json.dumps(data)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileDraftStore(DraftStore):
    """One `<key>.json` file per draft inside `directory`."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> dict | None:
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def set(self, key: str, data: dict) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SupabaseDraftStore(DraftStore):
    """
    Drafts in a Supabase table.

    Expected columns: draft_key (text, unique), answers (jsonb), updated_at.
    """

    def __init__(self, client: Any = None, table: str = "wizard_drafts"):
        self._client = client
        self.table = table

    @property
    def client(self):
        if self._client is None:
            from rami.db.client import get_service_client
            self._client = get_service_client()
        return self._client

    def get(self, key: str) -> dict | None:
        result = (
            self.client.table(self.table)
            .select("answers")
            .eq("draft_key", key)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return result.data[0]["answers"]

    def set(self, key: str, data: dict) -> None:
        self.client.table(self.table).upsert({
            "draft_key": key,
            "answers": data,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }, on_conflict="draft_key").execute()

    def delete(self, key: str) -> None:
        self.client.table(self.table).delete().eq("draft_key", key).execute()


# =============================================================================
# Draft Persistence
# =============================================================================

_DELETE = object()


class DraftPersistence:
    """
    Session-scoped draft slot.

    Args:
        store: Key-value backend
        key: Draft key (see draft_key())
        background: Run writes on a single worker thread. Pending writes are
            coalesced (last write wins) and never block the caller.
        on_failure: Called with a PERSISTENCE_FAILURE StepError
        session_logger: Optional SessionLogger for structured events
    """

    def __init__(
        self,
        store: DraftStore,
        key: str,
        *,
        background: bool = False,
        on_failure: Callable[[StepError], None] | None = None,
        session_logger: Any = None,
    ):
        self.store = store
        self.key = key
        self.on_failure = on_failure
        self.session_logger = session_logger

        self.memory_only = False
        self.last_failure: StepError | None = None

        self._background = background
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._pending: Any = None
        self._scheduled = False

        if background:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="draft-writer")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def load(self) -> AnswerModel | None:
        """Read the stored draft. Returns None when absent or unusable."""
        if self.memory_only:
            return None

        try:
            data = self.store.get(self.key)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupt draft {self.key}: {e}")
            return None
        except Exception as e:
            self._report("load", e)
            return None

        if data is None:
            return None

        try:
            return AnswerModel.from_dict(data)
        except (ValidationError, TypeError) as e:
            # Storage works, content doesn't. Next save overwrites it.
            logger.warning(f"Discarding unreadable draft {self.key}: {e}")
            return None

    def save(self, answers: AnswerModel) -> None:
        """Persist a snapshot. Never raises."""
        if self.memory_only:
            return
        self._submit(answers.to_dict())

    def clear(self) -> None:
        """Delete the draft (flow completed). Never raises."""
        if self.memory_only:
            return
        self._submit(_DELETE)

    def flush(self, timeout: float | None = None) -> None:
        """Wait until queued background writes are done."""
        if self._executor is not None:
            # Single worker: this no-op runs after everything queued before it
            self._executor.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _submit(self, op: Any) -> None:
        if self._executor is None:
            self._write(op)
            return

        with self._lock:
            self._pending = op
            if self._scheduled:
                return
            self._scheduled = True
        self._executor.submit(self._drain)

    def _drain(self) -> None:
        while True:
            with self._lock:
                op = self._pending
                self._pending = None
                if op is None:
                    self._scheduled = False
                    return
            self._write(op)

    def _write(self, op: Any) -> None:
        if self.memory_only:
            return
        try:
            if op is _DELETE:
                self.store.delete(self.key)
            else:
                self.store.set(self.key, op)
        except Exception as e:
            self._report("delete" if op is _DELETE else "save", e)

    def _report(self, operation: str, exc: Exception) -> None:
        self.memory_only = True
        self.last_failure = StepError(
            ErrorKind.PERSISTENCE_FAILURE,
            f"Draft {operation} failed: {exc}",
        )
        logger.warning(
            f"Draft {operation} failed for {self.key}, continuing in memory only: {exc}"
        )

        if self.session_logger is not None:
            try:
                self.session_logger.persistence_failure(operation, str(exc))
            except Exception as log_error:
                logger.error(f"Session log of draft failure raised: {log_error}")

        if self.on_failure is not None:
            try:
                self.on_failure(self.last_failure)
            except Exception as cb_error:
                logger.error(f"Draft failure callback raised: {cb_error}")
