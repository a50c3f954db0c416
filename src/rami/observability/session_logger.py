"""
Rami - Wizard Session Logger.

Lightweight structured log for debugging wizard sessions.

Features:
- One JSONL file per session (easy to parse, tail -f friendly)
- Step entry, rejected advances, mutations, completion
- Draft persistence failures (the wizard keeps going, this is where they surface)
- Smart truncation of large values

Usage:
    from rami.observability.session_logger import SessionLogger

    session_log = SessionLogger(session_id="user-42")
    session_log.step_enter("crop", position=1, total=11)
    session_log.close()

Log format (JSONL):
    {"ts": "2026-01-01T17:30:00", "event": "step_enter", "step": "crop", ...}
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

LOG_DIR = Path("session_logs")

# Max string length before truncation
MAX_STRING_LEN = 200

# Max list items to show
MAX_LIST_ITEMS = 5

# Max dict keys to show
MAX_DICT_KEYS = 10


# =============================================================================
# Smart Truncation
# =============================================================================


def _truncate_value(value: Any, depth: int = 0) -> Any:
    """
    Smart truncation of values for logging.

    - Strings > MAX_STRING_LEN get truncated with "..."
    - Lists > MAX_LIST_ITEMS show first N + count
    - Dicts > MAX_DICT_KEYS show first N keys + count
    - Nested structures respect depth limit
    """
    if depth > 3:
        return "<nested>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > MAX_STRING_LEN:
            return value[:MAX_STRING_LEN] + f"... ({len(value)} chars)"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, list):
        if len(value) <= MAX_LIST_ITEMS:
            return [_truncate_value(v, depth + 1) for v in value]
        truncated = [_truncate_value(v, depth + 1) for v in value[:MAX_LIST_ITEMS]]
        return truncated + [f"... +{len(value) - MAX_LIST_ITEMS} more"]

    if isinstance(value, dict):
        result = {}
        for k in list(value.keys())[:MAX_DICT_KEYS]:
            result[k] = _truncate_value(value[k], depth + 1)
        if len(value) > MAX_DICT_KEYS:
            result["_truncated"] = f"+{len(value) - MAX_DICT_KEYS} keys"
        return result

    # Pydantic models, enums
    if hasattr(value, "model_dump"):
        return _truncate_value(value.model_dump(mode="json"), depth)
    if hasattr(value, "value"):
        return _truncate_value(value.value, depth)

    return str(value)[:MAX_STRING_LEN]


# =============================================================================
# Session Logger
# =============================================================================


class SessionLogger:
    """
    Per-session logger that writes JSONL to a file.

    Safe to call from the background draft writer thread.
    """

    def __init__(
        self,
        session_id: str | None = None,
        enabled: bool = True,
        log_dir: Path | str | None = None,
    ):
        """
        Args:
            session_id: Optional custom session ID. Default: timestamp-based.
            enabled: If False, all logging is no-op.
            log_dir: Override for LOG_DIR.
        """
        self.enabled = enabled
        self._lock = threading.Lock()
        self._advance_count = 0

        if not enabled:
            self.log_file = None
            self.log_path = None
            return

        directory = Path(log_dir) if log_dir else LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)

        if session_id is None:
            session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.session_id = session_id
        self.log_path = directory / f"wizard_{session_id}.jsonl"
        self.log_file = open(self.log_path, "a", encoding="utf-8")

        self._write({
            "event": "session_start",
            "session_id": session_id,
        })

    def _write(self, data: dict) -> None:
        if not self.enabled or self.log_file is None:
            return

        entry = {
            "ts": datetime.now().isoformat(),
            **data,
        }
        with self._lock:
            try:
                self.log_file.write(json.dumps(entry, default=str) + "\n")
                self.log_file.flush()
            except (OSError, ValueError) as e:
                # Full disk or a closed file: drop the entry, the wizard goes on
                logger.warning(f"Session log write failed for {self.log_path}: {e}")

    # =========================================================================
    # Navigation Events
    # =========================================================================

    def step_enter(self, step: str, position: int, total: int) -> None:
        self._write({
            "event": "step_enter",
            "step": step,
            "position": position,
            "total": total,
        })

    def advance_rejected(self, step: str, kind: str, message: str) -> None:
        self._advance_count += 1
        self._write({
            "event": "advance_rejected",
            "step": step,
            "kind": kind,
            "message": message,
            "attempt": self._advance_count,
        })

    def mutation(self, field: str, value: Any, steps_total: int) -> None:
        """Log an answer update and the resulting step count."""
        self._write({
            "event": "mutation",
            "field": field,
            "value": _truncate_value(value),
            "steps_total": steps_total,
        })

    def position_clamped(self, old_position: int, new_position: int) -> None:
        self._write({
            "event": "position_clamped",
            "old_position": old_position,
            "new_position": new_position,
        })

    def completed(self, record_id: str, area_hectares: float | None) -> None:
        self._write({
            "event": "completed",
            "record_id": record_id,
            "area_hectares": area_hectares,
        })

    # =========================================================================
    # Persistence Events
    # =========================================================================

    def persistence_failure(self, operation: str, error: str) -> None:
        self._write({
            "event": "persistence_failure",
            "operation": operation,
            "error": _truncate_value(error),
        })

    # =========================================================================
    # Custom Events
    # =========================================================================

    def log(self, event_type: str, **kwargs) -> None:
        """Log custom event."""
        self._write({
            "event": event_type,
            **_truncate_value(kwargs),
        })

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> str | None:
        """Close the log file. Returns log path."""
        if self.log_file:
            self._write({"event": "session_end"})
            self.log_file.close()
            self.log_file = None
            return str(self.log_path)
        return None
