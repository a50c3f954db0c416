"""
Wizard Controller.

Owns one session's answers and position, and keeps them consistent:

    mutate()  -> apply update, rebuild step list, clamp position, save draft
    advance() -> validate current step; move forward or complete
    retreat() -> move back, no validation
    jump()    -> from the review step only, go straight to an active step

States: AtStep(i) for 0 <= i < len(steps), then terminal Completed.
All operations run to completion synchronously. Draft writes are handed to
DraftPersistence, which does the I/O on its own worker in background mode.
"""

import logging
from typing import Any, Callable

from .answers import AnswerModel, SetField, ToggleItem, apply_update
from .drafts import DraftPersistence
from .payload import PlantingRecord, build_record_from_answers
from .steps import StepId, resolve_steps
from .summary import ReviewItem, build_review_summary
from .validation import StepError, validate_step

logger = logging.getLogger(__name__)


class WizardCompletedError(RuntimeError):
    """Raised when an operation is attempted on a finished wizard."""


class WizardController:
    """
    Step engine for one wizard session.

    Args:
        drafts: Draft slot for this session. None = memory only.
        on_complete: Downstream collaborator receiving the finished record.
        user_id: Copied into the finished record.
        session_logger: Optional SessionLogger for structured events.
        resolver: Step graph function (answers -> step list).
    """

    def __init__(
        self,
        drafts: DraftPersistence | None = None,
        on_complete: Callable[[PlantingRecord], Any] | None = None,
        user_id: str | None = None,
        session_logger: Any = None,
        resolver: Callable[[AnswerModel], list[StepId]] = resolve_steps,
    ):
        self.drafts = drafts
        self.on_complete = on_complete
        self.user_id = user_id
        self.session_logger = session_logger
        self._resolve = resolver

        restored = drafts.load() if drafts is not None else None
        if restored is not None:
            logger.info(f"Restored wizard draft for {drafts.key}")

        self._answers = restored or AnswerModel()
        self._steps = self._resolve(self._answers)
        self._position = 0
        self._error: StepError | None = None
        self._record: PlantingRecord | None = None

        self._log_step_enter()

    # =========================================================================
    # Read-only State
    # =========================================================================

    @property
    def answers(self) -> AnswerModel:
        return self._answers

    @property
    def steps(self) -> list[StepId]:
        return list(self._steps)

    @property
    def position(self) -> int:
        return self._position

    @property
    def current_step(self) -> StepId:
        return self._steps[self._position]

    @property
    def error(self) -> StepError | None:
        return self._error

    @property
    def completed(self) -> bool:
        return self._record is not None

    @property
    def record(self) -> PlantingRecord | None:
        return self._record

    @property
    def is_first(self) -> bool:
        return self._position == 0

    @property
    def is_last(self) -> bool:
        return self._position == len(self._steps) - 1

    @property
    def progress(self) -> str:
        return f"{self._position + 1}/{len(self._steps)}"

    def review_items(self) -> list[ReviewItem]:
        return build_review_summary(self._answers)

    def snapshot(self) -> dict:
        """Serializable view for the presentation layer."""
        return {
            "answers": self._answers.to_dict(),
            "steps": [s.value for s in self._steps],
            "position": self._position,
            "current_step": self.current_step.value,
            "progress": self.progress,
            "is_first": self.is_first,
            "is_last": self.is_last,
            "error": self._error.to_dict() if self._error else None,
            "completed": self.completed,
            "record": self._record.to_dict() if self._record else None,
        }

    # =========================================================================
    # Operations
    # =========================================================================

    def mutate(self, update: SetField | ToggleItem) -> None:
        """
        Apply one field update.

        Rebuilds the step list, clamps the position if the list shrank
        below it, then saves the draft. Does not validate.

        Raises:
            InvalidUpdateError: malformed update (answers unchanged)
            WizardCompletedError: wizard already finished
        """
        self._ensure_active()
        self._error = None

        self._answers = apply_update(self._answers, update)
        self._steps = self._resolve(self._answers)

        if self._position >= len(self._steps):
            old = self._position
            self._position = len(self._steps) - 1
            logger.debug(f"Step list shrank, position clamped {old} -> {self._position}")
            self._session_event("position_clamped", old, self._position)

        value = update.value if isinstance(update, SetField) else update.item
        self._session_event("mutation", update.field, value, len(self._steps))

        if self.drafts is not None:
            self.drafts.save(self._answers)

    def advance(self) -> bool:
        """
        Validate the current step and move forward.

        On the last step a pass completes the wizard: the finished record
        is built, handed to on_complete, and the draft is cleared.

        Returns:
            True if the position moved or the wizard completed
        """
        self._ensure_active()
        self._error = None

        step = self.current_step
        result = validate_step(step, self._answers)
        if not result.ok:
            self._error = result.error
            self._session_event(
                "advance_rejected", step.value, result.error.kind.value, result.error.message
            )
            return False

        if self.is_last:
            self._complete()
            return True

        self._position += 1
        self._log_step_enter()
        return True

    def retreat(self) -> bool:
        """Go back one step. Never validates."""
        self._ensure_active()
        self._error = None

        if self._position == 0:
            return False
        self._position -= 1
        self._log_step_enter()
        return True

    def jump(self, step: StepId | str) -> bool:
        """
        Jump from the review step to an active step.

        No-op (False) when not on review or when the step isn't in the
        current list. Skipped steps are not revalidated, so the review
        screen may show values whose own step would now reject them.
        """
        self._ensure_active()
        self._error = None

        if self.current_step != StepId.REVIEW:
            return False

        try:
            target = StepId(step)
        except ValueError:
            return False

        if target not in self._steps:
            return False

        self._position = self._steps.index(target)
        self._log_step_enter()
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_active(self) -> None:
        if self._record is not None:
            raise WizardCompletedError("Wizard already completed")

    def _complete(self) -> None:
        record = build_record_from_answers(self._answers, user_id=self.user_id)

        # Downstream failure propagates; the wizard and draft stay as they were
        if self.on_complete is not None:
            self.on_complete(record)

        self._record = record
        logger.info(f"Wizard completed: record {record.id} ({record.name})")

        self._session_event("completed", record.id, record.area_hectares)

        if self.drafts is not None:
            self.drafts.clear()

    def _log_step_enter(self) -> None:
        self._session_event(
            "step_enter", self.current_step.value, self._position, len(self._steps)
        )

    def _session_event(self, event: str, *args: Any) -> None:
        """Forward to the session logger. Logging problems never stop the wizard."""
        if self.session_logger is None:
            return
        try:
            getattr(self.session_logger, event)(*args)
        except Exception as e:
            logger.error(f"Session logger {event} raised: {e}")
