"""
Onboarding API Endpoints.

Separate router that exposes the planting wizard to a presentation layer.
One WizardController per user, kept in memory until the wizard completes or
is reset; the draft store makes sessions resumable across restarts.

User identity comes from the X-User-Id header, set by the auth layer in
front of this app.
"""

import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from .answers import InvalidUpdateError, SetField, ToggleItem
from .controller import WizardCompletedError, WizardController
from .options import get_variety_suggestions, get_wizard_options, search_crops
from .payload import PlantingRecord
from .steps import StepId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])

# In-memory controllers keyed by user_id
controllers: dict[str, WizardController] = {}

# Downstream collaborator for finished records (set by the app)
_record_handler: Callable[[PlantingRecord], Any] | None = None


def set_record_handler(handler: Callable[[PlantingRecord], Any] | None) -> None:
    """Register where finished planting records are handed off."""
    global _record_handler
    _record_handler = handler


def _on_complete(record: PlantingRecord) -> None:
    if _record_handler is not None:
        _record_handler(record)
    else:
        logger.info(f"No record handler registered, record {record.id} returned to client only")


# =============================================================================
# Auth / Session
# =============================================================================


async def get_user_id(x_user_id: str | None = Header(None)) -> str:
    """Identity of the acting user, supplied by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_or_create_controller(user_id: str) -> WizardController:
    """Load the user's live session, or start one (restoring any draft)."""
    from rami.sessions import create_controller

    controller = controllers.get(user_id)
    if controller is None:
        controller = create_controller(user_id, on_complete=_on_complete)
        controllers[user_id] = controller
    return controller


async def current_controller(user_id: str = Depends(get_user_id)) -> WizardController:
    return get_or_create_controller(user_id)


def release_controller(user_id: str, controller: WizardController) -> None:
    """Forget a session and close its draft writer and session log."""
    if controllers.get(user_id) is controller:
        del controllers[user_id]
    if controller.drafts is not None:
        controller.drafts.close()
    if controller.session_logger is not None:
        controller.session_logger.close()


# =============================================================================
# Request/Response Models
# =============================================================================


class JumpRequest(BaseModel):
    step: StepId


class WizardStateResponse(BaseModel):
    """Current wizard state."""
    answers: dict
    steps: list[str]
    position: int
    current_step: str
    progress: str
    is_first: bool
    is_last: bool
    error: dict | None = None
    completed: bool = False
    record: dict | None = None
    moved: bool | None = None  # Set by navigation endpoints


def _state(controller: WizardController, moved: bool | None = None) -> WizardStateResponse:
    return WizardStateResponse(**controller.snapshot(), moved=moved)


def _run(operation: Callable[[], Any]) -> Any:
    """Translate wizard exceptions into HTTP errors."""
    try:
        return operation()
    except InvalidUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WizardCompletedError:
        raise HTTPException(
            status_code=409,
            detail="Wizard already completed. POST /onboarding/reset to start a new one.",
        )


# =============================================================================
# Endpoints: State
# =============================================================================


@router.get("/state", response_model=WizardStateResponse)
async def get_wizard_state(controller: WizardController = Depends(current_controller)):
    """Current step list, position, answers and error."""
    return _state(controller)


@router.get("/options")
async def get_options(crop_query: str = ""):
    """Choice lists for rendering; `crop_query` filters crop suggestions."""
    options = get_wizard_options()
    if crop_query:
        options["crops"] = search_crops(crop_query)
    return options


@router.get("/options/varieties")
async def get_varieties(crop: str | None = None, method: str = "seed"):
    """Variety suggestions for the seed/seedling variety steps."""
    if method not in ("seed", "seedling"):
        raise HTTPException(status_code=400, detail=f"Unknown propagation method: {method}")
    return {"varieties": get_variety_suggestions(crop, method)}


@router.get("/review")
async def get_review(controller: WizardController = Depends(current_controller)):
    """Review cards, each with the step it jumps to."""
    return {"items": [item.to_dict() for item in controller.review_items()]}


# =============================================================================
# Endpoints: Answers
# =============================================================================


@router.post("/answers/set", response_model=WizardStateResponse)
async def set_answer(
    request: SetField,
    controller: WizardController = Depends(current_controller),
):
    """Set a single answer field."""
    _run(lambda: controller.mutate(request))
    return _state(controller)


@router.post("/answers/toggle", response_model=WizardStateResponse)
async def toggle_answer(
    request: ToggleItem,
    controller: WizardController = Depends(current_controller),
):
    """Toggle an item in a multi-select answer."""
    _run(lambda: controller.mutate(request))
    return _state(controller)


# =============================================================================
# Endpoints: Navigation
# =============================================================================


@router.post("/advance", response_model=WizardStateResponse)
async def advance(
    user_id: str = Depends(get_user_id),
    controller: WizardController = Depends(current_controller),
):
    """
    Validate the current step and move forward.

    A rejected step is not an HTTP error: the response carries `error` and
    `moved=False`. On the review step a pass completes the wizard; the
    response carries the record and the session is released, so the next
    request starts a new wizard.
    """
    moved = _run(controller.advance)
    state = _state(controller, moved=moved)
    if controller.completed:
        release_controller(user_id, controller)
    return state


@router.post("/back", response_model=WizardStateResponse)
async def back(controller: WizardController = Depends(current_controller)):
    moved = _run(controller.retreat)
    return _state(controller, moved=moved)


@router.post("/jump", response_model=WizardStateResponse)
async def jump(request: JumpRequest, controller: WizardController = Depends(current_controller)):
    """Jump from the review step to an active step."""
    moved = _run(lambda: controller.jump(request.step))
    return _state(controller, moved=moved)


@router.post("/reset", response_model=WizardStateResponse)
async def reset(user_id: str = Depends(get_user_id)):
    """Discard the current session and its draft, start over."""
    from rami.sessions import open_drafts

    controller = controllers.get(user_id)
    if controller is not None:
        # Drains pending writes before the draft is deleted below
        release_controller(user_id, controller)

    # The live session may have gone memory-only, so clear through a fresh handle
    drafts = open_drafts(user_id)
    drafts.clear()
    drafts.close()

    return _state(get_or_create_controller(user_id))
