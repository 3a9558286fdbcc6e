# frontend/session.py
"""
Per-tab working state of the UI and the transitions that act on it.

Each generation / background removal goes Idle -> Requesting ->
Succeeded | Failed. Every request gets an id from a counter; a completion
whose id is not the pending one is stale and is dropped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from backend.errors import VisualizerError

from .capture import ImagePayload
from .composer import GenerationRequest, build_generation_request
from .media import MarketingMedium, get_medium

logger = logging.getLogger(__name__)

GenerateCall = Callable[[GenerationRequest, int], ImagePayload]
RemoveBackgroundCall = Callable[[ImagePayload, int], ImagePayload]


@dataclass
class SessionState:
    image: Optional[ImagePayload] = None
    selected_medium: Optional[MarketingMedium] = None
    prompt: str = ""
    prompt_edited: bool = False
    aspect_ratio: Optional[str] = None
    generated_image: Optional[ImagePayload] = None
    is_loading: bool = False
    error: Optional[str] = None
    # undo buffer for background removal
    saved_image: Optional[ImagePayload] = None
    background_removed: bool = False
    request_seq: int = 0
    pending_request: Optional[int] = None
    pending_kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        def describe(p: Optional[ImagePayload]):
            if p is None:
                return None
            return {"display_name": p.display_name, "mime_type": p.mime_type, "size": len(p.data)}

        return {
            "image": describe(self.image),
            "selected_medium": self.selected_medium.value if self.selected_medium else None,
            "prompt": self.prompt,
            "prompt_edited": self.prompt_edited,
            "aspect_ratio": self.aspect_ratio,
            "generated_image": describe(self.generated_image),
            "is_loading": self.is_loading,
            "error": self.error,
            "saved_image": describe(self.saved_image),
            "background_removed": self.background_removed,
            "request_seq": self.request_seq,
            "pending_request": self.pending_request,
        }

    @property
    def can_undo(self) -> bool:
        return self.background_removed and self.saved_image is not None


def load_image(state: SessionState, payload: ImagePayload) -> None:
    """New input invalidates everything derived from the previous one."""
    state.image = payload
    state.selected_medium = None
    state.prompt = ""
    state.prompt_edited = False
    state.generated_image = None
    state.error = None
    state.saved_image = None
    state.background_removed = False
    # whatever is still in flight belongs to the old image
    state.pending_request = None
    state.pending_kind = None
    state.is_loading = False


def select_medium(state: SessionState, medium_id) -> None:
    medium = get_medium(medium_id)
    if medium is None:
        return
    state.selected_medium = medium.id
    # text the user typed survives a medium switch
    if state.prompt_edited and state.prompt.strip():
        return
    state.prompt = medium.default_prompt
    state.prompt_edited = False


def edit_prompt(state: SessionState, text: str) -> None:
    state.prompt = text
    # clearing the box hands the prompt back to the medium templates
    state.prompt_edited = bool(text.strip())


def select_aspect_ratio(state: SessionState, aspect_ratio: Optional[str]) -> None:
    state.aspect_ratio = aspect_ratio or None


def set_error(state: SessionState, message: str) -> None:
    state.error = message


def begin_request(state: SessionState, kind: str) -> int:
    state.request_seq += 1
    state.pending_request = state.request_seq
    state.pending_kind = kind
    state.is_loading = True
    state.error = None
    return state.request_seq


def _is_current(state: SessionState, request_id: int) -> bool:
    if state.pending_request != request_id:
        logger.info("[Session] Dropping stale response for request %s (pending=%s)",
                    request_id, state.pending_request)
        return False
    return True


def _finish(state: SessionState) -> None:
    state.pending_request = None
    state.pending_kind = None
    state.is_loading = False


def complete_generation(state: SessionState, request_id: int, image: ImagePayload) -> bool:
    if not _is_current(state, request_id):
        return False
    state.generated_image = image
    state.error = None
    # the working image has been used, undo no longer applies
    state.saved_image = None
    state.background_removed = False
    _finish(state)
    return True


def complete_background_removal(state: SessionState, request_id: int, image: ImagePayload) -> bool:
    if not _is_current(state, request_id):
        return False
    state.image = image
    state.background_removed = True
    state.error = None
    _finish(state)
    return True


def fail_request(state: SessionState, request_id: int, message: str) -> bool:
    if not _is_current(state, request_id):
        return False
    if state.pending_kind == "remove_background":
        state.saved_image = None
        state.background_removed = False
    state.error = message or "An unexpected error occurred."
    _finish(state)
    return True


def undo_background_removal(state: SessionState) -> bool:
    if not state.can_undo:
        return False
    state.image = state.saved_image
    state.saved_image = None
    state.background_removed = False
    return True


def generate(state: SessionState, call: GenerateCall) -> bool:
    """
    Compose a request from the state and run it through `call`.
    Returns True when a new generated image was stored.
    """
    if state.is_loading:
        return False
    try:
        request = build_generation_request(state)
    except VisualizerError as e:
        state.error = e.message
        return False

    request_id = begin_request(state, "generate")
    try:
        result = call(request, request_id)
    except VisualizerError as e:
        fail_request(state, request_id, e.message)
        return False
    except Exception as e:
        logger.exception("[Session] generate request %s failed", request_id)
        fail_request(state, request_id, str(e) or "An unexpected error occurred.")
        return False
    return complete_generation(state, request_id, result)


def remove_background(state: SessionState, call: RemoveBackgroundCall) -> bool:
    if state.is_loading:
        return False
    if state.image is None:
        state.error = "Please upload an image first."
        return False

    original = state.image
    request_id = begin_request(state, "remove_background")
    state.saved_image = original
    state.background_removed = False
    try:
        result = call(original, request_id)
    except VisualizerError as e:
        fail_request(state, request_id, e.message)
        return False
    except Exception as e:
        logger.exception("[Session] remove_background request %s failed", request_id)
        fail_request(state, request_id, str(e) or "An unexpected error occurred.")
        return False
    return complete_background_removal(state, request_id, result)
