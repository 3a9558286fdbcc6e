# frontend/composer.py

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from backend.errors import MissingInput, MissingPrompt

from .capture import ImagePayload
from .media import get_medium

if TYPE_CHECKING:
    from .session import SessionState


@dataclass(frozen=True)
class GenerationRequest:
    image: ImagePayload
    prompt: str
    aspect_ratio: Optional[str] = None

    @property
    def instruction(self) -> str:
        """Text actually sent to the model: prompt + aspect ratio hint."""
        return self.prompt + aspect_ratio_suffix(self.aspect_ratio)


def aspect_ratio_suffix(aspect_ratio: Optional[str]) -> str:
    # The model takes only text + image, so the ratio goes into the prompt.
    if not aspect_ratio:
        return ""
    return f" The final image must have a {aspect_ratio} aspect ratio."


def resolve_prompt(state: "SessionState") -> str:
    """
    User text wins if it is not blank, otherwise the default prompt of
    the selected medium, otherwise "".
    """
    if state.prompt and state.prompt.strip():
        return state.prompt.strip()
    medium = get_medium(state.selected_medium) if state.selected_medium else None
    return medium.default_prompt if medium else ""


def build_generation_request(state: "SessionState") -> GenerationRequest:
    if state.image is None:
        raise MissingInput("Please upload an image and provide a prompt.")
    prompt = resolve_prompt(state)
    if not prompt:
        raise MissingPrompt("Please upload an image and provide a prompt.")
    return GenerationRequest(image=state.image, prompt=prompt, aspect_ratio=state.aspect_ratio)
