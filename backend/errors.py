# backend/errors.py
from typing import Dict, Type


class VisualizerError(Exception):
    """
    Base error. `code` travels over the wire so the frontend can rebuild
    the same type; `status_code` is what the backend answers with.
    """

    code = "VisualizerError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedInput(VisualizerError):
    code = "UnsupportedInput"
    status_code = 415


class MissingInput(VisualizerError):
    code = "MissingInput"
    status_code = 422


class MissingPrompt(VisualizerError):
    code = "MissingPrompt"
    status_code = 422


class NoImageInResponse(VisualizerError):
    code = "NoImageInResponse"
    status_code = 502


class UpstreamFailure(VisualizerError):
    code = "UpstreamFailure"
    status_code = 502


ERRORS_BY_CODE: Dict[str, Type[VisualizerError]] = {
    cls.code: cls
    for cls in (UnsupportedInput, MissingInput, MissingPrompt, NoImageInResponse, UpstreamFailure)
}


def error_from_code(code: str, message: str) -> VisualizerError:
    """Unknown codes fall back to UpstreamFailure."""
    return ERRORS_BY_CODE.get(code, UpstreamFailure)(message)
