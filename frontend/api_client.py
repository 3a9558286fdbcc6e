import logging
from typing import Any, Dict, Optional

import requests

from backend.errors import UpstreamFailure, VisualizerError, error_from_code
from backend.utils import decode_image
from config.settings import settings

from .capture import ImagePayload
from .composer import GenerationRequest

logger = logging.getLogger(__name__)


def _image_json(image: ImagePayload) -> Dict[str, str]:
    return {"data": image.base64, "mime_type": image.mime_type}


def _error_from_response(resp: requests.Response) -> VisualizerError:
    """Rebuild the backend's typed error from {"detail": {"error", "message"}}."""
    try:
        detail = resp.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, dict) and detail.get("error"):
        return error_from_code(detail["error"], detail.get("message") or "")
    if isinstance(detail, str):
        return UpstreamFailure(detail)
    return UpstreamFailure(f"Backend returned {resp.status_code}: {resp.text[:300]}")


def _post_image(path: str, payload: Dict[str, Any], display_name: str, timeout: Optional[float]) -> ImagePayload:
    url = f"{settings.BACKEND_URL.rstrip('/')}{path}"
    try:
        resp = requests.post(url, json=payload, timeout=timeout or settings.REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.error("[ApiClient] POST %s failed: %s", url, e)
        raise UpstreamFailure(f"Could not reach backend: {e}")

    if resp.status_code != 200:
        err = _error_from_response(resp)
        logger.warning("[ApiClient] POST %s -> %s %s", url, resp.status_code, err.code)
        raise err

    try:
        image = resp.json()["image"]
        data_b64 = image["data"]
    except (ValueError, KeyError, TypeError) as e:
        logger.error("[ApiClient] POST %s returned an unusable body: %r", url, e)
        raise UpstreamFailure(f"Invalid response from backend: {e!r}")
    return ImagePayload(
        data=decode_image(data_b64),
        mime_type=image.get("mime_type") or "image/png",
        display_name=display_name,
    )


def call_generate(request: GenerationRequest, request_id: int, timeout: Optional[float] = None) -> ImagePayload:
    """POST /generate -> generated ImagePayload"""
    payload = {
        "image": _image_json(request.image),
        "prompt": request.instruction,
        "request_id": request_id,
    }
    return _post_image("/generate", payload, "generated_visual.png", timeout)


def call_remove_background(image: ImagePayload, request_id: int, timeout: Optional[float] = None) -> ImagePayload:
    """POST /remove-background -> image with the background removed"""
    payload = {"image": _image_json(image), "request_id": request_id}
    stem = image.display_name.rsplit(".", 1)[0] or "image"
    return _post_image("/remove-background", payload, f"{stem}_no_bg.png", timeout)
