import logging
from typing import Dict, Any, Optional, Tuple

import httpx

from config.settings import settings

from .errors import NoImageInResponse, UpstreamFailure

logger = logging.getLogger(__name__)

BACKGROUND_REMOVAL_PROMPT = (
    "Segment the main subject from the background. "
    "Make the background transparent. Output a PNG file."
)


def build_payload(image_b64: str, mime_type: str, prompt: str) -> Dict[str, Any]:
    """
    Body for generateContent: image part first, then the instruction text.
    Only IMAGE output is requested.
    """
    return {
        "contents": [
            {
                "parts": [
                    {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                    {"text": prompt},
                ]
            }
        ],
        "generationConfig": {"responseModalities": ["IMAGE"]},
    }


def build_endpoint_url(model: Optional[str] = None) -> str:
    base = settings.GEMINI_API_URL.rstrip("/")
    return f"{base}/models/{model or settings.GEMINI_MODEL}:generateContent"


def extract_first_image(response: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """
    Look through the parts of the first candidate and return the first
    inline image as (base64 data, mime type), or None.
    """
    candidates = response.get("candidates") or []
    if not candidates:
        return None
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            return inline["data"], mime
    return None


def _upstream_message(r: httpx.Response) -> str:
    # Google errors look like {"error": {"code": 400, "message": "...", "status": "..."}}
    try:
        body = r.json()
        message = (body.get("error") or {}).get("message")
        if message:
            return message
    except ValueError:
        pass
    return f"HTTP {r.status_code}: {r.text[:300]}"


async def _post(client: httpx.AsyncClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": settings.GEMINI_API_KEY or "",
    }
    r = await client.post(build_endpoint_url(), json=payload, headers=headers)
    if r.status_code != 200:
        message = _upstream_message(r)
        logger.error("[GeminiClient] %s returned %s: %s", settings.GEMINI_MODEL, r.status_code, message)
        raise UpstreamFailure(message)
    try:
        return r.json()
    except ValueError as e:
        raise UpstreamFailure(f"Invalid JSON in response: {e}")


async def send_to_gemini(
    payload: Dict[str, Any], client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Send one generateContent request. Single attempt, no retry; the only
    timeout is the transport's.
    """
    try:
        if client is not None:
            return await _post(client, payload)
        async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as owned:
            return await _post(owned, payload)
    except httpx.HTTPError as e:
        logger.error("[GeminiClient] Transport error: %s", e)
        raise UpstreamFailure(str(e) or e.__class__.__name__)


async def _request_image(
    image_b64: str,
    mime_type: str,
    prompt: str,
    failure_prefix: str,
    missing_message: str,
    client: Optional[httpx.AsyncClient],
) -> Tuple[str, str]:
    payload = build_payload(image_b64, mime_type, prompt)
    logger.info("[GeminiClient] Sending %s image with prompt=%r", mime_type, prompt[:50])
    try:
        data = await send_to_gemini(payload, client=client)
    except UpstreamFailure as e:
        raise UpstreamFailure(f"{failure_prefix}: {e.message}")

    found = extract_first_image(data)
    if not found:
        logger.warning("[GeminiClient] No image part in response")
        raise NoImageInResponse(missing_message)
    logger.info("[GeminiClient] Got %s image (%d base64 chars)", found[1], len(found[0]))
    return found


async def generate_visual(
    image_b64: str, mime_type: str, prompt: str, client: Optional[httpx.AsyncClient] = None
) -> Tuple[str, str]:
    return await _request_image(
        image_b64,
        mime_type,
        prompt,
        failure_prefix="Failed to generate visual",
        missing_message="No image data found in the API response.",
        client=client,
    )


async def remove_background(
    image_b64: str, mime_type: str, client: Optional[httpx.AsyncClient] = None
) -> Tuple[str, str]:
    return await _request_image(
        image_b64,
        mime_type,
        BACKGROUND_REMOVAL_PROMPT,
        failure_prefix="Failed to remove background",
        missing_message="No image data found in the API response for background removal.",
        client=client,
    )
