# backend/app.py

import logging

from fastapi import FastAPI, HTTPException

from config.settings import settings, setup_logging
from .errors import VisualizerError, MissingInput, MissingPrompt, UnsupportedInput
from .gemini_client import generate_visual, remove_background
from .model import (
    ErrorDetail,
    GenerateRequest,
    ImageData,
    ImageResult,
    RemoveBackgroundRequest,
)
from .utils import decode_image, encode_image, is_image_mime

# No key -> no service
if not settings.GEMINI_API_KEY:
    raise RuntimeError("GEMINI_API_KEY environment variable not set")

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Product Visualizer Service")


def to_http_error(err: VisualizerError) -> HTTPException:
    return HTTPException(
        status_code=err.status_code,
        detail=ErrorDetail(error=err.code, message=err.message).model_dump(),
    )


def validate_image(image: ImageData) -> str:
    """Check the image and return plain base64 (data URL prefix removed)."""
    if not image.data:
        raise MissingInput("Please upload an image.")
    if not is_image_mime(image.mime_type):
        raise UnsupportedInput(f"Unsupported file type: {image.mime_type or 'unknown'}")
    raw = decode_image(image.data)
    if not raw:
        raise MissingInput("Please upload an image.")
    return encode_image(raw)


@app.get("/health")
async def health():
    return {"status": "ok", "model": settings.GEMINI_MODEL}


@app.post("/generate", response_model=ImageResult)
async def generate(req: GenerateRequest):
    try:
        image_b64 = validate_image(req.image)
        if not req.prompt.strip():
            raise MissingPrompt("Please provide a prompt.")
        data, mime = await generate_visual(image_b64, req.image.mime_type, req.prompt)
    except VisualizerError as e:
        logger.warning("[API] /generate request_id=%s failed: %s", req.request_id, e.message)
        raise to_http_error(e)

    return ImageResult(request_id=req.request_id, image=ImageData(data=data, mime_type=mime))


@app.post("/remove-background", response_model=ImageResult)
async def remove_background_endpoint(req: RemoveBackgroundRequest):
    try:
        image_b64 = validate_image(req.image)
        data, mime = await remove_background(image_b64, req.image.mime_type)
    except VisualizerError as e:
        logger.warning("[API] /remove-background request_id=%s failed: %s", req.request_id, e.message)
        raise to_http_error(e)

    return ImageResult(request_id=req.request_id, image=ImageData(data=data, mime_type=mime))
