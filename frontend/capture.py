# frontend/capture.py
"""
Input capture: turn whatever the user handed us (uploaded file, camera
snapshot, frame of a video) into an ImagePayload.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from io import BytesIO

import cv2
from PIL import Image, UnidentifiedImageError

from backend.errors import UnsupportedInput
from backend.utils import encode_image, is_image_mime
from config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str
    display_name: str

    @property
    def base64(self) -> str:
        return encode_image(self.data)


def is_video(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("video/")


def _check_size(data: bytes, display_name: str, limit: int) -> None:
    if not data:
        raise UnsupportedInput(f"'{display_name}' is empty.")
    if len(data) > limit:
        limit_mb = limit // (1024 * 1024)
        raise UnsupportedInput(f"'{display_name}' is larger than {limit_mb}MB.")


def payload_from_upload(name: str, mime_type: str | None, data: bytes) -> ImagePayload:
    """
    Validate an uploaded image and wrap it. The bytes are kept as-is;
    Pillow is only used to make sure they really are an image.
    """
    if not is_image_mime(mime_type):
        raise UnsupportedInput(f"Unsupported file type: {mime_type or 'unknown'}")
    _check_size(data, name, settings.MAX_UPLOAD_BYTES)
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise UnsupportedInput(f"Could not read image '{name}': {e}")
    return ImagePayload(data=data, mime_type=mime_type, display_name=name)


class _VideoFile:
    """cv2 can only open paths, so spill the bytes to a temp file."""

    def __init__(self, data: bytes, suffix: str = ".mp4"):
        self.data = data
        self.suffix = suffix
        self.path = None
        self.cap = None

    def __enter__(self) -> "cv2.VideoCapture":
        fd, self.path = tempfile.mkstemp(suffix=self.suffix)
        with os.fdopen(fd, "wb") as f:
            f.write(self.data)
        self.cap = cv2.VideoCapture(self.path)
        if not self.cap.isOpened():
            self.__exit__(None, None, None)
            raise UnsupportedInput("Cannot open video.")
        return self.cap

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self.path and os.path.exists(self.path):
            os.remove(self.path)
        self.path = None


def _suffix_for(display_name: str) -> str:
    return os.path.splitext(display_name)[1] or ".mp4"


def video_duration(data: bytes, display_name: str = "video.mp4") -> float:
    """Length in seconds, 0.0 when the container does not report it."""
    _check_size(data, display_name, settings.MAX_VIDEO_BYTES)
    with _VideoFile(data, _suffix_for(display_name)) as cap:
        fps = cap.get(cv2.CAP_PROP_FPS) or 0
        frames = cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0
    if fps <= 0 or frames <= 0:
        return 0.0
    return frames / fps


def capture_video_frame(data: bytes, display_name: str, at_seconds: float = 0.0) -> ImagePayload:
    """
    Grab the frame shown at `at_seconds` at the video's native resolution
    and encode it as PNG.
    """
    _check_size(data, display_name, settings.MAX_VIDEO_BYTES)
    with _VideoFile(data, _suffix_for(display_name)) as cap:
        if at_seconds > 0:
            cap.set(cv2.CAP_PROP_POS_MSEC, at_seconds * 1000.0)
        ok, frame = cap.read()
        if not ok or frame is None:
            # seeking past the end: fall back to the first frame
            cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ok, frame = cap.read()
    if not ok or frame is None:
        raise UnsupportedInput(f"Could not read a frame from '{display_name}'.")

    ok, buf = cv2.imencode(".png", frame)
    if not ok:
        raise UnsupportedInput("Failed to encode frame as PNG")

    stem = os.path.splitext(display_name)[0] or "frame"
    logger.info("[Capture] Frame at %.2fs from %s (%dx%d)", at_seconds, display_name, frame.shape[1], frame.shape[0])
    return ImagePayload(data=buf.tobytes(), mime_type="image/png", display_name=f"{stem}_frame.png")
