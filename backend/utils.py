import base64
import binascii
import datetime
import mimetypes

from .errors import UnsupportedInput


def encode_image(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_image(data_b64: str) -> bytes:
    """
    Decode base64 image data. Accepts a full data URL as well
    ("data:image/png;base64,...") and strips the prefix.
    """
    if data_b64.startswith("data:") and "," in data_b64:
        data_b64 = data_b64.split(",", 1)[1]
    try:
        return base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnsupportedInput(f"Image data is not valid base64: {e}")


def is_image_mime(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def get_timestamp() -> str:
    return datetime.datetime.now().strftime("%Y%m%d_%H%M%S")


def export_filename(prefix: str, mime_type: str, ts: str | None = None) -> str:
    """File name used when the user downloads a result, e.g. visual_20250101_120000.png"""
    ext = mimetypes.guess_extension(mime_type or "") or ".png"
    if ext == ".jpe":
        ext = ".jpg"
    return f"{prefix}_{ts or get_timestamp()}{ext}"
