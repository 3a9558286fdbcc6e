import os
from io import BytesIO

import pytest
from PIL import Image

# backend.app refuses to import without a key
os.environ.setdefault("GEMINI_API_KEY", "test-key")

from frontend.capture import ImagePayload  # noqa: E402


def make_image_bytes(fmt: str = "PNG", size=(8, 6), color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_payload() -> ImagePayload:
    return ImagePayload(data=make_image_bytes("JPEG"), mime_type="image/jpeg", display_name="photo.jpg")
