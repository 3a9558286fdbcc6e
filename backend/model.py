# backend/model.py
from pydantic import BaseModel
from typing import Optional, Literal

ErrorCode = Literal[
    "UnsupportedInput",
    "MissingInput",
    "MissingPrompt",
    "NoImageInResponse",
    "UpstreamFailure",
]


class ImageData(BaseModel):
    data: str  # base64, no data: prefix
    mime_type: str


class GenerateRequest(BaseModel):
    image: ImageData
    prompt: str
    request_id: Optional[int] = None


class RemoveBackgroundRequest(BaseModel):
    image: ImageData
    request_id: Optional[int] = None


class ImageResult(BaseModel):
    request_id: Optional[int] = None
    image: ImageData


class ErrorDetail(BaseModel):
    error: ErrorCode
    message: str
