import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

class Settings:
    GEMINI_API_URL: str = os.getenv(
        "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-image")

    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")

    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "300"))  # seconds
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    MAX_VIDEO_BYTES: int = int(os.getenv("MAX_VIDEO_BYTES", str(200 * 1024 * 1024)))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
