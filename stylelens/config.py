"""
Configuration module for the StyleLens API
Contains logger setup and provider settings loaded from the environment
"""

import os
import logging
import tempfile
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(name: str = __name__, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up and return a logger with both file and console handlers

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file, defaults to the LOG_FILE variable

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    file_handler = logging.FileHandler(
        log_file or os.getenv("LOG_FILE", "stylelens.log"), mode="a"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


# Create the main application logger
logger = setup_logger("stylelens")


# -------------------------
# Provider Settings
# -------------------------
IMAGGA_BASE_URL = "https://api.imagga.com/v2"
GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
GROQ_MODEL = "llama-3.3-70b-versatile"
FACEPP_BASE_URL = "https://api-us.faceplusplus.com"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_IMAGE_BYTES = 2 * 1024 * 1024


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and endpoints for the upstream vision and language providers."""

    imagga_key: Optional[str] = None
    imagga_secret: Optional[str] = None
    groq_key: Optional[str] = None
    face_key: Optional[str] = None
    face_secret: Optional[str] = None
    imagga_base_url: str = IMAGGA_BASE_URL
    groq_api_url: str = GROQ_API_URL
    groq_model: str = GROQ_MODEL
    facepp_base_url: str = FACEPP_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    upload_dir: str = tempfile.gettempdir()

    @property
    def imagga_configured(self) -> bool:
        return bool(self.imagga_key and self.imagga_secret)

    @property
    def groq_configured(self) -> bool:
        return bool(self.groq_key)

    @property
    def face_configured(self) -> bool:
        return bool(self.face_key and self.face_secret)


def load_provider_settings() -> ProviderSettings:
    """Build provider settings from the current process environment."""
    return ProviderSettings(
        imagga_key=os.getenv("IMAGGA_KEY") or None,
        imagga_secret=os.getenv("IMAGGA_SECRET") or None,
        groq_key=os.getenv("GROQ_KEY") or None,
        face_key=os.getenv("FACE_KEY") or None,
        face_secret=os.getenv("FACE_SECRET") or None,
        imagga_base_url=os.getenv("IMAGGA_BASE_URL", IMAGGA_BASE_URL).rstrip("/"),
        groq_api_url=os.getenv("GROQ_API_URL", GROQ_API_URL),
        groq_model=os.getenv("GROQ_MODEL", GROQ_MODEL),
        facepp_base_url=os.getenv("FACEPP_BASE_URL", FACEPP_BASE_URL).rstrip("/"),
        timeout_seconds=float(
            os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        ),
        max_image_bytes=int(
            os.getenv("MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES))
        ),
        upload_dir=os.getenv("UPLOAD_DIR") or tempfile.gettempdir(),
    )


settings = load_provider_settings()

# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"IMAGGA credentials configured: {settings.imagga_configured}")
logger.debug(f"GROQ_KEY configured: {settings.groq_configured}")
logger.debug(f"FACE credentials configured: {settings.face_configured}")
