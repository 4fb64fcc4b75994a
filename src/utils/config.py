"""Configuration loading and validation for channelchat."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

from utils.logging import NOISY_LOGGERS

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    config = {
        # Required API keys
        "gemini_api_key": os.getenv("GEMINI_API_KEY", ""),
        # Model configurations
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
        "image_model": os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image"),
        # Chat loop
        "system_prompt_file": resolve_path(
            os.getenv("SYSTEM_PROMPT_FILE"), "prompts/prompt_chat.txt"
        ),
        "max_tool_rounds": int(os.getenv("MAX_TOOL_ROUNDS", "8")),
        # Channel ingestion
        "page_timeout_seconds": float(os.getenv("PAGE_TIMEOUT_SECONDS", "30")),
        "transcript_timeout_seconds": float(
            os.getenv("TRANSCRIPT_TIMEOUT_SECONDS", "20")
        ),
        "fetch_transcripts": os.getenv("FETCH_TRANSCRIPTS", "true").lower() == "true",
        "ytdlp_binary": os.getenv("YTDLP_BINARY", "yt-dlp"),
        # Server
        "cors_origins": [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
            ).split(",")
            if origin.strip()
        ],
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required")

    if config.get("max_tool_rounds", 0) < 1:
        errors.append("MAX_TOOL_ROUNDS must be at least 1")

    for key, env_name in (
        ("page_timeout_seconds", "PAGE_TIMEOUT_SECONDS"),
        ("transcript_timeout_seconds", "TRANSCRIPT_TIMEOUT_SECONDS"),
    ):
        if config.get(key, 0) <= 0:
            errors.append(f"{env_name} must be positive")

    return errors


def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging configuration with Rich for terminal output."""
    logging.root.handlers.clear()

    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,  # Disable markup to avoid conflicts
    )

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[rich_handler],
        format="%(message)s",
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
