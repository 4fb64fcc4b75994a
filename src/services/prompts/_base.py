"""Base utilities for prompts module.

Contains shared helpers used across prompt modules.
"""

import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def load_system_prompt(path: Optional[Union[str, Path]], default: str = "") -> str:
    """Read a system prompt file once, stripping surrounding whitespace.

    Args:
        path: Prompt file location. None or a missing file gives ``default``.
        default: Text used when the file cannot be read.

    Returns:
        The prompt text
    """
    if not path:
        return default
    prompt_path = Path(path)
    try:
        return prompt_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Could not read system prompt {prompt_path}: {e}")
        return default
