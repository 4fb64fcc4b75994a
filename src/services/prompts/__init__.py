"""Prompts module - system prompt loading for the chat model.

    from services.prompts import DEFAULT_CHAT_PROMPT, load_system_prompt
"""

from services.prompts._base import load_system_prompt
from services.prompts.chat import DEFAULT_CHAT_PROMPT

__all__ = [
    "load_system_prompt",
    "DEFAULT_CHAT_PROMPT",
]
