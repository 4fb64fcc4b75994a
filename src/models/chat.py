"""Data models for the function-calling chat loop."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ToolResultKind(str, Enum):
    """Classification of a raw tool result."""

    CHART = "chart"
    IMAGE = "image"
    VIDEO_CARD = "video_card"
    DATA = "data"


@dataclass
class ConversationTurn:
    """One prior message of the conversation."""

    role: str  # "user" or "model"
    content: str = ""

    @property
    def model_role(self) -> str:
        """Role name understood by Gemini (anything but user is the model)."""
        return "user" if self.role == "user" else "model"


@dataclass
class FunctionCall:
    """A function-call request returned by the model."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelReply:
    """The parts of a model response the loop cares about."""

    text: str = ""
    function_call: Optional[FunctionCall] = None


@dataclass(frozen=True)
class ToolCallRecord:
    """A single executed tool call within one conversation turn."""

    name: str
    args: Dict[str, Any]
    result: Any
    kind: ToolResultKind

    def to_dict(self) -> dict:
        return {"name": self.name, "args": self.args, "result": self.result}


@dataclass
class ToolLoopResult:
    """Everything a conversation turn produced."""

    text: str = ""
    charts: List[Dict[str, Any]] = field(default_factory=list)
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    video_cards: List[Dict[str, Any]] = field(default_factory=list)
    rounds: int = 0

    @property
    def video_card(self) -> Optional[Dict[str, Any]]:
        """First video card produced, if any."""
        return self.video_cards[0] if self.video_cards else None
