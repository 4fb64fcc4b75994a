"""Gemini function-calling loop with context-slimmed tool results.

One conversation turn is a bounded sequence of rounds. Round 1 sends the
user's message; every later round sends back the (sanitized) result of the
function call the model asked for in the previous round. The loop ends when
the model answers without a function call, when the round budget is spent,
or when the caller asked it to stop.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Sequence

from google.genai import Client, types

from models.chat import (
    ConversationTurn,
    FunctionCall,
    ModelReply,
    ToolCallRecord,
    ToolLoopResult,
    ToolResultKind,
)
from services.tool_results import classify_tool_result, sanitize_for_model

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 8

ToolExecutor = Callable[[str, Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ToolLoopConfig:
    """Per-deployment settings for the tool loop.

    The system instruction is loaded once by the caller and passed in here.
    """

    model_name: str = "gemini-2.5-flash-lite"
    system_instruction: str = ""
    max_rounds: int = DEFAULT_MAX_ROUNDS


class ChatSession(Protocol):
    """A model chat bound to one conversation turn."""

    async def send_message(
        self, text: str, images: Sequence[Dict[str, str]] = ()
    ) -> ModelReply: ...

    async def send_function_response(
        self, name: str, response: Dict[str, Any]
    ) -> ModelReply: ...


ChatSessionFactory = Callable[
    [Sequence[ConversationTurn], Sequence[Dict[str, Any]], ToolLoopConfig], ChatSession
]


def _reply_from_response(response: types.GenerateContentResponse) -> ModelReply:
    """Reduce a Gemini response to its text and first function call."""
    function_call = None
    calls = response.function_calls or []
    if calls:
        call = calls[0]
        function_call = FunctionCall(name=call.name or "", args=dict(call.args or {}))

    text_parts = []
    candidates = response.candidates or []
    if candidates and candidates[0].content and candidates[0].content.parts:
        for part in candidates[0].content.parts:
            if part.text and not part.thought:
                text_parts.append(part.text)

    return ModelReply(text="".join(text_parts), function_call=function_call)


class GeminiChatSession:
    """ChatSession backed by a google-genai async chat."""

    def __init__(
        self,
        client: Client,
        history: Sequence[ConversationTurn],
        declarations: Sequence[Dict[str, Any]],
        config: ToolLoopConfig,
    ):
        generate_config = types.GenerateContentConfig(
            tools=[types.Tool(function_declarations=list(declarations))],
            system_instruction=config.system_instruction or None,
            # The loop below runs tools itself and slims results first
            automatic_function_calling=types.AutomaticFunctionCallingConfig(
                disable=True
            ),
        )
        self._chat = client.aio.chats.create(
            model=config.model_name,
            config=generate_config,
            history=[
                types.Content(
                    role=turn.model_role,
                    parts=[types.Part.from_text(text=turn.content or "")],
                )
                for turn in history
            ],
        )

    async def send_message(
        self, text: str, images: Sequence[Dict[str, str]] = ()
    ) -> ModelReply:
        parts = [
            types.Part.from_bytes(
                data=base64.b64decode(image["data"]),
                mime_type=image.get("mimeType") or "image/png",
            )
            for image in images
            if image.get("data")
        ]
        parts.append(types.Part.from_text(text=text))
        response = await self._chat.send_message(parts)
        return _reply_from_response(response)

    async def send_function_response(
        self, name: str, response: Dict[str, Any]
    ) -> ModelReply:
        part = types.Part.from_function_response(name=name, response=response)
        reply = await self._chat.send_message(part)
        return _reply_from_response(reply)


def gemini_session_factory(client: Client) -> ChatSessionFactory:
    """Bind a google-genai client into a ChatSessionFactory."""

    def factory(
        history: Sequence[ConversationTurn],
        declarations: Sequence[Dict[str, Any]],
        config: ToolLoopConfig,
    ) -> ChatSession:
        return GeminiChatSession(client, history, declarations, config)

    return factory


def build_user_message(message: str, context_columns: Optional[Sequence[str]] = None) -> str:
    """Prefix the user's message with the loaded dataset's column names."""
    if context_columns:
        return f"[CSV columns: {', '.join(context_columns)}]\n\n{message}"
    return message


class ToolOrchestrationLoop:
    """Drives one conversation turn through up to ``max_rounds`` rounds.

    Create one loop per turn: the stop flag and accumulators belong to it.
    """

    def __init__(self, session_factory: ChatSessionFactory, config: ToolLoopConfig):
        self.session_factory = session_factory
        self.config = config
        self._stop_requested = False

    def stop(self) -> None:
        """Finish after the current round. A running tool call is not interrupted."""
        self._stop_requested = True

    async def run(
        self,
        history: Sequence[ConversationTurn],
        message: str,
        execute_tool: ToolExecutor,
        declarations: Sequence[Dict[str, Any]],
        image_parts: Sequence[Dict[str, str]] = (),
        context_columns: Optional[Sequence[str]] = None,
    ) -> ToolLoopResult:
        """Run the turn and return the final text plus every produced artifact.

        Exceptions from ``execute_tool`` propagate and end the turn.
        """
        session = self.session_factory(history, declarations, self.config)
        result = ToolLoopResult()
        pending_response: Optional[tuple] = None

        for round_number in range(1, self.config.max_rounds + 1):
            if pending_response is None:
                reply = await session.send_message(
                    build_user_message(message, context_columns), image_parts
                )
            else:
                name, payload = pending_response
                reply = await session.send_function_response(name, payload)

            result.rounds = round_number
            result.text = reply.text or ""

            call = reply.function_call
            if call is None:
                break

            logger.info(f"[Tool] round {round_number}: {call.name} {call.args}")
            raw = await execute_tool(call.name, call.args)
            kind = classify_tool_result(raw)
            result.tool_calls.append(
                ToolCallRecord(name=call.name, args=call.args, result=raw, kind=kind)
            )
            if kind in (ToolResultKind.CHART, ToolResultKind.IMAGE):
                result.charts.append(raw)
            elif kind == ToolResultKind.VIDEO_CARD:
                result.video_cards.append(raw)

            pending_response = (call.name, {"result": sanitize_for_model(raw, kind)})

            if self._stop_requested:
                logger.info(f"Tool loop stopped by caller after round {round_number}")
                break
        else:
            logger.info(
                f"Tool loop hit the {self.config.max_rounds}-round budget; "
                "returning the last available text"
            )

        return result
