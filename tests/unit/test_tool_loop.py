"""Unit tests for the Gemini function-calling loop."""

import pytest
from google.genai import types
from models.chat import ConversationTurn, FunctionCall, ModelReply
from services.tool_loop import (
    ToolLoopConfig,
    ToolOrchestrationLoop,
    _reply_from_response,
    build_user_message,
)


class ScriptedSession:
    """ChatSession that replays scripted replies and records what was sent."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.sent = []

    def _next(self):
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]

    async def send_message(self, text, images=()):
        self.sent.append(("message", text, list(images)))
        return self._next()

    async def send_function_response(self, name, response):
        self.sent.append(("function", name, response))
        return self._next()


def _loop(session, max_rounds=8):
    created = {}

    def factory(history, declarations, config):
        created.update(history=history, declarations=declarations, config=config)
        return session

    loop = ToolOrchestrationLoop(factory, ToolLoopConfig(max_rounds=max_rounds))
    loop.created = created
    return loop


def _call(name="plot_metric_vs_time", **args):
    return FunctionCall(name=name, args=args)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_plain_answer_takes_one_round():
    session = ScriptedSession([ModelReply(text="Just text.")])
    executed = []

    async def execute(name, args):
        executed.append(name)

    result = await _loop(session).run([], "hi", execute, declarations=[])

    assert result.text == "Just text."
    assert result.rounds == 1
    assert result.tool_calls == []
    assert executed == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_chart_is_collected_and_sanitized():
    chart = {"_chartType": "scatter", "data": [{"x": 1, "y": 2}] * 12, "metric": "view_count"}
    session = ScriptedSession(
        [ModelReply(function_call=_call(metric="view_count")), ModelReply(text="Here is the chart.")]
    )

    async def execute(name, args):
        return chart

    result = await _loop(session).run([], "plot views", execute, declarations=[{"name": "x"}])

    assert result.text == "Here is the chart."
    assert result.rounds == 2
    assert result.charts == [chart]
    assert result.video_card is None
    assert result.tool_calls[0].to_dict() == {
        "name": "plot_metric_vs_time",
        "args": {"metric": "view_count"},
        "result": chart,
    }
    kind, name, payload = session.sent[1]
    assert (kind, name) == ("function", "plot_metric_vs_time")
    assert payload == {
        "result": {"success": True, "chartGenerated": True, "chartType": "scatter", "dataPoints": 12}
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_images_go_to_charts_and_cards_to_video_cards():
    image = {"_imageType": "generated", "mimeType": "image/png", "data": "QUJD", "prompt": "p"}
    card = {"_videoType": "youtube", "title": "T", "url": "u"}
    session = ScriptedSession(
        [
            ModelReply(function_call=_call("generateImage", prompt="p")),
            ModelReply(function_call=_call("play_video", ordinal=1)),
            ModelReply(text="done"),
        ]
    )
    results = iter([image, card])

    async def execute(name, args):
        return next(results)

    result = await _loop(session).run([], "go", execute, declarations=[])

    assert result.charts == [image]
    assert result.video_cards == [card]
    assert result.video_card == card
    image_payload = session.sent[1][2]["result"]
    assert "data" not in image_payload
    assert image_payload["imageGenerated"] is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_always_calling_model_stops_after_eight_rounds():
    session = ScriptedSession(
        [ModelReply(text=f"round {n}", function_call=_call()) for n in range(1, 9)]
    )
    calls = []

    async def execute(name, args):
        calls.append(name)
        return {"value": len(calls)}

    result = await _loop(session).run([], "loop forever", execute, declarations=[])

    assert result.rounds == 8
    assert len(session.sent) == 8
    assert len(calls) == 8
    assert result.text == "round 8"
    assert [record.result for record in result.tool_calls] == [{"value": n} for n in range(1, 9)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_round_budget_is_configurable():
    session = ScriptedSession([ModelReply(function_call=_call())])

    async def execute(name, args):
        return {}

    result = await _loop(session, max_rounds=3).run([], "x", execute, declarations=[])

    assert result.rounds == 3
    assert len(session.sent) == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stop_ends_after_current_round():
    session = ScriptedSession([ModelReply(text="partial", function_call=_call())])
    loop = _loop(session)

    async def execute(name, args):
        loop.stop()
        return {"ok": True}

    result = await loop.run([], "x", execute, declarations=[])

    assert result.rounds == 1
    assert len(result.tool_calls) == 1
    assert result.text == "partial"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tool_failure_propagates():
    session = ScriptedSession([ModelReply(function_call=_call())])

    async def execute(name, args):
        raise RuntimeError("tool blew up")

    with pytest.raises(RuntimeError, match="tool blew up"):
        await _loop(session).run([], "x", execute, declarations=[])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_round_carries_message_images_and_columns():
    session = ScriptedSession([ModelReply(text="ok")])
    images = [{"mimeType": "image/jpeg", "data": "QUJD"}]
    history = [ConversationTurn(role="user", content="earlier"), ConversationTurn(role="assistant", content="reply")]

    async def execute(name, args):
        return None

    loop = _loop(session)
    await loop.run(
        history, "plot it", execute, declarations=[{"name": "d"}], image_parts=images, context_columns=["a", "b"]
    )

    assert session.sent == [("message", "[CSV columns: a, b]\n\nplot it", images)]
    assert loop.created["history"] == history
    assert loop.created["declarations"] == [{"name": "d"}]
    assert [turn.model_role for turn in history] == ["user", "model"]


@pytest.mark.unit
def test_build_user_message_without_columns():
    assert build_user_message("hello") == "hello"
    assert build_user_message("hello", []) == "hello"


@pytest.mark.unit
def test_reply_from_response_extracts_text_and_call():
    response = types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model",
                    parts=[
                        types.Part(text="Let me check. "),
                        types.Part(
                            function_call=types.FunctionCall(
                                name="compute_stats_json", args={"field": "view_count"}
                            )
                        ),
                    ],
                )
            )
        ]
    )

    reply = _reply_from_response(response)

    assert reply.text == "Let me check. "
    assert reply.function_call == FunctionCall(name="compute_stats_json", args={"field": "view_count"})


@pytest.mark.unit
def test_reply_from_empty_response():
    reply = _reply_from_response(types.GenerateContentResponse(candidates=[]))

    assert reply.text == ""
    assert reply.function_call is None
