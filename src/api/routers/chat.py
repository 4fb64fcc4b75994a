"""Chat routes: one tool-calling conversation turn over loaded channel videos."""

import logging

from api.dependencies import (
    get_chat_session_factory,
    get_image_gen_service,
    get_tool_loop_config,
)
from api.schemas import ChatRequestBody, ChatResponse
from fastapi import APIRouter, HTTPException
from models.chat import ConversationTurn
from services.channel_tools import (
    JSON_DATA_TOOL_DECLARATIONS,
    JSON_TOOL_DECLARATIONS,
    ChannelToolExecutor,
)
from services.tool_loop import ToolOrchestrationLoop

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.post("/api/chat", response_model=ChatResponse)
async def chat(body: ChatRequestBody) -> ChatResponse:
    """Run one conversation turn and return text plus produced artifacts."""
    image_parts = [part.model_dump() for part in body.imageParts]
    executor = ChannelToolExecutor(
        body.videos,
        image_service=get_image_gen_service(),
        anchor_images=image_parts,
    )
    declarations = JSON_TOOL_DECLARATIONS if body.enableImageTool else JSON_DATA_TOOL_DECLARATIONS
    loop = ToolOrchestrationLoop(get_chat_session_factory(), get_tool_loop_config())

    try:
        result = await loop.run(
            history=[ConversationTurn(role=m.role, content=m.content) for m in body.history],
            message=body.message,
            execute_tool=executor.execute,
            declarations=declarations,
            image_parts=image_parts,
            context_columns=body.csvColumns,
        )
    except Exception as e:
        logger.exception(f"Chat turn failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(
        f"Chat turn finished in {result.rounds} round(s) with {len(result.tool_calls)} tool call(s)"
    )
    return ChatResponse(
        text=result.text,
        charts=result.charts,
        toolCalls=[call.to_dict() for call in result.tool_calls],
        videoCard=result.video_card,
    )
