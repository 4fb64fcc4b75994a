# Data models for channelchat
from .channel import (
    ChannelIngestionRequest,
    DoneEvent,
    EnrichedVideoRecord,
    ErrorEvent,
    IngestionEvent,
    ProgressEvent,
    RawPageDocument,
    TranscriptResult,
    VideoDetails,
    VideoEntryDescriptor,
    clamp_max_videos,
)
from .chat import (
    ConversationTurn,
    FunctionCall,
    ModelReply,
    ToolCallRecord,
    ToolLoopResult,
    ToolResultKind,
)

__all__ = [
    # Channel ingestion
    "ChannelIngestionRequest",
    "RawPageDocument",
    "VideoEntryDescriptor",
    "VideoDetails",
    "EnrichedVideoRecord",
    "TranscriptResult",
    "ProgressEvent",
    "DoneEvent",
    "ErrorEvent",
    "IngestionEvent",
    "clamp_max_videos",
    # Chat loop
    "ConversationTurn",
    "FunctionCall",
    "ModelReply",
    "ToolCallRecord",
    "ToolLoopResult",
    "ToolResultKind",
]
