"""Pydantic request/response models for the channelchat API."""

from typing import Any

from pydantic import BaseModel, Field

from models.channel import DEFAULT_MAX_VIDEOS

# =============================================================================
# Response Models
# =============================================================================


class RootResponse(BaseModel):
    """Root endpoint response."""

    message: str
    version: str

    model_config = {"json_schema_extra": {"examples": [{"message": "channelchat API", "version": "1.0.0"}]}}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "healthy"}]}}


class ChatResponse(BaseModel):
    """Result of one chat turn."""

    text: str
    charts: list[dict[str, Any]] = Field(default_factory=list)
    toolCalls: list[dict[str, Any]] = Field(default_factory=list)
    videoCard: dict[str, Any] | None = None


class GeneratedImageResponse(BaseModel):
    """Generated image as base64 data."""

    mimeType: str
    data: str


# =============================================================================
# Request Models
# =============================================================================


class ChannelIngestRequestBody(BaseModel):
    """Request body for channel ingestion.

    ``maxVideos`` is accepted as any JSON value and clamped by the service.
    """

    url: str | None = None
    maxVideos: Any = DEFAULT_MAX_VIDEOS

    model_config = {
        "json_schema_extra": {
            "examples": [{"url": "https://www.youtube.com/@veritasium", "maxVideos": 10}]
        }
    }


class ImagePart(BaseModel):
    """Inline image attached by the user."""

    mimeType: str = "image/png"
    data: str


class HistoryMessage(BaseModel):
    """Prior conversation message."""

    role: str
    content: str = ""


class ChatRequestBody(BaseModel):
    """Request body for one chat turn over loaded channel videos."""

    message: str
    history: list[HistoryMessage] = Field(default_factory=list)
    videos: list[dict[str, Any]] = Field(default_factory=list)
    imageParts: list[ImagePart] = Field(default_factory=list)
    csvColumns: list[str] | None = None
    enableImageTool: bool = False


class GenerateImageRequestBody(BaseModel):
    """Request body for direct image generation."""

    prompt: str | None = None
    anchorImages: list[ImagePart] = Field(default_factory=list)
