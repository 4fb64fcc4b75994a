"""Service singletons and dependency injection for the channelchat API."""

from google.genai import Client

from services.channel_ingestion import ChannelIngestionService
from services.channel_page import ChannelPageFetcher
from services.image_generation_service import ImageGenerationService
from services.prompts import DEFAULT_CHAT_PROMPT, load_system_prompt
from services.tool_loop import ChatSessionFactory, ToolLoopConfig, gemini_session_factory
from services.transcript_fetcher import TranscriptFetcher
from services.video_enricher import VideoEnricher
from utils.config import load_config

# Service singletons
_ingestion_service: ChannelIngestionService | None = None
_image_gen_service: ImageGenerationService | None = None
_tool_loop_config: ToolLoopConfig | None = None
_chat_session_factory: ChatSessionFactory | None = None


def get_ingestion_service() -> ChannelIngestionService:
    """Get or create the channel ingestion service instance."""
    global _ingestion_service
    if _ingestion_service is None:
        config = load_config()
        _ingestion_service = ChannelIngestionService(
            page_fetcher=ChannelPageFetcher(timeout=config["page_timeout_seconds"]),
            enricher=VideoEnricher(
                transcript_fetcher=TranscriptFetcher(
                    binary=config["ytdlp_binary"],
                    timeout=config["transcript_timeout_seconds"],
                ),
                fetch_transcripts=config["fetch_transcripts"],
            ),
        )
    return _ingestion_service


def get_image_gen_service() -> ImageGenerationService:
    """Get or create the image generation service instance."""
    global _image_gen_service
    if _image_gen_service is None:
        config = load_config()
        _image_gen_service = ImageGenerationService(
            api_key=config.get("gemini_api_key", ""),
            model=config.get("image_model", "gemini-2.5-flash-image"),
        )
    return _image_gen_service


def get_tool_loop_config() -> ToolLoopConfig:
    """Get the tool loop config; the system prompt file is read once."""
    global _tool_loop_config
    if _tool_loop_config is None:
        config = load_config()
        _tool_loop_config = ToolLoopConfig(
            model_name=config["gemini_model"],
            system_instruction=load_system_prompt(
                config["system_prompt_file"], default=DEFAULT_CHAT_PROMPT
            ),
            max_rounds=config["max_tool_rounds"],
        )
    return _tool_loop_config


def get_chat_session_factory() -> ChatSessionFactory:
    """Get or create the Gemini chat session factory."""
    global _chat_session_factory
    if _chat_session_factory is None:
        config = load_config()
        _chat_session_factory = gemini_session_factory(
            Client(api_key=config.get("gemini_api_key") or None)
        )
    return _chat_session_factory


async def close_services() -> None:
    """Release HTTP clients held by the singletons."""
    global _ingestion_service, _image_gen_service
    if _ingestion_service is not None:
        await _ingestion_service.close()
        _ingestion_service = None
    if _image_gen_service is not None:
        await _image_gen_service.close()
        _image_gen_service = None
