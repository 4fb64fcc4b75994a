"""Image generation routes (Gemini Flash Image)."""

import logging

from api.dependencies import get_image_gen_service
from api.schemas import GenerateImageRequestBody, GeneratedImageResponse
from fastapi import APIRouter, HTTPException
from services.image_generation_service import ImageGenerationServiceError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Image Generation"])


@router.post("/api/generate-image", response_model=GeneratedImageResponse)
async def generate_image(body: GenerateImageRequestBody) -> GeneratedImageResponse:
    """Generate an image from a prompt and optional anchor images."""
    if not body.prompt:
        raise HTTPException(status_code=400, detail="prompt is required")

    service = get_image_gen_service()
    try:
        result = await service.generate(
            body.prompt, [image.model_dump() for image in body.anchorImages]
        )
    except ImageGenerationServiceError as e:
        logger.error(f"Image generation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return GeneratedImageResponse(mimeType=result["mimeType"], data=result["data"])
