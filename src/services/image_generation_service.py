"""Image Generation Service - Gemini Flash Image over the REST API."""

import logging
import os
import time
from typing import Any, Dict, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

NO_IMAGE_MESSAGE = "No image was generated. Try a different prompt."


class ImageGenerationServiceError(Exception):
    """Error from image generation service."""

    pass


class ImageGenerationService:
    """Generates images from a prompt, optionally anchored to reference images."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_IMAGE_MODEL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the image generation service.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY.
            model: Gemini image model name.
            client: Optional shared HTTP client (mainly for tests).
        """
        self.api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self.model = model
        # Long timeout for image generation (can take a while)
        self.client = client or httpx.AsyncClient(timeout=120.0)

    def is_configured(self) -> bool:
        """Check if a Gemini API key is configured."""
        return bool(self.api_key)

    def build_payload(
        self, prompt: str, anchor_images: Sequence[Dict[str, str]] = ()
    ) -> Dict[str, Any]:
        """Build the generateContent body: anchor images first, then the prompt."""
        parts = [
            {
                "inlineData": {
                    "mimeType": image.get("mimeType") or "image/png",
                    "data": image.get("data", ""),
                }
            }
            for image in anchor_images
        ]
        parts.append({"text": prompt})
        return {
            "contents": [{"parts": parts}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    async def generate(
        self, prompt: str, anchor_images: Sequence[Dict[str, str]] = ()
    ) -> Dict[str, Any]:
        """Generate one image.

        Args:
            prompt: Text description of the image.
            anchor_images: Reference images as ``{"mimeType", "data"}`` dicts
                with base64 data.

        Returns:
            ``{"_imageType": "generated", "mimeType", "data", "prompt"}``

        Raises:
            ImageGenerationServiceError: If the API fails or returns no image.
        """
        if not self.is_configured():
            raise ImageGenerationServiceError(
                "GEMINI_API_KEY not configured. Set it in your .env file."
            )

        url = f"{GEMINI_API_BASE}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        logger.info(
            f"Generating image with {self.model} ({len(anchor_images)} anchor image(s))"
        )
        start_time = time.time()

        try:
            response = await self.client.post(
                url, headers=headers, json=self.build_payload(prompt, anchor_images)
            )
            response.raise_for_status()
            result_data = response.json()
        except httpx.HTTPStatusError as e:
            try:
                error_detail = e.response.json().get("error", {}).get("message", str(e))
            except ValueError:
                error_detail = e.response.text or str(e)
            raise ImageGenerationServiceError(f"Gemini API error: {error_detail}")
        except httpx.TimeoutException:
            raise ImageGenerationServiceError(
                "Gemini image generation timed out. Try again."
            )
        except httpx.HTTPError as e:
            raise ImageGenerationServiceError(f"Gemini image generation failed: {e}")

        parts = []
        candidates = result_data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []

        for part in parts:
            inline_data = part.get("inlineData") or {}
            mime_type = inline_data.get("mimeType") or ""
            if mime_type.startswith("image/") and inline_data.get("data"):
                generation_time_ms = int((time.time() - start_time) * 1000)
                logger.info(f"Gemini generated an image in {generation_time_ms}ms")
                return {
                    "_imageType": "generated",
                    "mimeType": mime_type,
                    "data": inline_data["data"],
                    "prompt": prompt,
                }

        text = next((p["text"] for p in parts if p.get("text")), None)
        raise ImageGenerationServiceError(text or NO_IMAGE_MESSAGE)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
