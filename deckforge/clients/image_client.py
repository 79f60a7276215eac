"""
Image Generation Client
=======================

Turns a prompt and a style preset into an image URL.

The Vertex client runs Imagen, uploads the bytes to object storage and hands
back a signed URL, so the orchestrator never has to re-host its output.
"""

import asyncio
import secrets
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from urllib.parse import quote

from config.settings import Settings, get_settings
from deckforge.models.deck import ImageStyle
from deckforge.models.images import ImageResult
from deckforge.storage.supabase import StorageError, SupabaseObjectStorage
from deckforge.utils.logger import setup_logger
from deckforge.utils.vertex_retry import call_with_retry

logger = setup_logger(__name__)


class ImageErrorCode(str, Enum):
    MODEL_ERROR = "MODEL_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    CONTENT_POLICY = "CONTENT_POLICY"
    INVALID_REQUEST = "INVALID_REQUEST"
    NETWORK_ERROR = "NETWORK_ERROR"


class ImageError(Exception):
    """An image generation call failed."""

    def __init__(self, message: str, code: ImageErrorCode, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.cause = cause

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


STYLE_MODIFIERS = {
    ImageStyle.PHOTOREALISTIC: "Ultra-realistic photograph, high resolution, professional lighting, sharp focus",
    ImageStyle.ILLUSTRATION: "Digital illustration, clean lines, modern flat design, professional corporate style",
    ImageStyle.MINIMALIST: "Minimalist design, simple shapes, limited color palette, clean and elegant",
    ImageStyle.ISOMETRIC: "Isometric 3D illustration, clean geometric shapes, modern tech aesthetic",
    ImageStyle.EDITORIAL: "Editorial photography style, dramatic lighting, professional composition",
    ImageStyle.DEFAULT: "Professional business image, clean and modern, suitable for corporate presentations",
}


def build_styled_prompt(prompt: str, style: ImageStyle = ImageStyle.DEFAULT) -> str:
    return f"{prompt}. {STYLE_MODIFIERS[style]}. No text or watermarks."


def classify_image_error(error: BaseException) -> ImageErrorCode:
    """Map a provider exception to an ImageErrorCode from its message."""
    message = str(error).lower()

    if "safety" in message or "blocked" in message or "policy" in message:
        return ImageErrorCode.CONTENT_POLICY
    if "rate" in message or "quota" in message or "429" in message or "resource_exhausted" in message:
        return ImageErrorCode.RATE_LIMITED
    if "invalid" in message or "400" in message:
        return ImageErrorCode.INVALID_REQUEST
    if isinstance(error, (ConnectionError, TimeoutError)) or "timeout" in message or "connection" in message:
        return ImageErrorCode.NETWORK_ERROR
    return ImageErrorCode.MODEL_ERROR


class ImageClient(ABC):
    """Interface every image generation client implements."""

    @abstractmethod
    async def generate_image(self, prompt: str, style: ImageStyle = ImageStyle.DEFAULT) -> ImageResult:
        """Generate one image, or raise ImageError."""


class VertexImageClient(ImageClient):
    """Imagen on Vertex AI; results are persisted to object storage."""

    def __init__(
        self,
        storage: SupabaseObjectStorage,
        model_name: str = "imagen-3.0-generate-002",
        aspect_ratio: str = "16:9",
        max_retries: int = 2,
        signed_url_ttl: int = 7 * 24 * 60 * 60,
    ):
        from vertexai.preview.vision_models import ImageGenerationModel
        from deckforge.utils.gcp_auth import initialize_vertex_ai

        initialize_vertex_ai()

        self.storage = storage
        self.model_name = model_name
        self.aspect_ratio = aspect_ratio
        self.max_retries = max_retries
        self.signed_url_ttl = signed_url_ttl
        self._model = ImageGenerationModel.from_pretrained(model_name)
        logger.info(f"VertexImageClient initialized with model: {model_name} ({aspect_ratio})")

    def _generate_bytes(self, prompt: str) -> bytes:
        response = self._model.generate_images(
            prompt=prompt,
            number_of_images=1,
            aspect_ratio=self.aspect_ratio,
        )
        # Imagen drops filtered images instead of raising
        if not response.images:
            raise ImageError("Image generation blocked by safety filters", ImageErrorCode.CONTENT_POLICY)
        return response.images[0]._image_bytes

    async def generate_image(self, prompt: str, style: ImageStyle = ImageStyle.DEFAULT) -> ImageResult:
        full_prompt = build_styled_prompt(prompt, style)
        logger.info(f"🎨 Generating image with {self.model_name} ({style.value})")

        def retryable(error: BaseException) -> bool:
            if isinstance(error, ImageError):
                return False
            return classify_image_error(error) in (ImageErrorCode.RATE_LIMITED, ImageErrorCode.NETWORK_ERROR)

        try:
            image_bytes = await call_with_retry(
                lambda: asyncio.to_thread(self._generate_bytes, full_prompt),
                max_retries=self.max_retries,
                base_delay=4.0,
                operation_name="Imagen generate_images",
                is_retryable=retryable,
            )
        except ImageError:
            raise
        except Exception as e:
            code = classify_image_error(e)
            raise ImageError(f"Image generation failed: {e}", code, e) from e

        key = f"images/generated/{int(time.time() * 1000)}-{secrets.token_hex(4)}.png"
        try:
            await self.storage.upload(key, image_bytes, "image/png")
            url = await self.storage.signed_url(key, self.signed_url_ttl)
        except StorageError as e:
            raise ImageError(f"Could not persist generated image: {e}", ImageErrorCode.NETWORK_ERROR, e) from e

        return ImageResult(url=url, revised_prompt=full_prompt)


class MockImageClient(ImageClient):
    """Placeholder images for tests and local runs."""

    async def generate_image(self, prompt: str, style: ImageStyle = ImageStyle.DEFAULT) -> ImageResult:
        encoded = quote(prompt[:50])
        return ImageResult(
            url=f"https://placehold.co/1792x1024/e2e8f0/475569?text={encoded}",
            revised_prompt=f"[MOCK] {prompt}",
        )


def get_image_client(
    settings: Optional[Settings] = None,
    storage: Optional[SupabaseObjectStorage] = None,
) -> ImageClient:
    """
    Return the mock client when FAKE_LLM (or IMAGE_PROVIDER=mock) is set or
    no storage is configured, otherwise an Imagen client.
    """
    settings = settings or get_settings()

    if settings.use_mock_images:
        logger.info("🧪 Using MockImageClient")
        return MockImageClient()

    if storage is None and not settings.has_storage:
        logger.warning("⚠️  Supabase storage not configured, falling back to MockImageClient")
        return MockImageClient()

    return VertexImageClient(
        storage=storage or SupabaseObjectStorage(),
        model_name=settings.GCP_IMAGE_MODEL,
        aspect_ratio=settings.IMAGE_ASPECT_RATIO,
        signed_url_ttl=settings.SIGNED_URL_TTL_SECONDS,
    )
