"""
Image Generation API Client

Talks to the image generation service that renders product and city
hero images and uploads them to blob storage.

Request:  POST {base_url}/generate
          {"prompt": ..., "aspectRatio": "4:3", "name": ..., "referenceImage": <base64>?}
Response: {"success": true, "imageUrl": "https://..."}
          {"success": false, "error": "..."}
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from seo_brain.integrations.rate_limit import TokenBucket

logger = logging.getLogger(__name__)


@dataclass
class ImageGenerationResult:
    """Outcome of one image generation request."""
    success: bool
    image_url: Optional[str] = None
    error: Optional[str] = None


class ImageGenerationClient:
    """
    Async client for the image generation service.

    Usage:
        async with ImageGenerationClient("https://images.internal") as client:
            result = await client.generate("Professional product photo...", name="flyers")
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        rate_limiter: Optional[TokenBucket] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize image generation client.

        Args:
            base_url: Service base URL
            api_key: Bearer token (optional)
            timeout: Request timeout in seconds
            rate_limiter: Token bucket shared by all callers of this backend
            http_client: Pre-built httpx client (tests inject a mock transport)
        """
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self.rate_limiter = rate_limiter
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str = "4:3",
        name: Optional[str] = None,
        reference_image: Optional[str] = None,
    ) -> ImageGenerationResult:
        """
        Generate an image and return its public URL.

        Args:
            prompt: Image description
            aspect_ratio: One of 1:1, 3:4, 4:3, 9:16, 16:9
            name: Logical name used for the stored file
            reference_image: Optional base64 reference image (already size-checked)

        Returns:
            ImageGenerationResult; transport and API errors are reported
            as success=False rather than raised
        """
        payload = {"prompt": prompt, "aspectRatio": aspect_ratio}
        if name:
            payload["name"] = name
        if reference_image:
            payload["referenceImage"] = reference_image

        if self.rate_limiter:
            await self.rate_limiter.acquire()

        try:
            response = await self._client.post("/generate", json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"Image generation timed out for {name}: {e}")
            return ImageGenerationResult(success=False, error=f"Request timed out: {e}")
        except httpx.RequestError as e:
            logger.error(f"Image generation request failed for {name}: {e}")
            return ImageGenerationResult(success=False, error=f"Request failed: {e}")

        if response.status_code >= 400:
            logger.error(f"Image API error {response.status_code} for {name}")
            return ImageGenerationResult(
                success=False,
                error=f"API error: {response.status_code}",
            )

        try:
            data = response.json()
        except ValueError:
            return ImageGenerationResult(success=False, error="Invalid JSON response")

        image_url = data.get("imageUrl")
        if not data.get("success") or not image_url:
            return ImageGenerationResult(
                success=False,
                error=data.get("error") or "Image generation failed",
            )

        logger.info(f"Generated image {name}: {image_url}")
        return ImageGenerationResult(success=True, image_url=image_url)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
