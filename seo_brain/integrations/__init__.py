"""
External generation backends.

- ImageGenerationClient: product and city hero images
- TokenBucket: per-backend throughput limiting
"""

from .image_client import ImageGenerationClient, ImageGenerationResult
from .rate_limit import TokenBucket

__all__ = ["ImageGenerationClient", "ImageGenerationResult", "TokenBucket"]
