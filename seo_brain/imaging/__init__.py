"""Image preprocessing for size-constrained API calls."""

from .compression import (
    API_LIMITS,
    CompressionOptions,
    CompressionResult,
    compress_image,
    compress_with_retry,
    format_bytes,
    get_base64_size,
    validate_base64_size,
)

__all__ = [
    "API_LIMITS",
    "CompressionOptions",
    "CompressionResult",
    "compress_image",
    "compress_with_retry",
    "format_bytes",
    "get_base64_size",
    "validate_base64_size",
]
