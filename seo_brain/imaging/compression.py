"""
Image Compression for API Payloads

Shrinks and re-encodes images so their base64 form fits under a target
API's request ceiling before any network call is made.

- Downscales to a maximum edge (default 1920px), never upscales
- Progressive quality reduction (80 → 30, step 10, max 10 attempts)
- Measures the base64-encoded size, which is what the APIs count
- Formats other than JPEG/PNG are normalized to JPEG
"""

import base64
import binascii
import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from seo_brain.errors import ImageCompressionError

logger = logging.getLogger(__name__)

MB = 1024 * 1024

# Request ceilings per target API (base64 bytes)
API_LIMITS = {
    "anthropic": 5 * MB,
    "google-gemini": 20 * MB,
    "google-imagen": 20 * MB,
    "openai": 20 * MB,
    "general": 10 * MB,
}

MAX_BASE64_SIZE = API_LIMITS["general"]
MAX_DIMENSION = 1920
INITIAL_QUALITY = 80
MIN_QUALITY = 30
QUALITY_STEP = 10
MAX_ATTEMPTS = 10

# Settings for the second, more aggressive pass
RETRY_INITIAL_QUALITY = 60
RETRY_MIN_QUALITY = 20

ImageInput = Union[bytes, bytearray, str, Path]


@dataclass
class CompressionOptions:
    """Options for compress_image()."""
    target_api: Optional[str] = None
    max_base64_size: Optional[int] = None  # Explicit ceiling, wins over target_api
    max_dimension: int = MAX_DIMENSION
    initial_quality: int = INITIAL_QUALITY
    min_quality: int = MIN_QUALITY
    quality_step: int = QUALITY_STEP
    max_attempts: int = MAX_ATTEMPTS

    @property
    def ceiling(self) -> int:
        """Resolved base64 size ceiling in bytes."""
        if self.max_base64_size is not None:
            return self.max_base64_size
        if self.target_api is not None:
            if self.target_api not in API_LIMITS:
                raise ValueError(f"Unknown target API: {self.target_api}")
            return API_LIMITS[self.target_api]
        return MAX_BASE64_SIZE


@dataclass
class CompressionResult:
    """Compressed image ready to embed in an API request."""
    data: bytes
    base64: str
    size_bytes: int  # Size of the base64 string
    quality: int
    width: int
    height: int
    was_compressed: bool
    format: str = "JPEG"
    attempts: int = field(default=1)

    @property
    def size_mb(self) -> str:
        return f"{self.size_bytes / MB:.2f}"


# =============================================================================
# HELPERS
# =============================================================================

def get_base64_size(value: str) -> int:
    """Size of a base64 string in bytes."""
    return len(value.encode("utf-8"))


def validate_base64_size(value: str, max_size: int = MAX_BASE64_SIZE) -> bool:
    """Check whether a base64 string fits under max_size."""
    return get_base64_size(value) <= max_size


def format_bytes(size: Optional[int]) -> str:
    """Format bytes as a human-readable string (e.g. '2.45 MB')."""
    if size is None:
        return "unknown"
    if size < 1024:
        return f"{size} B"
    if size < MB:
        return f"{size / 1024:.2f} KB"
    return f"{size / MB:.2f} MB"


def _read_input(source: ImageInput) -> bytes:
    """Normalize bytes, file paths, data URIs and base64 strings to raw bytes."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)

    if isinstance(source, Path):
        return source.read_bytes()

    if source.startswith("data:"):
        _, _, payload = source.partition(",")
        return base64.b64decode(payload)

    # Base64 JPEG payloads start with "/9j/", so only an existing file counts as a path
    if len(source) < 4096 and os.path.isfile(os.path.expanduser(source)):
        return Path(source).expanduser().read_bytes()

    try:
        return base64.b64decode(source, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageCompressionError(f"Input is neither a readable path nor valid base64: {e}")


def _open_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img
    except (UnidentifiedImageError, OSError) as e:
        raise ImageCompressionError(f"Unable to decode image: {e}")


def _target_size(width: int, height: int, max_dimension: int):
    """Downscaled size preserving aspect ratio. Never upscales."""
    if width <= max_dimension and height <= max_dimension:
        return width, height

    ratio = min(max_dimension / width, max_dimension / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def _flatten_for_jpeg(img: Image.Image) -> Image.Image:
    """Convert to a JPEG-compatible mode, compositing transparency onto white."""
    if img.mode in ("RGB", "L"):
        return img

    if img.mode in ("RGBA", "LA", "P"):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])
        return background

    return img.convert("RGB")


def _encode(img: Image.Image, output_format: str, quality: int) -> bytes:
    buffer = io.BytesIO()

    if output_format == "PNG":
        # PNG is lossless; quality maps to palette size
        colors = max(16, min(256, int(256 * quality / 100)))
        source = img if img.mode in ("RGB", "RGBA") else img.convert("RGBA")
        method = (
            Image.Quantize.FASTOCTREE if source.mode == "RGBA"
            else Image.Quantize.MEDIANCUT
        )
        source.quantize(colors=colors, method=method).save(
            buffer, format="PNG", optimize=True
        )
    else:
        img.save(
            buffer,
            format="JPEG",
            quality=quality,
            optimize=True,
            progressive=True,
        )

    return buffer.getvalue()


# =============================================================================
# MAIN COMPRESSION
# =============================================================================

def compress_image(
    source: ImageInput,
    options: Optional[CompressionOptions] = None,
) -> CompressionResult:
    """
    Compress an image so its base64 form fits under the target ceiling.

    Args:
        source: Image bytes, file path, data URI, or plain base64 string
        options: Compression options (target API or explicit ceiling)

    Returns:
        CompressionResult with the re-encoded bytes and base64 payload

    Raises:
        ImageCompressionError: input cannot be decoded, or even the minimum
            quality encoding exceeds the ceiling
    """
    options = options or CompressionOptions()
    ceiling = options.ceiling

    img = _open_image(_read_input(source))
    original_width, original_height = img.size
    output_format = "PNG" if img.format == "PNG" else "JPEG"

    width, height = _target_size(original_width, original_height, options.max_dimension)
    needs_resize = (width, height) != (original_width, original_height)

    if needs_resize:
        img = img.resize((width, height), Image.Resampling.LANCZOS)
        logger.debug(
            f"Resized image {original_width}x{original_height} -> {width}x{height}"
        )

    if output_format == "JPEG":
        img = _flatten_for_jpeg(img)

    quality = options.initial_quality
    attempts = 0
    last_size = None
    last_quality = None

    while attempts < options.max_attempts and quality >= options.min_quality:
        attempts += 1

        data = _encode(img, output_format, quality)
        encoded = base64.b64encode(data).decode("ascii")
        size = len(encoded)

        logger.debug(
            f"Compression attempt {attempts}: quality {quality}, size {format_bytes(size)}"
        )

        if size <= ceiling:
            return CompressionResult(
                data=data,
                base64=encoded,
                size_bytes=size,
                quality=quality,
                width=width,
                height=height,
                was_compressed=quality < options.initial_quality or needs_resize,
                format=output_format,
                attempts=attempts,
            )

        last_size = size
        last_quality = quality
        quality -= options.quality_step

    raise ImageCompressionError(
        f"Unable to compress image below {format_bytes(ceiling)}. "
        f"Final size: {format_bytes(last_size)} at quality {last_quality}. "
        f"Try a smaller source image or a larger size ceiling.",
        max_size=ceiling,
        final_size=last_size,
    )


def compress_with_retry(
    source: ImageInput,
    options: Optional[CompressionOptions] = None,
) -> CompressionResult:
    """
    Compress, retrying once with aggressive settings (quality 60 → 20).

    Raises ImageCompressionError if the aggressive pass also fails.
    """
    options = options or CompressionOptions()

    try:
        return compress_image(source, options)
    except ImageCompressionError as e:
        if e.final_size is None:
            raise
        logger.warning(f"Standard compression failed, retrying aggressively: {e}")

    aggressive = CompressionOptions(
        target_api=options.target_api,
        max_base64_size=options.max_base64_size,
        max_dimension=options.max_dimension,
        initial_quality=RETRY_INITIAL_QUALITY,
        min_quality=RETRY_MIN_QUALITY,
        quality_step=options.quality_step,
        max_attempts=options.max_attempts,
    )
    return compress_image(source, aggressive)
