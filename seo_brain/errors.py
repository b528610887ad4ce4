"""
Exception hierarchy for the SEO Brain pipeline.

City-level errors are caught by the batch runner and recorded per city;
only a failed main product image aborts a whole campaign.
"""


class SEOBrainError(Exception):
    """Base class for pipeline errors."""


class NotFoundError(SEOBrainError):
    """A referenced campaign, page, pattern or decision does not exist."""


class GenerationError(SEOBrainError):
    """An LLM or image generation call failed."""

    def __init__(self, message: str, service: str = None):
        super().__init__(message)
        self.service = service


class ContentValidationError(SEOBrainError):
    """LLM output could not be parsed or did not match the expected shape."""

    def __init__(self, message: str, raw_output: str = None):
        super().__init__(message)
        self.raw_output = raw_output


class ImageCompressionError(SEOBrainError):
    """Image cannot be brought under the target size ceiling."""

    def __init__(self, message: str, max_size: int = None, final_size: int = None):
        super().__init__(message)
        self.max_size = max_size
        self.final_size = final_size


class PatternExtractionError(SEOBrainError):
    """Winner pattern extraction failed (as opposed to finding no pages)."""


class DecisionStateError(SEOBrainError):
    """An improvement decision is not in a state that allows the operation."""
