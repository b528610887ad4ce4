"""
Output Parser for LLM Responses

Extracts the JSON object from a model response and validates it against
a pydantic schema. Models often wrap JSON in markdown fences or add a
sentence before it; both are tolerated. Anything that does not parse or
does not match the schema raises ContentValidationError, so callers
never see partial data.
"""

import json
import logging
import re
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from seo_brain.errors import ContentValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```", re.IGNORECASE)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from raw model output.

    Tries, in order: the whole response, a fenced ```json block, and the
    span from the first '{' to the last '}'.
    """
    if not text or not text.strip():
        raise ContentValidationError("Empty response", raw_output=text)

    candidates = [text.strip()]

    fenced = FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise ContentValidationError("No valid JSON object found in response", raw_output=text)


def parse_llm_json(text: str, schema: Type[T]) -> T:
    """
    Parse model output into a validated schema instance.

    Raises:
        ContentValidationError: JSON missing, malformed, or wrong shape
    """
    data = extract_json_object(text)

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.warning(f"{schema.__name__} validation failed: {e.error_count()} errors")
        raise ContentValidationError(
            f"Response does not match {schema.__name__}: {e}",
            raw_output=text,
        )
