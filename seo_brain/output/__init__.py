"""Parsing and validation of structured LLM output."""

from .parser import extract_json_object, parse_llm_json
from .schemas import (
    BENEFIT_COUNT,
    FAQ_COUNT,
    BenefitsPayload,
    ContentStructure,
    DecisionOptionPayload,
    FAQItem,
    FAQsPayload,
    ImprovementOptionsPayload,
    TranslationPayload,
    WinnerPatternPayload,
)

__all__ = [
    "extract_json_object",
    "parse_llm_json",
    "BENEFIT_COUNT",
    "FAQ_COUNT",
    "BenefitsPayload",
    "ContentStructure",
    "DecisionOptionPayload",
    "FAQItem",
    "FAQsPayload",
    "ImprovementOptionsPayload",
    "TranslationPayload",
    "WinnerPatternPayload",
]
