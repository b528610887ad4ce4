"""
Output Schemas for LLM Responses

Expected shapes of every JSON response the pipeline asks for. Item counts
are exact because page templates and the schema markup assume them.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from typing_extensions import Annotated


BENEFIT_COUNT = 10
FAQ_COUNT = 15

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ============================================================================
# CITY PAGE CONTENT
# ============================================================================

class BenefitsPayload(BaseModel):
    """{"benefits": [10 strings]}"""
    benefits: List[NonEmptyStr] = Field(min_length=BENEFIT_COUNT, max_length=BENEFIT_COUNT)


class FAQItem(BaseModel):
    question: NonEmptyStr
    answer: NonEmptyStr


class FAQsPayload(BaseModel):
    """{"faqs": [15 {question, answer}]}"""
    faqs: List[FAQItem] = Field(min_length=FAQ_COUNT, max_length=FAQ_COUNT)


# ============================================================================
# WINNER PATTERN
# ============================================================================

class ContentStructure(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    avg_intro_length: float = Field(alias="avgIntroLength", ge=0)
    benefits_count: int = Field(alias="benefitsCount", ge=0)
    faq_count: int = Field(alias="faqCount", ge=0)


class WinnerPatternPayload(BaseModel):
    """Pattern the LLM extracts from the top-performing pages."""
    model_config = ConfigDict(populate_by_name=True)

    pattern_name: NonEmptyStr = Field(alias="patternName")
    content_structure: ContentStructure = Field(alias="contentStructure")
    seo_structure: Dict[str, Any] = Field(alias="seoStructure")
    conversion_elements: Dict[str, Any] = Field(alias="conversionElements")


# ============================================================================
# IMPROVEMENT OPTIONS
# ============================================================================

class DecisionOptionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: NonEmptyStr
    changes: List[str] = Field(default_factory=list)
    pros: List[NonEmptyStr] = Field(min_length=3, max_length=5)
    cons: List[NonEmptyStr] = Field(min_length=2, max_length=4)
    confidence: int = Field(ge=0, le=100)
    estimated_impact: NonEmptyStr = Field(alias="estimatedImpact")


class ImprovementOptionsPayload(BaseModel):
    """{"optionA": {...}, "optionB": {...}, "optionC": {...}}"""
    model_config = ConfigDict(populate_by_name=True)

    option_a: DecisionOptionPayload = Field(alias="optionA")
    option_b: DecisionOptionPayload = Field(alias="optionB")
    option_c: DecisionOptionPayload = Field(alias="optionC")


# ============================================================================
# TRANSLATION
# ============================================================================

class TranslationPayload(BaseModel):
    """{"translation": "...", "confidence": 0.0-1.0}"""
    translation: NonEmptyStr
    confidence: float = Field(default=0.8, ge=0, le=1)
