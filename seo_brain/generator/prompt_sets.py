"""
Prompt families selectable per campaign.

A campaign's (content_type, language) picks one PromptSet. The product
family is the printed-goods prompts in prompts.py; the service family
lives in service_prompts.py in English and Spanish.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional, Tuple

from seo_brain.models import ProductCampaignSpec

from . import service_prompts as service
from .metadata import build_seo_metadata
from .prompts import (
    COPYWRITER_SYSTEM,
    JSON_SYSTEM,
    build_benefits_prompt,
    build_faqs_prompt,
    build_hero_image_prompt,
    build_intro_prompt,
    build_main_product_image_prompt,
)


@dataclass(frozen=True)
class PromptSet:
    name: str
    language: str
    intro: Callable
    benefits: Callable
    faqs: Callable
    hero_image: Callable
    main_image: Callable
    metadata: Callable
    copywriter_system: str
    json_system: str
    recruitment: Optional[Callable] = None


PRODUCT_EN = PromptSet(
    name="product",
    language="en",
    intro=build_intro_prompt,
    benefits=build_benefits_prompt,
    faqs=build_faqs_prompt,
    hero_image=build_hero_image_prompt,
    main_image=build_main_product_image_prompt,
    metadata=build_seo_metadata,
    copywriter_system=COPYWRITER_SYSTEM,
    json_system=JSON_SYSTEM,
)

SERVICE_EN = PromptSet(
    name="service",
    language="en",
    intro=service.build_service_intro_prompt,
    benefits=service.build_service_benefits_prompt,
    faqs=service.build_service_faqs_prompt,
    hero_image=service.build_service_hero_image_prompt,
    main_image=service.build_service_main_image_prompt,
    metadata=partial(service.build_service_metadata, language="en"),
    copywriter_system=service.SERVICE_COPYWRITER_SYSTEM,
    json_system=service.SERVICE_JSON_SYSTEM,
    recruitment=service.build_recruitment_prompt,
)

SERVICE_ES = PromptSet(
    name="service",
    language="es",
    intro=service.build_service_intro_prompt_es,
    benefits=service.build_service_benefits_prompt_es,
    faqs=service.build_service_faqs_prompt_es,
    hero_image=service.build_service_hero_image_prompt,
    main_image=service.build_service_main_image_prompt,
    metadata=partial(service.build_service_metadata, language="es"),
    copywriter_system=service.SERVICE_COPYWRITER_SYSTEM_ES,
    json_system=service.SERVICE_JSON_SYSTEM_ES,
    recruitment=service.build_recruitment_prompt_es,
)

PROMPT_SETS: Dict[Tuple[str, str], PromptSet] = {
    ("product", "en"): PRODUCT_EN,
    ("service", "en"): SERVICE_EN,
    ("service", "es"): SERVICE_ES,
}


def get_prompt_set(content_type: str = "product", language: str = "en") -> PromptSet:
    """
    Look up the prompt family for a campaign.

    Raises:
        ValueError: no family for that content type and language
    """
    try:
        return PROMPT_SETS[(content_type, language)]
    except KeyError:
        supported = ", ".join(f"{c}/{l}" for c, l in PROMPT_SETS)
        raise ValueError(
            f"No prompts for content_type={content_type!r} language={language!r} "
            f"(supported: {supported})"
        ) from None


def prompt_set_for(spec: ProductCampaignSpec) -> PromptSet:
    return get_prompt_set(spec.content_type, spec.language)
