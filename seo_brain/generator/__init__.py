"""City page generation: prompts, metadata, per-city pages and campaign batches."""

from .campaign import (
    BatchConfig,
    CampaignBatchRunner,
    CampaignGenerationResult,
    generate_campaign,
)
from .city_page import (
    CityPageGenerator,
    GeneratedContent,
    GenerationSettings,
    PageGenerationResult,
    PageStage,
)
from .city_styles import CityStyleTable, get_city_characteristic, load_city_styles
from .metadata import (
    SEOMetadata,
    build_page_id,
    build_schema_markup,
    build_seo_metadata,
    build_slug,
)
from .prompt_sets import PROMPT_SETS, PromptSet, get_prompt_set, prompt_set_for
from .prompts import (
    build_benefits_prompt,
    build_faqs_prompt,
    build_hero_image_prompt,
    build_intro_prompt,
    build_main_product_image_prompt,
    detect_product_type,
    format_pattern_hint,
)
from .translation import (
    TranslationCheck,
    TranslationResult,
    Translator,
    build_translation_prompt,
    validate_translation,
)

__all__ = [
    "BatchConfig",
    "CampaignBatchRunner",
    "CampaignGenerationResult",
    "generate_campaign",
    "CityPageGenerator",
    "GeneratedContent",
    "GenerationSettings",
    "PageGenerationResult",
    "PageStage",
    "CityStyleTable",
    "get_city_characteristic",
    "load_city_styles",
    "SEOMetadata",
    "build_page_id",
    "build_schema_markup",
    "build_seo_metadata",
    "build_slug",
    "PROMPT_SETS",
    "PromptSet",
    "get_prompt_set",
    "prompt_set_for",
    "build_benefits_prompt",
    "build_faqs_prompt",
    "build_hero_image_prompt",
    "build_intro_prompt",
    "build_main_product_image_prompt",
    "detect_product_type",
    "format_pattern_hint",
    "TranslationCheck",
    "TranslationResult",
    "Translator",
    "build_translation_prompt",
    "validate_translation",
]
