"""
City Content Prompts

Pure functions that turn (CityProfile, ProductCampaignSpec) into LLM and
image-generation prompts. Counts in the prompts are strict: the parser
rejects anything other than 10 benefits and 15 FAQs.

Product fields (quantity, size, material, turnaround, price) are
embedded verbatim so the generated copy agrees with the campaign.
"""

import json
from typing import Any, Dict, Optional

from seo_brain.models import CityProfile, ProductCampaignSpec
from seo_brain.output.schemas import BENEFIT_COUNT, FAQ_COUNT

from .city_styles import CityStyleTable, get_city_characteristic

INTRO_WORD_COUNT = 500
MIN_LOCAL_REFERENCES = 5

COPYWRITER_SYSTEM = (
    "You are an expert local marketing copywriter for a printing company. "
    "Output ONLY the requested content, no reasoning or explanations."
)
JSON_SYSTEM = (
    "You are a printing marketing expert. Output ONLY valid JSON, no markdown."
)


def detect_product_type(product_name: str) -> str:
    """Map a product name to the noun used in image prompts."""
    name = product_name.lower()
    if "flyer" in name:
        return "flyers"
    if "business card" in name:
        return "business cards"
    if "postcard" in name:
        return "postcards"
    if "brochure" in name:
        return "brochures"
    return "printed materials"


def format_pattern_hint(pattern: Dict[str, Any]) -> str:
    """Summarize a stored winner pattern for inclusion in a regeneration prompt."""
    summary = {
        "patternName": pattern.get("pattern_name"),
        "contentStructure": pattern.get("content_structure", {}),
        "seoStructure": pattern.get("seo_structure", {}),
        "conversionElements": pattern.get("conversion_elements", {}),
    }
    return json.dumps(summary, indent=2)


def _population(city: CityProfile) -> str:
    return f"{city.population:,}" if city.population else "Major metro area"


def _first(items, index: int, fallback: str) -> str:
    return items[index] if len(items) > index else fallback


def _pattern_section(pattern_hint: Optional[str]) -> str:
    if not pattern_hint:
        return ""
    return (
        "\n\nTOP PERFORMER PATTERN (match this structure, tone and conversion elements):\n"
        f"{pattern_hint}\n"
    )


# ============================================================================
# TEXT PROMPTS
# ============================================================================

def build_intro_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """500-word, city-specific introduction in four paragraphs."""
    product = spec.product_name.lower()
    city_lower = city.name.lower()

    known_for = ", ".join(city.famous_for) or "vibrant local economy"
    industries = ", ".join(city.industries) or "diverse businesses"
    neighborhoods = ", ".join(city.neighborhoods[:3]) or "downtown area"
    venues = ", ".join(city.venues[:5]) or "various locations"
    online_line = "- Online Special Only" if spec.online_only else ""

    return f"""Write a compelling {INTRO_WORD_COUNT}-word introduction for this product page targeting customers in {city.name}, {city.state}.

PRODUCT DETAILS:
- Product: {spec.product_name}
- Quantity: {spec.quantity}
- Size: {spec.size}
- Material: {spec.material}
- Turnaround: {spec.turnaround}
- Price: {spec.price_label}
{online_line}

CITY CONTEXT:
- City: {city.name}, {city.state}
- Population: {_population(city)}
- Known for: {known_for}
- Major industries: {industries}
- Popular neighborhoods: {neighborhoods}
- Local venues: {venues}

WRITING REQUIREMENTS:
1. Length: Exactly {INTRO_WORD_COUNT} words (strict requirement)
2. Local References: Mention at least {MIN_LOCAL_REFERENCES} specific {city.name} locations, neighborhoods, or landmarks
3. Target Audience: Directly address local businesses (event promoters, contractors, real estate agents, restaurants)
4. Use Cases: Provide 3-4 specific local examples
5. Urgency: Emphasize fast {spec.turnaround} turnaround and online-only pricing
6. Natural Keywords: Include "{product}", "{product} {city_lower}", "printing {city_lower}", "fast printing", "{spec.turnaround} printing"
7. Tone: Professional but friendly, local expert voice
8. No Generic Content: Every sentence must feel specific to {city.name}

STRUCTURE:
Paragraph 1 (100 words): Hook with local relevance, introduce product
Paragraph 2 (150 words): Product specs and why they suit {city.name} businesses
Paragraph 3 (150 words): Specific use cases with local venue/neighborhood mentions
Paragraph 4 (100 words): Pricing, turnaround time, call-to-action
{_pattern_section(pattern_hint)}
OUTPUT FORMAT: Plain text, no markdown, no headings.

Write now ({INTRO_WORD_COUNT} words, {city.name}-specific):"""


def build_benefits_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactly 10 benefits as {"benefits": [...]}."""
    industries = ", ".join(city.industries) or "diverse businesses"
    venues = ", ".join(city.venues) or "local venues"
    near = _first(city.neighborhoods, 0, "downtown")
    far = _first(city.neighborhoods, 1, "the suburbs")

    return f"""Generate {BENEFIT_COUNT} compelling benefits for {spec.product_name} specifically for customers in {city.name}, {city.state}.

PRODUCT: {spec.product_name} - {spec.quantity} qty, {spec.size}, {spec.material}, {spec.turnaround}, {spec.price_label}

CITY: {city.name}, {city.state} ({_population(city)} population)
INDUSTRIES: {industries}
VENUES: {venues}

REQUIREMENTS:
- Exactly {BENEFIT_COUNT} benefits, no more and no fewer
- Each benefit must reference {city.name} specifically
- Mix practical benefits with local advantages
- Mention specific industries/venues when relevant
- Keep each benefit to 20-30 words
- Use active, compelling language
{_pattern_section(pattern_hint)}
OUTPUT FORMAT (JSON):
{{
  "benefits": [
    "Fast {spec.turnaround} delivery anywhere in {city.name}, from {near} to {far}",
    "[{BENEFIT_COUNT - 1} more benefits...]"
  ]
}}

Generate all {BENEFIT_COUNT} benefits now (JSON only):"""


def build_faqs_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactly 15 FAQs as {"faqs": [{"question", "answer"}]}."""
    zip_codes = ", ".join(city.zip_codes) or "metro area"

    return f"""Generate {FAQ_COUNT} frequently asked questions and detailed answers for {spec.product_name} in {city.name}, {city.state}.

PRODUCT: {spec.product_name}
SPECS: {spec.quantity} qty, {spec.size}, {spec.material}
TURNAROUND: {spec.turnaround}
PRICE: {spec.price_label}

CITY CONTEXT:
- Location: {city.name}, {city.state}
- Population: {_population(city)}
- ZIP Codes: {zip_codes}

FAQ CATEGORIES (3 questions each):
1. Delivery & Shipping - Specific to {city.name} locations
2. Turnaround Time - When can {city.name} businesses expect delivery
3. Customization - Design options for {city.name} target audiences
4. Pricing - Why this price, bulk options, {city.name} specials
5. Quality & Materials - Paper stock details, durability

REQUIREMENTS:
- Exactly {FAQ_COUNT} question/answer pairs
- Questions must sound like real {city.name} customer questions
- Answers must be 60-100 words, detailed and helpful
- Reference {city.name} neighborhoods, landmarks, or delivery zones
- Use natural language
{_pattern_section(pattern_hint)}
OUTPUT FORMAT (JSON):
{{
  "faqs": [
    {{
      "question": "How quickly can I get {spec.product_name} delivered in {city.name}?",
      "answer": "We offer {spec.turnaround} turnaround for {city.name} customers..."
    }}
  ]
}}

Generate all {FAQ_COUNT} FAQs now (JSON only):"""


# ============================================================================
# IMAGE PROMPTS
# ============================================================================

def build_hero_image_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    styles: Optional[CityStyleTable] = None,
) -> str:
    """City-specific hero image."""
    product_type = detect_product_type(spec.product_name)
    characteristic = get_city_characteristic(city, styles)

    return (
        f"Professional product photography of {spec.size} {product_type}, {characteristic}, "
        "studio lighting with soft shadows, high-end marketing photography, ultra sharp focus, "
        "premium paper texture visible, 4k resolution, sophisticated composition"
    )


def build_main_product_image_prompt(spec: ProductCampaignSpec) -> str:
    """City-agnostic product shot, generated once per campaign."""
    product_type = detect_product_type(spec.product_name)

    return (
        f"Professional product photography of {spec.size} {product_type} in {spec.material}, "
        "displayed fanned out on clean white surface, studio lighting with soft shadows, "
        "high-end marketing photography, ultra sharp focus, premium paper texture visible, "
        "4k resolution, minimalist composition"
    )
