"""
Tests for deterministic page building blocks.

These tests verify:
- City style lookup (exact name, feature keyword, default)
- Prompt contents for text and image generation
- SEO metadata templates
- schema.org @graph shape
"""

import json

import pytest

from seo_brain.generator import (
    CityStyleTable,
    build_benefits_prompt,
    build_faqs_prompt,
    build_hero_image_prompt,
    build_intro_prompt,
    build_main_product_image_prompt,
    build_page_id,
    build_schema_markup,
    build_seo_metadata,
    build_slug,
    get_city_characteristic,
    load_city_styles,
)
from seo_brain.generator.prompts import detect_product_type, format_pattern_hint
from seo_brain.models import CityProfile, ProductCampaignSpec


def make_city(name="Seattle", state="WA", slug="seattle-wa", **kwargs) -> CityProfile:
    defaults = {
        "id": "city-1",
        "population": 737015,
        "industries": ["technology", "aerospace"],
        "neighborhoods": ["Capitol Hill", "Ballard", "Fremont", "Queen Anne"],
        "venues": ["Pike Place Market", "Lumen Field"],
        "famous_for": ["coffee culture"],
        "zip_codes": ["98101", "98102"],
    }
    defaults.update(kwargs)
    return CityProfile(name=name, state=state, slug=slug, **defaults)


@pytest.fixture
def spec():
    return ProductCampaignSpec(
        product_name="Premium Flyers",
        quantity=5000,
        size="4x6",
        material="9pt Cardstock",
        turnaround="3-4 day",
        price=179,
        keywords=["event flyers"],
    )


# =============================================================================
# CITY STYLES
# =============================================================================

class TestCityStyles:
    """Test the hero image style table."""

    def test_bundled_table_has_curated_cities(self):
        table = load_city_styles()
        assert len(table.cities) == 18
        assert "Space Needle" in table.cities["Seattle"]

    def test_exact_city_match(self):
        assert "Space Needle" in get_city_characteristic(make_city())

    def test_state_suffix_is_ignored(self):
        city = make_city(name="Seattle, WA")
        assert "Space Needle" in get_city_characteristic(city)

    def test_feature_keyword_fallback(self):
        city = make_city(name="Santa Cruz", state="CA", slug="santa-cruz-ca", famous_for=["Beach boardwalk"])
        assert "coastal/beach aesthetic" in get_city_characteristic(city)

    def test_generic_default_mentions_state(self):
        city = make_city(name="Boise", state="ID", slug="boise-id", famous_for=["potatoes"])
        assert get_city_characteristic(city) == (
            "fanned out on clean white surface with ID map subtly visible in background"
        )

    def test_custom_table_from_file(self, tmp_path):
        path = tmp_path / "styles.json"
        path.write_text(json.dumps({
            "cities": {"Boise": "on basalt with foothills behind"},
            "features": [],
        }))

        table = CityStyleTable.from_file(path)
        city = make_city(name="Boise", state="ID", slug="boise-id")

        assert table.style_for(city) == "on basalt with foothills behind"
        assert table.style_for(make_city(name="Reno", state="NV")).endswith("NV map subtly visible in background")

    def test_custom_default_with_literal_braces(self, tmp_path):
        path = tmp_path / "styles.json"
        path.write_text(json.dumps({
            "cities": {},
            "features": [],
            "default": "on a {plain} desk with a {0} tag and {state} skyline",
        }))

        table = CityStyleTable.from_file(path)
        style = table.style_for(make_city(name="Reno", state="NV", slug="reno-nv"))

        assert style == "on a {plain} desk with a {0} tag and NV skyline"


# =============================================================================
# PROMPTS
# =============================================================================

class TestPrompts:
    """Test prompt construction."""

    @pytest.mark.parametrize("name,expected", [
        ("Premium Flyers", "flyers"),
        ("Luxury Business Cards", "business cards"),
        ("Jumbo Postcards", "postcards"),
        ("Tri-fold Brochures", "brochures"),
        ("Vinyl Banners", "printed materials"),
    ])
    def test_detect_product_type(self, name, expected):
        assert detect_product_type(name) == expected

    def test_intro_prompt(self, spec):
        prompt = build_intro_prompt(make_city(), spec)

        assert "500-word introduction" in prompt
        assert "Seattle, WA" in prompt
        assert "Population: 737,015" in prompt
        assert "Capitol Hill, Ballard, Fremont" in prompt
        assert "Queen Anne" not in prompt
        assert "Price: $179" in prompt
        assert "Online Special Only" in prompt
        assert "TOP PERFORMER PATTERN" not in prompt

    def test_intro_prompt_without_population(self, spec):
        prompt = build_intro_prompt(make_city(population=None), spec)
        assert "Population: Major metro area" in prompt

    def test_pattern_hint_is_included(self, spec):
        hint = format_pattern_hint({
            "pattern_name": "Urgent local",
            "content_structure": {"faqCount": 15},
            "seo_structure": {},
            "conversion_elements": {},
        })

        prompt = build_benefits_prompt(make_city(), spec, pattern_hint=hint)

        assert "TOP PERFORMER PATTERN" in prompt
        assert '"patternName": "Urgent local"' in prompt

    def test_benefits_prompt(self, spec):
        prompt = build_benefits_prompt(make_city(), spec)
        assert "Exactly 10 benefits" in prompt
        assert "from Capitol Hill to Ballard" in prompt

    def test_faqs_prompt(self, spec):
        prompt = build_faqs_prompt(make_city(zip_codes=[]), spec)
        assert "Exactly 15 question/answer pairs" in prompt
        assert "ZIP Codes: metro area" in prompt

    def test_hero_image_prompt(self, spec):
        prompt = build_hero_image_prompt(make_city(), spec)
        assert prompt.startswith("Professional product photography of 4x6 flyers, on rustic wooden table")
        assert "4k resolution" in prompt

    def test_main_product_image_prompt_is_city_agnostic(self, spec):
        prompt = build_main_product_image_prompt(spec)
        assert "4x6 flyers in 9pt Cardstock" in prompt
        assert "Seattle" not in prompt


# =============================================================================
# METADATA AND SCHEMA
# =============================================================================

class TestSEOMetadata:
    """Test deterministic metadata."""

    def test_slug_and_id(self, spec):
        city = make_city()
        assert build_slug(spec.product_name, city) == "premium-flyers-seattle-wa"
        assert build_slug("Flyers & Cards (Gloss)", city) == "flyers--cards-gloss-seattle-wa"
        assert build_page_id("camp-1", city) == "city-camp-1-seattle-wa"

    def test_title_description_h1(self, spec):
        meta = build_seo_metadata(make_city(), spec)

        assert meta.title == "5000 4x6 Premium Flyers in Seattle, WA | 3-4 day | $179"
        assert meta.description.startswith("Order 5000 4x6 Premium Flyers in Seattle.")
        assert "Free shipping to all WA locations." in meta.description
        assert meta.h1 == "Premium Flyers in Seattle, WA"

    def test_keywords(self, spec):
        meta = build_seo_metadata(make_city(), spec)

        assert meta.keywords[:6] == [
            "premium flyers seattle",
            "premium flyers printing seattle",
            "4x6 premium flyers",
            "3-4 day premium flyers",
            "cheap premium flyers seattle",
            "fast premium flyers wa",
        ]
        assert meta.keywords[-1] == "event flyers"

    def test_fractional_price(self, spec):
        cheap = ProductCampaignSpec(
            product_name="Postcards", quantity=100, size="4x6",
            material="14pt", turnaround="2 day", price=24.99,
        )
        assert build_seo_metadata(make_city(), cheap).title.endswith("| $24.99")


class TestSchemaMarkup:
    """Test the JSON-LD graph."""

    def test_graph_shape(self, spec):
        faqs = [{"question": "How fast?", "answer": "3-4 days."}]
        schema = build_schema_markup(make_city(), spec, faqs, "premium-flyers-seattle-wa")

        assert schema["@context"] == "https://schema.org"
        product, business, faq_page = schema["@graph"]

        assert product["@type"] == "Product"
        assert product["name"] == "Premium Flyers - Seattle, WA"
        assert product["description"] == "5000 4x6 Premium Flyers in 9pt Cardstock"
        offer = product["offers"]
        assert offer["price"] == 179
        assert offer["priceCurrency"] == "USD"
        assert offer["availability"] == "https://schema.org/InStock"
        assert offer["url"] == "https://gangrunprinting.com/print/premium-flyers-seattle-wa"
        assert offer["areaServed"]["containedIn"] == {"@type": "State", "name": "WA"}

        assert business["@type"] == "LocalBusiness"
        assert business["name"] == "GangRun Printing"
        assert business["areaServed"] == {"@type": "City", "name": "Seattle", "addressRegion": "WA"}

        assert faq_page["@type"] == "FAQPage"
        assert faq_page["mainEntity"] == [{
            "@type": "Question",
            "name": "How fast?",
            "acceptedAnswer": {"@type": "Answer", "text": "3-4 days."},
        }]

    def test_custom_site(self, spec):
        schema = build_schema_markup(
            make_city(), spec, [], "premium-flyers-seattle-wa",
            site_url="https://print.example.com/",
            business_name="Example Print",
            path_prefix="/local",
        )
        product, business, faq_page = schema["@graph"]

        assert product["offers"]["url"] == "https://print.example.com/local/premium-flyers-seattle-wa"
        assert business["name"] == "Example Print"
        assert faq_page["mainEntity"] == []
