"""
Tests for single city page generation.

These tests verify:
- The full stage sequence ending in a persisted, published page
- A malformed LLM answer fails the page and persists nothing
- Image failures and timeouts are reported, never raised
- Cache reuse across runs, and that invalid output is never cached
- Section regeneration for the improvement loop
"""

import asyncio
import time
from unittest.mock import patch

import pytest

from seo_brain.database import get_page, record_page_metrics, save_city_page
from seo_brain.errors import NotFoundError
from seo_brain.generator import CityPageGenerator, GenerationSettings, PageStage

from conftest import FakeImages, failed_response, faqs_json, make_llm, ok_response, route_prompt

MAIN_IMAGE = "https://blob.example.com/main.png"


@pytest.fixture
def generator(llm, images, cache):
    return CityPageGenerator(llm, images, cache=cache)


class TestGenerate:
    """Test CityPageGenerator.generate()."""

    @pytest.mark.asyncio
    async def test_generates_and_persists_page(self, generator, seattle, product_spec, campaign_id, images):
        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert result.success
        assert result.stage == PageStage.PERSISTED
        assert result.page_id == f"city-{campaign_id}-seattle-wa"
        assert result.url == "/print/premium-flyers-seattle-wa"

        page = get_page(result.page_id)
        assert page["status"] == "published"
        assert page["published"] is True
        assert page["title"] == "5000 4x6 Premium Flyers in Seattle, WA | 3-4 day | $179"
        assert page["ai_intro"].startswith("Seattle businesses move fast")
        assert len(page["ai_benefits"]) == 10
        assert len(page["faqs"]) == 15
        assert page["main_product_image_url"] == MAIN_IMAGE
        assert page["hero_image_url"].startswith("https://blob.example.com/")
        assert (page["views"], page["clicks"], page["conversions"], page["revenue"]) == (0, 0, 0, 0.0)

        faq_page = page["schema_markup"]["@graph"][2]
        assert len(faq_page["mainEntity"]) == 15

        assert "Space Needle" in images.prompts[0]

    @pytest.mark.asyncio
    async def test_malformed_faqs_fail_the_page(self, images, cache, seattle, product_spec, campaign_id):
        def responder(prompt):
            if "frequently asked questions" in prompt:
                return ok_response(faqs_json(14))
            return ok_response(route_prompt(prompt))

        generator = CityPageGenerator(make_llm(responder), images, cache=cache)
        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert not result.success
        assert result.stage == PageStage.FAILED
        assert result.last_completed_stage == PageStage.PENDING
        assert "ContentValidationError" in result.error
        assert get_page(f"city-{campaign_id}-seattle-wa") is None
        assert images.prompts == []

    @pytest.mark.asyncio
    async def test_hero_image_failure(self, llm, cache, seattle, product_spec, campaign_id):
        generator = CityPageGenerator(llm, FakeImages(fail_when=lambda prompt: True), cache=cache)

        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert not result.success
        assert result.last_completed_stage == PageStage.CONTENT_GENERATED
        assert "GenerationError" in result.error
        assert get_page(f"city-{campaign_id}-seattle-wa") is None

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self, images, seattle, product_spec, campaign_id):
        llm = make_llm()
        original = llm.analyze.side_effect

        async def slow(*args, **kwargs):
            await asyncio.sleep(5)
            return await original(*args, **kwargs)

        llm.analyze.side_effect = slow
        generator = CityPageGenerator(llm, images, settings=GenerationSettings(timeout_seconds=0.05))

        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert not result.success
        assert result.error.startswith("Timed out")
        assert "last stage: pending" in result.error

    @pytest.mark.asyncio
    async def test_slow_save_is_outside_the_timeout(self, llm, images, seattle, product_spec, campaign_id):
        def slow_save(page, publish=True):
            time.sleep(0.3)
            return save_city_page(page, publish)

        generator = CityPageGenerator(llm, images, settings=GenerationSettings(timeout_seconds=0.2))

        with patch("seo_brain.generator.city_page.repo.save_city_page", side_effect=slow_save):
            result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert result.success
        assert result.stage == PageStage.PERSISTED
        assert get_page(result.page_id) is not None

    @pytest.mark.asyncio
    async def test_llm_failure_response(self, images, seattle, product_spec, campaign_id):
        generator = CityPageGenerator(make_llm(lambda prompt: failed_response()), images)
        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert not result.success
        assert "overloaded" in result.error

    @pytest.mark.asyncio
    async def test_draft_mode(self, llm, images, seattle, product_spec, campaign_id):
        generator = CityPageGenerator(llm, images, settings=GenerationSettings(publish=False))

        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        page = get_page(result.page_id)
        assert page["status"] == "draft"
        assert page["published"] is False


class TestCaching:
    """Cache reuse across generation runs."""

    @pytest.mark.asyncio
    async def test_second_run_hits_cache_and_keeps_metrics(
        self, generator, llm, images, seattle, product_spec, campaign_id
    ):
        first = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)
        record_page_metrics(first.page_id, views=120, conversions=3, revenue=450.0)

        second = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert second.success
        assert llm.analyze.await_count == 3
        assert len(images.prompts) == 1

        page = get_page(second.page_id)
        assert page["views"] == 120
        assert page["revenue"] == 450.0

    @pytest.mark.asyncio
    async def test_invalid_output_is_not_cached(self, images, cache, fake_redis, seattle, product_spec, campaign_id):
        def bad_faqs(prompt):
            if "frequently asked questions" in prompt:
                return ok_response("Sorry, here are a few: Q1? A1.")
            return ok_response(route_prompt(prompt))

        failing = CityPageGenerator(make_llm(bad_faqs), images, cache=cache)
        assert not (await failing.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)).success
        assert len(fake_redis.store) == 2

        llm = make_llm()
        retry = CityPageGenerator(llm, images, cache=cache)
        result = await retry.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        assert result.success
        assert llm.analyze.await_count == 1
        assert "frequently asked questions" in llm.analyze.await_args.args[0]


class TestRegenerateSections:
    """Test regenerate_sections() used by the improver."""

    @pytest.mark.asyncio
    async def test_regenerates_with_pattern(self, generator, llm, seattle, product_spec, campaign_id):
        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)
        calls_before = llm.analyze.await_count

        changes = await generator.regenerate_sections(
            result.page_id, ["intro", "faqs"], pattern_hint='{"patternName": "Urgent local"}'
        )

        assert changes == [
            "Regenerated intro using winner pattern",
            "Regenerated FAQs using winner pattern",
            "Schema markup updated",
        ]
        assert llm.analyze.await_count == calls_before + 2
        prompt = llm.analyze.await_args_list[-1].args[0]
        assert "TOP PERFORMER PATTERN" in prompt

    @pytest.mark.asyncio
    async def test_full_regeneration(self, generator, seattle, product_spec, campaign_id):
        result = await generator.generate(seattle, product_spec, campaign_id, MAIN_IMAGE)

        changes = await generator.regenerate_sections(
            result.page_id, ["intro", "benefits", "faqs", "hero_image", "schema"]
        )

        assert changes == [
            "Regenerated intro",
            "Regenerated benefits section",
            "Regenerated FAQs",
            "Regenerated hero image",
            "Schema markup updated",
        ]

    @pytest.mark.asyncio
    async def test_unknown_section(self, generator):
        with pytest.raises(ValueError):
            await generator.regenerate_sections("any", ["footer"])

    @pytest.mark.asyncio
    async def test_missing_page(self, generator, db):
        with pytest.raises(NotFoundError):
            await generator.regenerate_sections("city-nope-nowhere", ["intro"])
