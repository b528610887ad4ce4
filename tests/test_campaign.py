"""
Tests for campaign batch generation.

These tests verify:
- Every city is attempted and counted exactly once
- One city's failure never affects the rest of its batch
- A failed main product image aborts the campaign before any city runs
- Final campaign status (optimizing only when every city succeeded)
- Reference image compression before the main image request
"""

import base64
import io
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image

from seo_brain.database import create_campaign, get_campaign, get_page, list_campaign_pages
from seo_brain.generator import (
    BatchConfig,
    CampaignBatchRunner,
    CityPageGenerator,
    generate_campaign,
)
from seo_brain.models import ProductCampaignSpec

from conftest import FakeImages, make_llm, ok_response, route_prompt


def runner_for(llm, images, cache=None, **config) -> CampaignBatchRunner:
    generator = CityPageGenerator(llm, images, cache=cache)
    return CampaignBatchRunner(generator, BatchConfig(**config))


class TestGenerateCampaign:
    """Test CampaignBatchRunner.generate_campaign()."""

    @pytest.mark.asyncio
    async def test_all_cities_succeed(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images, target_city_count=200, batch_size=2)

        result = await runner.generate_campaign(campaign_id)

        assert result.success
        assert result.error is None
        assert (result.generated, result.failed) == (3, 0)
        assert result.target_city_count == 3
        assert result.status == "optimizing"
        assert [r.city_slug for r in result.results] == ["seattle-wa", "reno-nv", "boise-id"]

        campaign = get_campaign(campaign_id)
        assert campaign["status"] == "optimizing"
        assert campaign["cities_generated"] == 3
        assert campaign["cities_failed"] == 0
        assert campaign["main_product_image_url"] == result.main_product_image_url
        assert campaign["generation_completed_at"] is not None

        pages = list_campaign_pages(campaign_id)
        assert len(pages) == 3
        assert {p["main_product_image_url"] for p in pages} == {result.main_product_image_url}

    @pytest.mark.asyncio
    async def test_target_city_count_limits_cities(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images, target_city_count=2)

        result = await runner.generate_campaign(campaign_id)

        assert result.generated == 2
        assert {r.city_slug for r in result.results} == {"seattle-wa", "reno-nv"}

    @pytest.mark.asyncio
    async def test_one_city_failure_is_isolated(self, llm, cities, campaign_id):
        images = FakeImages(fail_when=lambda prompt: "Space Needle" in prompt)
        runner = runner_for(llm, images, batch_size=10)

        result = await runner.generate_campaign(campaign_id)

        assert result.success
        assert (result.generated, result.failed) == (2, 1)
        assert result.generated + result.failed == 3
        assert result.status == "generating"

        failed = [r for r in result.results if not r.success]
        assert [r.city_slug for r in failed] == ["seattle-wa"]

        campaign = get_campaign(campaign_id)
        assert campaign["status"] == "generating"
        assert campaign["cities_failed"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_in_generate_is_contained(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images)
        original = runner.generator.generate

        async def flaky(city, *args):
            if city.slug == "reno-nv":
                raise RuntimeError("worker crashed")
            return await original(city, *args)

        with patch.object(runner.generator, "generate", side_effect=flaky):
            result = await runner.generate_campaign(campaign_id)

        assert (result.generated, result.failed) == (2, 1)
        crashed = next(r for r in result.results if r.city_slug == "reno-nv")
        assert "worker crashed" in crashed.error

    @pytest.mark.asyncio
    async def test_main_image_failure_aborts(self, llm, cities, campaign_id):
        images = FakeImages(fail_when=lambda prompt: "minimalist composition" in prompt)
        runner = runner_for(llm, images)

        result = await runner.generate_campaign(campaign_id)

        assert not result.success
        assert result.status == "failed"
        assert result.generated == 0
        assert result.failed == 3
        assert "Main product image failed" in result.error
        assert llm.analyze.await_count == 0
        assert list_campaign_pages(campaign_id) == []
        assert get_campaign(campaign_id)["status"] == "failed"

    @pytest.mark.asyncio
    async def test_malformed_faq_json_for_one_city_is_isolated(self, images, cities, campaign_id):
        def responder(prompt):
            if "frequently asked questions" in prompt and "Seattle, WA" in prompt:
                return ok_response('{"faqs": [{"question": "Do you deliver to')
            return ok_response(route_prompt(prompt))

        runner = runner_for(make_llm(responder), images, batch_size=10)

        result = await runner.generate_campaign(campaign_id)

        assert (result.generated, result.failed) == (2, 1)
        assert result.status == "generating"

        seattle = next(r for r in result.results if r.city_slug == "seattle-wa")
        assert not seattle.success
        assert "ContentValidationError" in seattle.error
        assert seattle.last_completed_stage.value == "pending"

        assert sorted(p["slug"] for p in list_campaign_pages(campaign_id)) == [
            "premium-flyers-boise-id",
            "premium-flyers-reno-nv",
        ]
        assert get_page(f"city-{campaign_id}-seattle-wa") is None

    @pytest.mark.asyncio
    async def test_unexpected_main_image_error_fails_campaign(self, llm, cities, campaign_id):
        class CrashingImages(FakeImages):
            async def generate(self, prompt, **kwargs):
                raise RuntimeError("unexpected payload shape None")

        runner = runner_for(llm, CrashingImages())

        result = await runner.generate_campaign(campaign_id)

        assert not result.success
        assert result.status == "failed"
        assert "unexpected payload shape" in result.error
        assert llm.analyze.await_count == 0

        campaign = get_campaign(campaign_id)
        assert campaign["status"] == "failed"
        assert campaign["generation_completed_at"] is not None

    @pytest.mark.asyncio
    async def test_error_after_main_image_fails_campaign(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images)

        with patch(
            "seo_brain.generator.campaign.repo.set_main_product_image",
            side_effect=RuntimeError("connection reset"),
        ):
            result = await runner.generate_campaign(campaign_id)

        assert result.status == "failed"
        assert result.error == "Campaign aborted: connection reset"

        campaign = get_campaign(campaign_id)
        assert campaign["status"] == "failed"
        assert campaign["error_message"] == "Campaign aborted: connection reset"

    @pytest.mark.asyncio
    async def test_no_cities(self, llm, images, db, campaign_id):
        result = await runner_for(llm, images).generate_campaign(campaign_id)

        assert not result.success
        assert result.error == "No cities available"
        assert get_campaign(campaign_id)["status"] == "failed"

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, llm, images, db):
        result = await runner_for(llm, images).generate_campaign("does-not-exist")

        assert not result.success
        assert "not found" in result.error

    @pytest.mark.asyncio
    async def test_module_level_wrapper(self, llm, images, cities, campaign_id):
        generator = CityPageGenerator(llm, images)
        result = await generate_campaign(campaign_id, generator, BatchConfig(batch_size=3))
        assert result.generated == 3

    def test_batch_size_must_be_positive(self, llm, images):
        with pytest.raises(ValueError):
            runner_for(llm, images, batch_size=0)


class TestBatching:
    """Batches run one after another."""

    @pytest.mark.asyncio
    async def test_pause_between_batches_only(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images, batch_size=1, batch_pause_seconds=0.01)

        with patch("seo_brain.generator.campaign.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await runner.generate_campaign(campaign_id)

        assert result.generated == 3
        assert sleep.call_count == 2

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_semaphore(self, llm, images, cities, campaign_id):
        runner = runner_for(llm, images, batch_size=3, max_concurrent=1)
        original = runner.generator.generate
        in_flight = []
        peak = []

        async def tracked(*args):
            in_flight.append(1)
            peak.append(len(in_flight))
            try:
                return await original(*args)
            finally:
                in_flight.pop()

        with patch.object(runner.generator, "generate", side_effect=tracked):
            result = await runner.generate_campaign(campaign_id)

        assert result.generated == 3
        assert max(peak) == 1


class TestReferenceImage:
    """Reference photo is compressed before it is sent."""

    @pytest.mark.asyncio
    async def test_reference_image_is_compressed_and_sent(self, llm, images, cities, tmp_path):
        photo = tmp_path / "product.jpg"
        buffer = io.BytesIO()
        Image.new("RGB", (3000, 2000), (30, 90, 160)).save(buffer, format="JPEG")
        photo.write_bytes(buffer.getvalue())

        campaign_id = create_campaign(ProductCampaignSpec(
            product_name="Premium Flyers",
            quantity=5000,
            size="4x6",
            material="9pt Cardstock",
            turnaround="3-4 day",
            price=179,
            reference_image_path=str(photo),
        ))

        result = await runner_for(llm, images).generate_campaign(campaign_id)

        assert result.success
        reference = images.references[0]
        assert reference is not None
        decoded = Image.open(io.BytesIO(base64.b64decode(reference)))
        assert decoded.size == (1920, 1280)

    @pytest.mark.asyncio
    async def test_unreadable_reference_fails_campaign(self, llm, images, cities, tmp_path):
        bad = tmp_path / "broken.jpg"
        bad.write_bytes(b"not a jpeg")
        campaign_id = create_campaign(ProductCampaignSpec(
            product_name="Premium Flyers",
            quantity=5000,
            size="4x6",
            material="9pt Cardstock",
            turnaround="3-4 day",
            price=179,
            reference_image_path=str(bad),
        ))

        result = await runner_for(llm, images).generate_campaign(campaign_id)

        assert not result.success
        assert result.status == "failed"
        assert images.prompts == []
