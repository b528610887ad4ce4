"""
Campaign Batch Runner

Generates the full set of city pages for one product campaign:

1. Load the campaign and the top-N cities by population
2. Generate the shared main product image (fatal on failure)
3. Generate city pages in fixed-size batches; cities within a batch run
   concurrently, batches run strictly one after another
4. Record generated/failed counts and the final campaign status

Backend throughput is protected by the token buckets inside the clients
and by a semaphore bounding in-flight generations. No exception escapes
generate_campaign(); callers get counts plus a per-city result list.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from seo_brain.database import repository as repo
from seo_brain.database.models import CampaignStatus
from seo_brain.imaging.compression import CompressionOptions, compress_with_retry
from seo_brain.models import CityProfile, ProductCampaignSpec

from .city_page import CityPageGenerator, PageGenerationResult, PageStage

logger = logging.getLogger(__name__)

REFERENCE_IMAGE_TARGET = "google-imagen"


@dataclass
class BatchConfig:
    """Batch sizing and pacing."""
    target_city_count: int = 200
    batch_size: int = 10
    batch_pause_seconds: float = 0.0
    max_concurrent: int = 10


@dataclass
class CampaignGenerationResult:
    """Aggregate outcome of a campaign run."""
    campaign_id: str
    success: bool = False
    generated: int = 0
    failed: int = 0
    target_city_count: int = 0
    status: Optional[str] = None
    main_product_image_url: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0
    results: List[PageGenerationResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "success": self.success,
            "generated": self.generated,
            "failed": self.failed,
            "target_city_count": self.target_city_count,
            "status": self.status,
            "main_product_image_url": self.main_product_image_url,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 1),
            "results": [r.to_dict() for r in self.results],
        }


def _batches(cities: List[CityProfile], size: int) -> List[List[CityProfile]]:
    return [cities[i:i + size] for i in range(0, len(cities), size)]


class CampaignBatchRunner:
    """
    Runs a campaign through the city page generator.

    Usage:
        runner = CampaignBatchRunner(generator, BatchConfig(target_city_count=200))
        result = await runner.generate_campaign(campaign_id)
    """

    def __init__(self, generator: CityPageGenerator, config: Optional[BatchConfig] = None):
        self.generator = generator
        self.config = config or BatchConfig()
        if self.config.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    async def prepare_reference_image(self, path: str) -> str:
        """
        Compress a reference photo so it fits the image backend's payload limit.

        Returns:
            Base64 payload

        Raises:
            ImageCompressionError: image cannot be brought under the limit
        """
        result = await asyncio.to_thread(
            compress_with_retry,
            path,
            CompressionOptions(target_api=REFERENCE_IMAGE_TARGET),
        )
        logger.info(
            f"Reference image ready: {result.width}x{result.height}, "
            f"{result.size_mb}, quality {result.quality}"
        )
        return result.base64

    async def _generate_main_image(self, spec: ProductCampaignSpec) -> str:
        reference = None
        if spec.reference_image_path:
            reference = await self.prepare_reference_image(spec.reference_image_path)
        return await self.generator.generate_main_product_image(spec, reference_image=reference)

    async def _run_batch(
        self,
        batch: List[CityProfile],
        spec: ProductCampaignSpec,
        campaign_id: str,
        main_image_url: str,
        semaphore: asyncio.Semaphore,
    ) -> List[PageGenerationResult]:
        async def run_one(city: CityProfile) -> PageGenerationResult:
            async with semaphore:
                return await self.generator.generate(city, spec, campaign_id, main_image_url)

        outcomes = await asyncio.gather(
            *[run_one(city) for city in batch],
            return_exceptions=True,
        )

        results = []
        for city, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                failed = PageGenerationResult(city=city.name, state=city.state, city_slug=city.slug)
                failed.fail(f"Unexpected error: {outcome}")
                results.append(failed)
            else:
                results.append(outcome)
        return results

    async def generate_campaign(self, campaign_id: str) -> CampaignGenerationResult:
        """
        Generate all city pages for a campaign.

        Returns:
            CampaignGenerationResult; never raises
        """
        started = time.time()
        result = CampaignGenerationResult(campaign_id=campaign_id)

        try:
            await self._generate(campaign_id, result)
        except Exception as e:
            logger.exception(f"Campaign {campaign_id} aborted")
            result.error = f"Campaign aborted: {e}"
            result.success = False
            await self._mark_failed(campaign_id, result)

        result.duration_seconds = time.time() - started
        return result

    async def _mark_failed(self, campaign_id: str, result: CampaignGenerationResult):
        """Record an aborted run so the campaign does not stay in generating."""
        result.status = CampaignStatus.FAILED.value
        try:
            await asyncio.to_thread(repo.fail_campaign, campaign_id, result.error)
        except Exception as e:
            logger.error(f"Could not mark campaign {campaign_id} failed: {e}")

    async def _generate(self, campaign_id: str, result: CampaignGenerationResult):
        spec = await asyncio.to_thread(repo.get_campaign_spec, campaign_id)
        if not spec:
            result.error = f"Campaign {campaign_id} not found"
            logger.error(result.error)
            return

        cities = await asyncio.to_thread(repo.get_top_cities, self.config.target_city_count)
        result.target_city_count = len(cities)
        if not cities:
            result.error = "No cities available"
            result.status = CampaignStatus.FAILED.value
            await asyncio.to_thread(repo.fail_campaign, campaign_id, result.error)
            return

        await asyncio.to_thread(repo.start_campaign_generation, campaign_id, len(cities))
        logger.info(f"Campaign {campaign_id}: generating {len(cities)} city pages for {spec.product_name}")

        # Main product image is shared by every page
        try:
            main_image_url = await self._generate_main_image(spec)
        except Exception as e:
            logger.error(f"Campaign {campaign_id}: main product image failed: {e}")
            result.error = f"Main product image failed: {e}"
            result.status = CampaignStatus.FAILED.value
            result.failed = len(cities)
            await asyncio.to_thread(repo.fail_campaign, campaign_id, result.error)
            return

        result.main_product_image_url = main_image_url
        await asyncio.to_thread(repo.set_main_product_image, campaign_id, main_image_url)

        semaphore = asyncio.Semaphore(self.config.max_concurrent)
        batches = _batches(cities, self.config.batch_size)

        for index, batch in enumerate(batches, start=1):
            batch_results = await self._run_batch(batch, spec, campaign_id, main_image_url, semaphore)
            result.results.extend(batch_results)

            batch_ok = sum(1 for r in batch_results if r.stage == PageStage.PERSISTED)
            result.generated += batch_ok
            result.failed += len(batch_results) - batch_ok

            logger.info(
                f"Batch {index}/{len(batches)}: {batch_ok}/{len(batch)} ok "
                f"(total {result.generated} generated, {result.failed} failed)"
            )

            if self.config.batch_pause_seconds > 0 and index < len(batches):
                await asyncio.sleep(self.config.batch_pause_seconds)

        status = (
            CampaignStatus.OPTIMIZING
            if result.generated == len(cities)
            else CampaignStatus.GENERATING
        )
        await asyncio.to_thread(
            repo.complete_campaign_generation,
            campaign_id,
            result.generated,
            result.failed,
            status,
        )

        result.status = status.value
        result.success = result.generated > 0


async def generate_campaign(
    campaign_id: str,
    generator: CityPageGenerator,
    config: Optional[BatchConfig] = None,
) -> CampaignGenerationResult:
    """Convenience wrapper around CampaignBatchRunner."""
    return await CampaignBatchRunner(generator, config).generate_campaign(campaign_id)
