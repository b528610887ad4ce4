"""
Pipeline wiring.

Builds every component from Settings and hands the same cache, clients
and rate limiters to all of them. Used by the API and the CLI scripts.

Usage:
    pipeline = build_pipeline()
    try:
        result = await pipeline.runner.generate_campaign(campaign_id)
    finally:
        await pipeline.close()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from seo_brain.analyzer.client import ClaudeClient
from seo_brain.cache.llm_cache import LLMCache
from seo_brain.generator.campaign import BatchConfig, CampaignBatchRunner
from seo_brain.generator.city_page import CityPageGenerator, GenerationSettings
from seo_brain.generator.city_styles import load_city_styles
from seo_brain.generator.translation import Translator
from seo_brain.integrations.image_client import ImageGenerationClient
from seo_brain.integrations.rate_limit import TokenBucket
from seo_brain.optimizer.loser import LoserImprover
from seo_brain.optimizer.winner import WinnerAnalyzer
from seo_brain.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    settings: Settings
    llm: ClaudeClient
    images: ImageGenerationClient
    cache: LLMCache
    generator: CityPageGenerator
    runner: CampaignBatchRunner
    winner_analyzer: WinnerAnalyzer
    improver: LoserImprover
    translator: Translator

    async def close(self):
        await self.llm.close()
        await self.images.close()
        await self.cache.close()


def build_pipeline(
    settings: Optional[Settings] = None,
    cache: Optional[LLMCache] = None,
    llm: Optional[ClaudeClient] = None,
    images: Optional[ImageGenerationClient] = None,
) -> Pipeline:
    """
    Construct the full pipeline.

    Any component passed in is used as-is (tests inject fakes here).
    """
    settings = settings or get_settings()

    llm_limiter = TokenBucket.per_second(settings.LLM_REQUESTS_PER_SECOND, name="claude")
    image_limiter = TokenBucket.per_minute(settings.IMAGE_REQUESTS_PER_MINUTE, name="image")

    llm = llm or ClaudeClient(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.CLAUDE_MODEL,
        timeout=settings.API_TIMEOUT,
    )
    images = images or ImageGenerationClient(
        base_url=settings.IMAGE_API_URL,
        api_key=settings.IMAGE_API_KEY,
        timeout=settings.API_TIMEOUT,
        rate_limiter=image_limiter,
    )
    cache = cache or LLMCache()

    generator = CityPageGenerator(
        llm=llm,
        images=images,
        cache=cache,
        llm_limiter=llm_limiter,
        styles=load_city_styles(settings.CITY_STYLES_PATH),
        settings=GenerationSettings(
            timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
            aspect_ratio=settings.IMAGE_ASPECT_RATIO,
            site_url=settings.SITE_URL,
            business_name=settings.BUSINESS_NAME,
            path_prefix=settings.PAGE_PATH_PREFIX,
        ),
    )
    runner = CampaignBatchRunner(
        generator,
        BatchConfig(
            target_city_count=settings.TARGET_CITY_COUNT,
            batch_size=settings.BATCH_SIZE,
            batch_pause_seconds=settings.BATCH_PAUSE_SECONDS,
            max_concurrent=settings.MAX_CONCURRENT_GENERATIONS,
        ),
    )

    logger.info(
        f"Pipeline ready: model {llm.model}, batch size {settings.BATCH_SIZE}, "
        f"{settings.TARGET_CITY_COUNT} target cities"
    )

    return Pipeline(
        settings=settings,
        llm=llm,
        images=images,
        cache=cache,
        generator=generator,
        runner=runner,
        winner_analyzer=WinnerAnalyzer(
            llm,
            llm_limiter=llm_limiter,
            confidence=settings.PATTERN_CONFIDENCE,
        ),
        improver=LoserImprover(llm, generator, llm_limiter=llm_limiter),
        translator=Translator(llm, cache=cache, llm_limiter=llm_limiter),
    )
