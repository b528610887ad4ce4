"""
City Page Generator

Generates one complete city landing page:
1. Intro (500 words), 10 benefits, 15 FAQs via Claude
2. City-specific hero image via the image service
3. SEO metadata (deterministic templates, no LLM)
4. schema.org JSON-LD
5. Persisted, published page

Prompts come from the campaign's prompt family (product or service,
English or Spanish). Service campaigns with a recruitment offer also get
a recruitment section.

Stages per page:
    pending -> content_generated -> image_generated -> metadata_built -> persisted
with failed reachable from any of them. generate() never raises: every
failure, including a timeout, comes back as a PageGenerationResult so
one city cannot take down its batch.
"""

import asyncio
import enum
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel

from seo_brain.analyzer.client import ClaudeClient
from seo_brain.cache.llm_cache import LLMCache, NullCache
from seo_brain.database import repository as repo
from seo_brain.errors import (
    ContentValidationError,
    GenerationError,
    NotFoundError,
    SEOBrainError,
)
from seo_brain.integrations.image_client import ImageGenerationClient
from seo_brain.integrations.rate_limit import TokenBucket
from seo_brain.models import CityProfile, ProductCampaignSpec
from seo_brain.output.parser import parse_llm_json
from seo_brain.output.schemas import BenefitsPayload, FAQsPayload

from .city_styles import CityStyleTable
from .metadata import (
    DEFAULT_BUSINESS_NAME,
    DEFAULT_PATH_PREFIX,
    DEFAULT_SITE_URL,
    build_page_id,
    build_page_path,
    build_schema_markup,
    build_slug,
)
from .prompt_sets import prompt_set_for

logger = logging.getLogger(__name__)

REGENERABLE_SECTIONS = ("intro", "benefits", "faqs", "hero_image", "recruitment", "schema")


class PageStage(enum.Enum):
    PENDING = "pending"
    CONTENT_GENERATED = "content_generated"
    IMAGE_GENERATED = "image_generated"
    METADATA_BUILT = "metadata_built"
    PERSISTED = "persisted"
    FAILED = "failed"


@dataclass
class GeneratedContent:
    intro: str
    benefits: List[str]
    faqs: List[Dict[str, str]]
    recruitment: Optional[str] = None


@dataclass
class PageGenerationResult:
    """Outcome of generating one city page."""
    city: str
    state: str
    city_slug: str
    stage: PageStage = PageStage.PENDING
    last_completed_stage: PageStage = PageStage.PENDING
    page_id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.stage == PageStage.PERSISTED

    def advance(self, stage: PageStage):
        self.stage = stage
        self.last_completed_stage = stage

    def fail(self, error: str):
        self.stage = PageStage.FAILED
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "city": self.city,
            "state": self.state,
            "city_slug": self.city_slug,
            "stage": self.stage.value,
            "last_completed_stage": self.last_completed_stage.value,
            "page_id": self.page_id,
            "url": self.url,
            "error": self.error,
        }


@dataclass
class GenerationSettings:
    """Per-generator knobs, usually filled from Settings."""
    timeout_seconds: float = 300.0
    aspect_ratio: str = "4:3"
    publish: bool = True
    site_url: str = DEFAULT_SITE_URL
    business_name: str = DEFAULT_BUSINESS_NAME
    path_prefix: str = DEFAULT_PATH_PREFIX
    intro_max_tokens: int = 1500
    json_max_tokens: int = 4000
    temperature: float = 0.7
    json_temperature: float = 0.6


class CityPageGenerator:
    """
    Generates and persists city landing pages.

    Usage:
        generator = CityPageGenerator(claude, images, cache=cache)
        result = await generator.generate(city, spec, campaign_id, main_image_url)
    """

    def __init__(
        self,
        llm: ClaudeClient,
        images: ImageGenerationClient,
        cache: Optional[LLMCache] = None,
        llm_limiter: Optional[TokenBucket] = None,
        styles: Optional[CityStyleTable] = None,
        settings: Optional[GenerationSettings] = None,
    ):
        self.llm = llm
        self.images = images
        self.cache = cache or NullCache()
        self.llm_limiter = llm_limiter
        self.styles = styles
        self.settings = settings or GenerationSettings()

    # =========================================================================
    # LLM and image calls
    # =========================================================================

    def _llm_options(self, system: str, temperature: float, max_tokens: int) -> Dict[str, Any]:
        return {
            "model": self.llm.model,
            "system": system,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    async def _call_llm(self, prompt: str, system: str, temperature: float, max_tokens: int) -> str:
        if self.llm_limiter:
            await self.llm_limiter.acquire()

        response = await self.llm.analyze(
            prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.success:
            raise GenerationError(response.error or "Claude call failed", service="claude")
        if not response.content.strip():
            raise GenerationError("Claude returned empty content", service="claude")
        return response.content

    async def _generate_text(self, prompt: str, system: str) -> str:
        s = self.settings
        options = self._llm_options(system, s.temperature, s.intro_max_tokens)

        text = await self.cache.cached_text(
            prompt,
            options,
            lambda: self._call_llm(prompt, system, s.temperature, s.intro_max_tokens),
        )
        return text.strip()

    async def _generate_structured(self, prompt: str, schema: Type[BaseModel], system: str) -> BaseModel:
        """
        Generate and validate JSON output.

        Only output that passes validation is cached. A cached entry that
        no longer validates is ignored and regenerated.
        """
        s = self.settings
        options = self._llm_options(system, s.json_temperature, s.json_max_tokens)

        cached = await self.cache.get("claude", prompt, options)
        if cached is not None:
            try:
                return parse_llm_json(cached, schema)
            except ContentValidationError:
                logger.warning(f"Ignoring cached {schema.__name__} that no longer validates")

        raw = await self._call_llm(prompt, system, s.json_temperature, s.json_max_tokens)
        parsed = parse_llm_json(raw, schema)
        await self.cache.set("claude", prompt, raw, options=options)
        return parsed

    async def _generate_image(
        self,
        prompt: str,
        name: str,
        reference_image: Optional[str] = None,
    ) -> str:
        options: Dict[str, Any] = {"aspect_ratio": self.settings.aspect_ratio}
        if reference_image:
            options["reference"] = hashlib.sha256(reference_image.encode()).hexdigest()

        async def call() -> str:
            result = await self.images.generate(
                prompt,
                aspect_ratio=self.settings.aspect_ratio,
                name=name,
                reference_image=reference_image,
            )
            if not result.success:
                raise GenerationError(result.error or "Image generation failed", service="image")
            return result.image_url

        return await self.cache.cached_image_url(prompt, options, call)

    # =========================================================================
    # Content steps
    # =========================================================================

    async def generate_intro(
        self, city: CityProfile, spec: ProductCampaignSpec, pattern_hint: Optional[str] = None
    ) -> str:
        prompts = prompt_set_for(spec)
        return await self._generate_text(
            prompts.intro(city, spec, pattern_hint), prompts.copywriter_system
        )

    async def generate_benefits(
        self, city: CityProfile, spec: ProductCampaignSpec, pattern_hint: Optional[str] = None
    ) -> List[str]:
        prompts = prompt_set_for(spec)
        payload = await self._generate_structured(
            prompts.benefits(city, spec, pattern_hint), BenefitsPayload, prompts.json_system
        )
        return list(payload.benefits)

    async def generate_faqs(
        self, city: CityProfile, spec: ProductCampaignSpec, pattern_hint: Optional[str] = None
    ) -> List[Dict[str, str]]:
        prompts = prompt_set_for(spec)
        payload = await self._generate_structured(
            prompts.faqs(city, spec, pattern_hint), FAQsPayload, prompts.json_system
        )
        return [faq.model_dump() for faq in payload.faqs]

    async def generate_recruitment(self, city: CityProfile, spec: ProductCampaignSpec) -> Optional[str]:
        """Preparer recruitment section, only for campaigns that carry an offer."""
        prompts = prompt_set_for(spec)
        if spec.recruitment is None or prompts.recruitment is None:
            return None
        return await self._generate_text(
            prompts.recruitment(city, spec.recruitment), prompts.copywriter_system
        )

    async def generate_content(
        self, city: CityProfile, spec: ProductCampaignSpec, pattern_hint: Optional[str] = None
    ) -> GeneratedContent:
        """Intro, benefits, FAQs and the optional recruitment section. Any failure raises."""
        results = await asyncio.gather(
            self.generate_intro(city, spec, pattern_hint),
            self.generate_benefits(city, spec, pattern_hint),
            self.generate_faqs(city, spec, pattern_hint),
            self.generate_recruitment(city, spec),
            return_exceptions=True,
        )
        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

        intro, benefits, faqs, recruitment = results
        return GeneratedContent(intro=intro, benefits=benefits, faqs=faqs, recruitment=recruitment)

    async def generate_hero_image(self, city: CityProfile, spec: ProductCampaignSpec) -> str:
        prompt = prompt_set_for(spec).hero_image(city, spec, self.styles)
        return await self._generate_image(prompt, name=build_slug(spec.product_name, city))

    async def generate_main_product_image(
        self,
        spec: ProductCampaignSpec,
        reference_image: Optional[str] = None,
    ) -> str:
        """
        City-agnostic product image, generated once per campaign.

        Raises:
            GenerationError: image service failed
        """
        prompt = prompt_set_for(spec).main_image(spec)
        return await self._generate_image(
            prompt,
            name=spec.product_name,
            reference_image=reference_image,
        )

    # =========================================================================
    # Page generation
    # =========================================================================

    def _build_page(
        self,
        city: CityProfile,
        spec: ProductCampaignSpec,
        campaign_id: str,
        content: GeneratedContent,
        hero_image_url: str,
        main_product_image_url: str,
    ) -> Dict[str, Any]:
        s = self.settings
        metadata = prompt_set_for(spec).metadata(city, spec)
        slug = build_slug(spec.product_name, city)

        return {
            "id": build_page_id(campaign_id, city),
            "campaign_id": campaign_id,
            "city_id": city.id,
            "slug": slug,
            "title": metadata.title,
            "meta_description": metadata.description,
            "h1": metadata.h1,
            "keywords": metadata.keywords,
            "ai_intro": content.intro,
            "ai_benefits": content.benefits,
            "faqs": content.faqs,
            "recruitment_section": content.recruitment,
            "schema_markup": build_schema_markup(
                city, spec, content.faqs, slug,
                site_url=s.site_url,
                business_name=s.business_name,
                path_prefix=s.path_prefix,
            ),
            "main_product_image_url": main_product_image_url,
            "hero_image_url": hero_image_url,
        }

    async def _run_stages(
        self,
        result: PageGenerationResult,
        city: CityProfile,
        spec: ProductCampaignSpec,
        campaign_id: str,
        main_product_image_url: str,
    ) -> Dict[str, Any]:
        content = await self.generate_content(city, spec)
        result.advance(PageStage.CONTENT_GENERATED)

        hero_image_url = await self.generate_hero_image(city, spec)
        result.advance(PageStage.IMAGE_GENERATED)

        page = self._build_page(city, spec, campaign_id, content, hero_image_url, main_product_image_url)
        result.advance(PageStage.METADATA_BUILT)
        return page

    async def _persist(self, result: PageGenerationResult, page: Dict[str, Any]):
        result.page_id = await asyncio.to_thread(repo.save_city_page, page, self.settings.publish)
        result.url = build_page_path(page["slug"], self.settings.path_prefix)
        result.advance(PageStage.PERSISTED)

    async def generate(
        self,
        city: CityProfile,
        spec: ProductCampaignSpec,
        campaign_id: str,
        main_product_image_url: str,
    ) -> PageGenerationResult:
        """
        Generate, persist and publish one city page.

        The timeout covers the generation stages only; the save runs
        after it and is never cancelled mid-write.

        Returns:
            PageGenerationResult; never raises
        """
        result = PageGenerationResult(city=city.name, state=city.state, city_slug=city.slug)

        try:
            page = await asyncio.wait_for(
                self._run_stages(result, city, spec, campaign_id, main_product_image_url),
                timeout=self.settings.timeout_seconds,
            )
            await self._persist(result, page)
        except asyncio.TimeoutError:
            result.fail(
                f"Timed out after {self.settings.timeout_seconds:.0f}s "
                f"(last stage: {result.last_completed_stage.value})"
            )
        except SEOBrainError as e:
            result.fail(f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error generating {city.name}, {city.state}")
            result.fail(f"Unexpected error: {e}")

        if result.success:
            logger.info(f"Generated {city.name}, {city.state}: {result.url}")
        else:
            logger.error(f"Failed {city.name}, {city.state}: {result.error}")

        return result

    # =========================================================================
    # Regeneration (used by the improver)
    # =========================================================================

    async def regenerate_sections(
        self,
        page_id: str,
        sections: Iterable[str],
        pattern_hint: Optional[str] = None,
    ) -> List[str]:
        """
        Rebuild selected sections of an existing page.

        Args:
            page_id: Page to update
            sections: Any of intro, benefits, faqs, hero_image, recruitment, schema
            pattern_hint: Winner pattern summary to steer the rewrite

        Returns:
            Human-readable list of changes applied

        Raises:
            NotFoundError, GenerationError, ContentValidationError
        """
        sections = list(sections)
        unknown = set(sections) - set(REGENERABLE_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown sections: {sorted(unknown)}")

        page = await asyncio.to_thread(repo.get_page, page_id)
        if not page:
            raise NotFoundError(f"Page {page_id} not found")

        city = await asyncio.to_thread(repo.get_city_profile, page["city_id"])
        spec = await asyncio.to_thread(repo.get_campaign_spec, page["campaign_id"])
        if not city or not spec:
            raise NotFoundError(f"City or campaign for page {page_id} not found")

        updates: Dict[str, Any] = {}
        changes: List[str] = []
        hinted = " using winner pattern" if pattern_hint else ""

        if "intro" in sections:
            updates["ai_intro"] = await self.generate_intro(city, spec, pattern_hint)
            changes.append(f"Regenerated intro{hinted}")

        if "benefits" in sections:
            updates["ai_benefits"] = await self.generate_benefits(city, spec, pattern_hint)
            changes.append(f"Regenerated benefits section{hinted}")

        if "faqs" in sections:
            updates["faqs"] = await self.generate_faqs(city, spec, pattern_hint)
            changes.append(f"Regenerated FAQs{hinted}")

        if "hero_image" in sections:
            updates["hero_image_url"] = await self.generate_hero_image(city, spec)
            changes.append("Regenerated hero image")

        if "recruitment" in sections:
            updates["recruitment_section"] = await self.generate_recruitment(city, spec)
            changes.append("Regenerated recruitment section")

        if "schema" in sections or "faqs" in updates:
            s = self.settings
            updates["schema_markup"] = build_schema_markup(
                city, spec, updates.get("faqs", page["faqs"]), page["slug"],
                site_url=s.site_url,
                business_name=s.business_name,
                path_prefix=s.path_prefix,
            )
            changes.append("Schema markup updated")

        await asyncio.to_thread(repo.update_page, page_id, updates)
        logger.info(f"Regenerated {', '.join(sections)} for {page_id}")
        return changes
