"""
Winner Analyzer

Finds what the best city pages of a campaign have in common:

1. Take the top-N pages by revenue
2. Score and summarize each (structure only, intro truncated)
3. Ask Claude to extract a reusable pattern as JSON
4. Validate and store it with provenance (sources, scores, sample size)

A campaign with no pages yields WinnerAnalysisResult(found=False).
A failed or malformed LLM response raises PatternExtractionError, so
"nothing to analyze" and "analysis crashed" stay distinguishable.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from seo_brain.analyzer.client import ClaudeClient
from seo_brain.database import repository as repo
from seo_brain.errors import ContentValidationError, NotFoundError, PatternExtractionError
from seo_brain.generator.prompts import detect_product_type
from seo_brain.integrations.rate_limit import TokenBucket
from seo_brain.output.parser import parse_llm_json
from seo_brain.output.schemas import WinnerPatternPayload

from .scoring import score_page

logger = logging.getLogger(__name__)

DEFAULT_TOP_COUNT = 10
DEFAULT_CONFIDENCE = 85
DEFAULT_LOSER_THRESHOLD = 30.0
INTRO_PREVIEW_CHARS = 200
ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 2000

ANALYST_SYSTEM = (
    "You are an SEO analyst. You compare landing pages and describe, as JSON, "
    "the structural traits the best performers share. Output ONLY valid JSON."
)


@dataclass
class PageSummary:
    """Compact view of one page for the analysis prompt."""
    page_id: str
    slug: str
    score: float
    views: int
    conversions: int
    revenue: float
    title: str
    intro_preview: str
    benefits_count: int
    faq_count: int

    @classmethod
    def from_page(cls, page: Dict[str, Any]) -> "PageSummary":
        return cls(
            page_id=page["id"],
            slug=page["slug"],
            score=score_page(page),
            views=page["views"],
            conversions=page["conversions"],
            revenue=page["revenue"],
            title=page["title"] or "",
            intro_preview=(page["ai_intro"] or "")[:INTRO_PREVIEW_CHARS],
            benefits_count=len(page["ai_benefits"]),
            faq_count=len(page["faqs"]),
        )

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "score": self.score,
            "views": self.views,
            "conversions": self.conversions,
            "revenue": self.revenue,
            "title": self.title,
            "intro": self.intro_preview,
            "benefitsCount": self.benefits_count,
            "faqCount": self.faq_count,
        }


@dataclass
class WinnerAnalysisResult:
    campaign_id: str
    found: bool
    pattern_id: Optional[str] = None
    pattern: Optional[Dict[str, Any]] = None
    sample_size: int = 0
    reason: Optional[str] = None
    summaries: List[PageSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "found": self.found,
            "pattern_id": self.pattern_id,
            "pattern": self.pattern,
            "sample_size": self.sample_size,
            "reason": self.reason,
        }


def build_winner_analysis_prompt(product_name: str, summaries: List[PageSummary]) -> str:
    pages_json = json.dumps([s.to_prompt_dict() for s in summaries], indent=2)

    return f"""Analyze the top-performing city landing pages for "{product_name}" and identify the pattern they share.

TOP PERFORMERS ({len(summaries)} pages, sorted by revenue):
{pages_json}

Identify:
1. Content structure: typical intro length (characters), benefits count, FAQ count, recurring themes, tone
2. SEO structure: title format, keyword placement, meta description style
3. Conversion elements: calls to action, urgency tactics, trust signals

OUTPUT FORMAT (JSON only):
{{
  "patternName": "short descriptive name",
  "contentStructure": {{
    "avgIntroLength": 2800,
    "benefitsCount": 10,
    "faqCount": 15,
    "commonThemes": ["theme 1", "theme 2"],
    "tone": "description"
  }},
  "seoStructure": {{
    "titleFormat": "pattern",
    "keywordPlacement": "description",
    "metaDescriptionStyle": "description"
  }},
  "conversionElements": {{
    "ctaPlacements": ["placement 1"],
    "urgencyTactics": ["tactic 1"],
    "trustSignals": ["signal 1"]
  }}
}}

Analyze now (JSON only):"""


class WinnerAnalyzer:
    """
    Extracts and stores winner patterns.

    Usage:
        analyzer = WinnerAnalyzer(claude)
        result = await analyzer.analyze_winners(campaign_id, top_count=10)
        if result.found:
            print(result.pattern["pattern_name"])
    """

    def __init__(
        self,
        llm: ClaudeClient,
        llm_limiter: Optional[TokenBucket] = None,
        confidence: int = DEFAULT_CONFIDENCE,
    ):
        self.llm = llm
        self.llm_limiter = llm_limiter
        self.confidence = confidence

    async def _extract_pattern(self, product_name: str, summaries: List[PageSummary]) -> WinnerPatternPayload:
        prompt = build_winner_analysis_prompt(product_name, summaries)

        if self.llm_limiter:
            await self.llm_limiter.acquire()

        response = await self.llm.analyze(
            prompt,
            system=ANALYST_SYSTEM,
            max_tokens=ANALYSIS_MAX_TOKENS,
            temperature=ANALYSIS_TEMPERATURE,
        )
        if not response.success:
            raise PatternExtractionError(f"Pattern extraction call failed: {response.error}")

        try:
            return parse_llm_json(response.content, WinnerPatternPayload)
        except ContentValidationError as e:
            raise PatternExtractionError(f"Pattern response invalid: {e}") from e

    async def analyze_winners(
        self,
        campaign_id: str,
        top_count: int = DEFAULT_TOP_COUNT,
    ) -> WinnerAnalysisResult:
        """
        Extract a pattern from the campaign's top pages by revenue.

        Raises:
            NotFoundError: Campaign does not exist
            PatternExtractionError: LLM call failed or returned an invalid pattern
        """
        spec = await asyncio.to_thread(repo.get_campaign_spec, campaign_id)
        if not spec:
            raise NotFoundError(f"Campaign {campaign_id} not found")

        pages = await asyncio.to_thread(repo.get_top_pages_by_revenue, campaign_id, top_count)
        if not pages:
            logger.info(f"No pages to analyze for campaign {campaign_id}")
            return WinnerAnalysisResult(
                campaign_id=campaign_id,
                found=False,
                reason="No pages found for campaign",
            )

        summaries = [PageSummary.from_page(p) for p in pages]
        logger.info(f"Analyzing {len(summaries)} top pages for campaign {campaign_id}")

        payload = await self._extract_pattern(spec.product_name, summaries)

        scores = [s.score for s in summaries]
        record = {
            "campaign_id": campaign_id,
            "product_type": detect_product_type(spec.product_name),
            "pattern_name": payload.pattern_name,
            "content_structure": payload.content_structure.model_dump(by_alias=True),
            "seo_structure": payload.seo_structure,
            "conversion_elements": payload.conversion_elements,
            "source_city_slugs": [s.slug for s in summaries],
            "source_page_ids": [s.page_id for s in summaries],
            "avg_score": round(sum(scores) / len(scores), 2),
            "min_score": min(scores),
            "sample_size": len(summaries),
            "confidence": self.confidence,
        }
        pattern_id = await asyncio.to_thread(repo.save_winner_pattern, **record)

        return WinnerAnalysisResult(
            campaign_id=campaign_id,
            found=True,
            pattern_id=pattern_id,
            pattern={"id": pattern_id, **record},
            sample_size=len(summaries),
            summaries=summaries,
        )

    async def find_underperformers(
        self,
        campaign_id: str,
        threshold: float = DEFAULT_LOSER_THRESHOLD,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Pages scoring below the threshold, worst first.

        Returns:
            [{"page_id", "slug", "score"}]
        """
        pages = await asyncio.to_thread(repo.list_campaign_pages, campaign_id)
        scored = [
            {"page_id": p["id"], "slug": p["slug"], "score": score_page(p)}
            for p in pages
        ]
        losers = sorted(
            (s for s in scored if s["score"] < threshold),
            key=lambda s: (s["score"], s["slug"]),
        )
        return losers[:limit]
