"""
Loser Improver

Proposes and executes improvements for underperforming city pages.

    generate_improvement_options()  ->  pending decision with options A/B/C
    select_option()                 ->  approved (a human picked one)
    execute_improvement()           ->  executing, then executed / failed

Options are graduated:
    A  conservative  patch the title, report FAQ/benefit shortfalls
    B  moderate      regenerate intro and benefits with the winner pattern
    C  aggressive    regenerate intro, benefits, FAQs, hero image and schema

If Claude fails or returns an invalid plan, a fixed three-tier template
is used instead so the decision step is never blocked.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from seo_brain.analyzer.client import ClaudeClient
from seo_brain.database import repository as repo
from seo_brain.errors import NotFoundError, SEOBrainError
from seo_brain.generator.city_page import CityPageGenerator
from seo_brain.generator.prompts import format_pattern_hint
from seo_brain.integrations.rate_limit import TokenBucket
from seo_brain.output.parser import parse_llm_json
from seo_brain.output.schemas import DecisionOptionPayload, ImprovementOptionsPayload

from .scoring import score_page

logger = logging.getLogger(__name__)

OPTION_LABELS = ("A", "B", "C")
TARGET_SCORE_GAIN = 30
OPTIONS_TEMPERATURE = 0.4
OPTIONS_MAX_TOKENS = 2000

MODERATE_SECTIONS = ("intro", "benefits")
AGGRESSIVE_SECTIONS = ("intro", "benefits", "faqs", "hero_image", "schema")


@dataclass
class DecisionOption:
    option: str
    action: str
    pros: List[str]
    cons: List[str]
    confidence: int
    estimated_impact: str
    changes: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, option: str, payload: DecisionOptionPayload) -> "DecisionOption":
        return cls(
            option=option,
            action=payload.action,
            pros=list(payload.pros),
            cons=list(payload.cons),
            confidence=payload.confidence,
            estimated_impact=payload.estimated_impact,
            changes=list(payload.changes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


FALLBACK_OPTIONS = (
    DecisionOption(
        option="A",
        action="Update content to match winner pattern structure",
        pros=[
            "Low risk - minimal changes",
            "Quick to implement",
            "Proven pattern from top performers",
        ],
        cons=["Limited impact", "May not address all issues"],
        confidence=75,
        estimated_impact="+10-15 performance points",
    ),
    DecisionOption(
        option="B",
        action="Rewrite intro and benefits using winner pattern + add CTAs",
        pros=[
            "Significant improvement expected",
            "Addresses content quality",
            "Better conversion elements",
        ],
        cons=["Moderate effort required", "Some risk of regression"],
        confidence=65,
        estimated_impact="+20-25 performance points",
    ),
    DecisionOption(
        option="C",
        action="Complete page regeneration using winner template",
        pros=[
            "Maximum potential improvement",
            "Fresh content with proven structure",
            "All elements optimized",
        ],
        cons=["High effort", "Loses existing content", "Highest risk"],
        confidence=55,
        estimated_impact="+30-40 performance points",
    ),
)


def fallback_options() -> List[DecisionOption]:
    """Fresh copies of the template options."""
    return [DecisionOption(**o.to_dict()) for o in FALLBACK_OPTIONS]


@dataclass
class ImprovementPlan:
    decision_id: str
    page_id: str
    pattern_id: str
    city_slug: str
    current_score: float
    target_score: float
    options: List[DecisionOption]
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision_id": self.decision_id,
            "page_id": self.page_id,
            "pattern_id": self.pattern_id,
            "city_slug": self.city_slug,
            "current_score": self.current_score,
            "target_score": self.target_score,
            "options": [o.to_dict() for o in self.options],
            "used_fallback": self.used_fallback,
        }


@dataclass
class ImprovementResult:
    decision_id: str
    option: str
    success: bool
    changes: List[str] = field(default_factory=list)
    error: Optional[str] = None


def build_improvement_prompt(page: Dict[str, Any], pattern: Dict[str, Any], score: float) -> str:
    return f"""You are an SEO expert analyzing underperforming landing pages.

CURRENT PAGE DATA:
- City page: {page["slug"]}
- Performance Score: {score}/100
- Current Intro Length: {len(page["ai_intro"])} chars
- Current Benefits: {len(page["ai_benefits"])}
- Current FAQs: {len(page["faqs"])}
- Current Title: {page["title"]}

TOP PERFORMER PATTERN:
{format_pattern_hint(pattern)}

Your task: Generate 3 improvement options (A, B, C) to make this page perform like the winners.

REQUIREMENTS:
- Option A: Conservative (minor changes, low risk)
- Option B: Moderate (significant changes, medium risk)
- Option C: Aggressive (complete overhaul, high risk)

Each option must include:
- Specific actionable changes
- 3-5 pros (why this will work)
- 2-4 cons (potential risks)
- Confidence level (0-100)
- Estimated impact ("+10-15 performance points", "+20-30 performance points", etc.)

OUTPUT FORMAT (JSON only):
{{
  "optionA": {{
    "action": "brief description",
    "changes": ["change 1", "change 2", "change 3"],
    "pros": ["pro 1", "pro 2", "pro 3"],
    "cons": ["con 1", "con 2"],
    "confidence": 85,
    "estimatedImpact": "+10-15 performance points"
  }},
  "optionB": {{ ... }},
  "optionC": {{ ... }}
}}

Generate the options now (JSON only):"""


class LoserImprover:
    """
    Human-gated improvement loop for underperforming pages.

    Usage:
        improver = LoserImprover(claude, generator)
        plan = await improver.generate_improvement_options(page_id, pattern_id)
        await improver.select_option(plan.decision_id, "B")
        result = await improver.execute_improvement(plan.decision_id)
    """

    def __init__(
        self,
        llm: ClaudeClient,
        generator: CityPageGenerator,
        llm_limiter: Optional[TokenBucket] = None,
    ):
        self.llm = llm
        self.generator = generator
        self.llm_limiter = llm_limiter

    async def _load_page_and_pattern(self, page_id: str, pattern_id: str):
        page = await asyncio.to_thread(repo.get_page, page_id)
        if not page:
            raise NotFoundError(f"Page {page_id} not found")

        pattern = await asyncio.to_thread(repo.get_winner_pattern, pattern_id)
        if not pattern:
            raise NotFoundError(f"Winner pattern {pattern_id} not found")

        return page, pattern

    async def _generate_options(
        self, page: Dict[str, Any], pattern: Dict[str, Any], score: float
    ) -> List[DecisionOption]:
        if self.llm_limiter:
            await self.llm_limiter.acquire()

        response = await self.llm.analyze(
            build_improvement_prompt(page, pattern, score),
            max_tokens=OPTIONS_MAX_TOKENS,
            temperature=OPTIONS_TEMPERATURE,
        )
        if not response.success:
            raise SEOBrainError(f"Option generation failed: {response.error}")

        payload = parse_llm_json(response.content, ImprovementOptionsPayload)
        return [
            DecisionOption.from_payload("A", payload.option_a),
            DecisionOption.from_payload("B", payload.option_b),
            DecisionOption.from_payload("C", payload.option_c),
        ]

    async def generate_improvement_options(self, page_id: str, pattern_id: str) -> ImprovementPlan:
        """
        Propose options A/B/C for a page and store them as a pending decision.

        Raises:
            NotFoundError: Page or pattern does not exist
        """
        page, pattern = await self._load_page_and_pattern(page_id, pattern_id)
        score = score_page(page)

        used_fallback = False
        try:
            options = await self._generate_options(page, pattern, score)
        except Exception as e:
            logger.warning(f"Using fallback improvement options for {page_id}: {e}")
            options = fallback_options()
            used_fallback = True

        target_score = min(100, score + TARGET_SCORE_GAIN)
        decision_id = await asyncio.to_thread(
            repo.create_improvement_decision,
            page_id,
            pattern_id,
            score,
            target_score,
            [o.to_dict() for o in options],
            used_fallback,
        )
        logger.info(f"Decision {decision_id} pending for {page['slug']} (score {score})")

        return ImprovementPlan(
            decision_id=decision_id,
            page_id=page_id,
            pattern_id=pattern_id,
            city_slug=page["slug"],
            current_score=score,
            target_score=target_score,
            options=options,
            used_fallback=used_fallback,
        )

    async def select_option(self, decision_id: str, option: str) -> Dict[str, Any]:
        """
        Record the human's choice.

        Raises:
            ValueError: Option is not A, B or C
            NotFoundError, DecisionStateError
        """
        option = option.upper()
        if option not in OPTION_LABELS:
            raise ValueError(f"Option must be one of {', '.join(OPTION_LABELS)}")
        return await asyncio.to_thread(repo.approve_improvement_decision, decision_id, option)

    async def execute_improvement(self, decision_id: str) -> ImprovementResult:
        """
        Apply the approved option.

        The decision is claimed (approved -> executing) before any work, so
        concurrent calls for the same decision run it once. Any failure
        after the claim is recorded on the decision as failed.

        Raises:
            NotFoundError: Decision does not exist
            DecisionStateError: Decision is not approved or already claimed
        """
        decision = await asyncio.to_thread(repo.claim_improvement_decision, decision_id)

        option = decision["selected_option"]
        result = ImprovementResult(decision_id=decision_id, option=option, success=False)

        try:
            page, pattern = await self._load_page_and_pattern(decision["page_id"], decision["pattern_id"])

            if option == "A":
                result.changes = await self._apply_conservative(page, pattern)
            elif option == "B":
                result.changes = await self.generator.regenerate_sections(
                    page["id"], MODERATE_SECTIONS, format_pattern_hint(pattern)
                )
            else:
                result.changes = await self.generator.regenerate_sections(
                    page["id"], AGGRESSIVE_SECTIONS, format_pattern_hint(pattern)
                )
            result.success = True

        except SEOBrainError as e:
            logger.error(f"Improvement {decision_id} (option {option}) failed: {e}")
            result.error = str(e)
        except Exception as e:
            logger.exception(f"Improvement {decision_id} (option {option}) crashed")
            result.error = f"Unexpected error: {e}"

        await asyncio.to_thread(
            repo.finish_improvement_decision,
            decision_id,
            result.success,
            result.changes,
            result.error,
        )
        return result

    async def _apply_conservative(self, page: Dict[str, Any], pattern: Dict[str, Any]) -> List[str]:
        """Patch the title only; report what else is missing."""
        changes: List[str] = []

        spec = await asyncio.to_thread(repo.get_campaign_spec, page["campaign_id"])
        if not spec:
            raise NotFoundError(f"Campaign {page['campaign_id']} not found")

        title = page["title"] or ""
        additions = []
        if spec.turnaround.lower() not in title.lower():
            additions.append(spec.turnaround)
        if "$" not in title:
            additions.append(spec.price_label)

        if additions:
            new_title = " | ".join([title, *additions]) if title else " | ".join(additions)
            await asyncio.to_thread(repo.update_page, page["id"], {"title": new_title})
            changes.append("Updated title format to match winners")

        structure = pattern.get("content_structure", {})

        faq_target = int(structure.get("faqCount", 0))
        faq_gap = faq_target - len(page["faqs"])
        if faq_gap > 0:
            changes.append(f"Need to add {faq_gap} more FAQs")

        benefits_target = int(structure.get("benefitsCount", 0))
        benefits_gap = benefits_target - len(page["ai_benefits"])
        if benefits_gap > 0:
            changes.append(f"Need to add {benefits_gap} more benefits")

        if not changes:
            changes.append("Page already matches winner structure")

        logger.info(f"Conservative changes for {page['id']}: {changes}")
        return changes
