"""
Pytest Configuration and Shared Fixtures

Provides a throwaway SQLite database, an in-memory Redis stand-in,
scripted Claude/image clients and sample city/product data.
"""

import fnmatch
import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from seo_brain.analyzer.client import AnalysisResponse, TokenUsage
from seo_brain.database import (
    configure_database,
    create_campaign,
    get_city_profile,
    init_db,
    reset_database_state,
    upsert_city,
)
from seo_brain.integrations.image_client import ImageGenerationResult
from seo_brain.models import ProductCampaignSpec


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database per test."""
    configure_database(f"sqlite:///{tmp_path / 'seo_brain_test.db'}")
    init_db()
    yield
    reset_database_state()


# ============================================================================
# Redis
# ============================================================================

class FakeRedis:
    """Just enough of redis.asyncio.Redis for LLMCache."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, Any] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def scan_iter(self, match="*", count=None):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    from seo_brain.cache import CacheConfig, LLMCache

    return LLMCache(
        config=CacheConfig(enabled=True, namespace="llm", circuit_breaker_enabled=False),
        redis=fake_redis,
    )


# ============================================================================
# Sample data
# ============================================================================

SEATTLE = {
    "name": "Seattle",
    "state": "WA",
    "slug": "seattle-wa",
    "population": 737015,
    "industries": ["technology", "aerospace", "coffee"],
    "neighborhoods": ["Capitol Hill", "Ballard", "Fremont", "Queen Anne"],
    "venues": ["Climate Pledge Arena", "Pike Place Market", "Lumen Field"],
    "famous_for": ["coffee culture", "tech giants", "rain"],
    "zip_codes": ["98101", "98102", "98103"],
}

BOISE = {
    "name": "Boise",
    "state": "ID",
    "slug": "boise-id",
    "population": 235684,
    "industries": ["agriculture", "technology"],
    "neighborhoods": ["North End", "Downtown"],
    "venues": ["Idaho Central Arena"],
    "famous_for": ["mountain biking", "outdoor lifestyle"],
    "zip_codes": ["83702"],
}

RENO = {
    "name": "Reno",
    "state": "NV",
    "slug": "reno-nv",
    "population": 264165,
    "industries": ["gaming", "logistics"],
    "neighborhoods": ["Midtown"],
    "venues": ["Reno Events Center"],
    "famous_for": ["casinos"],
    "zip_codes": ["89501"],
}


@pytest.fixture
def product_spec() -> ProductCampaignSpec:
    return ProductCampaignSpec(
        product_name="Premium Flyers",
        quantity=5000,
        size="4x6",
        material="9pt Cardstock",
        turnaround="3-4 day",
        price=179,
        keywords=["event flyers"],
        industries=["restaurants", "real estate"],
    )


@pytest.fixture
def cities(db):
    """Three seeded cities, largest first."""
    ids = [upsert_city(data) for data in (SEATTLE, RENO, BOISE)]
    return [get_city_profile(city_id) for city_id in ids]


@pytest.fixture
def seattle(cities):
    return cities[0]


@pytest.fixture
def campaign_id(db, product_spec) -> str:
    return create_campaign(product_spec)


# ============================================================================
# LLM responses
# ============================================================================

INTRO_TEXT = (
    "Seattle businesses move fast, and so do our Premium Flyers. "
    "From Capitol Hill cafes to Ballard breweries, local marketers rely on them."
)


def benefits_json(count: int = 10) -> str:
    return json.dumps({
        "benefits": [f"Seattle benefit number {i + 1}" for i in range(count)]
    })


def faqs_json(count: int = 15) -> str:
    return json.dumps({
        "faqs": [
            {"question": f"Seattle question {i + 1}?", "answer": f"Answer {i + 1}."}
            for i in range(count)
        ]
    })


def pattern_json() -> str:
    return json.dumps({
        "patternName": "Local urgency with deep FAQ",
        "contentStructure": {
            "avgIntroLength": 2800,
            "benefitsCount": 10,
            "faqCount": 15,
            "commonThemes": ["speed", "local landmarks"],
            "tone": "friendly expert",
        },
        "seoStructure": {"titleFormat": "{qty} {size} {product} in {city} | {turnaround} | {price}"},
        "conversionElements": {"ctaPlacements": ["after intro"], "trustSignals": ["reviews"]},
    })


def options_json() -> str:
    def option(action, confidence):
        return {
            "action": action,
            "changes": ["change 1", "change 2"],
            "pros": ["pro 1", "pro 2", "pro 3"],
            "cons": ["con 1", "con 2"],
            "confidence": confidence,
            "estimatedImpact": "+10-15 performance points",
        }

    return json.dumps({
        "optionA": option("Tighten the title", 80),
        "optionB": option("Rewrite intro and benefits", 70),
        "optionC": option("Regenerate everything", 60),
    })


def ok_response(content: str) -> AnalysisResponse:
    return AnalysisResponse(
        content=content,
        usage=TokenUsage(input_tokens=100, output_tokens=200),
        model="claude-test",
        stop_reason="end_turn",
    )


def failed_response(error: str = "API error: overloaded") -> AnalysisResponse:
    return AnalysisResponse(
        content="",
        usage=TokenUsage(),
        model="claude-test",
        stop_reason="error",
        success=False,
        error=error,
    )


def route_prompt(prompt: str) -> str:
    """Pick a canned answer by the kind of prompt."""
    if prompt.startswith("Write a compelling"):
        return INTRO_TEXT
    if "compelling benefits" in prompt:
        return benefits_json()
    if "frequently asked questions" in prompt:
        return faqs_json()
    if prompt.startswith("Analyze the top-performing"):
        return pattern_json()
    if "underperforming landing pages" in prompt:
        return options_json()
    raise AssertionError(f"Unexpected prompt: {prompt[:80]}")


def make_llm(responder: Optional[Callable[[str], AnalysisResponse]] = None) -> MagicMock:
    """ClaudeClient double whose analyze() answers via `responder`."""
    responder = responder or (lambda prompt: ok_response(route_prompt(prompt)))

    async def analyze(prompt, system=None, max_tokens=4000, temperature=0.7):
        return responder(prompt)

    llm = MagicMock()
    llm.model = "claude-test"
    llm.analyze = AsyncMock(side_effect=analyze)
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def llm() -> MagicMock:
    return make_llm()


class FakeImages:
    """ImageGenerationClient double that records prompts."""

    def __init__(self, fail_when: Optional[Callable[[str], bool]] = None):
        self.prompts: List[str] = []
        self.references: List[Optional[str]] = []
        self.fail_when = fail_when or (lambda prompt: False)

    async def generate(self, prompt, aspect_ratio="4:3", name=None, reference_image=None):
        self.prompts.append(prompt)
        self.references.append(reference_image)
        if self.fail_when(prompt):
            return ImageGenerationResult(success=False, error="API error: 500")
        return ImageGenerationResult(
            success=True,
            image_url=f"https://blob.example.com/{len(self.prompts)}.png",
        )

    async def close(self):
        pass


@pytest.fixture
def images() -> FakeImages:
    return FakeImages()
