"""
Repository Layer - Clean Interface for Data Operations

Provides simple functions to store and retrieve data.
Handles all SQLAlchemy complexity internally; callers get plain dicts or
the shared dataclasses, never ORM objects bound to a closed session.

All functions are synchronous. Async callers wrap them in asyncio.to_thread.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, update

from seo_brain.errors import DecisionStateError, NotFoundError
from seo_brain.models import CityProfile, ProductCampaignSpec, RecruitmentSpec

from .models import (
    City,
    ProductCampaign,
    CityLandingPage,
    WinnerPattern,
    ImprovementDecision,
    CampaignStatus,
    PageStatus,
    DecisionStatus,
)
from .session import get_db_context

logger = logging.getLogger(__name__)


# =============================================================================
# CITIES
# =============================================================================

def upsert_city(data: Dict[str, Any]) -> str:
    """
    Insert or update a city keyed by slug.

    Returns:
        City id
    """
    with get_db_context() as db:
        city = db.query(City).filter(City.slug == data["slug"]).first()
        if not city:
            city = City(slug=data["slug"])
            db.add(city)

        city.name = data["name"]
        city.state = data["state"]
        city.population = data.get("population") or 0
        city.industries = data.get("industries") or []
        city.neighborhoods = data.get("neighborhoods") or []
        city.venues = data.get("venues") or []
        city.famous_for = data.get("famous_for") or []
        city.zip_codes = data.get("zip_codes") or []
        db.flush()

        return city.id


def get_top_cities(limit: int) -> List[CityProfile]:
    """Top cities by population, largest first."""
    with get_db_context() as db:
        cities = (
            db.query(City)
            .order_by(City.population.desc(), City.slug)
            .limit(limit)
            .all()
        )
        return [_city_to_profile(c) for c in cities]


def get_city_profile(city_id: str) -> Optional[CityProfile]:
    with get_db_context() as db:
        city = db.get(City, city_id)
        return _city_to_profile(city) if city else None


def count_cities() -> int:
    with get_db_context() as db:
        return db.query(City).count()


def _city_to_profile(c: City) -> CityProfile:
    return CityProfile(
        id=c.id,
        name=c.name,
        state=c.state,
        slug=c.slug,
        population=c.population,
        industries=list(c.industries or []),
        neighborhoods=list(c.neighborhoods or []),
        venues=list(c.venues or []),
        famous_for=list(c.famous_for or []),
        zip_codes=list(c.zip_codes or []),
    )


# =============================================================================
# CAMPAIGNS
# =============================================================================

def create_campaign(spec: ProductCampaignSpec) -> str:
    """
    Create a product campaign in PENDING state.

    Returns:
        Campaign id
    """
    with get_db_context() as db:
        campaign = ProductCampaign(
            product_name=spec.product_name,
            quantity=spec.quantity,
            size=spec.size,
            material=spec.material,
            turnaround=spec.turnaround,
            price=spec.price,
            online_only=spec.online_only,
            keywords=list(spec.keywords),
            industries=list(spec.industries),
            reference_image_path=spec.reference_image_path,
            content_type=spec.content_type,
            language=spec.language,
            average_refund=spec.average_refund,
            recruitment=spec.recruitment.to_dict() if spec.recruitment else None,
            status=CampaignStatus.PENDING,
        )
        if spec.campaign_id:
            campaign.id = spec.campaign_id
        db.add(campaign)
        db.flush()

        logger.info(f"Created campaign {campaign.id} for {spec.product_name}")
        return campaign.id


def get_campaign_spec(campaign_id: str) -> Optional[ProductCampaignSpec]:
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        if not c:
            return None
        return ProductCampaignSpec(
            product_name=c.product_name,
            quantity=c.quantity,
            size=c.size,
            material=c.material,
            turnaround=c.turnaround,
            price=c.price,
            online_only=bool(c.online_only),
            keywords=list(c.keywords or []),
            industries=list(c.industries or []),
            campaign_id=c.id,
            reference_image_path=c.reference_image_path,
            content_type=c.content_type or "product",
            language=c.language or "en",
            average_refund=c.average_refund,
            recruitment=RecruitmentSpec.from_dict(c.recruitment),
        )


def get_campaign(campaign_id: str) -> Optional[Dict[str, Any]]:
    """Campaign status summary."""
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        return _campaign_to_dict(c) if c else None


def start_campaign_generation(campaign_id: str, target_city_count: int):
    """Mark campaign as GENERATING."""
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        if not c:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        c.status = CampaignStatus.GENERATING
        c.target_city_count = target_city_count
        c.cities_generated = 0
        c.cities_failed = 0
        c.error_message = None
        c.generation_started_at = datetime.utcnow()
        c.generation_completed_at = None


def claim_campaign_generation(campaign_id: str) -> bool:
    """
    Move a campaign to GENERATING unless a run is already in flight.

    Done as one conditional UPDATE so two concurrent requests cannot
    both start a run.

    Returns:
        True if this caller claimed the run, False if one is in progress

    Raises:
        NotFoundError: Unknown campaign
    """
    with get_db_context() as db:
        claimed = db.execute(
            update(ProductCampaign)
            .where(
                ProductCampaign.id == campaign_id,
                or_(
                    ProductCampaign.status != CampaignStatus.GENERATING,
                    ProductCampaign.generation_completed_at.isnot(None),
                ),
            )
            .values(
                status=CampaignStatus.GENERATING,
                error_message=None,
                generation_started_at=datetime.utcnow(),
                generation_completed_at=None,
            )
            .execution_options(synchronize_session=False)
        ).rowcount

        if not claimed and db.get(ProductCampaign, campaign_id) is None:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return bool(claimed)


def set_main_product_image(campaign_id: str, image_url: str):
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        if c:
            c.main_product_image_url = image_url


def complete_campaign_generation(
    campaign_id: str,
    generated: int,
    failed: int,
    status: CampaignStatus,
):
    """Record final counts after the last batch settles."""
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        if c:
            c.cities_generated = generated
            c.cities_failed = failed
            c.status = status
            c.generation_completed_at = datetime.utcnow()
            logger.info(
                f"Campaign {campaign_id} finished: {generated} generated, "
                f"{failed} failed, status {status.value}"
            )


def fail_campaign(campaign_id: str, error_message: str):
    """Mark campaign as failed"""
    with get_db_context() as db:
        c = db.get(ProductCampaign, campaign_id)
        if c:
            c.status = CampaignStatus.FAILED
            c.error_message = error_message
            c.generation_completed_at = datetime.utcnow()
            logger.error(f"Campaign {campaign_id} failed: {error_message}")


def _campaign_to_dict(c: ProductCampaign) -> Dict[str, Any]:
    return {
        "id": c.id,
        "product_name": c.product_name,
        "quantity": c.quantity,
        "size": c.size,
        "material": c.material,
        "turnaround": c.turnaround,
        "price": c.price,
        "content_type": c.content_type or "product",
        "language": c.language or "en",
        "status": c.status.value if c.status else None,
        "target_city_count": c.target_city_count,
        "cities_generated": c.cities_generated,
        "cities_failed": c.cities_failed,
        "main_product_image_url": c.main_product_image_url,
        "error_message": c.error_message,
        "generation_started_at": _iso(c.generation_started_at),
        "generation_completed_at": _iso(c.generation_completed_at),
    }


# =============================================================================
# CITY LANDING PAGES
# =============================================================================

PAGE_CONTENT_FIELDS = (
    "slug", "title", "meta_description", "h1", "keywords",
    "ai_intro", "ai_benefits", "faqs", "schema_markup", "recruitment_section",
    "main_product_image_url", "hero_image_url",
)


def save_city_page(page: Dict[str, Any], publish: bool = True) -> str:
    """
    Persist a generated page.

    A new page starts with zeroed metrics. Saving over an existing id
    replaces content and keeps the accumulated metrics.

    Returns:
        Page id
    """
    with get_db_context() as db:
        row = db.get(CityLandingPage, page["id"])
        if not row:
            row = CityLandingPage(
                id=page["id"],
                campaign_id=page["campaign_id"],
                city_id=page["city_id"],
                views=0,
                clicks=0,
                conversions=0,
                revenue=0.0,
            )
            db.add(row)

        for name in PAGE_CONTENT_FIELDS:
            if name in page:
                setattr(row, name, page[name])

        if publish:
            row.status = PageStatus.PUBLISHED
            row.published = True
            row.published_at = row.published_at or datetime.utcnow()
        else:
            row.status = PageStatus.DRAFT
            row.published = False

        db.flush()
        return row.id


def get_page(page_id: str) -> Optional[Dict[str, Any]]:
    with get_db_context() as db:
        row = db.get(CityLandingPage, page_id)
        return _page_to_dict(row) if row else None


def update_page(page_id: str, fields: Dict[str, Any]) -> bool:
    """Update content fields of an existing page. Unknown fields are ignored."""
    with get_db_context() as db:
        row = db.get(CityLandingPage, page_id)
        if not row:
            return False
        for name, value in fields.items():
            if name in PAGE_CONTENT_FIELDS:
                setattr(row, name, value)
        return True


def record_page_metrics(
    page_id: str,
    views: Optional[int] = None,
    clicks: Optional[int] = None,
    conversions: Optional[int] = None,
    revenue: Optional[float] = None,
) -> bool:
    """Overwrite metric counters with the latest analytics snapshot."""
    with get_db_context() as db:
        row = db.get(CityLandingPage, page_id)
        if not row:
            return False
        if views is not None:
            row.views = views
        if clicks is not None:
            row.clicks = clicks
        if conversions is not None:
            row.conversions = conversions
        if revenue is not None:
            row.revenue = revenue
        return True


def get_top_pages_by_revenue(campaign_id: str, limit: int) -> List[Dict[str, Any]]:
    """Top pages of a campaign by stored revenue, highest first."""
    with get_db_context() as db:
        rows = (
            db.query(CityLandingPage)
            .filter(CityLandingPage.campaign_id == campaign_id)
            .order_by(CityLandingPage.revenue.desc(), CityLandingPage.id)
            .limit(limit)
            .all()
        )
        return [_page_to_dict(r) for r in rows]


def list_campaign_pages(campaign_id: str) -> List[Dict[str, Any]]:
    with get_db_context() as db:
        rows = (
            db.query(CityLandingPage)
            .filter(CityLandingPage.campaign_id == campaign_id)
            .order_by(CityLandingPage.id)
            .all()
        )
        return [_page_to_dict(r) for r in rows]


def _page_to_dict(p: CityLandingPage) -> Dict[str, Any]:
    return {
        "id": p.id,
        "campaign_id": p.campaign_id,
        "city_id": p.city_id,
        "slug": p.slug,
        "title": p.title,
        "meta_description": p.meta_description,
        "h1": p.h1,
        "keywords": list(p.keywords or []),
        "ai_intro": p.ai_intro or "",
        "ai_benefits": list(p.ai_benefits or []),
        "faqs": list(p.faqs or []),
        "schema_markup": p.schema_markup or {},
        "recruitment_section": p.recruitment_section,
        "main_product_image_url": p.main_product_image_url,
        "hero_image_url": p.hero_image_url,
        "status": p.status.value if p.status else None,
        "published": bool(p.published),
        "views": p.views or 0,
        "clicks": p.clicks or 0,
        "conversions": p.conversions or 0,
        "revenue": p.revenue or 0.0,
    }


# =============================================================================
# WINNER PATTERNS
# =============================================================================

def save_winner_pattern(
    campaign_id: str,
    product_type: str,
    pattern_name: str,
    content_structure: Dict[str, Any],
    seo_structure: Dict[str, Any],
    conversion_elements: Dict[str, Any],
    source_city_slugs: List[str],
    source_page_ids: List[str],
    avg_score: float,
    min_score: float,
    sample_size: int,
    confidence: int,
) -> str:
    """
    Store a new pattern. Patterns are append-only.

    Returns:
        Pattern id
    """
    with get_db_context() as db:
        pattern = WinnerPattern(
            campaign_id=campaign_id,
            product_type=product_type,
            pattern_name=pattern_name,
            content_structure=content_structure,
            seo_structure=seo_structure,
            conversion_elements=conversion_elements,
            source_city_slugs=source_city_slugs,
            source_page_ids=source_page_ids,
            avg_score=avg_score,
            min_score=min_score,
            sample_size=sample_size,
            confidence=confidence,
        )
        db.add(pattern)
        db.flush()

        logger.info(f"Stored winner pattern {pattern.id} ({pattern_name}) from {sample_size} pages")
        return pattern.id


def get_winner_pattern(pattern_id: str) -> Optional[Dict[str, Any]]:
    with get_db_context() as db:
        row = db.get(WinnerPattern, pattern_id)
        return _pattern_to_dict(row) if row else None


def get_latest_winner_pattern(campaign_id: str) -> Optional[Dict[str, Any]]:
    with get_db_context() as db:
        row = (
            db.query(WinnerPattern)
            .filter(WinnerPattern.campaign_id == campaign_id)
            .order_by(WinnerPattern.created_at.desc())
            .first()
        )
        return _pattern_to_dict(row) if row else None


def _pattern_to_dict(w: WinnerPattern) -> Dict[str, Any]:
    return {
        "id": w.id,
        "campaign_id": w.campaign_id,
        "product_type": w.product_type,
        "pattern_name": w.pattern_name,
        "content_structure": w.content_structure or {},
        "seo_structure": w.seo_structure or {},
        "conversion_elements": w.conversion_elements or {},
        "source_city_slugs": list(w.source_city_slugs or []),
        "source_page_ids": list(w.source_page_ids or []),
        "avg_score": w.avg_score,
        "min_score": w.min_score,
        "sample_size": w.sample_size,
        "confidence": w.confidence,
        "created_at": _iso(w.created_at),
    }


# =============================================================================
# IMPROVEMENT DECISIONS
# =============================================================================

def create_improvement_decision(
    page_id: str,
    pattern_id: str,
    current_score: float,
    target_score: float,
    options: List[Dict[str, Any]],
    used_fallback: bool,
) -> str:
    """
    Store a proposed plan in PENDING state.

    Returns:
        Decision id
    """
    with get_db_context() as db:
        decision = ImprovementDecision(
            page_id=page_id,
            pattern_id=pattern_id,
            current_score=current_score,
            target_score=target_score,
            options=options,
            used_fallback=used_fallback,
            status=DecisionStatus.PENDING,
        )
        db.add(decision)
        db.flush()
        return decision.id


def get_improvement_decision(decision_id: str) -> Optional[Dict[str, Any]]:
    with get_db_context() as db:
        row = db.get(ImprovementDecision, decision_id)
        return _decision_to_dict(row) if row else None


def approve_improvement_decision(decision_id: str, option: str) -> Dict[str, Any]:
    """
    Record the human's choice. Only PENDING decisions can be approved.

    Raises:
        NotFoundError: Unknown decision
        DecisionStateError: Decision already decided
    """
    with get_db_context() as db:
        row = db.get(ImprovementDecision, decision_id)
        if not row:
            raise NotFoundError(f"Decision {decision_id} not found")
        if row.status != DecisionStatus.PENDING:
            raise DecisionStateError(
                f"Decision {decision_id} is {row.status.value}, expected pending"
            )

        row.status = DecisionStatus.APPROVED
        row.selected_option = option
        row.decided_at = datetime.utcnow()
        db.flush()

        logger.info(f"Decision {decision_id} approved with option {option}")
        return _decision_to_dict(row)


def claim_improvement_decision(decision_id: str) -> Dict[str, Any]:
    """
    Move an APPROVED decision to EXECUTING in one conditional UPDATE.

    Exactly one caller wins the claim; every other caller gets
    DecisionStateError, so a decision is applied at most once.

    Raises:
        NotFoundError: Unknown decision
        DecisionStateError: Decision is not approved (or already claimed)
    """
    with get_db_context() as db:
        claimed = db.execute(
            update(ImprovementDecision)
            .where(
                ImprovementDecision.id == decision_id,
                ImprovementDecision.status == DecisionStatus.APPROVED,
            )
            .values(status=DecisionStatus.EXECUTING)
            .execution_options(synchronize_session=False)
        ).rowcount

        row = db.get(ImprovementDecision, decision_id)
        if not row:
            raise NotFoundError(f"Decision {decision_id} not found")
        if not claimed:
            raise DecisionStateError(
                f"Decision {decision_id} is {row.status.value}; only approved decisions run"
            )

        logger.info(f"Decision {decision_id} claimed for execution (option {row.selected_option})")
        return _decision_to_dict(row)


def finish_improvement_decision(
    decision_id: str,
    success: bool,
    changes: List[str],
    error_message: Optional[str] = None,
):
    with get_db_context() as db:
        row = db.get(ImprovementDecision, decision_id)
        if row:
            row.status = DecisionStatus.EXECUTED if success else DecisionStatus.FAILED
            row.changes = changes
            row.error_message = error_message
            row.executed_at = datetime.utcnow()


def _decision_to_dict(d: ImprovementDecision) -> Dict[str, Any]:
    return {
        "id": d.id,
        "page_id": d.page_id,
        "pattern_id": d.pattern_id,
        "current_score": d.current_score,
        "target_score": d.target_score,
        "options": list(d.options or []),
        "used_fallback": bool(d.used_fallback),
        "status": d.status.value if d.status else None,
        "selected_option": d.selected_option,
        "changes": list(d.changes or []),
        "error_message": d.error_message,
    }


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None
