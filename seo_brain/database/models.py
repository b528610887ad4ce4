"""
SQLAlchemy Models for SEO Brain

Tables:
1. cities - reference data, seeded once, read-only to the pipeline
2. product_campaigns - one row per product generation run
3. city_landing_pages - one generated page per (campaign, city)
4. winner_patterns - immutable patterns extracted from top performers
5. improvement_decisions - proposed improvement plans awaiting a human choice

JSON columns use the generic JSON type so the same models run on
PostgreSQL in production and SQLite in tests.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, Enum, Index, JSON,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(enum.Enum):
    """Status of a product campaign"""
    PENDING = "pending"
    GENERATING = "generating"
    OPTIMIZING = "optimizing"   # All target cities generated
    FAILED = "failed"           # Main product image failed


class PageStatus(enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class DecisionStatus(enum.Enum):
    """Lifecycle of an improvement decision"""
    PENDING = "pending"       # Waiting for a human to pick an option
    APPROVED = "approved"     # Option selected, not yet executed
    EXECUTING = "executing"   # Claimed by one execute_improvement call
    EXECUTED = "executed"
    FAILED = "failed"


# =============================================================================
# REFERENCE DATA
# =============================================================================

class City(Base):
    """Target city profile"""
    __tablename__ = "cities"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    state = Column(String(50), nullable=False)
    slug = Column(String(150), unique=True, nullable=False)
    population = Column(Integer, default=0)

    # Local context used in prompts
    industries = Column(JSON, default=list)
    neighborhoods = Column(JSON, default=list)
    venues = Column(JSON, default=list)
    famous_for = Column(JSON, default=list)
    zip_codes = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_cities_population", "population"),
    )


# =============================================================================
# CAMPAIGNS AND PAGES
# =============================================================================

class ProductCampaign(Base):
    """A product generation run across the target cities"""
    __tablename__ = "product_campaigns"

    id = Column(String(36), primary_key=True, default=_uuid)

    # Product spec
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    size = Column(String(50), nullable=False)
    material = Column(String(255), nullable=False)
    turnaround = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    online_only = Column(Boolean, default=True)
    keywords = Column(JSON, default=list)
    industries = Column(JSON, default=list)
    reference_image_path = Column(String(500))

    # Prompt family: product or service, en or es
    content_type = Column(String(20), default="product")
    language = Column(String(5), default="en")
    average_refund = Column(Float)
    recruitment = Column(JSON)

    # Generation state
    status = Column(Enum(CampaignStatus), default=CampaignStatus.PENDING)
    target_city_count = Column(Integer, default=0)
    cities_generated = Column(Integer, default=0)
    cities_failed = Column(Integer, default=0)
    main_product_image_url = Column(String(1000))
    error_message = Column(Text)

    generation_started_at = Column(DateTime)
    generation_completed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pages = relationship("CityLandingPage", back_populates="campaign")


class CityLandingPage(Base):
    """Generated landing page for one city"""
    __tablename__ = "city_landing_pages"

    # city-{campaign_id}-{city_slug}
    id = Column(String(255), primary_key=True)
    campaign_id = Column(String(36), ForeignKey("product_campaigns.id"), nullable=False)
    city_id = Column(String(36), ForeignKey("cities.id"), nullable=False)
    slug = Column(String(255), nullable=False)

    # SEO fields
    title = Column(String(500))
    meta_description = Column(Text)
    h1 = Column(String(500))
    keywords = Column(JSON, default=list)

    # Generated content
    ai_intro = Column(Text)
    ai_benefits = Column(JSON, default=list)
    faqs = Column(JSON, default=list)  # [{question, answer}]
    schema_markup = Column(JSON, default=dict)
    recruitment_section = Column(Text)

    # Images
    main_product_image_url = Column(String(1000))
    hero_image_url = Column(String(1000))

    # Publication
    status = Column(Enum(PageStatus), default=PageStatus.DRAFT)
    published = Column(Boolean, default=False)
    published_at = Column(DateTime)

    # Metrics (written by the analytics collaborator)
    views = Column(Integer, default=0)
    clicks = Column(Integer, default=0)
    conversions = Column(Integer, default=0)
    revenue = Column(Float, default=0.0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    campaign = relationship("ProductCampaign", back_populates="pages")
    city = relationship("City")

    __table_args__ = (
        Index("idx_pages_campaign_revenue", "campaign_id", "revenue"),
        Index("idx_pages_slug", "slug"),
    )


# =============================================================================
# OPTIMIZATION LOOP
# =============================================================================

class WinnerPattern(Base):
    """Pattern shared by the top-performing pages of a campaign. Never updated."""
    __tablename__ = "winner_patterns"

    id = Column(String(36), primary_key=True, default=_uuid)
    campaign_id = Column(String(36), ForeignKey("product_campaigns.id"), nullable=False)
    product_type = Column(String(100))
    pattern_name = Column(String(255), nullable=False)

    content_structure = Column(JSON, default=dict)
    seo_structure = Column(JSON, default=dict)
    conversion_elements = Column(JSON, default=dict)

    # Provenance
    source_city_slugs = Column(JSON, default=list)
    source_page_ids = Column(JSON, default=list)
    avg_score = Column(Float)
    min_score = Column(Float)
    sample_size = Column(Integer)
    confidence = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_patterns_campaign_created", "campaign_id", "created_at"),
    )


class ImprovementDecision(Base):
    """Improvement plan for one page, gated on a human selecting an option"""
    __tablename__ = "improvement_decisions"

    id = Column(String(36), primary_key=True, default=_uuid)
    page_id = Column(String(255), ForeignKey("city_landing_pages.id"), nullable=False)
    pattern_id = Column(String(36), ForeignKey("winner_patterns.id"), nullable=False)

    current_score = Column(Float, nullable=False)
    target_score = Column(Float, nullable=False)
    options = Column(JSON, default=list)  # 3 DecisionOption dicts
    used_fallback = Column(Boolean, default=False)

    status = Column(Enum(DecisionStatus), default=DecisionStatus.PENDING)
    selected_option = Column(String(1))
    changes = Column(JSON, default=list)
    error_message = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    decided_at = Column(DateTime)
    executed_at = Column(DateTime)
