"""
SEO Brain Database Layer

Usage:
    from seo_brain.database import init_db, create_campaign, get_top_cities

    init_db()
    campaign_id = create_campaign(spec)
    cities = get_top_cities(200)
"""

from .models import (
    Base,
    City,
    ProductCampaign,
    CityLandingPage,
    WinnerPattern,
    ImprovementDecision,
    CampaignStatus,
    PageStatus,
    DecisionStatus,
)
from .session import (
    get_database_url,
    get_engine,
    configure_database,
    reset_database_state,
    get_db_context,
    init_db,
    check_db_connection,
)
from .repository import (
    upsert_city,
    get_top_cities,
    get_city_profile,
    count_cities,
    create_campaign,
    get_campaign_spec,
    get_campaign,
    start_campaign_generation,
    claim_campaign_generation,
    set_main_product_image,
    complete_campaign_generation,
    fail_campaign,
    save_city_page,
    get_page,
    update_page,
    record_page_metrics,
    get_top_pages_by_revenue,
    list_campaign_pages,
    save_winner_pattern,
    get_winner_pattern,
    get_latest_winner_pattern,
    create_improvement_decision,
    get_improvement_decision,
    approve_improvement_decision,
    claim_improvement_decision,
    finish_improvement_decision,
)

__all__ = [
    "Base",
    "City",
    "ProductCampaign",
    "CityLandingPage",
    "WinnerPattern",
    "ImprovementDecision",
    "CampaignStatus",
    "PageStatus",
    "DecisionStatus",
    "get_database_url",
    "get_engine",
    "configure_database",
    "reset_database_state",
    "get_db_context",
    "init_db",
    "check_db_connection",
    "upsert_city",
    "get_top_cities",
    "get_city_profile",
    "count_cities",
    "create_campaign",
    "get_campaign_spec",
    "get_campaign",
    "start_campaign_generation",
    "claim_campaign_generation",
    "set_main_product_image",
    "complete_campaign_generation",
    "fail_campaign",
    "save_city_page",
    "get_page",
    "update_page",
    "record_page_metrics",
    "get_top_pages_by_revenue",
    "list_campaign_pages",
    "save_winner_pattern",
    "get_winner_pattern",
    "get_latest_winner_pattern",
    "create_improvement_decision",
    "get_improvement_decision",
    "approve_improvement_decision",
    "claim_improvement_decision",
    "finish_improvement_decision",
]
