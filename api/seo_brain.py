"""
API Endpoints for SEO Brain

FastAPI app that drives the campaign lifecycle:
1. Create a product campaign
2. Generate city pages in the background
3. Feed page metrics back in
4. Extract winner patterns and propose improvements for losers
5. Record the human's choice and execute it
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from seo_brain import __version__
from seo_brain.database import (
    check_db_connection,
    claim_campaign_generation,
    create_campaign,
    get_campaign,
    get_improvement_decision,
    get_latest_winner_pattern,
    get_page,
    init_db,
    list_campaign_pages,
    record_page_metrics,
)
from seo_brain.errors import (
    ContentValidationError,
    DecisionStateError,
    GenerationError,
    NotFoundError,
    PatternExtractionError,
)
from seo_brain.generator.prompt_sets import get_prompt_set
from seo_brain.models import ProductCampaignSpec, RecruitmentSpec
from seo_brain.optimizer.scoring import score_page
from seo_brain.optimizer.winner import DEFAULT_LOSER_THRESHOLD, DEFAULT_TOP_COUNT
from seo_brain.pipeline import Pipeline, build_pipeline
from seo_brain.utils.config import get_settings

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

app = FastAPI(
    title="SEO Brain",
    description="Programmatic city landing pages with a human-gated optimization loop",
    version=__version__,
)

_pipeline: Optional[Pipeline] = None


def get_pipeline() -> Pipeline:
    """Build the pipeline on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


# ============================================================================
# STARTUP / SHUTDOWN
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    global _pipeline
    if _pipeline is not None:
        await _pipeline.close()
        _pipeline = None


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class RecruitmentRequest(BaseModel):
    avg_income: int = Field(..., gt=0)
    benefits: List[str] = Field(default_factory=list)
    training_duration: str = "Self-paced"
    certification_provided: bool = True
    year_round: bool = False
    top_earner_income: Optional[int] = Field(default=None, gt=0)


class CampaignRequest(BaseModel):
    """A product or service to generate city pages for."""
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    size: str
    material: str
    turnaround: str
    price: float = Field(..., ge=0)
    online_only: bool = True
    keywords: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    reference_image_path: Optional[str] = Field(
        default=None,
        description="Local path of a product photo used as image reference",
    )
    content_type: str = Field(default="product", description="product or service")
    language: str = Field(default="en", description="Page language: en, or es for service pages")
    average_refund: Optional[float] = Field(default=None, ge=0)
    recruitment: Optional[RecruitmentRequest] = None

    def to_spec(self) -> ProductCampaignSpec:
        return ProductCampaignSpec(
            product_name=self.product_name,
            quantity=self.quantity,
            size=self.size,
            material=self.material,
            turnaround=self.turnaround,
            price=self.price,
            online_only=self.online_only,
            keywords=self.keywords,
            industries=self.industries,
            reference_image_path=self.reference_image_path,
            content_type=self.content_type,
            language=self.language,
            average_refund=self.average_refund,
            recruitment=RecruitmentSpec(**self.recruitment.model_dump()) if self.recruitment else None,
        )


class CampaignCreated(BaseModel):
    campaign_id: str
    status: str


class GenerationStarted(BaseModel):
    campaign_id: str
    status: str
    message: str


class PageMetrics(BaseModel):
    """Analytics snapshot for one page. Omitted fields stay unchanged."""
    views: Optional[int] = Field(default=None, ge=0)
    clicks: Optional[int] = Field(default=None, ge=0)
    conversions: Optional[int] = Field(default=None, ge=0)
    revenue: Optional[float] = Field(default=None, ge=0)


class WinnerRequest(BaseModel):
    top_count: int = Field(default=DEFAULT_TOP_COUNT, gt=0)


class ImprovementRequest(BaseModel):
    pattern_id: Optional[str] = Field(
        default=None,
        description="Winner pattern to improve towards; latest for the campaign if omitted",
    )


class SelectionRequest(BaseModel):
    option: str = Field(..., description="A, B or C")
    execute: bool = Field(default=False, description="Run the option right away")


class TranslationRequest(BaseModel):
    target_locale: str = Field(..., description="Locale code such as es, fr, de")
    source_locale: str = "en"


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {"status": "ok", "service": "SEO Brain"}


@app.get("/api/health")
async def health():
    """Health check including database and cache status."""
    db_connected = False
    try:
        db_connected = check_db_connection()
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")

    cache = {"status": "not_initialized"}
    if _pipeline is not None:
        cache = await _pipeline.cache.health_check()

    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "database": "connected" if db_connected else "disconnected",
        "cache": cache,
    }


@app.post("/api/campaigns", response_model=CampaignCreated)
async def create_product_campaign(request: CampaignRequest):
    try:
        get_prompt_set(request.content_type, request.language)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    campaign_id = create_campaign(request.to_spec())
    return CampaignCreated(campaign_id=campaign_id, status="pending")


@app.get("/api/campaigns/{campaign_id}")
async def get_campaign_status(campaign_id: str):
    campaign = get_campaign(campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@app.post("/api/campaigns/{campaign_id}/generate", response_model=GenerationStarted)
async def trigger_generation(
    campaign_id: str,
    background_tasks: BackgroundTasks,
    pipeline: Pipeline = Depends(get_pipeline),
):
    """
    Start page generation for a campaign.

    Returns immediately; poll GET /api/campaigns/{id} for progress.
    """
    try:
        claimed = claim_campaign_generation(campaign_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Campaign not found")
    if not claimed:
        raise HTTPException(status_code=409, detail="Campaign is already generating")

    background_tasks.add_task(run_generation, pipeline, campaign_id)
    logger.info(f"Generation requested for campaign {campaign_id}")

    return GenerationStarted(
        campaign_id=campaign_id,
        status="generating",
        message="Generation started",
    )


@app.get("/api/campaigns/{campaign_id}/pages")
async def get_campaign_pages(campaign_id: str):
    """Pages with their current performance score."""
    if not get_campaign(campaign_id):
        raise HTTPException(status_code=404, detail="Campaign not found")

    pages = list_campaign_pages(campaign_id)
    return [
        {
            "id": p["id"],
            "slug": p["slug"],
            "title": p["title"],
            "status": p["status"],
            "views": p["views"],
            "conversions": p["conversions"],
            "revenue": p["revenue"],
            "score": score_page(p),
        }
        for p in pages
    ]


@app.get("/api/campaigns/{campaign_id}/underperformers")
async def get_underperformers(
    campaign_id: str,
    threshold: float = DEFAULT_LOSER_THRESHOLD,
    limit: int = 10,
    pipeline: Pipeline = Depends(get_pipeline),
):
    return await pipeline.winner_analyzer.find_underperformers(campaign_id, threshold, limit)


@app.post("/api/campaigns/{campaign_id}/winners")
async def analyze_winners(
    campaign_id: str,
    request: Optional[WinnerRequest] = None,
    pipeline: Pipeline = Depends(get_pipeline),
):
    top_count = request.top_count if request else DEFAULT_TOP_COUNT
    try:
        result = await pipeline.winner_analyzer.analyze_winners(campaign_id, top_count=top_count)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PatternExtractionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return result.to_dict()


@app.post("/api/pages/{page_id}/metrics")
async def update_page_metrics(page_id: str, metrics: PageMetrics):
    if not record_page_metrics(page_id, **metrics.model_dump()):
        raise HTTPException(status_code=404, detail="Page not found")
    page = get_page(page_id)
    return {"page_id": page_id, "score": score_page(page)}


@app.post("/api/pages/{page_id}/translate")
async def translate_page(
    page_id: str,
    request: TranslationRequest,
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Translated copy of a page. The stored page is not changed."""
    try:
        return await pipeline.translator.translate_page(
            page_id, request.target_locale, request.source_locale
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Page not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (GenerationError, ContentValidationError) as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.post("/api/pages/{page_id}/improvements")
async def propose_improvements(
    page_id: str,
    request: Optional[ImprovementRequest] = None,
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Create a pending decision with options A/B/C for a page."""
    page = get_page(page_id)
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")

    pattern_id = request.pattern_id if request else None
    if not pattern_id:
        pattern = get_latest_winner_pattern(page["campaign_id"])
        if not pattern:
            raise HTTPException(
                status_code=409,
                detail="No winner pattern for this campaign; analyze winners first",
            )
        pattern_id = pattern["id"]

    try:
        plan = await pipeline.improver.generate_improvement_options(page_id, pattern_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return plan.to_dict()


@app.get("/api/improvements/{decision_id}")
async def get_decision(decision_id: str):
    decision = get_improvement_decision(decision_id)
    if not decision:
        raise HTTPException(status_code=404, detail="Decision not found")
    return decision


@app.post("/api/improvements/{decision_id}/select")
async def select_improvement(
    decision_id: str,
    request: SelectionRequest,
    pipeline: Pipeline = Depends(get_pipeline),
):
    """Approve one option; optionally execute it in the same call."""
    try:
        decision = await pipeline.improver.select_option(decision_id, request.option)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DecisionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not request.execute:
        return decision

    try:
        result = await pipeline.improver.execute_improvement(decision_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DecisionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "decision_id": result.decision_id,
        "option": result.option,
        "success": result.success,
        "changes": result.changes,
        "error": result.error,
    }


@app.post("/api/cache/invalidate/{service}")
async def invalidate_cache(service: str, pipeline: Pipeline = Depends(get_pipeline)):
    deleted = await pipeline.cache.invalidate_service(service)
    return {"service": service, "deleted": deleted}


@app.get("/api/cache/stats")
async def cache_stats(pipeline: Pipeline = Depends(get_pipeline)):
    return pipeline.cache.get_stats()


# ============================================================================
# BACKGROUND PROCESSING
# ============================================================================

async def run_generation(pipeline: Pipeline, campaign_id: str) -> Dict[str, Any]:
    """Run a campaign to completion and log the outcome."""
    result = await pipeline.runner.generate_campaign(campaign_id)
    if result.error:
        logger.error(f"Campaign {campaign_id} generation error: {result.error}")
    logger.info(
        f"Campaign {campaign_id} done in {result.duration_seconds:.1f}s: "
        f"{result.generated} generated, {result.failed} failed, status {result.status}"
    )
    return result.to_dict()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.seo_brain:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
