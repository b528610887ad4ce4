#!/usr/bin/env python3
"""
Campaign Runner

Drives a product campaign from the command line:

    create    create a campaign from a product or service JSON file
    generate  generate all city pages for a campaign
    winners   extract the winner pattern from the top pages
    losers    list underperforming pages
    improve   propose options A/B/C for a page
    select    approve an option (and optionally execute it)
    translate translate a page into another language

Usage:
    export ANTHROPIC_API_KEY=your_key
    export IMAGE_API_URL=https://images.example.com

    python scripts/run_campaign.py create data/product.sample.json
    python scripts/run_campaign.py create data/service.sample.json --language es
    python scripts/run_campaign.py generate <campaign_id>
    python scripts/run_campaign.py winners <campaign_id> --top 10
    python scripts/run_campaign.py improve <page_id> --pattern <pattern_id>
    python scripts/run_campaign.py select <decision_id> B --execute
    python scripts/run_campaign.py translate <page_id> es
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from seo_brain.database import create_campaign, get_latest_winner_pattern, get_page, init_db
from seo_brain.generator.prompt_sets import get_prompt_set
from seo_brain.models import ProductCampaignSpec, RecruitmentSpec
from seo_brain.optimizer.winner import DEFAULT_LOSER_THRESHOLD, DEFAULT_TOP_COUNT
from seo_brain.pipeline import build_pipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def load_product(path: str, content_type: str = None, language: str = None) -> ProductCampaignSpec:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    content_type = content_type or data.get("content_type", "product")
    language = language or data.get("language", "en")
    get_prompt_set(content_type, language)

    return ProductCampaignSpec(
        product_name=data["product_name"],
        quantity=int(data["quantity"]),
        size=data["size"],
        material=data["material"],
        turnaround=data["turnaround"],
        price=float(data["price"]),
        online_only=data.get("online_only", True),
        keywords=data.get("keywords", []),
        industries=data.get("industries", []),
        reference_image_path=data.get("reference_image_path"),
        content_type=content_type,
        language=language,
        average_refund=data.get("average_refund"),
        recruitment=RecruitmentSpec.from_dict(data.get("recruitment")),
    )


async def run_command(args) -> dict:
    """Run one subcommand against a fresh pipeline."""
    pipeline = build_pipeline()
    try:
        if args.command == "generate":
            result = await pipeline.runner.generate_campaign(args.campaign_id)
            output = result.to_dict()
            output.pop("results")
            output["failed_cities"] = [
                {"city": r.city, "stage": r.last_completed_stage.value, "error": r.error}
                for r in result.results
                if not r.success
            ]
            return output

        if args.command == "winners":
            result = await pipeline.winner_analyzer.analyze_winners(args.campaign_id, top_count=args.top)
            return result.to_dict()

        if args.command == "losers":
            losers = await pipeline.winner_analyzer.find_underperformers(
                args.campaign_id, threshold=args.threshold, limit=args.limit
            )
            return {"campaign_id": args.campaign_id, "underperformers": losers}

        if args.command == "improve":
            pattern_id = args.pattern
            if not pattern_id:
                page = get_page(args.page_id)
                if not page:
                    raise SystemExit(f"Page {args.page_id} not found")
                pattern = get_latest_winner_pattern(page["campaign_id"])
                if not pattern:
                    raise SystemExit("No winner pattern for this campaign; run 'winners' first")
                pattern_id = pattern["id"]
            plan = await pipeline.improver.generate_improvement_options(args.page_id, pattern_id)
            return plan.to_dict()

        if args.command == "select":
            decision = await pipeline.improver.select_option(args.decision_id, args.option)
            if not args.execute:
                return decision
            result = await pipeline.improver.execute_improvement(args.decision_id)
            return {
                "decision_id": result.decision_id,
                "option": result.option,
                "success": result.success,
                "changes": result.changes,
                "error": result.error,
            }

        if args.command == "translate":
            return await pipeline.translator.translate_page(
                args.page_id, args.target_locale, args.source
            )

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await pipeline.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate and optimize programmatic city landing pages"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a campaign from a product JSON file")
    create.add_argument("product_file", help="Path to product or service JSON")
    create.add_argument("--content-type", choices=["product", "service"], default=None)
    create.add_argument("--language", default=None, help="Page language (en, es)")

    generate = sub.add_parser("generate", help="Generate city pages for a campaign")
    generate.add_argument("campaign_id")

    winners = sub.add_parser("winners", help="Extract the winner pattern")
    winners.add_argument("campaign_id")
    winners.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_COUNT,
        help=f"Number of top pages to analyze (default: {DEFAULT_TOP_COUNT})"
    )

    losers = sub.add_parser("losers", help="List underperforming pages")
    losers.add_argument("campaign_id")
    losers.add_argument("--threshold", type=float, default=DEFAULT_LOSER_THRESHOLD)
    losers.add_argument("--limit", type=int, default=10)

    improve = sub.add_parser("improve", help="Propose improvement options for a page")
    improve.add_argument("page_id")
    improve.add_argument("--pattern", default=None, help="Winner pattern id (default: latest)")

    select = sub.add_parser("select", help="Approve an improvement option")
    select.add_argument("decision_id")
    select.add_argument("option", choices=["A", "B", "C", "a", "b", "c"])
    select.add_argument("--execute", action="store_true", help="Execute right after approval")

    translate = sub.add_parser("translate", help="Translate a page into another language")
    translate.add_argument("page_id")
    translate.add_argument("target_locale", help="Locale code such as es, fr, de")
    translate.add_argument("--source", default="en", help="Source locale (default: en)")

    args = parser.parse_args()

    load_dotenv()
    init_db()

    if args.command == "create":
        spec = load_product(args.product_file, args.content_type, args.language)
        campaign_id = create_campaign(spec)
        print(json.dumps({"campaign_id": campaign_id}, indent=2))
        return

    result = asyncio.run(run_command(args))
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()
