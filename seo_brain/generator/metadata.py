"""
SEO metadata and schema.org markup for city pages.

Deterministic templating only. These fields are what search engines
index, so they never come from the LLM.

The JSON-LD @graph shape (Product, LocalBusiness, FAQPage) is consumed
downstream and its field names must not change.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from seo_brain.models import CityProfile, ProductCampaignSpec

DEFAULT_SITE_URL = "https://gangrunprinting.com"
DEFAULT_BUSINESS_NAME = "GangRun Printing"
DEFAULT_PATH_PREFIX = "/print"


@dataclass
class SEOMetadata:
    title: str
    description: str
    h1: str
    keywords: List[str] = field(default_factory=list)


def build_slug(product_name: str, city: CityProfile) -> str:
    """'Premium Flyers' + seattle-wa -> 'premium-flyers-seattle-wa'"""
    base = re.sub(r"\s+", "-", product_name.lower())
    base = re.sub(r"[^a-z0-9-]", "", base)
    return f"{base}-{city.slug}"


def build_page_id(campaign_id: str, city: CityProfile) -> str:
    return f"city-{campaign_id}-{city.slug}"


def build_page_path(slug: str, path_prefix: str = DEFAULT_PATH_PREFIX) -> str:
    return f"{path_prefix}/{slug}"


def build_seo_metadata(city: CityProfile, spec: ProductCampaignSpec) -> SEOMetadata:
    """Title, meta description, H1 and keyword list for one city page."""
    name = spec.product_name
    name_lower = name.lower()
    city_lower = city.name.lower()

    title = (
        f"{spec.quantity} {spec.size} {name} in {city.name}, {city.state} "
        f"| {spec.turnaround} | {spec.price_label}"
    )
    description = (
        f"Order {spec.quantity} {spec.size} {name} in {city.name}. "
        f"{spec.material}, {spec.turnaround} turnaround. "
        f"Online special: {spec.price_label}. Free shipping to all {city.state} locations."
    )
    h1 = f"{name} in {city.name}, {city.state}"

    keywords = [
        f"{name_lower} {city_lower}",
        f"{name_lower} printing {city_lower}",
        f"{spec.size} {name_lower}",
        f"{spec.turnaround} {name_lower}",
        f"cheap {name_lower} {city_lower}",
        f"fast {name_lower} {city.state.lower()}",
        *spec.keywords,
    ]

    return SEOMetadata(title=title, description=description, h1=h1, keywords=keywords)


def build_schema_markup(
    city: CityProfile,
    spec: ProductCampaignSpec,
    faqs: List[Dict[str, str]],
    slug: str,
    site_url: str = DEFAULT_SITE_URL,
    business_name: str = DEFAULT_BUSINESS_NAME,
    path_prefix: str = DEFAULT_PATH_PREFIX,
) -> Dict[str, Any]:
    """JSON-LD with Product, LocalBusiness and FAQPage nodes."""
    return {
        "@context": "https://schema.org",
        "@graph": [
            {
                "@type": "Product",
                "name": f"{spec.product_name} - {city.name}, {city.state}",
                "description": f"{spec.quantity} {spec.size} {spec.product_name} in {spec.material}",
                "offers": {
                    "@type": "Offer",
                    "price": spec.price,
                    "priceCurrency": "USD",
                    "availability": "https://schema.org/InStock",
                    "url": f"{site_url.rstrip('/')}{build_page_path(slug, path_prefix)}",
                    "areaServed": {
                        "@type": "City",
                        "name": city.name,
                        "containedIn": {
                            "@type": "State",
                            "name": city.state,
                        },
                    },
                },
            },
            {
                "@type": "LocalBusiness",
                "name": business_name,
                "description": f"Professional printing services in {city.name}, {city.state}",
                "areaServed": {
                    "@type": "City",
                    "name": city.name,
                    "addressRegion": city.state,
                },
            },
            {
                "@type": "FAQPage",
                "mainEntity": [
                    {
                        "@type": "Question",
                        "name": faq["question"],
                        "acceptedAnswer": {
                            "@type": "Answer",
                            "text": faq["answer"],
                        },
                    }
                    for faq in faqs
                ],
            },
        ],
    }
