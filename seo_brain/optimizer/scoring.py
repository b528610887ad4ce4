"""
Page performance scoring.

    score = 0.5 * conversions_term + 0.3 * views_term + 0.2 * revenue_term

Each term is the metric normalized against its cap (10 conversions,
500 views, $1000 revenue) and clamped to [0, 100], so no single metric
can lift a page past its share and the score is monotone in every input.
"""

from typing import Any, Dict

CONVERSIONS_CAP = 10
VIEWS_CAP = 500
REVENUE_CAP = 1000.0

CONVERSIONS_WEIGHT = 0.5
VIEWS_WEIGHT = 0.3
REVENUE_WEIGHT = 0.2


def _normalize(value: float, cap: float) -> float:
    return max(0.0, min((value or 0) / cap * 100, 100.0))


def calculate_performance_score(conversions: float, views: float, revenue: float) -> float:
    """Weighted 0-100 performance score."""
    score = (
        CONVERSIONS_WEIGHT * _normalize(conversions, CONVERSIONS_CAP)
        + VIEWS_WEIGHT * _normalize(views, VIEWS_CAP)
        + REVENUE_WEIGHT * _normalize(revenue, REVENUE_CAP)
    )
    return round(score, 2)


def score_page(page: Dict[str, Any]) -> float:
    """Score a page dict as returned by the repository."""
    return calculate_performance_score(
        page.get("conversions", 0),
        page.get("views", 0),
        page.get("revenue", 0.0),
    )
