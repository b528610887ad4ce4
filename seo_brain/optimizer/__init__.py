"""Optimization loop: scoring, winner pattern extraction, loser improvement."""

from .loser import (
    FALLBACK_OPTIONS,
    DecisionOption,
    ImprovementPlan,
    ImprovementResult,
    LoserImprover,
    fallback_options,
)
from .scoring import calculate_performance_score, score_page
from .winner import PageSummary, WinnerAnalysisResult, WinnerAnalyzer

__all__ = [
    "FALLBACK_OPTIONS",
    "DecisionOption",
    "ImprovementPlan",
    "ImprovementResult",
    "LoserImprover",
    "fallback_options",
    "calculate_performance_score",
    "score_page",
    "PageSummary",
    "WinnerAnalysisResult",
    "WinnerAnalyzer",
]
