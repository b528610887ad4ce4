"""
Tests for page performance scoring.

score = 0.5 * conversions + 0.3 * views + 0.2 * revenue, each term
normalized against its cap (10 / 500 / $1000) and clamped to 0-100.
"""

import pytest

from seo_brain.optimizer import calculate_performance_score, score_page


class TestPerformanceScore:
    """Test calculate_performance_score()."""

    def test_zero_metrics(self):
        assert calculate_performance_score(0, 0, 0) == 0

    def test_all_caps_reached(self):
        assert calculate_performance_score(10, 500, 1000) == 100

    def test_caps_clamp_each_term(self):
        assert calculate_performance_score(1000, 10**6, 10**7) == 100

    @pytest.mark.parametrize("conversions,views,revenue,expected", [
        (10, 0, 0, 50.0),
        (0, 500, 0, 30.0),
        (0, 0, 1000, 20.0),
        (5, 250, 500, 50.0),
        (1, 100, 50, 12.0),
    ])
    def test_weights(self, conversions, views, revenue, expected):
        assert calculate_performance_score(conversions, views, revenue) == expected

    def test_monotone_in_each_metric(self):
        base = calculate_performance_score(3, 120, 200)
        assert calculate_performance_score(4, 120, 200) > base
        assert calculate_performance_score(3, 121, 200) > base
        assert calculate_performance_score(3, 120, 201) > base

    def test_negative_values_clamped(self):
        assert calculate_performance_score(-5, -100, -1) == 0

    def test_score_page_reads_repository_dict(self):
        page = {"conversions": 10, "views": 500, "revenue": 0.0, "slug": "x"}
        assert score_page(page) == 80.0

    def test_score_page_missing_metrics(self):
        assert score_page({}) == 0
