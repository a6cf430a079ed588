"""
Tests for the stockout forecast.

What we test
------------
1. Days until stockout is ceil(stock / daily_sales).
2. Status bands: critical <= 3, warning <= 7, safe otherwise.
3. Zero or negative velocity gives (None, "unknown").
4. Negative stock is treated as 0.
5. safe <=> ceil(stock / daily) >= 8 over a grid of inputs.
6. ForecastAssessment rejects an inconsistent unknown pairing.
"""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from inventory_signals.models.assessment import ForecastAssessment
from inventory_signals.risk.forecast import compute_forecast, forecast_status


class TestComputeForecast:
    def test_exact_critical_boundary(self):
        f = compute_forecast(9, 3)
        assert f.days_until_stockout == 3
        assert f.status == "critical"

    def test_rounds_up(self):
        f = compute_forecast(10, 3)
        assert f.days_until_stockout == 4
        assert f.status == "warning"

    def test_warning_upper_boundary(self):
        assert compute_forecast(14, 2).status == "warning"   # 7 days

    def test_safe_just_past_warning(self):
        f = compute_forecast(16, 2)
        assert f.days_until_stockout == 8
        assert f.status == "safe"

    def test_no_sales_is_unknown(self):
        f = compute_forecast(10, 0)
        assert f.days_until_stockout is None
        assert f.status == "unknown"

    def test_negative_velocity_is_unknown(self):
        assert compute_forecast(10, -1.0).status == "unknown"

    def test_zero_stock_is_critical(self):
        f = compute_forecast(0, 1.5)
        assert f.days_until_stockout == 0
        assert f.status == "critical"

    def test_negative_stock_treated_as_zero(self):
        assert compute_forecast(-4, 2).days_until_stockout == 0

    def test_fractional_velocity(self):
        assert compute_forecast(1, 0.25).days_until_stockout == 4

    def test_custom_cutoffs(self):
        assert compute_forecast(10, 2, critical_days=5, warning_days=10).status == "critical"

    @pytest.mark.parametrize("stock", [0, 1, 5, 7, 8, 15, 16, 40, 100])
    @pytest.mark.parametrize("daily", [0.3, 1, 2, 2.5, 7])
    def test_safe_iff_eight_or_more_days(self, stock, daily):
        f = compute_forecast(stock, daily)
        assert (f.status == "safe") == (math.ceil(stock / daily) >= 8)


class TestForecastStatus:
    @pytest.mark.parametrize("days,expected", [
        (0, "critical"), (3, "critical"), (4, "warning"), (7, "warning"), (8, "safe"),
    ])
    def test_bands(self, days, expected):
        assert forecast_status(days) == expected


class TestForecastAssessment:
    def test_unknown_with_days_raises(self):
        with pytest.raises(ValidationError, match="unknown"):
            ForecastAssessment(days_until_stockout=3, status="unknown")

    def test_known_without_days_raises(self):
        with pytest.raises(ValidationError, match="unknown"):
            ForecastAssessment(days_until_stockout=None, status="safe")

    def test_negative_days_raises(self):
        with pytest.raises(ValidationError, match="non-negative"):
            ForecastAssessment(days_until_stockout=-1, status="critical")

    def test_frozen(self):
        f = compute_forecast(9, 3)
        with pytest.raises(ValidationError):
            f.status = "safe"
