"""
Unit tests for series.py module.

Tests step-wise lookups, month windows, append-only updates and the
construction of EconomicIndicators from indicator rows.
"""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from cashledger.exceptions import SeriesError
from cashledger.series import EconomicIndicators, IndexedSeries


class TestConstruction:

    def test_empty(self):
        s = IndexedSeries()
        assert s.is_empty
        assert len(s) == 0
        assert s.first_date is None
        assert s.last_date is None

    def test_sorted_and_deduplicated(self):
        s = IndexedSeries({date(2024, 3, 1): 3.0, date(2024, 1, 1): 1.0})
        assert s.first_date == date(2024, 1, 1)
        assert s.last_date == date(2024, 3, 1)

    def test_monthly_normalizes_keys(self):
        s = IndexedSeries.monthly({date(2024, 1, 15): 0.01, date(2024, 1, 31): 0.03})
        assert len(s) == 1
        # last value wins for the same month
        assert s.get_month(date(2024, 1, 1)) == pytest.approx(0.03)
        assert s.is_monthly

    def test_non_finite_rejected(self):
        with pytest.raises(SeriesError, match="finite"):
            IndexedSeries({date(2024, 1, 1): float("inf")})

    def test_from_pandas(self):
        ps = pd.Series([1.0, 2.0], index=pd.to_datetime(["2024-01-01", "2024-02-01"]), name="fx")
        s = IndexedSeries.from_pandas(ps)
        assert s.name == "fx"
        assert s.asof(date(2024, 1, 20)) == 1.0

    def test_to_series_is_copy(self):
        s = IndexedSeries({date(2024, 1, 1): 1.0})
        copy = s.to_series()
        copy.iloc[0] = 99.0
        assert s.asof(date(2024, 1, 1)) == 1.0


class TestAsof:
    """Step-function lookups."""

    @pytest.fixture
    def fx(self):
        return IndexedSeries({date(2024, 1, 10): 800.0, date(2024, 2, 10): 850.0})

    def test_exact_date(self, fx):
        assert fx.asof(date(2024, 2, 10)) == 850.0

    def test_between_points(self, fx):
        assert fx.asof(date(2024, 2, 9)) == 800.0

    def test_after_last(self, fx):
        assert fx.asof(date(2030, 1, 1)) == 850.0

    def test_before_first_falls_back_to_earliest(self, fx):
        assert fx.asof(date(2020, 1, 1)) == 800.0

    def test_before_first_without_fallback(self, fx):
        assert fx.asof(date(2020, 1, 1), fallback_to_earliest=False) == 0.0

    def test_empty_series(self):
        assert IndexedSeries().asof(date(2024, 1, 1)) == 0.0


class TestMonthLookups:

    def test_get_month_missing(self, flat_inflation):
        assert flat_inflation.get_month(date(2025, 1, 1)) is None
        assert not flat_inflation.has_month(date(2025, 1, 1))

    def test_get_month_any_day(self, flat_inflation):
        assert flat_inflation.get_month(date(2024, 6, 17)) == pytest.approx(0.02)

    def test_window_with_gap(self):
        s = IndexedSeries.monthly({date(2024, 1, 1): 0.01, date(2024, 3, 1): 0.03})
        w = s.window(date(2024, 1, 1), 4)
        assert w[0] == pytest.approx(0.01)
        assert np.isnan(w[1])
        assert w[2] == pytest.approx(0.03)
        assert np.isnan(w[3])

    def test_window_zero_periods(self, flat_inflation):
        assert flat_inflation.window(date(2024, 1, 1), 0).size == 0

    def test_window_daily_keys_bucket_by_month(self):
        s = IndexedSeries({date(2024, 1, 15): 0.01, date(2024, 2, 29): 0.02, date(2024, 2, 3): 0.05})
        w = s.window(date(2024, 1, 1), 3)
        assert w[0] == pytest.approx(0.01)
        # last observation inside the month wins, as in get_month
        assert w[1] == pytest.approx(s.get_month(date(2024, 2, 1)))
        assert w[1] == pytest.approx(0.02)
        assert np.isnan(w[2])

    def test_window_empty_series(self):
        w = IndexedSeries().window(date(2024, 1, 1), 2)
        assert w.shape == (2,)
        assert np.isnan(w).all()


class TestAppend:

    def test_append_returns_new_series(self):
        s = IndexedSeries.monthly({date(2024, 1, 1): 0.01})
        s2 = s.append(date(2024, 2, 1), 0.02)
        assert len(s) == 1
        assert len(s2) == 2
        assert s2.get_month(date(2024, 2, 1)) == pytest.approx(0.02)

    def test_append_must_be_after_last(self):
        s = IndexedSeries({date(2024, 2, 1): 1.0})
        with pytest.raises(SeriesError, match="append-only"):
            s.append(date(2024, 2, 1), 2.0)
        with pytest.raises(SeriesError):
            s.append(date(2024, 1, 1), 2.0)

    def test_append_to_empty(self):
        s = IndexedSeries().append(date(2024, 1, 1), 5.0)
        assert s.asof(date(2024, 1, 1)) == 5.0


class TestEconomicIndicators:

    def test_from_records(self):
        records = [
            {"type": "IPC", "date": "2024-01-01", "value": 2.5},
            {"type": "IPC", "date": date(2024, 2, 1), "value": 3.0},
            {"type": "TC_USD_ARS", "date": "2024-01-05", "value": 820.0},
            {"type": "UVA", "date": "2024-01-01", "value": 500.0},
        ]
        ind = EconomicIndicators.from_records(records)

        assert ind.inflation.get_month(date(2024, 1, 1)) == pytest.approx(0.025)
        assert ind.inflation.get_month(date(2024, 2, 1)) == pytest.approx(0.03)
        assert ind.fx.asof(date(2024, 1, 31)) == 820.0
        assert len(ind.inflation) == 2
        assert len(ind.fx) == 1

    def test_decimal_inflation(self):
        records = [{"type": "IPC", "date": "2024-01-01", "value": 0.025}]
        ind = EconomicIndicators.from_records(records, inflation_in_percent=False)
        assert ind.inflation.get_month(date(2024, 1, 1)) == pytest.approx(0.025)

    def test_defaults_empty(self):
        ind = EconomicIndicators()
        assert ind.inflation.is_empty
        assert ind.fx.is_empty
