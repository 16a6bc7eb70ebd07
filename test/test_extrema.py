"""
Tests for tidepredict.predict.extrema

Discrete extremum detection and parabolic refinement.
"""

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from tidepredict.constituents import ConstituentParam, get_speed
from tidepredict.predict import (
    Extrema,
    PredictionParams,
    TideLevel,
    find_extrema,
    generate_predictions,
    predict_extrema,
    refine_extrema,
    refine_extremum,
    series_extrema,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def series(heights, step=timedelta(hours=1)):
    return [TideLevel(T0 + i * step, float(h)) for i, h in enumerate(heights)]


class TestFindExtrema:
    """Test strict local maxima and minima"""

    def test_one_period_sinusoid(self):
        levels = series(np.sin(2.0 * np.pi * np.arange(13) / 12.0))
        extrema = find_extrema(levels)
        assert len(extrema.highs) == 1
        assert len(extrema.lows) == 1
        assert extrema.highs[0].time == T0 + timedelta(hours=3)
        assert extrema.lows[0].time == T0 + timedelta(hours=9)

    def test_endpoints_never_reported(self):
        extrema = find_extrema(series([5.0, 1.0, 2.0, 0.0, 6.0]))
        assert [lv.height for lv in extrema.highs] == [2.0]
        assert [lv.height for lv in extrema.lows] == [1.0, 0.0]

    def test_plateau_not_detected(self):
        extrema = find_extrema(series([0.0, 1.0, 1.0, 0.0, -1.0, -1.0, 0.0]))
        assert extrema.highs == []
        assert extrema.lows == []

    def test_short_series(self):
        assert find_extrema(series([0.0, 1.0])) == Extrema()
        assert find_extrema([]) == Extrema()

    def test_monotonic(self):
        extrema = find_extrema(series(range(10)))
        assert extrema.highs == [] and extrema.lows == []


class TestRefineExtremum:
    """Test three-point parabolic refinement"""

    def test_symmetric_peak_unchanged(self):
        a, b, c = series([0.0, 1.0, 0.0])
        t, h = refine_extremum(a, b, c)
        assert t == b.time
        assert h == pytest.approx(1.0)

    def test_offset_vertex(self):
        # h = -(x - 0.3)^2 sampled at x = -1, 0, 1 hours
        a, b, c = series([-(x - 0.3) ** 2 for x in (-1.0, 0.0, 1.0)])
        t, h = refine_extremum(a, b, c)
        assert (t - b.time).total_seconds() == pytest.approx(0.3 * 3600.0, abs=1e-3)
        assert h == pytest.approx(0.0, abs=1e-12)

    def test_non_uniform_spacing(self):
        a = TideLevel(T0, 0.0)
        b = TideLevel(T0 + timedelta(hours=1), 1.0)
        c = TideLevel(T0 + timedelta(hours=3), 0.0)
        assert refine_extremum(a, b, c) == (b.time, b.height)

    def test_negligible_curvature(self):
        a, b, c = series([0.0, 0.5, 1.0])
        assert refine_extremum(a, b, c) == (b.time, b.height)

    def test_vertex_too_far(self):
        # vertex 9.5 hours from the middle sample
        a, b, c = series([0.0, 1.0, 1.9])
        assert refine_extremum(a, b, c) == (b.time, b.height)


class TestRefineExtrema:
    """Test refinement of whole extremum lists"""

    def test_refined_m2_extrema(self):
        speed = get_speed('M2')
        params = PredictionParams(
            constituents=[ConstituentParam('M2', 1.0, 0.0, speed)],
            reference_time=T0)
        dense = generate_predictions(T0 + timedelta(hours=1), T0 + timedelta(hours=26),
                                     timedelta(minutes=1), params)
        extrema = refine_extrema(dense, find_extrema(dense))
        assert len(extrema.highs) == 2
        assert len(extrema.lows) == 2

        period = 360.0 / speed
        expected_highs = [T0 + timedelta(hours=period), T0 + timedelta(hours=2 * period)]
        for level, expected in zip(extrema.highs, expected_highs):
            assert abs((level.time - expected).total_seconds()) < 1.0
            assert level.height == pytest.approx(1.0, abs=1e-6)
        for level in extrema.lows:
            assert level.height == pytest.approx(-1.0, abs=1e-6)

    def test_sorted_by_time(self):
        levels = series(np.sin(2.0 * np.pi * np.arange(40) / 12.0))
        found = find_extrema(levels)
        shuffled = Extrema(highs=found.highs[::-1], lows=found.lows[::-1])
        refined = refine_extrema(levels, shuffled)
        times = [lv.time for lv in refined.highs]
        assert times == sorted(times)
        assert len(refined.highs) == len(found.highs)

    def test_foreign_candidate_kept(self):
        levels = series([0.0, 1.0, 0.0, -1.0, 0.0])
        stray = TideLevel(T0 - timedelta(days=1), 3.0)
        refined = refine_extrema(levels, Extrema(highs=[stray], lows=[]))
        assert refined.highs == [stray]

    def test_short_series_unchanged(self):
        levels = series([0.0, 1.0])
        extrema = Extrema(highs=[levels[1]])
        assert refine_extrema(levels, extrema) is extrema


class TestSeriesExtrema:
    """Test extrema of uniformly sampled height arrays"""

    @pytest.fixture
    def params(self):
        return PredictionParams(
            constituents=[
                ConstituentParam('M2', 1.0, 30.0, get_speed('M2')),
                ConstituentParam('K1', 0.4, 200.0, get_speed('K1')),
                ConstituentParam('S2', 0.3, 75.0, get_speed('S2')),
            ],
            msl=0.2,
            reference_time=T0)

    def test_matches_list_refinement(self, params):
        start = T0 + timedelta(hours=3)
        end = start + timedelta(days=2)
        step = timedelta(minutes=10)
        dense = generate_predictions(start, end, step, params)
        expected = refine_extrema(dense, find_extrema(dense))
        result = predict_extrema(start, end, step, params)
        assert len(result.highs) == len(expected.highs) > 0
        assert len(result.lows) == len(expected.lows) > 0
        for got, want in zip(result.highs + result.lows, expected.highs + expected.lows):
            assert abs((got.time - want.time).total_seconds()) < 1e-3
            assert got.height == pytest.approx(want.height, abs=1e-9)

    def test_discrete_sample_kept(self):
        # negligible curvature keeps the discrete sample
        heights = [0.0, 1.0 - 1e-12, 1.0, 1.0 - 1e-12, 0.0]
        extrema = series_extrema(T0, timedelta(hours=1), heights)
        assert extrema.highs == [TideLevel(T0 + timedelta(hours=2), 1.0)]

    def test_short_array(self):
        assert series_extrema(T0, timedelta(minutes=1), [1.0, 2.0]) == Extrema()

    def test_naive_start_is_utc(self, params):
        naive = datetime(2024, 1, 1, 3)
        aware = naive.replace(tzinfo=timezone.utc)
        a = predict_extrema(naive, naive + timedelta(days=1), timedelta(minutes=5), params)
        b = predict_extrema(aware, aware + timedelta(days=1), timedelta(minutes=5), params)
        assert a == b
        assert a.highs[0].time.tzinfo is not None

    def test_year_at_one_minute(self):
        speed = get_speed('M2')
        params = PredictionParams(
            constituents=[ConstituentParam('M2', 1.0, 0.0, speed)], reference_time=T0)
        extrema = predict_extrema(T0, T0 + timedelta(days=365), timedelta(minutes=1), params)
        cycles = 365.0 * 24.0 * speed / 360.0
        assert abs(len(extrema.highs) - cycles) <= 1.0
        assert abs(len(extrema.lows) - cycles) <= 1.0
        for level in extrema.highs[::50]:
            assert level.height == pytest.approx(1.0, abs=1e-6)
