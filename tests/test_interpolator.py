"""Tests for the IDW estimator."""

import random

import pytest

from idw_api.entities import KnownPoint
from idw_api.errors import InvalidParameterError
from idw_api.services.geo import haversine_km
from idw_api.services.interpolator import IdwInterpolator, estimate, estimate_all


def random_points(n: int, seed: int = 42):
    rng = random.Random(seed)
    return [
        KnownPoint(lat=rng.uniform(51.0, 52.0), lng=rng.uniform(7.0, 8.0), value=rng.uniform(-20.0, 40.0))
        for _ in range(n)
    ]


class TestHaversine:
    """Distance helper."""

    def test_zero_for_same_point(self):
        """Identical coordinates are exactly 0 km apart."""
        assert haversine_km(51.96, 7.62, 51.96, 7.62) == 0.0

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is about 111.2 km."""
        assert float(haversine_km(0.0, 0.0, 1.0, 0.0)) == pytest.approx(111.195, abs=0.01)


class TestExactness:
    """A centroid on top of a known point gets that point's value."""

    @pytest.mark.parametrize("power", [0.5, 1, 2, 7.5])
    def test_known_point_value_returned(self, power):
        """Exact hit ignores power and all other points."""
        points = random_points(30)
        target = points[13]
        assert estimate(points, (target.lat, target.lng), power) == target.value

    def test_every_known_point(self):
        """Estimating at all known locations returns all known values."""
        points = random_points(50)
        values = estimate_all(points, [(p.lat, p.lng) for p in points], 2)
        assert values == [p.value for p in points]


class TestWeightedMean:
    """Away from known points the estimate is a weighted mean."""

    def test_single_point_everywhere(self):
        """With one known point, every estimate is that point's value."""
        points = [KnownPoint(lat=51.5, lng=7.5, value=42.0)]
        centroids = [(51.0, 7.0), (52.0, 8.0), (51.5, 7.50001), (-30.0, 120.0)]
        assert estimate_all(points, centroids, 1) == [42.0] * 4

    def test_within_value_range(self):
        """Estimates never leave [min, max] of the known values."""
        points = random_points(40)
        lo, hi = min(p.value for p in points), max(p.value for p in points)
        rng = random.Random(7)
        centroids = [(rng.uniform(50.5, 52.5), rng.uniform(6.5, 8.5)) for _ in range(500)]
        for power in (0.3, 1, 3):
            for v in estimate_all(points, centroids, power):
                assert lo <= v <= hi

    def test_equal_values_stay_equal(self):
        """Known points with the same value give exactly that value."""
        points = [KnownPoint(lat=51.0 + i / 10, lng=7.0 + i / 7, value=3.3) for i in range(9)]
        assert all(v == 3.3 for v in estimate_all(points, [(51.23, 7.41), (51.8, 7.9)], 2))

    def test_midpoint_of_two_points(self):
        """Halfway between two points on the equator is their plain mean."""
        points = [KnownPoint(lat=0.0, lng=0.0, value=10.0), KnownPoint(lat=0.0, lng=1.0, value=20.0)]
        assert estimate(points, (0.0, 0.5), 3) == pytest.approx(15.0)

    def test_closer_point_dominates(self):
        """Higher power pulls the estimate towards the nearest point."""
        points = [KnownPoint(lat=0.0, lng=0.0, value=0.0), KnownPoint(lat=0.0, lng=1.0, value=100.0)]
        near_second = (0.0, 0.8)
        weak = estimate(points, near_second, 1)
        strong = estimate(points, near_second, 4)
        assert 50 < weak < strong < 100

    def test_inverse_distance_weights(self):
        """power=1 weights are 1/d."""
        points = [KnownPoint(lat=0.0, lng=0.0, value=0.0), KnownPoint(lat=0.0, lng=1.0, value=100.0)]
        d0 = float(haversine_km(0.0, 0.25, 0.0, 0.0))
        d1 = float(haversine_km(0.0, 0.25, 0.0, 1.0))
        expected = (100.0 / d1) / (1 / d0 + 1 / d1)
        assert estimate(points, (0.0, 0.25), 1) == pytest.approx(expected)

    def test_values_near_float_limit(self):
        """Weighted means of huge values stay finite and inside the known range."""
        points = [KnownPoint(lat=0.0, lng=0.0, value=1e308), KnownPoint(lat=0.0, lng=1.0, value=1.6e308)]
        v = estimate(points, (0.0, 0.5), 1)
        assert v == pytest.approx(1.3e308)
        assert 1e308 <= v <= 1.6e308

    def test_huge_power_is_finite(self):
        """Large powers don't overflow or produce NaN."""
        points = random_points(10)
        for v in estimate_all(points, [(51.5, 7.5), (51.50000001, 7.5)], 400):
            assert v == v  # not NaN
            assert min(p.value for p in points) <= v <= max(p.value for p in points)


class TestChunking:
    """Chunked evaluation matches one-by-one evaluation."""

    def test_chunk_size_does_not_matter(self):
        """Results are identical for any chunk size."""
        points = random_points(25)
        rng = random.Random(3)
        centroids = [(rng.uniform(51, 52), rng.uniform(7, 8)) for _ in range(97)]
        whole = IdwInterpolator(points, 2, chunk_size=1000).interpolate_many(centroids)
        tiny = IdwInterpolator(points, 2, chunk_size=1).interpolate_many(centroids)
        odd = IdwInterpolator(points, 2, chunk_size=13).interpolate_many(centroids)
        assert whole == tiny == odd

    def test_single_matches_batch(self):
        """interpolate() gives the same number as interpolate_many()."""
        points = random_points(25)
        interp = IdwInterpolator(points, 1.5)
        centroids = [(51.1, 7.2), (51.9, 7.95)]
        assert [interp.interpolate(*c) for c in centroids] == interp.interpolate_many(centroids)


class TestEdgeCases:
    """Empty input and bad parameters."""

    def test_no_known_points(self):
        """Without known points every estimate is None."""
        assert estimate_all([], [(1.0, 1.0), (2.0, 2.0)], 1) == [None, None]
        assert estimate([], (1.0, 1.0), 1) is None

    def test_no_centroids(self):
        """Nothing to estimate gives an empty list."""
        assert estimate_all(random_points(3), [], 1) == []

    @pytest.mark.parametrize("power", [0, -1, float("nan"), float("inf")])
    def test_bad_power(self, power):
        """power must be a positive finite number."""
        with pytest.raises(InvalidParameterError):
            IdwInterpolator(random_points(3), power)
