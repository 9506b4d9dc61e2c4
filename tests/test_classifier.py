"""Tests for equal-interval classification."""

import math
import random

import pytest

from idw_api.errors import InvalidParameterError
from idw_api.services.classifier import classify, equal_interval_breaks


class TestBreaks:
    """Break computation."""

    def test_equal_intervals(self):
        """0..60 in 6 classes steps by 10."""
        assert equal_interval_breaks([0.0, 60.0, 25.0], 6) == [0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0]

    def test_endpoints_and_monotonic(self):
        """First break is the min, last the max, never decreasing in between."""
        rng = random.Random(1)
        values = [rng.uniform(-13.7, 88.1) for _ in range(200)]
        for n in (1, 2, 5, 7, 12):
            breaks = equal_interval_breaks(values, n)
            assert len(breaks) == n + 1
            assert breaks[0] == min(values)
            assert breaks[-1] == max(values)
            assert all(a <= b for a, b in zip(breaks, breaks[1:]))

    def test_all_values_equal(self):
        """min == max collapses every break onto that value."""
        assert equal_interval_breaks([4.2, 4.2], 3) == [4.2, 4.2, 4.2, 4.2]

    def test_range_wider_than_float_max(self):
        """max - min overflows a float; breaks still run from min to max."""
        breaks = equal_interval_breaks([-1e308, 0.0, 1e308], 4)
        assert breaks == pytest.approx([-1e308, -5e307, 0.0, 5e307, 1e308])
        assert breaks[0] == -1e308 and breaks[-1] == 1e308
        assert all(math.isfinite(b) for b in breaks)

        _, class_of = classify([-1e308, 1e308], 4)
        assert class_of(-1e308) == 0
        assert class_of(1e308) == 3
        assert class_of(1e307) == 2

    def test_no_values(self):
        """Nothing to classify gives no breaks."""
        assert equal_interval_breaks([], 6) == []

    @pytest.mark.parametrize("n", [0, -2, 2.5, True])
    def test_bad_class_count(self, n):
        """numClasses must be an integer >= 1."""
        with pytest.raises(InvalidParameterError):
            equal_interval_breaks([1.0, 2.0], n)


class TestClassAssignment:
    """Mapping values to class indices."""

    def test_greatest_break_below(self):
        """A value belongs to the last break that does not exceed it."""
        _, class_of = classify([0.0, 60.0], 6)
        assert class_of(0.0) == 0
        assert class_of(9.99) == 0
        assert class_of(10.0) == 1
        assert class_of(35.0) == 3
        assert class_of(59.9) == 5

    def test_max_in_last_class(self):
        """The maximum maps to num_classes - 1, not past it."""
        values = [1.0, 2.0, 3.0, 11.0]
        _, class_of = classify(values, 4)
        assert class_of(11.0) == 3

    def test_every_value_has_a_class(self):
        """All values map into 0..n-1."""
        rng = random.Random(5)
        values = [rng.gauss(10, 4) for _ in range(300)]
        _, class_of = classify(values, 5)
        classes = {class_of(v) for v in values}
        assert classes <= set(range(5))
        assert class_of(max(values)) == 4
        assert class_of(min(values)) == 0

    def test_degenerate_all_class_zero(self):
        """Identical values are all class 0."""
        breaks, class_of = classify([7.0, 7.0, 7.0], 6)
        assert breaks == [7.0] * 7
        assert class_of(7.0) == 0

    def test_single_class(self):
        """With one class everything is class 0."""
        _, class_of = classify([1.0, 5.0, 9.0], 1)
        assert [class_of(v) for v in (1.0, 5.0, 9.0)] == [0, 0, 0]
