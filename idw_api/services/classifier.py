# services/classifier.py
# Equal-interval class breaks for choropleth colouring

import math
from bisect import bisect_right
from typing import Callable, List, Sequence, Tuple

from idw_api.errors import InvalidParameterError


def equal_interval_breaks(values: Sequence[float], num_classes: int) -> List[float]:
    """
    num_classes + 1 ascending boundaries from min(values) to max(values).

    Returns [] when there is nothing to classify.
    """
    if isinstance(num_classes, bool) or not isinstance(num_classes, int) or num_classes < 1:
        raise InvalidParameterError(f"numClasses must be an integer >= 1, got {num_classes}")
    if not values:
        return []

    lo, hi = min(values), max(values)
    step = (hi - lo) / num_classes
    if math.isfinite(step):
        breaks = [lo + k * step for k in range(num_classes)]
    else:
        # hi - lo overflowed; blend the endpoints instead
        breaks = [lo * ((num_classes - k) / num_classes) + hi * (k / num_classes) for k in range(num_classes)]
    # the last break is the max itself, not lo + n * step
    breaks.append(hi)
    return breaks


def classify(values: Sequence[float], num_classes: int) -> Tuple[List[float], Callable[[float], int]]:
    """
    Compute breaks for values and return them with a function that maps a
    value to its class index in 0..num_classes-1.

    A value belongs to the greatest k with breaks[k] <= value; the maximum
    lands in the last class. If every value is the same, everything is class 0.
    """
    breaks = equal_interval_breaks(values, num_classes)
    last = num_classes - 1
    degenerate = not breaks or breaks[0] == breaks[-1]

    def class_of(value: float) -> int:
        if degenerate:
            return 0
        k = bisect_right(breaks, value) - 1
        return min(max(k, 0), last)

    return breaks, class_of
