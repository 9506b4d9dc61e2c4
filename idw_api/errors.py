# errors.py
# Exceptions raised by the interpolation engine

"""
Every failure the engine can report falls into one of three outcomes the
HTTP layer distinguishes:

- BadInputError: the caller sent something unusable (400)
- CostRejectedError: the request is valid but too expensive (422)
- ComputationFailedError: something broke on our side (500)
"""


class InterpolationError(Exception):
    """Base class for all engine errors."""


class BadInputError(InterpolationError):
    """Missing or invalid request input (phenomenon, region, parameters)."""


class InvalidParameterError(BadInputError):
    """A numeric or enumerated parameter is out of range."""


class InvalidGridError(BadInputError):
    """The grid cannot be built: bad cell width or degenerate region."""


class CostRejectedError(InterpolationError):
    """Estimated cell count exceeds the cost ceiling.

    This is a policy decision, not a fault. The caller has to shrink the
    region or widen the cells.
    """

    def __init__(self, area_sq_km: float, ratio: float, ceiling: float):
        self.area_sq_km = area_sq_km
        self.ratio = ratio
        self.ceiling = ceiling
        super().__init__(
            f"computation too expensive ((area in square kilometers / cellWidth) > {ceiling:g})"
        )


class ComputationFailedError(InterpolationError):
    """Unexpected internal fault. Details are logged, never returned."""

    def __init__(self, message: str = "interpolation failed"):
        super().__init__(message)
