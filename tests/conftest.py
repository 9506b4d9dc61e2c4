"""Shared fixtures for the interpolation tests."""

import pytest

from idw_api.entities import Region
from tests.helpers import square_region


@pytest.fixture
def region_10km() -> Region:
    return square_region(10)
