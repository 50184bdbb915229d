"""
Pytest configuration and shared fixtures for knobgen tests.
"""

import pytest

from knobgen.core.knob import KnobGeometry
from knobgen.io.loaders import KnobParams, ResolutionParams


# ─── Resolution settings ─────────────────────────────────────────────────


@pytest.fixture(scope="module")
def coarse_resolution():
    """Low segment counts so full knob builds stay fast."""
    return ResolutionParams(radial_segments=16, sphere_segments=16)


# ─── Module-scoped typed params ──────────────────────────────────────────


@pytest.fixture(scope="module")
def plain_round_params():
    """35x14mm knob with a 6mm round bore and no ridges or indent."""
    return KnobParams(
        knob_diameter_mm=35.0,
        knob_height_mm=14.0,
        shaft_type="round",
        shaft_diameter_mm=6.0,
        outer_ridged=False,
        top_indent=False,
    )


@pytest.fixture(scope="module")
def d_shape_params():
    """Same as plain_round_params but with a D-shaft bore."""
    return KnobParams(
        knob_diameter_mm=35.0,
        knob_height_mm=14.0,
        shaft_type="d_shape",
        shaft_diameter_mm=6.0,
        outer_ridged=False,
        top_indent=False,
    )


# ─── Module-scoped built geometry ────────────────────────────────────────


@pytest.fixture(scope="module")
def built_plain_round(plain_round_params, coarse_resolution):
    """Module-scoped KnobGeometry for the plain round-bore knob, already built."""
    geo = KnobGeometry(plain_round_params, coarse_resolution)
    geo.build()
    return geo


@pytest.fixture(scope="module")
def built_d_shape(d_shape_params, coarse_resolution):
    """Module-scoped built D-shaft knob mesh."""
    return KnobGeometry(d_shape_params, coarse_resolution).build()


