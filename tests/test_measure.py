"""Tests for post-build wall thickness measurement."""

import math
import numpy as np
import pytest

from knobgen.core.csg import CSGEngine
from knobgen.core.knob import KnobGeometry
from knobgen.core.measure import (
    HEIGHT_SPAN,
    WALL_WARNING_THRESHOLD_MM,
    WallThicknessResult,
    measure_slice,
    measure_wall_thickness,
    sample_heights,
    section_segments,
    slice_at_height,
)
from knobgen.core.mesh import PolygonMesh
from knobgen.core.primitives import box, cylinder
from knobgen.core.stitching import to_trimesh
from knobgen.io.loaders import KnobParams


def _perimeter(segments):
    return sum(math.hypot(x2 - x1, z2 - z1) for (x1, z1), (x2, z2) in segments)


@pytest.fixture(scope="module")
def thin_walled_knob(coarse_resolution):
    """10mm knob around an 8mm shaft (about 0.9mm of wall)."""
    params = KnobParams(
        knob_diameter_mm=10.0,
        shaft_diameter_mm=8.0,
        outer_ridged=False,
        top_indent=False,
    )
    return KnobGeometry(params, coarse_resolution).build()


class TestSlicing:
    """Tests for horizontal sections."""

    def test_box_section_is_square(self):
        segments = slice_at_height(box(2, 2, 2), 0.0)
        assert _perimeter(segments) == pytest.approx(8.0)
        for segment in segments:
            for x, z in segment:
                assert max(abs(x), abs(z)) == pytest.approx(1.0)

    def test_slice_outside_mesh_is_empty(self):
        assert slice_at_height(box(2, 2, 2), 5.0) == []

    def test_plane_through_cap_counts_once(self):
        """A plane exactly at a cap yields the square outline once."""
        assert _perimeter(slice_at_height(box(2, 2, 2), 1.0)) == pytest.approx(8.0)

    def test_empty_mesh_section(self):
        assert slice_at_height(PolygonMesh(), 0.0) == []

    def test_solid_cylinder_has_no_cavity(self):
        section = measure_slice(cylinder(5, 4, 24), 0.0)
        assert section.cavity_radius_mm == 0.0
        assert section.wall_mm == pytest.approx(5 * math.cos(math.pi / 24))

    def test_tube_section(self):
        tube = CSGEngine().subtract(cylinder(5, 4, 24), cylinder(2, 6, 24))
        section = measure_slice(tube, 0.3)
        assert section.outer_radius_mm == pytest.approx(5 * math.cos(math.pi / 24))
        assert section.cavity_radius_mm == pytest.approx(2.0)

    def test_empty_section(self):
        assert measure_slice(box(1, 1, 1), 10.0) is None


class TestSampleHeights:
    """Tests for measurement heights."""

    def test_five_samples(self):
        heights = sample_heights(box(1, 10, 1), 5)
        span = 10 * HEIGHT_SPAN
        assert heights == pytest.approx([-span / 2, -span / 4, 0, span / 4, span / 2])

    def test_single_sample_at_center(self):
        assert sample_heights(box(1, 10, 1).translate(0, 3, 0), 1) == pytest.approx([3.0])

    def test_empty_mesh(self):
        assert sample_heights(PolygonMesh()) == []


class TestMeasureWallThickness:
    """Tests for measure_wall_thickness()."""

    def test_plain_knob(self, built_plain_round):
        result = measure_wall_thickness(built_plain_round.build(), 6.0, 35.0)
        assert isinstance(result, WallThicknessResult)
        assert result.is_valid
        assert not result.has_warning
        assert result.minimum_wall_mm == pytest.approx(17.5 * math.cos(math.pi / 16) - 3.0)
        assert result.bore_radius_mm == pytest.approx(3.0)
        assert len(result.slices) == 5
        assert "Wall thickness" in result.message

    def test_thin_wall_warning(self, thin_walled_knob):
        result = measure_wall_thickness(thin_walled_knob, 8.0, 10.0)
        assert result.is_valid
        assert result.has_warning
        assert result.minimum_wall_mm < WALL_WARNING_THRESHOLD_MM
        assert result.message.startswith("Warning")

    def test_custom_threshold(self, thin_walled_knob):
        result = measure_wall_thickness(thin_walled_knob, 8.0, 10.0, warning_threshold_mm=0.5)
        assert not result.has_warning
        assert result.warning_threshold_mm == 0.5

    def test_nominal_values_reported(self, thin_walled_knob):
        result = measure_wall_thickness(thin_walled_knob, 8.0, 10.0)
        assert result.shaft_diameter_mm == 8.0
        assert result.knob_diameter_mm == 10.0

    def test_indent_counts_as_cavity(self, coarse_resolution):
        """Near the top the indent bowl is the nearest cavity."""
        params = KnobParams(knob_height_mm=12.0, outer_ridged=False)
        mesh = KnobGeometry(params, coarse_resolution).build()
        result = measure_wall_thickness(mesh, 6.0, 35.0)
        assert result.bore_radius_mm > 3.0

    def test_empty_mesh(self):
        result = measure_wall_thickness(PolygonMesh(), 6.0, 35.0)
        assert not result.is_valid
        assert result.minimum_wall_mm == 0.0
        assert "No cross-section" in result.message


class TestSectionSegments:
    """Tests for trimesh sections with source-face normals."""

    def test_tube_has_inward_and_outward_faces(self):
        tube = CSGEngine().subtract(cylinder(5, 4, 24), cylinder(2, 6, 24))
        lines, normals = section_segments(to_trimesh(tube), 0.3)
        assert lines.shape[1:] == (2, 3)
        assert len(normals) == len(lines)
        np.testing.assert_allclose(lines[:, :, 1], 0.3)
        midpoints = lines.mean(axis=1)
        radial = normals[:, 0] * midpoints[:, 0] + normals[:, 2] * midpoints[:, 2]
        assert (radial > 0).any()
        assert (radial < 0).any()

    def test_no_faces(self):
        lines, normals = section_segments(to_trimesh(PolygonMesh()), 0.0)
        assert len(lines) == 0
        assert len(normals) == 0
