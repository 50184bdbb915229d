"""
Tests for the polygon mesh data model.
"""

import math
import numpy as np
import pytest

from knobgen.core.errors import InvalidGeometryParameter
from knobgen.core.mesh import (
    Bounds,
    Plane,
    Polygon,
    PolygonMesh,
    Vector3,
    Vertex,
    newell_normal,
)
from knobgen.core.primitives import box


UNIT_SQUARE = [
    Vector3(0, 0, 0),
    Vector3(1, 0, 0),
    Vector3(1, 1, 0),
    Vector3(0, 1, 0),
]


class TestVector3:
    """Tests for vector arithmetic."""

    def test_cross_follows_right_hand_rule(self):
        assert Vector3(1, 0, 0).cross(Vector3(0, 1, 0)) == Vector3(0, 0, 1)

    def test_unit_of_zero_is_zero(self):
        assert Vector3(0, 0, 0).unit() == Vector3(0, 0, 0)

    def test_lerp_midpoint(self):
        assert Vector3(0, 0, 0).lerp(Vector3(2, 4, 6), 0.5) == Vector3(1, 2, 3)


class TestPlane:
    """Tests for plane derivation from polygon windings."""

    def test_newell_normal_length_is_twice_area(self):
        """Counter-clockwise unit square seen from +Z."""
        assert newell_normal(UNIT_SQUARE) == Vector3(0, 0, 2)

    def test_from_points(self):
        plane = Plane.from_points([p.plus(Vector3(0, 0, 3)) for p in UNIT_SQUARE])
        assert plane.normal == Vector3(0, 0, 1)
        assert plane.w == pytest.approx(3.0)

    def test_collinear_points_rejected(self):
        with pytest.raises(InvalidGeometryParameter):
            Plane.from_points([Vector3(0, 0, 0), Vector3(1, 0, 0), Vector3(2, 0, 0)])

    def test_flipped(self):
        plane = Plane(Vector3(0, 1, 0), 2.0).flipped()
        assert plane.normal == Vector3(0, -1, 0)
        assert plane.w == -2.0
        assert plane.distance(Vector3(0, 5, 0)) == pytest.approx(-3.0)


class TestPolygon:
    """Tests for Polygon."""

    def test_needs_three_vertices(self):
        n = Vector3(0, 0, 1)
        with pytest.raises(InvalidGeometryParameter):
            Polygon([Vertex(Vector3(0, 0, 0), n), Vertex(Vector3(1, 0, 0), n)])

    def test_flipped_reverses_winding(self):
        polygon = Polygon.from_points(UNIT_SQUARE)
        flipped = polygon.flipped()
        assert flipped.positions() == list(reversed(UNIT_SQUARE))
        assert flipped.plane.normal == Vector3(0, 0, -1)
        assert all(v.normal == Vector3(0, 0, -1) for v in flipped.vertices)

    def test_flipped_leaves_original_untouched(self):
        polygon = Polygon.from_points(UNIT_SQUARE)
        polygon.flipped()
        assert polygon.plane.normal == Vector3(0, 0, 1)

    def test_area(self):
        assert Polygon.from_points(UNIT_SQUARE).area() == pytest.approx(1.0)


class TestBounds:
    """Tests for bounding boxes."""

    def test_overlaps_with_tolerance(self):
        a = Bounds(Vector3(0, 0, 0), Vector3(1, 1, 1))
        b = Bounds(Vector3(1.001, 0, 0), Vector3(2, 1, 1))
        assert not a.overlaps(b)
        assert a.overlaps(b, tolerance=0.01)

    def test_union(self):
        a = Bounds(Vector3(0, 0, 0), Vector3(1, 1, 1))
        b = Bounds(Vector3(-1, 0.5, 0), Vector3(0.5, 2, 1))
        assert a.union(b) == Bounds(Vector3(-1, 0, 0), Vector3(1, 2, 1))


class TestPolygonMesh:
    """Tests for mesh transforms and measurements."""

    def test_empty_mesh(self):
        mesh = PolygonMesh()
        assert mesh.is_empty
        assert mesh.bounds() is None
        assert mesh.volume() == 0.0

    def test_box_measurements(self):
        mesh = box(2, 3, 4)
        assert mesh.volume() == pytest.approx(24.0)
        assert mesh.surface_area() == pytest.approx(2 * (6 + 8 + 12))
        assert mesh.vertex_count() == 24

    def test_translate(self):
        bounds = box(2, 2, 2).translate(1, 2, 3).bounds()
        assert tuple(bounds.min) == pytest.approx((0, 1, 2))
        assert tuple(bounds.max) == pytest.approx((2, 3, 4))

    def test_rotate_y_turns_x_toward_z(self):
        """A quarter turn maps +X onto +Z, matching the ring sample angles."""
        mesh = box(2, 1, 1).translate(5, 0, 0).rotate_y(math.pi / 2)
        center = mesh.bounds().center
        assert center.x == pytest.approx(0, abs=1e-9)
        assert center.z == pytest.approx(5)

    def test_rotate_x_half_turn_flips_y(self):
        mesh = box(1, 1, 1).translate(0, 3, 0).rotate_x(math.pi)
        assert mesh.bounds().center.y == pytest.approx(-3)

    def test_transforms_keep_volume(self):
        mesh = box(1, 2, 3).rotate_y(0.3).rotate_x(1.1).translate(4, 5, 6)
        assert mesh.volume() == pytest.approx(6.0)

    def test_scale(self):
        assert box(1, 1, 1).scale(2).volume() == pytest.approx(8.0)
        assert box(1, 1, 1).scale(1, 2, 3).volume() == pytest.approx(6.0)

    def test_scale_rejects_mirroring(self):
        with pytest.raises(InvalidGeometryParameter):
            box(1, 1, 1).scale(-1)

    def test_recompute_normals_averages_corner_faces(self):
        mesh = box(2, 2, 2).recompute_normals()
        inv = 1 / math.sqrt(3)
        for polygon in mesh:
            for v in polygon.vertices:
                expected = (math.copysign(inv, v.pos.x), math.copysign(inv, v.pos.y), math.copysign(inv, v.pos.z))
                assert tuple(v.normal) == pytest.approx(expected)


class TestIndexedMesh:
    """Tests for the indexed triangle export view."""

    def test_box_buffers(self):
        indexed = box(2, 2, 2).to_indexed()
        assert indexed.positions.shape == (8, 3)
        assert indexed.indices.shape == (12, 3)
        assert indexed.triangle_count == 12

    def test_normals_are_unit(self):
        indexed = box(2, 2, 2).to_indexed()
        np.testing.assert_allclose(np.linalg.norm(indexed.normals, axis=1), 1.0)
        np.testing.assert_allclose(np.linalg.norm(indexed.face_normals(), axis=1), 1.0)

    def test_face_normals_point_outward(self):
        indexed = box(2, 2, 2).to_indexed()
        centroids = indexed.positions[indexed.indices].mean(axis=1)
        dots = np.einsum("ij,ij->i", indexed.face_normals(), centroids)
        assert np.all(dots > 0)

    def test_triangles_view(self):
        triangles = box(1, 1, 1).triangles()
        assert len(triangles) == 12
        assert all(len(t) == 3 for t in triangles)
