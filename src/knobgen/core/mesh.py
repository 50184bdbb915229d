"""
Polygon mesh data model shared by the primitive builders, the CSG engine and
the exporters.

A mesh is a flat list of planar convex polygons. Each polygon carries its own
vertices (position + normal) and the plane derived from its winding, so
polygons can be split, flipped and regrouped without any shared topology.
Shared topology (welded vertices, matched edges) is only built on demand by
:mod:`knobgen.core.stitching`.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidGeometryParameter


class Vector3(NamedTuple):
    """Immutable 3D vector (positions and normals)."""
    x: float
    y: float
    z: float

    def plus(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def minus(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def times(self, k: float) -> "Vector3":
        return Vector3(self.x * k, self.y * k, self.z * k)

    def negated(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def unit(self) -> "Vector3":
        n = self.length()
        if n == 0.0:
            return self
        return Vector3(self.x / n, self.y / n, self.z / n)

    def lerp(self, other: "Vector3", t: float) -> "Vector3":
        return Vector3(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
            self.z + (other.z - self.z) * t,
        )


ZERO = Vector3(0.0, 0.0, 0.0)


class Vertex(NamedTuple):
    """Polygon corner: position plus shading normal."""
    pos: Vector3
    normal: Vector3

    def flipped(self) -> "Vertex":
        return Vertex(self.pos, self.normal.negated())

    def interpolate(self, other: "Vertex", t: float) -> "Vertex":
        """Vertex at fraction t along the edge to ``other``.

        The normal is interpolated too; it is only a placeholder until the
        owning mesh recomputes normals from its faces.
        """
        return Vertex(self.pos.lerp(other.pos, t), self.normal.lerp(other.normal, t))


def newell_normal(points: Sequence[Vector3]) -> Vector3:
    """Unnormalized polygon normal via Newell's method.

    The length equals twice the polygon area, and the direction follows the
    right-hand rule for the winding order.
    """
    nx = ny = nz = 0.0
    count = len(points)
    for i in range(count):
        cx, cy, cz = points[i]
        qx, qy, qz = points[(i + 1) % count]
        nx += (cy - qy) * (cz + qz)
        ny += (cz - qz) * (cx + qx)
        nz += (cx - qx) * (cy + qy)
    return Vector3(nx, ny, nz)


class Plane:
    """Oriented plane ``normal . p = w``."""

    __slots__ = ("normal", "w")

    def __init__(self, normal: Vector3, w: float):
        self.normal = normal
        self.w = w

    @classmethod
    def from_points(cls, points: Sequence[Vector3]) -> "Plane":
        """Plane through a winding of points, facing along the right-hand normal.

        Raises:
            InvalidGeometryParameter: If the points have no area
        """
        n = newell_normal(points)
        length = n.length()
        if length == 0.0:
            raise InvalidGeometryParameter("Cannot derive a plane from collinear points")
        n = n.times(1.0 / length)
        # Average offset over all points, robust for slightly non-planar input
        w = sum(n.dot(p) for p in points) / len(points)
        return cls(n, w)

    def flipped(self) -> "Plane":
        return Plane(self.normal.negated(), -self.w)

    def distance(self, point: Vector3) -> float:
        return self.normal.dot(point) - self.w

    def __repr__(self) -> str:
        return f"Plane(normal={tuple(self.normal)}, w={self.w:.6g})"


class Bounds(NamedTuple):
    """Axis-aligned bounding box."""
    min: Vector3
    max: Vector3

    @property
    def size(self) -> Vector3:
        return self.max.minus(self.min)

    @property
    def center(self) -> Vector3:
        return self.min.lerp(self.max, 0.5)

    def overlaps(self, other: "Bounds", tolerance: float = 0.0) -> bool:
        return not (
            self.max.x < other.min.x - tolerance or other.max.x < self.min.x - tolerance
            or self.max.y < other.min.y - tolerance or other.max.y < self.min.y - tolerance
            or self.max.z < other.min.z - tolerance or other.max.z < self.min.z - tolerance
        )

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            Vector3(min(self.min.x, other.min.x), min(self.min.y, other.min.y), min(self.min.z, other.min.z)),
            Vector3(max(self.max.x, other.max.x), max(self.max.y, other.max.y), max(self.max.z, other.max.z)),
        )


def bounds_of_points(points: Iterable[Vector3]) -> Bounds:
    xs, ys, zs = zip(*points)
    return Bounds(Vector3(min(xs), min(ys), min(zs)), Vector3(max(xs), max(ys), max(zs)))


class Polygon:
    """Planar convex polygon.

    Polygons are treated as immutable: operations return new polygons, so
    the same instance may appear in several meshes.
    """

    __slots__ = ("vertices", "plane")

    def __init__(self, vertices: Sequence[Vertex], plane: Optional[Plane] = None):
        if len(vertices) < 3:
            raise InvalidGeometryParameter(
                f"Polygon needs at least 3 vertices, got {len(vertices)}"
            )
        self.vertices = tuple(vertices)
        self.plane = plane if plane is not None else Plane.from_points([v.pos for v in self.vertices])

    @classmethod
    def from_points(cls, points: Sequence[Vector3]) -> "Polygon":
        """Flat-shaded polygon whose vertex normals are the face normal."""
        plane = Plane.from_points(points)
        return cls([Vertex(p, plane.normal) for p in points], plane)

    def flipped(self) -> "Polygon":
        return Polygon([v.flipped() for v in reversed(self.vertices)], self.plane.flipped())

    def positions(self) -> List[Vector3]:
        return [v.pos for v in self.vertices]

    def bounds(self) -> Bounds:
        return bounds_of_points(v.pos for v in self.vertices)

    def area(self) -> float:
        return 0.5 * newell_normal(self.positions()).length()

    def __len__(self) -> int:
        return len(self.vertices)

    def __repr__(self) -> str:
        return f"Polygon({len(self.vertices)} vertices, {self.plane!r})"


@dataclass
class IndexedMesh:
    """Indexed triangle buffers handed to exporters and viewers.

    Attributes:
        positions: (N, 3) float64 vertex positions
        normals: (N, 3) float64 unit vertex normals
        indices: (M, 3) int64 triangle corner indices, wound counter-clockwise
                 seen from outside
    """
    positions: np.ndarray
    normals: np.ndarray
    indices: np.ndarray

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])

    def face_normals(self) -> np.ndarray:
        """Unit normal per triangle, derived from winding."""
        a = self.positions[self.indices[:, 0]]
        b = self.positions[self.indices[:, 1]]
        c = self.positions[self.indices[:, 2]]
        n = np.cross(b - a, c - a)
        lengths = np.linalg.norm(n, axis=1)
        lengths[lengths == 0.0] = 1.0
        return n / lengths[:, None]


class PolygonMesh:
    """A closed (or, for raw primitives, possibly open) polygon surface."""

    def __init__(self, polygons: Optional[Iterable[Polygon]] = None):
        self.polygons: List[Polygon] = list(polygons) if polygons is not None else []

    def __len__(self) -> int:
        return len(self.polygons)

    def __iter__(self) -> Iterator[Polygon]:
        return iter(self.polygons)

    def __repr__(self) -> str:
        return f"PolygonMesh({len(self.polygons)} polygons)"

    @property
    def is_empty(self) -> bool:
        return not self.polygons

    def copy(self) -> "PolygonMesh":
        return PolygonMesh(self.polygons)

    # ── Transforms (pure) ─────────────────────────────────────────────────

    def _map(self, position_fn, normal_fn) -> "PolygonMesh":
        polygons = []
        for polygon in self.polygons:
            vertices = [Vertex(position_fn(v.pos), normal_fn(v.normal)) for v in polygon.vertices]
            polygons.append(Polygon(vertices))
        return PolygonMesh(polygons)

    def translate(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "PolygonMesh":
        offset = Vector3(dx, dy, dz)
        return self._map(lambda p: p.plus(offset), lambda n: n)

    def rotate_y(self, angle: float) -> "PolygonMesh":
        """Rotate about the vertical axis by ``angle`` radians.

        Positive angles turn +X toward +Z, so a point on +X ends up at
        ``(cos a, 0, sin a)``; the same convention as the angular samples of
        the primitive builders.
        """
        c = math.cos(angle)
        s = math.sin(angle)

        def turn(v: Vector3) -> Vector3:
            return Vector3(v.x * c - v.z * s, v.y, v.x * s + v.z * c)

        return self._map(turn, turn)

    def rotate_x(self, angle: float) -> "PolygonMesh":
        """Rotate about the X axis by ``angle`` radians (+Y toward +Z)."""
        c = math.cos(angle)
        s = math.sin(angle)

        def turn(v: Vector3) -> Vector3:
            return Vector3(v.x, v.y * c - v.z * s, v.y * s + v.z * c)

        return self._map(turn, turn)

    def scale(self, sx: float, sy: Optional[float] = None, sz: Optional[float] = None) -> "PolygonMesh":
        """Scale about the origin. Factors must be positive (no mirroring)."""
        sy = sx if sy is None else sy
        sz = sx if sz is None else sz
        if sx <= 0 or sy <= 0 or sz <= 0:
            raise InvalidGeometryParameter(
                f"Scale factors must be positive, got ({sx}, {sy}, {sz})"
            )
        return self._map(
            lambda p: Vector3(p.x * sx, p.y * sy, p.z * sz),
            lambda n: Vector3(n.x / sx, n.y / sy, n.z / sz).unit(),
        )

    # ── Measurements ──────────────────────────────────────────────────────

    def bounds(self) -> Optional[Bounds]:
        """Bounding box, or None for an empty mesh."""
        if not self.polygons:
            return None
        return bounds_of_points(v.pos for polygon in self.polygons for v in polygon.vertices)

    def volume(self) -> float:
        """Enclosed volume via the divergence theorem.

        Only meaningful for closed meshes; outward winding gives a positive
        value.
        """
        total = 0.0
        for polygon in self.polygons:
            points = polygon.positions()
            a = points[0]
            for i in range(1, len(points) - 1):
                total += a.dot(points[i].cross(points[i + 1]))
        return total / 6.0

    def surface_area(self) -> float:
        return sum(polygon.area() for polygon in self.polygons)

    def vertex_count(self) -> int:
        return sum(len(polygon.vertices) for polygon in self.polygons)

    # ── Normals and export views ──────────────────────────────────────────

    def recompute_normals(self, tolerance: float = 1e-5) -> "PolygonMesh":
        """Vertex normals as the average of adjacent face normals.

        Vertices are matched by welding positions to ``tolerance``. Normals
        interpolated during clipping are discarded.
        """
        from .stitching import weld_vertices

        if not self.polygons:
            return PolygonMesh()

        counts = [len(polygon.vertices) for polygon in self.polygons]
        points = np.array(
            [tuple(v.pos) for polygon in self.polygons for v in polygon.vertices], dtype=np.float64
        )
        corner_normals = np.repeat(
            np.array([tuple(polygon.plane.normal) for polygon in self.polygons], dtype=np.float64),
            counts,
            axis=0,
        )
        unique, inverse = weld_vertices(points, tolerance)
        sums = np.zeros((len(unique), 3))
        np.add.at(sums, inverse, corner_normals)
        lengths = np.linalg.norm(sums, axis=1)

        polygons = []
        corner = 0
        for polygon in self.polygons:
            vertices = []
            for v in polygon.vertices:
                k = inverse[corner]
                corner += 1
                if lengths[k] == 0.0:
                    averaged = polygon.plane.normal
                else:
                    averaged = Vector3(*(float(c) for c in sums[k] / lengths[k]))
                vertices.append(Vertex(v.pos, averaged))
            polygons.append(Polygon(vertices, polygon.plane))
        return PolygonMesh(polygons)

    def to_indexed(self, tolerance: float = 1e-5) -> IndexedMesh:
        """Welded, T-junction free triangle buffers (see :mod:`.stitching`)."""
        from .stitching import stitch, to_indexed_mesh
        return to_indexed_mesh(stitch(self, tolerance))

    def triangles(self, tolerance: float = 1e-5) -> List[Tuple[Vector3, Vector3, Vector3]]:
        """Stitched triangles as position triples."""
        from .stitching import stitch, triangulate
        positions, triangles = triangulate(stitch(self, tolerance))
        return [(positions[a], positions[b], positions[c]) for a, b, c in triangles]
