"""
Primitive solid builders.

All primitives are centered on the local origin with Y as the vertical axis.
The angular sample at angle a sits at ``(r cos a, y, r sin a)``, matching
``PolygonMesh.rotate_y``. Faces are wound so the right-hand normal points out
of the solid; normals are always derived from that winding.
"""

import math
from typing import List

from .errors import InvalidGeometryParameter
from .mesh import Polygon, PolygonMesh, Vector3

DEFAULT_RADIAL_SEGMENTS = 32


def _ring(radius: float, y: float, segments: int) -> List[Vector3]:
    step = 2.0 * math.pi / segments
    return [
        Vector3(radius * math.cos(i * step), y, radius * math.sin(i * step))
        for i in range(segments)
    ]


def _band(upper: List[Vector3], lower: List[Vector3]) -> List[Polygon]:
    """Outward-facing quads between two rings of equal size, upper above lower."""
    n = len(upper)
    return [
        Polygon.from_points([upper[i], upper[(i + 1) % n], lower[(i + 1) % n], lower[i]])
        for i in range(n)
    ]


def cylinder(
    radius: float,
    height: float,
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
    capped: bool = True,
) -> PolygonMesh:
    """
    Build a faceted cylinder around the Y axis.

    Args:
        radius: Circumradius of the faceted section in mm
        height: Extent along Y in mm, spanning [-height/2, height/2]
        radial_segments: Number of samples around the axis (>= 3)
        capped: If False, omit the end caps and return an open tube

    Returns:
        PolygonMesh with two triangles per side facet and one N-gon per cap

    Raises:
        InvalidGeometryParameter: If radius or height is not positive, or
                                  radial_segments < 3
    """
    if radius <= 0:
        raise InvalidGeometryParameter(f"Cylinder radius must be positive, got {radius}")
    if height <= 0:
        raise InvalidGeometryParameter(f"Cylinder height must be positive, got {height}")
    if radial_segments < 3:
        raise InvalidGeometryParameter(
            f"Cylinder needs at least 3 radial segments, got {radial_segments}"
        )

    top = _ring(radius, height / 2, radial_segments)
    bottom = _ring(radius, -height / 2, radial_segments)

    polygons = []
    n = radial_segments
    for i in range(n):
        j = (i + 1) % n
        polygons.append(Polygon.from_points([bottom[i], top[i], top[j]]))
        polygons.append(Polygon.from_points([bottom[i], top[j], bottom[j]]))

    if capped:
        polygons.append(Polygon.from_points(list(reversed(top))))
        polygons.append(Polygon.from_points(bottom))

    return PolygonMesh(polygons)


def box(width: float, height: float, depth: float) -> PolygonMesh:
    """
    Build an axis-aligned box centered on the origin.

    Args:
        width: Extent along X in mm
        height: Extent along Y in mm
        depth: Extent along Z in mm

    Raises:
        InvalidGeometryParameter: If any dimension is not positive
    """
    for name, value in (("width", width), ("height", height), ("depth", depth)):
        if value <= 0:
            raise InvalidGeometryParameter(f"Box {name} must be positive, got {value}")

    hx, hy, hz = width / 2, height / 2, depth / 2

    def corner(i: int) -> Vector3:
        return Vector3(
            hx if i & 1 else -hx,
            hy if i & 2 else -hy,
            hz if i & 4 else -hz,
        )

    # Corner index bits: 1 = +X, 2 = +Y, 4 = +Z
    faces = (
        (0, 4, 6, 2),  # -X
        (1, 3, 7, 5),  # +X
        (0, 1, 5, 4),  # -Y
        (2, 6, 7, 3),  # +Y
        (0, 2, 3, 1),  # -Z
        (4, 5, 7, 6),  # +Z
    )
    return PolygonMesh(Polygon.from_points([corner(i) for i in face]) for face in faces)


def default_latitude_segments(longitude_segments: int, polar_angle_range: float = math.pi / 2) -> int:
    """Latitude bands giving roughly square facets for a cap of this range."""
    return max(2, round(longitude_segments * polar_angle_range / (2.0 * math.pi)))


def spherical_cap(
    radius: float,
    latitude_segments: int,
    longitude_segments: int,
    polar_angle_range: float = math.pi / 2,
    extension: float = 0.0,
) -> PolygonMesh:
    """
    Build a closed spherical cap around the +Y pole.

    The polar angle is measured from +Y, so ``polar_angle_range=pi/2`` gives a
    hemisphere resting on the XZ plane and ``pi`` a full sphere. Partial caps
    are closed by a flat N-gon across the rim. With ``extension > 0`` the rim
    is first extruded downward (along -Y) by that distance, giving a short
    vertical band between the curved surface and the flat closure.

    Args:
        radius: Sphere radius in mm
        latitude_segments: Bands between the pole and the rim (>= 1)
        longitude_segments: Samples around the Y axis (>= 3)
        polar_angle_range: Polar extent in radians, in (0, pi]
        extension: Length of the rim extrusion in mm (>= 0)

    Returns:
        Closed PolygonMesh

    Raises:
        InvalidGeometryParameter: On any out-of-range argument
    """
    if radius <= 0:
        raise InvalidGeometryParameter(f"Sphere radius must be positive, got {radius}")
    if latitude_segments < 1:
        raise InvalidGeometryParameter(
            f"Spherical cap needs at least 1 latitude segment, got {latitude_segments}"
        )
    if longitude_segments < 3:
        raise InvalidGeometryParameter(
            f"Spherical cap needs at least 3 longitude segments, got {longitude_segments}"
        )
    if not 0 < polar_angle_range <= math.pi:
        raise InvalidGeometryParameter(
            f"Polar angle range must be in (0, pi], got {polar_angle_range}"
        )
    if extension < 0:
        raise InvalidGeometryParameter(f"Cap extension must be >= 0, got {extension}")

    full_sphere = math.isclose(polar_angle_range, math.pi)
    if full_sphere and latitude_segments < 2:
        raise InvalidGeometryParameter("A full sphere needs at least 2 latitude segments")

    pole = Vector3(0.0, radius, 0.0)
    n = longitude_segments

    # Rings strictly between the poles; a full sphere ends at the -Y pole
    ring_count = latitude_segments - 1 if full_sphere else latitude_segments
    rings = []
    for k in range(1, ring_count + 1):
        phi = polar_angle_range * k / latitude_segments
        rings.append(_ring(radius * math.sin(phi), radius * math.cos(phi), n))

    polygons = []
    first = rings[0]
    for i in range(n):
        polygons.append(Polygon.from_points([pole, first[(i + 1) % n], first[i]]))

    for upper, lower in zip(rings, rings[1:]):
        polygons.extend(_band(upper, lower))

    rim = rings[-1]
    if full_sphere:
        south = Vector3(0.0, -radius, 0.0)
        for i in range(n):
            polygons.append(Polygon.from_points([rim[i], rim[(i + 1) % n], south]))
        return PolygonMesh(polygons)

    if extension > 0:
        lowered = [Vector3(p.x, p.y - extension, p.z) for p in rim]
        polygons.extend(_band(rim, lowered))
        rim = lowered

    polygons.append(Polygon.from_points(rim))
    return PolygonMesh(polygons)
