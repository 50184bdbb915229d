"""Post-build wall thickness measurement.

Slices the finished knob with horizontal planes and compares the outer
boundary of each cross-section with the cavity inside it (shaft bore, or the
top indent near the top face). The minimum over all sampled heights is the
thinnest wall a print will have.

Sections are cut with trimesh on the stitched, triangulated solid. Segments
are told apart by the normal of the triangle they came from: faces whose normal
points away from the Y axis belong to the outer skin, faces pointing toward it
line a cavity.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import trimesh

from .mesh import PolygonMesh
from .stitching import to_trimesh


# Below this the knob is likely to crack around the shaft when printed
WALL_WARNING_THRESHOLD_MM = 1.5

DEFAULT_HEIGHT_SAMPLES = 5

# Sampled heights span this fraction of the part, centered, so that no sample
# sits on the top or bottom face
HEIGHT_SPAN = 0.84

UP = np.array([0.0, 1.0, 0.0])

Segment = Tuple[Tuple[float, float], Tuple[float, float]]


@dataclass
class HeightSlice:
    """Radial extent of one cross-section.

    Attributes:
        y: Height of the cutting plane
        outer_radius_mm: Closest approach of the outer skin to the axis
        cavity_radius_mm: Farthest reach of any cavity from the axis
                          (0 when the section is solid)
    """
    y: float
    outer_radius_mm: float
    cavity_radius_mm: float

    @property
    def wall_mm(self) -> float:
        return self.outer_radius_mm - self.cavity_radius_mm


@dataclass
class WallThicknessResult:
    """Result of post-build wall thickness measurement.

    Attributes:
        minimum_wall_mm: Thinnest wall over all sampled heights
        outer_radius_mm: Smallest outer radius seen
        bore_radius_mm: Largest cavity radius seen
        shaft_diameter_mm: Nominal shaft diameter that was used
        knob_diameter_mm: Nominal knob diameter that was used
        is_valid: Whether the measurement succeeded
        has_warning: True if minimum_wall_mm < warning_threshold_mm
        warning_threshold_mm: Threshold below which a warning is issued
        message: Human-readable status message
        slices: Per-height details
    """
    minimum_wall_mm: float
    outer_radius_mm: float = 0.0
    bore_radius_mm: float = 0.0
    shaft_diameter_mm: float = 0.0
    knob_diameter_mm: float = 0.0
    is_valid: bool = True
    has_warning: bool = False
    warning_threshold_mm: float = WALL_WARNING_THRESHOLD_MM
    message: str = ""
    slices: List[HeightSlice] = field(default_factory=list)


def section_segments(solid: trimesh.Trimesh, y: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cut a triangulated solid with the horizontal plane at ``y``.

    Args:
        solid: Mesh from :func:`~knobgen.core.stitching.to_trimesh`
        y: Height of the cutting plane

    Returns:
        (lines, normals): (n, 2, 3) segment endpoints and the (n, 3) normal of
        the triangle each segment came from
    """
    if len(solid.faces) == 0:
        return np.zeros((0, 2, 3)), np.zeros((0, 3))
    lines, face_index = trimesh.intersections.mesh_plane(
        solid,
        plane_normal=UP,
        plane_origin=[0.0, y, 0.0],
        return_faces=True,
    )
    lines = np.asarray(lines, dtype=np.float64).reshape(-1, 2, 3)
    return lines, solid.face_normals[np.asarray(face_index, dtype=np.int64)]


def slice_at_height(mesh: PolygonMesh, y: float) -> List[Segment]:
    """
    Cut the mesh with the horizontal plane at ``y``.

    Args:
        mesh: Closed polygon mesh
        y: Height of the cutting plane

    Returns:
        List of ((x1, z1), (x2, z2)) segments
    """
    lines, _ = section_segments(to_trimesh(mesh), y)
    return [
        ((float(a[0]), float(a[2])), (float(b[0]), float(b[2])))
        for a, b in lines
    ]


def _radial_extent(lines: np.ndarray, normals: np.ndarray, y: float) -> Optional[HeightSlice]:
    """Outer and cavity radii from classified section segments."""
    if len(lines) == 0:
        return None
    a = lines[:, 0, [0, 2]]
    b = lines[:, 1, [0, 2]]
    midpoint = (a + b) / 2
    radial = np.einsum("ij,ij->i", normals[:, [0, 2]], midpoint)

    outer = radial > 0
    cavity = radial < 0
    if not outer.any():
        return None

    # Closest point of each outer segment to the axis
    d = b[outer] - a[outer]
    length_sq = np.einsum("ij,ij->i", d, d)
    safe = np.where(length_sq == 0.0, 1.0, length_sq)
    t = np.clip(-np.einsum("ij,ij->i", a[outer], d) / safe, 0.0, 1.0)
    closest = np.linalg.norm(a[outer] + t[:, None] * d, axis=1)

    farthest = np.maximum(np.linalg.norm(a[cavity], axis=1), np.linalg.norm(b[cavity], axis=1))
    return HeightSlice(
        y=y,
        outer_radius_mm=float(closest.min()),
        cavity_radius_mm=float(farthest.max()) if len(farthest) else 0.0,
    )


def measure_slice(mesh: PolygonMesh, y: float) -> Optional[HeightSlice]:
    """Outer and cavity radii of the section at ``y``, or None if empty."""
    lines, normals = section_segments(to_trimesh(mesh), y)
    return _radial_extent(lines, normals, y)


def sample_heights(mesh: PolygonMesh, samples: int = DEFAULT_HEIGHT_SAMPLES) -> List[float]:
    bounds = mesh.bounds()
    if bounds is None or samples < 1:
        return []
    y_min, y_max = bounds.min.y, bounds.max.y
    center = (y_min + y_max) / 2
    if samples == 1:
        return [center]
    half_span = (y_max - y_min) * HEIGHT_SPAN / 2
    return [
        center - half_span + 2 * half_span * i / (samples - 1)
        for i in range(samples)
    ]


def measure_wall_thickness(
    mesh: PolygonMesh,
    shaft_diameter: float,
    knob_diameter: float,
    samples: int = DEFAULT_HEIGHT_SAMPLES,
    warning_threshold_mm: float = WALL_WARNING_THRESHOLD_MM,
) -> WallThicknessResult:
    """
    Measure the thinnest wall between any cavity and the outer skin.

    Args:
        mesh: Finished knob mesh
        shaft_diameter: Nominal shaft diameter (reported only)
        knob_diameter: Nominal knob diameter (reported only)
        samples: Number of horizontal sections
        warning_threshold_mm: Threshold for thin wall warning

    Returns:
        WallThicknessResult with measurement details and warning status

    Example:
        >>> knob = KnobGeometry(KnobParams(knob_diameter_mm=10, shaft_diameter_mm=8)).build()
        >>> result = measure_wall_thickness(knob, 8, 10)
        >>> result.has_warning
        True
    """
    slices = []
    heights = sample_heights(mesh, samples)
    solid = to_trimesh(mesh) if heights else None
    for y in heights:
        lines, normals = section_segments(solid, y)
        section = _radial_extent(lines, normals, y)
        if section is not None:
            slices.append(section)

    if not slices:
        return WallThicknessResult(
            minimum_wall_mm=0.0,
            shaft_diameter_mm=shaft_diameter,
            knob_diameter_mm=knob_diameter,
            is_valid=False,
            warning_threshold_mm=warning_threshold_mm,
            message="No cross-section found - mesh may be empty",
        )

    thinnest = min(slices, key=lambda s: s.wall_mm)
    minimum_wall = thinnest.wall_mm
    has_warning = minimum_wall < warning_threshold_mm

    if has_warning:
        message = (
            f"Warning: wall thickness ({minimum_wall:.2f}mm) "
            f"is below recommended minimum ({warning_threshold_mm:.2f}mm)"
        )
    else:
        message = f"Wall thickness: {minimum_wall:.2f}mm"

    return WallThicknessResult(
        minimum_wall_mm=minimum_wall,
        outer_radius_mm=min(s.outer_radius_mm for s in slices),
        bore_radius_mm=max(s.cavity_radius_mm for s in slices),
        shaft_diameter_mm=shaft_diameter,
        knob_diameter_mm=knob_diameter,
        is_valid=True,
        has_warning=has_warning,
        warning_threshold_mm=warning_threshold_mm,
        message=message,
        slices=slices,
    )
