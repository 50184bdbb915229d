"""
Cross-section sampling utilities for knob geometry verification.

Slices meshes with trimesh at a given height and splits the section into
outer skin and cavity segments, for comparing bores, flats and ridges against
the design parameters.
"""

import math
from typing import List, Tuple

import numpy as np
import trimesh

from knobgen.core.measure import Segment
from knobgen.core.stitching import to_trimesh


def prism_volume(radius: float, height: float, segments: int) -> float:
    """Exact volume of a faceted cylinder with ``segments`` sides."""
    return 0.5 * segments * radius ** 2 * math.sin(2 * math.pi / segments) * height


def split_section(mesh, y: float) -> Tuple[List[Segment], List[Segment]]:
    """Return (outer, cavity) segments of the section at height ``y``."""
    solid = to_trimesh(mesh)
    lines, face_index = trimesh.intersections.mesh_plane(
        solid,
        plane_normal=[0.0, 1.0, 0.0],
        plane_origin=[0.0, y, 0.0],
        return_faces=True,
    )
    lines = np.asarray(lines).reshape(-1, 2, 3)
    normals = solid.face_normals[np.asarray(face_index, dtype=np.int64)]

    outer = []
    cavity = []
    for (a, b), normal in zip(lines, normals):
        segment = ((float(a[0]), float(a[2])), (float(b[0]), float(b[2])))
        radial = normal[0] * (a[0] + b[0]) / 2 + normal[2] * (a[2] + b[2]) / 2
        if radial > 0:
            outer.append(segment)
        elif radial < 0:
            cavity.append(segment)
    return outer, cavity


def segment_length(segment: Segment) -> float:
    (x1, z1), (x2, z2) = segment
    return math.hypot(x2 - x1, z2 - z1)


def radii(segments: List[Segment]) -> List[float]:
    """Distance from the Y axis of every segment endpoint."""
    return [math.hypot(x, z) for segment in segments for (x, z) in segment]


def protrusion_slots(mesh, y: float, min_radius: float, count: int) -> set:
    """
    Angular slots (out of ``count``) holding section points beyond
    ``min_radius``.

    Each ridge of an evenly spaced ring fills exactly one slot.
    """
    outer, _ = split_section(mesh, y)
    slots = set()
    step = 2 * math.pi / count
    for segment in outer:
        for (x, z) in segment:
            if math.hypot(x, z) > min_radius:
                slots.add(round(math.atan2(z, x) / step) % count)
    return slots
