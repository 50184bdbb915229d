"""
Shared-topology view of a polygon mesh.

BSP clipping splits each polygon independently, so a cut that crosses an edge
on one side may not split the matching edge of the neighbouring polygon. The
result is geometrically closed but has T-junctions: a vertex of one polygon
sitting in the middle of another polygon's edge. Exporters and the closure
check need edges that pair up one-to-one, so this module

1. welds vertices that coincide within a tolerance (trimesh row grouping),
2. drops faces that collapsed to a line,
3. inserts T-junction vertices into the edges they lie on,
4. triangulates the (still convex) faces,
5. counts open and non-manifold edges.

Vertices are only ever inserted on existing edges; no position is moved beyond
the weld tolerance, so this never changes the shape of the solid.
"""

import bisect
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Set, Tuple

import numpy as np
import trimesh

from .mesh import IndexedMesh, PolygonMesh, Vector3

logger = logging.getLogger(__name__)

DEFAULT_WELD_TOLERANCE = 1e-5

# Upper bound on T-junction passes; one pass resolves the common case
MAX_TJUNCTION_PASSES = 6


@dataclass
class StitchedMesh:
    """Welded polygon loops.

    Attributes:
        positions: Unique vertex positions
        faces: Index loops into ``positions``, one per surviving polygon
        face_normals: Plane normal of the source polygon for each face
        tolerance: Weld tolerance used
    """
    positions: List[Vector3]
    faces: List[List[int]]
    face_normals: List[Vector3]
    tolerance: float = DEFAULT_WELD_TOLERANCE


@dataclass
class EdgeReport:
    """Edge pairing statistics of a triangle set.

    A closed, consistently wound (manifold) surface has every undirected edge
    used exactly once in each direction.
    """
    edge_count: int = 0
    open_edges: int = 0
    non_manifold_edges: int = 0
    examples: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.edge_count > 0 and self.open_edges == 0 and self.non_manifold_edges == 0


def weld_vertices(points: np.ndarray, tolerance: float = DEFAULT_WELD_TOLERANCE) -> Tuple[np.ndarray, np.ndarray]:
    """
    Merge positions that agree to the decimals of ``tolerance``.

    Args:
        points: (n, 3) float positions
        tolerance: Weld tolerance, e.g. 1e-5 compares five decimals

    Returns:
        (unique, inverse): indices of the kept rows of ``points`` and, for
        every input row, its index into ``unique``
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        return np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.int64)
    digits = trimesh.util.decimal_to_digits(tolerance)
    unique, inverse = trimesh.grouping.unique_rows(points, digits=digits)
    return np.asarray(unique, dtype=np.int64), np.asarray(inverse, dtype=np.int64).reshape(-1)


def _distance_to_line_sq(p: Vector3, a: Vector3, b: Vector3) -> float:
    vx, vy, vz = b.x - a.x, b.y - a.y, b.z - a.z
    length_sq = vx * vx + vy * vy + vz * vz
    wx, wy, wz = p.x - a.x, p.y - a.y, p.z - a.z
    if length_sq == 0.0:
        return wx * wx + wy * wy + wz * wz
    t = (wx * vx + wy * vy + wz * vz) / length_sq
    dx, dy, dz = wx - t * vx, wy - t * vy, wz - t * vz
    return dx * dx + dy * dy + dz * dz


def _is_collinear(points: Sequence[Vector3], tolerance: float) -> bool:
    """True if every point lies within ``tolerance`` of one line."""
    origin = points[0]
    far = max(points, key=lambda q: (q.x - origin.x) ** 2 + (q.y - origin.y) ** 2 + (q.z - origin.z) ** 2)
    tol2 = tolerance * tolerance
    return all(_distance_to_line_sq(p, origin, far) <= tol2 for p in points)


def _clean_loop(loop: List[int]) -> List[int]:
    """Drop consecutive duplicate indices (including the wrap-around pair)."""
    cleaned = []
    for idx in loop:
        if not cleaned or cleaned[-1] != idx:
            cleaned.append(idx)
    while len(cleaned) > 1 and cleaned[0] == cleaned[-1]:
        cleaned.pop()
    return cleaned


def _directed_edges(faces: List[List[int]]) -> Set[Tuple[int, int]]:
    edges = set()
    for face in faces:
        n = len(face)
        for i in range(n):
            edges.add((face[i], face[(i + 1) % n]))
    return edges


def _resolve_t_junctions(positions: List[Vector3], faces: List[List[int]], tolerance: float) -> int:
    """Insert vertices lying on unmatched edges into those edges, in place.

    Returns:
        Number of vertices inserted
    """
    inserted_total = 0
    tol2 = tolerance * tolerance

    for _ in range(MAX_TJUNCTION_PASSES):
        edges = _directed_edges(faces)
        unmatched = [edge for edge in edges if (edge[1], edge[0]) not in edges]
        if not unmatched:
            break

        # Candidates are the endpoints of unmatched edges, sorted by x for a
        # cheap range query per edge
        candidates = sorted({i for edge in unmatched for i in edge}, key=lambda i: positions[i].x)
        candidate_x = [positions[i].x for i in candidates]
        unmatched_set = set(unmatched)

        inserted = 0
        for face_index, face in enumerate(faces):
            n = len(face)
            if not any((face[i], face[(i + 1) % n]) in unmatched_set for i in range(n)):
                continue

            new_face = []
            for i in range(n):
                a_idx = face[i]
                b_idx = face[(i + 1) % n]
                new_face.append(a_idx)
                if (a_idx, b_idx) not in unmatched_set:
                    continue

                a = positions[a_idx]
                b = positions[b_idx]
                lo = bisect.bisect_left(candidate_x, min(a.x, b.x) - tolerance)
                hi = bisect.bisect_right(candidate_x, max(a.x, b.x) + tolerance)

                vx, vy, vz = b.x - a.x, b.y - a.y, b.z - a.z
                length_sq = vx * vx + vy * vy + vz * vz
                if length_sq == 0.0:
                    continue

                on_edge = []
                for k in candidates[lo:hi]:
                    if k == a_idx or k == b_idx or k in face:
                        continue
                    p = positions[k]
                    wx, wy, wz = p.x - a.x, p.y - a.y, p.z - a.z
                    t = (wx * vx + wy * vy + wz * vz) / length_sq
                    if t <= 0.0 or t >= 1.0:
                        continue
                    dx, dy, dz = wx - t * vx, wy - t * vy, wz - t * vz
                    if dx * dx + dy * dy + dz * dz <= tol2:
                        on_edge.append((t, k))

                for _, k in sorted(on_edge):
                    new_face.append(k)
                inserted += len(on_edge)

            faces[face_index] = new_face

        inserted_total += inserted
        if inserted == 0:
            break

    return inserted_total


def stitch(mesh: PolygonMesh, tolerance: float = DEFAULT_WELD_TOLERANCE) -> StitchedMesh:
    """Weld a polygon mesh and resolve its T-junctions."""
    points = np.array(
        [tuple(v.pos) for polygon in mesh.polygons for v in polygon.vertices],
        dtype=np.float64,
    ).reshape(-1, 3)
    unique, inverse = weld_vertices(points, tolerance)
    positions = [Vector3(*(float(c) for c in points[i])) for i in unique]

    faces: List[List[int]] = []
    face_normals: List[Vector3] = []
    dropped = 0
    start = 0

    for polygon in mesh.polygons:
        count = len(polygon.vertices)
        loop = _clean_loop([int(i) for i in inverse[start:start + count]])
        start += count
        if len(loop) < 3 or _is_collinear([positions[i] for i in loop], tolerance):
            dropped += 1
            continue
        faces.append(loop)
        face_normals.append(polygon.plane.normal)

    inserted = _resolve_t_junctions(positions, faces, tolerance)

    logger.debug(
        f"Stitched {len(mesh.polygons)} polygons: {len(positions)} vertices, "
        f"{dropped} degenerate faces dropped, {inserted} T-junction vertices inserted"
    )
    return StitchedMesh(positions=positions, faces=faces, face_normals=face_normals, tolerance=tolerance)


def triangulate(stitched: StitchedMesh) -> Tuple[List[Vector3], List[Tuple[int, int, int]]]:
    """Fan-triangulate the stitched faces.

    Faces without straight-angle corners fan from their first vertex. Faces
    that gained T-junction vertices fan from an added centroid vertex instead,
    so no triangle has zero area and every boundary edge is kept.
    """
    positions = list(stitched.positions)
    triangles: List[Tuple[int, int, int]] = []
    tol2 = stitched.tolerance * stitched.tolerance

    for face in stitched.faces:
        n = len(face)
        if n == 3:
            triangles.append((face[0], face[1], face[2]))
            continue

        straight = False
        for i in range(n):
            prev_p = positions[face[i - 1]]
            p = positions[face[i]]
            next_p = positions[face[(i + 1) % n]]
            if _distance_to_line_sq(p, prev_p, next_p) <= tol2:
                straight = True
                break

        if not straight:
            for i in range(1, n - 1):
                triangles.append((face[0], face[i], face[i + 1]))
            continue

        sx = sy = sz = 0.0
        for idx in face:
            p = positions[idx]
            sx += p.x
            sy += p.y
            sz += p.z
        centroid_idx = len(positions)
        positions.append(Vector3(sx / n, sy / n, sz / n))
        for i in range(n):
            triangles.append((centroid_idx, face[i], face[(i + 1) % n]))

    return positions, triangles


def edge_report(triangles: Sequence[Sequence[int]], max_examples: int = 5) -> EdgeReport:
    """Classify every undirected edge of a triangle set."""
    faces = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    if len(faces) == 0:
        return EdgeReport()

    edges = trimesh.geometry.faces_to_edges(faces)
    edges_sorted = np.sort(edges, axis=1)
    unique, inverse = trimesh.grouping.unique_rows(edges_sorted)
    inverse = np.asarray(inverse).reshape(-1)

    uses = np.bincount(inverse, minlength=len(unique))
    forward = np.bincount(inverse, weights=(edges[:, 0] < edges[:, 1]).astype(np.float64), minlength=len(unique))

    paired = (uses == 2) & (forward == 1)
    open_mask = uses == 1
    bad = np.flatnonzero(~paired)

    report = EdgeReport(
        edge_count=len(unique),
        open_edges=int(open_mask.sum()),
        non_manifold_edges=int((~paired & ~open_mask).sum()),
    )
    for k in bad[:max_examples]:
        a, b = edges_sorted[unique[k]]
        report.examples.append((int(a), int(b)))
    return report


def to_trimesh(mesh: PolygonMesh, tolerance: float = DEFAULT_WELD_TOLERANCE) -> trimesh.Trimesh:
    """Stitched, triangulated copy of ``mesh`` as a trimesh.Trimesh.

    ``process=False`` keeps the vertex order and faces exactly as stitched.
    """
    positions, triangles = triangulate(stitch(mesh, tolerance))
    return trimesh.Trimesh(
        vertices=np.array([tuple(p) for p in positions], dtype=np.float64).reshape(-1, 3),
        faces=np.array(triangles, dtype=np.int64).reshape(-1, 3),
        process=False,
    )


def check_closed(mesh: PolygonMesh, tolerance: float = DEFAULT_WELD_TOLERANCE) -> EdgeReport:
    """Stitch, triangulate and report edge pairing for ``mesh``."""
    solid = to_trimesh(mesh, tolerance)
    if len(solid.faces) == 0:
        return EdgeReport()
    report = edge_report(solid.faces)
    logger.debug(
        f"Closure check: {report.edge_count} edges, watertight={solid.is_watertight}, "
        f"winding consistent={solid.is_winding_consistent}"
    )
    return report


def to_indexed_mesh(stitched: StitchedMesh) -> IndexedMesh:
    """Indexed buffers with vertex normals averaged from adjacent triangles."""
    positions, triangles = triangulate(stitched)

    pos = np.array([tuple(p) for p in positions], dtype=np.float64).reshape(-1, 3)
    idx = np.array(triangles, dtype=np.int64).reshape(-1, 3)

    normals = np.zeros_like(pos)
    if len(idx):
        a, b, c = pos[idx[:, 0]], pos[idx[:, 1]], pos[idx[:, 2]]
        face_n = np.cross(b - a, c - a)
        lengths = np.linalg.norm(face_n, axis=1)
        lengths[lengths == 0.0] = 1.0
        face_n = face_n / lengths[:, None]
        for corner in range(3):
            np.add.at(normals, idx[:, corner], face_n)
    lengths = np.linalg.norm(normals, axis=1)
    lengths[lengths == 0.0] = 1.0
    normals = normals / lengths[:, None]

    return IndexedMesh(positions=pos, normals=normals, indices=idx)
