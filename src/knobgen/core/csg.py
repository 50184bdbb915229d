"""
Boolean operations on closed polygon meshes using BSP trees.

Each operation builds a BSP tree per operand, clips the trees against each
other and flattens the survivors into a fresh mesh. Trees never outlive the
call that built them.

Every tree walk is iterative. A convex solid yields a degenerate chain tree
(each polygon lies behind all the others), so recursion depth would grow with
the polygon count.
"""

import logging
from typing import List, Optional

from .errors import InvalidGeometryParameter
from .mesh import Bounds, Plane, Polygon, PolygonMesh, Vertex, bounds_of_points

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-5

COPLANAR = 0
FRONT = 1
BACK = 2
SPANNING = 3


def split_polygon(
    plane: Plane,
    polygon: Polygon,
    coplanar_front: List[Polygon],
    coplanar_back: List[Polygon],
    front: List[Polygon],
    back: List[Polygon],
    epsilon: float = DEFAULT_EPSILON,
) -> None:
    """
    Classify ``polygon`` against ``plane`` and append it (or its pieces) to
    the matching list.

    Vertices within ``epsilon`` of the plane count as on it. A polygon that
    lies entirely on the plane goes to ``coplanar_front`` when it faces the
    same way as the plane, otherwise to ``coplanar_back``. Pieces with fewer
    than three vertices are discarded.
    """
    nx, ny, nz = plane.normal
    w = plane.w

    polygon_type = 0
    types = []
    for v in polygon.vertices:
        p = v.pos
        t = nx * p.x + ny * p.y + nz * p.z - w
        if t < -epsilon:
            vertex_type = BACK
        elif t > epsilon:
            vertex_type = FRONT
        else:
            vertex_type = COPLANAR
        polygon_type |= vertex_type
        types.append(vertex_type)

    if polygon_type == COPLANAR:
        pn = polygon.plane.normal
        if nx * pn.x + ny * pn.y + nz * pn.z > 0:
            coplanar_front.append(polygon)
        else:
            coplanar_back.append(polygon)
    elif polygon_type == FRONT:
        front.append(polygon)
    elif polygon_type == BACK:
        back.append(polygon)
    else:
        f: List[Vertex] = []
        b: List[Vertex] = []
        vertices = polygon.vertices
        count = len(vertices)
        for i in range(count):
            j = (i + 1) % count
            ti = types[i]
            tj = types[j]
            vi = vertices[i]
            vj = vertices[j]
            if ti != BACK:
                f.append(vi)
            if ti != FRONT:
                b.append(vi)
            if (ti | tj) == SPANNING:
                pi = vi.pos
                pj = vj.pos
                denom = nx * (pj.x - pi.x) + ny * (pj.y - pi.y) + nz * (pj.z - pi.z)
                t = (w - (nx * pi.x + ny * pi.y + nz * pi.z)) / denom
                v = vi.interpolate(vj, t)
                f.append(v)
                b.append(v)
        # Pieces keep the parent's plane; recomputing it from a sliver would
        # only add rounding error
        if len(f) >= 3:
            front.append(Polygon(f, polygon.plane))
        if len(b) >= 3:
            back.append(Polygon(b, polygon.plane))


class BSPNode:
    """
    Node of a solid BSP tree.

    Space in front of every plane along a path is outside the solid; a
    missing back child means the region behind that plane is inside.

    Only the root's ``bounds`` and ``inverted`` attributes are maintained:
    they describe the solid the whole tree represents and let clipping skip
    polygons that cannot touch it.
    """

    __slots__ = ("plane", "front", "back", "polygons", "epsilon", "bounds", "inverted")

    def __init__(self, polygons: Optional[List[Polygon]] = None, epsilon: float = DEFAULT_EPSILON):
        self.plane: Optional[Plane] = None
        self.front: Optional["BSPNode"] = None
        self.back: Optional["BSPNode"] = None
        self.polygons: List[Polygon] = []
        self.epsilon = epsilon
        self.bounds: Optional[Bounds] = None
        self.inverted = False
        if polygons:
            self.build(polygons)

    def _nodes(self) -> List["BSPNode"]:
        nodes = []
        stack = [self]
        while stack:
            node = stack.pop()
            nodes.append(node)
            if node.front is not None:
                stack.append(node.front)
            if node.back is not None:
                stack.append(node.back)
        return nodes

    def build(self, polygons: List[Polygon]) -> None:
        """Insert polygons, splitting them by the planes already in the tree.

        Nodes without a plane take the plane of the first polygon that
        reaches them.
        """
        if not polygons:
            return

        added = bounds_of_points(v.pos for polygon in polygons for v in polygon.vertices)
        self.bounds = added if self.bounds is None else self.bounds.union(added)

        eps = self.epsilon
        stack = [(self, list(polygons))]
        while stack:
            node, pending = stack.pop()
            if node.plane is None:
                node.plane = pending[0].plane
            front: List[Polygon] = []
            back: List[Polygon] = []
            for polygon in pending:
                split_polygon(node.plane, polygon, node.polygons, node.polygons, front, back, eps)
            if front:
                if node.front is None:
                    node.front = BSPNode(epsilon=eps)
                stack.append((node.front, front))
            if back:
                if node.back is None:
                    node.back = BSPNode(epsilon=eps)
                stack.append((node.back, back))

    def invert(self) -> None:
        """Swap solid and empty space."""
        for node in self._nodes():
            node.polygons = [polygon.flipped() for polygon in node.polygons]
            if node.plane is not None:
                node.plane = node.plane.flipped()
            node.front, node.back = node.back, node.front
        self.inverted = not self.inverted

    def clip_polygons(self, polygons: List[Polygon]) -> List[Polygon]:
        """Return the parts of ``polygons`` outside the solid of this tree."""
        if self.plane is None:
            return list(polygons)

        eps = self.epsilon
        result: List[Polygon] = []
        pending = polygons

        if self.bounds is not None:
            pending = []
            for polygon in polygons:
                if polygon.bounds().overlaps(self.bounds, eps):
                    pending.append(polygon)
                elif not self.inverted:
                    result.append(polygon)

        stack = [(self, pending)] if pending else []
        while stack:
            node, batch = stack.pop()
            front: List[Polygon] = []
            back: List[Polygon] = []
            for polygon in batch:
                split_polygon(node.plane, polygon, front, back, front, back, eps)
            if front:
                if node.front is not None:
                    stack.append((node.front, front))
                else:
                    result.extend(front)
            if back and node.back is not None:
                stack.append((node.back, back))
        return result

    def clip_to(self, other: "BSPNode") -> None:
        """Remove the parts of this tree's polygons inside ``other``'s solid."""
        for node in self._nodes():
            if node.polygons:
                node.polygons = other.clip_polygons(node.polygons)

    def all_polygons(self) -> List[Polygon]:
        polygons: List[Polygon] = []
        for node in self._nodes():
            polygons.extend(node.polygons)
        return polygons

    def depth(self) -> int:
        """Longest root-to-leaf path (1 for a single node)."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            if node.front is not None:
                stack.append((node.front, level + 1))
            if node.back is not None:
                stack.append((node.back, level + 1))
        return deepest


class CSGEngine:
    """
    Union, subtraction and intersection of closed polygon meshes.

    Args:
        epsilon: Distance below which a vertex counts as lying on a plane.
                 Also the tolerance used when comparing bounding boxes and
                 averaging vertex normals.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        if epsilon <= 0:
            raise InvalidGeometryParameter(f"CSG epsilon must be positive, got {epsilon}")
        self.epsilon = epsilon

    def __repr__(self) -> str:
        return f"CSGEngine(epsilon={self.epsilon:g})"

    def _trees(self, a: PolygonMesh, b: PolygonMesh):
        return BSPNode(a.polygons, self.epsilon), BSPNode(b.polygons, self.epsilon)

    def _result(self, polygons: List[Polygon]) -> PolygonMesh:
        return PolygonMesh(polygons).recompute_normals(self.epsilon)

    def _disjoint(self, a: PolygonMesh, b: PolygonMesh) -> bool:
        return not a.bounds().overlaps(b.bounds(), self.epsilon)

    def union(self, a: PolygonMesh, b: PolygonMesh) -> PolygonMesh:
        """Solid occupied by either operand."""
        if a.is_empty:
            return b.copy()
        if b.is_empty:
            return a.copy()
        if self._disjoint(a, b):
            logger.debug("union: disjoint bounds, concatenating")
            return PolygonMesh(a.polygons + b.polygons)

        ta, tb = self._trees(a, b)
        ta.clip_to(tb)
        tb.clip_to(ta)
        tb.invert()
        tb.clip_to(ta)
        tb.invert()
        ta.build(tb.all_polygons())
        result = self._result(ta.all_polygons())
        logger.debug(f"union: {len(a)} + {len(b)} -> {len(result)} polygons")
        return result

    def subtract(self, a: PolygonMesh, b: PolygonMesh) -> PolygonMesh:
        """Solid of ``a`` with the solid of ``b`` removed."""
        if a.is_empty:
            return PolygonMesh()
        if b.is_empty or self._disjoint(a, b):
            logger.debug("subtract: nothing to remove")
            return a.copy()

        ta, tb = self._trees(a, b)
        ta.invert()
        ta.clip_to(tb)
        tb.clip_to(ta)
        tb.invert()
        tb.clip_to(ta)
        tb.invert()
        ta.build(tb.all_polygons())
        ta.invert()
        result = self._result(ta.all_polygons())
        logger.debug(f"subtract: {len(a)} - {len(b)} -> {len(result)} polygons")
        return result

    def intersect(self, a: PolygonMesh, b: PolygonMesh) -> PolygonMesh:
        """Solid common to both operands."""
        if a.is_empty or b.is_empty or self._disjoint(a, b):
            logger.debug("intersect: operands do not overlap")
            return PolygonMesh()

        ta, tb = self._trees(a, b)
        ta.invert()
        tb.clip_to(ta)
        tb.invert()
        ta.clip_to(tb)
        tb.clip_to(ta)
        ta.build(tb.all_polygons())
        ta.invert()
        result = self._result(ta.all_polygons())
        logger.debug(f"intersect: {len(a)} & {len(b)} -> {len(result)} polygons")
        return result
