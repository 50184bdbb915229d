"""
Knob feature generation.

Supports:
- Outer grip ridges around the knob body
- Spherical finger indent in the top face
- Shaft holes: round, D-shape (single flat) and detented (radial notches)

Shaft holes are built by cutter classes registered per ShaftType, so adding a
new bore profile means registering one class; the knob assembler never
branches on the shaft type.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from ..enums import ShaftType
from .csg import CSGEngine
from .errors import InvalidGeometryParameter, UnsupportedShaftType
from .mesh import PolygonMesh
from .primitives import (
    DEFAULT_RADIAL_SEGMENTS,
    box,
    cylinder,
    default_latitude_segments,
    spherical_cap,
)


# Proportions of the classic browser knob generator
RIDGE_WIDTH_MM = 0.5
RIDGE_DEPTH_MM = 1.0
RIDGE_HEIGHT_RATIO = 0.8  # Ridge height / knob height
RIDGE_SEAT_MARGIN_MM = 0.05  # Extra embedding of each ridge into the body

INDENT_RADIUS_RATIO = 0.3  # Indent radius / knob diameter
INDENT_OVERSHOOT_MM = 1.0  # Cutter lid height above the top face

SHAFT_HEIGHT_RATIO = 1.1  # Shaft cylinder height / knob height
CUTTER_HEIGHT_RATIO = 1.2  # D-flat and detent boxes / knob height

D_FLAT_OFFSET_RATIO = 1.0 / 6.0  # Flat distance from axis / shaft diameter
D_FLAT_CLEARANCE_RATIO = 0.1  # Cut box overshoot past the bore / shaft diameter

DETENT_COUNT = 20
DETENT_WIDTH_MM = 0.5
DETENT_DEPTH_RATIO = 0.25  # Radial notch depth / shaft diameter


def sagitta(radius: float, segments: int) -> float:
    """Gap between a circle and the mid-point of a facet of its N-gon."""
    return radius * (1.0 - math.cos(math.pi / segments))


@dataclass
class RidgeFeature:
    """
    Outer grip ridges specification.

    Each ridge is a box standing on the knob's side wall, centered at the
    body radius plus half the ridge depth.

    Attributes:
        count: Number of ridges evenly spaced around the knob
        width: Tangential width of each ridge in mm
        depth: How far each ridge stands proud of the body in mm
        height_ratio: Ridge height as a fraction of the knob height
        seat_margin: Extra depth (mm) buried in the body on top of the facet
                     sagitta, so ridges always overlap the faceted wall
    """
    count: int
    width: float = RIDGE_WIDTH_MM
    depth: float = RIDGE_DEPTH_MM
    height_ratio: float = RIDGE_HEIGHT_RATIO
    seat_margin: float = RIDGE_SEAT_MARGIN_MM

    def __post_init__(self):
        if self.count < 1:
            raise InvalidGeometryParameter(f"Ridge count must be at least 1, got {self.count}")
        if self.width <= 0:
            raise InvalidGeometryParameter(f"Ridge width must be positive, got {self.width}")
        if self.depth <= 0:
            raise InvalidGeometryParameter(f"Ridge depth must be positive, got {self.depth}")
        if not 0 < self.height_ratio <= 1:
            raise InvalidGeometryParameter(
                f"Ridge height ratio must be in (0, 1], got {self.height_ratio}"
            )
        if self.seat_margin < 0:
            raise InvalidGeometryParameter(
                f"Ridge seat margin must be >= 0, got {self.seat_margin}"
            )

    def center_radius(self, knob_diameter: float) -> float:
        return knob_diameter / 2 + self.depth / 2

    def seat(self, knob_diameter: float, radial_segments: int) -> float:
        """Depth each ridge extends below the ideal body radius."""
        return sagitta(knob_diameter / 2, radial_segments) + self.seat_margin


@dataclass
class IndentFeature:
    """
    Top finger indent specification.

    Attributes:
        radius_ratio: Indent sphere radius as a fraction of the knob diameter
        overshoot_mm: How far the cutter extends above the top face
    """
    radius_ratio: float = INDENT_RADIUS_RATIO
    overshoot_mm: float = INDENT_OVERSHOOT_MM

    def __post_init__(self):
        if self.radius_ratio <= 0:
            raise InvalidGeometryParameter(
                f"Indent radius ratio must be positive, got {self.radius_ratio}"
            )
        if self.overshoot_mm <= 0:
            raise InvalidGeometryParameter(
                f"Indent overshoot must be positive, got {self.overshoot_mm}"
            )

    def radius(self, knob_diameter: float) -> float:
        return knob_diameter * self.radius_ratio


@dataclass
class DetentSpec:
    """
    Radial notches around a detented shaft bore.

    Attributes:
        count: Number of notches
        width: Tangential notch width in mm
        depth_ratio: Radial notch depth as a fraction of the shaft diameter
        height_ratio: Notch height as a fraction of the knob height
    """
    count: int = DETENT_COUNT
    width: float = DETENT_WIDTH_MM
    depth_ratio: float = DETENT_DEPTH_RATIO
    height_ratio: float = CUTTER_HEIGHT_RATIO

    def __post_init__(self):
        if self.count < 1:
            raise InvalidGeometryParameter(f"Detent count must be at least 1, got {self.count}")
        if self.width <= 0:
            raise InvalidGeometryParameter(f"Detent width must be positive, got {self.width}")
        if self.depth_ratio <= 0:
            raise InvalidGeometryParameter(
                f"Detent depth ratio must be positive, got {self.depth_ratio}"
            )
        if self.height_ratio <= 0:
            raise InvalidGeometryParameter(
                f"Detent height ratio must be positive, got {self.height_ratio}"
            )


# ── Ridges ────────────────────────────────────────────────────────────────

def ridge_angles(count: int) -> List[float]:
    """Placement angles ``2*pi*i/count`` in radians."""
    return [2.0 * math.pi * i / count for i in range(count)]


def ridge_centers(ridge: RidgeFeature, knob_diameter: float) -> List[Tuple[float, float]]:
    """(x, z) center of each ridge."""
    r = ridge.center_radius(knob_diameter)
    return [(r * math.cos(a), r * math.sin(a)) for a in ridge_angles(ridge.count)]


def build_ridge(
    ridge: RidgeFeature,
    knob_diameter: float,
    knob_height: float,
    angle: float,
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
) -> PolygonMesh:
    """
    Create a single ridge placed at ``angle``.

    The box is built with its radial extent along X, rotated about Y so that
    +X points along ``(cos angle, 0, sin angle)``, then moved out to the ridge
    center radius.

    Returns:
        Closed box mesh
    """
    radial = ridge.depth + 2 * ridge.seat(knob_diameter, radial_segments)
    mesh = box(radial, knob_height * ridge.height_ratio, ridge.width)
    r = ridge.center_radius(knob_diameter)
    return mesh.rotate_y(angle).translate(r * math.cos(angle), 0.0, r * math.sin(angle))


def add_ridges(
    body: PolygonMesh,
    ridge: RidgeFeature,
    knob_diameter: float,
    knob_height: float,
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
    csg: Optional[CSGEngine] = None,
) -> PolygonMesh:
    """
    Union all ridges into the body, one at a time in angle order.

    Args:
        body: Knob body mesh
        ridge: Ridge specification
        knob_diameter: Knob diameter in mm
        knob_height: Knob height in mm
        radial_segments: Segment count the body was built with (sets the seat)
        csg: Boolean engine (default epsilon if None)

    Returns:
        Body with ridges
    """
    csg = csg or CSGEngine()
    result = body
    for angle in ridge_angles(ridge.count):
        result = csg.union(result, build_ridge(ridge, knob_diameter, knob_height, angle, radial_segments))
    return result


# ── Top indent ────────────────────────────────────────────────────────────

def build_indent_cutter(
    indent: IndentFeature,
    knob_diameter: float,
    knob_height: float,
    sphere_segments: int = DEFAULT_RADIAL_SEGMENTS,
) -> PolygonMesh:
    """
    Create the hemispherical cutter for the top indent.

    The hemisphere is turned bowl-down with its rim on the top face
    (y = knob_height / 2). Its rim is extruded upward by the overshoot so the
    cutter pokes out of the top face instead of sharing its plane.
    """
    radius = indent.radius(knob_diameter)
    cap = spherical_cap(
        radius,
        default_latitude_segments(sphere_segments),
        sphere_segments,
        math.pi / 2,
        extension=indent.overshoot_mm,
    )
    return cap.rotate_x(math.pi).translate(0.0, knob_height / 2, 0.0)


def add_top_indent(
    body: PolygonMesh,
    indent: IndentFeature,
    knob_diameter: float,
    knob_height: float,
    sphere_segments: int = DEFAULT_RADIAL_SEGMENTS,
    csg: Optional[CSGEngine] = None,
) -> PolygonMesh:
    """Subtract the top indent from the body."""
    csg = csg or CSGEngine()
    cutter = build_indent_cutter(indent, knob_diameter, knob_height, sphere_segments)
    return csg.subtract(body, cutter)


# ── Shaft holes ───────────────────────────────────────────────────────────

class ShaftCutter:
    """
    Negative-volume mesh for a shaft hole, centered on the Y axis.

    Subclasses implement :meth:`build`; every cutter is taller than the knob
    so it passes cleanly through both faces.

    Attributes:
        diameter: Shaft diameter in mm
        radial_segments: Segment count of the bore cylinder
        csg: Boolean engine used by composite cutters
    """

    shaft_type: Optional[ShaftType] = None

    def __init__(
        self,
        diameter: float,
        radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
        csg: Optional[CSGEngine] = None,
    ):
        if diameter <= 0:
            raise InvalidGeometryParameter(f"Shaft diameter must be positive, got {diameter}")
        self.diameter = diameter
        self.radial_segments = radial_segments
        self.csg = csg or CSGEngine()

    @property
    def radius(self) -> float:
        return self.diameter / 2

    def __repr__(self) -> str:
        return f"{type(self).__name__}(diameter={self.diameter})"

    def bore(self, knob_height: float) -> PolygonMesh:
        """Plain bore cylinder shared by all cutters."""
        return cylinder(self.radius, knob_height * SHAFT_HEIGHT_RATIO, self.radial_segments)

    def build(self, knob_height: float) -> PolygonMesh:
        raise NotImplementedError


SHAFT_CUTTERS: Dict[ShaftType, Type[ShaftCutter]] = {}


def register_shaft_cutter(shaft_type: ShaftType):
    """Class decorator adding a cutter to the shaft type registry."""
    def decorator(cls: Type[ShaftCutter]) -> Type[ShaftCutter]:
        cls.shaft_type = shaft_type
        SHAFT_CUTTERS[shaft_type] = cls
        return cls
    return decorator


@register_shaft_cutter(ShaftType.ROUND)
class RoundShaftCutter(ShaftCutter):
    """Plain cylindrical bore."""

    def build(self, knob_height: float) -> PolygonMesh:
        return self.bore(knob_height)


@register_shaft_cutter(ShaftType.D_SHAPE)
class DShapeShaftCutter(ShaftCutter):
    """
    Bore with one flat, for D-shaft potentiometers and encoders.

    The flat sits at ``z = diameter / 6``. It is made by removing a box that
    starts at the flat and runs past the bore wall by a clearance, so no box
    face touches the cylinder.
    """

    @property
    def flat_offset(self) -> float:
        return self.diameter * D_FLAT_OFFSET_RATIO

    @property
    def clearance(self) -> float:
        return self.diameter * D_FLAT_CLEARANCE_RATIO

    @property
    def flat_width(self) -> float:
        """Chord length of the flat across the (ideal) circular bore."""
        return 2.0 * math.sqrt(self.radius ** 2 - self.flat_offset ** 2)

    def build(self, knob_height: float) -> PolygonMesh:
        thickness = self.radius + self.clearance - self.flat_offset
        cut = box(
            self.diameter + 2 * self.clearance,
            knob_height * CUTTER_HEIGHT_RATIO,
            thickness,
        ).translate(0.0, 0.0, self.flat_offset + thickness / 2)
        return self.csg.subtract(self.bore(knob_height), cut)


@register_shaft_cutter(ShaftType.DETENTED)
class DetentedShaftCutter(ShaftCutter):
    """Bore with radial notches that the shaft's knurls lock into."""

    def __init__(
        self,
        diameter: float,
        radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
        csg: Optional[CSGEngine] = None,
        detents: Optional[DetentSpec] = None,
    ):
        super().__init__(diameter, radial_segments, csg)
        self.detents = detents or DetentSpec()

    def notch(self, knob_height: float, angle: float) -> PolygonMesh:
        """One notch box centered on the bore wall at ``angle``."""
        spec = self.detents
        mesh = box(self.diameter * spec.depth_ratio, knob_height * spec.height_ratio, spec.width)
        return mesh.rotate_y(angle).translate(
            self.radius * math.cos(angle), 0.0, self.radius * math.sin(angle)
        )

    def build(self, knob_height: float) -> PolygonMesh:
        result = self.bore(knob_height)
        for i in range(self.detents.count):
            angle = 2.0 * math.pi * i / self.detents.count
            result = self.csg.union(result, self.notch(knob_height, angle))
        return result


def create_shaft_cutter(
    shaft_type,
    diameter: float,
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
    csg: Optional[CSGEngine] = None,
) -> ShaftCutter:
    """
    Look up and instantiate the cutter registered for ``shaft_type``.

    Args:
        shaft_type: ShaftType member (strings and legacy codes are coerced)
        diameter: Shaft diameter in mm
        radial_segments: Segment count of the bore cylinder
        csg: Boolean engine passed to composite cutters

    Raises:
        UnsupportedShaftType: If no cutter is registered for the type
        InvalidGeometryParameter: If diameter is not positive
    """
    try:
        key = ShaftType.coerce(shaft_type)
    except ValueError:
        raise UnsupportedShaftType(shaft_type) from None

    cutter_cls = SHAFT_CUTTERS.get(key)
    if cutter_cls is None:
        raise UnsupportedShaftType(shaft_type)
    return cutter_cls(diameter, radial_segments, csg)


def add_shaft_hole(
    body: PolygonMesh,
    cutter: ShaftCutter,
    knob_height: float,
    csg: Optional[CSGEngine] = None,
) -> PolygonMesh:
    """Subtract the shaft hole from the body."""
    csg = csg or cutter.csg
    return csg.subtract(body, cutter.build(knob_height))
