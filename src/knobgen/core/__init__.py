"""
Knobgen Core - Pure geometry generation engine.

This module provides the polygon mesh model, primitive builders, the BSP
boolean engine, knob features and the knob assembler. No JSON or file format
dependencies - pure Python API (parameters are plain pydantic models).

Example:
    >>> from knobgen.core import KnobGeometry
    >>> from knobgen.io import KnobParams
    >>>
    >>> params = KnobParams(
    ...     knob_diameter_mm=35.0,
    ...     knob_height_mm=14.0,
    ...     shaft_type="d_shape",
    ...     shaft_diameter_mm=6.0,
    ... )
    >>>
    >>> knob = KnobGeometry(params)
    >>> mesh = knob.build()
    >>> knob.export_stl("knob.stl")
"""

from .errors import (
    KnobGeometryError,
    InvalidGeometryParameter,
    UnsupportedShaftType,
    DegenerateResult,
)
from .mesh import (
    Vector3,
    Vertex,
    Plane,
    Polygon,
    Bounds,
    PolygonMesh,
    IndexedMesh,
)
from .stitching import (
    StitchedMesh,
    EdgeReport,
    stitch,
    triangulate,
    edge_report,
    check_closed,
    to_trimesh,
    weld_vertices,
)
from .primitives import cylinder, box, spherical_cap
from .csg import BSPNode, CSGEngine
from .features import (
    RidgeFeature,
    IndentFeature,
    DetentSpec,
    ShaftCutter,
    RoundShaftCutter,
    DShapeShaftCutter,
    DetentedShaftCutter,
    SHAFT_CUTTERS,
    register_shaft_cutter,
    create_shaft_cutter,
    ridge_angles,
    ridge_centers,
    add_ridges,
    add_top_indent,
    add_shaft_hole,
)
from .measure import (
    WallThicknessResult,
    WALL_WARNING_THRESHOLD_MM,
    slice_at_height,
    measure_wall_thickness,
)
from .knob import KnobGeometry, build_knob

__all__ = [
    # Errors
    "KnobGeometryError",
    "InvalidGeometryParameter",
    "UnsupportedShaftType",
    "DegenerateResult",

    # Mesh model
    "Vector3",
    "Vertex",
    "Plane",
    "Polygon",
    "Bounds",
    "PolygonMesh",
    "IndexedMesh",

    # Stitching
    "StitchedMesh",
    "EdgeReport",
    "stitch",
    "triangulate",
    "edge_report",
    "check_closed",
    "to_trimesh",
    "weld_vertices",

    # Primitives and booleans
    "cylinder",
    "box",
    "spherical_cap",
    "BSPNode",
    "CSGEngine",

    # Features
    "RidgeFeature",
    "IndentFeature",
    "DetentSpec",
    "ShaftCutter",
    "RoundShaftCutter",
    "DShapeShaftCutter",
    "DetentedShaftCutter",
    "SHAFT_CUTTERS",
    "register_shaft_cutter",
    "create_shaft_cutter",
    "ridge_angles",
    "ridge_centers",
    "add_ridges",
    "add_top_indent",
    "add_shaft_hole",

    # Measurement
    "WallThicknessResult",
    "WALL_WARNING_THRESHOLD_MM",
    "slice_at_height",
    "measure_wall_thickness",

    # Assembler
    "KnobGeometry",
    "build_knob",
]
