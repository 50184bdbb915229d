"""
Knob geometry generation.

Builds a printable control knob: a faceted cylinder with optional grip
ridges, an optional finger indent in the top, and an optional shaft hole.
All features are combined with exact boolean operations, so the result is a
single closed solid.
"""

import logging
from typing import List, Optional

from ..io.loaders import KnobParams, ResolutionParams
from .csg import CSGEngine
from .errors import DegenerateResult, InvalidGeometryParameter
from .features import (
    IndentFeature,
    RidgeFeature,
    add_ridges,
    add_shaft_hole,
    add_top_indent,
    create_shaft_cutter,
)
from .geometry_base import BaseGeometry
from .mesh import PolygonMesh
from .primitives import cylinder
from .stitching import check_closed

logger = logging.getLogger(__name__)


class KnobGeometry(BaseGeometry):
    """
    Generates 3D geometry for a knob.

    The pipeline is fixed: body cylinder, then ridges (union), then top
    indent (subtract), then shaft hole (subtract). Optional steps are
    skipped when switched off; ``applied_features`` lists the ones that ran.
    """

    _part_name = "knob"

    def __init__(
        self,
        params: KnobParams,
        resolution: Optional[ResolutionParams] = None,
        csg: Optional[CSGEngine] = None,
        ridge: Optional[RidgeFeature] = None,
        indent: Optional[IndentFeature] = None,
    ):
        """
        Initialize knob geometry generator.

        Args:
            params: Knob dimensions and feature switches
            resolution: Segment counts and boolean tolerance (defaults if None)
            csg: Boolean engine (built from resolution.epsilon if None)
            ridge: Ridge proportions (count always taken from params)
            indent: Indent proportions
        """
        self.params = params
        self.resolution = resolution or ResolutionParams()
        self.csg = csg or CSGEngine(self.resolution.epsilon)
        self.ridge = ridge
        self.indent = indent or IndentFeature()
        self.applied_features: List[str] = []

        # Cache for built geometry (avoids rebuilding on export)
        self._mesh = None

    def validate(self):
        """Run parameter validation.

        Raises:
            InvalidGeometryParameter: If any rule reports an error
        """
        # Lazy import to avoid circular dependency (core -> validation -> core)
        from ..validation import validate_params

        result = validate_params(self.params)
        for msg in result.warnings:
            logger.warning(f"{msg.code}: {msg.message}")
        if not result.valid:
            details = "; ".join(m.message for m in result.errors)
            raise InvalidGeometryParameter(f"Invalid knob parameters: {details}", result.errors)
        return result

    def build(self) -> PolygonMesh:
        """
        Build the complete knob geometry.

        Returns:
            Closed PolygonMesh

        Raises:
            InvalidGeometryParameter: If parameters fail validation
            UnsupportedShaftType: If no cutter is registered for the shaft type
            DegenerateResult: If the booleans leave an empty or open mesh
        """
        # Return cached geometry if already built
        if self._mesh is not None:
            return self._mesh

        self.validate()

        p = self.params
        res = self.resolution
        diameter = p.knob_diameter_mm
        height = p.knob_height_mm
        applied = []

        logger.debug(
            f"Creating body cylinder (radius={diameter / 2:.2f}mm, height={height:.2f}mm, "
            f"segments={res.radial_segments})..."
        )
        knob = cylinder(diameter / 2, height, res.radial_segments)

        if p.outer_ridged:
            ridge = self._ridge_feature()
            logger.debug(f"Adding {ridge.count} ridges...")
            knob = add_ridges(knob, ridge, diameter, height, res.radial_segments, self.csg)
            self._check_not_empty(knob, "ridges")
            applied.append("ridges")

        if p.top_indent:
            logger.debug(f"Cutting top indent (radius={self.indent.radius(diameter):.2f}mm)...")
            knob = add_top_indent(knob, self.indent, diameter, height, res.sphere_segments, self.csg)
            self._check_not_empty(knob, "indent")
            applied.append("indent")

        if p.has_shaft:
            cutter = create_shaft_cutter(p.shaft_type, p.shaft_diameter_mm, res.radial_segments, self.csg)
            logger.debug(f"Cutting shaft hole with {cutter!r}...")
            knob = add_shaft_hole(knob, cutter, height, self.csg)
            self._check_not_empty(knob, "shaft")
            applied.append("shaft")

        self._check_closed(knob, applied[-1] if applied else "body")

        logger.debug(f"Final knob: {len(knob)} polygons, volume={knob.volume():.2f} mm³")
        self.applied_features = applied
        self._mesh = knob
        return knob

    def _ridge_feature(self) -> RidgeFeature:
        count = self.params.ridge_count
        if self.ridge is None:
            return RidgeFeature(count)
        return RidgeFeature(
            count,
            width=self.ridge.width,
            depth=self.ridge.depth,
            height_ratio=self.ridge.height_ratio,
            seat_margin=self.ridge.seat_margin,
        )

    @staticmethod
    def _check_not_empty(mesh: PolygonMesh, stage: str):
        if mesh.is_empty:
            raise DegenerateResult(f"Knob became empty after {stage}", stage=stage)

    def _check_closed(self, mesh: PolygonMesh, stage: str):
        report = check_closed(mesh, self.resolution.epsilon)
        if not report.is_closed:
            raise DegenerateResult(
                f"Knob mesh is not watertight after {stage}: "
                f"{report.open_edges} open edges, {report.non_manifold_edges} non-manifold edges",
                stage=stage,
                open_edges=report.open_edges,
                non_manifold_edges=report.non_manifold_edges,
            )


def build_knob(
    params: KnobParams,
    resolution: Optional[ResolutionParams] = None,
    csg: Optional[CSGEngine] = None,
) -> PolygonMesh:
    """Build a knob mesh in one call."""
    return KnobGeometry(params, resolution, csg).build()
