"""
Base class for knob geometry classes.

Provides the shared export and display methods; subclasses only implement
``build()``.
"""

import logging

logger = logging.getLogger(__name__)


class BaseGeometry:
    """Base class providing shared export/display methods for geometry classes.

    Subclasses must:
    - Set self._mesh = None in __init__
    - Implement build() -> PolygonMesh
    - Set _part_name class attribute for log messages
    """

    _part_name: str = "part"

    def _built(self):
        if self._mesh is None:
            self.build()
        return self._mesh

    def show(self):
        """Display in OCP viewer (requires ocp_vscode)."""
        mesh = self.build()
        try:
            from ocp_vscode import show as ocp_show
            from ..io.package import mesh_to_solid
            ocp_show(mesh_to_solid(mesh))
        except ImportError:
            pass
        return mesh

    def export_stl(self, filepath: str):
        """Export to binary STL file (builds if not already built)."""
        mesh = self._built()

        from ..io.package import write_binary_stl
        logger.info(f"Exporting {self._part_name}: volume={mesh.volume():.2f} mm³")
        count = write_binary_stl(mesh, filepath, name=self._part_name)
        logger.info(f"Exported {self._part_name} ({count} triangles) to {filepath}")

    def export_step(self, filepath: str):
        """Export to STEP file (builds if not already built)."""
        mesh = self._built()

        from ..io.package import export_step
        logger.info(f"Exporting {self._part_name}: volume={mesh.volume():.2f} mm³")
        export_step(mesh, filepath)
        logger.info(f"Exported {self._part_name} to {filepath}")
