"""
Shared export and packaging logic for knob geometry.

Produces the output files for one knob: binary STL (always), STEP (optional,
via build123d) and design.json. The CLI writes them to a directory; library
callers can keep the bytes.
"""

import json
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from ..core.mesh import PolygonMesh
from ..core.stitching import DEFAULT_WELD_TOLERANCE, stitch
from .loaders import KnobDesign, design_to_dict

logger = logging.getLogger(__name__)

STL_HEADER_SIZE = 80

# One binary STL facet record: normal, three corners, attribute byte count
STL_RECORD_DTYPE = np.dtype([
    ('normal', '<f4', (3,)),
    ('vertices', '<f4', (3, 3)),
    ('attribute', '<u2'),
])


def _stl_header(name: str) -> bytes:
    # Must not start with "solid", or readers may take the file for ASCII STL
    text = f"knobgen binary STL: {name}".encode('ascii', errors='replace')
    return text[:STL_HEADER_SIZE].ljust(STL_HEADER_SIZE, b' ')


def stl_bytes(
    mesh: PolygonMesh,
    name: str = "knob",
    tolerance: float = DEFAULT_WELD_TOLERANCE,
) -> bytes:
    """
    Encode a mesh as binary STL.

    The mesh is stitched and triangulated first, so shared edges line up
    exactly in the output.

    Args:
        mesh: Closed polygon mesh
        name: Label stored in the 80-byte header
        tolerance: Vertex weld tolerance

    Returns:
        STL file contents as bytes
    """
    indexed = mesh.to_indexed(tolerance)
    count = indexed.triangle_count

    records = np.zeros(count, dtype=STL_RECORD_DTYPE)
    if count:
        records['normal'] = indexed.face_normals()
        records['vertices'] = indexed.positions[indexed.indices]

    return _stl_header(name) + np.array([count], dtype='<u4').tobytes() + records.tobytes()


def write_binary_stl(
    mesh: PolygonMesh,
    filepath: Union[str, Path],
    name: str = "knob",
    tolerance: float = DEFAULT_WELD_TOLERANCE,
) -> int:
    """
    Write a mesh to a binary STL file.

    Returns:
        Number of triangles written
    """
    data = stl_bytes(mesh, name, tolerance)
    Path(filepath).write_bytes(data)
    count = (len(data) - STL_HEADER_SIZE - 4) // STL_RECORD_DTYPE.itemsize
    logger.debug(f"Wrote {count} triangles to {filepath}")
    return count


def read_binary_stl(filepath: Union[str, Path]) -> np.ndarray:
    """Read the facet records of a binary STL file."""
    data = Path(filepath).read_bytes()
    count = int(np.frombuffer(data, dtype='<u4', count=1, offset=STL_HEADER_SIZE)[0])
    return np.frombuffer(data, dtype=STL_RECORD_DTYPE, count=count, offset=STL_HEADER_SIZE + 4)


def mesh_to_solid(mesh: PolygonMesh, tolerance: float = DEFAULT_WELD_TOLERANCE):
    """
    Convert a closed polygon mesh to a build123d Solid.

    Each stitched polygon becomes a planar face; the faces are sewn into a
    shell and closed into a solid.
    """
    from build123d import Face, Shell, Solid, Wire

    stitched = stitch(mesh, tolerance)
    faces = []
    for loop in stitched.faces:
        points = [tuple(stitched.positions[i]) for i in loop]
        faces.append(Face(Wire.make_polygon(points, close=True)))

    solid = Solid(Shell(faces))
    logger.debug(f"Converted {len(faces)} faces to solid (volume={solid.volume:.2f} mm³)")
    return solid


def export_step(mesh: PolygonMesh, filepath: Union[str, Path]) -> None:
    """Export a mesh to a STEP file through build123d."""
    from build123d import export_step as b3d_export_step

    b3d_export_step(mesh_to_solid(mesh), str(filepath))


def step_bytes(mesh: PolygonMesh) -> bytes:
    """Export a mesh to STEP bytes."""
    with tempfile.NamedTemporaryFile(suffix=".step", delete=False) as tmp:
        tmp_path = Path(tmp.name)

    try:
        export_step(mesh, tmp_path)
        return tmp_path.read_bytes()
    finally:
        tmp_path.unlink(missing_ok=True)


@dataclass
class PackageFiles:
    """Container for all output files from knob generation."""

    stl: Optional[bytes] = None
    step: Optional[bytes] = None
    design_json: Optional[str] = None


def design_json_text(design: KnobDesign, validation=None) -> str:
    """design.json contents, with validation findings when provided."""
    data = design_to_dict(design)
    if validation is not None:
        data['validation'] = {
            'valid': validation.valid,
            'messages': [
                {
                    'severity': m.severity.value,
                    'code': m.code,
                    'message': m.message,
                    'suggestion': m.suggestion,
                }
                for m in validation.messages
            ],
        }
    return json.dumps(data, indent=2)


def generate_package(
    design: KnobDesign,
    mesh: PolygonMesh,
    name: str = "knob",
    include_step: bool = False,
    validation=None,
    log: Optional[Callable[[str], None]] = None,
) -> PackageFiles:
    """Generate all output files for a built knob.

    Args:
        design: KnobDesign the mesh was built from.
        mesh: Built knob mesh.
        name: Label for the STL header.
        include_step: Generate a STEP file (default False, needs build123d).
        validation: Optional ValidationResult for design.json.
        log: Optional logging callback (e.g. print).

    Returns:
        PackageFiles with all generated file data.
    """
    files = PackageFiles()

    def _log(msg: str):
        if log:
            log(msg)

    _log("Exporting STL...")
    files.stl = stl_bytes(mesh, name, design.resolution.epsilon)
    _log(f"  STL: {len(files.stl) / 1024:.1f} KB")

    if include_step:
        _log("Exporting STEP...")
        files.step = step_bytes(mesh)
        _log(f"  STEP: {len(files.step) / 1024:.1f} KB")

    files.design_json = design_json_text(design, validation)
    return files


def save_package_to_dir(
    files: PackageFiles,
    output_dir: Path,
    name: str = "knob",
) -> list[Path]:
    """Write all PackageFiles to a directory.

    Args:
        files: PackageFiles from generate_package().
        output_dir: Directory to write files into (created if needed).
        name: Base filename for the mesh files.

    Returns:
        List of Paths written.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []

    file_map = {
        f"{name}.stl": files.stl,
        f"{name}.step": files.step,
    }

    for filename, data in file_map.items():
        if data is not None:
            path = output_dir / filename
            path.write_bytes(data)
            written.append(path)

    if files.design_json is not None:
        path = output_dir / f"{name}.json"
        path.write_text(files.design_json, encoding="utf-8")
        written.append(path)

    return written
