"""
Knobgen - Parametric control knob generator.

Turns a handful of dials (diameter, height, shaft shape, ridge count, top
indent) into one watertight solid ready for 3D printing.

Example:
    >>> from knobgen.core import KnobGeometry
    >>> from knobgen.io import KnobParams, save_knob_json
    >>>
    >>> params = KnobParams(knob_diameter_mm=35, shaft_type="d_shape")
    >>>
    >>> # Generate 3D model
    >>> knob = KnobGeometry(params)
    >>> knob.export_stl("knob.stl")
    >>>
    >>> # Save parameters
    >>> save_knob_json(params, "knob.json")

Note: All imports are lazy-loaded for fast startup.
"""

__version__ = "1.0.0"

# Define which names come from which submodule
# All imports are lazy to minimize startup time

_ENUMS = {"ShaftType"}

_VALIDATION = {
    "validate_params",
    "Severity",
    "ValidationMessage",
    "ValidationResult",
}

_IO = {
    "load_knob_json",
    "save_knob_json",
    "KnobParams",
    "ResolutionParams",
    "KnobDesign",
    "write_binary_stl",
    "export_step",
}

_CORE = {
    "KnobGeometry",
    "build_knob",
    "PolygonMesh",
    "CSGEngine",
    "RidgeFeature",
    "IndentFeature",
    "DetentSpec",
    "create_shaft_cutter",
    "measure_wall_thickness",
    "KnobGeometryError",
    "InvalidGeometryParameter",
    "UnsupportedShaftType",
    "DegenerateResult",
}

# Cache for lazy-loaded modules
_modules = {}


def __getattr__(name):
    """Lazy load submodules when their attributes are accessed."""
    global _modules

    if name in _ENUMS:
        if "enums" not in _modules:
            from . import enums
            _modules["enums"] = enums
        return getattr(_modules["enums"], name)

    if name in _VALIDATION:
        if "validation" not in _modules:
            from . import validation
            _modules["validation"] = validation
        return getattr(_modules["validation"], name)

    if name in _IO:
        if "io" not in _modules:
            from . import io
            _modules["io"] = io
        return getattr(_modules["io"], name)

    if name in _CORE:
        if "core" not in _modules:
            from . import core
            _modules["core"] = core
        return getattr(_modules["core"], name)

    raise AttributeError(f"module 'knobgen' has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",

    # Geometry (lazy loaded from core)
    "KnobGeometry",
    "build_knob",
    "PolygonMesh",
    "CSGEngine",
    "RidgeFeature",
    "IndentFeature",
    "DetentSpec",
    "create_shaft_cutter",
    "measure_wall_thickness",

    # Errors (lazy loaded from core)
    "KnobGeometryError",
    "InvalidGeometryParameter",
    "UnsupportedShaftType",
    "DegenerateResult",

    # Enums (lazy loaded from enums)
    "ShaftType",

    # Validation
    "validate_params",
    "Severity",
    "ValidationMessage",
    "ValidationResult",

    # IO (lazy loaded from io)
    "load_knob_json",
    "save_knob_json",
    "KnobParams",
    "ResolutionParams",
    "KnobDesign",
    "write_binary_stl",
    "export_step",
]
