"""
Knobgen IO - parameter records, JSON loaders, and exporters.

Example:
    >>> from knobgen.io import KnobDesign, KnobParams, load_knob_json, save_knob_json
    >>>
    >>> design = KnobDesign(knob=KnobParams(knob_diameter_mm=40, ridge_count=60))
    >>> save_knob_json(design, "knob.json")
    >>> loaded = load_knob_json("knob.json")
"""

from .loaders import (
    SCHEMA_VERSION,
    KnobParams,
    ResolutionParams,
    KnobDesign,
    design_from_dict,
    design_to_dict,
    load_knob_json,
    save_knob_json,
)

from .package import (
    PackageFiles,
    stl_bytes,
    write_binary_stl,
    read_binary_stl,
    mesh_to_solid,
    export_step,
    step_bytes,
    generate_package,
    save_package_to_dir,
)

__all__ = [
    # Loaders
    "SCHEMA_VERSION",
    "KnobParams",
    "ResolutionParams",
    "KnobDesign",
    "design_from_dict",
    "design_to_dict",
    "load_knob_json",
    "save_knob_json",

    # Export
    "PackageFiles",
    "stl_bytes",
    "write_binary_stl",
    "read_binary_stl",
    "mesh_to_solid",
    "export_step",
    "step_bytes",
    "generate_package",
    "save_package_to_dir",
]
