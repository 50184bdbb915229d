"""
Command-line interface for knob geometry generation.
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from ..io.loaders import (
    load_knob_json,
    save_knob_json,
    KnobDesign,
)
from ..io.package import generate_package, save_package_to_dir
from ..enums import ShaftType
from ..core.errors import KnobGeometryError
from ..core.knob import KnobGeometry
from ..core.measure import measure_wall_thickness, WALL_WARNING_THRESHOLD_MM
from ..validation import validate_params, Severity


SHAFT_TYPE_CHOICES = [t.value for t in ShaftType]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knobgen",
        description="Generate 3D-printable control knobs as STL (and STEP) files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default knob (35mm x 14mm, 50 ridges, top indent, 6mm round shaft)
  knobgen

  # Load parameters from JSON (browser exports with camelCase keys work too)
  knobgen knob.json

  # Override values from the JSON file
  knobgen knob.json --diameter 40 --ridges 60

  # D-shaft potentiometer knob without ridges
  knobgen --shaft-type d_shape --shaft-diameter 6 --no-ridges

  # Splined shaft, no top indent, also write STEP
  knobgen --shaft-type detented --no-indent --step

  # Check parameters and geometry without writing files
  knobgen --diameter 12 --shaft-diameter 9 --no-save

  # Save the final parameter set for reproducibility
  knobgen --diameter 30 --save-json my_knob.json
        """
    )

    parser.add_argument(
        'design_file',
        type=str,
        nargs='?',
        default=None,
        help='Knob JSON file (default: built-in defaults)'
    )

    parser.add_argument(
        '--diameter',
        type=float,
        default=None,
        help='Knob diameter in mm (default: 35)'
    )

    parser.add_argument(
        '--height',
        type=float,
        default=None,
        help='Knob height in mm (default: 14)'
    )

    parser.add_argument(
        '--shaft-type',
        type=str,
        choices=SHAFT_TYPE_CHOICES,
        default=None,
        help='Shaft hole profile (default: round)'
    )

    parser.add_argument(
        '--shaft-diameter',
        type=float,
        default=None,
        help='Shaft diameter in mm, 0 for no hole (default: 6)'
    )

    parser.add_argument(
        '--ridges',
        type=int,
        default=None,
        metavar='N',
        help='Number of outer grip ridges (default: 50)'
    )

    parser.add_argument(
        '--no-ridges',
        action='store_true',
        help='Smooth outer wall without grip ridges'
    )

    parser.add_argument(
        '--indent',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Finger indent in the top face (default: on)'
    )

    parser.add_argument(
        '--segments',
        type=int,
        default=None,
        help='Radial segments for body and shaft (default: 32)'
    )

    parser.add_argument(
        '-o', '--output-dir',
        type=str,
        default='.',
        help='Output directory (default: current directory)'
    )

    parser.add_argument(
        '--name',
        type=str,
        default='knob',
        help='Base name for output files (default: knob)'
    )

    parser.add_argument(
        '--step',
        action='store_true',
        help='Also export a STEP file (requires build123d)'
    )

    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Do not write output files'
    )

    parser.add_argument(
        '--save-json',
        type=str,
        default=None,
        help='Save the final parameter set to JSON'
    )

    parser.add_argument(
        '--view',
        action='store_true',
        help='View in OCP viewer (requires ocp_vscode extension)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug logging from the geometry engine'
    )

    return parser


def apply_overrides(design: KnobDesign, args: argparse.Namespace) -> KnobDesign:
    """Apply CLI flags on top of the loaded design (CLI > JSON > defaults)."""
    outer_ridged = None
    if args.no_ridges:
        outer_ridged = False
    elif args.ridges is not None:
        outer_ridged = True

    knob = design.knob.with_overrides(
        knob_diameter_mm=args.diameter,
        knob_height_mm=args.height,
        shaft_type=args.shaft_type,
        shaft_diameter_mm=args.shaft_diameter,
        ridge_count=args.ridges,
        outer_ridged=outer_ridged,
        top_indent=args.indent,
    )
    resolution = design.resolution.with_overrides(radial_segments=args.segments)
    return KnobDesign(schema_version=design.schema_version, knob=knob, resolution=resolution)


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # Load design
    try:
        if args.design_file:
            print(f"Loading design from {args.design_file}...")
            design = load_knob_json(args.design_file)
        else:
            design = KnobDesign()
        design = apply_overrides(design, args)
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error loading design: {e}", file=sys.stderr)
        return 1

    knob_params = design.knob

    # Validate
    validation = validate_params(knob_params)
    for msg in validation.messages:
        if msg.severity == Severity.ERROR:
            print(f"  ERROR: {msg.message}", file=sys.stderr)
        elif msg.severity == Severity.WARNING:
            print(f"  WARNING: {msg.message}")
        else:
            print(f"  INFO: {msg.message}")
        if msg.suggestion and msg.severity != Severity.INFO:
            print(f"    Suggestion: {msg.suggestion}")

    if not validation.valid:
        print("Design has errors - no geometry generated", file=sys.stderr)
        return 1

    # Build
    features = []
    if knob_params.outer_ridged:
        features.append(f"{knob_params.ridge_count} ridges")
    if knob_params.top_indent:
        features.append("top indent")
    if knob_params.has_shaft:
        features.append(f"{knob_params.shaft_diameter_mm}mm {knob_params.shaft_type.value} shaft")
    features_desc = ", ".join(features) if features else "plain"

    print(
        f"\nGenerating knob ({knob_params.knob_diameter_mm}mm x {knob_params.knob_height_mm}mm, "
        f"{features_desc})..."
    )

    geometry = KnobGeometry(knob_params, design.resolution)
    try:
        mesh = geometry.build()
    except KnobGeometryError as e:
        print(f"Error generating knob: {e}", file=sys.stderr)
        return 1

    indexed = mesh.to_indexed(design.resolution.epsilon)
    print(f"  Volume: {mesh.volume():.2f} mm³")
    print(f"  Triangles: {indexed.triangle_count}")

    wall = measure_wall_thickness(mesh, knob_params.shaft_diameter_mm, knob_params.knob_diameter_mm)
    if wall.is_valid:
        print(f"  Minimum wall thickness: {wall.minimum_wall_mm:.2f} mm")
        if wall.has_warning:
            print(f"  WARNING: Wall thickness below {WALL_WARNING_THRESHOLD_MM}mm threshold")

    # Save files
    if not args.no_save:
        output_dir = Path(args.output_dir)
        try:
            files = generate_package(
                design,
                mesh,
                name=args.name,
                include_step=args.step,
                validation=validation,
                log=print,
            )
        except ImportError as e:
            print(f"Error exporting: {e}", file=sys.stderr)
            print("STEP export requires build123d: pip install build123d", file=sys.stderr)
            return 1
        except (ValueError, RuntimeError) as e:
            print(f"Error exporting: {e}", file=sys.stderr)
            return 1

        for path in save_package_to_dir(files, output_dir, args.name):
            print(f"  Saved: {path}")

    if args.save_json:
        output_path = Path(args.save_json)
        save_knob_json(design, output_path)
        print(f"\nSaved parameters: {output_path}")

    # View in OCP viewer
    if args.view:
        try:
            from ocp_vscode import show
            from ..io.package import mesh_to_solid

            show(mesh_to_solid(mesh), names=[args.name], colors=["steelblue"])
            print("Displayed in OCP viewer")
        except ImportError:
            print("\nWarning: ocp_vscode not available for viewing", file=sys.stderr)
            print("Install with: pip install ocp_vscode", file=sys.stderr)

    return 0


if __name__ == '__main__':
    sys.exit(main())
