"""
Tests for the command-line interface.
"""

import json
import subprocess
import sys
import pytest
from pathlib import Path

from knobgen.cli import generate as generate_module
from knobgen.cli.generate import apply_overrides, build_parser, main
from knobgen.enums import ShaftType
from knobgen.io.loaders import KnobDesign


# Fast geometry for CLI runs
FAST = ["--no-ridges", "--no-indent", "--segments", "12"]


def _run(*args, timeout=120):
    return subprocess.run(
        [sys.executable, "-m", "knobgen.cli.generate", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


@pytest.fixture
def temp_json_file(tmp_path):
    """Knob JSON in the browser generator's camelCase format."""
    path = tmp_path / "knob.json"
    path.write_text(json.dumps({
        "knobDia": 30,
        "knobHeight": 12,
        "shaftType": 1,
        "shaftDia": 6,
        "outerRidged": False,
        "makeTopIndent": False,
    }))
    return path


class TestCLIEntryPoints:
    """Test that CLI entry points defined in pyproject.toml are importable."""

    def test_entry_point_importable(self):
        """Test that the CLI entry point module and function exist."""
        from knobgen.cli.generate import main
        assert callable(main)

    def test_entry_point_via_subprocess(self):
        """Test entry point works when invoked as module."""
        result = _run("--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()


class TestArgumentParsing:
    """Tests for flag handling without building geometry."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.design_file is None
        assert args.name == "knob"
        assert args.indent is None

    def test_overrides_applied(self):
        args = build_parser().parse_args([
            "--diameter", "40", "--shaft-type", "detented", "--ridges", "24", "--segments", "48",
        ])
        design = apply_overrides(KnobDesign(), args)
        assert design.knob.knob_diameter_mm == 40
        assert design.knob.shaft_type is ShaftType.DETENTED
        assert design.knob.ridge_count == 24
        assert design.knob.outer_ridged is True
        assert design.resolution.radial_segments == 48

    def test_flags_switch_features_off(self):
        args = build_parser().parse_args(["--no-ridges", "--no-indent"])
        design = apply_overrides(KnobDesign(), args)
        assert design.knob.outer_ridged is False
        assert design.knob.top_indent is False

    def test_unset_flags_keep_json_values(self):
        args = build_parser().parse_args([])
        base = KnobDesign().model_copy(update={"knob": KnobDesign().knob.with_overrides(knob_height_mm=20)})
        assert apply_overrides(base, args).knob.knob_height_mm == 20

    def test_invalid_shaft_type_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--shaft-type", "hex"])


class TestCLIErrors:
    """Error exits."""

    def test_cli_missing_file(self):
        """Test error handling for missing input file."""
        result = _run("nonexistent.json", "--no-save")
        assert result.returncode != 0
        assert "Error loading design" in result.stderr

    def test_cli_invalid_json(self, tmp_path):
        """Test error handling for invalid JSON."""
        invalid_file = tmp_path / "invalid.json"
        invalid_file.write_text("not valid json {")
        result = _run(str(invalid_file), "--no-save")
        assert result.returncode != 0

    def test_shaft_larger_than_knob(self, capsys):
        code = main(["--diameter", "10", "--shaft-diameter", "12", "--no-save"])
        captured = capsys.readouterr()
        assert code == 1
        assert "ERROR" in captured.err
        assert "no geometry generated" in captured.err

    @pytest.mark.parametrize("error", [RuntimeError("shell could not be sewn"), ValueError("bad face")])
    def test_step_failure_exits_with_message(self, monkeypatch, tmp_path, capsys, error):
        def failing_package(*args, **kwargs):
            raise error

        monkeypatch.setattr(generate_module, "generate_package", failing_package)
        code = main([*FAST, "--step", "-o", str(tmp_path)])
        captured = capsys.readouterr()
        assert code == 1
        assert "Error exporting" in captured.err
        assert not list(tmp_path.iterdir())


class TestCLIGeneration:
    """Tests for geometry generation via CLI."""

    def test_no_save(self, capsys):
        code = main([*FAST, "--no-save"])
        out = capsys.readouterr().out
        assert code == 0
        assert "Generating knob" in out
        assert "Minimum wall thickness" in out
        assert "Saved" not in out
        assert "INFO" not in out

    def test_writes_files(self, tmp_path):
        output_dir = tmp_path / "output"
        result = _run(*FAST, "-o", str(output_dir), "--name", "dial")
        assert result.returncode == 0, result.stderr
        assert (output_dir / "dial.stl").exists()
        assert (output_dir / "dial.json").exists()
        assert not (output_dir / "dial.step").exists()

        data = json.loads((output_dir / "dial.json").read_text())
        assert data["knob"]["outer_ridged"] is False
        assert data["resolution"]["radial_segments"] == 12

    def test_from_browser_json(self, temp_json_file, tmp_path):
        code = main([str(temp_json_file), "--segments", "12", "-o", str(tmp_path / "out")])
        assert code == 0
        data = json.loads((tmp_path / "out" / "knob.json").read_text())
        assert data["knob"]["knob_diameter_mm"] == 30
        assert data["knob"]["shaft_type"] == "d_shape"

    def test_save_json(self, tmp_path, capsys):
        saved = tmp_path / "params.json"
        code = main([*FAST, "--diameter", "28", "--no-save", "--save-json", str(saved)])
        assert code == 0
        data = json.loads(saved.read_text())
        assert data["knob"]["knob_diameter_mm"] == 28
        assert "validation" not in data

    def test_thin_wall_warning_printed(self, capsys):
        code = main([*FAST, "--diameter", "10", "--shaft-diameter", "8", "--no-save"])
        out = capsys.readouterr().out
        assert code == 0
        assert "WARNING" in out

    def test_verbose(self):
        result = _run(*FAST, "--no-save", "-v")
        assert result.returncode == 0
        assert "knobgen.core" in result.stderr

    def test_step_output(self, tmp_path):
        pytest.importorskip("build123d")
        code = main([*FAST, "--step", "-o", str(tmp_path)])
        assert code == 0
        assert Path(tmp_path / "knob.step").exists()
