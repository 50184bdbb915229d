"""
Tests for knob parameter records and JSON loading/saving.
"""

import json
import pytest
from pydantic import ValidationError

from knobgen.enums import ShaftType
from knobgen.io.loaders import (
    SCHEMA_VERSION,
    KnobDesign,
    KnobParams,
    ResolutionParams,
    design_from_dict,
    design_to_dict,
    load_knob_json,
    save_knob_json,
)


class TestShaftTypeCoercion:
    """Tests for ShaftType.coerce."""

    @pytest.mark.parametrize("value,expected", [
        (ShaftType.DETENTED, ShaftType.DETENTED),
        ("round", ShaftType.ROUND),
        ("D_SHAPE", ShaftType.D_SHAPE),
        ("d-shape", ShaftType.D_SHAPE),
        ("dshape", ShaftType.D_SHAPE),
        (0, ShaftType.ROUND),
        (1, ShaftType.D_SHAPE),
        ("2", ShaftType.DETENTED),
    ])
    def test_coerce(self, value, expected):
        assert ShaftType.coerce(value) is expected

    @pytest.mark.parametrize("value", ["hex", 5, True, None, 1.5])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            ShaftType.coerce(value)


class TestKnobParams:
    """Tests for the KnobParams model."""

    def test_defaults(self):
        params = KnobParams()
        assert params.knob_diameter_mm == 35.0
        assert params.knob_height_mm == 14.0
        assert params.shaft_type is ShaftType.ROUND
        assert params.shaft_diameter_mm == 6.0
        assert params.outer_ridged is True
        assert params.ridge_count == 50
        assert params.top_indent is True

    def test_derived_properties(self):
        params = KnobParams(knob_diameter_mm=40, shaft_diameter_mm=0)
        assert params.knob_radius_mm == 20.0
        assert not params.has_shaft

    def test_browser_keys(self):
        params = KnobParams.model_validate({
            "knobDia": 40,
            "knobHeight": 20,
            "shaftType": 1,
            "shaftDia": 4,
            "outerRidged": False,
            "noOfOuterRidges": 30,
            "makeTopIndent": False,
        })
        assert params.knob_diameter_mm == 40
        assert params.shaft_type is ShaftType.D_SHAPE
        assert params.ridge_count == 30
        assert params.outer_ridged is False
        assert params.top_indent is False

    def test_invalid_shaft_type(self):
        with pytest.raises(ValidationError):
            KnobParams(shaft_type="hex")

    def test_frozen(self):
        params = KnobParams()
        with pytest.raises(ValidationError):
            params.knob_diameter_mm = 50

    def test_with_overrides(self):
        params = KnobParams().with_overrides(knob_diameter_mm=40, ridge_count=None, shaft_type="detented")
        assert params.knob_diameter_mm == 40
        assert params.ridge_count == 50
        assert params.shaft_type is ShaftType.DETENTED

    def test_extra_keys_ignored(self):
        params = KnobParams.model_validate({"knob_diameter_mm": 30, "color": "red"})
        assert params.knob_diameter_mm == 30


class TestResolutionParams:
    """Tests for ResolutionParams."""

    def test_defaults(self):
        res = ResolutionParams()
        assert res.radial_segments == 32
        assert res.sphere_segments == 32
        assert res.epsilon == 1e-5

    def test_with_overrides(self):
        res = ResolutionParams().with_overrides(radial_segments=64, epsilon=None)
        assert res.radial_segments == 64
        assert res.epsilon == 1e-5


class TestDesignFromDict:
    """Tests for design_from_dict()."""

    def test_full_document(self):
        design = design_from_dict({
            "schema_version": "1.0",
            "knob": {"knob_diameter_mm": 25, "shaft_type": "d_shape"},
            "resolution": {"radial_segments": 48},
        })
        assert design.knob.knob_diameter_mm == 25
        assert design.knob.shaft_type is ShaftType.D_SHAPE
        assert design.resolution.radial_segments == 48

    def test_design_wrapper(self):
        design = design_from_dict({"design": {"knob": {"ridge_count": 20}}})
        assert design.knob.ridge_count == 20

    def test_bare_parameters(self):
        design = design_from_dict({"knobDia": 30, "shaftType": 2, "resolution": {"sphere_segments": 24}})
        assert design.knob.knob_diameter_mm == 30
        assert design.knob.shaft_type is ShaftType.DETENTED
        assert design.resolution.sphere_segments == 24

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            design_from_dict([1, 2, 3])

    def test_wrong_field_type(self):
        with pytest.raises(ValidationError):
            design_from_dict({"knob": {"knob_diameter_mm": "wide"}})


class TestJsonFiles:
    """Tests for loading and saving JSON files."""

    def test_save_and_load(self, tmp_path):
        design = KnobDesign(
            knob=KnobParams(knob_diameter_mm=42, shaft_type="d_shape", ridge_count=64),
            resolution=ResolutionParams(radial_segments=48),
        )
        path = tmp_path / "knob.json"
        save_knob_json(design, path)
        assert load_knob_json(path).model_dump() == design.model_dump()

    def test_saved_format(self, tmp_path):
        path = tmp_path / "knob.json"
        save_knob_json(KnobParams(shaft_type=2), path)
        data = json.loads(path.read_text())
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["knob"]["shaft_type"] == "detented"
        assert data["resolution"]["radial_segments"] == 32

    def test_design_to_dict_uses_enum_values(self):
        data = design_to_dict(KnobDesign())
        assert data["knob"]["shaft_type"] == "round"
        json.dumps(data)

    def test_load_browser_export(self, tmp_path):
        path = tmp_path / "browser.json"
        path.write_text(json.dumps({"knobDia": 28, "knobHeight": 10, "shaftType": 0}))
        design = load_knob_json(path)
        assert design.knob.knob_diameter_mm == 28
        assert design.knob.shaft_type is ShaftType.ROUND

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_knob_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not valid json {")
        with pytest.raises(ValueError):
            load_knob_json(path)
