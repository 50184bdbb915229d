"""
JSON input/output for knob parameters.

Accepts the schema v1.0 document (``knob`` and ``resolution`` sections) as well
as a bare parameter object, including parameter sets saved by the
browser knob generator with its camelCase keys.

Uses Pydantic for validation and enum coercion. Range checks that depend on
more than one value (shaft vs knob diameter, ridge count while ridged) live in
:mod:`knobgen.validation` so they can be reported with severities.
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..enums import ShaftType

SCHEMA_VERSION = "1.0"


class KnobParams(BaseModel):
    """Knob dimensions and feature switches."""
    model_config = ConfigDict(extra='ignore', frozen=True)

    knob_diameter_mm: float = Field(
        35.0, validation_alias=AliasChoices('knob_diameter_mm', 'knobDia')
    )
    knob_height_mm: float = Field(
        14.0, validation_alias=AliasChoices('knob_height_mm', 'knobHeight')
    )
    shaft_type: ShaftType = Field(
        ShaftType.ROUND, validation_alias=AliasChoices('shaft_type', 'shaftType')
    )
    shaft_diameter_mm: float = Field(
        6.0, validation_alias=AliasChoices('shaft_diameter_mm', 'shaftDia')
    )  # 0 = no shaft hole
    outer_ridged: bool = Field(
        True, validation_alias=AliasChoices('outer_ridged', 'outerRidged')
    )
    ridge_count: int = Field(
        50, validation_alias=AliasChoices('ridge_count', 'noOfOuterRidges')
    )
    top_indent: bool = Field(
        True, validation_alias=AliasChoices('top_indent', 'makeTopIndent')
    )

    @field_validator('shaft_type', mode='before')
    @classmethod
    def coerce_shaft_type(cls, v):
        return ShaftType.coerce(v)

    @property
    def knob_radius_mm(self) -> float:
        return self.knob_diameter_mm / 2

    @property
    def has_shaft(self) -> bool:
        return self.shaft_diameter_mm > 0

    def with_overrides(self, **overrides) -> "KnobParams":
        """Copy with some fields replaced; the result is validated again.

        Fields that were never set stay unset, so validation can still tell
        defaults from explicit choices.
        """
        data = self.model_dump(exclude_unset=True)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return KnobParams.model_validate(data)


class ResolutionParams(BaseModel):
    """Tessellation and boolean tolerance settings."""
    model_config = ConfigDict(extra='ignore', frozen=True)

    radial_segments: int = 32  # Body, shaft and ridge seat
    sphere_segments: int = 32  # Indent longitude samples; latitude is derived
    epsilon: float = 1e-5  # Coplanarity tolerance for boolean operations

    def with_overrides(self, **overrides) -> "ResolutionParams":
        data = self.model_dump(exclude_unset=True)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ResolutionParams.model_validate(data)


class KnobDesign(BaseModel):
    """Complete knob design document."""
    model_config = ConfigDict(extra='ignore', frozen=True)

    schema_version: str = SCHEMA_VERSION
    knob: KnobParams = Field(default_factory=KnobParams)
    resolution: ResolutionParams = Field(default_factory=ResolutionParams)


def design_from_dict(data: Dict[str, Any]) -> KnobDesign:
    """
    Build a KnobDesign from a parsed JSON document.

    Args:
        data: Either a full design (``knob`` / ``resolution`` sections), the
              same wrapped in ``design``, or a bare parameter object

    Raises:
        ValueError: If data is not a JSON object
        ValidationError: If a field has the wrong type
    """
    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid design JSON - expected an object, got {type(data).__name__}"
        )

    # Check for 'design' wrapper
    if 'design' in data and isinstance(data['design'], dict):
        data = data['design']

    if 'knob' not in data:
        bare = dict(data)
        resolution = bare.pop('resolution', {})
        version = bare.pop('schema_version', SCHEMA_VERSION)
        data = {'schema_version': version, 'knob': bare, 'resolution': resolution}

    return KnobDesign.model_validate(data)


def load_knob_json(filepath: Union[str, Path]) -> KnobDesign:
    """
    Load a knob design from JSON.

    Args:
        filepath: Path to the JSON file

    Returns:
        KnobDesign with all parameters (defaults filled in)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not a JSON object
        ValidationError: If a field has the wrong type
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"Design file not found: {filepath}")

    with open(filepath, 'r') as f:
        data = json.load(f)

    return design_from_dict(data)


def design_to_dict(design: KnobDesign) -> Dict[str, Any]:
    """JSON-ready dict with enums as their values."""
    data = design.model_dump(mode='json')
    data['schema_version'] = SCHEMA_VERSION
    return data


def save_knob_json(design: Union[KnobDesign, KnobParams], filepath: Union[str, Path]) -> None:
    """
    Save a knob design to JSON using schema v1.0 format.

    Args:
        design: Complete design, or bare KnobParams (default resolution)
        filepath: Path to save JSON file
    """
    if isinstance(design, KnobParams):
        design = KnobDesign(knob=design)

    filepath = Path(filepath)
    with open(filepath, 'w') as f:
        json.dump(design_to_dict(design), f, indent=2)
