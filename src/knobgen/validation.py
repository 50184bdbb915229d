"""
Knob parameter validation rules.

Checks run before any geometry is built:
- Dimensions that cannot form a solid (errors)
- Proportions that build but print poorly (warnings)
- Settings that have no effect (info)

Accepts KnobParams, KnobDesign or a plain dict of parameter values.
"""

from dataclasses import dataclass, field
from enum import Enum
from math import pi
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from .core.features import INDENT_RADIUS_RATIO, RIDGE_WIDTH_MM
from .core.measure import WALL_WARNING_THRESHOLD_MM

# Import for type checking only (avoids circular imports at runtime)
if TYPE_CHECKING:
    from .io.loaders import KnobDesign, KnobParams

ParamsInput = Union[Dict[str, Any], "KnobParams", "KnobDesign"]


def _get(obj: ParamsInput, key: str, default: Optional[Any] = None) -> Any:
    """Read a parameter from a dict or model."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _was_set(obj: ParamsInput, key: str) -> bool:
    if isinstance(obj, dict):
        return key in obj
    return key in getattr(obj, 'model_fields_set', ())


class Severity(Enum):
    """Validation message severity"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    """A single validation finding"""
    severity: Severity
    code: str
    message: str
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}"


@dataclass
class ValidationResult:
    """Complete validation result"""
    valid: bool  # True if no errors
    messages: List[ValidationMessage] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    @property
    def infos(self) -> List[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.INFO]

    def codes(self) -> List[str]:
        return [m.code for m in self.messages]


def validate_params(params: ParamsInput) -> ValidationResult:
    """
    Validate knob parameters.

    Args:
        params: KnobParams, KnobDesign (its ``knob`` section is checked) or a
                dict with the same field names

    Returns:
        ValidationResult with all findings
    """
    if not isinstance(params, dict) and hasattr(params, 'knob'):
        params = params.knob

    messages: List[ValidationMessage] = []

    messages.extend(_validate_dimensions(params))
    messages.extend(_validate_shaft(params))
    messages.extend(_validate_ridges(params))
    messages.extend(_validate_indent(params))

    has_errors = any(m.severity == Severity.ERROR for m in messages)

    return ValidationResult(
        valid=not has_errors,
        messages=messages
    )


def _validate_dimensions(params: ParamsInput) -> List[ValidationMessage]:
    """Knob diameter and height must be positive"""
    messages = []
    diameter = _get(params, 'knob_diameter_mm', 0)
    height = _get(params, 'knob_height_mm', 0)

    if diameter <= 0:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="KNOB_DIAMETER_INVALID",
            message=f"Knob diameter must be positive, got {diameter}mm",
            suggestion="Typical knobs are 10-100mm across"
        ))

    if height <= 0:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="KNOB_HEIGHT_INVALID",
            message=f"Knob height must be positive, got {height}mm",
            suggestion="Typical knobs are 5-50mm tall"
        ))

    return messages


def _validate_shaft(params: ParamsInput) -> List[ValidationMessage]:
    """Shaft hole must fit inside the knob with a printable wall"""
    messages = []
    diameter = _get(params, 'knob_diameter_mm', 0)
    shaft = _get(params, 'shaft_diameter_mm', 0)

    if shaft < 0:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="SHAFT_DIAMETER_NEGATIVE",
            message=f"Shaft diameter cannot be negative, got {shaft}mm",
            suggestion="Use 0 for a knob without a shaft hole"
        ))
        return messages

    if shaft == 0:
        messages.append(ValidationMessage(
            severity=Severity.INFO,
            code="NO_SHAFT",
            message="Shaft diameter is 0 - knob will have no shaft hole",
            suggestion=None
        ))
        return messages

    if diameter > 0 and shaft >= diameter:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="SHAFT_TOO_LARGE",
            message=f"Shaft diameter ({shaft}mm) must be smaller than knob diameter ({diameter}mm)",
            suggestion="Reduce the shaft diameter or increase the knob diameter"
        ))
        return messages

    wall = (diameter - shaft) / 2
    if diameter > 0 and wall < WALL_WARNING_THRESHOLD_MM:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="THIN_WALL",
            message=f"Wall between shaft and outside is only {wall:.2f}mm "
                    f"(recommended >= {WALL_WARNING_THRESHOLD_MM}mm)",
            suggestion="Increase the knob diameter for a sturdier print"
        ))

    return messages


def _validate_ridges(params: ParamsInput) -> List[ValidationMessage]:
    """Ridge count must be usable when ridges are enabled"""
    messages = []
    ridged = _get(params, 'outer_ridged', False)
    count = _get(params, 'ridge_count', 0)
    diameter = _get(params, 'knob_diameter_mm', 0)

    if not ridged:
        if _was_set(params, 'ridge_count'):
            messages.append(ValidationMessage(
                severity=Severity.INFO,
                code="RIDGE_COUNT_IGNORED",
                message=f"Ridge count {count} has no effect because outer ridges are off",
                suggestion=None
            ))
        return messages

    if count < 1:
        messages.append(ValidationMessage(
            severity=Severity.ERROR,
            code="RIDGE_COUNT_INVALID",
            message=f"Ridge count must be at least 1 when ridged, got {count}",
            suggestion="Use 10-100 ridges, or turn outer ridges off"
        ))
        return messages

    circumference = pi * diameter
    if diameter > 0 and count * RIDGE_WIDTH_MM >= circumference:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="RIDGES_OVERLAP",
            message=f"{count} ridges of {RIDGE_WIDTH_MM}mm do not fit around a "
                    f"{circumference:.1f}mm circumference; adjacent ridges will merge",
            suggestion=f"Use fewer than {int(circumference / RIDGE_WIDTH_MM)} ridges"
        ))

    return messages


def _validate_indent(params: ParamsInput) -> List[ValidationMessage]:
    """Top indent should not cut through the bottom face"""
    messages = []
    if not _get(params, 'top_indent', False):
        return messages

    diameter = _get(params, 'knob_diameter_mm', 0)
    height = _get(params, 'knob_height_mm', 0)
    radius = diameter * INDENT_RADIUS_RATIO

    if diameter > 0 and height > 0 and radius >= height:
        messages.append(ValidationMessage(
            severity=Severity.WARNING,
            code="INDENT_BREAKS_THROUGH",
            message=f"Indent depth ({radius:.1f}mm) reaches the bottom of a {height}mm knob",
            suggestion="Increase knob height or disable the top indent"
        ))

    return messages
