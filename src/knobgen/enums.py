"""Type-safe enums for knob generation."""

from enum import Enum


class ShaftType(Enum):
    """Shaft bore profile"""
    ROUND = "round"  # Plain cylindrical bore
    D_SHAPE = "d_shape"  # Single flat (D-shaft potentiometers)
    DETENTED = "detented"  # Splined/knurled bore with radial notches

    @classmethod
    def coerce(cls, value):
        """Convert strings, enum members and the legacy integer codes (0/1/2).

        Raises:
            ValueError: If the value does not name a shaft type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid shaft type {value!r}")
        if isinstance(value, int):
            try:
                return _LEGACY_CODES[value]
            except KeyError:
                raise ValueError(f"Invalid shaft type code {value}") from None
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            if key in _ALIASES:
                return _ALIASES[key]
            return cls(key)
        raise ValueError(f"Invalid shaft type {value!r}")


# Codes used by the browser UI's <select> element
_LEGACY_CODES = {
    0: ShaftType.ROUND,
    1: ShaftType.D_SHAPE,
    2: ShaftType.DETENTED,
}

_ALIASES = {
    "dshape": ShaftType.D_SHAPE,
    "d": ShaftType.D_SHAPE,
    "0": ShaftType.ROUND,
    "1": ShaftType.D_SHAPE,
    "2": ShaftType.DETENTED,
}
