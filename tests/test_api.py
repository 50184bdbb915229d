"""
Tests for the lazy top-level package API.
"""

import pytest

import knobgen


class TestLazyImports:
    """Names in __all__ resolve through the lazy loader."""

    @pytest.mark.parametrize("name", [n for n in knobgen.__all__ if n != "__version__"])
    def test_exported_name_resolves(self, name):
        assert getattr(knobgen, name) is not None

    def test_same_objects_as_submodules(self):
        from knobgen.core.knob import KnobGeometry
        from knobgen.enums import ShaftType
        assert knobgen.KnobGeometry is KnobGeometry
        assert knobgen.ShaftType is ShaftType

    def test_unknown_name(self):
        with pytest.raises(AttributeError):
            knobgen.WormGeometry

    def test_version(self):
        assert knobgen.__version__ == "1.0.0"
