"""Tests for the unit conversion graph."""

import pytest

from kitchenplan.exceptions import UnconvertibleUnits
from kitchenplan.units import UnitConverter, normalize_unit


@pytest.fixture
def converter():
    return UnitConverter()


class TestNormalizeUnit:
    """Alias and case handling."""

    def test_plural_and_case(self):
        assert normalize_unit(" Cups ") == "cup"
        assert normalize_unit("Tablespoons") == "tbsp"
        assert normalize_unit("lbs") == "lb"

    def test_unknown_unit_passes_through(self):
        assert normalize_unit("bunch") == "bunch"


class TestConvert:
    """Conversions within and across unit families."""

    def test_cups_to_tablespoons(self, converter):
        assert converter.convert(2, "cups", "tbsp") == pytest.approx(32.0)

    def test_pounds_to_ounces(self, converter):
        assert converter.convert(1.5, "lb", "oz") == pytest.approx(24.0)

    def test_gallon_to_cups(self, converter):
        assert converter.convert(1, "gallon", "cup") == pytest.approx(16.0)

    def test_metric_weight(self, converter):
        assert converter.convert(2, "kg", "g") == pytest.approx(2000.0)

    def test_dozen_to_each(self, converter):
        assert converter.convert(2, "dozen", "each") == pytest.approx(24.0)

    def test_same_unit_returns_quantity(self, converter):
        assert converter.convert(3, "Cup", "cups") == 3.0

    def test_volume_to_weight_raises_without_density(self, converter):
        with pytest.raises(UnconvertibleUnits):
            converter.convert(1, "cup", "lb")

    def test_unknown_unit_raises(self, converter):
        with pytest.raises(UnconvertibleUnits) as exc_info:
            converter.convert(1, "bunch", "each")
        assert exc_info.value.context["known_from"] is False

    def test_round_trip_factor(self, converter):
        forward = converter.factor("quart", "ml")
        backward = converter.factor("ml", "quart")
        assert forward * backward == pytest.approx(1.0)


class TestCustomConversions:
    """Ingredient-specific edges."""

    def test_density_links_volume_and_weight(self, converter):
        converter.add_conversion("cup", "g", 120, note="all-purpose flour")
        assert converter.convert(1, "cup", "lb") == pytest.approx(120 / 453.592)

    def test_extra_conversions_in_constructor(self):
        converter = UnitConverter(extra_conversions=[("case", "each", 24)])
        assert converter.knows("Case")
        assert not converter.knows("pallet")
        assert converter.convert(2, "case", "dozen") == pytest.approx(4.0)

    def test_non_positive_factor_rejected(self, converter):
        with pytest.raises(UnconvertibleUnits):
            converter.add_conversion("case", "each", 0)

    def test_units_by_family(self, converter):
        families = converter.units_by_family()
        assert "cup" in families["ml"]
        assert "lb" in families["g"]
        assert families["portion"] == ["portion"]
