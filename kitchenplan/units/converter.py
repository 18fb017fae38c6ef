"""
Unit conversion over a NetworkX graph of units.

Every unit is a node; an edge ``a -> b`` carries the factor such that
``quantity_in_b = quantity_in_a * factor``. Each edge is stored in both
directions (the reverse edge carries ``1 / factor``), so a conversion is
the product of factors along the shortest path between two units. Volume
units hang off ``ml``, weight units off ``g`` and count units off ``each``;
there is no edge between those families unless one is added explicitly
(e.g., a density for a specific ingredient).
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from ..exceptions import UnconvertibleUnits

logger = logging.getLogger(__name__)


#: Plural and long-form spellings mapped to canonical unit names
UNIT_ALIASES = {
    "cups": "cup", "c": "cup",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsps": "tbsp", "tbs": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsps": "tsp",
    "liters": "liter", "litre": "liter", "litres": "liter", "l": "liter",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml",
    "gallons": "gallon", "gal": "gallon",
    "quarts": "quart", "qt": "quart",
    "pints": "pint", "pt": "pint",
    "fluid ounce": "fl oz", "fluid ounces": "fl oz", "floz": "fl oz",
    "pounds": "lb", "pound": "lb", "lbs": "lb",
    "ounces": "oz", "ounce": "oz", "ozs": "oz",
    "kilogram": "kg", "kilograms": "kg", "kgs": "kg",
    "gram": "g", "grams": "g",
    "milligram": "mg", "milligrams": "mg",
    "ea": "each", "pieces": "each", "piece": "each", "pcs": "each", "unit": "each", "units": "each",
    "dozens": "dozen", "dz": "dozen",
    "portions": "portion", "servings": "portion", "serving": "portion",
}

#: Volume units expressed in millilitres
VOLUME_TO_ML = {
    "ml": 1.0,
    "liter": 1000.0,
    "tsp": 4.92892,
    "tbsp": 14.7868,
    "fl oz": 29.5735,
    "cup": 236.588,
    "pint": 473.176,
    "quart": 946.353,
    "gallon": 3785.41,
}

#: Weight units expressed in grams
WEIGHT_TO_G = {
    "mg": 0.001,
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.3495,
    "lb": 453.592,
}

#: Count units expressed in single items
COUNT_TO_EACH = {
    "each": 1.0,
    "dozen": 12.0,
}

#: Exact kitchen identities recorded as direct edges so common conversions
#: do not accumulate rounding error through the base unit
DIRECT_CONVERSIONS = [
    ("tbsp", "tsp", 3.0),
    ("cup", "tbsp", 16.0),
    ("pint", "cup", 2.0),
    ("quart", "pint", 2.0),
    ("gallon", "quart", 4.0),
    ("cup", "fl oz", 8.0),
    ("lb", "oz", 16.0),
]


def normalize_unit(unit: str) -> str:
    """Canonical unit name (lower-case, trimmed, aliases resolved)."""
    unit = unit.lower().strip()
    return UNIT_ALIASES.get(unit, unit)


class UnitConverter:
    """
    Converts quantities between units using a conversion graph.

    Example:
        converter = UnitConverter()
        converter.convert(2, "cups", "tbsp")    # 32.0
        converter.add_conversion("cup", "g", 120, note="all-purpose flour")
    """

    def __init__(self, extra_conversions: Optional[Iterable[Tuple[str, str, float]]] = None):
        """
        Initialize converter with the standard kitchen units.

        Args:
            extra_conversions: Additional (from_unit, to_unit, factor) edges
        """
        self.graph = nx.DiGraph()
        self._build_standard_graph()
        for from_unit, to_unit, factor in extra_conversions or []:
            self.add_conversion(from_unit, to_unit, factor)

    def _build_standard_graph(self) -> None:
        for base, table in (("ml", VOLUME_TO_ML), ("g", WEIGHT_TO_G), ("each", COUNT_TO_EACH)):
            for unit, factor in table.items():
                self.graph.add_node(unit, family=base)
                if unit != base:
                    self.add_conversion(unit, base, factor)

        for from_unit, to_unit, factor in DIRECT_CONVERSIONS:
            self.add_conversion(from_unit, to_unit, factor)

        # Portions only convert to themselves unless a recipe defines a size
        self.graph.add_node("portion", family="portion")

    def add_conversion(self, from_unit: str, to_unit: str, factor: float, note: str = "") -> None:
        """
        Add a conversion edge (and its reverse).

        Args:
            from_unit: Source unit
            to_unit: Target unit
            factor: Multiplier so that quantity_to = quantity_from * factor
            note: Optional description (e.g., the ingredient a density applies to)

        Raises:
            UnconvertibleUnits: If factor is not positive
        """
        if factor <= 0:
            raise UnconvertibleUnits(
                "Conversion factor must be positive",
                {"from_unit": from_unit, "to_unit": to_unit, "factor": factor},
            )
        source = normalize_unit(from_unit)
        target = normalize_unit(to_unit)
        self.graph.add_edge(source, target, factor=factor, note=note)
        self.graph.add_edge(target, source, factor=1.0 / factor, note=note)

    def knows(self, unit: str) -> bool:
        """True if the unit is a node of the graph."""
        return normalize_unit(unit) in self.graph

    def conversion_path(self, from_unit: str, to_unit: str) -> List[str]:
        """
        Shortest chain of units between two units.

        Raises:
            UnconvertibleUnits: If either unit is unknown or no path exists
        """
        source = normalize_unit(from_unit)
        target = normalize_unit(to_unit)
        try:
            return nx.shortest_path(self.graph, source, target)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            raise UnconvertibleUnits(
                f"Cannot convert {from_unit} to {to_unit}",
                {
                    "from_unit": source,
                    "to_unit": target,
                    "known_from": source in self.graph,
                    "known_to": target in self.graph,
                },
            ) from None

    def factor(self, from_unit: str, to_unit: str) -> float:
        """Multiplier converting a quantity in ``from_unit`` to ``to_unit``."""
        path = self.conversion_path(from_unit, to_unit)
        result = 1.0
        for source, target in zip(path, path[1:]):
            result *= self.graph.edges[source, target]["factor"]
        return result

    def convert(self, quantity: float, from_unit: str, to_unit: str) -> float:
        """
        Convert a quantity between units.

        Args:
            quantity: Amount in ``from_unit``
            from_unit: Source unit (aliases accepted)
            to_unit: Target unit (aliases accepted)

        Returns:
            Amount in ``to_unit``

        Raises:
            UnconvertibleUnits: If there is no conversion path
        """
        if normalize_unit(from_unit) == normalize_unit(to_unit):
            return float(quantity)
        converted = quantity * self.factor(from_unit, to_unit)
        logger.debug(f"Converted {quantity} {from_unit} -> {converted:.4f} {to_unit}")
        return converted

    def units_by_family(self) -> Dict[str, List[str]]:
        """Known units grouped by base unit family."""
        families: Dict[str, List[str]] = {}
        for unit, data in self.graph.nodes(data=True):
            families.setdefault(data.get("family", "custom"), []).append(unit)
        return {family: sorted(units) for family, units in families.items()}
