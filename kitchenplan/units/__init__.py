"""Unit conversion."""

from .converter import UnitConverter, normalize_unit, UNIT_ALIASES

__all__ = ['UnitConverter', 'normalize_unit', 'UNIT_ALIASES']
