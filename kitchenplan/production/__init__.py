"""Production scheduling: timed tasks, resource allocation and critical path."""

from .scheduler import ProductionScheduler, IngredientRequirement
from .resources import EquipmentPool, StaffRoster, overlaps
from .critical_path import critical_path

__all__ = [
    'ProductionScheduler',
    'IngredientRequirement',
    'EquipmentPool',
    'StaffRoster',
    'overlaps',
    'critical_path',
]
