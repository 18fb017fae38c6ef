"""Inventory ledger, stock-control calculators and alerts."""

from .ledger import InventoryLedger, fifo_order
from .par_levels import ParLevelCalculator, eoq, z_score
from .alerts import (
    InventoryAlerts,
    check_expirations,
    classify_stock,
    inventory_alerts,
    stock_status,
)

__all__ = [
    'InventoryLedger',
    'fifo_order',
    'ParLevelCalculator',
    'eoq',
    'z_score',
    'InventoryAlerts',
    'check_expirations',
    'classify_stock',
    'inventory_alerts',
    'stock_status',
]
