"""Data models for the operations planning pipeline."""

from .menu import (
    DayOfWeek,
    MenuStatus,
    OverrideScope,
    OverrideMode,
    MealPeriod,
    MenuItem,
    CycleMenu,
    SingleUseMenuItem,
    SingleUseMenu,
    ResolvedMenuItem,
    ResolvedMenu,
)
from .recipe import StorageType, MeasureBasis, Ingredient, RecipeIngredient, Recipe
from .forecast import (
    ForecastType,
    CensusObservation,
    AdjustmentFactor,
    CensusForecast,
    ItemForecast,
    ForecastRecord,
)
from .inventory import (
    InventoryLot,
    LotIssue,
    IssueResult,
    ParLevelCalculation,
    EOQResult,
    AlertAction,
    ExpirationAlert,
    StockStatus,
    StockStatusRecord,
    CountVariance,
)
from .production import (
    TaskStatus,
    Equipment,
    Employee,
    ForecastedMenuItem,
    ProductionTask,
    EquipmentConflict,
    IngredientDeficit,
    ProductionSchedule,
)
from .procurement import OrderReason, PurchaseOrderLine, PurchaseOrderDraft

__all__ = [
    # Menus
    "DayOfWeek",
    "MenuStatus",
    "OverrideScope",
    "OverrideMode",
    "MealPeriod",
    "MenuItem",
    "CycleMenu",
    "SingleUseMenuItem",
    "SingleUseMenu",
    "ResolvedMenuItem",
    "ResolvedMenu",
    # Recipes
    "StorageType",
    "MeasureBasis",
    "Ingredient",
    "RecipeIngredient",
    "Recipe",
    # Forecasts
    "ForecastType",
    "CensusObservation",
    "AdjustmentFactor",
    "CensusForecast",
    "ItemForecast",
    "ForecastRecord",
    # Inventory
    "InventoryLot",
    "LotIssue",
    "IssueResult",
    "ParLevelCalculation",
    "EOQResult",
    "AlertAction",
    "ExpirationAlert",
    "StockStatus",
    "StockStatusRecord",
    "CountVariance",
    # Production
    "TaskStatus",
    "Equipment",
    "Employee",
    "ForecastedMenuItem",
    "ProductionTask",
    "EquipmentConflict",
    "IngredientDeficit",
    "ProductionSchedule",
    # Procurement
    "OrderReason",
    "PurchaseOrderLine",
    "PurchaseOrderDraft",
]
