"""Persistence interfaces and in-memory implementations."""

from .repositories import (
    MenuRepository,
    RecipeRepository,
    IngredientRepository,
    InventoryLotRepository,
    HistoryRepository,
    ForecastRepository,
    ProductionRepository,
    InMemoryMenuRepository,
    InMemoryRecipeRepository,
    InMemoryIngredientRepository,
    InMemoryInventoryLotRepository,
    InMemoryHistoryRepository,
    InMemoryForecastRepository,
    InMemoryProductionRepository,
)

__all__ = [
    'MenuRepository',
    'RecipeRepository',
    'IngredientRepository',
    'InventoryLotRepository',
    'HistoryRepository',
    'ForecastRepository',
    'ProductionRepository',
    'InMemoryMenuRepository',
    'InMemoryRecipeRepository',
    'InMemoryIngredientRepository',
    'InMemoryInventoryLotRepository',
    'InMemoryHistoryRepository',
    'InMemoryForecastRepository',
    'InMemoryProductionRepository',
]
