"""Repository interfaces for reference data and pipeline results.

The pipeline never reaches for global lookups; every stage receives the
repositories it reads from. The abstract classes define the get/put
contract expected of the host application's persistence layer, and the
``InMemory*`` classes implement it for tests and embedded use.

Example Usage:
    ```python
    recipes = InMemoryRecipeRepository([chicken_stew, rice_pilaf])
    scheduler = ProductionScheduler(recipe_repository=recipes, equipment=ovens)
    ```
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import threading

from ..exceptions import RecordNotFound
from ..models.forecast import CensusObservation, ForecastRecord
from ..models.inventory import InventoryLot
from ..models.menu import CycleMenu, MenuStatus, ResolvedMenu, SingleUseMenu
from ..models.production import ProductionSchedule
from ..models.recipe import Ingredient, Recipe

logger = logging.getLogger(__name__)


# ============================================================================
# Interfaces
# ============================================================================

class MenuRepository(ABC):
    """Cycle menus, single-use overrides and resolved-menu output."""

    @abstractmethod
    def get_active_cycle_menu(self, site_id: str, as_of: Date) -> Optional[CycleMenu]:
        """Active cycle menu for a site (None if the site has none)."""

    @abstractmethod
    def list_single_use_menus(self, service_date: Date, site_id: str) -> List[SingleUseMenu]:
        """Overrides that may apply to a date and site."""

    @abstractmethod
    def save_resolved_menu(self, menu: ResolvedMenu) -> None:
        """Persist a resolved menu."""


class RecipeRepository(ABC):
    """Recipe definitions."""

    @abstractmethod
    def get(self, recipe_id: str) -> Recipe:
        """Get a recipe.

        Raises:
            RecordNotFound: If the recipe does not exist
        """


class IngredientRepository(ABC):
    """Ingredient master records."""

    @abstractmethod
    def get(self, ingredient_id: str) -> Ingredient:
        """Get an ingredient.

        Raises:
            RecordNotFound: If the ingredient does not exist
        """

    @abstractmethod
    def list_all(self) -> List[Ingredient]:
        """All ingredients."""


class InventoryLotRepository(ABC):
    """Lot-level perpetual inventory."""

    @abstractmethod
    def list_lots(self, ingredient_id: str, site_id: str) -> List[InventoryLot]:
        """Lots of one ingredient at one site."""

    @abstractmethod
    def list_site_lots(self, site_id: str) -> List[InventoryLot]:
        """All lots at a site."""

    @abstractmethod
    def save_lot(self, lot: InventoryLot) -> None:
        """Insert or replace a lot."""

    @abstractmethod
    def delete_lot(self, ingredient_id: str, site_id: str, lot_id: str) -> None:
        """Remove a lot."""


class HistoryRepository(ABC):
    """Historical census, selection and usage series."""

    @abstractmethod
    def census_history(self, site_id: str, meal_period_id: str, before: Date) -> List[CensusObservation]:
        """Census observations strictly before a date, oldest first."""

    @abstractmethod
    def selection_history(self, site_id: str, recipe_id: str) -> List[float]:
        """Historical selection fractions (portions / census) for a recipe."""

    @abstractmethod
    def last_served(self, site_id: str, recipe_id: str, before: Date) -> Optional[Date]:
        """Most recent service date of a recipe before a date."""

    @abstractmethod
    def usage_history(self, ingredient_id: str, site_id: str) -> List[float]:
        """Daily usage quantities for an ingredient, oldest first."""


class ForecastRepository(ABC):
    """Forecast records (append-only)."""

    @abstractmethod
    def save(self, record: ForecastRecord) -> None:
        """Append a record."""

    @abstractmethod
    def list_for(self, forecast_date: Date, site_id: str) -> List[ForecastRecord]:
        """Records for a date and site."""


class ProductionRepository(ABC):
    """Production schedules with assigned resources."""

    @abstractmethod
    def save_schedule(self, schedule: ProductionSchedule) -> None:
        """Persist a schedule (replacing any for the same date/site/meal period)."""

    @abstractmethod
    def get_schedule(
        self, production_date: Date, site_id: str, meal_period_id: str
    ) -> Optional[ProductionSchedule]:
        """Saved schedule, if any."""


# ============================================================================
# In-memory implementations
# ============================================================================

class InMemoryMenuRepository(MenuRepository):
    """Menus held in lists; the first Active menu for a site wins."""

    def __init__(
        self,
        cycle_menus: Iterable[CycleMenu] = (),
        single_use_menus: Iterable[SingleUseMenu] = (),
    ):
        self.cycle_menus = list(cycle_menus)
        self.single_use_menus = list(single_use_menus)
        self.resolved: Dict[Tuple[Date, str], ResolvedMenu] = {}

    def get_active_cycle_menu(self, site_id: str, as_of: Date) -> Optional[CycleMenu]:
        candidates = [
            menu for menu in self.cycle_menus
            if menu.status == MenuStatus.ACTIVE and menu.site_id in (None, site_id)
        ]
        # Site-specific menus take precedence over shared ones, newest version first
        candidates.sort(key=lambda m: (m.site_id is None, -m.version))
        return candidates[0] if candidates else None

    def list_single_use_menus(self, service_date: Date, site_id: str) -> List[SingleUseMenu]:
        return [m for m in self.single_use_menus if m.applies_to(service_date, site_id)]

    def save_resolved_menu(self, menu: ResolvedMenu) -> None:
        self.resolved[(menu.service_date, menu.site_id)] = menu


class InMemoryRecipeRepository(RecipeRepository):
    """Recipes keyed by ID."""

    def __init__(self, recipes: Iterable[Recipe] = ()):
        self.recipes: Dict[str, Recipe] = {r.recipe_id: r for r in recipes}

    def add(self, recipe: Recipe) -> None:
        """Add or replace a recipe."""
        self.recipes[recipe.recipe_id] = recipe

    def get(self, recipe_id: str) -> Recipe:
        try:
            return self.recipes[recipe_id]
        except KeyError:
            raise RecordNotFound(f"Recipe {recipe_id} not found", {"recipe_id": recipe_id}) from None


class InMemoryIngredientRepository(IngredientRepository):
    """Ingredients keyed by ID."""

    def __init__(self, ingredients: Iterable[Ingredient] = ()):
        self.ingredients: Dict[str, Ingredient] = {i.ingredient_id: i for i in ingredients}

    def add(self, ingredient: Ingredient) -> None:
        """Add or replace an ingredient."""
        self.ingredients[ingredient.ingredient_id] = ingredient

    def get(self, ingredient_id: str) -> Ingredient:
        try:
            return self.ingredients[ingredient_id]
        except KeyError:
            raise RecordNotFound(
                f"Ingredient {ingredient_id} not found", {"ingredient_id": ingredient_id}
            ) from None

    def list_all(self) -> List[Ingredient]:
        return sorted(self.ingredients.values(), key=lambda i: i.ingredient_id)


class InMemoryInventoryLotRepository(InventoryLotRepository):
    """Lots keyed by (ingredient_id, site_id) then lot_id.

    Individual operations are guarded by a lock so the store itself stays
    consistent; read-modify-write sequences are serialized by the ledger.
    """

    def __init__(self, lots: Iterable[InventoryLot] = ()):
        self._lots: Dict[Tuple[str, str], Dict[str, InventoryLot]] = defaultdict(dict)
        self._lock = threading.Lock()
        for lot in lots:
            self.save_lot(lot)

    def list_lots(self, ingredient_id: str, site_id: str) -> List[InventoryLot]:
        with self._lock:
            return list(self._lots.get((ingredient_id, site_id), {}).values())

    def list_site_lots(self, site_id: str) -> List[InventoryLot]:
        with self._lock:
            return [
                lot
                for (_, lot_site), lots in self._lots.items() if lot_site == site_id
                for lot in lots.values()
            ]

    def save_lot(self, lot: InventoryLot) -> None:
        with self._lock:
            self._lots[(lot.ingredient_id, lot.site_id)][lot.lot_id] = lot

    def delete_lot(self, ingredient_id: str, site_id: str, lot_id: str) -> None:
        with self._lock:
            self._lots.get((ingredient_id, site_id), {}).pop(lot_id, None)


class InMemoryHistoryRepository(HistoryRepository):
    """History series supplied up front."""

    def __init__(
        self,
        census: Optional[Dict[Tuple[str, str], List[CensusObservation]]] = None,
        selections: Optional[Dict[Tuple[str, str], List[float]]] = None,
        served: Optional[Dict[Tuple[str, str], List[Date]]] = None,
        usage: Optional[Dict[Tuple[str, str], List[float]]] = None,
    ):
        self.census = census or {}
        self.selections = selections or {}
        self.served = served or {}
        self.usage = usage or {}

    def census_history(self, site_id: str, meal_period_id: str, before: Date) -> List[CensusObservation]:
        observations = self.census.get((site_id, meal_period_id), [])
        return sorted(
            (obs for obs in observations if obs.observation_date < before),
            key=lambda obs: obs.observation_date,
        )

    def selection_history(self, site_id: str, recipe_id: str) -> List[float]:
        return list(self.selections.get((site_id, recipe_id), []))

    def last_served(self, site_id: str, recipe_id: str, before: Date) -> Optional[Date]:
        dates = [d for d in self.served.get((site_id, recipe_id), []) if d < before]
        return max(dates) if dates else None

    def usage_history(self, ingredient_id: str, site_id: str) -> List[float]:
        return list(self.usage.get((ingredient_id, site_id), []))


class InMemoryForecastRepository(ForecastRepository):
    """Append-only forecast store."""

    def __init__(self):
        self.records: List[ForecastRecord] = []
        self._lock = threading.Lock()

    def save(self, record: ForecastRecord) -> None:
        with self._lock:
            self.records.append(record)

    def list_for(self, forecast_date: Date, site_id: str) -> List[ForecastRecord]:
        with self._lock:
            return [
                r for r in self.records
                if r.forecast_date == forecast_date and r.site_id == site_id
            ]


class InMemoryProductionRepository(ProductionRepository):
    """Schedules keyed by (date, site, meal period)."""

    def __init__(self):
        self.schedules: Dict[Tuple[Date, str, str], ProductionSchedule] = {}
        self._lock = threading.Lock()

    def save_schedule(self, schedule: ProductionSchedule) -> None:
        key = (schedule.production_date, schedule.site_id, schedule.meal_period_id)
        with self._lock:
            if key in self.schedules:
                logger.debug(f"Replacing saved schedule for {key}")
            self.schedules[key] = schedule

    def get_schedule(
        self, production_date: Date, site_id: str, meal_period_id: str
    ) -> Optional[ProductionSchedule]:
        with self._lock:
            return self.schedules.get((production_date, site_id, meal_period_id))
