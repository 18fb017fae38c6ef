"""Pytest configuration and shared fixtures."""

import pytest
from datetime import date, time, timedelta

from kitchenplan.models import (
    CensusObservation,
    CycleMenu,
    DayOfWeek,
    Employee,
    Equipment,
    Ingredient,
    InventoryLot,
    MealPeriod,
    MeasureBasis,
    MenuItem,
    Recipe,
    RecipeIngredient,
    StorageType,
)
from kitchenplan.persistence import (
    InMemoryHistoryRepository,
    InMemoryIngredientRepository,
    InMemoryInventoryLotRepository,
    InMemoryMenuRepository,
    InMemoryRecipeRepository,
)


CYCLE_START = date(2026, 1, 5)  # Monday


@pytest.fixture
def breakfast():
    """Breakfast service at 07:00."""
    return MealPeriod(meal_period_id="breakfast", name="Breakfast", service_start=time(7, 0))


@pytest.fixture
def lunch():
    """Lunch service at 11:30."""
    return MealPeriod(meal_period_id="lunch", name="Lunch", service_start=time(11, 30))


@pytest.fixture
def ingredients():
    """Ingredient master records."""
    return [
        Ingredient(
            ingredient_id="ING-CHICKEN",
            name="Chicken Thighs",
            common_unit="lb",
            cost_per_unit=3.5,
            yield_percent=0.8,
            storage_type=StorageType.REFRIGERATED,
            shelf_life_days=5,
            par_level=40.0,
            reorder_point=15.0,
            preferred_vendor_id="VEN-PROTEIN",
        ),
        Ingredient(
            ingredient_id="ING-OIL",
            name="Canola Oil",
            common_unit="cup",
            cost_per_unit=0.5,
        ),
        Ingredient(
            ingredient_id="ING-RICE",
            name="Long Grain Rice",
            common_unit="lb",
            cost_per_unit=1.2,
            par_level=50.0,
            reorder_point=20.0,
            preferred_vendor_id="VEN-DRY",
        ),
        Ingredient(
            ingredient_id="ING-SALT",
            name="Kosher Salt",
            common_unit="oz",
            cost_per_unit=0.1,
            is_seasoning=True,
        ),
    ]


@pytest.fixture
def ingredient_repository(ingredients):
    """In-memory ingredient repository."""
    return InMemoryIngredientRepository(ingredients)


@pytest.fixture
def stew():
    """Chicken stew: oven, yield 10."""
    return Recipe(
        recipe_id="RCP-STEW",
        name="Chicken Stew",
        category="entree",
        yield_quantity=10,
        prep_time_minutes=30,
        cook_time_minutes=60,
        equipment_required=["oven"],
        ingredients=[
            RecipeIngredient(
                ingredient_id="ING-CHICKEN", quantity=4, unit="lb", measure=MeasureBasis.AS_PURCHASED
            ),
            RecipeIngredient(ingredient_id="ING-SALT", quantity=1, unit="oz"),
            RecipeIngredient(ingredient_id="ING-OIL", quantity=0.5, unit="cup"),
        ],
    )


@pytest.fixture
def pilaf():
    """Rice pilaf: steamer, yield 10."""
    return Recipe(
        recipe_id="RCP-PILAF",
        name="Rice Pilaf",
        category="side",
        yield_quantity=10,
        prep_time_minutes=15,
        cook_time_minutes=30,
        equipment_required=["steamer"],
        ingredients=[
            RecipeIngredient(ingredient_id="ING-RICE", quantity=2, unit="lb"),
            RecipeIngredient(ingredient_id="ING-SALT", quantity=0.5, unit="oz"),
        ],
    )


@pytest.fixture
def salad():
    """Garden salad: no equipment, yield 8."""
    return Recipe(
        recipe_id="RCP-SALAD",
        name="Garden Salad",
        category="side",
        yield_quantity=8,
        prep_time_minutes=20,
        ingredients=[
            RecipeIngredient(ingredient_id="ING-OIL", quantity=4, unit="tbsp"),
        ],
    )


@pytest.fixture
def oats():
    """Oatmeal: steamer, yield 20, no tracked ingredients."""
    return Recipe(
        recipe_id="RCP-OATS",
        name="Oatmeal",
        category="hot cereal",
        yield_quantity=20,
        prep_time_minutes=5,
        cook_time_minutes=20,
        equipment_required=["steamer"],
    )


@pytest.fixture
def recipe_repository(stew, pilaf, salad, oats):
    """In-memory recipe repository."""
    return InMemoryRecipeRepository([stew, pilaf, salad, oats])


@pytest.fixture
def cycle_menu():
    """Two-week cycle starting Monday 2026-01-05."""
    monday = DayOfWeek.MONDAY
    return CycleMenu(
        cycle_menu_id="CM-WINTER",
        name="Winter Two-Week Cycle",
        cycle_start_date=CYCLE_START,
        cycle_length_weeks=2,
        items=[
            MenuItem(menu_item_id="W1-MON-B1", week_number=1, day_of_week=monday,
                     meal_period_id="breakfast", recipe_id="RCP-OATS", sequence_order=1,
                     category="hot cereal"),
            MenuItem(menu_item_id="W1-MON-L1", week_number=1, day_of_week=monday,
                     meal_period_id="lunch", recipe_id="RCP-STEW", sequence_order=1, category="entree"),
            MenuItem(menu_item_id="W1-MON-L2", week_number=1, day_of_week=monday,
                     meal_period_id="lunch", recipe_id="RCP-PILAF", sequence_order=2, category="side"),
            MenuItem(menu_item_id="W1-MON-L3", week_number=1, day_of_week=monday,
                     meal_period_id="lunch", recipe_id="RCP-SALAD", sequence_order=3, category="side"),
            MenuItem(menu_item_id="W2-MON-L1", week_number=2, day_of_week=monday,
                     meal_period_id="lunch", recipe_id="RCP-PILAF", sequence_order=1, category="side"),
        ],
    )


@pytest.fixture
def menu_repository(cycle_menu):
    """Menu repository holding the shared cycle menu."""
    return InMemoryMenuRepository([cycle_menu])


@pytest.fixture
def lots():
    """Stock at site-1, received 2026-01-02."""
    received = date(2026, 1, 2)
    return [
        InventoryLot(ingredient_id="ING-CHICKEN", site_id="site-1", lot_id="CH-1",
                     quantity_on_hand=30.0, unit="lb", unit_cost=3.5, received_date=received,
                     expiration_date=date(2026, 1, 25), storage_location="Walk-in Cooler"),
        InventoryLot(ingredient_id="ING-RICE", site_id="site-1", lot_id="RI-1",
                     quantity_on_hand=20.0, unit="lb", unit_cost=1.2, received_date=received),
        InventoryLot(ingredient_id="ING-SALT", site_id="site-1", lot_id="SA-1",
                     quantity_on_hand=32.0, unit="oz", unit_cost=0.1, received_date=received),
        InventoryLot(ingredient_id="ING-OIL", site_id="site-1", lot_id="OI-1",
                     quantity_on_hand=8.0, unit="cup", unit_cost=0.5, received_date=received),
    ]


@pytest.fixture
def lot_repository(lots):
    """In-memory lot repository."""
    return InMemoryInventoryLotRepository(lots)


@pytest.fixture
def history_repository():
    """Two weeks of flat lunch census and steady selection rates at site-1."""
    lunch_history = [
        CensusObservation(observation_date=CYCLE_START - timedelta(days=offset), count=100)
        for offset in range(14, 0, -1)
    ]
    return InMemoryHistoryRepository(
        census={("site-1", "lunch"): lunch_history, ("site-2", "lunch"): lunch_history},
        selections={
            ("site-1", "RCP-STEW"): [0.4, 0.4],
            ("site-1", "RCP-PILAF"): [0.5, 0.5],
            ("site-1", "RCP-SALAD"): [0.2, 0.2],
        },
    )


@pytest.fixture
def kitchen_equipment():
    """One oven and one steamer at the hot line."""
    return [
        Equipment(equipment_id="OVEN-1", equipment_type="oven", station_id="hot-line"),
        Equipment(equipment_id="STEAM-1", equipment_type="steamer", station_id="hot-line"),
    ]


@pytest.fixture
def cooks():
    """Three cooks on a 06:00-15:00 shift."""
    return [
        Employee(employee_id=f"EMP-{n}", name=f"Cook {n}", station_id="prep",
                 shift_start=time(6, 0), shift_end=time(15, 0))
        for n in (1, 2, 3)
    ]
