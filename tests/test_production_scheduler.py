"""
Tests for production scheduling.

This module tests backward scheduling from service start, greedy equipment
and staff allocation, critical path selection and ingredient requirements.
"""

import pytest
from datetime import date, datetime, time

from kitchenplan.models import (
    Employee,
    Equipment,
    ForecastedMenuItem,
    ProductionTask,
    Recipe,
)
from kitchenplan.persistence import InMemoryRecipeRepository
from kitchenplan.production import (
    EquipmentPool,
    IngredientRequirement,
    ProductionScheduler,
    critical_path,
    overlaps,
)


PRODUCTION_DATE = date(2026, 1, 5)


def forecasted(recipe_id, portions, meal_period_id="lunch"):
    return ForecastedMenuItem(
        recipe_id=recipe_id,
        meal_period_id=meal_period_id,
        portions_needed=portions,
        cycle_menu_item_id=f"CMI-{recipe_id}",
    )


def at(hour, minute=0):
    return datetime.combine(PRODUCTION_DATE, time(hour, minute))


def make_task(task_id, prep_start, ready_time):
    return ProductionTask(
        task_id=task_id,
        recipe_id=f"RCP-{task_id}",
        production_date=PRODUCTION_DATE,
        meal_period_id="lunch",
        portions_needed=10,
        batch_count=1,
        prep_start=prep_start,
        cook_start=prep_start,
        ready_time=ready_time,
    )


@pytest.fixture
def roast():
    """Roast that competes with the stew for the oven."""
    return Recipe(
        recipe_id="RCP-ROAST",
        name="Pork Roast",
        category="entree",
        yield_quantity=12,
        prep_time_minutes=10,
        cook_time_minutes=45,
        equipment_required=["oven"],
    )


@pytest.fixture
def scheduler(recipe_repository, kitchen_equipment, cooks, ingredient_repository):
    return ProductionScheduler(
        recipe_repository,
        equipment=kitchen_equipment,
        employees=cooks,
        ingredient_repository=ingredient_repository,
    )


class TestBackwardScheduling:
    """Task timing and batch counts."""

    def test_times_back_from_service_start(self, scheduler, lunch):
        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 25)])

        task = schedule.tasks[0]
        assert task.ready_time == at(11, 15)
        assert task.cook_start == at(10, 15)
        assert task.prep_start == at(9, 45)
        assert task.batch_count == 3
        assert task.task_id == "site-1-20260105-lunch-001"
        assert task.cycle_menu_item_id == "CMI-RCP-STEW"

    def test_custom_buffer(self, recipe_repository, lunch):
        scheduler = ProductionScheduler(recipe_repository, buffer_minutes=30)
        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-SALAD", 8)])
        assert schedule.tasks[0].ready_time == at(11, 0)

    def test_tasks_ordered_by_prep_start(self, scheduler, lunch):
        items = [forecasted("RCP-SALAD", 16), forecasted("RCP-STEW", 20), forecasted("RCP-PILAF", 20)]

        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, items)

        assert [t.recipe_id for t in schedule.tasks] == ["RCP-STEW", "RCP-PILAF", "RCP-SALAD"]
        assert schedule.total_portions == 56

    def test_skips_zero_portions_and_other_meal_periods(self, scheduler, lunch):
        items = [forecasted("RCP-STEW", 0), forecasted("RCP-OATS", 40, meal_period_id="breakfast")]

        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, items)

        assert schedule.tasks == []
        assert schedule.critical_path == []
        assert schedule.is_feasible()


class TestResourceAllocation:
    """Equipment conflicts and staff assignment."""

    def test_equipment_and_station_assigned(self, scheduler, lunch):
        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 10)])

        task = schedule.tasks[0]
        assert task.assigned_equipment_ids == ["OVEN-1"]
        assert task.assigned_station_id == "hot-line"
        assert task.assigned_employee_id == "EMP-1"
        assert schedule.is_feasible()

    def test_overlapping_oven_use_is_a_conflict(self, stew, roast, kitchen_equipment, cooks, lunch):
        scheduler = ProductionScheduler(
            InMemoryRecipeRepository([stew, roast]), equipment=kitchen_equipment, employees=cooks
        )

        schedule = scheduler.generate_schedule(
            PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 10), forecasted("RCP-ROAST", 12)]
        )

        assert len(schedule.conflicts) == 1
        conflict = schedule.conflicts[0]
        assert conflict.recipe_id == "RCP-ROAST"
        assert conflict.equipment_type == "oven"
        assert not schedule.is_feasible()

    def test_second_oven_resolves_conflict(self, stew, roast, kitchen_equipment, cooks, lunch):
        ovens = kitchen_equipment + [Equipment(equipment_id="OVEN-2", equipment_type="oven")]
        scheduler = ProductionScheduler(InMemoryRecipeRepository([stew, roast]), equipment=ovens, employees=cooks)

        schedule = scheduler.generate_schedule(
            PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 10), forecasted("RCP-ROAST", 12)]
        )

        assert schedule.conflicts == []
        assert {tuple(t.assigned_equipment_ids) for t in schedule.tasks} == {("OVEN-1",), ("OVEN-2",)}

    def test_no_staff_on_shift_leaves_task_unassigned(self, recipe_repository, kitchen_equipment, lunch):
        late_cook = Employee(employee_id="EMP-LATE", shift_start=time(10, 0), shift_end=time(18, 0))
        scheduler = ProductionScheduler(recipe_repository, equipment=kitchen_equipment, employees=[late_cook])

        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 10)])

        assert schedule.unassigned_task_ids == [schedule.tasks[0].task_id]
        assert schedule.tasks[0].assigned_employee_id is None

    def test_half_open_windows(self):
        pool = EquipmentPool([Equipment(equipment_id="OVEN-1", equipment_type="oven")])

        assert pool.allocate("oven", at(9), at(10)) is not None
        assert pool.allocate("oven", at(10), at(11)) is not None
        assert pool.allocate("oven", at(10, 30), at(10, 45)) is None
        assert not overlaps((at(9), at(10)), (at(10), at(11)))

    def test_conflict_window_frees_at_window_end(self, stew, roast, kitchen_equipment, cooks, lunch):
        scheduler = ProductionScheduler(
            InMemoryRecipeRepository([stew, roast]), equipment=kitchen_equipment, employees=cooks
        )
        schedule = scheduler.generate_schedule(
            PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 10), forecasted("RCP-ROAST", 12)]
        )
        conflict = schedule.conflicts[0]
        stew_task = next(t for t in schedule.tasks if t.recipe_id == "RCP-STEW")

        pool = EquipmentPool(kitchen_equipment)
        assert pool.allocate("oven", stew_task.cook_start, stew_task.ready_time) is not None
        # Booking that starts when the window ends fits on the same oven
        assert pool.allocate("oven", conflict.window_end, at(12)) is not None
        assert pool.allocate("oven", conflict.window_start, conflict.window_end) is None


class TestCriticalPath:
    """Critical path selection."""

    def test_follows_longest_task_at_each_cursor(self):
        tasks = [
            make_task("A", at(8), at(9)),
            make_task("B", at(8), at(9, 30)),
            make_task("C", at(9, 30), at(10)),
            make_task("D", at(9), at(9, 45)),
        ]
        assert critical_path(tasks) == ["B", "C"]

    def test_ties_keep_input_order(self):
        tasks = [make_task("A", at(8), at(9)), make_task("B", at(8), at(9))]
        assert critical_path(tasks) == ["A"]

    def test_empty(self):
        assert critical_path([]) == []


class TestIngredientRequirements:
    """Ingredient expansion of a schedule."""

    def test_requirements_use_whole_batches_and_yield(self, scheduler, lunch):
        schedule = scheduler.generate_schedule(
            PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-STEW", 25), forecasted("RCP-PILAF", 25)]
        )

        requirements = {r.ingredient_id: r for r in scheduler.ingredient_requirements(schedule)}

        # Three batches each; stew chicken is as-purchased at 80% yield
        assert requirements["ING-CHICKEN"].quantity == pytest.approx(15.0)
        assert requirements["ING-RICE"].quantity == pytest.approx(6.0)
        assert requirements["ING-SALT"].quantity == pytest.approx(4.5)
        assert requirements["ING-SALT"].unit == "oz"
        assert len(requirements["ING-SALT"].task_ids) == 2

    def test_requirements_without_master_data_keep_line_units(self, recipe_repository, lunch):
        scheduler = ProductionScheduler(recipe_repository)
        schedule = scheduler.generate_schedule(PRODUCTION_DATE, "site-1", lunch, [forecasted("RCP-SALAD", 8)])

        requirements = scheduler.ingredient_requirements(schedule)

        assert [(r.ingredient_id, r.unit) for r in requirements] == [("ING-OIL", "tbsp")]
        assert requirements[0].quantity == pytest.approx(4.0)

    def test_deficits_from_availability(self):
        requirements = [
            IngredientRequirement(ingredient_id="ING-RICE", quantity=6.0, unit="lb"),
            IngredientRequirement(ingredient_id="ING-OIL", quantity=1.0, unit="cup"),
        ]

        deficits = ProductionScheduler.deficits_from_availability(requirements, {"ING-RICE": 4.0, "ING-OIL": 2.0})

        assert len(deficits) == 1
        assert deficits[0].ingredient_id == "ING-RICE"
        assert deficits[0].shortfall == pytest.approx(2.0)
