"""
Production scheduler for one (date, site, meal period).

This module turns forecasted menu items into timed production tasks:
1. Batch count: ceil(portions / recipe yield)
2. Backward timing from service start:
   ready = service_start - buffer, cook_start = ready - cook time,
   prep_start = cook_start - prep time
3. Equipment: first free unit of each required type over [cook_start, ready)
4. Staff: first employee whose shift covers [prep_start, ready) and is free
5. Critical path through the resulting tasks

Conflicts and unassigned tasks are returned on the schedule for kitchen
staff to resolve; they are never raised.
"""

from dataclasses import dataclass, field
from datetime import date as Date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import math

from ..constants import DEFAULT_BUFFER_MINUTES, QUANTITY_TOLERANCE
from ..models.menu import MealPeriod
from ..models.inventory import IssueResult
from ..models.production import (
    Employee,
    Equipment,
    EquipmentConflict,
    ForecastedMenuItem,
    IngredientDeficit,
    ProductionSchedule,
    ProductionTask,
)
from ..models.recipe import Recipe
from ..persistence.repositories import IngredientRepository, RecipeRepository
from ..recipes.costing import RecipeCostCalculator
from ..recipes.scaler import RecipeScaler
from .critical_path import critical_path
from .resources import EquipmentPool, StaffRoster

logger = logging.getLogger(__name__)


@dataclass
class IngredientRequirement:
    """
    Quantity of one ingredient a schedule consumes.

    Attributes:
        ingredient_id: Ingredient needed
        quantity: Total quantity in ``unit`` (as-purchased when yield applies)
        unit: Ingredient common unit, or the recipe line unit without master data
        task_ids: Tasks contributing to the requirement
    """
    ingredient_id: str
    quantity: float
    unit: str
    task_ids: List[str] = field(default_factory=list)


class ProductionScheduler:
    """
    Backward scheduler for kitchen production.

    Example:
        scheduler = ProductionScheduler(recipes, equipment=ovens, employees=cooks)
        schedule = scheduler.generate_schedule(date(2026, 3, 2), "site-1", lunch, items)
        for conflict in schedule.conflicts:
            print(conflict)
    """

    def __init__(
        self,
        recipe_repository: RecipeRepository,
        equipment: Iterable[Equipment] = (),
        employees: Iterable[Employee] = (),
        buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
        ingredient_repository: Optional[IngredientRepository] = None,
        scaler: Optional[RecipeScaler] = None,
    ):
        """
        Initialize production scheduler.

        Args:
            recipe_repository: Recipe lookup
            equipment: Equipment units at the site
            employees: Production staff on shift
            buffer_minutes: Minutes between ready time and service start
            ingredient_repository: Ingredient master data (units and yields)
            scaler: Recipe scaler used for ingredient requirements
        """
        self.recipe_repository = recipe_repository
        self.equipment = list(equipment)
        self.employees = list(employees)
        self.buffer_minutes = buffer_minutes
        self.ingredient_repository = ingredient_repository
        self.scaler = scaler or RecipeScaler()
        self.cost_calculator = (
            RecipeCostCalculator(ingredient_repository) if ingredient_repository is not None else None
        )

    def _task_times(self, recipe: Recipe, service_start: datetime) -> Tuple[datetime, datetime, datetime]:
        ready = service_start - timedelta(minutes=self.buffer_minutes)
        cook_start = ready - timedelta(minutes=recipe.cook_time_minutes)
        prep_start = cook_start - timedelta(minutes=recipe.prep_time_minutes)
        return prep_start, cook_start, ready

    def generate_schedule(
        self,
        production_date: Date,
        site_id: str,
        meal_period: MealPeriod,
        items_with_forecast: Sequence[ForecastedMenuItem],
    ) -> ProductionSchedule:
        """
        Generate the production schedule for a meal period.

        Args:
            production_date: Date of production
            site_id: Producing site
            meal_period: Meal period served (service start drives timing)
            items_with_forecast: Resolved menu items with forecasted portions

        Returns:
            ProductionSchedule with tasks, conflicts, unassigned tasks and critical path

        Raises:
            RecordNotFound: If a recipe is missing
        """
        service_start = datetime.combine(production_date, meal_period.service_start)

        planned = []
        for item in items_with_forecast:
            if item.meal_period_id != meal_period.meal_period_id:
                continue
            if item.portions_needed <= 0:
                logger.debug(f"Skipping {item.recipe_id}: no portions forecast")
                continue
            recipe = self.recipe_repository.get(item.recipe_id)
            prep_start, cook_start, ready = self._task_times(recipe, service_start)
            planned.append((prep_start, cook_start, ready, recipe, item))

        planned.sort(key=lambda p: (p[0], p[3].recipe_id))

        equipment_pool = EquipmentPool(self.equipment)
        roster = StaffRoster(self.employees)
        tasks: List[ProductionTask] = []
        conflicts: List[EquipmentConflict] = []
        unassigned: List[str] = []

        for index, (prep_start, cook_start, ready, recipe, item) in enumerate(planned, start=1):
            task_id = f"{site_id}-{production_date:%Y%m%d}-{meal_period.meal_period_id}-{index:03d}"

            assigned_units: List[Equipment] = []
            for equipment_type in recipe.equipment_required:
                unit = equipment_pool.allocate(equipment_type, cook_start, ready)
                if unit is None:
                    conflict = EquipmentConflict(
                        recipe_id=recipe.recipe_id,
                        task_id=task_id,
                        equipment_type=equipment_type,
                        window_start=cook_start,
                        window_end=ready,
                    )
                    conflicts.append(conflict)
                    logger.warning(f"Equipment conflict: {conflict}")
                else:
                    assigned_units.append(unit)

            employee = roster.allocate(production_date, prep_start, ready)
            if employee is None:
                unassigned.append(task_id)

            station_id = next((u.station_id for u in assigned_units if u.station_id), None)
            if station_id is None and employee is not None:
                station_id = employee.station_id

            tasks.append(ProductionTask(
                task_id=task_id,
                recipe_id=recipe.recipe_id,
                production_date=production_date,
                meal_period_id=meal_period.meal_period_id,
                portions_needed=item.portions_needed,
                batch_count=math.ceil(item.portions_needed / recipe.yield_quantity),
                prep_start=prep_start,
                cook_start=cook_start,
                ready_time=ready,
                equipment_types=list(recipe.equipment_required),
                assigned_equipment_ids=[u.equipment_id for u in assigned_units],
                assigned_employee_id=employee.employee_id if employee else None,
                assigned_station_id=station_id,
                cycle_menu_item_id=item.cycle_menu_item_id,
                single_use_menu_item_id=item.single_use_menu_item_id,
            ))

        if unassigned:
            logger.warning(f"{len(unassigned)} tasks without staff on {production_date} at {site_id}")

        schedule = ProductionSchedule(
            production_date=production_date,
            site_id=site_id,
            meal_period_id=meal_period.meal_period_id,
            service_start=service_start,
            tasks=tasks,
            conflicts=conflicts,
            unassigned_task_ids=unassigned,
            critical_path=critical_path(tasks),
        )
        logger.info(f"Scheduled {schedule}")
        return schedule

    def ingredient_requirements(self, schedule: ProductionSchedule) -> List[IngredientRequirement]:
        """
        Expand a schedule's tasks into ingredient quantities.

        Each task produces ``batch_count`` whole batches. With ingredient
        master data, quantities are converted to the ingredient's common unit
        and as-purchased lines are yield-adjusted.

        Raises:
            UnconvertibleUnits: If a recipe unit cannot reach the common unit
        """
        totals: Dict[Tuple[str, str], IngredientRequirement] = {}

        for task in schedule.tasks:
            recipe = self.recipe_repository.get(task.recipe_id)
            scaled = self.scaler.scale(recipe, task.batch_count * recipe.yield_quantity)
            for line, scaled_line in zip(recipe.ingredients, scaled.ingredients):
                quantity = scaled_line.scaled_quantity
                unit = line.unit
                if self.cost_calculator is not None:
                    ingredient = self.ingredient_repository.get(line.ingredient_id)
                    quantity = self.cost_calculator.effective_quantity(line, ingredient, quantity)
                    unit = ingredient.common_unit

                key = (line.ingredient_id, unit)
                requirement = totals.setdefault(
                    key, IngredientRequirement(ingredient_id=line.ingredient_id, quantity=0.0, unit=unit)
                )
                requirement.quantity += quantity
                if task.task_id not in requirement.task_ids:
                    requirement.task_ids.append(task.task_id)

        return sorted(totals.values(), key=lambda r: (r.ingredient_id, r.unit))

    @staticmethod
    def deficits_from_availability(
        requirements: Sequence[IngredientRequirement],
        available: Dict[str, float],
    ) -> List[IngredientDeficit]:
        """Deficits for requirements that exceed available quantities (same units)."""
        deficits = []
        for requirement in requirements:
            on_hand = max(available.get(requirement.ingredient_id, 0.0), 0.0)
            if requirement.quantity - on_hand > QUANTITY_TOLERANCE:
                deficits.append(IngredientDeficit(
                    ingredient_id=requirement.ingredient_id,
                    unit=requirement.unit,
                    quantity_needed=requirement.quantity,
                    quantity_available=on_hand,
                ))
        return deficits

    @staticmethod
    def deficits_from_issues(
        requirements: Sequence[IngredientRequirement],
        issues: Sequence[IssueResult],
    ) -> List[IngredientDeficit]:
        """Deficits for issuances that were only partly fulfilled."""
        deficits = []
        for requirement, result in zip(requirements, issues):
            if not result.fulfilled:
                deficits.append(IngredientDeficit(
                    ingredient_id=requirement.ingredient_id,
                    unit=requirement.unit,
                    quantity_needed=requirement.quantity,
                    quantity_available=result.quantity_issued,
                ))
        return deficits
