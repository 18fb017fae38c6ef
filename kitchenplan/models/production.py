"""Production data models: kitchen resources, tasks and schedules."""

from datetime import date as Date, datetime, time
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaskStatus(str, Enum):
    """Lifecycle status of a production task."""
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Equipment(BaseModel):
    """One unit of kitchen equipment (e.g., convection oven #2)."""
    equipment_id: str = Field(..., description="Unique equipment identifier")
    equipment_type: str = Field(..., description="Equipment type (oven, steamer, ...)")
    station_id: Optional[str] = Field(None, description="Station the unit belongs to")

    model_config = ConfigDict(frozen=True)


class Employee(BaseModel):
    """Production employee and their shift on the scheduled day."""
    employee_id: str = Field(..., description="Unique employee identifier")
    name: str = Field(default="", description="Employee name")
    station_id: Optional[str] = Field(None, description="Home station")
    shift_start: time = Field(default=time(0, 0))
    shift_end: time = Field(default=time(23, 59))

    model_config = ConfigDict(frozen=True)

    def covers(self, production_date: Date, start: datetime, end: datetime) -> bool:
        """True if the shift on ``production_date`` covers [start, end]."""
        shift_start = datetime.combine(production_date, self.shift_start)
        shift_end = datetime.combine(production_date, self.shift_end)
        return shift_start <= start and end <= shift_end


class ForecastedMenuItem(BaseModel):
    """A resolved menu item paired with its forecasted portions."""
    recipe_id: str
    meal_period_id: str
    portions_needed: int = Field(..., ge=0)
    cycle_menu_item_id: Optional[str] = None
    single_use_menu_item_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ProductionTask(BaseModel):
    """
    Timed prep/cook work for one recipe on one date.

    Times are computed backward from service: ready = service - buffer,
    cook_start = ready - cook time, prep_start = cook_start - prep time.

    Attributes:
        task_id: Unique task identifier
        recipe_id: Recipe produced
        production_date: Date produced
        meal_period_id: Meal period served
        portions_needed: Forecasted portions
        batch_count: Recipe batches required
        prep_start: Prep start time
        cook_start: Cook start time
        ready_time: Target completion time
        equipment_types: Equipment types needed while cooking
        assigned_equipment_ids: Equipment units allocated
        assigned_employee_id: Cook assigned
        assigned_station_id: Station assigned
        dependencies: Task IDs that must finish first
        status: Lifecycle status
        cycle_menu_item_id: Source cycle item (traceability)
        single_use_menu_item_id: Source override item (traceability)
    """
    task_id: str
    recipe_id: str
    production_date: Date
    meal_period_id: str
    portions_needed: int = Field(..., ge=0)
    batch_count: int = Field(..., ge=0)
    prep_start: datetime
    cook_start: datetime
    ready_time: datetime
    equipment_types: List[str] = Field(default_factory=list)
    assigned_equipment_ids: List[str] = Field(default_factory=list)
    assigned_employee_id: Optional[str] = None
    assigned_station_id: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.SCHEDULED
    cycle_menu_item_id: Optional[str] = None
    single_use_menu_item_id: Optional[str] = None

    @model_validator(mode="after")
    def _times_ordered(self) -> "ProductionTask":
        if not self.prep_start <= self.cook_start <= self.ready_time:
            raise ValueError("Task times must satisfy prep_start <= cook_start <= ready_time")
        return self

    @property
    def duration_minutes(self) -> float:
        """Minutes from prep start to ready."""
        return (self.ready_time - self.prep_start).total_seconds() / 60

    def is_terminal(self, now: datetime) -> bool:
        """True once the ready time has passed and the task is closed out."""
        return now >= self.ready_time and self.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.recipe_id}: {self.portions_needed} portions ({self.batch_count} batches) "
            f"prep {self.prep_start:%H:%M} cook {self.cook_start:%H:%M} ready {self.ready_time:%H:%M}"
        )


class EquipmentConflict(BaseModel):
    """
    No free unit of an equipment type for a task's cooking window.

    Windows are half-open, [window_start, window_end): a unit released at
    11:00 can be booked again from 11:00, so back-to-back use is not a
    conflict.
    """
    recipe_id: str
    task_id: str
    equipment_type: str
    window_start: datetime
    window_end: datetime
    reason: str = "No free unit of this equipment type"

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.recipe_id} needs {self.equipment_type} "
            f"{self.window_start:%H:%M}-{self.window_end:%H:%M}: {self.reason}"
        )


class IngredientDeficit(BaseModel):
    """Ingredient quantity a schedule needs but inventory could not supply."""
    ingredient_id: str
    unit: str
    quantity_needed: float = Field(..., ge=0)
    quantity_available: float = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def shortfall(self) -> float:
        """Needed minus available."""
        return max(self.quantity_needed - self.quantity_available, 0.0)


class ProductionSchedule(BaseModel):
    """
    Production schedule for one (date, site, meal period).

    Conflicts, unassigned tasks and deficits are returned as data for
    kitchen staff to resolve.
    """
    production_date: Date
    site_id: str
    meal_period_id: str
    service_start: datetime
    tasks: List[ProductionTask] = Field(default_factory=list)
    conflicts: List[EquipmentConflict] = Field(default_factory=list)
    unassigned_task_ids: List[str] = Field(default_factory=list)
    critical_path: List[str] = Field(default_factory=list)
    deficits: List[IngredientDeficit] = Field(default_factory=list)

    def is_feasible(self) -> bool:
        """True when no conflicts, unassigned tasks or deficits remain."""
        return not (self.conflicts or self.unassigned_task_ids or self.deficits)

    def get_task(self, task_id: str) -> Optional[ProductionTask]:
        """Look up a task by ID."""
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None

    @property
    def earliest_start(self) -> Optional[datetime]:
        """Earliest prep start across tasks."""
        return min((t.prep_start for t in self.tasks), default=None)

    @property
    def total_portions(self) -> int:
        """Portions across all tasks."""
        return sum(t.portions_needed for t in self.tasks)

    def __str__(self) -> str:
        """String representation."""
        status = "FEASIBLE" if self.is_feasible() else (
            f"{len(self.conflicts)} conflicts, {len(self.unassigned_task_ids)} unassigned, "
            f"{len(self.deficits)} deficits"
        )
        return (
            f"ProductionSchedule {self.production_date} {self.meal_period_id} at {self.site_id}: "
            f"{len(self.tasks)} tasks - {status}"
        )
