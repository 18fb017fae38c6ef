"""Menu data models: cycle menus, single-use overrides and resolved menus."""

from datetime import date as Date, time
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class DayOfWeek(str, Enum):
    """Calendar weekday a cycle-menu item is served on."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_date(cls, value: Date) -> "DayOfWeek":
        """Weekday of a calendar date."""
        return list(cls)[value.weekday()]


class MenuStatus(str, Enum):
    """Lifecycle status of a cycle menu."""
    DRAFT = "Draft"
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class OverrideScope(str, Enum):
    """Portion of a service date a single-use menu applies to."""
    DAY = "Day"
    MEAL_PERIOD = "MealPeriod"


class OverrideMode(str, Enum):
    """How a single-use menu combines with the cycle items."""
    REPLACE = "Replace"
    SUPPLEMENT = "Supplement"


class MealPeriod(BaseModel):
    """A service period of the day (breakfast, lunch, dinner)."""
    meal_period_id: str = Field(..., description="Unique meal period identifier")
    name: str = Field(default="", description="Display name")
    service_start: time = Field(..., description="Time service opens")
    service_end: Optional[time] = Field(None, description="Time service closes")

    model_config = ConfigDict(frozen=True)


class MenuItem(BaseModel):
    """
    A recipe placed at one position of a cycle menu.

    Attributes:
        menu_item_id: Unique menu item identifier
        week_number: Week of the cycle (1-based)
        day_of_week: Weekday the item is served
        meal_period_id: Meal period (breakfast, lunch, ...)
        recipe_id: Recipe served
        sequence_order: Display order within the meal period
        category: Menu category (entree, side, ...) used for position effects
    """
    menu_item_id: str = Field(..., description="Unique menu item identifier")
    week_number: int = Field(..., description="Week of the cycle (1-based)", ge=1)
    day_of_week: DayOfWeek = Field(..., description="Weekday served")
    meal_period_id: str = Field(..., description="Meal period ID")
    recipe_id: str = Field(..., description="Recipe ID")
    sequence_order: int = Field(default=0, description="Display order", ge=0)
    category: Optional[str] = Field(None, description="Menu category")

    model_config = ConfigDict(frozen=True)


class CycleMenu(BaseModel):
    """
    Recurring menu template spanning a fixed number of weeks.

    Menus are immutable; an Active menu is edited by creating a new version.
    A non-positive cycle length is accepted here and rejected by the
    resolver as ``InvalidCycleConfiguration``.

    Attributes:
        cycle_menu_id: Unique cycle menu identifier
        name: Menu name (e.g., "Fall 2026 Four-Week Cycle")
        site_id: Site the menu applies to (None = all sites)
        cycle_start_date: First day of week 1
        cycle_length_weeks: Number of weeks before the cycle repeats
        status: Draft, Active or Archived
        version: Version number, incremented by new_version()
        items: Menu items across all weeks
    """
    cycle_menu_id: str = Field(..., description="Unique cycle menu identifier")
    name: str = Field(default="", description="Menu name")
    site_id: Optional[str] = Field(None, description="Site ID (None = all sites)")
    cycle_start_date: Date = Field(..., description="First day of week 1")
    cycle_length_weeks: int = Field(..., description="Cycle length in weeks")
    status: MenuStatus = Field(default=MenuStatus.ACTIVE, description="Lifecycle status")
    version: int = Field(default=1, description="Menu version", ge=1)
    items: List[MenuItem] = Field(default_factory=list, description="Menu items")

    model_config = ConfigDict(frozen=True)

    def items_at(self, week_number: int, day_of_week: DayOfWeek) -> List[MenuItem]:
        """Get the items at a cycle position, in sequence order."""
        matches = [
            item for item in self.items
            if item.week_number == week_number and item.day_of_week == day_of_week
        ]
        return sorted(matches, key=lambda item: (item.meal_period_id, item.sequence_order))

    def new_version(self, items: Optional[List[MenuItem]] = None, **changes) -> "CycleMenu":
        """
        Create an editable Draft copy with an incremented version.

        Args:
            items: Replacement item list (defaults to the current items)
            **changes: Other fields to change on the new version

        Returns:
            New CycleMenu in Draft status
        """
        update = dict(changes)
        update["items"] = list(items) if items is not None else list(self.items)
        update["version"] = self.version + 1
        update["status"] = MenuStatus.DRAFT
        return self.model_copy(update=update)

    def __str__(self) -> str:
        """String representation."""
        return (
            f"CycleMenu {self.cycle_menu_id} v{self.version} "
            f"({self.cycle_length_weeks} weeks from {self.cycle_start_date}, {len(self.items)} items)"
        )


class SingleUseMenuItem(BaseModel):
    """A recipe served by a single-use override menu."""
    item_id: str = Field(..., description="Unique override item identifier")
    meal_period_id: str = Field(..., description="Meal period ID")
    recipe_id: str = Field(..., description="Recipe ID")
    sequence_order: int = Field(default=0, ge=0)
    category: Optional[str] = Field(None, description="Menu category")

    model_config = ConfigDict(frozen=True)


class SingleUseMenu(BaseModel):
    """
    Date-specific override (holiday, special event) of the cycle menu.

    Attributes:
        single_use_menu_id: Unique override identifier
        name: Override name (e.g., "Thanksgiving Lunch")
        service_date: Date the override applies to
        site_id: Site the override applies to (None = all sites)
        scope: Whole day or one meal period
        meal_period_id: Meal period for MealPeriod scope
        mode: Replace or Supplement the cycle items
        items: Override items
    """
    single_use_menu_id: str = Field(..., description="Unique override identifier")
    name: str = Field(default="", description="Override name")
    service_date: Date = Field(..., description="Service date")
    site_id: Optional[str] = Field(None, description="Site ID (None = all sites)")
    scope: OverrideScope = Field(..., description="Day or MealPeriod")
    meal_period_id: Optional[str] = Field(None, description="Meal period for MealPeriod scope")
    mode: OverrideMode = Field(..., description="Replace or Supplement")
    items: List[SingleUseMenuItem] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _meal_period_scope_needs_meal_period(self) -> "SingleUseMenu":
        if self.scope == OverrideScope.MEAL_PERIOD and not self.meal_period_id:
            raise ValueError("MealPeriod-scoped overrides require meal_period_id")
        return self

    def applies_to(self, service_date: Date, site_id: str) -> bool:
        """Check if this override applies to a date and site."""
        if self.service_date != service_date:
            return False
        return self.site_id is None or self.site_id == site_id

    def scoped_items(self) -> List[SingleUseMenuItem]:
        """Items filtered to the override's scope, in sequence order."""
        items = self.items
        if self.scope == OverrideScope.MEAL_PERIOD:
            items = [item for item in items if item.meal_period_id == self.meal_period_id]
        return sorted(items, key=lambda item: (item.meal_period_id, item.sequence_order))


class ResolvedMenuItem(BaseModel):
    """
    One item on the concrete menu for a date.

    Exactly one of ``cycle_menu_item_id`` / ``single_use_menu_item_id`` is set,
    identifying where the item came from.
    """
    recipe_id: str = Field(..., description="Recipe ID")
    meal_period_id: str = Field(..., description="Meal period ID")
    cycle_menu_item_id: Optional[str] = Field(None, description="Source cycle item")
    single_use_menu_item_id: Optional[str] = Field(None, description="Source override item")
    sequence_order: int = Field(default=0, ge=0)
    category: Optional[str] = Field(None, description="Menu category")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "ResolvedMenuItem":
        has_cycle = self.cycle_menu_item_id is not None
        has_override = self.single_use_menu_item_id is not None
        if has_cycle == has_override:
            raise ValueError(
                "Resolved menu item must reference exactly one of "
                "cycle_menu_item_id or single_use_menu_item_id"
            )
        return self

    @property
    def source_ref(self) -> str:
        """Provenance reference of this item."""
        return self.cycle_menu_item_id or self.single_use_menu_item_id

    @property
    def is_override(self) -> bool:
        """True if the item came from a single-use menu."""
        return self.single_use_menu_item_id is not None


class ResolvedMenu(BaseModel):
    """
    Concrete menu for one (date, site).

    Attributes:
        service_date: Date served
        site_id: Site ID
        week_number: Cycle week the date maps to (None without a cycle menu)
        day_of_week: Calendar weekday of the date
        items: Resolved items
        applied_overrides: IDs of single-use menus applied, in application order
    """
    service_date: Date
    site_id: str
    week_number: Optional[int] = None
    day_of_week: DayOfWeek
    items: List[ResolvedMenuItem] = Field(default_factory=list)
    applied_overrides: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def items_for_meal_period(self, meal_period_id: str) -> List[ResolvedMenuItem]:
        """Get items for a single meal period."""
        return [item for item in self.items if item.meal_period_id == meal_period_id]

    def meal_period_ids(self) -> List[str]:
        """Meal periods present on the menu, in first-seen order."""
        seen: List[str] = []
        for item in self.items:
            if item.meal_period_id not in seen:
                seen.append(item.meal_period_id)
        return seen

    def recipe_ids(self) -> List[str]:
        """Recipe IDs in menu order."""
        return [item.recipe_id for item in self.items]

    def __str__(self) -> str:
        """String representation."""
        return (
            f"ResolvedMenu {self.service_date} ({self.day_of_week.value}, week {self.week_number}) "
            f"at {self.site_id}: {len(self.items)} items"
        )
