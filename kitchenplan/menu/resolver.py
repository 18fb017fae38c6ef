"""
Menu resolution: cycle position plus single-use overrides.

A date maps into a cycle menu by its offset from the cycle start, taken
modulo the cycle length (so dates before the start wrap backwards into the
cycle). The weekday is always the real calendar weekday of the date.

Overrides are merged in two passes regardless of input order: every
Replace is applied first, then every Supplement.
"""

from dataclasses import dataclass, field
from datetime import date as Date, timedelta
from typing import List, Optional, Tuple
import logging

from ..constants import DAYS_PER_WEEK
from ..exceptions import InvalidCycleConfiguration, InvalidParameters
from ..models.menu import (
    CycleMenu,
    DayOfWeek,
    OverrideMode,
    OverrideScope,
    ResolvedMenu,
    ResolvedMenuItem,
    SingleUseMenu,
)
from ..persistence.repositories import MenuRepository

logger = logging.getLogger(__name__)


def resolve_cycle_position(
    service_date: Date,
    cycle_start_date: Date,
    cycle_length_weeks: int,
) -> Tuple[int, DayOfWeek]:
    """
    Map a date to (week_number, day_of_week) within a cycle.

    Args:
        service_date: Date to resolve
        cycle_start_date: First day of week 1
        cycle_length_weeks: Weeks in the cycle

    Returns:
        Tuple of 1-based week number and calendar weekday

    Raises:
        InvalidCycleConfiguration: If cycle_length_weeks is not positive
    """
    if cycle_length_weeks <= 0:
        raise InvalidCycleConfiguration(
            "Cycle length must be a positive number of weeks",
            {"cycle_length_weeks": cycle_length_weeks},
        )
    total_days = cycle_length_weeks * DAYS_PER_WEEK
    days = (service_date - cycle_start_date).days
    position = ((days % total_days) + total_days) % total_days
    week_number = position // DAYS_PER_WEEK + 1
    # Calendar weekday, not position % 7: the two agree only while cycle weeks
    # start on the cycle_start_date weekday
    return week_number, DayOfWeek.from_date(service_date)


@dataclass
class MenuPreview:
    """Resolved menu with the base and override layers kept apart."""
    resolved: ResolvedMenu
    base_items: List[ResolvedMenuItem] = field(default_factory=list)
    override_items: List[ResolvedMenuItem] = field(default_factory=list)
    overrides: List[SingleUseMenu] = field(default_factory=list)

    @property
    def has_overrides(self) -> bool:
        """True if any single-use menu applied."""
        return bool(self.overrides)


class MenuResolver:
    """
    Resolves the concrete menu for a (date, site).

    Example:
        resolver = MenuResolver(menu_repository)
        menu = resolver.resolve(date(2026, 1, 19), "site-1")
        lunch = menu.items_for_meal_period("lunch")
    """

    def __init__(self, menu_repository: MenuRepository):
        self.menu_repository = menu_repository

    def _base_items(
        self, cycle_menu: Optional[CycleMenu], service_date: Date, site_id: str
    ) -> Tuple[Optional[int], List[ResolvedMenuItem]]:
        if cycle_menu is None:
            logger.warning(f"No active cycle menu for site {site_id}; base menu for {service_date} is empty")
            return None, []

        week_number, day_of_week = resolve_cycle_position(
            service_date, cycle_menu.cycle_start_date, cycle_menu.cycle_length_weeks
        )
        items = [
            ResolvedMenuItem(
                recipe_id=item.recipe_id,
                meal_period_id=item.meal_period_id,
                cycle_menu_item_id=item.menu_item_id,
                sequence_order=item.sequence_order,
                category=item.category,
            )
            for item in cycle_menu.items_at(week_number, day_of_week)
        ]
        return week_number, items

    @staticmethod
    def _override_items(override: SingleUseMenu) -> List[ResolvedMenuItem]:
        return [
            ResolvedMenuItem(
                recipe_id=item.recipe_id,
                meal_period_id=item.meal_period_id,
                single_use_menu_item_id=item.item_id,
                sequence_order=item.sequence_order,
                category=item.category,
            )
            for item in override.scoped_items()
        ]

    def _merge(
        self, base: List[ResolvedMenuItem], overrides: List[SingleUseMenu]
    ) -> Tuple[List[ResolvedMenuItem], List[ResolvedMenuItem], List[str]]:
        replaces = [o for o in overrides if o.mode == OverrideMode.REPLACE]
        added: List[ResolvedMenuItem] = []
        applied: List[str] = []

        # Pass 1: Replace overrides suppress cycle items only, never each other's items
        if any(o.scope == OverrideScope.DAY for o in replaces):
            items: List[ResolvedMenuItem] = []
        else:
            replaced_periods = {o.meal_period_id for o in replaces}
            items = [i for i in base if i.meal_period_id not in replaced_periods]

        for override in replaces:
            replacement = self._override_items(override)
            items.extend(replacement)
            added.extend(replacement)
            applied.append(override.single_use_menu_id)

        # Pass 2: all Supplement overrides
        for override in overrides:
            if override.mode != OverrideMode.SUPPLEMENT:
                continue
            supplement = self._override_items(override)
            items.extend(supplement)
            added.extend(supplement)
            applied.append(override.single_use_menu_id)

        return items, added, applied

    def preview(self, service_date: Date, site_id: str) -> MenuPreview:
        """
        Resolve a date and keep the base and override layers for review.

        Raises:
            InvalidCycleConfiguration: If the active cycle menu has a non-positive length
        """
        cycle_menu = self.menu_repository.get_active_cycle_menu(site_id, service_date)
        week_number, base = self._base_items(cycle_menu, service_date, site_id)

        overrides = [
            o for o in self.menu_repository.list_single_use_menus(service_date, site_id)
            if o.applies_to(service_date, site_id)
        ]
        items, added, applied = self._merge(base, overrides)

        # Stable sort keeps Replace-before-Supplement order within a sequence slot
        items.sort(key=lambda item: (item.meal_period_id, item.sequence_order))

        resolved = ResolvedMenu(
            service_date=service_date,
            site_id=site_id,
            week_number=week_number,
            day_of_week=DayOfWeek.from_date(service_date),
            items=items,
            applied_overrides=applied,
        )
        return MenuPreview(
            resolved=resolved,
            base_items=base,
            override_items=added,
            overrides=overrides,
        )

    def resolve(self, service_date: Date, site_id: str) -> ResolvedMenu:
        """
        Resolve the concrete menu for a date and site.

        Args:
            service_date: Date to resolve
            site_id: Site to resolve for

        Returns:
            ResolvedMenu with items grouped by meal period in sequence order

        Raises:
            InvalidCycleConfiguration: If the active cycle menu has a non-positive length
        """
        menu = self.preview(service_date, site_id).resolved
        logger.info(
            f"Resolved menu for {site_id} on {service_date}: {len(menu.items)} items, "
            f"{len(menu.applied_overrides)} overrides"
        )
        return menu

    def resolve_range(self, start_date: Date, end_date: Date, site_id: str) -> List[ResolvedMenu]:
        """Resolve every date from start_date to end_date inclusive."""
        if end_date < start_date:
            raise InvalidParameters(
                "end_date must not precede start_date",
                {"start_date": start_date, "end_date": end_date},
            )
        days = (end_date - start_date).days
        return [self.resolve(start_date + timedelta(days=offset), site_id) for offset in range(days + 1)]
