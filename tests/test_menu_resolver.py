"""
Tests for menu resolution.

This module tests:
- Cycle position arithmetic (wrap-around, dates before the cycle start)
- Replace/Supplement override merging and its order independence
- Site targeting and provenance of resolved items
"""

import pytest
from datetime import date

from pydantic import ValidationError

from kitchenplan.exceptions import InvalidCycleConfiguration, InvalidParameters
from kitchenplan.menu import MenuResolver, resolve_cycle_position
from kitchenplan.models import (
    CycleMenu,
    DayOfWeek,
    OverrideMode,
    OverrideScope,
    ResolvedMenuItem,
    SingleUseMenu,
    SingleUseMenuItem,
)
from kitchenplan.persistence import InMemoryMenuRepository


SERVICE_DATE = date(2026, 1, 5)


def make_override(override_id, mode, scope=OverrideScope.MEAL_PERIOD, site_id=None, recipes=("RCP-ROAST",)):
    """Single-use lunch override on SERVICE_DATE."""
    return SingleUseMenu(
        single_use_menu_id=override_id,
        name=override_id,
        service_date=SERVICE_DATE,
        site_id=site_id,
        scope=scope,
        meal_period_id="lunch",
        mode=mode,
        items=[
            SingleUseMenuItem(
                item_id=f"{override_id}-{n}",
                meal_period_id="lunch",
                recipe_id=recipe_id,
                sequence_order=n,
            )
            for n, recipe_id in enumerate(recipes, start=1)
        ],
    )


class TestCyclePosition:
    """Date to (week, weekday) mapping."""

    def test_start_date_is_week_one(self):
        assert resolve_cycle_position(date(2026, 1, 5), date(2026, 1, 5), 2) == (1, DayOfWeek.MONDAY)

    def test_second_week(self):
        assert resolve_cycle_position(date(2026, 1, 14), date(2026, 1, 5), 2) == (2, DayOfWeek.WEDNESDAY)

    def test_wraps_after_cycle_length(self):
        assert resolve_cycle_position(date(2026, 1, 19), date(2026, 1, 5), 2) == (1, DayOfWeek.MONDAY)

    def test_dates_before_start_wrap_backwards(self):
        assert resolve_cycle_position(date(2026, 1, 4), date(2026, 1, 5), 2) == (2, DayOfWeek.SUNDAY)

    def test_weekday_follows_calendar_when_start_is_midweek(self):
        week, day = resolve_cycle_position(date(2026, 1, 7), date(2026, 1, 7), 4)
        assert week == 1
        assert day == DayOfWeek.WEDNESDAY

    @pytest.mark.parametrize("length", [0, -1])
    def test_non_positive_length_raises(self, length):
        with pytest.raises(InvalidCycleConfiguration):
            resolve_cycle_position(date(2026, 1, 5), date(2026, 1, 5), length)


class TestMenuResolver:
    """Base menu resolution."""

    def test_resolves_cycle_items_in_order(self, menu_repository):
        menu = MenuResolver(menu_repository).resolve(SERVICE_DATE, "site-1")

        assert menu.week_number == 1
        assert menu.day_of_week == DayOfWeek.MONDAY
        assert menu.recipe_ids() == ["RCP-OATS", "RCP-STEW", "RCP-PILAF", "RCP-SALAD"]
        assert all(item.cycle_menu_item_id for item in menu.items)
        assert menu.applied_overrides == []

    def test_full_cycle_later_resolves_identically(self, menu_repository):
        resolver = MenuResolver(menu_repository)

        first = resolver.resolve(date(2026, 1, 5), "site-1")
        repeat = resolver.resolve(date(2026, 1, 19), "site-1")

        assert repeat.recipe_ids() == first.recipe_ids()
        assert repeat.week_number == first.week_number

    def test_second_week_items(self, menu_repository):
        menu = MenuResolver(menu_repository).resolve(date(2026, 1, 12), "site-1")
        assert menu.week_number == 2
        assert menu.recipe_ids() == ["RCP-PILAF"]

    def test_no_cycle_menu_gives_empty_base(self):
        menu = MenuResolver(InMemoryMenuRepository()).resolve(SERVICE_DATE, "site-1")
        assert menu.items == []
        assert menu.week_number is None

    def test_invalid_cycle_length_raises(self):
        broken = CycleMenu(
            cycle_menu_id="CM-BROKEN", cycle_start_date=SERVICE_DATE, cycle_length_weeks=0
        )
        resolver = MenuResolver(InMemoryMenuRepository([broken]))
        with pytest.raises(InvalidCycleConfiguration):
            resolver.resolve(SERVICE_DATE, "site-1")

    def test_site_specific_menu_preferred(self, cycle_menu):
        site_menu = cycle_menu.model_copy(update={"cycle_menu_id": "CM-SITE2", "site_id": "site-2", "items": []})
        resolver = MenuResolver(InMemoryMenuRepository([cycle_menu, site_menu]))

        assert resolver.resolve(SERVICE_DATE, "site-2").items == []
        assert len(resolver.resolve(SERVICE_DATE, "site-1").items) == 4

    def test_resolve_range(self, menu_repository):
        menus = MenuResolver(menu_repository).resolve_range(date(2026, 1, 5), date(2026, 1, 11), "site-1")
        assert len(menus) == 7
        assert [m.service_date.day for m in menus] == list(range(5, 12))

    def test_resolve_range_rejects_reversed_dates(self, menu_repository):
        with pytest.raises(InvalidParameters):
            MenuResolver(menu_repository).resolve_range(date(2026, 1, 11), date(2026, 1, 5), "site-1")


class TestOverrides:
    """Single-use menu merging."""

    def test_meal_period_replace_keeps_other_meal_periods(self, cycle_menu):
        repository = InMemoryMenuRepository([cycle_menu], [make_override("SU-1", OverrideMode.REPLACE)])

        menu = MenuResolver(repository).resolve(SERVICE_DATE, "site-1")

        assert [i.recipe_id for i in menu.items_for_meal_period("lunch")] == ["RCP-ROAST"]
        assert [i.recipe_id for i in menu.items_for_meal_period("breakfast")] == ["RCP-OATS"]
        assert menu.applied_overrides == ["SU-1"]

    def test_day_replace_clears_everything(self, cycle_menu):
        override = make_override("SU-DAY", OverrideMode.REPLACE, scope=OverrideScope.DAY)
        repository = InMemoryMenuRepository([cycle_menu], [override])

        menu = MenuResolver(repository).resolve(SERVICE_DATE, "site-1")

        assert menu.recipe_ids() == ["RCP-ROAST"]
        assert menu.items[0].is_override

    def test_supplement_appends(self, cycle_menu):
        override = make_override("SU-PIE", OverrideMode.SUPPLEMENT, recipes=("RCP-PIE",))
        repository = InMemoryMenuRepository([cycle_menu], [override])

        menu = MenuResolver(repository).resolve(SERVICE_DATE, "site-1")

        # Supplement items follow base items sharing their sequence slot
        lunch = [i.recipe_id for i in menu.items_for_meal_period("lunch")]
        assert lunch == ["RCP-STEW", "RCP-PIE", "RCP-PILAF", "RCP-SALAD"]

    @pytest.mark.parametrize("supplement_first", [True, False])
    def test_replace_applied_before_supplement_regardless_of_order(self, cycle_menu, supplement_first):
        replace = make_override("SU-REPLACE", OverrideMode.REPLACE)
        supplement = make_override("SU-SUPP", OverrideMode.SUPPLEMENT, recipes=("RCP-PIE",))
        overrides = [supplement, replace] if supplement_first else [replace, supplement]
        repository = InMemoryMenuRepository([cycle_menu], overrides)

        menu = MenuResolver(repository).resolve(SERVICE_DATE, "site-1")

        lunch = [i.recipe_id for i in menu.items_for_meal_period("lunch")]
        assert lunch == ["RCP-ROAST", "RCP-PIE"]
        assert menu.applied_overrides == ["SU-REPLACE", "SU-SUPP"]

    @pytest.mark.parametrize("day_first", [True, False])
    def test_replace_overrides_keep_each_others_items(self, cycle_menu, day_first):
        day = make_override("SU-DAY", OverrideMode.REPLACE, scope=OverrideScope.DAY)
        lunch = make_override("SU-LUNCH", OverrideMode.REPLACE, recipes=("RCP-PIE",))
        overrides = [day, lunch] if day_first else [lunch, day]

        menu = MenuResolver(InMemoryMenuRepository([cycle_menu], overrides)).resolve(SERVICE_DATE, "site-1")

        assert sorted(menu.recipe_ids()) == ["RCP-PIE", "RCP-ROAST"]
        assert all(item.is_override for item in menu.items)

    @pytest.mark.parametrize("supplement_first", [True, False])
    def test_day_replace_with_supplement_leaves_only_supplement(self, cycle_menu, supplement_first):
        replace = make_override("SU-DAY", OverrideMode.REPLACE, scope=OverrideScope.DAY, recipes=())
        supplement = make_override("SU-SUPP", OverrideMode.SUPPLEMENT, recipes=("RCP-PIE",))
        overrides = [supplement, replace] if supplement_first else [replace, supplement]

        menu = MenuResolver(InMemoryMenuRepository([cycle_menu], overrides)).resolve(SERVICE_DATE, "site-1")

        assert menu.recipe_ids() == ["RCP-PIE"]

    def test_override_for_other_site_ignored(self, cycle_menu):
        override = make_override("SU-OTHER", OverrideMode.REPLACE, site_id="site-2")
        repository = InMemoryMenuRepository([cycle_menu], [override])

        menu = MenuResolver(repository).resolve(SERVICE_DATE, "site-1")

        assert "RCP-ROAST" not in menu.recipe_ids()
        assert menu.applied_overrides == []

    def test_preview_separates_layers(self, cycle_menu):
        override = make_override("SU-PIE", OverrideMode.SUPPLEMENT, recipes=("RCP-PIE",))
        repository = InMemoryMenuRepository([cycle_menu], [override])

        preview = MenuResolver(repository).preview(SERVICE_DATE, "site-1")

        assert preview.has_overrides
        assert len(preview.base_items) == 4
        assert [i.recipe_id for i in preview.override_items] == ["RCP-PIE"]

    def test_meal_period_scope_requires_meal_period(self):
        with pytest.raises(ValidationError):
            SingleUseMenu(
                single_use_menu_id="SU-BAD",
                service_date=SERVICE_DATE,
                scope=OverrideScope.MEAL_PERIOD,
                mode=OverrideMode.REPLACE,
            )


class TestResolvedMenuItem:
    """Provenance invariant."""

    def test_requires_exactly_one_source(self):
        with pytest.raises(ValidationError):
            ResolvedMenuItem(recipe_id="RCP-STEW", meal_period_id="lunch")
        with pytest.raises(ValidationError):
            ResolvedMenuItem(
                recipe_id="RCP-STEW",
                meal_period_id="lunch",
                cycle_menu_item_id="W1-MON-L1",
                single_use_menu_item_id="SU-1-1",
            )
