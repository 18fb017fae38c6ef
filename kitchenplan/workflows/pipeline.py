"""Operations planning pipeline for one (date, site) and batches of them.

Stages run in a fixed order for each pair:
    1. resolve_menu()      - cycle position plus overrides
    2. forecast()          - census per meal period, then portions per item
    3. schedule()          - timed production tasks per meal period
    4. requirements        - ingredient quantities for the schedules
    5. procurement draft   - order lines from projected shortages
    6. apply (optional)    - FIFO issuance and persistence of results

Everything before the apply step is computed from repository reads only, so
a run can be discarded without side effects. Batch runs execute pairs on a
thread pool; FIFO issuance is serialized per (ingredient, site) by the
inventory ledger.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from ..config import PlanningConfig
from ..forecasting.accuracy import to_record
from ..forecasting.census import CensusForecaster
from ..forecasting.item_selection import ItemForecaster
from ..inventory.ledger import InventoryLedger
from ..menu.resolver import MenuResolver
from ..models.forecast import AdjustmentFactor, CensusForecast, ForecastRecord, ItemForecast
from ..models.inventory import IssueResult
from ..models.menu import MealPeriod, ResolvedMenu, ResolvedMenuItem
from ..models.procurement import PurchaseOrderDraft
from ..models.production import Employee, Equipment, ForecastedMenuItem, ProductionSchedule
from ..persistence.repositories import (
    ForecastRepository,
    HistoryRepository,
    IngredientRepository,
    InventoryLotRepository,
    MenuRepository,
    ProductionRepository,
    RecipeRepository,
)
from ..procurement.generator import ProcurementGenerator
from ..production.scheduler import IngredientRequirement, ProductionScheduler
from ..recipes.scaler import RecipeScaler
from ..units.converter import UnitConverter

logger = logging.getLogger(__name__)

PairKey = Tuple[Date, str]


@dataclass
class MealPeriodForecast:
    """Census and item forecasts for one meal period."""
    meal_period: MealPeriod
    census: CensusForecast
    items: List[ItemForecast] = field(default_factory=list)
    forecasted_items: List[ForecastedMenuItem] = field(default_factory=list)

    @property
    def total_portions(self) -> int:
        """Portions across all items."""
        return sum(item.portions_needed for item in self.forecasted_items)


@dataclass
class PipelineResult:
    """Result of one (date, site) planning run.

    Attributes:
        service_date: Date planned
        site_id: Site planned
        menu: Resolved menu
        forecasts: Forecasts per meal period, in service order
        schedules: Production schedules per meal period
        requirements: Ingredient requirements across all schedules
        purchase_order: Drafted order lines
        forecast_records: Records for every forecast made
        issues: FIFO issuance results (apply runs only)
        applied: Whether stock was issued and results persisted
    """
    service_date: Date
    site_id: str
    menu: ResolvedMenu
    forecasts: List[MealPeriodForecast] = field(default_factory=list)
    schedules: List[ProductionSchedule] = field(default_factory=list)
    requirements: List[IngredientRequirement] = field(default_factory=list)
    purchase_order: Optional[PurchaseOrderDraft] = None
    forecast_records: List[ForecastRecord] = field(default_factory=list)
    issues: List[IssueResult] = field(default_factory=list)
    applied: bool = False

    def is_feasible(self) -> bool:
        """True when every schedule is feasible."""
        return all(schedule.is_feasible() for schedule in self.schedules)

    @property
    def total_portions(self) -> int:
        """Portions forecast across meal periods."""
        return sum(f.total_portions for f in self.forecasts)

    def __str__(self) -> str:
        """String representation."""
        lines = len(self.purchase_order.lines) if self.purchase_order else 0
        return (
            f"PipelineResult {self.site_id} {self.service_date}: {len(self.menu.items)} items, "
            f"{self.total_portions} portions, {sum(len(s.tasks) for s in self.schedules)} tasks, "
            f"{lines} order lines"
        )


@dataclass
class BatchResult:
    """Results and errors of a batch run, keyed by (date, site)."""
    results: Dict[PairKey, PipelineResult] = field(default_factory=dict)
    errors: Dict[PairKey, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """True when no pair failed."""
        return not self.errors

    def __str__(self) -> str:
        """String representation."""
        return f"BatchResult: {len(self.results)} succeeded, {len(self.errors)} failed"


def category_positions(items: Sequence[ResolvedMenuItem]) -> List[Tuple[ResolvedMenuItem, int, int]]:
    """
    Position and number of alternatives for each item within its category.

    Items without a category compete only with other uncategorized items.

    Returns:
        (item, 1-based position, alternatives in category) in input order
    """
    by_category: Dict[Optional[str], List[ResolvedMenuItem]] = {}
    for item in items:
        by_category.setdefault(item.category, []).append(item)

    positions = []
    for item in items:
        peers = sorted(by_category[item.category], key=lambda i: i.sequence_order)
        position = next(index for index, peer in enumerate(peers, start=1) if peer is item)
        positions.append((item, position, len(peers)))
    return positions


class PlanningPipeline:
    """
    Runs the planning stages for (date, site) pairs.

    Example:
        pipeline = PlanningPipeline(
            menu_repository=menus,
            recipe_repository=recipes,
            ingredient_repository=ingredients,
            lot_repository=lots,
            history_repository=history,
            meal_periods=[breakfast, lunch],
        )
        result = pipeline.run(date(2026, 3, 2), "site-1")
        batch = pipeline.run_batch(dates, ["site-1", "site-2"], max_workers=4)
    """

    def __init__(
        self,
        menu_repository: MenuRepository,
        recipe_repository: RecipeRepository,
        ingredient_repository: IngredientRepository,
        lot_repository: InventoryLotRepository,
        history_repository: HistoryRepository,
        meal_periods: Iterable[MealPeriod],
        equipment_by_site: Optional[Dict[str, List[Equipment]]] = None,
        employees_by_site: Optional[Dict[str, List[Employee]]] = None,
        forecast_repository: Optional[ForecastRepository] = None,
        production_repository: Optional[ProductionRepository] = None,
        config: Optional[PlanningConfig] = None,
        converter: Optional[UnitConverter] = None,
    ):
        self.menu_repository = menu_repository
        self.recipe_repository = recipe_repository
        self.ingredient_repository = ingredient_repository
        self.lot_repository = lot_repository
        self.history_repository = history_repository
        self.meal_periods = sorted(meal_periods, key=lambda mp: mp.service_start)
        self.equipment_by_site = equipment_by_site or {}
        self.employees_by_site = employees_by_site or {}
        self.forecast_repository = forecast_repository
        self.production_repository = production_repository
        self.config = config or PlanningConfig()
        self.converter = converter or UnitConverter()

        self.resolver = MenuResolver(menu_repository)
        self.census_forecaster = CensusForecaster(self.config)
        self.item_forecaster = ItemForecaster(self.config)
        self.scaler = RecipeScaler(seasoning_warning_factor=self.config.seasoning_warning_factor)
        self.ledger = InventoryLedger(lot_repository, ingredient_repository, converter=self.converter)
        self.procurement = ProcurementGenerator(
            ingredient_repository,
            lot_repository,
            converter=self.converter,
            config=self.config,
            history_repository=history_repository,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def resolve_menu(self, service_date: Date, site_id: str) -> ResolvedMenu:
        """Stage 1: resolved menu for the pair."""
        return self.resolver.resolve(service_date, site_id)

    def forecast(
        self,
        menu: ResolvedMenu,
        adjustments: Optional[Dict[str, List[AdjustmentFactor]]] = None,
    ) -> List[MealPeriodForecast]:
        """
        Stage 2: census and item forecasts for each meal period on the menu.

        Args:
            menu: Resolved menu
            adjustments: External factors by meal period ID
        """
        adjustments = adjustments or {}
        forecasts = []

        for meal_period in self.meal_periods:
            items = menu.items_for_meal_period(meal_period.meal_period_id)
            if not items:
                continue

            history = self.history_repository.census_history(
                menu.site_id, meal_period.meal_period_id, menu.service_date
            )
            census = self.census_forecaster.forecast_census(
                history,
                menu.service_date,
                meal_period.meal_period_id,
                menu.site_id,
                adjustments.get(meal_period.meal_period_id, ()),
            )
            period = MealPeriodForecast(meal_period=meal_period, census=census)

            for item, position, alternatives in category_positions(items):
                item_forecast = self.item_forecaster.forecast_item(
                    item.recipe_id,
                    census.forecasted_count,
                    position,
                    self.history_repository.selection_history(menu.site_id, item.recipe_id),
                    alternatives_count=alternatives,
                    last_served=self.history_repository.last_served(
                        menu.site_id, item.recipe_id, menu.service_date
                    ),
                    service_date=menu.service_date,
                )
                period.items.append(item_forecast)
                period.forecasted_items.append(ForecastedMenuItem(
                    recipe_id=item.recipe_id,
                    meal_period_id=item.meal_period_id,
                    portions_needed=item_forecast.predicted_portions,
                    cycle_menu_item_id=item.cycle_menu_item_id,
                    single_use_menu_item_id=item.single_use_menu_item_id,
                ))

            logger.info(
                f"Forecast {menu.site_id} {menu.service_date} {meal_period.meal_period_id}: "
                f"census {census.forecasted_count}, {period.total_portions} portions"
            )
            forecasts.append(period)

        return forecasts

    def scheduler_for(self, site_id: str) -> ProductionScheduler:
        """Scheduler with the site's equipment and staff."""
        return ProductionScheduler(
            self.recipe_repository,
            equipment=self.equipment_by_site.get(site_id, []),
            employees=self.employees_by_site.get(site_id, []),
            buffer_minutes=self.config.buffer_minutes,
            ingredient_repository=self.ingredient_repository,
            scaler=self.scaler,
        )

    def schedule(
        self,
        service_date: Date,
        site_id: str,
        forecasts: Sequence[MealPeriodForecast],
    ) -> Tuple[List[ProductionSchedule], List[List[IngredientRequirement]]]:
        """Stage 3: one schedule and requirement list per meal period."""
        scheduler = self.scheduler_for(site_id)
        schedules = []
        requirements = []
        for period in forecasts:
            schedule = scheduler.generate_schedule(
                service_date, site_id, period.meal_period, period.forecasted_items
            )
            schedules.append(schedule)
            requirements.append(scheduler.ingredient_requirements(schedule))
        return schedules, requirements

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run(
        self,
        service_date: Date,
        site_id: str,
        adjustments: Optional[Dict[str, List[AdjustmentFactor]]] = None,
        apply: bool = False,
    ) -> PipelineResult:
        """
        Plan one (date, site).

        Args:
            service_date: Date to plan
            site_id: Site to plan
            adjustments: External census factors by meal period ID
            apply: Issue stock by FIFO and persist menu, forecasts and schedules

        Returns:
            PipelineResult
        """
        menu = self.resolve_menu(service_date, site_id)
        forecasts = self.forecast(menu, adjustments)
        schedules, requirements_by_period = self.schedule(service_date, site_id, forecasts)

        usage: Dict[str, float] = {}
        for requirements in requirements_by_period:
            for requirement in requirements:
                usage[requirement.ingredient_id] = usage.get(requirement.ingredient_id, 0.0) + requirement.quantity
        purchase_order = self.procurement.generate(site_id, usage, service_date)

        records: List[ForecastRecord] = []
        for period in forecasts:
            records.append(to_record(period.census))
            for item_forecast in period.items:
                records.append(to_record(
                    item_forecast,
                    forecast_date=service_date,
                    site_id=site_id,
                    meal_period_id=period.meal_period.meal_period_id,
                ))

        issues: List[IssueResult] = []
        if apply:
            schedules, issues = self._issue_stock(schedules, requirements_by_period, service_date, site_id)
            self._persist(menu, schedules, records)
        else:
            schedules = self._check_stock(schedules, requirements_by_period, service_date, site_id)

        result = PipelineResult(
            service_date=service_date,
            site_id=site_id,
            menu=menu,
            forecasts=forecasts,
            schedules=schedules,
            requirements=[r for requirements in requirements_by_period for r in requirements],
            purchase_order=purchase_order,
            forecast_records=records,
            issues=issues,
            applied=apply,
        )
        logger.info(f"Completed {result}")
        return result

    def _check_stock(
        self,
        schedules: List[ProductionSchedule],
        requirements_by_period: List[List[IngredientRequirement]],
        service_date: Date,
        site_id: str,
    ) -> List[ProductionSchedule]:
        """Record deficits against current stock without issuing it."""
        available: Dict[str, float] = {}
        checked = []
        for schedule, requirements in zip(schedules, requirements_by_period):
            for requirement in requirements:
                if requirement.ingredient_id not in available:
                    available[requirement.ingredient_id] = self.ledger.on_hand(
                        requirement.ingredient_id, site_id, as_of=service_date, unit=requirement.unit
                    )
            deficits = ProductionScheduler.deficits_from_availability(requirements, available)
            for requirement in requirements:
                available[requirement.ingredient_id] -= requirement.quantity
            checked.append(schedule.model_copy(update={"deficits": deficits}))
        return checked

    def _issue_stock(
        self,
        schedules: List[ProductionSchedule],
        requirements_by_period: List[List[IngredientRequirement]],
        service_date: Date,
        site_id: str,
    ) -> Tuple[List[ProductionSchedule], List[IssueResult]]:
        """Issue stock for each schedule in service order and record deficits."""
        issued_schedules = []
        all_issues: List[IssueResult] = []
        for schedule, requirements in zip(schedules, requirements_by_period):
            issues = [
                self.ledger.issue(r.ingredient_id, site_id, r.quantity, as_of=service_date, unit=r.unit)
                for r in requirements
            ]
            deficits = ProductionScheduler.deficits_from_issues(requirements, issues)
            issued_schedules.append(schedule.model_copy(update={"deficits": deficits}))
            all_issues.extend(issues)
        return issued_schedules, all_issues

    def _persist(
        self,
        menu: ResolvedMenu,
        schedules: List[ProductionSchedule],
        records: List[ForecastRecord],
    ) -> None:
        self.menu_repository.save_resolved_menu(menu)
        if self.forecast_repository is not None:
            for record in records:
                self.forecast_repository.save(record)
        if self.production_repository is not None:
            for schedule in schedules:
                self.production_repository.save_schedule(schedule)

    def run_batch(
        self,
        dates: Iterable[Date],
        site_ids: Iterable[str],
        max_workers: Optional[int] = None,
        apply: bool = False,
    ) -> BatchResult:
        """
        Plan every (date, site) combination concurrently.

        A failing pair is logged and reported in ``BatchResult.errors``; the
        other pairs still complete.

        Args:
            dates: Dates to plan
            site_ids: Sites to plan
            max_workers: Worker threads (defaults to config.max_workers)
            apply: Passed through to run()
        """
        dates = list(dates)
        site_ids = list(site_ids)
        pairs = [(service_date, site_id) for service_date in dates for site_id in site_ids]
        workers = max(1, max_workers or self.config.max_workers)
        batch = BatchResult()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.run, service_date, site_id, None, apply): (service_date, site_id)
                for service_date, site_id in pairs
            }
            for future in as_completed(futures):
                key = futures[future]
                try:
                    batch.results[key] = future.result()
                except Exception as e:
                    logger.exception(f"Planning failed for {key[1]} on {key[0]}")
                    batch.errors[key] = str(e)

        logger.info(f"Batch of {len(pairs)} pairs with {workers} workers: {batch}")
        return batch
