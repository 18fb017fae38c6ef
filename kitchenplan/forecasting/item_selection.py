"""
Menu-item forecasting from a census forecast and selection rates.

    rate = base_rate x position_multiplier x (1 / alternatives) x recency_penalty
    predicted_portions = round(total_census x rate)

``base_rate`` is the historical mean selection fraction (portions served /
census). The first-listed item in a category gets the position multiplier;
items served again inside the cool-down window get the recency penalty.
"""

from datetime import date as Date
from typing import Optional, Sequence
import logging

import numpy as np

from ..config import PlanningConfig
from ..constants import (
    CONFIDENCE_INTERVAL_Z,
    METHOD_INSUFFICIENT_HISTORY,
    METHOD_ITEM_SELECTION,
    MIN_HISTORY_OBSERVATIONS,
)
from ..models.forecast import ItemForecast
from .census import sample_confidence

logger = logging.getLogger(__name__)


class ItemForecaster:
    """
    Predicts portions per recipe.

    ``menu_position`` is 1-based within the item's category; position 1 is
    the first-listed item.
    """

    def __init__(self, config: Optional[PlanningConfig] = None):
        self.config = config or PlanningConfig()

    def recency_penalty(self, last_served: Optional[Date], service_date: Optional[Date]) -> float:
        """Penalty for items served within the cool-down window (1.0 = none)."""
        if last_served is None or service_date is None:
            return 1.0
        days_since = (service_date - last_served).days
        if 0 <= days_since <= self.config.recency_window_days:
            return self.config.recency_penalty
        return 1.0

    def forecast_item(
        self,
        recipe_id: str,
        total_census: float,
        menu_position: int,
        history: Sequence[float],
        alternatives_count: int = 1,
        last_served: Optional[Date] = None,
        service_date: Optional[Date] = None,
    ) -> ItemForecast:
        """
        Forecast portions of one recipe.

        Args:
            recipe_id: Recipe forecasted
            total_census: Census forecast for the meal period
            menu_position: 1-based position within the category
            history: Historical selection fractions for the recipe
            alternatives_count: Competing choices in the slot (0 treated as 1)
            last_served: Last service date of the recipe
            service_date: Date being forecast (needed for the recency penalty)

        Returns:
            ItemForecast. With fewer than two observations the result has
            confidence 0 and method "insufficient_history"; without any
            history the base rate assumes the census is shared evenly.
        """
        alternatives = max(int(alternatives_count), 1)
        census = max(float(total_census), 0.0)
        rates = np.asarray(history, dtype=float)
        n = len(rates)

        if n == 0:
            base_rate = 1.0
        else:
            base_rate = max(float(rates.mean()), 0.0)

        position_multiplier = self.config.position_multiplier if menu_position == 1 else 1.0
        penalty = self.recency_penalty(last_served, service_date)
        rate = max(base_rate * position_multiplier * (1.0 / alternatives) * penalty, 0.0)
        predicted = max(int(round(census * rate)), 0)

        if n < MIN_HISTORY_OBSERVATIONS:
            logger.warning(f"Insufficient selection history for {recipe_id}: {n} observations")
            return ItemForecast(
                recipe_id=recipe_id,
                total_census=census,
                predicted_portions=predicted,
                selection_rate=rate,
                base_rate=base_rate,
                position_multiplier=position_multiplier,
                alternatives_count=alternatives,
                recency_penalty=penalty,
                confidence=0.0,
                method=METHOD_INSUFFICIENT_HISTORY,
                confidence_interval=(float(predicted), float(predicted)),
            )

        # Spread of the selection fraction, carried through the same multipliers
        sigma = float(rates.std(ddof=1))
        spread = CONFIDENCE_INTERVAL_Z * census * sigma * position_multiplier * penalty / alternatives

        return ItemForecast(
            recipe_id=recipe_id,
            total_census=census,
            predicted_portions=predicted,
            selection_rate=rate,
            base_rate=base_rate,
            position_multiplier=position_multiplier,
            alternatives_count=alternatives,
            recency_penalty=penalty,
            confidence=sample_confidence(n),
            method=METHOD_ITEM_SELECTION,
            confidence_interval=(max(0.0, predicted - spread), predicted + spread),
        )
