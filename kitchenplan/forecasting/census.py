"""
Census forecasting: how many diners a meal period will serve.

The level of the historical series is estimated by single exponential
smoothing (``level = alpha * observed + (1 - alpha) * level``) or, when
configured, a trailing moving average. The level is multiplied by a
day-of-week index (mean count on the target weekday divided by the overall
mean) and then by each caller-supplied adjustment factor in order.

The confidence interval is ``forecast +/- 1.96 * sigma`` with sigma the
sample standard deviation of the history, clamped at zero below. This is a
Gaussian approximation, not a coverage guarantee.
"""

from datetime import date as Date
from typing import List, Optional, Sequence, Tuple
import logging
import math

import pandas as pd

from ..config import PlanningConfig
from ..constants import (
    CONFIDENCE_INTERVAL_Z,
    FULL_CONFIDENCE_OBSERVATIONS,
    METHOD_EXPONENTIAL_SMOOTHING,
    METHOD_INSUFFICIENT_HISTORY,
    MIN_HISTORY_OBSERVATIONS,
)
from ..models.forecast import AdjustmentFactor, CensusForecast, CensusObservation

logger = logging.getLogger(__name__)


def history_to_series(history: Sequence[CensusObservation]) -> pd.Series:
    """Census history as a date-indexed series, oldest first."""
    series = pd.Series(
        [float(obs.count) for obs in history],
        index=pd.to_datetime([obs.observation_date for obs in history]),
        dtype="float64",
    )
    return series.sort_index()


def day_of_week_index(series: pd.Series, target_date: Date) -> float:
    """
    Seasonality multiplier for the target weekday.

    Returns 1.0 when the weekday has no history or the overall mean is zero.
    """
    overall_mean = series.mean()
    if series.empty or overall_mean <= 0:
        return 1.0
    weekday_counts = series[series.index.dayofweek == target_date.weekday()]
    if weekday_counts.empty:
        return 1.0
    return float(weekday_counts.mean() / overall_mean)


def sample_confidence(observation_count: int) -> float:
    """History-size confidence term, saturating at FULL_CONFIDENCE_OBSERVATIONS."""
    return min(1.0, observation_count / FULL_CONFIDENCE_OBSERVATIONS)


class CensusForecaster:
    """
    Forecasts diner counts per (date, site, meal period).

    Example:
        forecaster = CensusForecaster(PlanningConfig(smoothing_alpha=0.3))
        forecast = forecaster.forecast_census(history, date(2026, 3, 2), "lunch", "site-1")
        low, high = forecast.confidence_interval
    """

    def __init__(self, config: Optional[PlanningConfig] = None):
        self.config = config or PlanningConfig()

    def smoothed_level(self, series: pd.Series) -> Tuple[float, str]:
        """Level of the series and the label of the method used."""
        if self.config.census_method == METHOD_EXPONENTIAL_SMOOTHING:
            level = series.ewm(alpha=self.config.smoothing_alpha, adjust=False).mean().iloc[-1]
        else:
            level = series.tail(self.config.moving_average_window).mean()
        return float(level), self.config.census_method

    def forecast_census(
        self,
        history: Sequence[CensusObservation],
        target_date: Date,
        meal_period_id: str,
        site_id: str,
        adjustments: Sequence[AdjustmentFactor] = (),
    ) -> CensusForecast:
        """
        Forecast the census for a meal period.

        Args:
            history: Past observations for the site and meal period
            target_date: Date to forecast
            meal_period_id: Meal period forecasted
            site_id: Site forecasted
            adjustments: External factors (weather, holiday, event) applied in order

        Returns:
            CensusForecast. With fewer than two observations the result has
            confidence 0 and method "insufficient_history"; it never raises.
        """
        adjustments = list(adjustments)
        series = history_to_series(history)
        n = len(series)

        if n < MIN_HISTORY_OBSERVATIONS:
            count = max(int(round(series.iloc[-1])), 0) if n else 0
            logger.warning(
                f"Insufficient census history for {site_id}/{meal_period_id} on {target_date}: "
                f"{n} observations"
            )
            return CensusForecast(
                forecast_date=target_date,
                site_id=site_id,
                meal_period_id=meal_period_id,
                forecasted_count=count,
                smoothed_level=float(count),
                adjustments=adjustments,
                confidence=0.0,
                method=METHOD_INSUFFICIENT_HISTORY,
                historical_average=float(series.mean()) if n else None,
                observation_count=n,
                confidence_interval=(float(count), float(count)),
            )

        level, method = self.smoothed_level(series)
        dow_index = day_of_week_index(series, target_date)

        forecast = level * dow_index
        confidence = sample_confidence(n)
        for factor in adjustments:
            forecast *= factor.multiplier
            confidence *= factor.confidence

        count = max(int(round(forecast)), 0)

        sigma = series.std()
        if math.isnan(sigma):
            sigma = 0.0
        spread = CONFIDENCE_INTERVAL_Z * float(sigma)
        interval = (max(0.0, count - spread), count + spread)

        logger.debug(
            f"Census {site_id}/{meal_period_id} {target_date}: level={level:.1f} "
            f"dow={dow_index:.3f} forecast={count} sigma={sigma:.1f}"
        )

        return CensusForecast(
            forecast_date=target_date,
            site_id=site_id,
            meal_period_id=meal_period_id,
            forecasted_count=count,
            smoothed_level=max(level, 0.0),
            day_of_week_index=dow_index,
            adjustments=adjustments,
            confidence=confidence,
            method=method,
            historical_average=float(series.mean()),
            observation_count=n,
            confidence_interval=interval,
        )

    def forecast_range(
        self,
        history: Sequence[CensusObservation],
        target_dates: Sequence[Date],
        meal_period_id: str,
        site_id: str,
    ) -> List[CensusForecast]:
        """Forecast several dates from the same history."""
        return [
            self.forecast_census(history, target_date, meal_period_id, site_id)
            for target_date in target_dates
        ]
