"""
Forecast records and variance tracking.

Records are immutable: recording an actual count produces a new record that
supersedes the original, so the forecast as issued is always preserved.
"""

from dataclasses import dataclass
from datetime import date as Date
from typing import Optional, Sequence, Union
import logging
import uuid

import numpy as np

from ..exceptions import InvalidParameters
from ..models.forecast import CensusForecast, ForecastRecord, ForecastType, ItemForecast

logger = logging.getLogger(__name__)


def _new_forecast_id() -> str:
    return f"FC-{uuid.uuid4().hex[:12]}"


def to_record(
    forecast: Union[CensusForecast, ItemForecast],
    forecast_date: Optional[Date] = None,
    site_id: Optional[str] = None,
    meal_period_id: Optional[str] = None,
    forecast_id: Optional[str] = None,
) -> ForecastRecord:
    """
    Convert a forecaster output into a persistable record.

    Census forecasts carry their own date, site and meal period. Item
    forecasts need them passed in.

    Raises:
        InvalidParameters: If an item forecast is missing date/site/meal period
    """
    forecast_id = forecast_id or _new_forecast_id()

    if isinstance(forecast, CensusForecast):
        return ForecastRecord(
            forecast_id=forecast_id,
            forecast_date=forecast.forecast_date,
            site_id=forecast.site_id,
            meal_period_id=forecast.meal_period_id,
            forecast_type=ForecastType.CENSUS,
            forecasted_count=forecast.forecasted_count,
            confidence_interval=forecast.confidence_interval,
            confidence=forecast.confidence,
            method=forecast.method,
            adjustment_factors=forecast.adjustments,
            historical_average=forecast.historical_average,
        )

    if forecast_date is None or site_id is None or meal_period_id is None:
        raise InvalidParameters(
            "Item forecast records need forecast_date, site_id and meal_period_id",
            {"recipe_id": forecast.recipe_id},
        )
    return ForecastRecord(
        forecast_id=forecast_id,
        forecast_date=forecast_date,
        site_id=site_id,
        meal_period_id=meal_period_id,
        recipe_id=forecast.recipe_id,
        forecast_type=ForecastType.MENU_ITEM,
        forecasted_count=forecast.predicted_portions,
        confidence_interval=forecast.confidence_interval,
        confidence=forecast.confidence,
        method=forecast.method,
        historical_average=forecast.base_rate * forecast.total_census,
    )


def record_actual(
    record: ForecastRecord,
    actual_count: int,
    forecast_id: Optional[str] = None,
) -> ForecastRecord:
    """
    Record the actual count against a forecast.

    Returns a new record superseding ``record``; ``variance`` is actual minus
    forecast and ``variance_percent`` is None when the forecast was zero.

    Raises:
        InvalidParameters: If actual_count is negative
    """
    if actual_count < 0:
        raise InvalidParameters(
            "actual_count must be non-negative",
            {"forecast_id": record.forecast_id, "actual_count": actual_count},
        )
    variance = actual_count - record.forecasted_count
    variance_percent = None
    if record.forecasted_count > 0:
        variance_percent = round(variance / record.forecasted_count * 100, 2)

    return record.model_copy(update={
        "forecast_id": forecast_id or _new_forecast_id(),
        "actual_count": actual_count,
        "variance": variance,
        "variance_percent": variance_percent,
        "supersedes_id": record.forecast_id,
    })


@dataclass
class ForecastAccuracy:
    """
    Accuracy over records with actuals.

    Attributes:
        record_count: Records with an actual count
        mean_absolute_error: Mean |actual - forecast|
        mape: Mean absolute percentage error over records with actual > 0
        bias: Mean (forecast - actual); positive means over-forecasting
    """
    record_count: int
    mean_absolute_error: Optional[float]
    mape: Optional[float]
    bias: Optional[float]


def forecast_accuracy(records: Sequence[ForecastRecord]) -> ForecastAccuracy:
    """Summarize forecast accuracy over the records that carry actuals."""
    closed = [r for r in records if r.has_actual]
    if not closed:
        return ForecastAccuracy(record_count=0, mean_absolute_error=None, mape=None, bias=None)

    forecast = np.array([r.forecasted_count for r in closed], dtype=float)
    actual = np.array([r.actual_count for r in closed], dtype=float)
    errors = forecast - actual

    nonzero = actual > 0
    mape = None
    if nonzero.any():
        mape = float(np.mean(np.abs(errors[nonzero]) / actual[nonzero]) * 100)

    return ForecastAccuracy(
        record_count=len(closed),
        mean_absolute_error=float(np.mean(np.abs(errors))),
        mape=mape,
        bias=float(np.mean(errors)),
    )
