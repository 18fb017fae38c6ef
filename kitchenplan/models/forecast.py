"""Forecast data models for census and menu-item demand."""

from datetime import date as Date
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ForecastType(str, Enum):
    """Level of a forecast record."""
    CENSUS = "Census"
    MENU_ITEM = "Menu Item"


class CensusObservation(BaseModel):
    """Actual diner count for one past service of a meal period."""
    observation_date: Date = Field(..., description="Service date")
    count: float = Field(..., description="Diners served", ge=0)

    model_config = ConfigDict(frozen=True)


class AdjustmentFactor(BaseModel):
    """
    External multiplier applied to a census forecast.

    Attributes:
        name: Factor name (e.g., "weather", "holiday", "event")
        multiplier: Multiplicative effect on the forecast
        confidence: Confidence in the factor (0-1)
    """
    name: str = Field(..., description="Factor name")
    multiplier: float = Field(..., description="Multiplicative effect", gt=0)
    confidence: float = Field(default=1.0, description="Confidence in the factor", ge=0, le=1)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} x{self.multiplier:.2f} (conf: {self.confidence:.0%})"


class _IntervalForecast(BaseModel):
    """Shared interval invariant: the interval always contains the point forecast."""
    confidence_interval: Tuple[float, float] = Field(..., description="(low, high)")

    @model_validator(mode="after")
    def _interval_contains_point(self):
        low, high = self.confidence_interval
        point = self._point()
        if not low <= point <= high:
            raise ValueError(
                f"Confidence interval ({low}, {high}) does not contain forecast {point}"
            )
        return self

    def _point(self) -> float:
        raise NotImplementedError


class CensusForecast(_IntervalForecast):
    """
    Forecast of total diners for one (date, site, meal period).

    The confidence interval is a Gaussian approximation (forecast +/- 1.96
    sample standard deviations of the history). It is not a guarantee:
    census series are rarely normal and the interval ignores smoothing error.

    Attributes:
        forecast_date: Date forecasted
        site_id: Site ID
        meal_period_id: Meal period ID
        forecasted_count: Predicted diners
        smoothed_level: Smoothed (or averaged) level before adjustments
        day_of_week_index: Weekday seasonality multiplier
        adjustments: External factors applied, in order
        confidence: Overall confidence (0 for insufficient history)
        method: Method label
        historical_average: Mean of the history used
        observation_count: Observations used
    """
    forecast_date: Date
    site_id: str
    meal_period_id: str
    forecasted_count: int = Field(..., ge=0)
    smoothed_level: float = Field(default=0.0, ge=0)
    day_of_week_index: float = Field(default=1.0, ge=0)
    adjustments: List[AdjustmentFactor] = Field(default_factory=list)
    confidence: float = Field(..., ge=0, le=1)
    method: str
    historical_average: Optional[float] = None
    observation_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    def _point(self) -> float:
        return self.forecasted_count

    @property
    def is_degraded(self) -> bool:
        """True when the forecast was made without enough history."""
        return self.confidence == 0

    def __str__(self) -> str:
        """String representation."""
        low, high = self.confidence_interval
        return (
            f"{self.forecast_date} {self.meal_period_id}: {self.forecasted_count} diners "
            f"[{low:.0f}-{high:.0f}] ({self.method})"
        )


class ItemForecast(_IntervalForecast):
    """
    Predicted portions of one recipe, from a census forecast and selection rate.

    Attributes:
        recipe_id: Recipe ID
        total_census: Census the rate was applied to
        predicted_portions: round(total_census x selection_rate)
        selection_rate: Final selection rate
        base_rate: Historical mean selection fraction
        position_multiplier: Menu-position effect applied
        alternatives_count: Competing choices in the slot (0 treated as 1)
        recency_penalty: Cool-down discount applied (1.0 = none)
        confidence: 0 for insufficient history
        method: Method label
    """
    recipe_id: str
    total_census: float = Field(..., ge=0)
    predicted_portions: int = Field(..., ge=0)
    selection_rate: float = Field(..., ge=0)
    base_rate: float = Field(..., ge=0)
    position_multiplier: float = Field(default=1.0, gt=0)
    alternatives_count: int = Field(default=1, ge=1)
    recency_penalty: float = Field(default=1.0, gt=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    method: str

    model_config = ConfigDict(frozen=True)

    def _point(self) -> float:
        return self.predicted_portions


class ForecastRecord(BaseModel):
    """
    Persisted forecast row.

    Records are immutable. When actuals are known a new record is created
    that supersedes the original (``supersedes_id``) and carries
    ``actual_count``, ``variance`` and ``variance_percent``.
    """
    forecast_id: str
    forecast_date: Date
    site_id: str
    meal_period_id: str
    recipe_id: Optional[str] = None
    forecast_type: ForecastType
    forecasted_count: int = Field(..., ge=0)
    confidence_interval: Tuple[float, float]
    confidence: float = Field(..., ge=0, le=1)
    method: str
    adjustment_factors: List[AdjustmentFactor] = Field(default_factory=list)
    historical_average: Optional[float] = None
    actual_count: Optional[int] = Field(None, ge=0)
    variance: Optional[int] = None
    variance_percent: Optional[float] = None
    supersedes_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_record(self) -> "ForecastRecord":
        low, high = self.confidence_interval
        if not low <= self.forecasted_count <= high:
            raise ValueError(
                f"Confidence interval ({low}, {high}) does not contain "
                f"forecast {self.forecasted_count}"
            )
        if (self.recipe_id is None) != (self.forecast_type == ForecastType.CENSUS):
            raise ValueError("Census records have no recipe_id; item records require one")
        return self

    @property
    def is_census(self) -> bool:
        """True for census-level (total diners) records."""
        return self.recipe_id is None

    @property
    def has_actual(self) -> bool:
        """True once actuals have been recorded."""
        return self.actual_count is not None
