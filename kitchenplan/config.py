"""Configuration for a planning pipeline run."""

from dataclasses import dataclass

from .constants import (
    DEFAULT_ALERT_WINDOW_DAYS,
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_MOVING_AVERAGE_WINDOW,
    DEFAULT_RECENCY_PENALTY,
    DEFAULT_RECENCY_WINDOW_DAYS,
    DEFAULT_SERVICE_LEVEL,
    DEFAULT_SMOOTHING_ALPHA,
    FIRST_POSITION_MULTIPLIER,
    METHOD_EXPONENTIAL_SMOOTHING,
    METHOD_MOVING_AVERAGE,
    SEASONING_WARNING_FACTOR,
    SERVICE_LEVEL_Z_SCORES,
)
from .exceptions import InvalidParameters


@dataclass
class PlanningConfig:
    """Tunable parameters for the planning pipeline.

    Attributes:
        smoothing_alpha: Exponential smoothing constant (0 < alpha <= 1)
        census_method: "exponential_smoothing" or "moving_average"
        moving_average_window: Observations averaged by the moving-average method
        position_multiplier: Selection boost for the first-listed item in a category
        recency_window_days: Cool-down window for the recency penalty
        recency_penalty: Selection discount inside the cool-down window
        buffer_minutes: Minutes between ready time and service start
        alert_window_days: Expiration alert horizon
        service_level: Target service level for safety stock
        seasoning_warning_factor: Scale factor above which seasonings are flagged
        round_orders_to_eoq: Round purchase-order quantities up to EOQ when known
        ordering_cost: Cost of placing one order (used with round_orders_to_eoq)
        holding_cost_percent: Annual holding cost as a fraction of unit cost
        max_workers: Worker threads for batch runs
    """
    smoothing_alpha: float = DEFAULT_SMOOTHING_ALPHA
    census_method: str = METHOD_EXPONENTIAL_SMOOTHING
    moving_average_window: int = DEFAULT_MOVING_AVERAGE_WINDOW
    position_multiplier: float = FIRST_POSITION_MULTIPLIER
    recency_window_days: int = DEFAULT_RECENCY_WINDOW_DAYS
    recency_penalty: float = DEFAULT_RECENCY_PENALTY
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    alert_window_days: int = DEFAULT_ALERT_WINDOW_DAYS
    service_level: float = DEFAULT_SERVICE_LEVEL
    seasoning_warning_factor: float = SEASONING_WARNING_FACTOR
    round_orders_to_eoq: bool = False
    ordering_cost: float = 0.0
    holding_cost_percent: float = 0.0
    max_workers: int = 4

    def __post_init__(self):
        """Validate configuration."""
        if not 0 < self.smoothing_alpha <= 1:
            raise InvalidParameters(
                "smoothing_alpha must be in (0, 1]",
                {"smoothing_alpha": self.smoothing_alpha},
            )
        if self.census_method not in (METHOD_EXPONENTIAL_SMOOTHING, METHOD_MOVING_AVERAGE):
            raise InvalidParameters(
                f"Unknown census method: {self.census_method}",
                {"allowed": [METHOD_EXPONENTIAL_SMOOTHING, METHOD_MOVING_AVERAGE]},
            )
        if self.moving_average_window < 1:
            raise InvalidParameters(
                "moving_average_window must be at least 1",
                {"moving_average_window": self.moving_average_window},
            )
        if not 0 < self.recency_penalty <= 1:
            raise InvalidParameters(
                "recency_penalty must be in (0, 1]",
                {"recency_penalty": self.recency_penalty},
            )
        if self.buffer_minutes < 0 or self.alert_window_days < 0 or self.recency_window_days < 0:
            raise InvalidParameters("Minute and day windows must be non-negative")
        if self.service_level not in SERVICE_LEVEL_Z_SCORES:
            raise InvalidParameters(
                f"Unsupported service level: {self.service_level}",
                {"supported": sorted(SERVICE_LEVEL_Z_SCORES)},
            )
        if self.round_orders_to_eoq and (self.ordering_cost <= 0 or self.holding_cost_percent <= 0):
            raise InvalidParameters(
                "round_orders_to_eoq requires positive ordering_cost and holding_cost_percent",
                {
                    "ordering_cost": self.ordering_cost,
                    "holding_cost_percent": self.holding_cost_percent,
                },
            )
        if self.max_workers < 1:
            raise InvalidParameters("max_workers must be at least 1", {"max_workers": self.max_workers})
