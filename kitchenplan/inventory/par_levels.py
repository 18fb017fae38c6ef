"""
Par levels, reorder points and economic order quantity.

    safety_stock  = z(service_level) x sigma x sqrt(lead_time_days)
    reorder_point = mean x lead_time_days + safety_stock
    par_level     = reorder_point + mean x delivery_frequency_days
    EOQ           = sqrt(2 x annual_demand x ordering_cost / holding_cost_per_unit)

Mean and sigma are the sample mean and standard deviation of a daily usage
window. Zero denominators raise ``InvalidParameters`` instead of producing
NaN or infinity.
"""

from typing import Optional, Sequence
import logging
import math

import numpy as np

from ..constants import (
    DEFAULT_SERVICE_LEVEL,
    HIGH_VARIABILITY_THRESHOLD,
    SERVICE_LEVEL_Z_SCORES,
)
from ..exceptions import InvalidParameters
from ..models.inventory import EOQResult, ParLevelCalculation

logger = logging.getLogger(__name__)


def z_score(service_level: float) -> float:
    """
    z-value for a service level.

    Raises:
        InvalidParameters: If the service level is not tabulated
    """
    try:
        return SERVICE_LEVEL_Z_SCORES[service_level]
    except KeyError:
        raise InvalidParameters(
            f"Unsupported service level: {service_level}",
            {"supported": sorted(SERVICE_LEVEL_Z_SCORES)},
        ) from None


class ParLevelCalculator:
    """Derives par level and reorder point from usage history."""

    def __init__(self, high_variability_threshold: float = HIGH_VARIABILITY_THRESHOLD):
        self.high_variability_threshold = high_variability_threshold

    def calculate(
        self,
        usage_history: Sequence[float],
        lead_time_days: float,
        delivery_frequency_days: float,
        service_level: float = DEFAULT_SERVICE_LEVEL,
    ) -> ParLevelCalculation:
        """
        Calculate par level for one ingredient.

        Args:
            usage_history: Daily usage quantities
            lead_time_days: Days from order to delivery
            delivery_frequency_days: Days between deliveries
            service_level: Target probability of not stocking out

        Returns:
            ParLevelCalculation

        Raises:
            InvalidParameters: If mean usage is not positive, timings are
                negative or the service level is unsupported
        """
        if lead_time_days < 0 or delivery_frequency_days < 0:
            raise InvalidParameters(
                "Lead time and delivery frequency must be non-negative",
                {"lead_time_days": lead_time_days, "delivery_frequency_days": delivery_frequency_days},
            )
        usage = np.asarray(usage_history, dtype=float)
        mean = float(usage.mean()) if usage.size else 0.0
        if mean <= 0:
            raise InvalidParameters(
                "Average daily usage must be positive",
                {"observations": int(usage.size), "avg_daily_usage": mean},
            )

        std_dev = float(usage.std(ddof=1)) if usage.size > 1 else 0.0
        z = z_score(service_level)
        safety_stock = z * std_dev * math.sqrt(lead_time_days)
        reorder_point = mean * lead_time_days + safety_stock
        par_level = reorder_point + mean * delivery_frequency_days
        cv = std_dev / mean
        high_variability = cv > self.high_variability_threshold

        if high_variability:
            logger.warning(f"High usage variability (CV={cv:.2f}); par level may need manual review")

        return ParLevelCalculation(
            avg_daily_usage=mean,
            std_dev=std_dev,
            lead_time_days=lead_time_days,
            delivery_frequency_days=delivery_frequency_days,
            service_level=service_level,
            z_score=z,
            safety_stock=safety_stock,
            reorder_point=reorder_point,
            par_level=par_level,
            coefficient_of_variation=cv,
            high_variability=high_variability,
        )


def eoq(
    annual_demand: float,
    ordering_cost: float,
    holding_cost_percent: Optional[float] = None,
    unit_cost: Optional[float] = None,
    holding_cost_per_unit: Optional[float] = None,
) -> EOQResult:
    """
    Economic order quantity.

    Holding cost is either given directly (``holding_cost_per_unit``) or as
    ``holding_cost_percent`` of ``unit_cost`` per year.

    Example:
        eoq(1200, 50, 0.2, 10).optimal_order_quantity   # 244.9

    Raises:
        InvalidParameters: If the holding cost is not positive or inputs are negative
    """
    if holding_cost_per_unit is None:
        if holding_cost_percent is None or unit_cost is None:
            raise InvalidParameters(
                "Provide holding_cost_per_unit or both holding_cost_percent and unit_cost"
            )
        holding_cost_per_unit = holding_cost_percent * unit_cost

    if holding_cost_per_unit <= 0:
        raise InvalidParameters(
            "Holding cost per unit must be positive",
            {"holding_cost_per_unit": holding_cost_per_unit},
        )
    if annual_demand < 0 or ordering_cost < 0:
        raise InvalidParameters(
            "Annual demand and ordering cost must be non-negative",
            {"annual_demand": annual_demand, "ordering_cost": ordering_cost},
        )

    quantity = math.sqrt(2 * annual_demand * ordering_cost / holding_cost_per_unit)
    orders_per_year = annual_demand / quantity if quantity > 0 else 0.0
    average_inventory = quantity / 2
    annual_ordering_cost = orders_per_year * ordering_cost
    annual_holding_cost = average_inventory * holding_cost_per_unit

    return EOQResult(
        annual_demand=annual_demand,
        ordering_cost=ordering_cost,
        holding_cost_per_unit=holding_cost_per_unit,
        optimal_order_quantity=quantity,
        orders_per_year=orders_per_year,
        average_inventory=average_inventory,
        annual_ordering_cost=annual_ordering_cost,
        annual_holding_cost=annual_holding_cost,
        total_annual_cost=annual_ordering_cost + annual_holding_cost,
    )
