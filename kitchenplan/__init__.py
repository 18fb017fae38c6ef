"""Food-service operations planning: menus, forecasts, production and inventory."""

from .config import PlanningConfig
from .exceptions import (
    KitchenPlanError,
    InvalidCycleConfiguration,
    InvalidParameters,
    UnconvertibleUnits,
    RecordNotFound,
)
from .workflows import PlanningPipeline, PipelineResult, BatchResult

__version__ = "0.1.0"

__all__ = [
    "PlanningConfig",
    "KitchenPlanError",
    "InvalidCycleConfiguration",
    "InvalidParameters",
    "UnconvertibleUnits",
    "RecordNotFound",
    "PlanningPipeline",
    "PipelineResult",
    "BatchResult",
]
