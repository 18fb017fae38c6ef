"""Planning workflows."""

from .pipeline import (
    PlanningPipeline,
    PipelineResult,
    BatchResult,
    MealPeriodForecast,
    category_positions,
)

__all__ = [
    'PlanningPipeline',
    'PipelineResult',
    'BatchResult',
    'MealPeriodForecast',
    'category_positions',
]
