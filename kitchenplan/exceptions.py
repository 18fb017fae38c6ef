"""Error taxonomy for the operations planning pipeline.

Only configuration and programmer errors are raised. Operational shortfalls
(thin history, stockouts, equipment clashes) are returned as result data:

- insufficient history: ``method == "insufficient_history"`` on a forecast
- partial fulfillment: ``IssueResult.fulfilled is False``
- equipment conflicts: ``ProductionSchedule.conflicts``
"""

from typing import Any, Dict, Optional


class KitchenPlanError(Exception):
    """Base exception carrying optional context for error messages."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with context."""
        msg = self.message
        if self.context:
            msg += "\n\nContext:"
            for key, value in self.context.items():
                msg += f"\n  {key}: {value}"
        return msg


class InvalidCycleConfiguration(KitchenPlanError):
    """Cycle menu cannot be resolved (non-positive cycle length)."""


class InvalidParameters(KitchenPlanError):
    """Zero or negative denominator in par-level / EOQ math, or bad config."""


class UnconvertibleUnits(KitchenPlanError):
    """No path between two units in the conversion graph."""


class RecordNotFound(KitchenPlanError):
    """A required reference record is missing from its repository."""
