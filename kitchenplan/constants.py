"""Centralized constants for the operations planning pipeline.

This module contains the named constants used across the menu, forecasting,
inventory and production stages. Centralizing these values keeps the
defaults in :class:`kitchenplan.config.PlanningConfig` and the calculators
consistent.
"""

# ============================================================================
# CALENDAR
# ============================================================================

#: Days in a cycle-menu week
DAYS_PER_WEEK = 7

#: Weekday labels indexed by ``date.weekday()`` (Monday == 0)
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


# ============================================================================
# FORECASTING
# ============================================================================

#: Smoothing constant for single exponential smoothing of census history
DEFAULT_SMOOTHING_ALPHA = 0.3

#: Window (observations) for the moving-average census method
DEFAULT_MOVING_AVERAGE_WINDOW = 7

#: z-value for the 95% Gaussian confidence interval around a census forecast
CONFIDENCE_INTERVAL_Z = 1.96

#: Minimum observations before a forecast is anything but a degraded result
MIN_HISTORY_OBSERVATIONS = 2

#: History length (observations) at which the sample-size confidence term saturates
FULL_CONFIDENCE_OBSERVATIONS = 28

#: Multiplier applied to the first-listed item within a menu category
FIRST_POSITION_MULTIPLIER = 1.15

#: Discount applied to items served again within the cool-down window
DEFAULT_RECENCY_PENALTY = 0.85

#: Cool-down window (days) for the recency penalty
DEFAULT_RECENCY_WINDOW_DAYS = 3

#: Method labels written to forecast records
METHOD_EXPONENTIAL_SMOOTHING = "exponential_smoothing"
METHOD_MOVING_AVERAGE = "moving_average"
METHOD_ITEM_SELECTION = "selection_rate"
METHOD_INSUFFICIENT_HISTORY = "insufficient_history"


# ============================================================================
# INVENTORY
# ============================================================================

#: z-scores by service level for safety stock
SERVICE_LEVEL_Z_SCORES = {
    0.80: 0.842,
    0.85: 1.036,
    0.90: 1.282,
    0.95: 1.645,
    0.975: 1.960,
    0.98: 2.054,
    0.99: 2.326,
}

#: Default service level for par-level calculation
DEFAULT_SERVICE_LEVEL = 0.95

#: Coefficient of variation above which usage is flagged as highly variable
HIGH_VARIABILITY_THRESHOLD = 0.3

#: Expiration alert window (days)
DEFAULT_ALERT_WINDOW_DAYS = 7

#: Storage location assigned on receipt, by ingredient storage type
DEFAULT_STORAGE_LOCATIONS = {
    "Dry": "Dry Storage",
    "Refrigerated": "Walk-in Cooler",
    "Frozen": "Walk-in Freezer",
}

#: Working days per year used to annualize daily usage for EOQ
DAYS_PER_YEAR = 365

#: Quantities at or below this are treated as zero (lot removal, fulfillment)
QUANTITY_TOLERANCE = 1e-9


# ============================================================================
# PRODUCTION
# ============================================================================

#: Minutes between a task's ready time and the start of service
DEFAULT_BUFFER_MINUTES = 15


# ============================================================================
# RECIPES
# ============================================================================

#: Kitchen fractions used for practical measurement rounding
PRACTICAL_FRACTIONS = (0.0, 1 / 4, 1 / 3, 1 / 2, 2 / 3, 3 / 4, 1.0)

#: Scale factor above which seasonings get a manual-adjustment warning
SEASONING_WARNING_FACTOR = 4.0
