"""Census and menu-item demand forecasting."""

from .census import CensusForecaster, day_of_week_index, history_to_series
from .item_selection import ItemForecaster
from .accuracy import ForecastAccuracy, forecast_accuracy, record_actual, to_record

__all__ = [
    'CensusForecaster',
    'ItemForecaster',
    'ForecastAccuracy',
    'day_of_week_index',
    'history_to_series',
    'forecast_accuracy',
    'record_actual',
    'to_record',
]
