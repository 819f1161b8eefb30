"""BikeMi Station Availability Prediction Package.

This package bins raw bike-sharing dock observations into fixed time bins
per station and forecasts the availability category of each station a few
bins ahead.

Modules:
    binning: Bin arithmetic and aggregation of raw observations
    models: Predictors (last value, historic mean/trend, online regression)
    evaluation: Chronological split, confusion matrix and evaluation loop
    utils: Data loading and helper functions
"""

from bikemi.binning import (
    BinAggregate,
    BinAggregator,
    BinningSettings,
    get_reducer,
)
from bikemi.evaluation import (
    ChronologicalIndex,
    ConfusionMatrix,
    performance_report,
    run_evaluation,
)
from bikemi.models import (
    BasePredictor,
    HistoricPredictor,
    LastValuePredictor,
    OnlineClassifierPredictor,
    get_predictor,
)
from bikemi.utils import (
    load_bins,
    load_config,
    load_observations,
    write_bins,
)

__version__ = "0.1.0"

__all__ = [
    # Binning
    "BinAggregate",
    "BinAggregator",
    "BinningSettings",
    "get_reducer",
    # Models
    "BasePredictor",
    "HistoricPredictor",
    "LastValuePredictor",
    "OnlineClassifierPredictor",
    "get_predictor",
    # Evaluation
    "ChronologicalIndex",
    "ConfusionMatrix",
    "performance_report",
    "run_evaluation",
    # Utils
    "load_bins",
    "load_config",
    "load_observations",
    "write_bins",
]
