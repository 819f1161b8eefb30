"""Predictors for BikeMi station availability."""

from functools import partial

from .base import NO_PREDICTION, BasePredictor
from .historic import (
    HISTORIC_MEAN,
    HISTORIC_TREND,
    HistoricPredictor,
    HistoricRule,
    HistoricTable,
)
from .naive import LastValuePredictor
from .online import OnlineClassifierPredictor, OnlineLogisticRegression

__all__ = [
    "NO_PREDICTION",
    "BasePredictor",
    "LastValuePredictor",
    "HistoricPredictor",
    "HistoricRule",
    "HistoricTable",
    "HISTORIC_MEAN",
    "HISTORIC_TREND",
    "OnlineClassifierPredictor",
    "OnlineLogisticRegression",
    "get_predictor",
]


def get_predictor(name: str, config: dict) -> BasePredictor:
    """Factory function to get predictor by name.

    Args:
        name: Predictor name
        config: Configuration dictionary

    Returns:
        Predictor instance

    Available predictors:
        - "last_value": Predicts the category stays constant
        - "historic_mean": Mean daily profile at the forecast bin
        - "historic_trend": Current level plus the typical change over the horizon
        - "online_lr": Per-station online logistic regression
    """
    predictors = {
        "last_value": LastValuePredictor,
        "historic_mean": partial(HistoricPredictor, rule=HISTORIC_MEAN),
        "historic_trend": partial(HistoricPredictor, rule=HISTORIC_TREND),
        "online_lr": OnlineClassifierPredictor,
    }

    if name not in predictors:
        raise ValueError(f"Unknown predictor: {name}. Available: {list(predictors.keys())}")

    return predictors[name](config)
