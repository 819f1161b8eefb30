"""Evaluation framework for BikeMi availability predictors."""

from .chronology import ChronologicalIndex, lookahead
from .metrics import ConfusionMatrix, compute_label_metrics, format_report
from .runner import performance_report, run_evaluation

__all__ = [
    "ChronologicalIndex",
    "lookahead",
    "ConfusionMatrix",
    "compute_label_metrics",
    "format_report",
    "run_evaluation",
    "performance_report",
]
