"""Simple naive baseline predictor for comparison."""

from .base import BasePredictor
from ..binning.bins import BinAggregate


class LastValuePredictor(BasePredictor):
    """Last value (persistence) baseline - predicts the category stays constant.

    category[t+pw] = category[t]

    This is the simplest possible baseline. Any useful predictor should beat this.
    """

    name = "Last Value Predictor"

    def classify(self, agg: BinAggregate) -> int:
        return agg.category_label
