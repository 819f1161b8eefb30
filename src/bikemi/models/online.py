"""Online logistic regression predictor.

Each station gets its own multinomial logistic regression, trained one
example at a time with stochastic gradient descent and L2 regularization.
An example pairs the features of bin k with the category observed at bin
k + horizon.
"""

from typing import Any, Dict, List, Tuple

import numpy as np
from tqdm import tqdm

from .base import BasePredictor, NO_PREDICTION
from ..binning.bins import BinAggregate
from ..evaluation.chronology import lookahead

N_FEATURES = 3


class OnlineLogisticRegression:
    """Multinomial logistic regression updated one example at a time.

    The learning rate anneals as ``learning_rate / (1 + t) ** decay_exponent``
    with t the number of updates so far. A bias term is added to the features.
    """

    def __init__(
        self,
        num_categories: int,
        num_features: int,
        learning_rate: float = 0.1,
        decay_exponent: float = 0.5,
        l2: float = 1e-4,
    ):
        self.num_categories = num_categories
        self.num_features = num_features
        self.learning_rate = learning_rate
        self.decay_exponent = decay_exponent
        self.l2 = l2

        self.weights = np.zeros((num_categories, num_features + 1))
        self.n_updates = 0

    def _with_bias(self, features) -> np.ndarray:
        features = np.asarray(features, dtype=float)
        if features.shape != (self.num_features,):
            raise ValueError(f"Expected {self.num_features} features, got shape {features.shape}")
        return np.concatenate(([1.0], features))

    def predict_distribution(self, features) -> np.ndarray:
        """Probability of every category for a feature vector."""
        scores = self.weights @ self._with_bias(features)
        scores -= scores.max()
        exp_scores = np.exp(scores)
        return exp_scores / exp_scores.sum()

    def train(self, label: int, features) -> None:
        """One gradient step on a single (label, features) example."""
        if not 0 <= label < self.num_categories:
            raise ValueError(f"Label {label} outside [0, {self.num_categories - 1}]")

        x = self._with_bias(features)
        target = np.zeros(self.num_categories)
        target[label] = 1.0

        error = target - self.predict_distribution(features)
        rate = self.learning_rate / (1 + self.n_updates) ** self.decay_exponent

        penalty = self.l2 * self.weights
        penalty[:, 0] = 0.0  # bias is not regularized

        self.weights += rate * (np.outer(error, x) - penalty)
        self.n_updates += 1

    def classify(self, features) -> int:
        return int(np.argmax(self.predict_distribution(features)))


class OnlineClassifierPredictor(BasePredictor):
    """Per-station online logistic regression on [bin of day, average, size]."""

    name = "Online Logistic Regression Predictor"
    requires_training = True

    def __init__(self, config: dict):
        super().__init__(config)

        model_config = config.get("model", {}).get("online_lr", {})
        self.learning_rate = model_config.get("learning_rate", 0.1)
        self.decay_exponent = model_config.get("decay_exponent", 0.5)
        self.l2 = model_config.get("l2", 1e-4)
        self.epochs = model_config.get("epochs", 1)

        self.models: Dict[int, OnlineLogisticRegression] = {}

    def features(self, agg: BinAggregate) -> np.ndarray:
        """Feature vector of a bin (training bins are reduced to the bin of the day)."""
        return np.array(
            [agg.bin_id % self.bins_per_day, agg.average, agg.station_size],
            dtype=float,
        )

    def training_pairs(self, series: List[BinAggregate]) -> List[Tuple[int, np.ndarray]]:
        """(label at k + horizon, features at k) for every k whose target bin exists."""
        pairs = []
        for k in range(len(series) - self.horizon):
            target = lookahead(series, k, self.horizon)
            if target is None:
                continue
            pairs.append((target.category_label, self.features(series[k])))
        return pairs

    def fit(
        self,
        train: Dict[int, List[BinAggregate]],
        verbose: bool = False,
    ) -> "BasePredictor":
        """Train one regression per station."""
        if verbose:
            print(f"Fitting {self.get_name()} on {len(train)} stations ({self.epochs} epoch(s))...")

        self.models = {}
        n_examples = 0

        for station_id, series in tqdm(train.items(), desc="Training regressions", disable=not verbose):
            pairs = self.training_pairs(series)
            if not pairs:
                continue

            model = OnlineLogisticRegression(
                self.num_categories,
                N_FEATURES,
                learning_rate=self.learning_rate,
                decay_exponent=self.decay_exponent,
                l2=self.l2,
            )
            for _ in range(self.epochs):
                for label, features in pairs:
                    model.train(label, features)

            self.models[station_id] = model
            n_examples += len(pairs)

        self.is_fitted = True

        if verbose:
            print(f"  Trained {len(self.models)} regressions on {n_examples:,} examples")

        return self

    def classify(self, agg: BinAggregate) -> int:
        model = self.models.get(agg.station_id)
        if model is None:
            return NO_PREDICTION
        return model.classify(self.features(agg))

    def get_params(self) -> Dict[str, Any]:
        params = super().get_params()
        params.update(
            {
                "n_stations": len(self.models),
                "learning_rate": self.learning_rate,
                "decay_exponent": self.decay_exponent,
                "l2": self.l2,
                "epochs": self.epochs,
            }
        )
        return params
