"""Confusion matrix and classification metrics for category predictions."""

import numpy as np
import pandas as pd


def compute_label_metrics(counts: np.ndarray, label: int) -> dict[str, float]:
    """Compute precision, recall, F1 for a single category label.

    Args:
        counts: Square confusion counts (rows = actual, columns = predicted)
        label: Which label to evaluate

    Returns:
        Dictionary with precision, recall, f1, count
    """
    true_positive = counts[label, label]
    false_positive = counts[:, label].sum() - true_positive
    false_negative = counts[label, :].sum() - true_positive

    precision = (
        true_positive / (true_positive + false_positive)
        if (true_positive + false_positive) > 0
        else 0.0
    )
    recall = (
        true_positive / (true_positive + false_negative)
        if (true_positive + false_negative) > 0
        else 0.0
    )
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0

    return {
        f"{label}_precision": float(precision),
        f"{label}_recall": float(recall),
        f"{label}_f1": float(f1),
        f"{label}_count": int(counts[label, :].sum()),
        f"{label}_predicted_count": int(counts[:, label].sum()),
    }


class ConfusionMatrix:
    """Counts of (actual, predicted) category pairs.

    Matrices built independently (e.g. one per station) can be merged with
    ``merge`` or ``+``.
    """

    def __init__(self, num_categories: int):
        if num_categories < 1:
            raise ValueError(f"num_categories must be positive, got {num_categories}")
        self.num_categories = num_categories
        self.counts = np.zeros((num_categories, num_categories), dtype=np.int64)

    def _check_label(self, label: int) -> int:
        if not 0 <= label < self.num_categories:
            raise ValueError(f"Label {label} outside [0, {self.num_categories - 1}]")
        return int(label)

    def add_instance(self, actual: int, predicted: int) -> None:
        """Count one prediction of ``predicted`` where ``actual`` happened."""
        self.counts[self._check_label(actual), self._check_label(predicted)] += 1

    def merge(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        """Return a new matrix holding the counts of both matrices."""
        if other.num_categories != self.num_categories:
            raise ValueError(
                f"Cannot merge {self.num_categories}- and {other.num_categories}-category matrices"
            )
        merged = ConfusionMatrix(self.num_categories)
        merged.counts = self.counts + other.counts
        return merged

    def __add__(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        return self.merge(other)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def accuracy(self) -> float:
        """Share of instances on the diagonal (0.0 when empty)."""
        total = self.total
        return float(np.trace(self.counts) / total) if total > 0 else 0.0

    def class_metrics(self) -> dict[str, float]:
        metrics = {}
        for label in range(self.num_categories):
            metrics.update(compute_label_metrics(self.counts, label))
        return metrics

    def to_frame(self) -> pd.DataFrame:
        labels = list(range(self.num_categories))
        frame = pd.DataFrame(self.counts, index=labels, columns=labels)
        frame.index.name = "actual"
        frame.columns.name = "predicted"
        return frame

    def summary(self) -> dict:
        """Metrics dictionary for saving to JSON."""
        return {
            "accuracy": self.accuracy(),
            "n_instances": self.total,
            **self.class_metrics(),
            "matrix": self.counts.tolist(),
        }

    def __str__(self) -> str:
        return self.to_frame().to_string()

    def __repr__(self) -> str:
        return f"ConfusionMatrix(num_categories={self.num_categories}, total={self.total})"


def format_report(name: str, matrix: ConfusionMatrix | None) -> str:
    """Human-readable report: predictor name, matrix dump and accuracy."""
    lines = [f"{name}:"]
    if matrix is None:
        lines.append("Cannot print the confusion matrix info")
    else:
        lines.append(str(matrix))
        lines.append(f"Accuracy: {matrix.accuracy():.4f} ({matrix.total:,} instances)")
    return "\n".join(lines)
