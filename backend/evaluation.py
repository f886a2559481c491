import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from constants import WEIGHT_MODE_LITERAL
from knn import KNN
from partition import Partition

REPORT_SEPARATOR = "-------------------------"


class ClassMetrics:
    """Confusion counts and derived metrics for one class treated as positive."""

    def __init__(self, tp: int = 0, fp: int = 0, fn: int = 0):
        self.tp = tp
        self.fp = fp
        self.fn = fn

    @property
    def support(self) -> int:
        return self.tp + self.fn

    @property
    def precision(self) -> float:
        return self.tp / (self.tp + self.fp) if self.tp + self.fp else 0.0

    @property
    def recall(self) -> float:
        return self.tp / (self.tp + self.fn) if self.tp + self.fn else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        if p == 0 or r == 0:
            return 0.0
        return 2 * p * r / (p + r)

    def to_dict(self) -> dict:
        return {
            'precision': self.precision,
            'recall': self.recall,
            'f1': self.f1,
            'support': self.support,
            'tp': self.tp,
            'fp': self.fp,
            'fn': self.fn,
        }


def count_per_class(actual: Sequence[str], predicted: Sequence[Optional[str]],
                    labels: Sequence[str]) -> Dict[str, ClassMetrics]:
    """
    TP/FP/FN per known label. A missing prediction (None) is a false negative for
    the actual class and a false positive for nobody.
    """
    counts = {label: ClassMetrics() for label in labels}
    for real, guess in zip(actual, predicted):
        for label, metrics in counts.items():
            if real == label and guess == label:
                metrics.tp += 1
            elif real != label and guess == label:
                metrics.fp += 1
            elif real == label and guess != label:
                metrics.fn += 1
    return counts


def macro_average(per_class: Dict[str, ClassMetrics]) -> Tuple[float, float, float]:
    """Unweighted mean of precision, recall and F1 over the classes."""
    if not per_class:
        return math.nan, math.nan, math.nan
    metrics = per_class.values()
    return (
        float(np.mean([m.precision for m in metrics])),
        float(np.mean([m.recall for m in metrics])),
        float(np.mean([m.f1 for m in metrics])),
    )


def weighted_average(per_class: Dict[str, ClassMetrics]) -> Tuple[float, float, float]:
    """Support-weighted mean of precision, recall and F1; zeros when there is no support."""
    total = sum(m.support for m in per_class.values())
    if total == 0:
        return 0.0, 0.0, 0.0
    precision = sum(m.precision * m.support for m in per_class.values()) / total
    recall = sum(m.recall * m.support for m in per_class.values()) / total
    f1 = sum(m.f1 * m.support for m in per_class.values()) / total
    return precision, recall, f1


class ClassificationReport:

    def __init__(self, actual: List[str], predicted: List[Optional[str]], labels: List[str]):
        self.actual = actual
        self.predicted = predicted
        self.labels = list(labels)
        self.total = len(actual)
        self.correct = sum(1 for a, p in zip(actual, predicted) if p is not None and p == a)
        self.accuracy = self.correct / self.total if self.total else math.nan
        self.per_class = count_per_class(actual, predicted, self.labels)
        self.macro = macro_average(self.per_class)
        self.weighted = weighted_average(self.per_class)

    def to_dict(self) -> dict:
        return {
            'accuracy': self.accuracy,
            'correct': self.correct,
            'total': self.total,
            'per_class': {label: m.to_dict() for label, m in self.per_class.items()},
            'macro_avg': dict(zip(('precision', 'recall', 'f1'), self.macro)),
            'weighted_avg': dict(zip(('precision', 'recall', 'f1'), self.weighted)),
        }

    def to_text(self) -> str:
        lines = [
            f"Accuracy: {self.correct} / {self.total} = {self.accuracy * 100:.2f}%",
            "",
            "Classification report:",
            REPORT_SEPARATOR,
        ]
        for label, m in self.per_class.items():
            lines.append(
                f"Class {label}: precision = {m.precision * 100:.2f}%, recall = {m.recall * 100:.2f}%, "
                f"F1-score = {m.f1 * 100:.2f}%, support = {m.support}"
            )
        lines.append(REPORT_SEPARATOR)
        for name, values in (('Macro average', self.macro), ('Weighted average', self.weighted)):
            p, r, f = values
            lines.append(f"{name}: precision = {p * 100:.2f}%, recall = {r * 100:.2f}%, F1-score = {f * 100:.2f}%")
        lines.append(REPORT_SEPARATOR)
        return "\n".join(lines)


class ConfusionMatrix:
    """Counts indexed [actual][predicted] in the order of `labels`."""

    def __init__(self, labels: List[str]):
        self.labels = list(labels)
        self._index = {label: i for i, label in enumerate(self.labels)}
        self.matrix = np.zeros((len(self.labels), len(self.labels)), dtype=int)
        self.unclassified = 0

    def add(self, actual: str, predicted: Optional[str]) -> None:
        # Missing predictions and unknown labels have no cell.
        if predicted not in self._index or actual not in self._index:
            self.unclassified += 1
            return
        self.matrix[self._index[actual], self._index[predicted]] += 1

    def get(self, actual: str, predicted: str) -> int:
        return int(self.matrix[self._index[actual], self._index[predicted]])

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.matrix, index=self.labels, columns=self.labels)

    def to_dict(self) -> dict:
        return {
            'labels': self.labels,
            'matrix': self.matrix.tolist(),
            'unclassified': self.unclassified,
        }


class Evaluation:
    """
    Runs the k-NN classifier over every test case of a partition, using the
    training side as reference. Each entry point classifies the test set again.
    """

    def __init__(self, partition: Partition, weight_mode: str = WEIGHT_MODE_LITERAL):
        self.partition = partition
        self.weight_mode = weight_mode

    def _classifier(self, k: int) -> KNN:
        if k < 1:
            raise ValueError(f"k must be a positive integer, got {k}")
        return KNN(k, weight_mode=self.weight_mode)

    def predictions(self, k: int) -> Tuple[List[str], List[Optional[str]]]:
        """Return (actual, predicted) labels for the test set, in test order."""
        knn = self._classifier(k)
        train = self.partition.train
        actual, predicted = [], []
        for case in self.partition.test.instances():
            predicted.append(knn.classify(train, case.without_label()))
            actual.append(case.label)
        return actual, predicted

    def classification_report(self, k: int) -> ClassificationReport:
        actual, predicted = self.predictions(k)
        return ClassificationReport(actual, predicted, self.partition.classes)

    def confusion_matrix(self, k: int) -> ConfusionMatrix:
        knn = self._classifier(k)
        confusion = ConfusionMatrix(self.partition.classes)
        for case in self.partition.test.instances():
            confusion.add(case.label, knn.classify(self.partition.train, case.without_label()))
        return confusion
