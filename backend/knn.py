import heapq
import itertools
from collections import Counter
from typing import Iterator, List, NamedTuple, Optional, Sequence

import numpy as np

from constants import WEIGHT_MODE_FEATURES, WEIGHT_MODE_LITERAL, WEIGHT_MODES
from dataset import Dataset, Instance


class Neighbor(NamedTuple):
    distance: float
    label: str


def weighted_squared_distance(a: Optional[Sequence[float]],
                              b: Optional[Sequence[float]],
                              weights: Optional[Sequence[float]]) -> float:
    """
    Weighted squared Euclidean distance: sum(w[i] * (a[i] - b[i]) ** 2).
    The square root is not taken since only the ordering of distances matters.

    Raises ValueError when a vector is missing or the three lengths differ.
    """
    if a is None or b is None or weights is None:
        raise ValueError("Feature vectors and weights must all be present")
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    w = np.asarray(weights, dtype=float)
    if not (a.shape == b.shape == w.shape):
        raise ValueError(
            f"Length mismatch: {a.size} and {b.size} features with {w.size} weights"
        )
    diff = a - b
    return float(np.dot(w, diff * diff))


class BoundedTopK:
    """
    Keeps the k candidates with the smallest distance seen so far in a max-heap
    bounded to k entries: every offer pushes, then the farthest is evicted once
    the heap grows past k. Equal distances keep the earlier offer.
    """

    def __init__(self, k: int):
        self.k = k
        self._heap: list = []
        self._counter = itertools.count()

    def offer(self, distance: float, label: str) -> None:
        # heapq is a min-heap; negating distance and order puts the farthest,
        # latest-offered candidate on top.
        seq = next(self._counter)
        heapq.heappush(self._heap, (-distance, -seq, label))
        while self._heap and len(self._heap) > self.k:
            heapq.heappop(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[Neighbor]:
        for neg_distance, _, label in self._heap:
            yield Neighbor(-neg_distance, label)

    def sorted(self) -> List[Neighbor]:
        """Retained neighbors, nearest first (ties in offer order)."""
        ordered = sorted(self._heap, key=lambda item: (-item[0], -item[1]))
        return [Neighbor(-neg_distance, label) for neg_distance, _, label in ordered]


class KNN:
    """
    k-nearest-neighbor classifier with majority vote under a weighted squared
    Euclidean distance. Every call scans the full training set.

    `weight_mode` selects the weight vector checked against the query:
      - 'literal': the full weight vector of the training set, whose last entry
        belongs to the class attribute. It must hold exactly one entry more than
        the query's feature vector, and its first n entries weight the n features.
        Qualitative non-class attributes still own a weight here, so their
        presence breaks the length check and every case is skipped.
      - 'features': only the weights of the numeric non-class attributes.
    """

    def __init__(self, k: int, weight_mode: str = WEIGHT_MODE_LITERAL):
        if weight_mode not in WEIGHT_MODES:
            raise ValueError(f"Unknown weight mode '{weight_mode}', expected one of {WEIGHT_MODES}")
        self.k = k
        self.weight_mode = weight_mode
        self.skipped = 0

    def _distance_weights(self, training: Dataset, n_features: int) -> Optional[List[float]]:
        """Weights used for the distance, or None when they do not fit the query."""
        if self.weight_mode == WEIGHT_MODE_FEATURES:
            weights = training.feature_weights()
            return weights if len(weights) == n_features else None
        weights = training.weights()
        if len(weights) - 1 != n_features:
            return None
        return weights[:n_features]

    def neighbors(self, training: Optional[Dataset], query: Optional[Instance]) -> List[Neighbor]:
        """The k nearest training cases to `query`, nearest first."""
        self.skipped = 0
        if training is None or training.n_cases == 0 or query is None:
            return []
        query_vector = query.feature_vector()
        if query_vector is None:
            return []

        weights = self._distance_weights(training, len(query_vector))
        selector = BoundedTopK(self.k)
        for case in training.instances():
            case_vector = case.feature_vector()
            if case_vector is None:
                continue
            if weights is None:
                self.skipped += 1
                continue
            try:
                distance = weighted_squared_distance(query_vector, case_vector, weights)
            except ValueError:
                self.skipped += 1
                continue
            selector.offer(distance, case.label)

        if self.skipped:
            print(f"Skipped {self.skipped} of {training.n_cases} training cases: weight vector "
                  f"({training.n_attributes} attributes) and query features ({len(query_vector)}) do not match.")
        return selector.sorted()

    def classify(self, training: Optional[Dataset], query: Optional[Instance]) -> Optional[str]:
        """
        Predict the class of `query` by majority vote among its k nearest training
        cases. Returns None when no neighbor could be found (missing or empty
        training set, missing query, k < 1, or every case skipped).
        Ties between labels go to the label whose first vote is nearest.
        """
        votes = Counter(neighbor.label for neighbor in self.neighbors(training, query))
        if not votes:
            return None
        return votes.most_common(1)[0][0]
