import math
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from dataset import Dataset
from utils import read_dataset_csv, write_dataset_csv


def check_fraction(train_fraction: float) -> float:
    """Reject training fractions outside [0, 1]; nothing is clamped."""
    if not 0.0 <= train_fraction <= 1.0:
        raise ValueError(f"Training fraction must lie between 0 and 1, got {train_fraction}")
    return train_fraction


def _train_size(dataset: Dataset, train_fraction: float) -> int:
    return int(math.floor(dataset.n_cases * train_fraction))


class Partition:
    """
    Disjoint training and test datasets drawn from one source, together with the
    class labels known for the pair.
    """

    def __init__(self, train: Dataset, test: Dataset, classes: Optional[List[str]] = None):
        self.train = train
        self.test = test
        self.classes = list(classes) if classes is not None else _merge_classes(train, test)

    def save(self, train_path: Union[str, Path], test_path: Union[str, Path]) -> None:
        write_dataset_csv(self.train, train_path)
        write_dataset_csv(self.test, test_path)

    @classmethod
    def load(cls, train_path: Union[str, Path], test_path: Union[str, Path]) -> 'Partition':
        """
        Read a partition written by `save`. Weights and the preprocessing marker are
        not stored in the CSV files, so both come back at their defaults.
        """
        train = read_dataset_csv(train_path)
        test = read_dataset_csv(test_path)
        return cls(train, test)

    def __repr__(self) -> str:
        return f"Partition(train={self.train.n_cases}, test={self.test.n_cases}, classes={self.classes})"


def _merge_classes(train: Dataset, test: Dataset) -> List[str]:
    merged = train.classes() if train.attributes else []
    for label in test.classes() if test.attributes else []:
        if label not in merged:
            merged.append(label)
    return merged


def sequential_split(dataset: Dataset, train_fraction: float) -> Partition:
    """The first floor(n * train_fraction) cases train, the rest test, order kept."""
    train = dataset.empty_copy()
    test = dataset.empty_copy()
    cut = _train_size(dataset, train_fraction)
    for index, instance in enumerate(dataset.instances()):
        (train if index < cut else test).add(instance)
    return Partition(train, test, dataset.classes())


def random_split(dataset: Dataset, train_fraction: float, seed: int) -> Partition:
    """
    Sample floor(n * train_fraction) distinct rows for training by drawing
    uniform indices from a seeded generator and rejecting repeats. Training rows
    keep the draw order; the remaining rows go to test in their original order.
    """
    n_cases = dataset.n_cases
    target = _train_size(dataset, train_fraction)
    if target > n_cases:
        raise ValueError(f"Cannot draw {target} distinct training rows from {n_cases} cases")

    rng = np.random.default_rng(seed)
    chosen: List[int] = []
    seen = set()
    while len(chosen) < target:
        index = int(rng.integers(n_cases))
        if index not in seen:
            seen.add(index)
            chosen.append(index)

    train = dataset.empty_copy()
    test = dataset.empty_copy()
    for index in chosen:
        train.add(dataset.instance(index))
    for index in range(n_cases):
        if index not in seen:
            test.add(dataset.instance(index))
    return Partition(train, test, dataset.classes())
