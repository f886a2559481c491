from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import mlflow
import numpy as np
import pandas as pd

from constants import (
    DEFAULT_K,
    DEFAULT_SEED,
    DEFAULT_TRAIN_FRACTION,
    DEFAULT_WEIGHT_MODE,
    PREPROCESSING_RAW,
)
from dataset import Dataset, Instance
from evaluation import ClassificationReport, ConfusionMatrix, Evaluation
from knn import KNN
from partition import Partition, check_fraction, random_split, sequential_split
from preprocessing import apply_scalers, fit_scalers


class KNNModel:
    """
    Wrapper around preprocessing, train/test partitioning, k-NN evaluation and
    MLflow logging for a labeled CSV dataset.
    """

    def __init__(self, k: int = DEFAULT_K, weight_mode: str = DEFAULT_WEIGHT_MODE,
                 preprocessing: int = PREPROCESSING_RAW):
        if k < 1:
            raise ValueError(f"k must be a positive integer, got {k}")
        self.k = k
        self.weight_mode = weight_mode
        self.preprocessing = preprocessing

        # Populated by preprocessing_pipeline / split
        self.raw_dataset: Optional[Dataset] = None
        self.dataset: Optional[Dataset] = None
        self.scaler_dict: Dict[str, object] = {}
        self.partition: Optional[Partition] = None

    # ------------------------------------------------------------------
    # Preprocessing
    # ------------------------------------------------------------------
    def preprocessing_pipeline(self, df: pd.DataFrame,
                               weights: Optional[Sequence[Union[str, float]]] = None) -> Dataset:
        """
        Convert `df` into a Dataset, apply attribute weights and the configured
        preprocessing. The fitted scalers are kept to transform inference rows.
        """
        if df.shape[1] < 2:
            raise ValueError("Training data needs at least one feature column and a class column")

        raw = Dataset.from_dataframe(df.astype(str), preprocessing=PREPROCESSING_RAW)
        raw.class_attribute()
        if weights is not None:
            raw.set_weights(weights)

        self.raw_dataset = raw
        self.scaler_dict = fit_scalers(raw, self.preprocessing)
        self.dataset = apply_scalers(raw, self.scaler_dict, self.preprocessing)
        self.partition = None
        return self.dataset

    # ------------------------------------------------------------------
    # Partitioning and evaluation
    # ------------------------------------------------------------------
    def split(self, train_fraction: float = DEFAULT_TRAIN_FRACTION,
              seed: Optional[int] = DEFAULT_SEED) -> Partition:
        """Random split when `seed` is given, sequential cut otherwise."""
        if self.dataset is None:
            raise RuntimeError("No dataset loaded. Run preprocessing_pipeline first.")
        check_fraction(train_fraction)
        if seed is None:
            self.partition = sequential_split(self.dataset, train_fraction)
        else:
            self.partition = random_split(self.dataset, train_fraction, seed)
        print(f"Partition: {self.partition.train.n_cases} train / {self.partition.test.n_cases} test cases")
        return self.partition

    def evaluate(self) -> Tuple[ClassificationReport, ConfusionMatrix]:
        if self.partition is None:
            raise RuntimeError("No partition available. Run split first.")
        evaluation = Evaluation(self.partition, weight_mode=self.weight_mode)
        report = evaluation.classification_report(self.k)
        confusion = evaluation.confusion_matrix(self.k)

        print(report.to_text())
        print(self.partition.classes)
        print(confusion.to_dataframe())

        if mlflow.active_run() is not None:
            self.log_evaluation(report, confusion)
        return report, confusion

    def log_evaluation(self, report: ClassificationReport, confusion: ConfusionMatrix) -> None:
        mlflow.log_params({
            'k': self.k,
            'weight_mode': self.weight_mode,
            'preprocessing': self.preprocessing,
            'train_cases': self.partition.train.n_cases,
            'test_cases': self.partition.test.n_cases,
        })
        metrics = {
            'macro_precision': report.macro[0],
            'macro_recall': report.macro[1],
            'macro_f1': report.macro[2],
            'weighted_precision': report.weighted[0],
            'weighted_recall': report.weighted[1],
            'weighted_f1': report.weighted[2],
        }
        if report.total:
            metrics['accuracy'] = report.accuracy
        mlflow.log_metrics({name: float(value) for name, value in metrics.items() if np.isfinite(value)})
        mlflow.log_dict(report.to_dict(), "classification_report.json")
        mlflow.log_dict(confusion.to_dict(), "confusion_matrix.json")

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def preprocessing_pipeline_inference(self, sample_row: List) -> Instance:
        """
        Prepare a single row of feature values, in attribute order without the
        class, using the scalers fitted on the dataset.
        """
        if self.raw_dataset is None:
            raise RuntimeError("No dataset loaded. Run preprocessing_pipeline first.")
        features = self.raw_dataset.attributes[:-1]
        if len(sample_row) != len(features):
            raise ValueError(
                f"Expected {len(features)} values in this order: {[a.name for a in features]}"
            )

        values = []
        for attribute, item in zip(features, sample_row):
            if not attribute.is_quantitative:
                values.append(str(item))
                continue
            value = float(item)
            scaler = self.scaler_dict.get(attribute.name)
            if scaler is not None:
                value = float(scaler.transform(np.array([[value]]))[0, 0])
            values.append(value)
        return Instance.query(values)

    def predict(self, inference_row: List) -> Optional[str]:
        """Class of `inference_row` against the training split (whole dataset if not split)."""
        if self.dataset is None:
            raise RuntimeError("No dataset loaded. Train the model first.")
        training = self.partition.train if self.partition is not None else self.dataset
        query = self.preprocessing_pipeline_inference(inference_row)
        return KNN(self.k, weight_mode=self.weight_mode).classify(training, query)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    def save_partition(self, folder: Union[str, Path]) -> Tuple[Path, Path]:
        if self.partition is None:
            raise RuntimeError("No partition available. Run split first.")
        self.create_new_folder(folder)
        train_path = Path(folder) / "train.csv"
        test_path = Path(folder) / "test.csv"
        self.partition.save(train_path, test_path)
        return train_path, test_path

    @staticmethod
    def create_new_folder(folder: Union[str, Path]) -> None:
        Path(folder).mkdir(parents=True, exist_ok=True)
