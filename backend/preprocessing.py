"""
Dataset preprocessors. Each one returns a new Dataset whose quantitative
non-class attributes are rescaled; the source dataset is left untouched.
"""
from typing import Dict

from sklearn.preprocessing import MinMaxScaler, StandardScaler

from constants import (
    PREPROCESSING_NORMALIZED,
    PREPROCESSING_RAW,
    PREPROCESSING_STANDARDIZED,
)
from dataset import Dataset, Quantitative

_SCALERS = {
    PREPROCESSING_NORMALIZED: MinMaxScaler,
    PREPROCESSING_STANDARDIZED: StandardScaler,
}


def _feature_columns(dataset: Dataset):
    for attribute in dataset.attributes[:-1]:
        if isinstance(attribute, Quantitative) and len(attribute) > 0:
            yield attribute


def fit_scalers(dataset: Dataset, preprocessing: int) -> Dict[str, object]:
    """
    Fit one scaler per quantitative feature column. Raw preprocessing needs no
    scalers and yields an empty dict.
    """
    if preprocessing == PREPROCESSING_RAW:
        return {}
    if preprocessing not in _SCALERS:
        raise ValueError(f"Unknown preprocessing option: {preprocessing}")

    scalers = {}
    for attribute in _feature_columns(dataset):
        scaler = _SCALERS[preprocessing]()
        scaler.fit(attribute.to_numpy().reshape(-1, 1))
        scalers[attribute.name] = scaler
    return scalers


def apply_scalers(dataset: Dataset, scalers: Dict[str, object], preprocessing: int) -> Dataset:
    result = dataset.copy()
    result.preprocessing = preprocessing
    for attribute in _feature_columns(result):
        scaler = scalers.get(attribute.name)
        if scaler is None:
            continue
        scaled = scaler.transform(attribute.to_numpy().reshape(-1, 1)).ravel()
        attribute.values = [float(v) for v in scaled]
    return result


def raw(dataset: Dataset) -> Dataset:
    result = dataset.copy()
    result.preprocessing = PREPROCESSING_RAW
    return result


def normalize(dataset: Dataset) -> Dataset:
    """Min-max scale each feature column to [0, 1]; constant columns become 0."""
    scalers = fit_scalers(dataset, PREPROCESSING_NORMALIZED)
    return apply_scalers(dataset, scalers, PREPROCESSING_NORMALIZED)


def standardize(dataset: Dataset) -> Dataset:
    """Z-score each feature column (population deviation); constant columns become 0."""
    scalers = fit_scalers(dataset, PREPROCESSING_STANDARDIZED)
    return apply_scalers(dataset, scalers, PREPROCESSING_STANDARDIZED)


def preprocess(dataset: Dataset, preprocessing: int) -> Dataset:
    if preprocessing == PREPROCESSING_RAW:
        return raw(dataset)
    if preprocessing == PREPROCESSING_NORMALIZED:
        return normalize(dataset)
    if preprocessing == PREPROCESSING_STANDARDIZED:
        return standardize(dataset)
    raise ValueError(f"Unknown preprocessing option: {preprocessing}")
