import numpy as np
import pytest

from conftest import make_dataset
from constants import PREPROCESSING_NORMALIZED, PREPROCESSING_RAW, PREPROCESSING_STANDARDIZED
from dataset import Dataset, Qualitative, Quantitative
from preprocessing import normalize, preprocess, standardize


@pytest.fixture
def raw_dataset():
    return make_dataset([[0.0, 5.0, 'A'], [5.0, 5.0, 'B'], [10.0, 5.0, 'A']])


def test_normalize_scales_features_to_unit_range(raw_dataset):
    result = normalize(raw_dataset)
    assert result[0].values == pytest.approx([0.0, 0.5, 1.0])
    assert result[1].values == pytest.approx([0.0, 0.0, 0.0])
    assert result.classes() == ['A', 'B']
    assert result.preprocessing == PREPROCESSING_NORMALIZED
    assert raw_dataset[0].values == [0.0, 5.0, 10.0]


def test_standardize_uses_population_deviation(raw_dataset):
    result = standardize(raw_dataset)
    x = np.array([0.0, 5.0, 10.0])
    assert result[0].values == pytest.approx(list((x - x.mean()) / x.std()))
    assert result[1].values == pytest.approx([0.0, 0.0, 0.0])
    assert result.preprocessing == PREPROCESSING_STANDARDIZED


def test_preprocess_keeps_weights_and_qualitative_columns():
    dataset = Dataset([
        Quantitative('size', [1.0, 3.0]),
        Qualitative('colour', ['red', 'blue']),
        Qualitative('class', ['A', 'B']),
    ])
    dataset.set_weight(0, 0.3)
    result = preprocess(dataset, PREPROCESSING_NORMALIZED)
    assert result.weights() == [0.3, 1.0, 1.0]
    assert result[1].values == ['red', 'blue']
    assert preprocess(dataset, PREPROCESSING_RAW).preprocessing == PREPROCESSING_RAW
    with pytest.raises(ValueError):
        preprocess(dataset, 99)
