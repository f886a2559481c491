import pytest

from conftest import make_dataset
from constants import PREPROCESSING_NORMALIZED
from partition import Partition, check_fraction, random_split, sequential_split


@pytest.fixture
def ten_cases():
    dataset = make_dataset([[float(i), float(i * i), 'even' if i % 2 == 0 else 'odd'] for i in range(10)])
    dataset.set_weight(1, 0.5)
    dataset.preprocessing = PREPROCESSING_NORMALIZED
    return dataset


def _xs(dataset):
    return [case.values[0] for case in dataset.instances()]


def test_sequential_split_keeps_order(ten_cases):
    partition = sequential_split(ten_cases, 0.6)
    assert _xs(partition.train) == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]
    assert _xs(partition.test) == [6.0, 7.0, 8.0, 9.0]


@pytest.mark.parametrize('fraction, expected', [(0.0, 0), (0.25, 2), (0.5, 5), (0.99, 9), (1.0, 10)])
def test_sequential_split_sizes(ten_cases, fraction, expected):
    partition = sequential_split(ten_cases, fraction)
    assert partition.train.n_cases == expected
    assert partition.train.n_cases + partition.test.n_cases == ten_cases.n_cases


def test_splits_share_schema_and_marker(ten_cases):
    for partition in (sequential_split(ten_cases, 0.5), random_split(ten_cases, 0.5, 3)):
        for split in (partition.train, partition.test):
            assert split.attribute_names() == ['x', 'y', 'class']
            assert split.weights() == [1.0, 0.5, 1.0]
            assert split.preprocessing == PREPROCESSING_NORMALIZED
        assert partition.classes == ['even', 'odd']
    assert ten_cases.n_cases == 10


def test_random_split_is_disjoint_and_complete(ten_cases):
    partition = random_split(ten_cases, 0.7, seed=1234)
    train, test = _xs(partition.train), _xs(partition.test)
    assert len(train) == 7
    assert len(set(train)) == 7
    assert sorted(train + test) == _xs(ten_cases)
    assert test == sorted(test)


def test_random_split_is_deterministic(ten_cases):
    first = random_split(ten_cases, 0.6, seed=42)
    second = random_split(ten_cases, 0.6, seed=42)
    assert _xs(first.train) == _xs(second.train)
    assert _xs(first.test) == _xs(second.test)


def test_random_split_edge_fractions(ten_cases):
    assert random_split(ten_cases, 0.0, seed=1).train.n_cases == 0
    assert random_split(ten_cases, 1.0, seed=1).test.n_cases == 0
    with pytest.raises(ValueError):
        random_split(ten_cases, 1.5, seed=1)


@pytest.mark.parametrize('fraction', [-0.1, 1.01])
def test_check_fraction_rejects_out_of_range(fraction):
    with pytest.raises(ValueError):
        check_fraction(fraction)


def test_partition_csv_round_trip(tmp_path, ten_cases):
    partition = sequential_split(ten_cases, 0.8)
    train_path, test_path = tmp_path / "train.csv", tmp_path / "test.csv"
    partition.save(train_path, test_path)

    loaded = Partition.load(train_path, test_path)
    assert _xs(loaded.train) == _xs(partition.train)
    assert _xs(loaded.test) == _xs(partition.test)
    assert loaded.train.attribute_names() == ['x', 'y', 'class']


def test_loaded_partition_merges_class_labels(tmp_path):
    train = make_dataset([[0.0, 0.0, 'A'], [1.0, 1.0, 'B']])
    test = make_dataset([[2.0, 2.0, 'C'], [3.0, 3.0, 'A']])
    Partition(train, test).save(tmp_path / "train.csv", tmp_path / "test.csv")
    assert Partition.load(tmp_path / "train.csv", tmp_path / "test.csv").classes == ['A', 'B', 'C']
