import os
import sys
from pathlib import Path

import pytest

# Add the backend folder to sys.path so the service modules import directly
current_file_path = Path(__file__).resolve()
project_root = current_file_path.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# The tests track runs in a file: store, which recent MLflow only allows on opt-in
os.environ.setdefault("MLFLOW_ALLOW_FILE_STORE", "true")

from dataset import Dataset, Qualitative, Quantitative  # noqa: E402


def make_dataset(rows, names=('x', 'y', 'class')):
    """Dataset of quantitative features plus a trailing class column."""
    attributes = [Quantitative(name) for name in names[:-1]] + [Qualitative(names[-1])]
    dataset = Dataset(attributes)
    for row in rows:
        dataset.add(row)
    return dataset


@pytest.fixture
def abc_dataset():
    return make_dataset([
        [1.0, 1.0, 'A'],
        [2.0, 2.0, 'B'],
        [3.0, 3.0, 'C'],
    ])


@pytest.fixture
def iris_path():
    return project_root / "data" / "iris_sample.csv"
