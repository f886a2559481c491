from pathlib import Path
from typing import List, Union

import pandas as pd

from dataset import Dataset


def read_dataset_csv(path: Union[str, Path]) -> Dataset:
    """Read a CSV with a header row into a Dataset (last column = class)."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return Dataset.from_dataframe(df)


def write_dataset_csv(dataset: Dataset, path: Union[str, Path]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    dataset.to_dataframe().to_csv(path, index=False)


def parse_weights(text: str) -> List[str]:
    """Split a comma separated weight list, e.g. "1,0.5,1,1"."""
    return [item.strip() for item in text.split(',') if item.strip()]
