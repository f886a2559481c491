import numbers
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from constants import PREPROCESSING_NONE


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


class Attribute:
    """
    A named, weighted column of a Dataset. Concrete columns are either
    Quantitative (real numbers) or Qualitative (string labels).
    """

    is_quantitative = False

    def __init__(self, name: str, values: Optional[Sequence] = None, weight: float = 1.0):
        self.name = name
        self.weight = float(weight)
        self.values: list = []
        for value in values or []:
            self.add(value)

    def add(self, value) -> None:
        raise NotImplementedError

    def delete(self, index: int) -> None:
        del self.values[index]

    def empty_copy(self) -> 'Attribute':
        """Same name, type and weight, no values."""
        return type(self)(self.name, weight=self.weight)

    def copy(self) -> 'Attribute':
        return type(self)(self.name, self.values, weight=self.weight)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int):
        return self.values[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, weight={self.weight}, n={len(self)})"


class Quantitative(Attribute):
    is_quantitative = True

    def add(self, value) -> None:
        if not _is_number(value):
            raise TypeError(f"Attribute '{self.name}' only accepts numbers, got {value!r}")
        self.values.append(float(value))

    def to_numpy(self) -> np.ndarray:
        return np.asarray(self.values, dtype=float)


class Qualitative(Attribute):

    def add(self, value) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Attribute '{self.name}' only accepts string labels, got {value!r}")
        self.values.append(value)

    def classes(self) -> List[str]:
        """Distinct labels in first-seen order."""
        return list(dict.fromkeys(self.values))

    @property
    def n_classes(self) -> int:
        return len(self.classes())

    def frequencies(self) -> List[float]:
        """Relative frequency of each label, in the order of `classes()`."""
        counts = pd.Series(self.values, dtype=object).value_counts(sort=False)
        total = len(self.values)
        return [counts[label] / total for label in self.classes()]


class Instance:
    """
    One materialized row. The last value is the class label; a query built with
    `Instance.query` leaves that slot empty.
    """

    def __init__(self, values: Optional[Sequence] = None):
        self.values = list(values) if values is not None else []

    @classmethod
    def query(cls, features: Sequence) -> 'Instance':
        return cls(list(features) + [None])

    @property
    def label(self) -> Optional[str]:
        return self.values[-1] if self.values else None

    def feature_vector(self) -> Optional[np.ndarray]:
        """
        Numeric values preceding the class label. Non-numeric values are skipped,
        so the vector is only meaningful when every non-class attribute is numeric.
        """
        if not self.values:
            return None
        return np.array([v for v in self.values[:-1] if _is_number(v)], dtype=float)

    def without_label(self) -> 'Instance':
        return Instance.query(self.values[:-1])

    def __len__(self) -> int:
        return len(self.values)

    def __eq__(self, other) -> bool:
        return isinstance(other, Instance) and self.values == other.values

    def __repr__(self) -> str:
        return f"Instance({self.values!r})"


class Dataset:
    """
    Columnar collection of attributes of identical length. By convention the last
    attribute holds the class labels and must be Qualitative.
    """

    def __init__(self, attributes: Optional[List[Attribute]] = None, preprocessing: int = PREPROCESSING_NONE):
        self.attributes: List[Attribute] = list(attributes) if attributes else []
        self.preprocessing = preprocessing

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def n_cases(self) -> int:
        return len(self.attributes[0]) if self.attributes else 0

    @property
    def n_attributes(self) -> int:
        return len(self.attributes)

    def __len__(self) -> int:
        return self.n_cases

    def attribute_names(self) -> List[str]:
        return [attribute.name for attribute in self.attributes]

    def __getitem__(self, index: int) -> Attribute:
        return self.attributes[index]

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def instance(self, index: int) -> Instance:
        return Instance([attribute[index] for attribute in self.attributes])

    def instances(self) -> Iterator[Instance]:
        for index in range(self.n_cases):
            yield self.instance(index)

    def add(self, instance: Union[Instance, Sequence]) -> None:
        values = instance.values if isinstance(instance, Instance) else list(instance)
        if len(values) != self.n_attributes:
            raise ValueError(
                f"Row has {len(values)} values but the dataset has {self.n_attributes} attributes"
            )
        added = []
        try:
            for attribute, value in zip(self.attributes, values):
                attribute.add(value)
                added.append(attribute)
        except TypeError:
            # keep every column the same length
            for attribute in added:
                attribute.delete(-1)
            raise

    def delete(self, index: int) -> None:
        for attribute in self.attributes:
            attribute.delete(index)

    def empty_copy(self) -> 'Dataset':
        """Same schema (names, types, weights) and marker, zero rows."""
        return Dataset([a.empty_copy() for a in self.attributes], preprocessing=self.preprocessing)

    def copy(self) -> 'Dataset':
        return Dataset([a.copy() for a in self.attributes], preprocessing=self.preprocessing)

    # ------------------------------------------------------------------
    # Classes and weights
    # ------------------------------------------------------------------
    def class_attribute(self) -> Qualitative:
        if not self.attributes:
            raise ValueError("Dataset has no attributes")
        last = self.attributes[-1]
        if not isinstance(last, Qualitative):
            raise TypeError(f"Class attribute '{last.name}' must be qualitative")
        return last

    def classes(self) -> List[str]:
        return self.class_attribute().classes()

    def weights(self) -> List[float]:
        """Weight of every attribute, the class attribute included."""
        return [attribute.weight for attribute in self.attributes]

    def feature_weights(self) -> List[float]:
        """Weights of the numeric non-class attributes, aligned with feature vectors."""
        return [a.weight for a in self.attributes[:-1] if a.is_quantitative]

    def set_weights(self, weights: Sequence[Union[str, float]]) -> None:
        if len(weights) != self.n_attributes:
            raise ValueError(
                f"Expected {self.n_attributes} weights (one per attribute), got {len(weights)}"
            )
        parsed = []
        for raw in weights:
            try:
                weight = float(raw)
            except (TypeError, ValueError):
                raise ValueError(f"Weight '{raw}' is not a valid number") from None
            _check_weight(weight)
            parsed.append(weight)
        for attribute, weight in zip(self.attributes, parsed):
            attribute.weight = weight

    def set_weight(self, index: int, weight: float) -> None:
        _check_weight(weight)
        self.attributes[index].weight = float(weight)

    def set_all_weights(self, weight: float) -> None:
        _check_weight(weight)
        for attribute in self.attributes:
            attribute.weight = float(weight)

    # ------------------------------------------------------------------
    # pandas conversion
    # ------------------------------------------------------------------
    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, preprocessing: int = PREPROCESSING_NONE) -> 'Dataset':
        """
        Build a Dataset from a DataFrame. A column whose values all parse as numbers
        becomes Quantitative, any other column Qualitative (labels kept as text).
        The last column is always treated as the class column.
        """
        attributes: List[Attribute] = []
        last = len(df.columns) - 1
        for position, col in enumerate(df.columns):
            numeric = pd.to_numeric(df[col], errors='coerce')
            if position != last and len(df) > 0 and numeric.notna().all():
                attributes.append(Quantitative(str(col), numeric.astype(float).tolist()))
            else:
                attributes.append(Qualitative(str(col), df[col].astype(str).tolist()))
        return cls(attributes, preprocessing=preprocessing)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({a.name: list(a.values) for a in self.attributes},
                            columns=self.attribute_names())

    def __repr__(self) -> str:
        return f"Dataset(attributes={self.attribute_names()}, n_cases={self.n_cases})"


def _check_weight(weight: float) -> None:
    if not 0.0 <= weight <= 1.0:
        raise ValueError(f"Weights must lie between 0 and 1, got {weight}")
