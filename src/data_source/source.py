"""
In-memory cell data for aggregation and group extraction.

A ``CellDataSource`` holds full-population backing arrays for named fields,
indexed by dense cell index. Groups are plain mappings of group name to a
list of cell indices; indices outside the backing array are treated as
missing values.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CONTINUOUS = "continuous"
CATEGORICAL = "categorical"


class UnknownFieldError(ValueError):
    """A requested field does not exist in the data source."""


class FieldKindError(ValueError):
    """A field was used with an operation that does not match its kind."""


@dataclass(frozen=True, eq=False)
class ContinuousField:
    name: str
    values: np.ndarray

    kind = CONTINUOUS

    def __len__(self):
        return len(self.values)


@dataclass(frozen=True, eq=False)
class CategoricalField:
    """
    Categorical field, either integer-coded or raw labels.

    Coded fields carry ``codes`` (negative code = missing) and ``categories``;
    label fields carry ``labels`` only.
    """

    name: str
    codes: np.ndarray = None
    categories: tuple = None
    labels: np.ndarray = None

    kind = CATEGORICAL

    @property
    def is_coded(self) -> bool:
        return self.codes is not None

    def __len__(self):
        return len(self.codes) if self.is_coded else len(self.labels)


def is_missing_label(value) -> bool:
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class CellDataSource:
    """Named fields over a shared cell index."""

    def __init__(self):
        self._fields = {}

    def add_continuous(self, name: str, values) -> ContinuousField:
        field = ContinuousField(name=name, values=np.asarray(values, dtype=float))
        self._fields[name] = field
        return field

    def add_categorical(self, name: str, values=None, codes=None, categories=None) -> CategoricalField:
        """
        Register a categorical field.

        Parameters
        ----------
        name : str
            Field name.
        values : sequence, optional
            Raw labels (slow, string-keyed counting path).
        codes : sequence of int, optional
            Integer category codes (fast counting path); requires ``categories``.
        categories : sequence, optional
            Labels for the codes.

        Raises
        ------
        ValueError
            If neither or both of ``values`` and ``codes`` are given, or codes
            are given without categories.
        """
        if (values is None) == (codes is None):
            raise ValueError("Provide exactly one of 'values' or 'codes'")

        if codes is not None:
            if categories is None:
                raise ValueError("'categories' is required together with 'codes'")
            field = CategoricalField(
                name=name,
                codes=np.asarray(codes, dtype=np.int64),
                categories=tuple(categories),
            )
        else:
            field = CategoricalField(name=name, labels=np.asarray(values, dtype=object))

        self._fields[name] = field
        return field

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "CellDataSource":
        """
        Build a data source from a cell table, one row per cell.

        Numeric and boolean columns become continuous fields, ``category`` columns
        become coded categorical fields and everything else becomes label fields.
        """
        source = cls()
        for column in df.columns:
            series = df[column]
            name = str(column)
            if isinstance(series.dtype, pd.CategoricalDtype):
                source.add_categorical(
                    name,
                    codes=series.cat.codes.to_numpy(),
                    categories=list(series.cat.categories),
                )
            elif pd.api.types.is_numeric_dtype(series):
                source.add_continuous(name, series.to_numpy(dtype=float, na_value=np.nan))
            else:
                source.add_categorical(name, values=series.to_numpy(dtype=object))
        logger.debug(f"Loaded {len(source._fields)} fields over {len(df)} cells")
        return source

    def fields(self) -> list[str]:
        return list(self._fields)

    def __contains__(self, name) -> bool:
        return name in self._fields

    def field(self, name: str):
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(f"Unknown field '{name}'") from None

    def field_kind(self, name: str) -> str:
        return self.field(name).kind

    def extract_group_values(self, name: str, groups: dict) -> dict:
        """
        Per-group samples of a field, filtered of missing entries.

        Parameters
        ----------
        name : str
            Field name.
        groups : dict
            ``{group_name: cell_indices}``.

        Returns
        -------
        dict
            ``{group_name: list}`` of finite floats (continuous) or
            non-missing labels (categorical), in selection order.
        """
        field = self.field(name)
        out = {}
        for group_name, indices in groups.items():
            idx = np.asarray(indices, dtype=np.int64)
            in_range = idx[(idx >= 0) & (idx < len(field))]

            if field.kind == CONTINUOUS:
                values = field.values[in_range]
                out[group_name] = values[np.isfinite(values)].tolist()
            elif field.is_coded:
                codes = field.codes[in_range]
                codes = codes[(codes >= 0) & (codes < len(field.categories))]
                out[group_name] = [field.categories[c] for c in codes]
            else:
                out[group_name] = [v for v in field.labels[in_range] if not is_missing_label(v)]

            dropped = len(idx) - len(in_range)
            if dropped:
                logger.warning(f"Group '{group_name}': {dropped} out-of-range indices for '{name}'")
        return out
