import json
import logging
import pathlib

import pandas as pd
from pydantic import ValidationError

from src.data_source.schema import Comparison, Selections
from src.data_source.source import CellDataSource

logger = logging.getLogger(__name__)


class InputValidationError(Exception):
    """An input file does not match its expected schema."""


def _read_json(path):
    path = pathlib.Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File does not exist: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputValidationError(f"Malformed JSON in {path}: {e}") from e


def load_cell_table(csv_path, categorical_columns=None, encode_categories: bool = True) -> CellDataSource:
    """
    Load a per-cell CSV table into a data source.

    Parameters
    ----------
    csv_path : str or Path
        CSV with one row per cell; the row position is the cell index.
    categorical_columns : list of str, optional
        Columns to force to categorical even if numeric (e.g. cluster ids).
    encode_categories : bool, optional
        Convert text columns to pandas ``category`` dtype so they are counted
        through integer codes. Defaults to True.

    Returns
    -------
    CellDataSource
    """
    try:
        df = pd.read_csv(csv_path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise InputValidationError(f"Could not parse cell table {csv_path}: {e}") from e
    for column in categorical_columns or []:
        if column not in df.columns:
            raise InputValidationError(f"Column '{column}' not found in {csv_path}")
        df[column] = df[column].astype("category")

    if encode_categories:
        for column in df.columns:
            if pd.api.types.is_object_dtype(df[column]) or pd.api.types.is_string_dtype(df[column]):
                if not isinstance(df[column].dtype, pd.CategoricalDtype):
                    df[column] = df[column].astype("category")

    logger.info(f"Loaded cell table {csv_path}: {len(df)} cells, {len(df.columns)} fields")
    return CellDataSource.from_dataframe(df)


def load_selections(path) -> dict:
    """Load ``{"groups": {name: [cell indices]}}`` and return the groups mapping."""
    try:
        selections = Selections.model_validate(_read_json(path))
    except ValidationError as e:
        raise InputValidationError(f"Invalid selections file {path}: {e}") from e
    return selections.groups


def load_comparisons(path) -> list[Comparison]:
    """Load one comparison object or a list of them."""
    data = _read_json(path)
    items = data if isinstance(data, list) else [data]
    try:
        return [Comparison.model_validate(item) for item in items]
    except ValidationError as e:
        raise InputValidationError(f"Invalid comparison file {path}: {e}") from e
