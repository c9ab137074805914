from src.data_source.loaders import (
    InputValidationError,
    load_cell_table,
    load_comparisons,
    load_selections,
)
from src.data_source.source import CellDataSource, FieldKindError, UnknownFieldError

__all__ = [
    # Source
    "CellDataSource",
    "FieldKindError",
    "UnknownFieldError",
    # Loaders
    "InputValidationError",
    "load_cell_table",
    "load_comparisons",
    "load_selections",
]
