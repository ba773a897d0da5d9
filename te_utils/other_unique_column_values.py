# Extracts the distinct values of a column.

"""
Extended Description:
For categorical columns the distinct values are the domain indices
0..len(domain)-1. For numeric columns they are the distinct non-missing
values (null and NaN excluded), found with a hash-based unique so memory
grows with the number of distinct values, not with the number of rows.
Order is not significant.
"""

from typing import Any, List, Union

import polars as pl

from te_utils.constants import MAX_UNIQUE_VALUES
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import UniqueValuesOverflowError

def unique_values_by(frame: Frame, column: Union[int, str]) -> Frame:
    """Returns a one-column frame holding the distinct values of `column`.

    Raises:
        pl.exceptions.ColumnNotFoundError: If the column does not exist.
        UniqueValuesOverflowError: If there are more distinct values than fit
                                   in a 32-bit index.
    """
    operation = 'unique_values_by'
    index = frame.resolve(column, operation)
    name = frame.name(index)

    if frame.is_categorical(index):
        n_unique = len(frame.domain(index))
        _check_unique_count(n_unique, name)
        values = pl.Series(name, range(n_unique), dtype=pl.Int64)
    else:
        values = frame.column(index).unique().drop_nulls()
        if values.dtype.is_float():
            values = values.filter(values.is_not_nan())
        _check_unique_count(len(values), name)
    return frame.with_data(values.to_frame())

def get_unique_column_values(frame: Frame, column: Union[int, str]) -> List[Any]:
    """Returns the distinct values of `column` as a list, one entry per value."""
    with unique_values_by(frame, column) as unique_values:
        return unique_values.df.to_series(0).to_list()

def _check_unique_count(n_unique: int, name: str) -> None:
    if n_unique > MAX_UNIQUE_VALUES:
        raise UniqueValuesOverflowError(
            f"Number of unique values ({n_unique}) exceeds {MAX_UNIQUE_VALUES}.",
            operation='unique_values_by', column=name
        )
