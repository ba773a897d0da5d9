# Selects rows of a frame with a boolean predicate column.

"""
Extended Description:
Each filter first computes a one-column boolean predicate table for the
column of interest, then selects the rows where it holds. The predicate table
is transient and disposed once the selection is done. The result is a new
frame with the same columns and partitioning settings.
"""

from typing import Any, Union

import polars as pl

from te_utils.data_structures.frame import Frame

def _select_by_predicate(frame: Frame, predicate: Frame) -> Frame:
    mask = predicate.df.to_series(0)
    return frame.with_data(frame.df.filter(mask))

def _value_expr(frame: Frame, index: int) -> pl.Expr:
    expr = pl.col(frame.name(index))
    if frame.is_categorical(index):
        expr = expr.cast(pl.String)
    elif frame.dtype(index).is_float():
        expr = expr.fill_nan(None)
    return expr

def filter_out_nas_in_column(frame: Frame, column: Union[int, str]) -> Frame:
    """Returns the rows whose value in `column` is not missing (null or NaN)."""
    index = frame.resolve(column, 'filter_out_nas_in_column')
    with frame.with_data(
        frame.df.select(_value_expr(frame, index).is_not_null().alias('predicate'))
    ) as predicate:
        return _select_by_predicate(frame, predicate)

def filter_by_value(frame: Frame, column: Union[int, str], value: Any) -> Frame:
    """Returns the rows whose value in `column` equals `value`."""
    return _filter_by_value_base(frame, column, value, is_inverted=False)

def filter_not_by_value(frame: Frame, column: Union[int, str], value: Any) -> Frame:
    """Returns all rows except those whose value in `column` equals `value`.

    Rows with a missing value in `column` are kept.
    """
    return _filter_by_value_base(frame, column, value, is_inverted=True)

def _filter_by_value_base(frame: Frame, column: Union[int, str], value: Any, is_inverted: bool) -> Frame:
    index = frame.resolve(column, 'filter_not_by_value' if is_inverted else 'filter_by_value')
    matches = (_value_expr(frame, index) == value).fill_null(False)
    if is_inverted:
        matches = ~matches
    with frame.with_data(frame.df.select(matches.alias('predicate'))) as predicate:
        return _select_by_predicate(frame, predicate)
