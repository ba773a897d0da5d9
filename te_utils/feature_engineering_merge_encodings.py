# Merges a statistics table onto a working frame (plain or out-of-fold).

"""
Extended Description:
Attaches to every row of the working frame the numerator and denominator of
its category, as two new adjacent columns (numerator first). The statistics
table is small (one row per category, or per category and fold), so it is
broadcast to every partition of the working frame and each partition is joined
independently; row order is preserved.

Plain merge: a many-to-one left join on the category. Categories missing from
the statistics table get null numerator and denominator.

Out-of-fold merge: for a row of category c in fold i, the attached statistics
are the sum over folds j in [0, max_fold], j != i, of statistics(c, j), so a
row never sees the target values of its own fold. This is computed as the
category total over folds [0, max_fold] minus the row's own-fold contribution.
Statistics rows with a fold outside [0, max_fold] contribute nothing; rows
whose own fold is null or outside the range receive the full total. A category
observed only in the row's own fold yields (0, 0).
"""

import logging
from typing import List, Optional, Union

import polars as pl

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.frame import Frame, is_categorical_dtype
from te_utils.other_exceptions import PreconditionError
from te_utils.other_for_each_partition import for_each_partition

logger = logging.getLogger(__name__)

def _unique_name(base: str, taken: List[str]) -> str:
    name = base
    while name in taken:
        name += "_"
    return name

def _join_key_dtype(left_dtype: pl.DataType, right_dtype: pl.DataType) -> pl.DataType:
    """Dtype both join keys are cast to; categorical keys are compared by label."""
    if is_categorical_dtype(left_dtype) or is_categorical_dtype(right_dtype):
        return pl.String
    if left_dtype == right_dtype:
        return left_dtype
    if left_dtype.is_integer() and right_dtype.is_integer():
        return pl.Int64
    return pl.Float64

def merge_encodings(
    frame: Frame,
    encodings: Frame,
    column_to_encode: Union[int, str],
    encodings_column: Optional[Union[int, str]] = None,
    fold_column: Optional[Union[int, str]] = None,
    encodings_fold_column: Optional[Union[int, str]] = None,
    max_fold: Optional[int] = None
) -> Frame:
    """Joins numerator/denominator statistics onto each row of `frame`.

    Args:
        frame (Frame): Working frame (left side).
        encodings (Frame): Statistics frame (right side) with numerator and
                           denominator columns.
        column_to_encode (Union[int, str]): Category column in `frame`.
        encodings_column (Optional[Union[int, str]], optional): Category column in
            `encodings`. Defaults to the column with the same name as in `frame`.
        fold_column (Optional[Union[int, str]], optional): Fold column in `frame`.
            Must be given together with `encodings_fold_column`. Defaults to None.
        encodings_fold_column (Optional[Union[int, str]], optional): Fold column in
            `encodings`. Defaults to None.
        max_fold (Optional[int], optional): Largest fold id considered in the
            out-of-fold merge. Defaults to the largest fold id in `encodings`.

    Returns:
        Frame: A new frame with the columns of `frame` followed by `numerator`
               and `denominator`.

    Raises:
        PreconditionError: If the statistics columns are missing, `frame`
                           already has them, or only one fold column is given.
        pl.exceptions.ColumnNotFoundError: If a referenced column does not exist.
        StageExecutionError: If joining a partition fails.
    """
    operation = 'merge_encodings'
    numerator_idx = encodings.find(NUMERATOR_COL)
    if numerator_idx < 0 or encodings.find(DENOMINATOR_COL) != numerator_idx + 1:
        raise PreconditionError(
            f"Encodings must contain adjacent '{NUMERATOR_COL}' and '{DENOMINATOR_COL}' columns.",
            operation=operation
        )
    if frame.find(NUMERATOR_COL) >= 0 or frame.find(DENOMINATOR_COL) >= 0:
        raise PreconditionError(
            f"Frame already contains '{NUMERATOR_COL}'/'{DENOMINATOR_COL}' columns.",
            operation=operation
        )
    if (fold_column is None) != (encodings_fold_column is None):
        raise PreconditionError(
            "fold_column and encodings_fold_column must be given together.",
            operation=operation
        )

    left_col = frame.name(frame.resolve(column_to_encode, operation))
    if encodings_column is None:
        encodings_column = left_col
    right_col = encodings.name(encodings.resolve(encodings_column, operation))
    left_dtype = frame.dtype(left_col)
    right_dtype = encodings.dtype(right_col)
    key_dtype = _join_key_dtype(left_dtype, right_dtype)

    left_columns = frame.names
    row_idx = _unique_name("_row_idx", left_columns)
    key = _unique_name("_te_key", left_columns)
    fold_key = _unique_name("_te_fold", left_columns)
    own_num = _unique_name("_own_numerator", left_columns)
    own_den = _unique_name("_own_denominator", left_columns)

    stats = encodings.df.select(
        pl.col(right_col).cast(key_dtype).alias(key),
        *([pl.col(encodings.name(encodings.resolve(encodings_fold_column, operation)))
           .cast(pl.Int64).alias(fold_key)] if encodings_fold_column is not None else []),
        pl.col(NUMERATOR_COL),
        pl.col(DENOMINATOR_COL),
    )

    fold_aware = fold_column is not None
    if fold_aware:
        left_fold_col = frame.name(frame.resolve(fold_column, operation))
        if max_fold is None:
            max_fold = stats[fold_key].max()
            max_fold = 0 if max_fold is None else int(max_fold)
        in_range = pl.col(fold_key).is_between(0, max_fold)
        stats = stats.with_columns(
            pl.when(in_range).then(pl.col(NUMERATOR_COL)).otherwise(0.0).alias(NUMERATOR_COL),
            pl.when(in_range).then(pl.col(DENOMINATOR_COL)).otherwise(0)
              .cast(stats.schema[DENOMINATOR_COL]).alias(DENOMINATOR_COL),
        )
        totals = stats.group_by(key).agg(
            pl.col(NUMERATOR_COL).sum(),
            pl.col(DENOMINATOR_COL).sum(),
        )
        own = stats.rename({NUMERATOR_COL: own_num, DENOMINATOR_COL: own_den})
        logger.debug(f"Out-of-fold merge on '{left_col}' with max_fold={max_fold}")
    else:
        if stats[key].is_duplicated().any():
            raise PreconditionError(
                "Encodings have duplicate categories; collapse folds before a plain merge.",
                operation=operation, column=right_col
            )
        totals = stats

    def merge_partition(offset: int, part: pl.DataFrame) -> pl.DataFrame:
        left = part.with_row_index(row_idx).with_columns(
            pl.col(left_col).cast(key_dtype).alias(key)
        )
        merged = left.join(totals, on=key, how='left')
        if fold_aware:
            merged = merged.with_columns(
                pl.col(left_fold_col).cast(pl.Int64).alias(fold_key)
            ).join(own, on=[key, fold_key], how='left').with_columns(
                (pl.col(NUMERATOR_COL) - pl.col(own_num).fill_null(0.0)).alias(NUMERATOR_COL),
                (pl.col(DENOMINATOR_COL) - pl.col(own_den).fill_null(0)).alias(DENOMINATOR_COL),
            )
        return merged.sort(row_idx).select(left_columns + [NUMERATOR_COL, DENOMINATOR_COL])

    results = for_each_partition(frame, merge_partition, operation)
    merged = pl.concat(results, how='vertical', rechunk=True)
    return frame.with_data(merged)
