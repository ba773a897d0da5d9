# Builds the target encoding statistics table for one categorical column.

"""
Extended Description:
Groups the rows of a frame by the column to encode (and, for out-of-fold
encoding, by the fold column as well) and computes, per group, the sufficient
statistics of the target: the numerator (sum of target values) and the
denominator (number of rows with a non-missing target). The resulting table
has columns [<column>, (<fold>,) numerator, denominator], with the denominator
always directly after the numerator. Keys are unique.
"""

import logging
from typing import Optional, Union

import polars as pl

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.aggregation_spec import AggregationSpec
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_group_by_with_aggregations import group_by_with_aggregations

logger = logging.getLogger(__name__)

def build_encodings_frame(
    frame: Frame,
    column_to_encode: Union[int, str],
    target: Union[int, str],
    fold_column: Optional[Union[int, str]] = None
) -> Frame:
    """Computes numerator/denominator per category (and per fold).

    Args:
        frame (Frame): Frame holding the column to encode and the target.
        column_to_encode (Union[int, str]): Index or name of the categorical column.
        target (Union[int, str]): Index or name of the numeric target column.
        fold_column (Optional[Union[int, str]], optional): Index or name of the fold
            column. If None, statistics are computed over all rows per category.
            Defaults to None.

    Returns:
        Frame: A new statistics frame with the same partitioning settings.

    Raises:
        pl.exceptions.ColumnNotFoundError: If a referenced column does not exist.
        PreconditionError: If the target column is not numeric.
    """
    operation = 'build_encodings_frame'
    column_name = frame.name(frame.resolve(column_to_encode, operation))
    target_name = frame.name(frame.resolve(target, operation))
    group_by = [column_name]
    if fold_column is not None:
        group_by.append(frame.name(frame.resolve(fold_column, operation)))

    target_dtype = frame.dtype(target_name)
    if not (target_dtype.is_numeric() or target_dtype == pl.Boolean):
        raise PreconditionError(
            f"Target column must be numeric, got {target_dtype}.",
            operation=operation, column=target_name
        )

    source = frame.df.select(group_by + [target_name])
    if target_dtype == pl.Boolean:
        source = source.with_columns(pl.col(target_name).cast(pl.Int8))

    encodings = group_by_with_aggregations(
        source,
        group_by,
        [
            AggregationSpec('sum', target_name, na_policy='ignore', alias=NUMERATOR_COL),
            AggregationSpec('count', target_name, na_policy='ignore', alias=DENOMINATOR_COL),
        ]
    )
    logger.debug(
        f"Built encodings for '{column_name}' grouped by {group_by}: {encodings.height} key(s)"
    )
    return frame.with_data(encodings)
