# Replaces missing categories with a synthetic category label.

"""
Extended Description:
Target encoding cannot join on a missing category, so missing values of a
categorical column are replaced by a dedicated label (by convention
`<column>_NA`), which is appended to the column's domain. For Enum columns the
dtype itself is widened with the new category. The replacement is a
structural change and happens in a single step under the frame's write lock.
Nothing changes when the column has no missing values.
"""

import logging
from typing import Union

import polars as pl

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError

logger = logging.getLogger(__name__)

def impute_categorical_column(
    frame: Frame,
    column: Union[int, str],
    na_category: str
) -> bool:
    """Fills missing values of a categorical column with `na_category`.

    Args:
        frame (Frame): Working frame. Mutated in place.
        column (Union[int, str]): Index or name of the categorical column.
        na_category (str): Label used for missing values.

    Returns:
        bool: True if at least one value was imputed.

    Raises:
        PreconditionError: If the column is not categorical, or `na_category`
                           is already a regular category of the column.
        pl.exceptions.ColumnNotFoundError: If the column does not exist.
    """
    operation = 'impute_categorical_column'
    with frame.write_lock():
        index = frame.resolve(column, operation)
        series = frame.column(index)
        if not frame.is_categorical(index):
            raise PreconditionError("Column is not categorical.", operation=operation, column=column)

        n_missing = series.null_count()
        if n_missing == 0:
            return False

        domain = frame.domain(index)
        if na_category in domain:
            raise PreconditionError(
                f"Category {na_category!r} already exists in the column domain.",
                operation=operation, column=column
            )

        if isinstance(series.dtype, pl.Enum):
            frame.update_domain(index, domain + [na_category])
            imputed = frame.column(index).fill_null(na_category)
        else:
            imputed = series.cast(pl.String).fill_null(na_category).cast(series.dtype)

        frame.replace_column(index, imputed)
        logger.debug(f"Imputed {n_missing} missing value(s) of '{series.name}' with {na_category!r}")
        return True
