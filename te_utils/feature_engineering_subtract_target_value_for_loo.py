# Removes each row's own target from its merged statistics (leave-one-out).

"""
Extended Description:
After a plain merge every row carries the numerator/denominator of its whole
category, its own target included. For leave-one-out encoding the row's own
contribution is removed in place: numerator -= target, denominator -= 1, for
every row whose target is not missing. Rows with a missing target contributed
nothing and are left untouched. Must run before `apply_encodings`.
"""

import polars as pl

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_for_each_partition import for_each_partition

def subtract_target_value_for_loo(frame: Frame, target_column_name: str) -> None:
    """Subtracts each row's target from its numerator and 1 from its denominator.

    Args:
        frame (Frame): Working frame with numerator, denominator and target columns.
                       Mutated in place.
        target_column_name (str): Name of the target column.

    Raises:
        PreconditionError: If any of the three columns is missing.
        StageExecutionError: If adjusting a partition fails.
    """
    operation = 'subtract_target_value_for_loo'
    for name in (NUMERATOR_COL, DENOMINATOR_COL, target_column_name):
        if frame.find(name) < 0:
            raise PreconditionError("Required column is missing.", operation=operation, column=name)

    target = pl.col(target_column_name).cast(pl.Float64).fill_nan(None)
    has_target = target.is_not_null()

    def adjust_partition(offset: int, part: pl.DataFrame) -> pl.DataFrame:
        return part.select(
            pl.when(has_target).then(pl.col(NUMERATOR_COL) - target)
              .otherwise(pl.col(NUMERATOR_COL)).alias(NUMERATOR_COL),
            pl.when(has_target).then(pl.col(DENOMINATOR_COL) - 1)
              .otherwise(pl.col(DENOMINATOR_COL)).alias(DENOMINATOR_COL),
        )

    results = for_each_partition(frame, adjust_partition, operation)
    adjusted = pl.concat(results, how='vertical', rechunk=True)
    with frame.write_lock():
        frame.replace_column(NUMERATOR_COL, adjusted[NUMERATOR_COL])
        frame.replace_column(DENOMINATOR_COL, adjusted[DENOMINATOR_COL])
