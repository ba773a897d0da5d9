# Collapses a per-(category, fold) statistics table into per-category totals.

"""
Extended Description:
Out-of-fold statistics are built per (category, fold). The prior mean and the
encodings applied to unseen data need plain per-category totals, obtained by
summing numerators and denominators across folds. When the table has no fold
structure it already is per-category; an independent copy is returned so the
caller may mutate it without touching the source.
"""

from typing import Union

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.aggregation_spec import AggregationSpec
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_group_by_with_aggregations import group_by_with_aggregations

def group_encodings_by_category(
    encodings: Frame,
    column_to_encode: Union[int, str],
    has_folds: bool = True
) -> Frame:
    """Sums numerator and denominator per category across folds.

    Args:
        encodings (Frame): Statistics frame from `build_encodings_frame`.
        column_to_encode (Union[int, str]): Index or name of the category column
                                            in `encodings`.
        has_folds (bool, optional): Whether `encodings` is partitioned by fold.
                                    Defaults to True.

    Returns:
        Frame: A new frame [<column>, numerator, denominator], one row per category.

    Raises:
        PreconditionError: If the numerator/denominator columns are missing or
                           not adjacent.
        pl.exceptions.ColumnNotFoundError: If the category column does not exist.
    """
    operation = 'group_encodings_by_category'
    numerator_idx = encodings.find(NUMERATOR_COL)
    if numerator_idx < 0 or encodings.find(DENOMINATOR_COL) != numerator_idx + 1:
        raise PreconditionError(
            f"Encodings must contain adjacent '{NUMERATOR_COL}' and '{DENOMINATOR_COL}' columns.",
            operation=operation
        )
    column_name = encodings.name(encodings.resolve(column_to_encode, operation))

    if not has_folds:
        return encodings.deep_copy()

    collapsed = group_by_with_aggregations(
        encodings.df,
        [column_name],
        [
            AggregationSpec('sum', NUMERATOR_COL, na_policy='ignore', alias=NUMERATOR_COL),
            AggregationSpec('sum', DENOMINATOR_COL, na_policy='ignore', alias=DENOMINATOR_COL),
        ]
    )
    # Row counts stay integral after summing.
    collapsed = collapsed.with_columns(collapsed[DENOMINATOR_COL].cast(encodings.dtype(DENOMINATOR_COL)))
    return encodings.with_data(collapsed)
