# Computes the target-encoded column from merged numerator/denominator columns.

"""
Extended Description:
Given a frame that already carries `numerator` and `denominator` columns (see
`merge_encodings`), computes one encoded value per row and appends it as a new
Float64 column:

- numerator or denominator missing  -> null
- denominator == 0                  -> prior mean
- otherwise posterior = numerator / denominator, optionally blended with the
  prior mean:  lambda * posterior + (1 - lambda) * prior, where
  lambda = 1 / (1 + exp((k - denominator) / f)).

The formula works on means only, so it serves classification (0/1 targets)
and regression targets alike. Rows are independent and are computed partition
by partition; the column is appended only once every partition has succeeded.
"""

import logging
from typing import Optional

import numpy as np
import polars as pl

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.blending_params import BlendingParams
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_for_each_partition import concat_partition_results, for_each_partition

logger = logging.getLogger(__name__)

def get_blended_value(
    posterior_mean,
    prior_mean: float,
    number_of_rows_for_category,
    blending_params: BlendingParams
):
    """Blends posterior and prior means with a logistic shrinkage weight.

    Works on scalars and on numpy arrays alike. As the number of rows grows
    the result converges to the posterior mean; with little support it stays
    close to the prior mean.

    Args:
        posterior_mean: Category mean (scalar or array).
        prior_mean (float): Global mean.
        number_of_rows_for_category: Category support n (scalar or array).
        blending_params (BlendingParams): Inflection point k and smoothing f.

    Returns:
        The blended value(s).
    """
    exponent = (blending_params.inflection_point - np.asarray(number_of_rows_for_category, dtype=float)) \
        / blending_params.smoothing
    lambda_ = 1.0 / (1.0 + np.exp(exponent))
    return lambda_ * posterior_mean + (1.0 - lambda_) * prior_mean

def _encoded_value_expr(
    prior_mean: float,
    blending_params: Optional[BlendingParams]
) -> pl.Expr:
    num = pl.col(NUMERATOR_COL).cast(pl.Float64).fill_nan(None)
    den = pl.col(DENOMINATOR_COL).cast(pl.Float64).fill_nan(None)
    posterior = num / den
    if blending_params is None:
        value = posterior
    else:
        lambda_ = 1.0 / (1.0 + ((blending_params.inflection_point - den) / blending_params.smoothing).exp())
        value = lambda_ * posterior + (1.0 - lambda_) * prior_mean
    return (
        pl.when(num.is_null() | den.is_null()).then(None)
        .when(den == 0).then(pl.lit(prior_mean, dtype=pl.Float64))
        .otherwise(value)
        .cast(pl.Float64)
    )

def apply_encodings(
    frame: Frame,
    new_encoded_column_name: str,
    prior_mean: float,
    blending_params: Optional[BlendingParams] = None
) -> int:
    """Appends the encoded column to `frame` and returns its index.

    Args:
        frame (Frame): Frame with adjacent numerator/denominator columns.
        new_encoded_column_name (str): Name of the column to append.
        prior_mean (float): Global prior mean (see `calculate_prior_mean`).
        blending_params (Optional[BlendingParams], optional): If given, posterior
            and prior means are blended. Defaults to None.

    Returns:
        int: Index of the new encoded column.

    Raises:
        PreconditionError: If numerator/denominator are missing or not adjacent,
                           or the new column name already exists.
        StageExecutionError: If encoding a partition fails.
    """
    operation = 'apply_encodings'
    numerator_idx = frame.find(NUMERATOR_COL)
    if numerator_idx < 0 or frame.find(DENOMINATOR_COL) != numerator_idx + 1:
        raise PreconditionError(
            f"Frame must contain adjacent '{NUMERATOR_COL}' and '{DENOMINATOR_COL}' columns.",
            operation=operation
        )
    if frame.find(new_encoded_column_name) >= 0:
        raise PreconditionError(
            "Encoded column already exists.", operation=operation, column=new_encoded_column_name
        )

    encoded_expr = _encoded_value_expr(prior_mean, blending_params)

    def encode_partition(offset: int, part: pl.DataFrame) -> pl.Series:
        if logger.isEnabledFor(logging.DEBUG):
            n_zero = part.select(
                ((pl.col(DENOMINATOR_COL) == 0) & pl.col(NUMERATOR_COL).is_not_null()).sum()
            ).item()
            if n_zero:
                logger.debug(
                    f"Denominator is zero for {n_zero} row(s) of '{new_encoded_column_name}' "
                    f"(rows from {offset}). Imputing with prior mean = {prior_mean}"
                )
        return part.select(encoded_expr.alias(new_encoded_column_name)).to_series()

    results = for_each_partition(frame, encode_partition, operation)
    encoded = concat_partition_results(results, new_encoded_column_name)
    return frame.add_column(new_encoded_column_name, encoded)
