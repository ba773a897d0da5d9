# Adds uniform noise to an encoded column.

"""
Extended Description:
Regularizes an encoded column by adding, to every non-missing value, uniform
noise in [-noise_level, +noise_level). The uniform draws come from one stream
seeded once and indexed by row position, so for a given seed the result is the
same however the frame is partitioned. The column is modified in place.
"""

import logging
import math
from typing import Optional, Union

import numpy as np
import polars as pl

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_for_each_partition import concat_partition_results, for_each_partition
from te_utils.other_resolve_seed import resolve_seed

logger = logging.getLogger(__name__)

def add_noise(
    frame: Frame,
    column: Union[int, str],
    noise_level: float,
    seed: Optional[int] = None
) -> None:
    """Adds U[-noise_level, noise_level) jitter to a numeric column in place.

    Args:
        frame (Frame): Working frame. Mutated in place.
        column (Union[int, str]): Index or name of the encoded column.
        noise_level (float): Half-width of the noise interval, >= 0.
        seed (Optional[int], optional): Seed of the random stream. None picks a
                                        random seed. Defaults to None.

    Raises:
        PreconditionError: If noise_level is negative or not finite, or the
                           column is not numeric.
        pl.exceptions.ColumnNotFoundError: If the column does not exist.
        StageExecutionError: If a partition fails.
    """
    operation = 'add_noise'
    index = frame.resolve(column, operation)
    name = frame.name(index)
    if not math.isfinite(noise_level) or noise_level < 0:
        raise PreconditionError(
            f"noise_level must be a finite number >= 0, got {noise_level}.",
            operation=operation, column=name
        )
    if not frame.dtype(index).is_numeric():
        raise PreconditionError("Noise can only be added to a numeric column.",
                                operation=operation, column=name)

    seed = resolve_seed(seed)
    runif = np.random.default_rng(seed).random(frame.num_rows)
    logger.debug(f"Adding noise (level={noise_level}, seed={seed}) to '{name}'")

    def jitter_partition(offset: int, part: pl.DataFrame) -> pl.Series:
        uniform = pl.Series("runif", runif[offset:offset + part.height], dtype=pl.Float64)
        values = part.to_series(index).cast(pl.Float64)
        return values + (uniform * 2 * noise_level - noise_level)

    results = for_each_partition(frame, jitter_partition, operation)
    frame.replace_column(index, concat_partition_results(results, name))
