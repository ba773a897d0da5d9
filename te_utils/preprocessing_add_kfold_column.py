# Appends a k-fold assignment column to a frame.

"""
Extended Description:
Assigns every row to one of `n_folds` disjoint folds using a shuffled
scikit-learn KFold splitter and appends the fold ids (0..n_folds-1) as a new
Int64 column. The column is what `build_encodings_frame` and
`merge_encodings` use for out-of-fold target encoding.
"""

import logging
from typing import Optional

import numpy as np
import polars as pl
from sklearn.model_selection import KFold

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError
from te_utils.other_resolve_seed import resolve_seed

logger = logging.getLogger(__name__)

def add_kfold_column(
    frame: Frame,
    name: str,
    n_folds: int,
    seed: Optional[int] = None
) -> int:
    """Adds a fold id column and returns its index.

    Args:
        frame (Frame): The frame to extend. Mutated in place.
        name (str): Name of the new fold column.
        n_folds (int): Number of folds (>= 2, and at most the number of rows).
        seed (Optional[int], optional): Shuffling seed. None picks a random seed.
                                        Defaults to None.

    Returns:
        int: Index of the new fold column.

    Raises:
        PreconditionError: If n_folds is invalid for this frame or `name` exists.
    """
    operation = 'add_kfold_column'
    n_rows = frame.num_rows
    if n_folds < 2:
        raise PreconditionError(f"n_folds must be >= 2, got {n_folds}.", operation=operation)
    if n_folds > n_rows:
        raise PreconditionError(
            f"Cannot split {n_rows} row(s) into {n_folds} folds.", operation=operation
        )

    seed = resolve_seed(seed)
    splitter = KFold(n_splits=n_folds, shuffle=True, random_state=seed)
    folds = np.empty(n_rows, dtype=np.int64)
    for fold_idx, (_, valid_indices) in enumerate(splitter.split(np.arange(n_rows))):
        folds[valid_indices] = fold_idx

    logger.debug(f"Assigned {n_rows} rows to {n_folds} folds (seed={seed})")
    return frame.add_column(name, pl.Series(name, folds, dtype=pl.Int64))
