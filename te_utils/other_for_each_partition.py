# Maps a function over the row partitions of a Frame in parallel.

"""
Extended Description:
Each partition is a row-contiguous slice of the frame, handed to `fn` together
with its row offset in the full frame. Partitions are processed independently
with joblib (thread backend, so Polars slices are shared without copying) and
the results come back in partition order. The call returns only once every
partition has finished. If any partition raises, the whole stage fails with a
StageExecutionError and the caller writes nothing back.
"""

import logging
from typing import Any, Callable, List, Optional

import polars as pl
from joblib import Parallel, delayed

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import StageExecutionError, TargetEncodingError

logger = logging.getLogger(__name__)

def for_each_partition(
    frame: Frame,
    fn: Callable[[int, pl.DataFrame], Any],
    operation: str,
    n_jobs: Optional[int] = None
) -> List[Any]:
    """Applies `fn(offset, partition)` to every partition of `frame`.

    Args:
        frame (Frame): The frame to process.
        fn (Callable[[int, pl.DataFrame], Any]): Function called once per partition
            with the partition's row offset and its rows.
        operation (str): Name of the calling stage, used in error messages.
        n_jobs (Optional[int], optional): Number of parallel workers. Defaults to
                                          the frame's own `n_jobs` setting.

    Returns:
        List[Any]: The per-partition results, in partition order.

    Raises:
        StageExecutionError: If any partition task fails.
    """
    partitions = frame.partitions()
    workers = frame.n_jobs if n_jobs is None else n_jobs
    logger.debug(f"{operation}: mapping over {len(partitions)} partition(s) with n_jobs={workers}")
    try:
        return Parallel(n_jobs=workers, prefer='threads')(
            delayed(fn)(offset, part) for offset, part in partitions
        )
    except TargetEncodingError:
        raise
    except Exception as e:
        raise StageExecutionError(f"Partition task failed: {e}", operation=operation) from e

def concat_partition_results(results: List[pl.Series], name: str) -> pl.Series:
    """Concatenates per-partition Series back into one row-aligned Series."""
    return pl.concat(results, how='vertical', rechunk=True).alias(name)
