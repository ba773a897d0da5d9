# Concatenates two frames vertically.

from typing import Optional

import polars as pl

from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError

def rbind(a: Optional[Frame], b: Frame) -> Frame:
    """Row-binds `b` under `a`.

    Args:
        a (Optional[Frame]): Upper frame. If None, `b` is returned unchanged.
        b (Frame): Lower frame, with the same column names and dtypes as `a`.

    Returns:
        Frame: A new frame with the rows of `a` followed by the rows of `b`,
               keeping the partitioning settings of `a`.

    Raises:
        PreconditionError: If the schemas differ.
    """
    if a is None:
        return b
    if a.df.schema != b.df.schema:
        raise PreconditionError(
            f"Cannot rbind frames with different schemas: {a.df.schema} vs {b.df.schema}.",
            operation='rbind'
        )
    return a.with_data(pl.concat([a.df, b.df], how='vertical', rechunk=True))
