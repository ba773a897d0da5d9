# Calculates the global prior mean of a statistics table.

import logging

import numpy as np

from te_utils.constants import DENOMINATOR_COL, NUMERATOR_COL
from te_utils.data_structures.frame import Frame
from te_utils.other_exceptions import PreconditionError

logger = logging.getLogger(__name__)

def calculate_prior_mean(encodings: Frame) -> float:
    """Returns mean(numerator) / mean(denominator) over a statistics table.

    This equals total numerator / total denominator. It should be called on a
    fold-collapsed (or fold-agnostic) table. An empty table or a zero total
    denominator yields NaN rather than an error.

    Raises:
        PreconditionError: If the numerator or denominator column is missing.
    """
    if encodings.find(NUMERATOR_COL) < 0 or encodings.find(DENOMINATOR_COL) < 0:
        raise PreconditionError(
            f"Encodings must contain '{NUMERATOR_COL}' and '{DENOMINATOR_COL}' columns.",
            operation='calculate_prior_mean'
        )
    numerator_mean = encodings.column(NUMERATOR_COL).mean()
    denominator_mean = encodings.column(DENOMINATOR_COL).mean()
    if numerator_mean is None or denominator_mean is None or denominator_mean == 0:
        logger.warning("Prior mean is undefined (empty statistics or zero denominator); using NaN.")
        return np.nan
    return float(numerator_mean) / float(denominator_mean)
