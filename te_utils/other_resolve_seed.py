# Turns an optional seed into a concrete one.

"""
Extended Description:
Random operations (noise injection, fold assignment) accept `seed=None` to
mean "pick one at random". This helper draws that seed from fresh OS entropy
and logs it, so a run can be reproduced afterwards by passing the logged value.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

def resolve_seed(seed: Optional[int] = None) -> int:
    """Returns `seed` unchanged, or a freshly generated seed if it is None.

    Args:
        seed (Optional[int], optional): A fixed seed, or None for a random one.
                                        Defaults to None.

    Returns:
        int: A non-negative seed usable with `numpy.random.default_rng`.

    Raises:
        ValueError: If a negative seed is given.
    """
    if seed is None:
        seed = int(np.random.SeedSequence().generate_state(1, dtype=np.uint32)[0])
        logger.info(f"Generated random seed: {seed}")
        return seed
    if seed < 0:
        raise ValueError(f"seed must be non-negative or None, got {seed}.")
    return int(seed)
