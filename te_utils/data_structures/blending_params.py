# BlendingParams dataclass

"""
Extended Description:
Immutable parameters of the logistic shrinkage curve used when blending a
category's posterior mean with the global prior mean:
lambda(n) = 1 / (1 + exp((inflection_point - n) / smoothing)).
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class BlendingParams:
    """Inflection point (k) and smoothing (f) of the shrinkage curve.

    `inflection_point` is the category support at which the posterior and the
    prior get equal weight; `smoothing` controls how steep the transition is.
    Both must be strictly positive.
    """
    inflection_point: float
    smoothing: float

    def __post_init__(self) -> None:
        for name in ('inflection_point', 'smoothing'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise TypeError(f"{name} must be a real number, got {type(value).__name__}.")
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value}.")


DEFAULT_BLENDING_PARAMS = BlendingParams(inflection_point=10, smoothing=20)
