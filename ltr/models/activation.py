# ltr/models/activation.py
"""
Activation functions for the neural network scorer.

An activation carries three things:
  activation(x)        the nonlinearity itself
  derivative(fx)       its derivative, expressed through the activation
                         value fx = activation(x) (what backprop has at hand)
  logit(y)             the inverse, defined only on the open range (0, 1)

Logistic sigmoid with sharpness K:
  σ(x)  = 1 / (1 + e^(-K·x))
  σ'(x) = σ(x) · (1 - σ(x))          (K folded into the learning rate)
  σ⁻¹(y) = ln(y) - ln(1 - y)

σ saturates at 0 and 1, and the logit diverges there. Instead of letting
inf/NaN leak into the weights, logit() clamps into [eps, 1 - eps];
pass strict=True to get a NumericDomainError instead.
"""

from abc import ABC, abstractmethod

import numpy as np
from loguru import logger

from ltr.errors import NumericDomainError

LOGIT_EPS = 1e-12


class Activation(ABC):

    @abstractmethod
    def activation(self, x):
        ...

    @abstractmethod
    def derivative(self, fx):
        """Derivative at x, given fx = activation(x)."""
        ...

    @abstractmethod
    def logit(self, y, strict: bool = False):
        ...

    def __call__(self, x):
        return self.activation(x)


class Sigmoid(Activation):

    def __init__(self, K: float = 1.0):
        self.K = K

    def activation(self, x):
        x = np.asarray(x, dtype=np.float64)
        # exp overflows for large negative K*x; clip keeps the result at 0/1
        z = np.clip(-self.K * x, -500.0, 500.0)
        out = 1.0 / (1.0 + np.exp(z))
        return float(out) if out.ndim == 0 else out

    def derivative(self, fx):
        fx = np.asarray(fx, dtype=np.float64)
        out = fx * (1.0 - fx)
        return float(out) if out.ndim == 0 else out

    def logit(self, y, strict: bool = False):
        y = np.asarray(y, dtype=np.float64)
        outside = (y <= 0.0) | (y >= 1.0) | np.isnan(y)
        if np.any(outside):
            if strict:
                raise NumericDomainError(f"logit is only defined on (0, 1), got {y}")
            logger.debug(f"logit argument outside (0, 1), clamping: {y}")
            y = np.clip(np.nan_to_num(y, nan=0.5), LOGIT_EPS, 1.0 - LOGIT_EPS)
        out = (np.log(y) - np.log1p(-y)) / self.K
        return float(out) if out.ndim == 0 else out

    def __repr__(self) -> str:
        return f"Sigmoid(K={self.K})"
