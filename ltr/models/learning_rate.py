# ltr/models/learning_rate.py
"""
Learning-rate policies.

A policy is shared by the model and every gradient accumulator bound to it.
The controller calls step(iteration) once at the start of each iteration,
before any worker runs, so `value` is constant for the whole iteration.

Policy strings (the `learning_rate` option):
  ""                        → constant 0.01
  "constant:ETA"            → ETA
  "inverse:ETA0,DECAY"      → ETA0 / (1 + DECAY * t)
  "exponential:ETA0,GAMMA"  → ETA0 * GAMMA^t
"""

from abc import ABC, abstractmethod

from ltr.errors import ConfigurationError

DEFAULT_LEARNING_RATE = 0.01


class LearningRate(ABC):

    def __init__(self):
        self.iteration = 0

    @abstractmethod
    def rate(self, iteration: int) -> float:
        ...

    def step(self, iteration: int) -> float:
        self.iteration = iteration
        return self.value

    @property
    def value(self) -> float:
        return self.rate(self.iteration)


class ConstantLearningRate(LearningRate):

    def __init__(self, eta: float = DEFAULT_LEARNING_RATE):
        super().__init__()
        self.eta = eta

    def rate(self, iteration: int) -> float:
        return self.eta

    def __repr__(self) -> str:
        return f"constant:{self.eta}"


class InverseDecayLearningRate(LearningRate):

    def __init__(self, eta0: float = DEFAULT_LEARNING_RATE, decay: float = 1.0):
        super().__init__()
        self.eta0 = eta0
        self.decay = decay

    def rate(self, iteration: int) -> float:
        return self.eta0 / (1.0 + self.decay * iteration)

    def __repr__(self) -> str:
        return f"inverse:{self.eta0},{self.decay}"


class ExponentialLearningRate(LearningRate):

    def __init__(self, eta0: float = DEFAULT_LEARNING_RATE, gamma: float = 0.9):
        super().__init__()
        self.eta0 = eta0
        self.gamma = gamma

    def rate(self, iteration: int) -> float:
        return self.eta0 * self.gamma ** iteration

    def __repr__(self) -> str:
        return f"exponential:{self.eta0},{self.gamma}"


LEARNING_RATES = {
    "constant": ConstantLearningRate,
    "inverse": InverseDecayLearningRate,
    "exponential": ExponentialLearningRate,
}


def create_learning_rate(policy: str | float | None) -> LearningRate:
    """Parse a policy string (or a bare number) into a LearningRate."""
    if policy is None or policy == "":
        return ConstantLearningRate()
    if isinstance(policy, (int, float)):
        return ConstantLearningRate(float(policy))

    name, _, params = str(policy).partition(":")
    name = name.strip()
    if name not in LEARNING_RATES:
        # a bare number is shorthand for a constant rate
        try:
            return ConstantLearningRate(float(name))
        except ValueError:
            raise ConfigurationError("learning_rate", policy, LEARNING_RATES) from None

    try:
        args = [float(p) for p in params.split(",") if p.strip()]
    except ValueError:
        raise ConfigurationError("learning_rate", policy) from None

    try:
        rate = LEARNING_RATES[name](*args)
    except TypeError:
        raise ConfigurationError("learning_rate", policy) from None
    if rate.rate(0) <= 0:
        raise ConfigurationError("learning_rate", policy)
    return rate
