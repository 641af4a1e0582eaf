# ltr/ranking/stopping.py
"""
Early-termination policies, consulted once per iteration after the barrier.

  0  ITERATIONS      run the configured number of iterations, nothing else
  1  CONVERGENCE     stop once the mean pairwise loss changes by less than
                     `tolerance` (relative) between two iterations
  2  NO_IMPROVEMENT  stop once the measure hasn't improved for `patience`
                     consecutive iterations (like LightGBM's early_stopping)
"""

from enum import IntEnum

from ltr.errors import ConfigurationError


class StoppingCondition(IntEnum):
    ITERATIONS = 0
    CONVERGENCE = 1
    NO_IMPROVEMENT = 2

    @classmethod
    def parse(cls, value) -> "StoppingCondition":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ConfigurationError(
                "stopping_condition", value, [f"{c.value} ({c.name.lower()})" for c in cls]
            ) from None


class Stopper:

    def __init__(
        self,
        condition: StoppingCondition = StoppingCondition.ITERATIONS,
        tolerance: float = 1e-4,
        patience: int = 3,
    ):
        self.condition = StoppingCondition(condition)
        self.tolerance = tolerance
        self.patience = patience
        self.reset()

    def reset(self) -> None:
        self._last_loss: float | None = None
        self._best: float | None = None
        self._stale = 0

    def should_stop(self, measure: float, loss: float) -> bool:
        if self.condition == StoppingCondition.CONVERGENCE:
            last, self._last_loss = self._last_loss, loss
            if last is None:
                return False
            return abs(last - loss) <= self.tolerance * max(abs(last), 1e-12)

        if self.condition == StoppingCondition.NO_IMPROVEMENT:
            if self._best is None or measure > self._best:
                self._best = measure
                self._stale = 0
                return False
            self._stale += 1
            return self._stale >= self.patience

        return False

    def __repr__(self) -> str:
        return f"Stopper({self.condition.name.lower()})"
