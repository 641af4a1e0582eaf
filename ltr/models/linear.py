# ltr/models/linear.py
"""
Linear scorer: score(x) = w · x. No bias, no nonlinearity.
"""

import numpy as np

from ltr.models.base import DifferentiableModel, ModelGradient
from ltr.models.learning_rate import LearningRate


class LinearRegression(DifferentiableModel):

    kind = "linreg"

    def __init__(
        self,
        dimensions: int,
        learning_rate: LearningRate,
        weights: np.ndarray | None = None,
    ):
        super().__init__(dimensions, learning_rate)
        if weights is None:
            self.weights = np.zeros(dimensions, dtype=np.float64)
        else:
            self.weights = np.array(weights, dtype=np.float64)
            if self.weights.shape != (dimensions,):
                raise ValueError(f"Expected {dimensions} weights, got {self.weights.shape}")

    def forward(self, features: np.ndarray) -> tuple[np.ndarray, None]:
        return np.asarray(features, dtype=np.float64) @ self.weights, None

    def gradient(self) -> "LinearGradient":
        return LinearGradient(self)

    def state(self) -> dict[str, np.ndarray]:
        return {"weights": self.weights.copy()}

    def load_state(self, state: dict[str, np.ndarray]) -> None:
        weights = np.asarray(state["weights"], dtype=np.float64)
        self.dimensions = weights.shape[0]
        self.weights = weights.copy()

    def __repr__(self) -> str:
        return f"LinearRegression(dimensions={self.dimensions})"


class LinearGradient(ModelGradient):

    def __init__(self, model: LinearRegression):
        super().__init__(model)
        self.gradient = np.zeros_like(model.weights)

    def arrays(self) -> list[np.ndarray]:
        return [self.gradient]

    def update(self, features, y, multiplier, hidden=None) -> None:
        # ∂s/∂w = x
        eta = self.model.learning_rate.value
        self.gradient -= eta * multiplier * np.asarray(features, dtype=np.float64)

    def apply_to(self, model: LinearRegression | None = None) -> None:
        model = model or self.model
        model.weights += self.gradient
