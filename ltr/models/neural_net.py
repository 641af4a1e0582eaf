# ltr/models/neural_net.py
"""
Feed-forward neural network scorer with a single hidden layer.

Forward pass (no bias terms):
  hidden_h = σ( Σ_x features[x] · W1[x][h] )
  y        = σ( Σ_h hidden_h · Wy[h] )

Backward pass for one document, given the loss derivative m = ∂C/∂y
supplied by the ranking algorithm:
  δy       = σ'(y)          = y · (1 - y)
  ΔWy[h]   = -η · m · δy · hidden_h
  δh       = σ'(hidden_h)   = hidden_h · (1 - hidden_h)
  ΔW1[i][h] = -η · m · δy · Wy[h] · δh · features[i]

Weight init: i.i.d. uniform on [0.1, 1.0) from a seeded generator, W1 first
(row-major), then Wy. Same seed + same architecture → identical weights.
"""

import numpy as np

from ltr.models.activation import Activation, Sigmoid
from ltr.models.base import DifferentiableModel, ModelGradient
from ltr.models.learning_rate import LearningRate

DEFAULT_SEED = 1001
INIT_LOW, INIT_HIGH = 0.1, 1.0


class NeuralNetwork(DifferentiableModel):

    kind = "nn"

    def __init__(
        self,
        dimensions: int,
        hidden_neurons: int,
        learning_rate: LearningRate,
        activation: Activation | None = None,
        seed: int = DEFAULT_SEED,
    ):
        super().__init__(dimensions, learning_rate)
        if hidden_neurons <= 0:
            raise ValueError(f"hidden_neurons must be positive, got {hidden_neurons}")
        self.hidden_neurons = hidden_neurons
        self.activation = activation or Sigmoid(K=1.0)
        self.seed = seed
        self.initialize_weights()

    def initialize_weights(self) -> None:
        rng = np.random.default_rng(self.seed)
        self.w1 = rng.uniform(INIT_LOW, INIT_HIGH, size=(self.dimensions, self.hidden_neurons))
        self.wy = rng.uniform(INIT_LOW, INIT_HIGH, size=self.hidden_neurons)

    def hidden(self, features: np.ndarray) -> np.ndarray:
        return self.activation(np.asarray(features, dtype=np.float64) @ self.w1)

    def forward(self, features: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        hidden = np.atleast_2d(self.hidden(features))
        return np.atleast_1d(self.activation(hidden @ self.wy)), hidden

    def gradient(self) -> "NeuralNetworkGradient":
        return NeuralNetworkGradient(self)

    def state(self) -> dict[str, np.ndarray]:
        return {"w1": self.w1.copy(), "wy": self.wy.copy()}

    def load_state(self, state: dict[str, np.ndarray]) -> None:
        w1 = np.asarray(state["w1"], dtype=np.float64)
        wy = np.asarray(state["wy"], dtype=np.float64)
        if w1.ndim != 2 or w1.shape[1] != wy.shape[0]:
            raise ValueError(f"Inconsistent layer shapes: w1 {w1.shape}, wy {wy.shape}")
        self.dimensions, self.hidden_neurons = w1.shape
        self.w1 = w1.copy()
        self.wy = wy.copy()

    def __repr__(self) -> str:
        return f"NeuralNetwork(dimensions={self.dimensions}, hidden={self.hidden_neurons})"


class NeuralNetworkGradient(ModelGradient):

    def __init__(self, model: NeuralNetwork):
        super().__init__(model)
        self.gradient1 = np.zeros_like(model.w1)
        self.gradienty = np.zeros_like(model.wy)

    def arrays(self) -> list[np.ndarray]:
        return [self.gradient1, self.gradienty]

    def update(self, features, y, multiplier, hidden=None) -> None:
        model = self.model
        features = np.asarray(features, dtype=np.float64)
        if hidden is None:
            hidden = model.hidden(features)
        eta = model.learning_rate.value

        # Output layer.
        deltay = model.activation.derivative(y)
        step = eta * multiplier * deltay
        self.gradienty -= step * hidden

        # Hidden layer.
        deltah = model.activation.derivative(hidden)
        self.gradient1 -= step * np.outer(features, model.wy * deltah)

    def apply_to(self, model: NeuralNetwork | None = None) -> None:
        model = model or self.model
        model.w1 += self.gradient1
        model.wy += self.gradienty
