# ltr/models/base.py
"""
Abstract interfaces for differentiable scoring models.

A DifferentiableModel turns a feature vector into a relevance score.
A ModelGradient is an accumulator bound to one model: ranking algorithms
feed it per-document contributions with update(), and apply_to() commits
the accumulated delta to the model's weights.

Sign convention:
  update() accumulates the *descent* step  -η · m · ∂s/∂w
  apply_to() commits it additively        w += gradient
where m is the loss derivative w.r.t. the document's score (the lambda)
handed in by the ranking algorithm. Net effect: gradient descent.

Concurrency contract: during an iteration, models are only read (score,
forward). apply_to() is only called at the iteration barrier.
"""

from abc import ABC, abstractmethod

import numpy as np

from ltr.models.learning_rate import LearningRate


class DifferentiableModel(ABC):

    kind: str = ""

    def __init__(self, dimensions: int, learning_rate: LearningRate):
        self.dimensions = dimensions
        self.learning_rate = learning_rate

    @abstractmethod
    def forward(self, features: np.ndarray) -> tuple[np.ndarray, np.ndarray | None]:
        """
        Score a (n_docs, dimensions) matrix and keep the intermediate
        activations needed by the gradient.
        Returns: (scores of shape (n_docs,), hidden activations or None)
        """
        ...

    @abstractmethod
    def gradient(self) -> "ModelGradient":
        """Construct a zeroed accumulator bound to this model."""
        ...

    @abstractmethod
    def state(self) -> dict[str, np.ndarray]:
        ...

    @abstractmethod
    def load_state(self, state: dict[str, np.ndarray]) -> None:
        ...

    def scores(self, features: np.ndarray) -> np.ndarray:
        scores, _ = self.forward(np.atleast_2d(features))
        return scores

    def score(self, features: np.ndarray) -> float:
        return float(self.scores(np.asarray(features, dtype=np.float64))[0])


class ModelGradient(ABC):

    def __init__(self, model: DifferentiableModel):
        self.model = model

    @abstractmethod
    def arrays(self) -> list[np.ndarray]:
        """The accumulator arrays, in the same order as the model weights."""
        ...

    @abstractmethod
    def update(
        self,
        features: np.ndarray,
        y: float,
        multiplier: float,
        hidden: np.ndarray | None = None,
    ) -> None:
        ...

    @abstractmethod
    def apply_to(self, model: DifferentiableModel | None = None) -> None:
        ...

    def reset(self) -> None:
        for arr in self.arrays():
            arr.fill(0.0)

    def merge(self, other: "ModelGradient") -> None:
        mine, theirs = self.arrays(), other.arrays()
        if len(mine) != len(theirs) or any(a.shape != b.shape for a, b in zip(mine, theirs)):
            raise ValueError("Cannot merge gradients of differently shaped models")
        for a, b in zip(mine, theirs):
            a += b

    def is_finite(self) -> bool:
        return all(np.all(np.isfinite(arr)) for arr in self.arrays())

    def norm(self) -> float:
        return float(np.sqrt(sum(np.sum(arr * arr) for arr in self.arrays())))
