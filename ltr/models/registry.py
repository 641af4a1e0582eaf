# ltr/models/registry.py
"""
Model name → factory dispatch.

  linreg           LinearRegression
  nnN / nn_N / nn:N  NeuralNetwork with N hidden neurons

Names are resolved *before* any data is read (dimensions are only known
afterwards), so resolve_model() returns a factory taking the dimensions.
"""

import re
from typing import Callable

from ltr.errors import ConfigurationError
from ltr.models.base import DifferentiableModel
from ltr.models.learning_rate import LearningRate
from ltr.models.linear import LinearRegression
from ltr.models.neural_net import DEFAULT_SEED, NeuralNetwork

MODEL_CHOICES = ["linreg", "nnN"]

_NN_PATTERN = re.compile(r"^nn[_:]?(\d+)$")

ModelFactory = Callable[[int, LearningRate], DifferentiableModel]


def resolve_model(name: str, seed: int = DEFAULT_SEED) -> ModelFactory:
    name = (name or "").strip()

    if name == "linreg":
        return lambda dimensions, lr: LinearRegression(dimensions, lr)

    if name.startswith("nn"):
        match = _NN_PATTERN.match(name)
        neurons = int(match.group(1)) if match else 0
        if neurons <= 0:
            raise ConfigurationError(
                "mlmodel", name, ["nnN (N = number of hidden neurons, e.g. nn20)"]
            )
        return lambda dimensions, lr: NeuralNetwork(dimensions, neurons, lr, seed=seed)

    raise ConfigurationError("mlmodel", name, MODEL_CHOICES)


def create_model(
    name: str, dimensions: int, learning_rate: LearningRate, seed: int = DEFAULT_SEED
) -> DifferentiableModel:
    return resolve_model(name, seed=seed)(dimensions, learning_rate)
