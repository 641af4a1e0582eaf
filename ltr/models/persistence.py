# ltr/models/persistence.py
"""
Save / load trained models as .npz archives.

Archive layout:
  kind        model tag ("linreg" or "nn")
  <weights>   one array per weight structure (see model.state())
"""

from pathlib import Path

import numpy as np
from loguru import logger

from ltr.errors import ConfigurationError
from ltr.models.base import DifferentiableModel
from ltr.models.learning_rate import LearningRate
from ltr.models.linear import LinearRegression
from ltr.models.neural_net import NeuralNetwork


def save_model(model: DifferentiableModel, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        np.savez(f, kind=np.array(model.kind), **model.state())
    logger.info(f"{model!r} saved to {path}")
    return path


def load_model(path: str | Path, learning_rate: LearningRate) -> DifferentiableModel:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found at {path}")

    with np.load(path, allow_pickle=False) as archive:
        kind = str(archive["kind"])
        state = {key: archive[key] for key in archive.files if key != "kind"}

    if kind == LinearRegression.kind:
        model = LinearRegression(len(state["weights"]), learning_rate)
    elif kind == NeuralNetwork.kind:
        dimensions, hidden = state["w1"].shape
        model = NeuralNetwork(dimensions, hidden, learning_rate)
    else:
        raise ConfigurationError("model kind", kind, [LinearRegression.kind, NeuralNetwork.kind])

    model.load_state(state)
    logger.info(f"{model!r} loaded from {path}")
    return model
