# ltr/utils/config.py
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from ltr.errors import ConfigurationError

load_dotenv()


@dataclass
class TrainingConfig:
    """All options of a training run. Defaults match the command-line tool."""

    # Data
    train_data: str = ""
    eval_data: str = ""
    test_data: str = ""
    reader: str = ""
    qid: int = 0            # csv column indices
    doc: int = 1
    rel: int = -1

    # Model / algorithm
    mlmodel: str = "linreg"
    algorithm: str = "ranknet"
    error: str = "ndcg"
    cutoff: int = 20
    learning_rate: str = ""
    sigma: float = 1.0
    seed: int = 1001

    # Iteration control
    niters: int = 10
    eval_niters: Optional[int] = None
    stopping_condition: int = 0
    tolerance: float = 1e-4
    patience: int = 3

    # Execution
    nshards: int = 4
    workers: int = 4
    progress: bool = True

    # Persistence
    model_in: str = ""
    model_out: str = ""

    # Logging
    log_dir: Optional[str] = "logs"
    log_level: str = "INFO"
    log_format: str = "text"


def load_config(config_path: str | Path) -> DictConfig:
    """Load a YAML config file and return as OmegaConf DictConfig."""
    return OmegaConf.load(config_path)


def merge_configs(*configs: DictConfig) -> DictConfig:
    """Merge multiple configs. Later configs override earlier ones."""
    return OmegaConf.merge(*configs)


def load_training_config(
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> TrainingConfig:
    """
    Build a TrainingConfig from, in increasing priority:
      1. the TrainingConfig defaults
      2. a YAML file (may interpolate ${oc.env:VAR}; .env is loaded)
      3. `key=value` overrides from the command line
    Unknown keys and ill-typed values are configuration errors.
    """
    try:
        configs = [OmegaConf.structured(TrainingConfig)]
        if config_path is not None:
            configs.append(load_config(config_path))
        if overrides:
            configs.append(OmegaConf.from_dotlist(list(overrides)))
        return OmegaConf.to_object(merge_configs(*configs))
    except OmegaConfBaseException as e:
        raise ConfigurationError("config", str(e).splitlines()[0]) from e
