# scripts/train_ranker.py
"""
Train a pairwise ranker.

Options are `key=value` pairs, merged over configs/default.yaml
(or the file given with config=...):

  python scripts/train_ranker.py reader=letor \
      train_data=data/MQ2008/Fold1/train.txt \
      eval_data=data/MQ2008/Fold1/vali.txt \
      test_data=data/MQ2008/Fold1/test.txt \
      mlmodel=nn20 algorithm=lambdarank niters=50 cutoff=10 \
      learning_rate=inverse:0.05,0.1 stopping_condition=2

Exit status 1 on a configuration error (nothing is trained in that case),
a missing dataset, or data the model cannot use.
"""

import sys
from pathlib import Path

from loguru import logger

from ltr.errors import ConfigurationError, LtrError
from ltr.training.controller import TrainingController
from ltr.utils.config import load_training_config
from ltr.utils.logging import setup_logger

DEFAULT_CONFIG = Path("configs/default.yaml")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    config_path = DEFAULT_CONFIG if DEFAULT_CONFIG.exists() else None
    overrides = []
    for arg in argv:
        key, _, value = arg.lstrip("-").partition("=")
        if key == "config":
            config_path = Path(value)
        else:
            overrides.append(arg.lstrip("-"))

    try:
        config = load_training_config(config_path, overrides)
        setup_logger(config.log_dir or None, level=config.log_level, fmt=config.log_format)
        logger.info("=== Learning to Rank ===")
        controller = TrainingController(config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    try:
        controller.run()
    except (LtrError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    logger.info("=== Training complete ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
