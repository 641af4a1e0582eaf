# ltr/utils/logging.py
import sys
from pathlib import Path
from loguru import logger


def setup_logger(log_dir: str | Path | None, level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure loguru for training runs: stdout plus a rotating file per run.
    log_dir=None logs to stdout only.
    """
    logger.remove()  # remove default handler

    serialize = fmt == "json"
    logger.add(sys.stdout, level=level, serialize=serialize)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "train_{time}.log",
            level=level,
            serialize=serialize,
            rotation="100 MB",
        )
