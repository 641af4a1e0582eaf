# ltr/training/controller.py
"""
Training controller: train → (validation) → (testing).

Every name in the config (reader, model, algorithm, measure, learning-rate
policy, stopping condition) is resolved in __init__, before a single file
is read. A typo aborts the run with a ConfigurationError instead of
failing after an hour of training.

Each phase runs the algorithm over its own dataset, sharded, for `niters`
iterations (`eval_niters` for validation/testing) or until the stopping
condition triggers. Weights change only during TRAIN, and only at the
iteration barrier.
"""

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ltr.data.dataset import Dataset
from ltr.data.readers import read_dataset, resolve_reader
from ltr.engine.iteration import IterationEngine
from ltr.errors import ConfigurationError, LtrError
from ltr.evaluation.measures import create_measure
from ltr.models.base import DifferentiableModel
from ltr.models.learning_rate import create_learning_rate
from ltr.models.persistence import load_model, save_model
from ltr.models.registry import resolve_model
from ltr.ranking.base import IterationStats, LtrAlgorithm, Phase
from ltr.ranking.registry import resolve_algorithm
from ltr.ranking.stopping import Stopper, StoppingCondition
from ltr.utils.config import TrainingConfig


@dataclass
class PhaseReport:
    phase: Phase
    iterations: int
    history: list[IterationStats] = field(default_factory=list)

    @property
    def measure(self) -> float:
        return self.history[-1].measure if self.history else 0.0

    @property
    def loss(self) -> float:
        return self.history[-1].loss if self.history else 0.0


@dataclass
class TrainingReport:
    model: DifferentiableModel
    phases: dict[Phase, PhaseReport] = field(default_factory=dict)

    def summary(self) -> dict[str, float]:
        return {phase.value: round(report.measure, 4) for phase, report in self.phases.items()}


class TrainingController:

    def __init__(self, config: TrainingConfig, engine: IterationEngine | None = None):
        self.config = config

        if not config.train_data and not config.model_in:
            raise ConfigurationError("train_data", config.train_data, ["a dataset path"])
        if config.niters < 0:
            raise ConfigurationError("niters", config.niters)

        resolve_reader(config.reader)
        self.model_factory = resolve_model(config.mlmodel, seed=config.seed)
        self.algorithm_cls = resolve_algorithm(config.algorithm)
        self.measure = create_measure(config.error, config.cutoff)
        self.learning_rate = create_learning_rate(config.learning_rate)
        self.stopper = Stopper(
            StoppingCondition.parse(config.stopping_condition),
            tolerance=config.tolerance,
            patience=config.patience,
        )
        for option in ("train_data", "eval_data", "test_data", "model_in"):
            path = getattr(config, option)
            if path and not Path(path).exists():
                raise FileNotFoundError(f"{option} not found at {path}")

        self.engine = engine or IterationEngine(workers=config.workers, progress=config.progress)
        self.model: DifferentiableModel | None = None
        self.algorithm: LtrAlgorithm | None = None

    def read(self, path: str, dimensions: int | None = None) -> Dataset:
        dataset = read_dataset(
            path,
            self.config.reader,
            dimensions=dimensions,
            qid=self.config.qid,
            doc=self.config.doc,
            rel=self.config.rel,
        )
        if not dataset.groups:
            raise LtrError(f"No usable queries in {path}")
        return dataset

    def build(self, dimensions: int | None) -> LtrAlgorithm:
        if self.config.model_in:
            self.model = load_model(self.config.model_in, self.learning_rate)
            if dimensions is not None and self.model.dimensions != dimensions:
                raise LtrError(
                    f"Loaded model expects {self.model.dimensions} features, "
                    f"data has {dimensions}"
                )
        else:
            self.model = self.model_factory(dimensions, self.learning_rate)

        self.algorithm = self.algorithm_cls(self.model, self.measure, sigma=self.config.sigma)
        logger.info(
            f"Model: {self.model!r}, algorithm: {self.algorithm.name}, "
            f"measure: {self.measure!r}, learning rate: {self.learning_rate!r}, "
            f"stopping: {self.stopper!r}"
        )
        return self.algorithm

    def run_phase(self, phase: Phase, dataset: Dataset, niters: int) -> PhaseReport:
        algorithm = self.algorithm
        algorithm.set_phase(phase)
        self.stopper.reset()
        history: list[IterationStats] = []

        def on_barrier(iteration: int) -> bool:
            stats = algorithm.end_iteration(iteration)
            history.append(stats)
            logger.info(
                f"[{phase.value}] iteration {iteration}: "
                f"{self.measure!r}={stats.measure:.4f}  loss={stats.loss:.6f}  "
                f"queries={stats.queries}  pairs={stats.pairs}"
                + (f"  |grad|={stats.gradient_norm:.3e}" if stats.applied else "")
            )
            return self.stopper.should_stop(stats.measure, stats.loss)

        iterations = self.engine.run_iterations(
            niters,
            dataset.shards(self.config.nshards),
            algorithm.process_query,
            on_barrier=on_barrier,
            on_start=algorithm.begin_iteration,
            desc=f"ltr_{phase.value}",
        )
        report = PhaseReport(phase=phase, iterations=iterations, history=history)
        logger.info(
            f"=== {phase.value} done: {iterations} iterations, "
            f"{self.measure!r}={report.measure:.4f} ==="
        )
        return report

    def run(self) -> TrainingReport:
        config = self.config
        eval_niters = config.eval_niters if config.eval_niters is not None else config.niters

        train = self.read(config.train_data) if config.train_data else None
        self.build(train.dimensions if train is not None else None)
        report = TrainingReport(model=self.model)

        if train is not None:
            report.phases[Phase.TRAIN] = self.run_phase(Phase.TRAIN, train, config.niters)

        if config.eval_data:
            data = self.read(config.eval_data, dimensions=self.model.dimensions)
            report.phases[Phase.VALIDATION] = self.run_phase(Phase.VALIDATION, data, eval_niters)

        if config.test_data:
            data = self.read(config.test_data, dimensions=self.model.dimensions)
            report.phases[Phase.TESTING] = self.run_phase(Phase.TESTING, data, eval_niters)

        if config.model_out:
            save_model(self.model, config.model_out)

        logger.info(f"Final metrics: {report.summary()}")
        return report
