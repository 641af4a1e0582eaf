# ltr/ranking/base.py
"""
Pairwise Learning-to-Rank algorithms: shared machinery.

For every query, each ordered pair (i, j) with rel_i > rel_j defines:

  P_ij  = σ(s_i - s_j)                         model's P(i ranks above j)
  C_ij  = -ln P_ij = ln(1 + e^(-σ·(s_i - s_j)))  cross-entropy with P̄_ij = 1
  λ_ij  = ∂C_ij/∂s_i = σ·(P_ij - 1)   (and ∂C_ij/∂s_j = -λ_ij)

Subclasses decide how the λ's reach the model gradient (per pair, summed per
document, or reweighted by the metric change of a swap).

Execution model, one iteration:
  begin_iteration()              on the controller thread
  process_query(group, shard)    on worker threads, many in parallel
  end_iteration()                on the controller thread, after the barrier

Workers only *read* the model. Each query accumulates into its own gradient,
which is merged into the partial sum of its shard; a shard is processed by
a single task so its partial is thread-confined. end_iteration() merges the
shard partials in shard order (deterministic) and commits them in TRAIN.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import numpy as np
from loguru import logger

from ltr.data.dataset import QueryGroup
from ltr.evaluation.measures import EvaluationMeasure
from ltr.evaluation.metrics import aggregate_metrics
from ltr.models.activation import Sigmoid
from ltr.models.base import DifferentiableModel, ModelGradient


class Phase(Enum):
    TRAIN = "train"
    VALIDATION = "validation"
    TESTING = "testing"


@dataclass
class QueryOutcome:
    qid: str
    measure: float
    loss: float         # Σ C_ij over the query's pairs
    pairs: int


@dataclass
class IterationStats:
    iteration: int
    phase: Phase
    measure: float      # mean measure over queries
    loss: float         # mean C_ij over all pairs
    queries: int
    pairs: int
    applied: bool = False
    gradient_norm: float = 0.0


def preference_pairs(relevance: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Index arrays (i, j) of every pair with relevance[i] > relevance[j]."""
    relevance = np.asarray(relevance, dtype=np.float64)
    return np.nonzero(np.subtract.outer(relevance, relevance) > 0)


class LtrAlgorithm(ABC):

    name: str = ""

    def __init__(
        self,
        model: DifferentiableModel,
        measure: EvaluationMeasure,
        sigma: float = 1.0,
    ):
        self.model = model
        self.measure = measure
        self.sigma = sigma
        self.pair_sigmoid = Sigmoid(K=sigma)
        self.phase = Phase.TRAIN

        self.gradient: ModelGradient = model.gradient()
        self._lock = threading.Lock()
        self._partials: dict[int, ModelGradient] = {}
        self._outcomes: dict[int, list[QueryOutcome]] = {}

    def set_phase(self, phase: Phase) -> None:
        logger.info(f"{self.name}: switching to {phase.value} phase")
        self.phase = phase

    # ── Iteration protocol ───────────────────────────────────────────────

    def begin_iteration(self, iteration: int) -> None:
        self.gradient.reset()
        self._partials = {}
        self._outcomes = {}
        if self.phase == Phase.TRAIN:
            self.model.learning_rate.step(iteration)

    def process_query(self, group: QueryGroup, shard: int = 0) -> QueryOutcome:
        scores, hidden = self.model.forward(group.features)

        if not np.all(np.isfinite(scores)):
            logger.warning(f"Query {group.qid}: non-finite scores, skipped")
            outcome = QueryOutcome(group.qid, 0.0, 0.0, 0)
            self._record(shard, outcome, None)
            return outcome

        i_idx, j_idx = preference_pairs(group.relevance)
        diffs = scores[i_idx] - scores[j_idx]
        outcome = QueryOutcome(
            qid=group.qid,
            measure=self.measure.evaluate(scores, group.relevance, group.doc_ids),
            loss=float(np.sum(np.logaddexp(0.0, -self.sigma * diffs))),
            pairs=len(i_idx),
        )

        local = None
        if self.phase == Phase.TRAIN and len(i_idx) > 0:
            local = self.model.gradient()
            lambdas = self.pair_lambdas(diffs)
            self.accumulate(group, scores, hidden, i_idx, j_idx, lambdas, local)
            if not local.is_finite():
                logger.warning(f"Query {group.qid}: non-finite gradient, dropped")
                local = None

        self._record(shard, outcome, local)
        return outcome

    def end_iteration(self, iteration: int) -> IterationStats:
        for shard in sorted(self._partials):
            self.gradient.merge(self._partials[shard])

        outcomes = [o for shard in sorted(self._outcomes) for o in self._outcomes[shard]]
        pairs = sum(o.pairs for o in outcomes)
        summary = aggregate_metrics([{"measure": o.measure} for o in outcomes], ndigits=None)
        stats = IterationStats(
            iteration=iteration,
            phase=self.phase,
            measure=summary.get("measure", 0.0),
            loss=sum(o.loss for o in outcomes) / pairs if pairs else 0.0,
            queries=len(outcomes),
            pairs=pairs,
        )

        if self.phase == Phase.TRAIN and self._partials:
            if self.gradient.is_finite():
                stats.gradient_norm = self.gradient.norm()
                self.gradient.apply_to(self.model)
                stats.applied = True
            else:
                logger.warning(f"Iteration {iteration}: non-finite gradient, update skipped")
        self.gradient.reset()
        return stats

    def _record(self, shard: int, outcome: QueryOutcome, local: ModelGradient | None) -> None:
        with self._lock:
            self._outcomes.setdefault(shard, []).append(outcome)
            if local is not None and shard not in self._partials:
                self._partials[shard] = self.model.gradient()
            partial = self._partials.get(shard)
        # a shard is processed by one task only, so its partial is thread-confined
        if local is not None:
            partial.merge(local)

    # ── Gradient ─────────────────────────────────────────────────────────

    def pair_lambdas(self, diffs: np.ndarray) -> np.ndarray:
        """λ_ij = σ · (σ(s_i - s_j) - 1) for every pair."""
        return self.sigma * (np.atleast_1d(self.pair_sigmoid(diffs)) - 1.0)

    def _update(self, gradient, group, scores, hidden, doc: int, multiplier: float) -> None:
        gradient.update(
            group.features[doc],
            scores[doc],
            multiplier,
            hidden[doc] if hidden is not None else None,
        )

    @abstractmethod
    def accumulate(
        self,
        group: QueryGroup,
        scores: np.ndarray,
        hidden: np.ndarray | None,
        i_idx: np.ndarray,
        j_idx: np.ndarray,
        lambdas: np.ndarray,
        gradient: ModelGradient,
    ) -> None:
        """Feed the query's pair lambdas into `gradient`."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r}, measure={self.measure!r})"
