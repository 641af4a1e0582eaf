# ltr/evaluation/measures.py
"""
Per-query ranking quality measures.

All measures take the ground-truth relevance labels of one query in the
order the model ranked the documents, and return a value in [0, 1].
A query without any relevant document scores 0.0 (never a division fault).

NDCG@k:
  DCG@k  = Σ_{r=1..k} gain(rel_r) / log2(r + 1)
  gain   = 2^rel - 1   (exponential, LETOR convention) or rel (linear)
  NDCG@k = DCG@k / IDCG@k, IDCG = DCG of the labels sorted descending

ERR@k (Chapelle et al. 2009):
  R_r    = (2^rel_r - 1) / 2^max_grade
  ERR@k  = Σ_{r=1..k} (1/r) · R_r · Π_{i<r} (1 - R_i)

MAP@k:
  AP@k   = Σ_{r≤k, rel_r>0} precision@r / min(#relevant, k)

LambdaRank needs |Δmeasure| for swapping two positions of the current
ranking; swap_delta() provides it (closed form for NDCG).
"""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from ltr.errors import ConfigurationError


def _doc_key(doc_id) -> tuple:
    # numeric ids (positions generated for files without docids) compare as numbers
    doc_id = str(doc_id)
    return (0, int(doc_id), doc_id) if doc_id.isascii() and doc_id.isdigit() else (1, 0, doc_id)


def rank_order(scores: np.ndarray, doc_ids: Sequence[str] | None = None) -> np.ndarray:
    """
    Indices that sort documents by score descending.
    Ties are broken by document id (numeric ids by value), then by input
    position, so the order is reproducible across runs.
    """
    scores = np.asarray(scores, dtype=np.float64)
    n = len(scores)
    if doc_ids is None:
        return np.array(sorted(range(n), key=lambda i: (-scores[i], i)), dtype=np.int64)
    return np.array(
        sorted(range(n), key=lambda i: (-scores[i], _doc_key(doc_ids[i]), i)),
        dtype=np.int64,
    )


class EvaluationMeasure(ABC):

    name: str = ""

    def __init__(self, cutoff: int = 20):
        if cutoff <= 0:
            raise ConfigurationError("cutoff", cutoff)
        self.cutoff = cutoff

    @abstractmethod
    def evaluate_ranking(self, ranked_relevance: np.ndarray) -> float:
        """Measure for labels listed in ranked order (best first)."""
        ...

    def evaluate(
        self,
        scores: np.ndarray,
        relevance: np.ndarray,
        doc_ids: Sequence[str] | None = None,
    ) -> float:
        if len(scores) == 0:
            return 0.0
        order = rank_order(scores, doc_ids)
        return self.evaluate_ranking(np.asarray(relevance, dtype=np.float64)[order])

    def swap_delta(self, ranked_relevance: np.ndarray, i: int, j: int) -> float:
        """Change of the measure if positions i and j of the ranking were swapped."""
        ranked_relevance = np.asarray(ranked_relevance, dtype=np.float64)
        swapped = ranked_relevance.copy()
        swapped[i], swapped[j] = swapped[j], swapped[i]
        return self.evaluate_ranking(swapped) - self.evaluate_ranking(ranked_relevance)

    def __repr__(self) -> str:
        return f"{self.name}@{self.cutoff}"


class NDCG(EvaluationMeasure):

    name = "ndcg"

    def __init__(self, cutoff: int = 20, gain: str = "exponential"):
        super().__init__(cutoff)
        if gain not in ("exponential", "linear"):
            raise ConfigurationError("gain", gain, ["exponential", "linear"])
        self.gain_type = gain

    def gains(self, relevance: np.ndarray) -> np.ndarray:
        relevance = np.asarray(relevance, dtype=np.float64)
        if self.gain_type == "linear":
            return relevance
        return np.power(2.0, relevance) - 1.0

    def discounts(self, n: int) -> np.ndarray:
        """1/log2(r + 1) for ranks r = 1..n, zero beyond the cutoff."""
        discounts = 1.0 / np.log2(np.arange(n, dtype=np.float64) + 2.0)
        discounts[self.cutoff:] = 0.0
        return discounts

    def dcg(self, ranked_relevance: np.ndarray) -> float:
        ranked_relevance = np.asarray(ranked_relevance, dtype=np.float64)
        return float(np.sum(self.gains(ranked_relevance) * self.discounts(len(ranked_relevance))))

    def ideal_dcg(self, relevance: np.ndarray) -> float:
        return self.dcg(np.sort(np.asarray(relevance, dtype=np.float64))[::-1])

    def evaluate_ranking(self, ranked_relevance: np.ndarray) -> float:
        idcg = self.ideal_dcg(ranked_relevance)
        if idcg <= 0:
            return 0.0
        return self.dcg(ranked_relevance) / idcg

    def swap_delta(self, ranked_relevance: np.ndarray, i: int, j: int) -> float:
        ranked_relevance = np.asarray(ranked_relevance, dtype=np.float64)
        idcg = self.ideal_dcg(ranked_relevance)
        if idcg <= 0:
            return 0.0
        gains = self.gains(ranked_relevance[[i, j]])
        discounts = self.discounts(len(ranked_relevance))
        return float((gains[0] - gains[1]) * (discounts[j] - discounts[i]) / idcg)

    def swap_deltas(self, ranked_relevance: np.ndarray) -> np.ndarray:
        """Matrix of swap_delta(i, j) for every pair of positions."""
        ranked_relevance = np.asarray(ranked_relevance, dtype=np.float64)
        n = len(ranked_relevance)
        idcg = self.ideal_dcg(ranked_relevance)
        if idcg <= 0:
            return np.zeros((n, n))
        gains = self.gains(ranked_relevance)
        discounts = self.discounts(n)
        return np.subtract.outer(gains, gains) * np.subtract.outer(discounts, discounts).T / idcg


class ERR(EvaluationMeasure):

    name = "err"

    def __init__(self, cutoff: int = 20, max_grade: float | None = None):
        super().__init__(cutoff)
        self.max_grade = max_grade

    def evaluate_ranking(self, ranked_relevance: np.ndarray) -> float:
        ranked_relevance = np.asarray(ranked_relevance, dtype=np.float64)
        if len(ranked_relevance) == 0:
            return 0.0
        max_grade = self.max_grade if self.max_grade is not None else ranked_relevance.max()
        if max_grade <= 0:
            return 0.0

        probs = (np.power(2.0, ranked_relevance[:self.cutoff]) - 1.0) / np.power(2.0, max_grade)
        not_stopped = 1.0
        err = 0.0
        for rank, p in enumerate(probs, start=1):
            err += not_stopped * p / rank
            not_stopped *= 1.0 - p
        return float(err)


class MAP(EvaluationMeasure):

    name = "map"

    def evaluate_ranking(self, ranked_relevance: np.ndarray) -> float:
        relevant = np.asarray(ranked_relevance, dtype=np.float64) > 0
        n_relevant = int(relevant.sum())
        if n_relevant == 0:
            return 0.0

        top = relevant[:self.cutoff]
        hits = np.cumsum(top)
        precisions = hits / np.arange(1, len(top) + 1)
        return float(np.sum(precisions[top]) / min(n_relevant, self.cutoff))


MEASURES = {
    "ndcg": NDCG,
    "err": ERR,
    "map": MAP,
}


def create_measure(name: str, cutoff: int = 20) -> EvaluationMeasure:
    if name not in MEASURES:
        raise ConfigurationError("error", name, MEASURES)
    return MEASURES[name](cutoff=cutoff)
