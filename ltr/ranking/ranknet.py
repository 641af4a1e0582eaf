# ltr/ranking/ranknet.py
"""
RankNet (Burges et al. 2005) in two flavours.

RankNet        the textbook form: every pair triggers two gradient
                 updates, +λ_ij for the better document and -λ_ij for the
                 worse one. O(pairs) model-gradient computations.

RankNetLambda  the factorised form: λ's are first summed per document,
                 λ_d = Σ_{j: d≻j} λ_dj - Σ_{i: i≻d} λ_id
                 then each document gets one update. Same gradient (the
                 update is linear in the multiplier), O(docs) model-gradient
                 computations. This is the default "ranknet".
"""

import numpy as np

from ltr.ranking.base import LtrAlgorithm


class RankNet(LtrAlgorithm):

    name = "ranknet_old"

    def accumulate(self, group, scores, hidden, i_idx, j_idx, lambdas, gradient) -> None:
        for i, j, lam in zip(i_idx, j_idx, lambdas):
            self._update(gradient, group, scores, hidden, i, lam)
            self._update(gradient, group, scores, hidden, j, -lam)


class RankNetLambda(LtrAlgorithm):

    name = "ranknet"

    def document_lambdas(self, n_docs: int, i_idx, j_idx, lambdas) -> np.ndarray:
        doc_lambdas = np.zeros(n_docs, dtype=np.float64)
        np.add.at(doc_lambdas, i_idx, lambdas)
        np.add.at(doc_lambdas, j_idx, -lambdas)
        return doc_lambdas

    def pair_weights(self, group, scores, i_idx, j_idx) -> np.ndarray | None:
        """Per-pair scaling of λ_ij; None means unscaled."""
        return None

    def accumulate(self, group, scores, hidden, i_idx, j_idx, lambdas, gradient) -> None:
        weights = self.pair_weights(group, scores, i_idx, j_idx)
        if weights is not None:
            lambdas = lambdas * weights

        doc_lambdas = self.document_lambdas(group.size, i_idx, j_idx, lambdas)
        for doc in np.flatnonzero(doc_lambdas):
            self._update(gradient, group, scores, hidden, doc, doc_lambdas[doc])
