# ltr/ranking/lambdarank.py
"""
LambdaRank (Burges et al. 2006).

RankNet treats every mis-ordered pair alike. LambdaRank scales each pair's
λ_ij by |Δmeasure_ij|: how much the target metric would change if i and j
swapped positions in the *current* ranking. Pairs near the top of the
list, where NDCG is most sensitive, dominate the gradient:

  λ_ij ← λ_ij · |ΔNDCG_ij|

The current ranking sorts documents by score (ties by doc id), the same
order the evaluation measure uses.
"""

import numpy as np

from ltr.evaluation.measures import NDCG, rank_order
from ltr.ranking.ranknet import RankNetLambda


class LambdaRank(RankNetLambda):

    name = "lambdarank"

    def pair_weights(self, group, scores, i_idx, j_idx) -> np.ndarray:
        order = rank_order(scores, group.doc_ids)
        position = np.empty_like(order)
        position[order] = np.arange(len(order))
        ranked_relevance = group.relevance[order]

        pi, pj = position[i_idx], position[j_idx]
        if isinstance(self.measure, NDCG):
            return np.abs(self.measure.swap_deltas(ranked_relevance)[pi, pj])
        return np.abs(np.array([
            self.measure.swap_delta(ranked_relevance, a, b) for a, b in zip(pi, pj)
        ]))
