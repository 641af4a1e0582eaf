# ltr/ranking/registry.py

from ltr.errors import ConfigurationError
from ltr.evaluation.measures import EvaluationMeasure
from ltr.models.base import DifferentiableModel
from ltr.ranking.base import LtrAlgorithm
from ltr.ranking.lambdarank import LambdaRank
from ltr.ranking.ranknet import RankNet, RankNetLambda

ALGORITHMS: dict[str, type[LtrAlgorithm]] = {
    "ranknet": RankNetLambda,
    "ranknet_old": RankNet,
    "lambdarank": LambdaRank,
}


def resolve_algorithm(name: str) -> type[LtrAlgorithm]:
    if name not in ALGORITHMS:
        raise ConfigurationError("algorithm", name, ALGORITHMS)
    return ALGORITHMS[name]


def create_algorithm(
    name: str,
    model: DifferentiableModel,
    measure: EvaluationMeasure,
    sigma: float = 1.0,
) -> LtrAlgorithm:
    return resolve_algorithm(name)(model, measure, sigma=sigma)
