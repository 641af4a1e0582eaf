# ltr/evaluation/metrics.py

import numpy as np


def aggregate_metrics(
    per_query: list[dict[str, float]],
    ndigits: int | None = 4,
) -> dict[str, float]:
    """Mean of every metric across queries. Rounded for reporting unless ndigits is None."""
    if not per_query:
        return {}
    keys = per_query[0].keys()
    means = {key: float(np.mean([m[key] for m in per_query if key in m])) for key in keys}
    if ndigits is None:
        return means
    return {key: round(value, ndigits) for key, value in means.items()}
