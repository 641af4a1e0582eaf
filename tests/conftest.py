from pathlib import Path

import numpy as np
import pytest

from ltr.data.dataset import QueryGroup
from ltr.models.learning_rate import ConstantLearningRate
from ltr.utils.config import TrainingConfig


def make_groups(n_queries: int = 6, n_docs: int = 8, dims: int = 4, seed: int = 0) -> list[QueryGroup]:
    """Synthetic queries whose labels follow a hidden linear scorer (grades 0-2)."""
    rng = np.random.default_rng(seed)
    true_w = np.linspace(1.0, -0.5, dims)
    groups = []
    for q in range(n_queries):
        X = rng.normal(scale=0.5, size=(n_docs, dims))
        rel = np.digitize(X @ true_w, [-0.3, 0.3]).astype(np.float64)
        groups.append(QueryGroup(
            qid=str(q + 1),
            doc_ids=[f"q{q + 1}-d{d}" for d in range(n_docs)],
            features=X,
            relevance=rel,
        ))
    return groups


def write_letor(path: Path, groups: list[QueryGroup]) -> Path:
    lines = []
    for g in groups:
        for doc_id, x, rel in zip(g.doc_ids, g.features, g.relevance):
            feats = " ".join(f"{i}:{v:.6f}" for i, v in enumerate(x, start=1))
            lines.append(f"{int(rel)} qid:{g.qid} {feats} # docid = {doc_id}")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def lr():
    return ConstantLearningRate(0.1)


@pytest.fixture
def toy_group():
    """The 2-document example: doc 0 is relevant, doc 1 is not."""
    return QueryGroup(
        qid="1",
        doc_ids=["d0", "d1"],
        features=np.array([[1.0, 0.0], [0.0, 1.0]]),
        relevance=np.array([1.0, 0.0]),
    )


@pytest.fixture
def letor_files(tmp_path):
    return {
        "train": write_letor(tmp_path / "train.txt", make_groups(8, seed=1)),
        "vali": write_letor(tmp_path / "vali.txt", make_groups(4, seed=2)),
        "test": write_letor(tmp_path / "test.txt", make_groups(4, seed=3)),
    }


@pytest.fixture
def base_config(letor_files):
    return TrainingConfig(
        train_data=str(letor_files["train"]),
        reader="letor",
        mlmodel="linreg",
        niters=5,
        learning_rate="constant:0.01",
        nshards=3,
        workers=2,
        progress=False,
        log_dir="",
    )
