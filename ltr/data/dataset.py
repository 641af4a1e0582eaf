# ltr/data/dataset.py
"""
Typed records and query groups.

A Record is one (query, document) pair with its feature vector and graded
relevance label. Records sharing a query id form a QueryGroup, the unit
over which document pairs are formed. All records of a group must have the
same number of features; a group that violates this is dropped without
affecting the others.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from loguru import logger

from ltr.errors import DataShapeError


@dataclass
class Record:
    """One (query, document) pair."""
    qid: str
    doc_id: str
    features: np.ndarray
    relevance: float


@dataclass
class QueryGroup:
    qid: str
    doc_ids: list[str]
    features: np.ndarray        # (n_docs, dimensions)
    relevance: np.ndarray       # (n_docs,)

    @property
    def size(self) -> int:
        return len(self.doc_ids)

    @property
    def dimensions(self) -> int:
        return self.features.shape[1]

    @classmethod
    def from_records(cls, qid: str, records: list[Record]) -> "QueryGroup":
        dims = {len(r.features) for r in records}
        if len(dims) != 1:
            raise DataShapeError(
                f"Query {qid}: records disagree on feature dimensions {sorted(dims)}"
            )
        return cls(
            qid=qid,
            doc_ids=[r.doc_id for r in records],
            features=np.vstack([np.asarray(r.features, dtype=np.float64) for r in records]),
            relevance=np.array([r.relevance for r in records], dtype=np.float64),
        )


@dataclass
class Dataset:
    groups: list[QueryGroup]
    dimensions: int
    source: str = ""
    dropped: list[str] = field(default_factory=list)

    @property
    def n_documents(self) -> int:
        return sum(g.size for g in self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def shards(self, nshards: int) -> list[list[QueryGroup]]:
        """Partition query groups round-robin (insertion order) into nshards lists."""
        nshards = max(1, min(nshards, len(self.groups))) if self.groups else 1
        shards: list[list[QueryGroup]] = [[] for _ in range(nshards)]
        for i, group in enumerate(self.groups):
            shards[i % nshards].append(group)
        return shards

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        dimensions: int | None = None,
        source: str = "",
    ) -> "Dataset":
        """
        Group records by query id (first-seen order).

        dimensions: expected feature count (eval/test data must match the
                    training data). When None, it's taken from the first
                    valid query group.
        """
        by_query: "OrderedDict[str, list[Record]]" = OrderedDict()
        for record in records:
            by_query.setdefault(record.qid, []).append(record)

        groups, dropped = [], []
        for qid, query_records in by_query.items():
            try:
                group = QueryGroup.from_records(qid, query_records)
                if dimensions is not None and group.dimensions != dimensions:
                    raise DataShapeError(
                        f"Query {qid}: expected {dimensions} features, got {group.dimensions}"
                    )
            except DataShapeError as e:
                logger.error(f"Dropping query: {e}")
                dropped.append(qid)
                continue
            if dimensions is None:
                dimensions = group.dimensions
            groups.append(group)

        dataset = cls(groups=groups, dimensions=dimensions or 0, source=source, dropped=dropped)
        logger.info(
            f"Loaded {len(dataset):,} queries, {dataset.n_documents:,} documents, "
            f"{dataset.dimensions} features"
            + (f" from {source}" if source else "")
            + (f" ({len(dropped)} queries dropped)" if dropped else "")
        )
        return dataset
