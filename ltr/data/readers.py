# ltr/data/readers.py
"""
Dataset readers.

  csv    one record per row; query id, document id and relevance column
         indices are configurable, every other column is a feature.
         A header row is skipped when its relevance cell isn't numeric.
  letor  SVMlight lines used by LETOR 3.0/4.0 and MSLR-WEB:
           <rel> qid:<q> 1:<v> 2:<v> ... # docid = <id> ...
  yahoo  Yahoo! LTR challenge files, SVMlight with sparse feature indices,
         so absent features are zero.

Every reader returns a Dataset grouped by query id.
"""

import csv
import re
from pathlib import Path
from typing import Callable

import numpy as np
from loguru import logger
from sklearn.datasets import load_svmlight_file

from ltr.data.dataset import Dataset, Record
from ltr.errors import ConfigurationError

_DOCID_PATTERN = re.compile(r"docid\s*=\s*(\S+)")


def _check_exists(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found at {path}")


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def read_csv(
    path: str | Path,
    dimensions: int | None = None,
    qid: int = 0,
    doc: int = 1,
    rel: int = -1,
    delimiter: str = ",",
) -> Dataset:
    path = Path(path)
    _check_exists(path)

    records = []
    with open(path, newline="") as f:
        for line_no, row in enumerate(csv.reader(f, delimiter=delimiter), start=1):
            if not row or all(not cell.strip() for cell in row):
                continue
            n = len(row)
            rel_idx = rel % n
            if line_no == 1 and not _is_number(row[rel_idx]):
                logger.debug(f"Skipping header row of {path}")
                continue

            special = {qid % n, doc % n, rel_idx}
            try:
                features = np.array(
                    [float(cell) for i, cell in enumerate(row) if i not in special],
                    dtype=np.float64,
                )
                relevance = float(row[rel_idx])
            except ValueError as e:
                raise ValueError(f"{path}:{line_no}: non-numeric value ({e})") from None

            records.append(Record(
                qid=row[qid % n].strip(),
                doc_id=row[doc % n].strip(),
                features=features,
                relevance=relevance,
            ))

    return Dataset.from_records(records, dimensions=dimensions, source=str(path))


def _read_svmlight(path: Path, dimensions: int | None, parse_docids: bool) -> Dataset:
    _check_exists(path)

    X, y, qids = load_svmlight_file(str(path), query_id=True)
    X = X.toarray()
    if dimensions is not None and X.shape[1] < dimensions:
        # trailing features absent from every line are zero
        X = np.hstack([X, np.zeros((X.shape[0], dimensions - X.shape[1]))])

    docids: list[str | None] = [None] * X.shape[0]
    if parse_docids:
        with open(path) as f:
            data_lines = (ln for ln in f if ln.strip() and not ln.lstrip().startswith("#"))
            for i, line in enumerate(data_lines):
                match = _DOCID_PATTERN.search(line)
                if match and i < len(docids):
                    docids[i] = match.group(1)

    records = []
    position: dict[str, int] = {}
    for row, (features, relevance, q) in enumerate(zip(X, y, qids)):
        q = str(q)
        idx = position.get(q, 0)
        position[q] = idx + 1
        records.append(Record(
            qid=q,
            doc_id=docids[row] if docids[row] is not None else str(idx),
            features=features,
            relevance=float(relevance),
        ))

    return Dataset.from_records(records, dimensions=dimensions, source=str(path))


def read_letor(path: str | Path, dimensions: int | None = None) -> Dataset:
    return _read_svmlight(Path(path), dimensions, parse_docids=True)


def read_yahoo(path: str | Path, dimensions: int | None = None) -> Dataset:
    return _read_svmlight(Path(path), dimensions, parse_docids=False)


READERS: dict[str, Callable[..., Dataset]] = {
    "csv": read_csv,
    "letor": read_letor,
    "yahoo": read_yahoo,
}


def resolve_reader(fmt: str) -> Callable[..., Dataset]:
    if fmt not in READERS:
        raise ConfigurationError("reader", fmt, READERS)
    return READERS[fmt]


def read_dataset(
    path: str | Path,
    fmt: str,
    dimensions: int | None = None,
    **options,
) -> Dataset:
    """
    Read a dataset in the given format.
    options: csv column indices (qid, doc, rel); ignored by other formats.
    """
    reader = resolve_reader(fmt)
    if fmt == "csv":
        return reader(path, dimensions=dimensions, **options)
    return reader(path, dimensions=dimensions)
