import numpy as np
import pytest

from ltr.data.dataset import Dataset, QueryGroup, Record
from ltr.data.readers import read_csv, read_dataset, read_letor, read_yahoo
from ltr.errors import ConfigurationError, DataShapeError
from ltr.evaluation.measures import NDCG, rank_order


def test_read_csv_with_header(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(
        "qid,doc,f1,f2,rel\n"
        "q1,d1,0.5,1.0,2\n"
        "q1,d2,0.1,0.0,0\n"
        "\n"
        "q2,d3,1.0,1.0,1\n"
    )
    dataset = read_csv(path)

    assert len(dataset) == 2
    assert dataset.dimensions == 2
    q1 = dataset.groups[0]
    assert q1.qid == "q1"
    assert q1.doc_ids == ["d1", "d2"]
    assert np.allclose(q1.features, [[0.5, 1.0], [0.1, 0.0]])
    assert np.allclose(q1.relevance, [2.0, 0.0])


def test_read_csv_custom_columns(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("3,0.2,q1,d1\n0,0.9,q1,d2\n")
    dataset = read_dataset(path, "csv", qid=2, doc=3, rel=0)

    assert dataset.dimensions == 1
    assert np.allclose(dataset.groups[0].relevance, [3.0, 0.0])
    assert np.allclose(dataset.groups[0].features[:, 0], [0.2, 0.9])


def test_mismatched_query_is_dropped(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text(
        "q1,d1,0.5,1.0,2\n"
        "q1,d2,0.1,0.0,0\n"
        "q2,d3,1.0,1.0,1\n"
        "q2,d4,1.0,1.0,3.0,0\n"
    )
    dataset = read_csv(path)

    assert [g.qid for g in dataset.groups] == ["q1"]
    assert dataset.dropped == ["q2"]


def test_expected_dimensions_enforced():
    records = [Record("q1", "d1", np.zeros(3), 1.0)]
    assert len(Dataset.from_records(records, dimensions=2)) == 0


def test_query_group_rejects_shape_mismatch():
    with pytest.raises(DataShapeError):
        QueryGroup.from_records("q", [
            Record("q", "a", np.zeros(2), 1.0),
            Record("q", "b", np.zeros(3), 0.0),
        ])


def test_read_letor(tmp_path):
    path = tmp_path / "train.txt"
    path.write_text(
        "2 qid:10 1:0.5 2:0.1 # docid = GX001 inc = 1\n"
        "0 qid:10 1:0.0 2:0.3 # docid = GX002 inc = 1\n"
        "1 qid:11 1:0.7 2:0.2 # docid = GX003 inc = 1\n"
    )
    dataset = read_letor(path)

    assert dataset.dimensions == 2
    assert [g.qid for g in dataset.groups] == ["10", "11"]
    assert dataset.groups[0].doc_ids == ["GX001", "GX002"]
    assert np.allclose(dataset.groups[0].features, [[0.5, 0.1], [0.0, 0.3]])
    assert np.allclose(dataset.groups[0].relevance, [2.0, 0.0])


def test_read_yahoo_sparse(tmp_path):
    path = tmp_path / "set1.train.txt"
    path.write_text(
        "1 qid:1 1:0.2 3:0.5\n"
        "0 qid:1 2:0.1\n"
    )
    dataset = read_yahoo(path)
    assert dataset.dimensions == 3
    assert dataset.groups[0].doc_ids == ["0", "1"]
    assert np.allclose(dataset.groups[0].features[1], [0.0, 0.1, 0.0])

    padded = read_yahoo(path, dimensions=5)
    assert padded.dimensions == 5


def test_generated_doc_ids_keep_file_order_on_ties(tmp_path):
    path = tmp_path / "set1.train.txt"
    path.write_text("".join(f"{int(d == 0)} qid:7 1:{d / 10:.1f}\n" for d in range(12)))
    group = read_yahoo(path).groups[0]

    assert group.doc_ids[10] == "10"
    assert list(rank_order(np.zeros(12), group.doc_ids)) == list(range(12))
    # the only relevant document is first in the file, so a tied ranking is ideal
    assert NDCG().evaluate(np.zeros(12), group.relevance, group.doc_ids) == pytest.approx(1.0)


def test_unknown_format(tmp_path):
    with pytest.raises(ConfigurationError, match="letor"):
        read_dataset(tmp_path / "x.txt", "svm")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_dataset(tmp_path / "missing.txt", "letor")


def test_shards_round_robin():
    groups = [
        QueryGroup(str(i), ["d"], np.zeros((1, 2)), np.zeros(1)) for i in range(5)
    ]
    dataset = Dataset(groups=groups, dimensions=2)

    shards = dataset.shards(2)
    assert [[g.qid for g in s] for s in shards] == [["0", "2", "4"], ["1", "3"]]
    assert len(dataset.shards(10)) == 5
