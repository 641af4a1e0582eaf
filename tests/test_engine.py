import threading

import pytest

from ltr.engine.iteration import IterationEngine


def test_barrier_between_iterations():
    shards = [[1, 2, 3], [4, 5], [6]]
    total = sum(len(s) for s in shards)
    lock = threading.Lock()
    seen: dict[int, int] = {}
    current = {"iteration": 0}
    barrier_counts = []

    def callback(item, shard):
        with lock:
            it = current["iteration"]
            seen[it] = seen.get(it, 0) + 1

    def on_start(iteration):
        current["iteration"] = iteration

    def on_barrier(iteration):
        barrier_counts.append(seen.get(iteration, 0))
        return False

    engine = IterationEngine(workers=3, progress=False)
    completed = engine.run_iterations(4, shards, callback, on_barrier=on_barrier, on_start=on_start)

    assert completed == 4
    assert barrier_counts == [total] * 4


def test_items_of_a_shard_run_in_order():
    shards = [list(range(10)), list(range(10, 20))]
    visits = {0: [], 1: []}

    def callback(item, shard):
        visits[shard].append(item)

    IterationEngine(workers=2, progress=False).run_iterations(1, shards, callback)
    assert visits == {0: list(range(10)), 1: list(range(10, 20))}


def test_early_stop():
    engine = IterationEngine(workers=2, progress=False)
    completed = engine.run_iterations(
        10, [[1], [2]], lambda item, shard: None, on_barrier=lambda it: it == 2
    )
    assert completed == 3


def test_worker_exception_propagates():
    def callback(item, shard):
        if item == 3:
            raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        IterationEngine(workers=2, progress=False).run_iterations(2, [[1, 2], [3]], callback)
