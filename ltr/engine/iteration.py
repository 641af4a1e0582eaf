# ltr/engine/iteration.py
"""
Barrier-synchronised iteration scheduler.

  for iteration in range(n):
      on_start(iteration)
      ┌ shard 0 ┐ ┌ shard 1 ┐ ... ┌ shard k ┐   one task per shard,
      │ cb(item)│ │ cb(item)│     │ cb(item)│   items of a shard run in order
      └─────────┘ └─────────┘     └─────────┘
      ───────────────── barrier ───────────────  all tasks joined
      stop = on_barrier(iteration)              caller thread

Nothing of iteration N+1 starts before on_barrier(N) returns, so state
mutated in on_barrier (model weights) is frozen while callbacks run.
A worker exception is re-raised on the caller thread after the barrier.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Sequence, TypeVar

from loguru import logger
from tqdm import tqdm

T = TypeVar("T")


class IterationEngine:

    def __init__(self, workers: int = 4, progress: bool = True):
        self.workers = max(1, workers)
        self.progress = progress

    def _run_shard(self, shard_index: int, shard: Sequence[T], callback) -> int:
        for item in shard:
            callback(item, shard_index)
        return len(shard)

    def run_iterations(
        self,
        n: int,
        shards: Sequence[Sequence[T]],
        callback: Callable[[T, int], object],
        on_barrier: Callable[[int], bool | None] | None = None,
        on_start: Callable[[int], None] | None = None,
        desc: str = "iterations",
    ) -> int:
        """
        Run up to n iterations over the shards.
        Returns: number of iterations actually run (early stop via on_barrier).
        """
        completed = 0
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            for iteration in tqdm(range(n), desc=desc, disable=not self.progress):
                if on_start is not None:
                    on_start(iteration)

                futures = [
                    executor.submit(self._run_shard, idx, shard, callback)
                    for idx, shard in enumerate(shards)
                ]
                wait(futures)
                processed = sum(f.result() for f in futures)
                logger.debug(
                    f"{desc} {iteration}: {processed} items over {len(shards)} shards"
                )

                completed += 1
                if on_barrier is not None and on_barrier(iteration):
                    logger.info(f"{desc}: stopping condition met after {completed} iterations")
                    break
        return completed
