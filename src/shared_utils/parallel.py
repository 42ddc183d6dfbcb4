from concurrent.futures import ThreadPoolExecutor

from config import DEFAULT_NUM_WORKERS
from .errors import InvalidInputError


def row_ranges(n_rows, n_chunks):
    """Split [0, n_rows) into at most n_chunks contiguous (start, end) ranges."""
    n_chunks = max(1, min(n_chunks, n_rows))
    step, extra = divmod(n_rows, n_chunks)
    ranges = []
    start = 0
    for k in range(n_chunks):
        end = start + step + (1 if k < extra else 0)
        if end > start:
            ranges.append((start, end))
        start = end
    return ranges


class RowPartitionedPool:
    """
        Fan a row-range body out over a thread pool.

        body(start, end) may read shared state but must only write rows [start, end)
        of its output buffers; no locking is done. Results are returned in row order.
        A pass always runs to completion, exceptions of a task are re-raised.
    """

    def __init__(self, num_workers=None):
        self.num_workers = num_workers if num_workers is not None else DEFAULT_NUM_WORKERS
        if self.num_workers < 1:
            raise InvalidInputError(f"num_workers must be at least 1, got {self.num_workers}")

    def map_rows(self, n_rows, body):
        ranges = row_ranges(n_rows, self.num_workers)
        if self.num_workers == 1 or len(ranges) <= 1:
            return [body(start, end) for start, end in ranges]

        with ThreadPoolExecutor(max_workers=self.num_workers) as pool:
            futures = [pool.submit(body, start, end) for start, end in ranges]
            return [fut.result() for fut in futures]
