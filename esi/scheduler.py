"""
Row-partitioned execution of the reconstruction kernel.

Each worker gets a contiguous range of source rows and writes only the matching
output rows, so the shared output buffer needs no locking.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait

import numpy as np

from .errors import StateError
from .reconstruction import reconstruct_rows, output_shape, normalize

logger = logging.getLogger(__name__)


def default_thread_count():
    return os.cpu_count() or 1


def partition_rows(height, nr_threads):
    """
    Split the rows [0, height) into ``nr_threads`` contiguous ranges.

    Partition i starts at (height // nr_threads) * i. The last partition ends
    at height - 1 (the bottom border row), so it also takes the remainder rows
    when height is not a multiple of nr_threads. The thread count is clamped
    to [1, height].

    Returns:
        List of (start, end) tuples, end exclusive.
    """
    nr_threads = max(1, min(nr_threads, height))
    step = height // nr_threads

    partitions = []
    for i in range(nr_threads):
        start = step * i
        if i == nr_threads - 1:
            end = max(start, height - 1)
        else:
            end = step * (i + 1)
        partitions.append((start, end))
    return partitions


def reconstruct(stack, order, nr_threads=None, normalize_output=False):
    """
    Reconstruct a stack with a pool of worker threads, one per row partition.

    Blocks until every worker has finished. If workers fail, the error of the
    lowest partition is raised after the join.

    The kernel runs many small numpy calls per pixel from Python, so workers
    hold the GIL for most of their time and the speedup stays modest.

    Args:
        stack: TraceStack, already normalized and binned
        order: Order of the joint moment
        nr_threads: Pool size, defaults to the number of CPUs
        normalize_output: Rescale the result to [0, 1] after the join
    """
    if nr_threads is None:
        nr_threads = default_thread_count()
    if nr_threads < 1:
        raise ValueError(f"nr_threads must be >= 1, got {nr_threads}")
    if stack.depth < 1:
        raise ValueError("Cannot reconstruct a TraceStack without frames")
    if not stack.is_binned:
        raise StateError("TraceStack has no probability binning, call create_binning() first")

    out = np.zeros(output_shape(stack), dtype=np.float32)
    partitions = partition_rows(stack.height, nr_threads)
    logger.debug("Reconstructing %dx%d stack with partitions %s", stack.width, stack.height, partitions)

    with ThreadPoolExecutor(max_workers=len(partitions)) as pool:
        futures = [pool.submit(reconstruct_rows, stack, order, start, end, out)
                   for start, end in partitions]
        wait(futures)

    for future in futures:
        future.result()

    if normalize_output:
        normalize(out)
    return out


def reconstruct_single(stack, order, normalize_output=False):
    """Same as ``reconstruct``, but runs the kernel over all rows in the calling thread."""
    out = reconstruct_rows(stack, order, 0, stack.height - 1)
    if normalize_output:
        normalize(out)
    return out
