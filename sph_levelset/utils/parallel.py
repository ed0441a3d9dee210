"""
Per-package iteration primitive.

Construction stages and sweeps are written as functions over a block of
package slots. `package_for` runs such a function over all slots either inline
or split into chunks on a thread pool; NumPy releases the GIL inside the
vectorized kernels, so the threaded policy overlaps real work.

Functions passed to `package_for` must only write the rows of their own block.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray


class ExecutionPolicy(str, Enum):
    """How per-package work is dispatched."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


def chunk_indices(indices: NDArray[np.intp], n_chunks: int) -> list[NDArray[np.intp]]:
    """Split an index array into at most n_chunks contiguous, non-empty blocks."""
    if len(indices) == 0:
        return []
    n_chunks = max(1, min(n_chunks, len(indices)))
    return [block for block in np.array_split(indices, n_chunks) if len(block) > 0]


def package_for(
    indices: NDArray[np.intp],
    function: Callable[[NDArray[np.intp]], None],
    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL,
    max_workers: int | None = None,
) -> None:
    """
    Apply function to blocks of package indices.

    Args:
        indices: Package slots to visit
        function: Called with a block of slots; must only write those slots
        policy: SEQUENTIAL runs one block inline, PARALLEL splits across threads
        max_workers: Thread count for PARALLEL (default: CPU count)
    """
    indices = np.asarray(indices, dtype=np.intp)
    if len(indices) == 0:
        return

    if ExecutionPolicy(policy) is ExecutionPolicy.SEQUENTIAL:
        function(indices)
        return

    workers = max_workers or os.cpu_count() or 1
    blocks = chunk_indices(indices, workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(function, block) for block in blocks]
        for future in futures:
            # Re-raise worker exceptions in the caller
            future.result()
