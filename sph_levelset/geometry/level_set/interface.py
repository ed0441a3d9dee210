"""
Near-interface classification and sign maintenance.

Operations on the samples of core packages:
- classify_near_interface: tag BAND where an axis neighbour has the other
  sign, FAR_INSIDE / FAR_OUTSIDE where the seeded value is trusted, and
  UNDETERMINED beyond the trusted width
- diffuse_sign: propagate inside/outside from classified neighbours into
  UNDETERMINED samples until a sweep changes nothing
- flip_isolated_samples: majority vote against sign noise
- nudge_near_zero / redistance_interface: interface cleaning

All stencil passes read a synchronized snapshot and write a separate buffer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sph_levelset.utils.parallel import ExecutionPolicy, package_for
from sph_levelset.utils.sph_logging import get_logger, log_sweep_progress

from .data_package import DISTANCE, NEAR_INTERFACE_ID, NearInterface, axis_shift, interior_slice
from .protocol import TINY_GRADIENT
from .reinitialization import central_gradient

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .package_mesh import PackageMesh

logger = get_logger(__name__)


def _axis_neighbours(array: NDArray, dimension: int):
    """Yield the 2d axis-neighbour views of a padded block."""
    for axis in range(dimension):
        for offset in (-1, 1):
            yield axis_shift(array, axis, offset, dimension)


def classify_near_interface(
    mesh: PackageMesh,
    trusted_width: float,
    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL,
    max_workers: int | None = None,
) -> dict[str, int]:
    """
    Tag every core sample relative to the zero level.

    Args:
        mesh: Package mesh with seeded distances
        trusted_width: Samples with |phi| beyond this are UNDETERMINED unless cut

    Returns:
        Sample count per tag name
    """
    d = mesh.dimension
    interior = interior_slice(d)
    phi = mesh.synchronized(mesh.fields.get(DISTANCE).data)
    tags = mesh.interior(NEAR_INTERFACE_ID)

    def classify(block: NDArray[np.intp]) -> None:
        padded = phi[block]
        center = padded[interior]
        inside = center < 0

        cut = np.zeros(center.shape, dtype=bool)
        for neighbour in _axis_neighbours(padded, d):
            cut |= (neighbour < 0) != inside

        settled = np.where(inside, NearInterface.FAR_INSIDE, NearInterface.FAR_OUTSIDE)
        tag = np.where(np.abs(center) <= trusted_width, settled, NearInterface.UNDETERMINED)
        tags[block] = np.where(cut, NearInterface.BAND, tag)

    package_for(mesh.core_slots, classify, policy, max_workers)
    mesh.sync_halo(NEAR_INTERFACE_ID)

    core_tags = mesh.interior(NEAR_INTERFACE_ID)[mesh.core_slots]
    return {tag.name: int(np.count_nonzero(core_tags == tag)) for tag in NearInterface}


def diffuse_sign(
    mesh: PackageMesh,
    max_sweeps: int,
    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL,
    max_workers: int | None = None,
    log_sweeps: bool = False,
) -> tuple[int, int]:
    """
    Resolve UNDETERMINED samples from their classified axis neighbours.

    A resolved sample takes the majority side of its classified neighbours
    (its own sign on a tie); only its sign is changed, never its magnitude.
    Sweeps repeat until one resolves nothing.

    Returns:
        (sweeps, flipped): number of sweeps run and samples whose sign changed
    """
    d = mesh.dimension
    interior = interior_slice(d)
    flipped_total = 0
    sweeps = 0

    for sweep in range(1, max_sweeps + 1):
        sweeps = sweep
        tags = mesh.synchronized(mesh.fields.get(NEAR_INTERFACE_ID).data)
        phi = mesh.synchronized(mesh.fields.get(DISTANCE).data)
        new_tags = tags.copy()
        new_phi = phi.copy()
        new_tags_interior = new_tags[interior]
        new_phi_interior = new_phi[interior]
        counts: list[tuple[int, int]] = []

        def resolve(
            block: NDArray[np.intp],
            tags=tags,
            phi=phi,
            new_tags_interior=new_tags_interior,
            new_phi_interior=new_phi_interior,
            out=counts,
        ) -> None:
            block_tags = tags[block]
            block_phi = phi[block]
            center_tag = block_tags[interior]
            center_phi = block_phi[interior]

            votes_in = np.zeros(center_tag.shape, dtype=np.int8)
            votes_out = np.zeros(center_tag.shape, dtype=np.int8)
            for tag_n, phi_n in zip(_axis_neighbours(block_tags, d), _axis_neighbours(block_phi, d), strict=True):
                band = tag_n == NearInterface.BAND
                votes_in += (tag_n == NearInterface.FAR_INSIDE) | (band & (phi_n < 0))
                votes_out += (tag_n == NearInterface.FAR_OUTSIDE) | (band & (phi_n >= 0))

            decided = (center_tag == NearInterface.UNDETERMINED) & (votes_in + votes_out > 0)
            to_inside = np.where(votes_in == votes_out, center_phi < 0, votes_in > votes_out)

            new_tags_interior[block] = np.where(
                decided, np.where(to_inside, NearInterface.FAR_INSIDE, NearInterface.FAR_OUTSIDE), center_tag
            )
            magnitude = np.abs(center_phi)
            new_phi_interior[block] = np.where(decided, np.where(to_inside, -magnitude, magnitude), center_phi)
            n_flipped = np.count_nonzero(decided & (to_inside != (center_phi < 0)))
            out.append((int(np.count_nonzero(decided)), int(n_flipped)))

        package_for(mesh.core_slots, resolve, policy, max_workers)
        mesh.fields.get(NEAR_INTERFACE_ID).data = new_tags
        mesh.fields.get(DISTANCE).data = new_phi

        resolved = sum(c[0] for c in counts)
        flipped_total += sum(c[1] for c in counts)
        if log_sweeps:
            log_sweep_progress(logger, "Sign diffusion", sweep, max_sweeps, float(resolved))
        if resolved == 0:
            break

    tags_interior = mesh.interior(NEAR_INTERFACE_ID)
    phi_interior = mesh.interior(DISTANCE)
    leftover = tags_interior == NearInterface.UNDETERMINED
    if np.any(leftover):
        logger.warning(
            f"Sign diffusion left {int(np.count_nonzero(leftover))} samples undetermined after "
            f"{sweeps} sweeps; keeping their seeded sign"
        )
        tags_interior[leftover] = np.where(
            phi_interior[leftover] < 0, NearInterface.FAR_INSIDE, NearInterface.FAR_OUTSIDE
        )

    mesh.sync_halo(NEAR_INTERFACE_ID)
    mesh.sync_halo(DISTANCE)
    return sweeps, flipped_total


def flip_isolated_samples(
    mesh: PackageMesh,
    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL,
    max_workers: int | None = None,
) -> int:
    """
    Flip samples whose sign disagrees with a strict majority of their axis neighbours.

    Returns:
        Number of flipped samples
    """
    d = mesh.dimension
    interior = interior_slice(d)
    phi = mesh.synchronized(mesh.fields.get(DISTANCE).data)
    updated = phi.copy()
    updated_interior = updated[interior]
    counts: list[int] = []

    def vote(block: NDArray[np.intp]) -> None:
        padded = phi[block]
        center = padded[interior]
        inside = center < 0
        disagree = np.zeros(center.shape, dtype=np.int8)
        for neighbour in _axis_neighbours(padded, d):
            disagree += (neighbour < 0) != inside
        flip = disagree > d
        updated_interior[block] = np.where(flip, -center, center)
        counts.append(int(np.count_nonzero(flip)))

    package_for(mesh.core_slots, vote, policy, max_workers)
    mesh.fields.get(DISTANCE).data = updated
    mesh.sync_halo(DISTANCE)
    return sum(counts)


def nudge_near_zero(mesh: PackageMesh, small_shift: float) -> int:
    """
    Move |phi| < small_shift to +/- small_shift, keeping the sign (zero counts as outside).

    Returns:
        Number of nudged samples
    """
    phi = mesh.interior(DISTANCE)
    slots = mesh.core_slots
    center = phi[slots]
    small = np.abs(center) < small_shift
    phi[slots] = np.where(small, np.where(center < 0, -small_shift, small_shift), center)
    mesh.sync_halo(DISTANCE)
    return int(np.count_nonzero(small))


def redistance_interface(
    mesh: PackageMesh,
    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL,
    max_workers: int | None = None,
) -> None:
    """Rescale BAND samples to phi / |grad phi| using central differences."""
    d = mesh.dimension
    interior = interior_slice(d)
    phi = mesh.synchronized(mesh.fields.get(DISTANCE).data)
    tags = mesh.interior(NEAR_INTERFACE_ID)
    updated = phi.copy()
    updated_interior = updated[interior]

    def rescale(block: NDArray[np.intp]) -> None:
        padded = phi[block]
        center = padded[interior]
        norm = np.linalg.norm(central_gradient(padded, mesh.data_spacing, d), axis=-1)
        usable = (tags[block] == NearInterface.BAND) & (norm > TINY_GRADIENT)
        updated_interior[block] = np.where(usable, center / np.maximum(norm, TINY_GRADIENT), center)

    package_for(mesh.core_slots, rescale, policy, max_workers)
    mesh.fields.get(DISTANCE).data = updated
    mesh.sync_halo(DISTANCE)
