"""Chained nearest-image placement of fixed molecules.

Fixed molecules (e.g. the chains of a multi-chain complex, or a ligand) are
not wrapped independently like mobile ones. Instead, in topology order, each
one is moved to the periodic image closest to a running reference point:

1. the reference starts at the anchor's target position;
2. the molecule is placed at the image of its center nearest the reference;
3. the reference becomes the molecule's new center.

Chaining lets each molecule attach to the previously placed one, which keeps
extended assemblies contiguous from frame to frame.

Search space
------------
The candidate images are not the whole lattice. Per axis, the search runs
from 0 towards the reference, one cell past the offset rounded away from
zero (end exclusive)::

    offset  2.3 -> 0, 1, 2, 3
    offset -1.1 -> 0, -1, -2
    offset  0.0 -> 0

Candidates are enumerated with z outermost and x innermost; the first
minimum wins ties. A molecule much further than one cell from its reference
can therefore miss its true nearest image. The zero translation is always a
candidate, so placement never increases the distance to the reference.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np
from numpy.typing import NDArray

from mdautoimage.core.box import BoxGeometry
from mdautoimage.core.frame import Frame
from mdautoimage.core.topology import AtomRange

LOGGER = logging.getLogger(__name__)


class NearestImage(NamedTuple):
    """Result of the bounded nearest-image search."""

    translation: NDArray[np.float64]
    cell: tuple[int, int, int]
    dist2: float


@dataclass(frozen=True, eq=False)
class FixedPlacement:
    """How one fixed molecule was placed.

    Attributes
    ----------
    molecule : AtomRange
        The molecule.
    reference : NDArray
        Reference point it was placed against.
    translation : NDArray
        Translation applied to all of its atoms.
    cell : tuple[int, int, int]
        Lattice cell of the translation.
    center : NDArray
        Its center after placement (the next reference point).
    """

    molecule: AtomRange
    reference: NDArray[np.float64]
    translation: NDArray[np.float64]
    cell: tuple[int, int, int]
    center: NDArray[np.float64]

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.center - self.reference))


def search_range(offset: float) -> range:
    """Integer cell shifts searched along one axis.

    Parameters
    ----------
    offset : float
        Fractional offset from the molecule center to the reference point.

    Returns
    -------
    range
        From 0 to one past the offset rounded away from zero, exclusive,
        stepping in the direction of the offset.
    """
    if offset < 0.0:
        return range(0, math.floor(offset) - 1, -1)
    return range(0, math.ceil(offset) + 1)


def candidate_cells(fractional_offset: NDArray[np.float64]) -> NDArray[np.float64]:
    """All candidate cells ``(ix, iy, iz)`` in enumeration order.

    Returns
    -------
    NDArray
        Shape (K, 3). The first row is always ``(0, 0, 0)``.
    """
    rx, ry, rz = (search_range(float(d)) for d in fractional_offset)
    return np.array([(ix, iy, iz) for iz in rz for iy in ry for ix in rx], dtype=np.float64)


def nearest_image_translation(
    center: NDArray[np.float64],
    reference: NDArray[np.float64],
    box: BoxGeometry,
) -> NearestImage:
    """Find the lattice translation bringing ``center`` closest to ``reference``.

    Pure function of its inputs; nothing is modified.

    Parameters
    ----------
    center : NDArray
        Current molecule center.
    reference : NDArray
        Point to approach.
    box : BoxGeometry
        Geometry of the current frame.

    Returns
    -------
    NearestImage
        Winning translation, its cell, and the squared distance it gives.
    """
    center = np.asarray(center, dtype=np.float64)
    reference = np.asarray(reference, dtype=np.float64)

    cells = candidate_cells(box.to_fractional(reference - center))
    translations = box.to_cartesian(cells)
    dist2 = np.sum((center + translations - reference) ** 2, axis=1)
    # argmin returns the first minimum, i.e. enumeration order breaks ties
    best = int(np.argmin(dist2))

    if LOGGER.isEnabledFor(logging.DEBUG):
        for cell, d2 in zip(cells.astype(int), dist2):
            LOGGER.debug(f"  candidate {tuple(cell)}: {np.sqrt(d2):.2f} A")

    ix, iy, iz = (int(c) for c in cells[best])
    return NearestImage(translation=translations[best], cell=(ix, iy, iz), dist2=float(dist2[best]))


def place_fixed_molecule(
    frame: Frame,
    molecule: AtomRange,
    reference: NDArray[np.float64],
    box: BoxGeometry,
    use_mass: bool = False,
) -> FixedPlacement:
    """Move one fixed molecule to its image nearest ``reference``."""
    center = frame.center(molecule, use_mass=use_mass)
    image = nearest_image_translation(center, reference, box)
    frame.translate(image.translation, molecule)
    return FixedPlacement(
        molecule=molecule,
        reference=np.array(reference, dtype=np.float64),
        translation=image.translation,
        cell=image.cell,
        center=center + image.translation,
    )


def anchor_fixed_molecules(
    frame: Frame,
    molecules: Sequence[AtomRange],
    box: BoxGeometry,
    reference: NDArray[np.float64],
    use_mass: bool = False,
) -> list[FixedPlacement]:
    """Place fixed molecules in order, chaining the reference point.

    Parameters
    ----------
    frame : Frame
        Frame to modify in place. The anchor must already be centered.
    molecules : sequence of AtomRange
        Fixed molecules in topology order.
    box : BoxGeometry
        Geometry of the current frame.
    reference : NDArray
        Starting reference point (the anchor's target position).
    use_mass : bool, optional
        Mass-weight the molecule centers.

    Returns
    -------
    list[FixedPlacement]
        One entry per molecule, in processing order.
    """
    placements: list[FixedPlacement] = []
    for molecule in molecules:
        placement = place_fixed_molecule(frame, molecule, reference, box, use_mass)
        LOGGER.debug(
            f"Fixed molecule atoms {molecule.first + 1}-{molecule.last}: "
            f"cell {placement.cell}, {placement.distance:.2f} A from reference"
        )
        placements.append(placement)
        reference = placement.center
    return placements
