"""Free minimum-image wrapping of mobile molecules.

Each mobile molecule is reduced to one imaging point (its center, or its
first atom), the point is wrapped into the primary cell, and the resulting
translation is applied to every atom of the molecule. Molecules are never
split across the boundary.

Centers are computed for all mobile molecules at once with ``np.bincount``
over a per-atom molecule label, which keeps the cost O(N_atoms) per frame
even for large solvent boxes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from mdautoimage.core.box import BoxGeometry
from mdautoimage.core.frame import Frame
from mdautoimage.core.topology import AtomRange

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MoleculeGroup:
    """Flattened atom bookkeeping for a list of molecules.

    Attributes
    ----------
    atoms : NDArray[int]
        Atom indices of all molecules, concatenated.
    labels : NDArray[int]
        For each entry of ``atoms``, the position of its molecule in the
        group.
    first_atoms : NDArray[int]
        First atom of each molecule.
    """

    atoms: NDArray[np.int64]
    labels: NDArray[np.int64]
    first_atoms: NDArray[np.int64]

    @property
    def n_molecules(self) -> int:
        return len(self.first_atoms)

    @classmethod
    def from_ranges(cls, molecules: Sequence[AtomRange]) -> "MoleculeGroup":
        if not molecules:
            empty = np.zeros(0, dtype=np.int64)
            return cls(atoms=empty, labels=empty, first_atoms=empty)
        atoms = np.concatenate([mol.indices() for mol in molecules])
        labels = np.repeat(
            np.arange(len(molecules), dtype=np.int64),
            [mol.n_atoms for mol in molecules],
        )
        first_atoms = np.array([mol.first for mol in molecules], dtype=np.int64)
        return cls(atoms=atoms, labels=labels, first_atoms=first_atoms)


def molecule_centers(
    positions: NDArray[np.float64],
    group: MoleculeGroup,
    masses: Optional[NDArray[np.float64]] = None,
) -> NDArray[np.float64]:
    """Center of each molecule of a group.

    Parameters
    ----------
    positions : NDArray
        All atomic positions, shape (N_atoms, 3).
    group : MoleculeGroup
        Molecules to compute centers for.
    masses : NDArray, optional
        All atomic masses. If None, geometric centers are returned. Molecules
        whose masses sum to zero also get their geometric center.

    Returns
    -------
    NDArray
        Centers, shape (n_molecules, 3).
    """
    n = group.n_molecules
    coords = positions[group.atoms]
    counts = np.bincount(group.labels, minlength=n).astype(np.float64)

    geometric = np.column_stack(
        [np.bincount(group.labels, weights=coords[:, k], minlength=n) for k in range(3)]
    ) / counts[:, np.newaxis]
    if masses is None:
        return geometric

    weights = masses[group.atoms]
    total = np.bincount(group.labels, weights=weights, minlength=n)
    weighted = np.column_stack(
        [np.bincount(group.labels, weights=coords[:, k] * weights, minlength=n) for k in range(3)]
    )
    safe_total = np.where(total == 0.0, 1.0, total)
    return np.where((total > 0.0)[:, np.newaxis], weighted / safe_total[:, np.newaxis], geometric)


def image_mobile(
    frame: Frame,
    group: MoleculeGroup,
    box: BoxGeometry,
    origin: bool = False,
    target: Optional[NDArray[np.float64]] = None,
    use_center: bool = True,
    use_mass: bool = False,
) -> NDArray[np.float64]:
    """Wrap every mobile molecule into the primary cell.

    Parameters
    ----------
    frame : Frame
        Frame to modify in place. The anchor must already be centered.
    group : MoleculeGroup
        Mobile molecules.
    box : BoxGeometry
        Geometry of the current frame.
    origin : bool, optional
        The cell is centered on the coordinate origin.
    target : NDArray, optional
        Anchor target point; truncated octahedron imaging keeps the image
        closest to it.
    use_center : bool, optional
        Image by molecule center (default) or by the first atom's position.
    use_mass : bool, optional
        Mass-weight the molecule centers.

    Returns
    -------
    NDArray
        Translation applied to each molecule, shape (n_molecules, 3).
    """
    if group.n_molecules == 0:
        return np.zeros((0, 3))

    if use_center:
        masses = frame.masses if use_mass else None
        points = molecule_centers(frame.positions, group, masses)
    else:
        points = frame.positions[group.first_atoms]

    translations = box.wrap_translations(points, origin, target)
    frame.positions[group.atoms] += translations[group.labels]

    n_moved = int(np.count_nonzero(np.any(translations != 0.0, axis=1)))
    LOGGER.debug(f"Imaged {n_moved} of {group.n_molecules} mobile molecules")
    return translations
