"""Mutable coordinate frame used by the imaging routines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mdautoimage.core.topology import AtomRange

if TYPE_CHECKING:
    from MDAnalysis.coordinates.timestep import Timestep

AtomSelection = Union[AtomRange, slice, NDArray[np.int64], None]


def _index(atoms: AtomSelection):
    if atoms is None:
        return slice(None)
    if isinstance(atoms, AtomRange):
        return atoms.as_slice()
    return atoms


@dataclass
class Frame:
    """A single snapshot of atomic coordinates and its box.

    Coordinates are held as float64 and modified in place by the imaging
    routines.

    Attributes:
        positions: Cartesian coordinates, shape ``(n_atoms, 3)``.
        dimensions: Box ``[a, b, c, alpha, beta, gamma]`` or ``None``.
        masses: Optional per-atom masses, shape ``(n_atoms,)``.

    Raises:
        ValueError: If *positions* does not have shape ``(n_atoms, 3)`` or
            *masses* does not match the atom count.
    """

    positions: NDArray[np.float64]
    dimensions: Optional[NDArray[np.float64]] = None
    masses: Optional[NDArray[np.float64]] = None

    def __post_init__(self) -> None:
        self.positions = np.asarray(self.positions, dtype=np.float64)
        if self.positions.ndim != 2 or self.positions.shape[1] != 3:
            raise ValueError(
                f"positions must have shape (n_atoms, 3), got {self.positions.shape}"
            )
        if self.dimensions is not None:
            self.dimensions = np.asarray(self.dimensions, dtype=np.float64)
        if self.masses is not None:
            self.masses = np.asarray(self.masses, dtype=np.float64)
            if self.masses.shape != (self.n_atoms,):
                raise ValueError(
                    f"masses must have shape ({self.n_atoms},), got {self.masses.shape}"
                )

    @property
    def n_atoms(self) -> int:
        return len(self.positions)

    def center(self, atoms: AtomSelection = None, use_mass: bool = False) -> NDArray[np.float64]:
        """Center of the selected atoms.

        Args:
            atoms: Atom range, index array or slice. ``None`` means all atoms.
            use_mass: Weight by mass. Falls back to the geometric center when
                the frame has no masses or the selected masses sum to zero.

        Returns:
            Center as a 3-vector.
        """
        index = _index(atoms)
        coords = self.positions[index]
        if len(coords) == 0:
            raise ValueError("Cannot compute the center of an empty atom selection")
        if use_mass and self.masses is not None:
            weights = self.masses[index]
            total = weights.sum()
            if total > 0.0:
                return (coords * weights[:, np.newaxis]).sum(axis=0) / total
        return coords.mean(axis=0)

    def translate(self, vector: ArrayLike, atoms: AtomSelection = None) -> None:
        """Rigidly translate the selected atoms (all atoms by default)."""
        self.positions[_index(atoms)] += np.asarray(vector, dtype=np.float64)

    @classmethod
    def from_timestep(cls, ts: "Timestep", masses: Optional[ArrayLike] = None) -> "Frame":
        """Copy an MDAnalysis timestep into a float64 frame."""
        dimensions = None if ts.dimensions is None else np.array(ts.dimensions, dtype=np.float64)
        return cls(
            positions=np.array(ts.positions, dtype=np.float64),
            dimensions=dimensions,
            masses=masses,
        )
