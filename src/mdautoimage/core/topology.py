"""Molecule-level view of a topology.

The imaging code only needs to know where each molecule starts and ends,
whether it is solvent, the atomic masses and the declared box shape. This
module provides that view (:class:`MoleculeTopology`) plus the mask evaluator
used to turn selection strings into atom indices.

Both can be built from an MDAnalysis Universe:

>>> import MDAnalysis as mda
>>> from mdautoimage.core.topology import MoleculeTopology, MDAnalysisMaskEvaluator
>>>
>>> u = mda.Universe("system.prmtop", "trajectory.nc")
>>> topology = MoleculeTopology.from_universe(u)
>>> select = MDAnalysisMaskEvaluator(u)
>>> select("protein").size
2345
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence, Union

import numpy as np
from MDAnalysis.exceptions import NoDataError
from numpy.typing import ArrayLike, NDArray

from mdautoimage.constants import DEFAULT_SOLVENT_RESNAMES, BoxType
from mdautoimage.core.box import detect_box_type

if TYPE_CHECKING:
    from MDAnalysis.core.universe import Universe

LOGGER = logging.getLogger(__name__)

# A mask evaluator turns a selection expression into atom indices
MaskEvaluator = Callable[[str], ArrayLike]


@dataclass(frozen=True, order=True)
class AtomRange:
    """Half-open range of atom indices belonging to one molecule.

    Attributes
    ----------
    first : int
        Index of the first atom.
    last : int
        One past the index of the last atom.
    """

    first: int
    last: int

    def __post_init__(self) -> None:
        if self.first < 0 or self.last <= self.first:
            raise ValueError(f"Invalid atom range [{self.first}, {self.last})")

    @property
    def n_atoms(self) -> int:
        return self.last - self.first

    def as_slice(self) -> slice:
        return slice(self.first, self.last)

    def indices(self) -> NDArray[np.int64]:
        return np.arange(self.first, self.last, dtype=np.int64)

    def __contains__(self, atom: int) -> bool:
        return self.first <= atom < self.last

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.first, self.last))

    def __repr__(self) -> str:
        return f"AtomRange({self.first}, {self.last})"


@dataclass
class MoleculeTopology:
    """Molecules of a system as contiguous atom ranges.

    Attributes
    ----------
    molecules : list[AtomRange]
        Molecules in topology order. Ranges must be contiguous and cover all
        atoms.
    solvent : NDArray[bool]
        Per-molecule solvent flag.
    masses : NDArray, optional
        Per-atom masses. ``None`` if the topology has no masses.
    box_type : BoxType
        Declared box shape.
    name : str
        Label used in log messages.
    """

    molecules: list[AtomRange]
    solvent: Optional[NDArray[np.bool_]] = None
    masses: Optional[NDArray[np.float64]] = None
    box_type: BoxType = BoxType.NONE
    name: str = "topology"

    def __post_init__(self) -> None:
        self.molecules = list(self.molecules)
        if self.solvent is None:
            self.solvent = np.zeros(len(self.molecules), dtype=bool)
        self.solvent = np.asarray(self.solvent, dtype=bool)
        if len(self.solvent) != len(self.molecules):
            raise ValueError(
                f"Got {len(self.solvent)} solvent flags for {len(self.molecules)} molecules"
            )

        expected = 0
        for mol in self.molecules:
            if mol.first != expected:
                raise ValueError(
                    f"Molecule ranges must be contiguous and ordered; expected a molecule "
                    f"starting at atom {expected}, got {mol}"
                )
            expected = mol.last

        if self.masses is not None:
            self.masses = np.asarray(self.masses, dtype=np.float64)
            if len(self.masses) != self.n_atoms:
                raise ValueError(f"Got {len(self.masses)} masses for {self.n_atoms} atoms")

        self._starts = np.array([mol.first for mol in self.molecules], dtype=np.int64)

    @property
    def n_molecules(self) -> int:
        return len(self.molecules)

    @property
    def n_atoms(self) -> int:
        return self.molecules[-1].last if self.molecules else 0

    def molecule_of_atoms(self, atoms: ArrayLike) -> NDArray[np.int64]:
        """Return the molecule index of each atom index."""
        atoms = np.asarray(atoms, dtype=np.int64)
        if atoms.size and (atoms.min() < 0 or atoms.max() >= self.n_atoms):
            raise IndexError(f"Atom indices out of range for {self.n_atoms} atoms")
        return np.searchsorted(self._starts, atoms, side="right") - 1

    @classmethod
    def from_sizes(
        cls,
        sizes: Sequence[int],
        solvent: Optional[Sequence[bool]] = None,
        **kwargs,
    ) -> "MoleculeTopology":
        """Build a topology from consecutive molecule sizes.

        Examples
        --------
        >>> top = MoleculeTopology.from_sizes([10, 3, 3, 1])
        >>> top.molecules[1]
        AtomRange(10, 13)
        """
        bounds = np.concatenate([[0], np.cumsum(sizes)]).astype(int)
        molecules = [AtomRange(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:])]
        return cls(molecules=molecules, solvent=solvent, **kwargs)

    @classmethod
    def from_universe(
        cls,
        universe: "Universe",
        solvent_resnames: Optional[Sequence[str]] = None,
    ) -> "MoleculeTopology":
        """Build the molecule view of an MDAnalysis Universe.

        Molecules are the bonded fragments when the topology has bonds,
        otherwise each residue is treated as a molecule.

        Parameters
        ----------
        universe : MDAnalysis.Universe
            Universe to describe.
        solvent_resnames : sequence of str, optional
            Residue names marking solvent. Default is
            :data:`DEFAULT_SOLVENT_RESNAMES`.

        Raises
        ------
        ValueError
            If a molecule's atoms are not contiguous.
        """
        resnames = {name.upper() for name in (solvent_resnames or DEFAULT_SOLVENT_RESNAMES)}
        atoms = universe.atoms

        if hasattr(universe, "bonds") and len(universe.bonds) > 0:
            groups = sorted(atoms.fragments, key=lambda frag: frag.ix[0])
            LOGGER.debug(f"Using {len(groups)} bonded fragments as molecules")
        else:
            groups = [residue.atoms for residue in universe.residues if len(residue.atoms) > 0]
            groups.sort(key=lambda group: group.ix.min())
            LOGGER.debug(f"No bonds in topology, using {len(groups)} residues as molecules")

        molecules: list[AtomRange] = []
        solvent: list[bool] = []
        for group in groups:
            ix = np.sort(group.ix)
            if ix[-1] - ix[0] + 1 != len(ix):
                raise ValueError(
                    f"Molecule containing atoms {ix[0]}-{ix[-1]} is not contiguous; "
                    "autoimaging requires each molecule to occupy a consecutive atom range"
                )
            molecules.append(AtomRange(int(ix[0]), int(ix[-1]) + 1))
            group_resnames = getattr(group, "resnames", np.array([], dtype=object))
            solvent.append(
                len(group_resnames) > 0
                and all(str(name).upper() in resnames for name in group_resnames)
            )

        try:
            masses: Optional[NDArray] = np.asarray(atoms.masses, dtype=np.float64)
        except NoDataError:
            masses = None
            LOGGER.warning("Masses not available in topology. Using geometric centers.")

        dimensions = None
        if getattr(universe, "trajectory", None) is not None:
            dimensions = universe.dimensions
        return cls(
            molecules=molecules,
            solvent=np.asarray(solvent, dtype=bool),
            masses=masses,
            box_type=detect_box_type(dimensions),
            name=str(getattr(universe, "filename", None) or "universe"),
        )


class MDAnalysisMaskEvaluator:
    """Mask evaluator backed by ``Universe.select_atoms``.

    Parameters
    ----------
    universe : MDAnalysis.Universe
        Universe to select from.

    Examples
    --------
    >>> select = MDAnalysisMaskEvaluator(u)
    >>> select("resname LIG")
    array([2310, 2311, ...])
    """

    def __init__(self, universe: "Universe") -> None:
        self.universe = universe

    def __call__(self, expression: str) -> NDArray[np.int64]:
        return np.asarray(self.universe.select_atoms(expression).ix, dtype=np.int64)


def as_indices(selected: Union[ArrayLike, NDArray]) -> NDArray[np.int64]:
    """Normalize a mask evaluator result to a sorted unique index array."""
    return np.unique(np.asarray(selected, dtype=np.int64).ravel())
