"""Classification of molecules into anchor, fixed and mobile roles.

Every molecule of a topology gets exactly one role:

anchor
    The molecule(s) kept at the target point every frame. By default the
    first molecule; otherwise every molecule touched by the anchor mask.
fixed
    Molecules imaged next to the anchor (or a previously placed fixed
    molecule) with the chained nearest-image search. By default all
    non-solvent molecules with more than one atom.
mobile
    Molecules wrapped freely into the primary cell. By default solvent and
    single-atom molecules (typically ions).

Selecting any atom of a molecule selects the whole molecule. The
classification is built once per topology and reused for every frame.

The policy sits behind :class:`MoleculeClassifier`, so other strategies
(e.g. explicit molecule lists, :class:`ExplicitMoleculeClassifier`) can be
used without touching the imaging code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from MDAnalysis.exceptions import SelectionError
from numpy.typing import NDArray

from mdautoimage.core.topology import AtomRange, MaskEvaluator, MoleculeTopology, as_indices
from mdautoimage.exceptions import AutoImageSetupError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Classification:
    """Roles of all molecules of one topology.

    Attributes
    ----------
    anchor_atoms : NDArray[int]
        Atoms whose center is placed at the target point.
    anchor_molecules : tuple[int, ...]
        Indices of the molecules containing anchor atoms.
    fixed : tuple[AtomRange, ...]
        Fixed molecules in topology order.
    mobile : tuple[AtomRange, ...]
        Mobile molecules.
    unassigned : tuple[AtomRange, ...]
        Molecules selected by neither an explicit fixed nor an explicit
        mobile mask. They move with the frame but are never imaged.
    """

    anchor_atoms: NDArray[np.int64]
    anchor_molecules: tuple[int, ...]
    fixed: tuple[AtomRange, ...]
    mobile: tuple[AtomRange, ...]
    unassigned: tuple[AtomRange, ...] = ()

    @property
    def n_fixed(self) -> int:
        return len(self.fixed)

    @property
    def n_mobile(self) -> int:
        return len(self.mobile)

    def anchor_ranges(self, topology: MoleculeTopology) -> tuple[AtomRange, ...]:
        """Atom ranges of the anchor molecules."""
        return tuple(topology.molecules[i] for i in self.anchor_molecules)

    def __repr__(self) -> str:
        return (
            f"Classification(anchor_molecules={self.anchor_molecules}, "
            f"n_fixed={self.n_fixed}, n_mobile={self.n_mobile}, "
            f"n_unassigned={len(self.unassigned)})"
        )


def is_auto_mobile(topology: MoleculeTopology, molecule: int) -> bool:
    """Solvent and single-atom molecules are mobile by default."""
    return bool(topology.solvent[molecule]) or topology.molecules[molecule].n_atoms == 1


def select_molecules(
    topology: MoleculeTopology,
    select: MaskEvaluator,
    expression: str,
) -> list[int]:
    """Indices of all molecules with at least one atom selected by a mask.

    Parameters
    ----------
    topology : MoleculeTopology
        Topology to expand selections against.
    select : MaskEvaluator
        Callable turning ``expression`` into atom indices.
    expression : str
        Selection expression.

    Returns
    -------
    list[int]
        Molecule indices in topology order.
    """
    atoms = _evaluate(select, expression)
    molecules = np.unique(topology.molecule_of_atoms(atoms)) if atoms.size else []
    LOGGER.info(f"Mask [{expression}] corresponds to {len(molecules)} molecules")
    return [int(i) for i in molecules]


def _evaluate(select: Optional[MaskEvaluator], expression: str) -> NDArray[np.int64]:
    if select is None:
        raise AutoImageSetupError(
            f"Mask '{expression}' given but no mask evaluator is available"
        )
    try:
        return as_indices(select(expression))
    except (SelectionError, ValueError) as e:
        raise AutoImageSetupError(f"Could not evaluate mask '{expression}': {e}") from e


def _log_summary(topology: MoleculeTopology, classification: Classification) -> None:
    if classification.fixed:
        numbers = " ".join(
            str(int(topology.molecule_of_atoms([mol.first])[0]) + 1)
            for mol in classification.fixed
        )
        LOGGER.info(f"{classification.n_fixed} molecules are fixed to anchor: {numbers}")
    LOGGER.info(f"{classification.n_mobile} molecules are mobile")
    if classification.unassigned:
        LOGGER.warning(
            f"{len(classification.unassigned)} molecules are neither fixed nor mobile "
            "and will not be imaged"
        )


class MoleculeClassifier(ABC):
    """Strategy for assigning anchor/fixed/mobile roles to molecules.

    Subclasses implement :meth:`classify`. The result must give every
    molecule of the topology exactly one role.
    """

    @abstractmethod
    def classify(
        self,
        topology: MoleculeTopology,
        select: Optional[MaskEvaluator] = None,
    ) -> Classification:
        """Classify all molecules of ``topology``.

        Raises
        ------
        AutoImageSetupError
            If the roles cannot be determined.
        """
        pass

    @property
    def description(self) -> str:
        return self.__class__.__name__


class MaskMoleculeClassifier(MoleculeClassifier):
    """Classify molecules from optional anchor/fixed/mobile masks.

    Parameters
    ----------
    anchor : str, optional
        Anchor mask. Default: the first molecule.
    fixed : str, optional
        Fixed mask. Default: non-solvent molecules with more than one atom,
        or every molecule not selected by ``mobile`` when only ``mobile`` is
        given.
    mobile : str, optional
        Mobile mask. Default: solvent and single-atom molecules, or every
        molecule not selected by ``fixed`` when only ``fixed`` is given.

    Examples
    --------
    >>> classifier = MaskMoleculeClassifier(anchor="protein")
    >>> classification = classifier.classify(topology, MDAnalysisMaskEvaluator(u))
    """

    def __init__(
        self,
        anchor: Optional[str] = None,
        fixed: Optional[str] = None,
        mobile: Optional[str] = None,
    ) -> None:
        self.anchor = anchor or None
        self.fixed = fixed or None
        self.mobile = mobile or None

    @property
    def description(self) -> str:
        if self.anchor:
            return f"anchor mask is [{self.anchor}]"
        return "anchor is first molecule"

    def classify(
        self,
        topology: MoleculeTopology,
        select: Optional[MaskEvaluator] = None,
    ) -> Classification:
        if topology.n_molecules < 1:
            raise AutoImageSetupError(f"Topology {topology.name} has no molecules")

        if self.anchor:
            LOGGER.info(f"Anchoring on atoms selected by mask '{self.anchor}'")
            anchor_atoms = _evaluate(select, self.anchor)
            if anchor_atoms.size == 0:
                raise AutoImageSetupError(f"No atoms selected for anchor mask '{self.anchor}'")
            anchor_molecules = tuple(
                int(i) for i in np.unique(topology.molecule_of_atoms(anchor_atoms))
            )
            if len(anchor_molecules) == 1:
                LOGGER.info(
                    f"Mask [{self.anchor}] corresponds to molecule {anchor_molecules[0] + 1}"
                )
            else:
                LOGGER.info(f"Mask [{self.anchor}] spans {len(anchor_molecules)} molecules")
        else:
            LOGGER.info("Using first molecule as anchor")
            anchor_atoms = topology.molecules[0].indices()
            anchor_molecules = (0,)

        excluded = set(anchor_molecules)
        candidates = [i for i in range(topology.n_molecules) if i not in excluded]

        fixed_set: Optional[set[int]] = None
        mobile_set: Optional[set[int]] = None
        if self.fixed:
            fixed_set = set(select_molecules(topology, select, self.fixed)) - excluded
        if self.mobile:
            mobile_set = set(select_molecules(topology, select, self.mobile)) - excluded

        unassigned: list[int] = []
        if fixed_set is None and mobile_set is None:
            mobile_ids = [i for i in candidates if is_auto_mobile(topology, i)]
            fixed_ids = [i for i in candidates if not is_auto_mobile(topology, i)]
        elif mobile_set is None:
            fixed_ids = [i for i in candidates if i in fixed_set]
            mobile_ids = [i for i in candidates if i not in fixed_set]
        elif fixed_set is None:
            mobile_ids = [i for i in candidates if i in mobile_set]
            fixed_ids = [i for i in candidates if i not in mobile_set]
        else:
            overlap = fixed_set & mobile_set
            if overlap:
                LOGGER.warning(
                    f"{len(overlap)} molecules selected as both fixed and mobile; "
                    "treating them as fixed"
                )
            fixed_ids = [i for i in candidates if i in fixed_set]
            mobile_ids = [i for i in candidates if i in mobile_set and i not in fixed_set]
            unassigned = [i for i in candidates if i not in fixed_set and i not in mobile_set]

        classification = Classification(
            anchor_atoms=anchor_atoms,
            anchor_molecules=anchor_molecules,
            fixed=tuple(topology.molecules[i] for i in fixed_ids),
            mobile=tuple(topology.molecules[i] for i in mobile_ids),
            unassigned=tuple(topology.molecules[i] for i in unassigned),
        )
        _log_summary(topology, classification)
        return classification


class ExplicitMoleculeClassifier(MoleculeClassifier):
    """Classify molecules from explicit molecule index lists.

    Parameters
    ----------
    anchor : sequence of int
        0-based indices of the anchor molecules.
    fixed : sequence of int, optional
        0-based indices of fixed molecules. Every other non-anchor molecule
        is mobile.
    """

    def __init__(self, anchor: Sequence[int], fixed: Sequence[int] = ()) -> None:
        if len(anchor) == 0:
            raise ValueError("At least one anchor molecule is required")
        self.anchor = tuple(sorted(set(int(i) for i in anchor)))
        self.fixed = set(int(i) for i in fixed) - set(self.anchor)

    @property
    def description(self) -> str:
        return f"anchor molecules {[i + 1 for i in self.anchor]}"

    def classify(
        self,
        topology: MoleculeTopology,
        select: Optional[MaskEvaluator] = None,
    ) -> Classification:
        n_molecules = topology.n_molecules
        out_of_range = [i for i in (*self.anchor, *self.fixed) if not 0 <= i < n_molecules]
        if out_of_range:
            raise AutoImageSetupError(
                f"Molecule indices {sorted(out_of_range)} out of range for "
                f"{n_molecules} molecules"
            )

        anchor_atoms = np.concatenate([topology.molecules[i].indices() for i in self.anchor])
        others = [i for i in range(n_molecules) if i not in self.anchor]
        classification = Classification(
            anchor_atoms=anchor_atoms,
            anchor_molecules=self.anchor,
            fixed=tuple(topology.molecules[i] for i in others if i in self.fixed),
            mobile=tuple(topology.molecules[i] for i in others if i not in self.fixed),
        )
        _log_summary(topology, classification)
        return classification
