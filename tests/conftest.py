"""Shared fixtures for mdautoimage tests."""

import logging
from typing import Optional, Sequence

import MDAnalysis as mda
import numpy as np
import pytest

from mdautoimage.core.box import BoxType
from mdautoimage.core.frame import Frame
from mdautoimage.core.topology import MoleculeTopology

CUBE = np.array([30.0, 30.0, 30.0, 90.0, 90.0, 90.0])


def build_universe(
    sizes: Sequence[int],
    resnames: Sequence[str],
    positions: np.ndarray,
    dimensions: Optional[Sequence[float]] = None,
    masses: Optional[Sequence[float]] = None,
) -> mda.Universe:
    """One residue per molecule, no bonds."""
    n_atoms = int(sum(sizes))
    resindex = np.repeat(np.arange(len(sizes)), sizes)
    u = mda.Universe.empty(
        n_atoms,
        n_residues=len(sizes),
        atom_resindex=resindex,
        residue_segindex=[0] * len(sizes),
        trajectory=True,
    )
    u.add_TopologyAttr("name", [f"A{i}" for i in range(n_atoms)])
    u.add_TopologyAttr("resname", list(resnames))
    u.add_TopologyAttr("resid", list(range(1, len(sizes) + 1)))
    if masses is not None:
        u.add_TopologyAttr("masses", list(masses))
    u.atoms.positions = np.asarray(positions, dtype=np.float32)
    if dimensions is not None:
        u.dimensions = np.asarray(dimensions, dtype=np.float32)
    return u


# Anchor (2 atoms), fixed A (2), fixed B (2), water (3), ion (1).
# Anchor centroid at (40, 15, 15); the box center is (15, 15, 15), so the
# whole frame is first shifted by (-25, 0, 0).
SCENARIO_SIZES = [2, 2, 2, 3, 1]
SCENARIO_RESNAMES = ["PRO", "LIG", "LIG", "WAT", "NA"]
SCENARIO_POSITIONS = np.array(
    [
        [39.5, 15.0, 15.0],  # anchor
        [40.5, 15.0, 15.0],
        [79.5, 15.0, 15.0],  # fixed A, center x=80 (55 after the anchor shift)
        [80.5, 15.0, 15.0],
        [85.5, 15.0, 15.0],  # fixed B, center x=86 (61 after the anchor shift)
        [86.5, 15.0, 15.0],
        [55.5, 2.0, 2.0],  # water, center (31, 2, 2) after the anchor shift
        [56.0, 2.0, 2.0],
        [56.5, 2.0, 2.0],
        [-3.0, 10.0, 10.0],  # ion
    ]
)


@pytest.fixture
def scenario_topology() -> MoleculeTopology:
    return MoleculeTopology.from_sizes(
        SCENARIO_SIZES,
        solvent=[False, False, False, True, False],
        box_type=BoxType.ORTHOGONAL,
    )


@pytest.fixture
def scenario_frame() -> Frame:
    return Frame(positions=SCENARIO_POSITIONS.copy(), dimensions=CUBE.copy())


@pytest.fixture
def scenario_universe() -> mda.Universe:
    return build_universe(SCENARIO_SIZES, SCENARIO_RESNAMES, SCENARIO_POSITIONS, CUBE)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)


@pytest.fixture
def restore_root_logger():
    """Undo the handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
