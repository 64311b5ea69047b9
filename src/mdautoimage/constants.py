"""Shared constants and option enums.

These are used both by the configuration models and by the imaging code.
This module imports nothing heavier than the standard library, so loading a
job file does not pull in numpy or MDAnalysis.
"""

from enum import Enum

# Common water residue names across force fields.
# Used in: AutoImageConfig.solvent_resnames, MoleculeTopology.from_universe().
DEFAULT_SOLVENT_RESNAMES = [
    "HOH",  # PDB standard
    "WAT",  # Amber
    "TIP3",  # CHARMM TIP3P
    "TIP4",  # TIP4P
    "TIP5",  # TIP5P
    "SOL",  # GROMACS
    "SPC",  # SPC water
    "T3P",  # TIP3P variant
    "W",  # Coarse-grained
]


class BoxType(str, Enum):
    """Shape of the simulation cell."""

    NONE = "none"
    ORTHOGONAL = "orthogonal"
    TRICLINIC = "triclinic"
    TRUNCATED_OCTAHEDRON = "truncated_octahedron"


class TriclinicMode(str, Enum):
    """How non-orthogonal imaging is chosen.

    - ``off``: pick the imaging path from the detected box shape
    - ``familiar``: always use the truncated octahedron path
    - ``force``: always use the general triclinic matrix path
    """

    OFF = "off"
    FAMILIAR = "familiar"
    FORCE = "force"
