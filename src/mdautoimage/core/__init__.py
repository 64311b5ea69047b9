"""Core services used by the imaging algorithms.

- Box geometry classification and per-frame cell matrices
- Molecule-level topology view and mask evaluation
- Mutable coordinate frames
"""

from mdautoimage.core.box import (
    BoxGeometry,
    BoxType,
    OrthogonalBox,
    TriclinicBox,
    TriclinicMode,
    TruncatedOctahedronBox,
    build_box_geometry,
    detect_box_type,
    resolve_imaging_mode,
)
from mdautoimage.core.frame import Frame
from mdautoimage.core.topology import (
    DEFAULT_SOLVENT_RESNAMES,
    AtomRange,
    MaskEvaluator,
    MDAnalysisMaskEvaluator,
    MoleculeTopology,
)

__all__ = [
    # Box geometry
    "BoxGeometry",
    "BoxType",
    "OrthogonalBox",
    "TriclinicBox",
    "TriclinicMode",
    "TruncatedOctahedronBox",
    "build_box_geometry",
    "detect_box_type",
    "resolve_imaging_mode",
    # Frames
    "Frame",
    # Topology
    "DEFAULT_SOLVENT_RESNAMES",
    "AtomRange",
    "MaskEvaluator",
    "MDAnalysisMaskEvaluator",
    "MoleculeTopology",
]
