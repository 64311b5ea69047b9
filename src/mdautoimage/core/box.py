"""Periodic box geometry for autoimaging.

This module classifies the simulation cell and builds the per-frame geometry
objects used by the imaging routines. The geometry is a small tagged union:

- :class:`OrthogonalBox` - axis-aligned cell, imaged per axis
- :class:`TriclinicBox` - general cell, imaged in fractional coordinates
- :class:`TruncatedOctahedronBox` - triclinic cell with an extra
  nearest-neighbour image comparison ("familiar" truncated octahedron shape)

Every variant exposes the same methods (``center``, ``to_fractional``,
``to_cartesian``, ``wrap_translations``), so imaging code dispatches on the
variant instead of branching on flags.

Conventions
-----------
Box dimensions use the MDAnalysis layout ``[a, b, c, alpha, beta, gamma]``
(Angstrom, degrees). The cell matrix has the box vectors as *rows*, so::

    fractional = cartesian @ inverse
    cartesian = fractional @ matrix

Geometry objects are rebuilt from the frame's dimensions every frame and are
never cached, since the box fluctuates under constant pressure.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import ClassVar, Union

import numpy as np
from MDAnalysis.lib.mdamath import triclinic_vectors
from numpy.typing import ArrayLike, NDArray

from mdautoimage.constants import BoxType, TriclinicMode
from mdautoimage.exceptions import DegenerateBoxError

LOGGER = logging.getLogger(__name__)

# Angle between truncated octahedron box vectors, acos(-1/3) in degrees
TRUNCOCT_ANGLE = float(np.degrees(np.arccos(-1.0 / 3.0)))

# Same tolerance used when checking for right angles
ANGLE_TOLERANCE = 0.01


def detect_box_type(dimensions: ArrayLike | None) -> BoxType:
    """Classify box dimensions.

    Parameters
    ----------
    dimensions : array-like or None
        ``[a, b, c, alpha, beta, gamma]`` or just ``[a, b, c]`` (angles
        assumed to be 90 degrees).

    Returns
    -------
    BoxType
        ``NONE`` if there is no usable box, otherwise the detected shape.
    """
    if dimensions is None:
        return BoxType.NONE

    dims = np.asarray(dimensions, dtype=np.float64)
    if dims.size < 3 or not np.all(np.isfinite(dims)) or np.all(dims[:3] == 0.0):
        return BoxType.NONE

    if dims.size < 6:
        return BoxType.ORTHOGONAL

    angles = dims[3:6]
    if np.all(np.abs(angles - 90.0) < ANGLE_TOLERANCE):
        return BoxType.ORTHOGONAL
    if np.all(np.abs(angles - TRUNCOCT_ANGLE) < ANGLE_TOLERANCE):
        return BoxType.TRUNCATED_OCTAHEDRON
    return BoxType.TRICLINIC


def resolve_imaging_mode(box_type: BoxType, mode: TriclinicMode = TriclinicMode.OFF) -> BoxType:
    """Decide which geometry variant frames of a topology are imaged with.

    Parameters
    ----------
    box_type : BoxType
        Box shape declared by the topology/trajectory.
    mode : TriclinicMode
        User override.

    Returns
    -------
    BoxType
        ``ORTHOGONAL``, ``TRICLINIC`` or ``TRUNCATED_OCTAHEDRON``.

    Raises
    ------
    ValueError
        If ``box_type`` is ``NONE``.
    """
    if box_type == BoxType.NONE:
        raise ValueError("Cannot image a system without box information")

    if mode == TriclinicMode.FORCE:
        return BoxType.TRICLINIC
    if mode == TriclinicMode.FAMILIAR:
        return BoxType.TRUNCATED_OCTAHEDRON

    if box_type == BoxType.TRUNCATED_OCTAHEDRON:
        LOGGER.info("Original box is truncated octahedron, turning on 'familiar'")
    return box_type


@dataclass(frozen=True, eq=False)
class OrthogonalBox:
    """Axis-aligned periodic cell.

    Attributes
    ----------
    lengths : NDArray
        Box edge lengths ``[Lx, Ly, Lz]`` in Angstrom.
    """

    lengths: NDArray[np.float64]

    kind: ClassVar[BoxType] = BoxType.ORTHOGONAL

    def center(self) -> NDArray[np.float64]:
        return self.lengths / 2.0

    def to_fractional(self, vectors: NDArray[np.float64]) -> NDArray[np.float64]:
        return vectors / self.lengths

    def to_cartesian(self, fractional: ArrayLike) -> NDArray[np.float64]:
        return np.asarray(fractional, dtype=np.float64) * self.lengths

    def wrap_translations(
        self,
        points: NDArray[np.float64],
        origin: bool,
        target: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """Translations that bring each point into the primary cell.

        Each coordinate ends up in ``[-L/2, L/2)`` when imaging around the
        origin and in ``[0, L)`` otherwise.

        Parameters
        ----------
        points : NDArray
            Points to wrap, shape (N, 3).
        origin : bool
            Whether the cell is centered on the coordinate origin.
        target : NDArray, optional
            Unused for orthogonal boxes; accepted for a uniform interface.

        Returns
        -------
        NDArray
            Translation vectors, shape (N, 3). Each is an integer multiple of
            the box lengths per axis.

        Notes
        -----
        A coordinate a rounding error below the lower bound would land
        exactly on the excluded upper bound; it is shifted back one cell so
        that wrapping a wrapped point is always a no-op.
        """
        lower = -self.lengths / 2.0 if origin else np.zeros(3)
        n_cells = np.floor((points - lower) / self.lengths)
        n_cells += (points - n_cells * self.lengths) >= lower + self.lengths
        return -n_cells * self.lengths


@dataclass(frozen=True, eq=False)
class TriclinicBox:
    """General periodic cell imaged through fractional coordinates.

    Attributes
    ----------
    matrix : NDArray
        3x3 cell matrix with box vectors as rows.
    inverse : NDArray
        Inverse of ``matrix``.
    lengths : NDArray
        Box edge lengths ``[a, b, c]``.
    """

    matrix: NDArray[np.float64]
    inverse: NDArray[np.float64]
    lengths: NDArray[np.float64]

    kind: ClassVar[BoxType] = BoxType.TRICLINIC

    def center(self) -> NDArray[np.float64]:
        """Real-space point at fractional coordinates (0.5, 0.5, 0.5)."""
        return np.full(3, 0.5) @ self.matrix

    def to_fractional(self, vectors: NDArray[np.float64]) -> NDArray[np.float64]:
        return vectors @ self.inverse

    def to_cartesian(self, fractional: ArrayLike) -> NDArray[np.float64]:
        return np.asarray(fractional, dtype=np.float64) @ self.matrix

    def wrap_translations(
        self,
        points: NDArray[np.float64],
        origin: bool,
        target: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        """Translations that bring each point into the primary cell.

        Fractional components are wrapped into ``[-0.5, 0.5)`` when imaging
        around the origin and into ``[0, 1)`` otherwise. Components that
        round onto the upper face are moved back one cell.
        """
        shift = 0.5 if origin else 0.0
        n_cells = np.floor(self.to_fractional(points) + shift)
        wrapped = self.to_fractional(points - n_cells @ self.matrix) + shift
        n_cells += wrapped >= 1.0
        return -n_cells @ self.matrix


# Neighbouring lattice shifts for truncated octahedron imaging; zero first so
# that the primary wrap wins ties.
_NEIGHBOUR_SHIFTS = np.array(
    [(0, 0, 0)]
    + [shift for shift in itertools.product((-1, 0, 1), repeat=3) if shift != (0, 0, 0)],
    dtype=np.float64,
)


@dataclass(frozen=True, eq=False)
class TruncatedOctahedronBox(TriclinicBox):
    """Triclinic cell imaged into the familiar truncated octahedron shape.

    Minimum-image wrapping in a truncated octahedron is not separable per
    fractional axis, so after the triclinic wrap the 26 neighbouring images
    are also compared against the target point.
    """

    kind: ClassVar[BoxType] = BoxType.TRUNCATED_OCTAHEDRON

    def center(self) -> NDArray[np.float64]:
        return self.lengths / 2.0

    def wrap_translations(
        self,
        points: NDArray[np.float64],
        origin: bool,
        target: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64]:
        primary = super().wrap_translations(points, origin)
        if target is None:
            target = np.zeros(3) if origin else self.center()

        shifts = _NEIGHBOUR_SHIFTS @ self.matrix
        # (N, 27, 3) candidate positions
        candidates = (points + primary)[:, np.newaxis, :] + shifts[np.newaxis, :, :]
        dist2 = np.sum((candidates - target) ** 2, axis=2)
        best = np.argmin(dist2, axis=1)
        return primary + shifts[best]


BoxGeometry = Union[OrthogonalBox, TriclinicBox, TruncatedOctahedronBox]


def build_box_geometry(dimensions: ArrayLike | None, mode: BoxType) -> BoxGeometry:
    """Build the geometry variant for one frame.

    Parameters
    ----------
    dimensions : array-like
        The frame's box dimensions ``[a, b, c, alpha, beta, gamma]``.
    mode : BoxType
        Imaging mode from :func:`resolve_imaging_mode`.

    Returns
    -------
    BoxGeometry
        Geometry for this frame only.

    Raises
    ------
    DegenerateBoxError
        If the box is missing, has a non-positive length, or its cell matrix
        is singular.
    """
    if dimensions is None:
        raise DegenerateBoxError("Frame has no box dimensions")

    dims = np.asarray(dimensions, dtype=np.float64)
    if dims.size == 3:
        dims = np.concatenate([dims, [90.0, 90.0, 90.0]])

    lengths = dims[:3].copy()
    if not np.all(np.isfinite(lengths)) or np.any(lengths <= 0.0):
        raise DegenerateBoxError(f"Box lengths are zero or invalid: {lengths}")

    if mode == BoxType.ORTHOGONAL:
        return OrthogonalBox(lengths=lengths)

    matrix = triclinic_vectors(dims, dtype=np.float64)
    if abs(np.linalg.det(matrix)) < 1e-8:
        raise DegenerateBoxError(f"Box matrix is singular for dimensions {dims}")
    inverse = np.linalg.inv(matrix)

    if mode == BoxType.TRUNCATED_OCTAHEDRON:
        return TruncatedOctahedronBox(matrix=matrix, inverse=inverse, lengths=lengths)
    if mode == BoxType.TRICLINIC:
        return TriclinicBox(matrix=matrix, inverse=inverse, lengths=lengths)

    raise ValueError(f"Unknown imaging mode: {mode}")
