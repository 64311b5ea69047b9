"""Placement of the anchor region at the target point.

The anchor is translated first in every frame: all later imaging decisions
are made relative to where the anchor ends up.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from mdautoimage.core.box import BoxGeometry
from mdautoimage.core.frame import Frame

LOGGER = logging.getLogger(__name__)


def anchor_target(box: BoxGeometry, origin: bool) -> NDArray[np.float64]:
    """Point the anchor center is moved to.

    Parameters
    ----------
    box : BoxGeometry
        Geometry of the current frame.
    origin : bool
        Center on the coordinate origin instead of the cell center.

    Returns
    -------
    NDArray
        ``(0, 0, 0)`` for origin centering. Otherwise half the box lengths
        for orthogonal and truncated octahedron boxes, and the image of
        fractional (0.5, 0.5, 0.5) for general triclinic boxes.
    """
    if origin:
        return np.zeros(3)
    return box.center()


def center_anchor(
    frame: Frame,
    anchor_atoms: NDArray[np.int64],
    box: BoxGeometry,
    origin: bool = False,
    use_mass: bool = False,
) -> NDArray[np.float64]:
    """Translate the whole frame so the anchor center sits at the target.

    Parameters
    ----------
    frame : Frame
        Frame to modify in place.
    anchor_atoms : NDArray[int]
        Atoms defining the anchor center.
    box : BoxGeometry
        Geometry of the current frame.
    origin : bool, optional
        Center on the coordinate origin instead of the cell center.
    use_mass : bool, optional
        Use the mass-weighted center instead of the geometric center.

    Returns
    -------
    NDArray
        The target point, which is now the anchor center.
    """
    target = anchor_target(box, origin)
    anchor_center = frame.center(anchor_atoms, use_mass=use_mass)
    shift = target - anchor_center
    frame.translate(shift)
    LOGGER.debug(
        f"Anchor center {np.round(anchor_center, 3)} moved to {np.round(target, 3)}"
    )
    return target
