"""Per-frame automatic imaging.

:class:`AutoImager` ties the imaging stages together. It is set up once per
topology and then applied to each frame in turn:

1. the whole frame is translated so the anchor center sits at the target
   point (origin or cell center);
2. mobile molecules are wrapped into the primary cell;
3. fixed molecules are moved next to the anchor with the chained
   nearest-image search.

Example
-------
>>> import MDAnalysis as mda
>>> from mdautoimage.config import AutoImageConfig
>>> from mdautoimage.core import Frame, MDAnalysisMaskEvaluator, MoleculeTopology
>>> from mdautoimage.imaging import AutoImager
>>>
>>> u = mda.Universe("system.prmtop", "trajectory.nc")
>>> imager = AutoImager(AutoImageConfig(anchor="protein"))
>>> imager.setup(MoleculeTopology.from_universe(u), MDAnalysisMaskEvaluator(u))
>>> for ts in u.trajectory:
...     frame = Frame.from_timestep(ts)
...     imager.apply(frame, ts.frame)
...     ts.positions = frame.positions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from mdautoimage.config.schema import AutoImageConfig
from mdautoimage.core.box import BoxType, TriclinicMode, build_box_geometry, resolve_imaging_mode
from mdautoimage.core.frame import Frame
from mdautoimage.core.topology import MaskEvaluator, MoleculeTopology
from mdautoimage.exceptions import DegenerateBoxError
from mdautoimage.imaging.anchor import center_anchor
from mdautoimage.imaging.classifier import (
    Classification,
    MaskMoleculeClassifier,
    MoleculeClassifier,
)
from mdautoimage.imaging.fixed import FixedPlacement, anchor_fixed_molecules
from mdautoimage.imaging.mobile import MoleculeGroup, image_mobile

LOGGER = logging.getLogger(__name__)


class SetupStatus(str, Enum):
    """Outcome of :meth:`AutoImager.setup`."""

    OK = "ok"
    SKIP = "skip"


class FrameStatus(str, Enum):
    """Outcome of :meth:`AutoImager.apply`."""

    MODIFIED = "modified"
    UNMODIFIED = "unmodified"


@dataclass(eq=False)
class FrameResult:
    """What happened to one frame.

    Attributes
    ----------
    status : FrameStatus
        Whether the frame was imaged.
    target : NDArray, optional
        Point the anchor center was moved to.
    mobile_translations : NDArray, optional
        Translation applied to each mobile molecule.
    placements : list[FixedPlacement]
        Placement of each fixed molecule, in processing order.
    """

    status: FrameStatus
    target: Optional[NDArray[np.float64]] = None
    mobile_translations: Optional[NDArray[np.float64]] = None
    placements: list[FixedPlacement] = field(default_factory=list)


class AutoImager:
    """Center frames on an anchor and image everything else around it.

    Parameters
    ----------
    config : AutoImageConfig, optional
        Imaging options. Default: anchor on the first molecule, center on the
        box center, geometric centers.
    classifier : MoleculeClassifier, optional
        Policy assigning anchor/fixed/mobile roles. Default: a
        :class:`MaskMoleculeClassifier` built from the masks in ``config``.

    Attributes
    ----------
    topology : MoleculeTopology or None
        Topology of the last :meth:`setup`.
    classification : Classification or None
        Roles of all molecules; None until setup succeeds.
    imaging_mode : BoxType or None
        Geometry variant frames are imaged with.
    status : SetupStatus or None
        Result of the last :meth:`setup`; None before setup.
    """

    def __init__(
        self,
        config: Optional[AutoImageConfig] = None,
        classifier: Optional[MoleculeClassifier] = None,
    ) -> None:
        self.config = config if config is not None else AutoImageConfig()
        if classifier is None:
            classifier = MaskMoleculeClassifier(
                anchor=self.config.anchor,
                fixed=self.config.fixed,
                mobile=self.config.mobile,
            )
        self.classifier = classifier

        self.topology: Optional[MoleculeTopology] = None
        self.classification: Optional[Classification] = None
        self.imaging_mode: Optional[BoxType] = None
        self.status: Optional[SetupStatus] = None
        self._mobile: Optional[MoleculeGroup] = None

    def setup(
        self,
        topology: MoleculeTopology,
        select: Optional[MaskEvaluator] = None,
    ) -> SetupStatus:
        """Classify molecules and choose the imaging mode for a topology.

        Parameters
        ----------
        topology : MoleculeTopology
            Molecule view of the system.
        select : MaskEvaluator, optional
            Evaluator for the anchor/fixed/mobile masks. Required when any
            mask is configured.

        Returns
        -------
        SetupStatus
            ``SKIP`` if the topology has no molecule or no box information;
            frames are then passed through untouched.

        Raises
        ------
        AutoImageSetupError
            If the anchor mask selects no atoms or a mask cannot be
            evaluated.
        """
        self.topology = topology
        self.classification = None
        self.imaging_mode = None
        self.status = None
        self._mobile = None

        LOGGER.info(f"AUTOIMAGE: {self.config.describe()}")
        if self.config.triclinic_mode != TriclinicMode.OFF:
            LOGGER.info(f"Triclinic imaging mode: {self.config.triclinic_mode.value}")

        if topology.n_molecules < 1:
            LOGGER.warning(
                f"Topology {topology.name} has no molecule information; frames will not be imaged"
            )
            self.status = SetupStatus.SKIP
            return self.status
        if topology.box_type == BoxType.NONE:
            LOGGER.warning(
                f"Topology {topology.name} has no box information; frames will not be imaged"
            )
            self.status = SetupStatus.SKIP
            return self.status

        if self.config.use_mass and topology.masses is None:
            LOGGER.warning(
                "Mass weighting requested but no masses available; using geometric centers"
            )

        self.imaging_mode = resolve_imaging_mode(topology.box_type, self.config.triclinic_mode)
        self.classification = self.classifier.classify(topology, select)
        self._mobile = MoleculeGroup.from_ranges(self.classification.mobile)
        LOGGER.debug(f"{self.classification!r}, imaging mode {self.imaging_mode.value}")

        self.status = SetupStatus.OK
        return self.status

    @property
    def is_ready(self) -> bool:
        return self.status == SetupStatus.OK

    def apply(self, frame: Frame, frame_index: int = 0) -> FrameResult:
        """Image one frame in place.

        Parameters
        ----------
        frame : Frame
            Frame to modify. If it carries no masses, the topology masses are
            attached.
        frame_index : int, optional
            0-based frame number, used in log messages.

        Returns
        -------
        FrameResult
            ``UNMODIFIED`` if setup skipped the topology or the frame's box is
            degenerate; the frame is then untouched.

        Raises
        ------
        RuntimeError
            If called before :meth:`setup`.
        ValueError
            If the frame's atom count does not match the topology.
        """
        if self.status is None:
            raise RuntimeError("AutoImager.apply() called before setup()")
        if self.status == SetupStatus.SKIP:
            return FrameResult(status=FrameStatus.UNMODIFIED)

        topology = self.topology
        classification = self.classification
        if frame.n_atoms != topology.n_atoms:
            raise ValueError(
                f"Frame has {frame.n_atoms} atoms but topology {topology.name} has "
                f"{topology.n_atoms}"
            )

        try:
            box = build_box_geometry(frame.dimensions, self.imaging_mode)
        except DegenerateBoxError as e:
            LOGGER.warning(f"Frame {frame_index + 1}: {e}. Frame left unmodified.")
            return FrameResult(status=FrameStatus.UNMODIFIED)

        if frame.masses is None and topology.masses is not None:
            frame.masses = topology.masses

        config = self.config
        target = center_anchor(
            frame,
            classification.anchor_atoms,
            box,
            origin=config.origin,
            use_mass=config.use_mass,
        )
        translations = image_mobile(
            frame,
            self._mobile,
            box,
            origin=config.origin,
            target=target,
            use_center=config.use_center,
            use_mass=config.use_mass,
        )
        placements = anchor_fixed_molecules(
            frame, classification.fixed, box, target, use_mass=config.use_mass
        )

        return FrameResult(
            status=FrameStatus.MODIFIED,
            target=target,
            mobile_translations=translations,
            placements=placements,
        )
