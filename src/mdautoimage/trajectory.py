"""
Autoimage whole trajectories.

This module post-processes MD trajectories by centering an anchor (by
default the first molecule) in the simulation box and imaging every other
molecule around it. The output trajectory is suitable for visualization and
for analyses that need a consistent molecular picture between frames.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import MDAnalysis as mda

from mdautoimage.config.schema import AutoImageConfig, JobConfig
from mdautoimage.imaging.autoimage import FrameStatus
from mdautoimage.transformations import AutoImageTransformation

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _check_inputs(topology: PathLike, trajectories: Sequence[PathLike]) -> List[Path]:
    topology = Path(topology)
    if not topology.exists():
        raise FileNotFoundError(f"Topology file not found: {topology}")

    paths = [Path(t) for t in trajectories]
    if not paths:
        raise FileNotFoundError("No trajectory files given")
    missing = [str(p) for p in paths if not p.exists()]
    if missing:
        raise FileNotFoundError(f"Trajectory files not found: {', '.join(missing)}")
    return paths


def autoimage_trajectory(
    topology: PathLike,
    trajectories: Union[PathLike, Sequence[PathLike]],
    output: PathLike,
    config: Optional[AutoImageConfig] = None,
    start: int = 0,
    stop: Optional[int] = None,
    step: int = 1,
) -> Path:
    """
    Autoimage a trajectory and write the result.

    Args:
        topology: Topology file readable by MDAnalysis
        trajectories: One trajectory file or several, concatenated in order
        output: Output trajectory path; the format follows the extension
        config: Imaging options (default: anchor on the first molecule)
        start: First frame to write
        stop: Frame to stop before (None: end of trajectory)
        step: Frame stride

    Returns:
        Path to output trajectory file

    Raises:
        FileNotFoundError: If the topology or a trajectory is missing
        AutoImageSetupError: If the anchor mask selects no atoms

    Example:
        >>> autoimage_trajectory(
        ...     "system.prmtop", ["md1.nc", "md2.nc"], "imaged.dcd",
        ...     AutoImageConfig(anchor=":1-250", origin=True),
        ... )
    """
    if isinstance(trajectories, (str, Path)):
        trajectories = [trajectories]
    trajectory_files = _check_inputs(topology, trajectories)
    output = Path(output)
    config = config if config is not None else AutoImageConfig()

    LOGGER.info(f"Loading {len(trajectory_files)} trajectory files...")
    u = mda.Universe(str(topology), *[str(t) for t in trajectory_files])
    LOGGER.info(f"Loaded universe: {u.atoms.n_atoms} atoms, {len(u.trajectory)} frames")

    transform = AutoImageTransformation(u, config)
    u.trajectory.add_transformations(transform)

    output.parent.mkdir(parents=True, exist_ok=True)

    LOGGER.info(f"Writing trajectory to {output}...")
    n_written = 0
    n_unmodified = 0
    with mda.Writer(str(output), u.atoms.n_atoms) as writer:
        for ts in u.trajectory[start:stop:step]:
            writer.write(u.atoms)
            n_written += 1
            if transform.last_status == FrameStatus.UNMODIFIED:
                n_unmodified += 1

    if n_unmodified:
        LOGGER.warning(f"{n_unmodified} of {n_written} frames were not imaged")
    LOGGER.info(f"Successfully wrote {n_written} frames to {output}")

    return output


def run_job(job: JobConfig) -> Path:
    """Run a job described by a :class:`JobConfig`."""
    return autoimage_trajectory(
        topology=job.topology,
        trajectories=job.trajectories,
        output=job.output,
        config=job.autoimage,
        start=job.start,
        stop=job.stop,
        step=job.step,
    )
