"""
mdautoimage: automatic imaging of molecular dynamics trajectories.

Re-centers each frame of a periodic simulation on an anchor region and
brings every other molecule to a consistent periodic image, without ever
splitting a molecule across the cell boundary.

Example usage:
    >>> from mdautoimage import AutoImageConfig, autoimage_trajectory
    >>> autoimage_trajectory(
    ...     "system.prmtop", "md.nc", "imaged.dcd", AutoImageConfig(anchor="protein")
    ... )

    >>> import MDAnalysis as mda
    >>> from mdautoimage import AutoImageTransformation
    >>> u = mda.Universe("system.prmtop", "md.nc")
    >>> u.trajectory.add_transformations(AutoImageTransformation(u))

Key modules:
    - config: Job and imaging options with YAML support
    - constants: Solvent residue names and box option enums
    - core: Box geometry, molecule topology and coordinate frames
    - imaging: Classification, anchor centering and periodic imaging
    - transformations: MDAnalysis on-the-fly transformation
    - trajectory: Whole-trajectory processing

Note:
    This package uses lazy imports, so ``import mdautoimage`` does not load
    MDAnalysis until an imaging or trajectory name is first used. The
    configuration models and loader never load it.
"""

__version__ = "0.1.0"

# Define what's available for lazy import
__all__ = [
    # Version info
    "__version__",
    # Configuration (lightweight, always available)
    "AutoImageConfig",
    "JobConfig",
    # Imaging
    "AutoImager",
    "Frame",
    "MoleculeTopology",
    # MDAnalysis integration
    "AutoImageTransformation",
    "autoimage_trajectory",
    "run_job",
]


def __getattr__(name: str):
    """
    Lazy import modules only when accessed.

    MDAnalysis is imported the first time one of the imaging or trajectory
    names is used.
    """
    # Configuration - lightweight, can always be imported
    if name == "AutoImageConfig":
        from mdautoimage.config.schema import AutoImageConfig

        return AutoImageConfig

    if name == "JobConfig":
        from mdautoimage.config.schema import JobConfig

        return JobConfig

    # Imaging
    if name == "AutoImager":
        from mdautoimage.imaging.autoimage import AutoImager

        return AutoImager

    if name == "Frame":
        from mdautoimage.core.frame import Frame

        return Frame

    if name == "MoleculeTopology":
        from mdautoimage.core.topology import MoleculeTopology

        return MoleculeTopology

    # MDAnalysis integration
    if name == "AutoImageTransformation":
        from mdautoimage.transformations import AutoImageTransformation

        return AutoImageTransformation

    if name == "autoimage_trajectory":
        from mdautoimage.trajectory import autoimage_trajectory

        return autoimage_trajectory

    if name == "run_job":
        from mdautoimage.trajectory import run_job

        return run_job

    raise AttributeError(f"module 'mdautoimage' has no attribute {name!r}")


def __dir__():
    """Return list of available attributes for tab completion."""
    return __all__
