"""
Configuration schema for autoimaging.

This module defines Pydantic models for the imaging options and for complete
trajectory jobs, providing validation, type safety, and YAML serialization
support.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from mdautoimage.constants import DEFAULT_SOLVENT_RESNAMES, TriclinicMode

# =============================================================================
# Imaging Options
# =============================================================================


class AutoImageConfig(BaseModel):
    """Options controlling how frames are centered and imaged.

    Attributes:
        origin: Center the anchor on the coordinate origin instead of the
            box center
        use_mass: Use mass-weighted centers instead of geometric centers
        use_center: Image mobile molecules by their center; when False the
            position of each molecule's first atom is used
        force_triclinic: Always use general triclinic (cell matrix) imaging
        force_familiar: Always use truncated octahedron ("familiar") imaging
        anchor: Selection for the anchor region (default: first molecule)
        fixed: Selection for molecules fixed to the anchor
        mobile: Selection for molecules imaged freely
        solvent_resnames: Residue names treated as solvent when classifying
            molecules automatically

    Example:
        >>> AutoImageConfig(anchor="protein", origin=True)
    """

    origin: bool = Field(False, description="Center on coordinate origin instead of box center")
    use_mass: bool = Field(False, description="Use mass-weighted centers")
    use_center: bool = Field(
        True, description="Image mobile molecules by center (False: by first atom)"
    )
    force_triclinic: bool = Field(False, description="Always use triclinic imaging")
    force_familiar: bool = Field(False, description="Always use truncated octahedron imaging")
    anchor: Optional[str] = Field(None, description="Anchor selection")
    fixed: Optional[str] = Field(None, description="Fixed molecule selection")
    mobile: Optional[str] = Field(None, description="Mobile molecule selection")
    solvent_resnames: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SOLVENT_RESNAMES),
        description="Residue names treated as solvent",
    )

    @field_validator("anchor", "fixed", "mobile", mode="before")
    @classmethod
    def blank_selection_to_none(cls, v: Any) -> Any:
        """Treat empty selection strings as not given."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("solvent_resnames")
    @classmethod
    def normalize_resnames(cls, v: List[str]) -> List[str]:
        """Upper-case residue names and drop duplicates, keeping order."""
        names: List[str] = []
        for name in v:
            name = name.strip().upper()
            if name and name not in names:
                names.append(name)
        if not names:
            raise ValueError("solvent_resnames must contain at least one residue name")
        return names

    @property
    def triclinic_mode(self) -> TriclinicMode:
        """Resolved triclinic handling; forcing triclinic wins over familiar."""
        if self.force_triclinic:
            return TriclinicMode.FORCE
        if self.force_familiar:
            return TriclinicMode.FAMILIAR
        return TriclinicMode.OFF

    def describe(self) -> str:
        """One-line summary for logs."""
        target = "origin" if self.origin else "box center"
        center = "center of mass" if self.use_mass else "geometric center"
        point = "" if self.use_center else ", mobile molecules by first atom position"
        if self.anchor:
            anchor = f"anchor mask is [{self.anchor}]"
        else:
            anchor = "anchor is first molecule"
        return f"To {target} based on {center}{point}, {anchor}"


# =============================================================================
# Job Configuration
# =============================================================================


class JobConfig(BaseModel):
    """A complete autoimage run over one trajectory.

    Attributes:
        topology: Topology file readable by MDAnalysis
        trajectories: One or more trajectory files, read in order
        output: Output trajectory path (format from extension)
        start: First frame to process (0-indexed)
        stop: Frame to stop before (None: end of trajectory)
        step: Frame stride
        autoimage: Imaging options
    """

    topology: Path = Field(..., description="Topology file")
    trajectories: List[Path] = Field(..., min_length=1, description="Trajectory files")
    output: Path = Field(..., description="Output trajectory file")
    start: int = Field(0, ge=0, description="First frame (0-indexed)")
    stop: Optional[int] = Field(None, ge=1, description="Stop before this frame")
    step: int = Field(1, ge=1, description="Frame stride")
    autoimage: AutoImageConfig = Field(
        default_factory=AutoImageConfig, description="Imaging options"
    )

    @field_validator("trajectories", mode="before")
    @classmethod
    def single_trajectory_to_list(cls, v: Any) -> Any:
        """Accept a single path where a list is expected."""
        if isinstance(v, (str, Path)):
            return [v]
        return v

    @model_validator(mode="after")
    def validate_frame_range(self) -> "JobConfig":
        """Ensure stop comes after start."""
        if self.stop is not None and self.stop <= self.start:
            raise ValueError(f"stop ({self.stop}) must be greater than start ({self.start})")
        return self

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "JobConfig":
        """Load a job configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            JobConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
            ValidationError: If configuration is invalid
        """
        from mdautoimage.config.loader import load_config

        return load_config(path)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save the job configuration to a YAML file."""
        from mdautoimage.config.loader import save_config

        save_config(self, path)
