"""
mdautoimage Command Line Interface.

This module provides the main CLI entry point for mdautoimage, using Click
for argument parsing and command organization.

Usage:
    mdautoimage --help
    mdautoimage run --config autoimage.yaml
    mdautoimage run -p system.prmtop -y md1.nc -y md2.nc -o imaged.dcd --anchor protein
    mdautoimage validate --config autoimage.yaml
    mdautoimage info
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click

LOGGER = logging.getLogger("mdautoimage")


@click.group()
@click.version_option(prog_name="mdautoimage")
@click.option(
    "-q", "--quiet", is_flag=True, help="Suppress INFO messages, show warnings/errors only"
)
@click.option("--debug", is_flag=True, help="Enable DEBUG logging, including image searches")
def cli(quiet: bool, debug: bool) -> None:
    """mdautoimage: center MD trajectories and image molecules around an anchor.

    The anchor (by default the first molecule) is moved to the box center or
    origin; solvent and ions are wrapped into the cell; other molecules are
    placed at their periodic image nearest the anchor.
    """
    from mdautoimage.core.logging_utils import setup_logging

    setup_logging(quiet=quiet, debug=debug)


def _imaging_overrides(
    anchor: Optional[str],
    fixed: Optional[str],
    mobile: Optional[str],
    origin: bool,
    firstatom: bool,
    mass: bool,
    familiar: bool,
    triclinic: bool,
) -> Dict[str, Any]:
    """Imaging options explicitly given on the command line."""
    overrides: Dict[str, Any] = {}
    if anchor is not None:
        overrides["anchor"] = anchor
    if fixed is not None:
        overrides["fixed"] = fixed
    if mobile is not None:
        overrides["mobile"] = mobile
    if origin:
        overrides["origin"] = True
    if firstatom:
        overrides["use_center"] = False
    if mass:
        overrides["use_mass"] = True
    if familiar:
        overrides["force_familiar"] = True
    if triclinic:
        overrides["force_triclinic"] = True
    return overrides


# =============================================================================
# Run Command
# =============================================================================


@cli.command()
@click.option(
    "-c",
    "--config",
    default=None,
    type=click.Path(exists=True),
    help="Path to YAML job file",
)
@click.option(
    "-p", "--topology", default=None, type=click.Path(exists=True), help="Topology file"
)
@click.option(
    "-y",
    "--trajectory",
    "trajectories",
    multiple=True,
    type=click.Path(exists=True),
    help="Trajectory file (repeat for several, read in order)",
)
@click.option("-o", "--output", default=None, type=click.Path(), help="Output trajectory")
@click.option("--anchor", default=None, help="Anchor selection (default: first molecule)")
@click.option("--fixed", default=None, help="Selection of molecules fixed to the anchor")
@click.option("--mobile", default=None, help="Selection of molecules imaged freely")
@click.option("--origin", is_flag=True, help="Center on the origin instead of the box center")
@click.option("--firstatom", is_flag=True, help="Image mobile molecules by their first atom")
@click.option("--mass", is_flag=True, help="Use center of mass instead of geometric center")
@click.option("--familiar", is_flag=True, help="Image into a truncated octahedron shape")
@click.option("--triclinic", is_flag=True, help="Always use general triclinic imaging")
@click.option("--start", default=None, type=int, help="First frame (0-indexed)")
@click.option("--stop", default=None, type=int, help="Stop before this frame")
@click.option("--step", default=None, type=int, help="Frame stride")
def run(
    config: Optional[str],
    topology: Optional[str],
    trajectories: Tuple[str, ...],
    output: Optional[str],
    anchor: Optional[str],
    fixed: Optional[str],
    mobile: Optional[str],
    origin: bool,
    firstatom: bool,
    mass: bool,
    familiar: bool,
    triclinic: bool,
    start: Optional[int],
    stop: Optional[int],
    step: Optional[int],
) -> None:
    """Autoimage a trajectory.

    Either give a job file with --config, or the topology, trajectories and
    output directly. Options given on the command line override the job file.
    """
    from pydantic import ValidationError

    from mdautoimage.config.schema import JobConfig
    from mdautoimage.exceptions import AutoImageError
    from mdautoimage.trajectory import run_job

    try:
        if config is not None:
            data = JobConfig.from_yaml(config).model_dump()
        else:
            missing = [
                name
                for name, value in (
                    ("--topology", topology),
                    ("--trajectory", trajectories),
                    ("--output", output),
                )
                if not value
            ]
            if missing:
                raise click.UsageError(
                    f"Missing {', '.join(missing)} (or give a job file with --config)"
                )
            data = {}

        if topology is not None:
            data["topology"] = topology
        if trajectories:
            data["trajectories"] = list(trajectories)
        if output is not None:
            data["output"] = output
        for key, value in (("start", start), ("stop", stop), ("step", step)):
            if value is not None:
                data[key] = value

        overrides = _imaging_overrides(
            anchor, fixed, mobile, origin, firstatom, mass, familiar, triclinic
        )
        data["autoimage"] = {**data.get("autoimage", {}), **overrides}

        job = JobConfig.model_validate(data)
        output_path = run_job(job)
        click.echo(click.style(f"Imaged trajectory written to {output_path}", fg="green"))

    except FileNotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(click.style(f"Invalid configuration: {e}", fg="red"), err=True)
        sys.exit(1)
    except AutoImageError as e:
        click.echo(click.style(f"Autoimage failed: {e}", fg="red"), err=True)
        if LOGGER.getEffectiveLevel() == logging.DEBUG:
            import traceback

            traceback.print_exc()
        sys.exit(1)


# =============================================================================
# Validate Command
# =============================================================================


@cli.command()
@click.option(
    "-c",
    "--config",
    required=True,
    type=click.Path(exists=True),
    help="Path to YAML job file",
)
def validate(config: str) -> None:
    """Validate a job file.

    Checks that the job file is valid and all referenced input files exist.
    """
    from mdautoimage.config.schema import JobConfig

    click.echo(f"Validating configuration: {config}")

    try:
        job = JobConfig.from_yaml(config)
    except FileNotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Validation failed: {e}", fg="red"), err=True)
        sys.exit(1)

    missing = [str(p) for p in (job.topology, *job.trajectories) if not p.exists()]

    click.echo(click.style("Configuration is valid!", fg="green"))
    click.echo()
    click.echo("Summary:")
    click.echo(f"  Topology: {job.topology}")
    click.echo(f"  Trajectories: {len(job.trajectories)}")
    for path in job.trajectories:
        click.echo(f"    {path}")
    click.echo(f"  Output: {job.output}")
    stop = "end" if job.stop is None else job.stop
    click.echo(f"  Frames: {job.start} to {stop}, step {job.step}")
    click.echo()
    click.echo("Imaging:")
    click.echo(f"  {job.autoimage.describe()}")
    if job.autoimage.fixed:
        click.echo(f"  Fixed mask: [{job.autoimage.fixed}]")
    if job.autoimage.mobile:
        click.echo(f"  Mobile mask: [{job.autoimage.mobile}]")
    click.echo(f"  Triclinic mode: {job.autoimage.triclinic_mode.value}")

    if missing:
        click.echo()
        click.echo(click.style(f"Input files not found: {', '.join(missing)}", fg="red"), err=True)
        sys.exit(1)


# =============================================================================
# Info Command
# =============================================================================


@cli.command()
def info() -> None:
    """Show mdautoimage installation information."""
    from importlib.metadata import version

    from mdautoimage import __version__

    click.echo("mdautoimage - Automatic imaging of MD trajectories")
    click.echo(f"Version: {__version__}")
    click.echo()

    click.echo("Dependencies:")
    for label, dist in (
        ("MDAnalysis", "MDAnalysis"),
        ("NumPy", "numpy"),
        ("Pydantic", "pydantic"),
        ("PyYAML", "PyYAML"),
        ("Click", "click"),
    ):
        click.echo(f"  {label}: {version(dist)}")


def main() -> int:
    """Main entry point."""
    try:
        cli()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
