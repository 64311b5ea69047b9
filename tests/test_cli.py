"""Tests for the mdautoimage command line interface."""

import MDAnalysis as mda
import numpy as np
import pytest
import yaml
from click.testing import CliRunner
from conftest import CUBE, SCENARIO_POSITIONS, SCENARIO_RESNAMES, SCENARIO_SIZES, build_universe

from mdautoimage import __version__
from mdautoimage.cli.main import cli

pytestmark = pytest.mark.usefixtures("restore_root_logger")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def system_gro(tmp_path):
    path = tmp_path / "system.gro"
    u = build_universe(SCENARIO_SIZES, SCENARIO_RESNAMES, SCENARIO_POSITIONS, CUBE)
    u.atoms.write(str(path))
    return path


def _write_job(path, **data):
    path.write_text(yaml.safe_dump(data))
    return path


class TestInfo:
    def test_info(self, runner):
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert f"Version: {__version__}" in result.output
        assert "MDAnalysis" in result.output


class TestValidate:
    """The validate command."""

    def test_valid_job(self, runner, tmp_path):
        (tmp_path / "system.prmtop").touch()
        (tmp_path / "md1.nc").touch()
        job = _write_job(
            tmp_path / "job.yaml",
            topology="system.prmtop",
            trajectories=["md1.nc"],
            output="imaged.dcd",
            autoimage={"anchor": "protein", "fixed": "resname LIG"},
        )
        result = runner.invoke(cli, ["validate", "-c", str(job)])

        assert result.exit_code == 0
        assert "Configuration is valid!" in result.output
        assert "anchor mask is [protein]" in result.output
        assert "Fixed mask: [resname LIG]" in result.output

    def test_missing_inputs(self, runner, tmp_path):
        job = _write_job(
            tmp_path / "job.yaml",
            topology="system.prmtop",
            trajectories=["md1.nc"],
            output="imaged.dcd",
        )
        result = runner.invoke(cli, ["validate", "-c", str(job)])
        assert result.exit_code == 1
        assert "Input files not found" in result.output

    def test_invalid_frames(self, runner, tmp_path):
        job = _write_job(
            tmp_path / "job.yaml",
            topology="system.prmtop",
            trajectories=["md1.nc"],
            output="imaged.dcd",
            start=10,
            stop=5,
        )
        result = runner.invoke(cli, ["validate", "-c", str(job)])
        assert result.exit_code == 1
        assert "Validation failed" in result.output


class TestRun:
    """The run command."""

    def test_requires_inputs(self, runner):
        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 2
        assert "Missing" in result.output

    def test_run_from_options(self, runner, system_gro, tmp_path):
        output = tmp_path / "imaged.gro"
        result = runner.invoke(
            cli,
            ["run", "-p", str(system_gro), "-y", str(system_gro), "-o", str(output), "--origin"],
        )

        assert result.exit_code == 0, result.output
        assert "Imaged trajectory written to" in result.output
        imaged = mda.Universe(str(output))
        np.testing.assert_allclose(
            imaged.atoms.positions[0:2].mean(axis=0), [0.0, 0.0, 0.0], atol=0.02
        )

    def test_options_override_job_file(self, runner, system_gro, tmp_path):
        job = _write_job(
            tmp_path / "job.yaml",
            topology=system_gro.name,
            trajectories=[system_gro.name],
            output="from_job.gro",
        )
        output = tmp_path / "override.gro"
        result = runner.invoke(cli, ["run", "-c", str(job), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
        assert not (tmp_path / "from_job.gro").exists()

    def test_empty_anchor_fails(self, runner, system_gro, tmp_path):
        result = runner.invoke(
            cli,
            [
                "run",
                "-p",
                str(system_gro),
                "-y",
                str(system_gro),
                "-o",
                str(tmp_path / "out.gro"),
                "--anchor",
                "resname XYZ",
            ],
        )
        assert result.exit_code == 1
        assert "Autoimage failed" in result.output
