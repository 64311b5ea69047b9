"""Tests for the imaging and job configuration models and YAML loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from mdautoimage.config import AutoImageConfig, JobConfig, load_config, load_config_dict
from mdautoimage.core.box import TriclinicMode
from mdautoimage.core.topology import DEFAULT_SOLVENT_RESNAMES


class TestAutoImageConfig:
    """Imaging options and their validators."""

    def test_defaults(self):
        cfg = AutoImageConfig()
        assert cfg.origin is False
        assert cfg.use_mass is False
        assert cfg.use_center is True
        assert cfg.anchor is None
        assert cfg.fixed is None
        assert cfg.mobile is None
        assert cfg.solvent_resnames == DEFAULT_SOLVENT_RESNAMES
        assert cfg.triclinic_mode == TriclinicMode.OFF

    def test_blank_selections_are_none(self):
        cfg = AutoImageConfig(anchor="  ", fixed="", mobile=" resname WAT ")
        assert cfg.anchor is None
        assert cfg.fixed is None
        assert cfg.mobile == "resname WAT"

    def test_resnames_normalized(self):
        cfg = AutoImageConfig(solvent_resnames=["wat", "HOH", " Wat ", ""])
        assert cfg.solvent_resnames == ["WAT", "HOH"]

    def test_resnames_required(self):
        with pytest.raises(ValidationError):
            AutoImageConfig(solvent_resnames=[" "])

    def test_triclinic_mode(self):
        assert AutoImageConfig(force_familiar=True).triclinic_mode == TriclinicMode.FAMILIAR
        assert AutoImageConfig(force_triclinic=True).triclinic_mode == TriclinicMode.FORCE
        both = AutoImageConfig(force_triclinic=True, force_familiar=True)
        assert both.triclinic_mode == TriclinicMode.FORCE

    def test_describe(self):
        assert AutoImageConfig().describe() == (
            "To box center based on geometric center, anchor is first molecule"
        )
        cfg = AutoImageConfig(origin=True, use_mass=True, use_center=False, anchor="protein")
        assert cfg.describe() == (
            "To origin based on center of mass, mobile molecules by first atom position, "
            "anchor mask is [protein]"
        )


class TestJobConfig:
    """Job definitions."""

    def test_single_trajectory_becomes_list(self):
        job = JobConfig(topology="a.prmtop", trajectories="b.nc", output="c.nc")
        assert job.trajectories == [Path("b.nc")]

    def test_empty_trajectories_rejected(self):
        with pytest.raises(ValidationError):
            JobConfig(topology="a.prmtop", trajectories=[], output="c.nc")

    def test_stop_after_start(self):
        with pytest.raises(ValidationError, match="stop"):
            JobConfig(topology="a", trajectories=["b"], output="c", start=5, stop=5)

    def test_step_positive(self):
        with pytest.raises(ValidationError):
            JobConfig(topology="a", trajectories=["b"], output="c", step=0)

    def test_nested_options(self):
        job = JobConfig(
            topology="a", trajectories=["b"], output="c", autoimage={"anchor": ":1-250"}
        )
        assert job.autoimage.anchor == ":1-250"


class TestLoader:
    """YAML loading, path resolution and saving."""

    def test_relative_paths_resolved_against_file(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "topology": "system.prmtop",
                    "trajectories": ["md1.nc", "sub/md2.nc"],
                    "output": "out/imaged.nc",
                    "autoimage": {"anchor": "protein", "origin": True},
                }
            )
        )
        job = load_config(path)
        assert job.topology == tmp_path / "system.prmtop"
        assert job.trajectories == [tmp_path / "md1.nc", tmp_path / "sub" / "md2.nc"]
        assert job.output == tmp_path / "out" / "imaged.nc"
        assert job.autoimage.origin is True

    def test_environment_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MDAI_DATA", str(tmp_path / "data"))
        job = load_config_dict(
            {
                "topology": "$MDAI_DATA/top.pdb",
                "trajectories": "$MDAI_DATA/md.dcd",
                "output": "o.dcd",
            },
            base_path=tmp_path,
        )
        assert job.topology == tmp_path / "data" / "top.pdb"
        assert job.trajectories == [tmp_path / "data" / "md.dcd"]

    def test_absolute_paths_kept(self, tmp_path):
        job = load_config_dict(
            {"topology": "/abs/top.pdb", "trajectories": ["md.dcd"], "output": "o.dcd"},
            base_path=tmp_path,
        )
        assert job.topology == Path("/abs/top.pdb")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "job.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_save_and_reload(self, tmp_path):
        job = load_config_dict(
            {
                "topology": "top.pdb",
                "trajectories": ["md.dcd"],
                "output": "o.dcd",
                "stop": 10,
                "autoimage": {"fixed": "resname LIG", "force_familiar": True},
            },
            base_path=tmp_path,
        )
        path = tmp_path / "saved.yaml"
        job.to_yaml(path)

        raw = yaml.safe_load(path.read_text())
        assert raw["topology"] == "top.pdb"
        assert raw["trajectories"] == ["md.dcd"]

        reloaded = JobConfig.from_yaml(path)
        assert reloaded == job
