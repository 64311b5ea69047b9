"""Test that all public modules can be imported."""

import subprocess
import sys

import pytest


class TestImports:
    """Test basic package imports."""

    def test_import_mdautoimage(self):
        """Test main package import."""
        import mdautoimage

        assert hasattr(mdautoimage, "__version__")

    def test_version_format(self):
        """Test version string format."""
        import mdautoimage

        parts = mdautoimage.__version__.split(".")
        assert len(parts) >= 2, f"Version {mdautoimage.__version__} should have major.minor"
        assert parts[0].isdigit()
        assert parts[1].isdigit()

    @pytest.mark.parametrize(
        "name",
        [
            "AutoImageConfig",
            "JobConfig",
            "AutoImager",
            "Frame",
            "MoleculeTopology",
            "AutoImageTransformation",
            "autoimage_trajectory",
            "run_job",
        ],
    )
    def test_lazy_attributes(self, name):
        """Test that every advertised name resolves."""
        import mdautoimage

        assert getattr(mdautoimage, name) is not None
        assert name in dir(mdautoimage)

    def test_unknown_attribute(self):
        import mdautoimage

        with pytest.raises(AttributeError):
            mdautoimage.does_not_exist

    def test_import_config(self):
        """Test config module imports."""
        from mdautoimage.config import (
            AutoImageConfig,
            JobConfig,
            load_config,
            load_config_dict,
            save_config,
        )

        assert AutoImageConfig is not None
        assert JobConfig is not None
        assert callable(load_config)
        assert callable(load_config_dict)
        assert callable(save_config)

    def test_import_imaging(self):
        """Test imaging module imports."""
        from mdautoimage.imaging import (
            AutoImager,
            ExplicitMoleculeClassifier,
            MaskMoleculeClassifier,
            MoleculeClassifier,
        )

        assert issubclass(MaskMoleculeClassifier, MoleculeClassifier)
        assert issubclass(ExplicitMoleculeClassifier, MoleculeClassifier)
        assert AutoImager is not None

    def test_import_cli(self):
        """Test CLI entry point import."""
        from mdautoimage.cli.main import cli, main

        assert cli is not None
        assert callable(main)

    def test_exceptions_hierarchy(self):
        from mdautoimage.exceptions import AutoImageError, AutoImageSetupError, DegenerateBoxError

        assert issubclass(AutoImageSetupError, AutoImageError)
        assert issubclass(DegenerateBoxError, AutoImageError)

    @pytest.mark.parametrize(
        "statement",
        [
            "import mdautoimage",
            "import mdautoimage.config",
            "from mdautoimage import AutoImageConfig, JobConfig",
        ],
    )
    def test_config_does_not_load_mdanalysis(self, statement):
        """Test that reading job files stays free of MDAnalysis."""
        code = f"{statement}; import sys; assert 'MDAnalysis' not in sys.modules"
        result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True)
        assert result.returncode == 0, result.stderr

    def test_constants_shared_with_core(self):
        from mdautoimage.config.schema import AutoImageConfig
        from mdautoimage.constants import DEFAULT_SOLVENT_RESNAMES, TriclinicMode
        from mdautoimage.core import box, topology

        assert box.TriclinicMode is TriclinicMode
        assert topology.DEFAULT_SOLVENT_RESNAMES is DEFAULT_SOLVENT_RESNAMES
        assert AutoImageConfig().solvent_resnames == DEFAULT_SOLVENT_RESNAMES
