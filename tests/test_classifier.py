"""Tests for anchor/fixed/mobile molecule classification.

Covers:
- default classification (first molecule anchor, solvent/ions mobile)
- anchor masks spanning part of a molecule or several molecules
- fixed-only, mobile-only and both-mask partitions
- mask errors (empty anchor, invalid expression, no evaluator)
- ExplicitMoleculeClassifier
"""

import numpy as np
import pytest
from MDAnalysis.exceptions import SelectionError

from mdautoimage.core.topology import AtomRange, MoleculeTopology
from mdautoimage.exceptions import AutoImageSetupError
from mdautoimage.imaging.classifier import (
    ExplicitMoleculeClassifier,
    MaskMoleculeClassifier,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# protein(0-9) ligand(10-12) ligand(13-15) water(16-18) water(19-21) ion(22)
SIZES = [10, 3, 3, 3, 3, 1]
SOLVENT = [False, False, False, True, True, False]


def _topology() -> MoleculeTopology:
    return MoleculeTopology.from_sizes(SIZES, solvent=SOLVENT)


def _evaluator(masks: dict):
    def select(expression: str):
        if expression not in masks:
            raise SelectionError(f"Unknown selection {expression}")
        return np.asarray(masks[expression], dtype=np.int64)

    return select


def _molecule_ids(topology, ranges):
    return [topology.molecules.index(r) for r in ranges]


def _assert_partition(topology, classification):
    ids = (
        list(classification.anchor_molecules)
        + _molecule_ids(topology, classification.fixed)
        + _molecule_ids(topology, classification.mobile)
        + _molecule_ids(topology, classification.unassigned)
    )
    assert sorted(ids) == list(range(topology.n_molecules))


# ---------------------------------------------------------------------------
# Default classification
# ---------------------------------------------------------------------------


class TestDefaultClassification:
    """Without masks, the first molecule anchors and the heuristic applies."""

    def test_first_molecule_is_anchor(self):
        top = _topology()
        c = MaskMoleculeClassifier().classify(top)
        assert c.anchor_molecules == (0,)
        np.testing.assert_array_equal(c.anchor_atoms, np.arange(10))

    def test_solvent_and_ions_mobile(self):
        top = _topology()
        c = MaskMoleculeClassifier().classify(top)
        assert _molecule_ids(top, c.fixed) == [1, 2]
        assert _molecule_ids(top, c.mobile) == [3, 4, 5]
        assert c.unassigned == ()
        _assert_partition(top, c)

    def test_no_molecules_raises(self):
        with pytest.raises(AutoImageSetupError, match="no molecules"):
            MaskMoleculeClassifier().classify(MoleculeTopology(molecules=[]))

    def test_description(self):
        assert MaskMoleculeClassifier().description == "anchor is first molecule"
        assert "protein" in MaskMoleculeClassifier(anchor="protein").description


# ---------------------------------------------------------------------------
# Anchor masks
# ---------------------------------------------------------------------------


class TestAnchorMask:
    """Anchor atoms are the selected atoms; touched molecules are excluded."""

    def test_partial_molecule(self):
        top = _topology()
        select = _evaluator({"ca": [2, 5]})
        c = MaskMoleculeClassifier(anchor="ca").classify(top, select)

        np.testing.assert_array_equal(c.anchor_atoms, [2, 5])
        assert c.anchor_molecules == (0,)
        assert AtomRange(0, 10) not in c.fixed + c.mobile
        _assert_partition(top, c)

    def test_spanning_molecules_excluded(self):
        top = _topology()
        select = _evaluator({"complex": [0, 1, 11]})
        c = MaskMoleculeClassifier(anchor="complex").classify(top, select)

        assert c.anchor_molecules == (0, 1)
        assert _molecule_ids(top, c.fixed) == [2]
        assert _molecule_ids(top, c.mobile) == [3, 4, 5]
        assert c.anchor_ranges(top) == (AtomRange(0, 10), AtomRange(10, 13))
        _assert_partition(top, c)

    def test_anchor_may_be_solvent(self):
        top = _topology()
        select = _evaluator({"wat": [16]})
        c = MaskMoleculeClassifier(anchor="wat").classify(top, select)
        assert c.anchor_molecules == (3,)
        # The protein is now an ordinary fixed molecule
        assert _molecule_ids(top, c.fixed) == [0, 1, 2]
        assert _molecule_ids(top, c.mobile) == [4, 5]

    def test_empty_anchor_raises(self):
        select = _evaluator({"nothing": []})
        with pytest.raises(AutoImageSetupError, match="No atoms selected"):
            MaskMoleculeClassifier(anchor="nothing").classify(_topology(), select)

    def test_invalid_expression_wrapped(self):
        with pytest.raises(AutoImageSetupError, match="Could not evaluate"):
            MaskMoleculeClassifier(anchor="bogus").classify(_topology(), _evaluator({}))

    def test_mask_without_evaluator(self):
        with pytest.raises(AutoImageSetupError, match="no mask evaluator"):
            MaskMoleculeClassifier(anchor="protein").classify(_topology())

    def test_blank_masks_ignored(self):
        c = MaskMoleculeClassifier(anchor="", fixed="", mobile="").classify(_topology())
        assert c.anchor_molecules == (0,)


# ---------------------------------------------------------------------------
# Fixed / mobile masks
# ---------------------------------------------------------------------------


class TestFixedMobileMasks:
    """Explicit fixed and mobile selections."""

    def test_fixed_only_rest_mobile(self):
        top = _topology()
        select = _evaluator({"lig": [13]})
        c = MaskMoleculeClassifier(fixed="lig").classify(top, select)
        assert _molecule_ids(top, c.fixed) == [2]
        assert _molecule_ids(top, c.mobile) == [1, 3, 4, 5]
        _assert_partition(top, c)

    def test_mobile_only_rest_fixed(self):
        top = _topology()
        select = _evaluator({"wat": [16, 17, 18, 19]})
        c = MaskMoleculeClassifier(mobile="wat").classify(top, select)
        assert _molecule_ids(top, c.mobile) == [3, 4]
        assert _molecule_ids(top, c.fixed) == [1, 2, 5]
        _assert_partition(top, c)

    def test_both_masks_overlap_is_fixed(self):
        top = _topology()
        select = _evaluator({"f": [10, 13], "m": [13, 16, 19]})
        c = MaskMoleculeClassifier(fixed="f", mobile="m").classify(top, select)
        assert _molecule_ids(top, c.fixed) == [1, 2]
        assert _molecule_ids(top, c.mobile) == [3, 4]
        assert _molecule_ids(top, c.unassigned) == [5]
        _assert_partition(top, c)

    def test_masks_never_select_anchor(self):
        top = _topology()
        select = _evaluator({"all": list(range(23))})
        c = MaskMoleculeClassifier(fixed="all").classify(top, select)
        assert AtomRange(0, 10) not in c.fixed
        assert c.n_fixed == 5
        assert c.n_mobile == 0

    def test_fixed_keeps_topology_order(self):
        top = _topology()
        select = _evaluator({"f": [22, 13, 10]})
        c = MaskMoleculeClassifier(fixed="f").classify(top, select)
        assert c.fixed == tuple(sorted(c.fixed))
        assert _molecule_ids(top, c.fixed) == [1, 2, 5]


# ---------------------------------------------------------------------------
# ExplicitMoleculeClassifier
# ---------------------------------------------------------------------------


class TestExplicitClassifier:
    """Classification from molecule index lists."""

    def test_lists(self):
        top = _topology()
        c = ExplicitMoleculeClassifier(anchor=[1], fixed=[0, 1]).classify(top)
        assert c.anchor_molecules == (1,)
        np.testing.assert_array_equal(c.anchor_atoms, [10, 11, 12])
        assert _molecule_ids(top, c.fixed) == [0]
        assert _molecule_ids(top, c.mobile) == [2, 3, 4, 5]
        _assert_partition(top, c)

    def test_out_of_range(self):
        with pytest.raises(AutoImageSetupError, match="out of range"):
            ExplicitMoleculeClassifier(anchor=[0], fixed=[9]).classify(_topology())

    def test_empty_anchor(self):
        with pytest.raises(ValueError):
            ExplicitMoleculeClassifier(anchor=[])
