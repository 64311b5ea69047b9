"""Automatic imaging: classification, anchor centering and periodic imaging.

The usual entry point is :class:`AutoImager`; the individual stages are
exposed for callers that want to compose them differently.
"""

from mdautoimage.imaging.anchor import anchor_target, center_anchor
from mdautoimage.imaging.autoimage import AutoImager, FrameResult, FrameStatus, SetupStatus
from mdautoimage.imaging.classifier import (
    Classification,
    ExplicitMoleculeClassifier,
    MaskMoleculeClassifier,
    MoleculeClassifier,
)
from mdautoimage.imaging.fixed import (
    FixedPlacement,
    NearestImage,
    anchor_fixed_molecules,
    nearest_image_translation,
    search_range,
)
from mdautoimage.imaging.mobile import MoleculeGroup, image_mobile, molecule_centers

__all__ = [
    # Orchestration
    "AutoImager",
    "FrameResult",
    "FrameStatus",
    "SetupStatus",
    # Classification
    "Classification",
    "ExplicitMoleculeClassifier",
    "MaskMoleculeClassifier",
    "MoleculeClassifier",
    # Anchor
    "anchor_target",
    "center_anchor",
    # Mobile imaging
    "MoleculeGroup",
    "image_mobile",
    "molecule_centers",
    # Fixed molecule search
    "FixedPlacement",
    "NearestImage",
    "anchor_fixed_molecules",
    "nearest_image_translation",
    "search_range",
]
