"""Perception layer for the ARC cascade solver.

This module turns raw grids into structured facts: connected components,
mirror symmetries and periods, and the feature profile that drives
primitive selection.
"""

from .blob_labeling import BlobLabeler, create_blob_labeler, find_objects, enclosed_mask
from .symmetry import is_symmetric_h, is_symmetric_v, detect_period_h, detect_period_v
from .features import (
    FeatureProfile, DimChange, ColorChange, analyze_features,
    classify_dim_change, classify_color_change, unique_colors
)

__all__ = [
    'BlobLabeler',
    'create_blob_labeler',
    'find_objects',
    'enclosed_mask',
    'is_symmetric_h',
    'is_symmetric_v',
    'detect_period_h',
    'detect_period_v',
    'FeatureProfile',
    'DimChange',
    'ColorChange',
    'analyze_features',
    'classify_dim_change',
    'classify_color_change',
    'unique_colors'
]
