"""Learned transforms inferred directly from example pairs."""

from .smart_transforms import SmartTransform, try_smart_transforms
from .cellular import CellularRule, try_ca_solve

__all__ = [
    'SmartTransform',
    'try_smart_transforms',
    'CellularRule',
    'try_ca_solve'
]
