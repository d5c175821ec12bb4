"""
Configuration module for genstack.

Provides the StackingConfig dataclass for runtime fitting settings.
"""

from genstack.config.stacking_config import StackingConfig

__all__ = [
    'StackingConfig',
]
