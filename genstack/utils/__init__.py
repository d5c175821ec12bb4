"""
Utility functions for the genstack package.
"""

from .tabular import concat_rows, n_rows, select_rows, target_levels

__all__ = [
    'concat_rows',
    'n_rows',
    'select_rows',
    'target_levels',
]
