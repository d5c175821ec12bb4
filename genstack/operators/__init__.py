"""
Operators consumed by the stacking core: models and fold strategies.
"""
