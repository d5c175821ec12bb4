"""Core infrastructure shared by genstack modules (logging)."""
