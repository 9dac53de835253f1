"""
Utilities for dataroom: parsing helpers, CSV I/O and report rendering.
"""
