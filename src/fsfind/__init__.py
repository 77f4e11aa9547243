"""
fsfind - Core Package

Finds files beneath one or more root directories by name pattern, with
optional exclusion, hidden-entry and content filters.
"""

__version__ = "0.1.0"
__author__ = "fsfind Team"
