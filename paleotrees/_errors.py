"""
_errors.py
==========
All errors raised by paleotrees.

Every error derives from ``PaleoTreeError``, itself a ``ValueError``, so
callers that only care about bad input can catch ``ValueError``.  Internal
invariant violations (algorithm bugs rather than bad input) are raised as
plain ``RuntimeError`` and are deliberately not part of this hierarchy.
"""

__all__ = [
    "PaleoTreeError",
    "StructuralInconsistencyError",
    "RangeViolationError",
    "GeometryViolationError",
    "ConfigConflictError",
]


class PaleoTreeError(ValueError):
    """
    Base class for errors caused by unsuitable input.
    """

    pass


class StructuralInconsistencyError(PaleoTreeError):
    """
    Indicates a malformed ancestor graph or edge matrix: cycles, several or
    no roots, dangling references, duplicated identifiers.
    """

    pass


class RangeViolationError(PaleoTreeError):
    """
    Indicates times that do not fit the taxon ranges they refer to, or
    per-taxon vectors whose length does not match the taxon table.
    """

    pass


class GeometryViolationError(PaleoTreeError):
    """
    Indicates an edit that would produce negative branch lengths or leave
    too few tips.  Batch callers may catch this and skip the edit.
    """

    pass


class ConfigConflictError(PaleoTreeError):
    """
    Indicates mutually exclusive or missing arguments.  Always raised before
    any work is done.
    """

    pass
