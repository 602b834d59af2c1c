"""
_utils.py
=========
General-purpose utility functions for paleotrees.

These are standalone functions that don't depend on the main classes
and could be useful in multiple contexts.
"""

from typing import Set, TypeVar


T = TypeVar('T')


def jaccard_similarity(set_a: Set[T], set_b: Set[T]) -> float:
    """
    Compute Jaccard similarity coefficient between two sets.

    The Jaccard similarity is the size of the intersection divided by the
    size of the union of the two sets. It ranges from 0 (completely disjoint)
    to 1 (identical sets).

    Parameters
    ----------
    set_a, set_b : Set[T]
        Two sets to compare. Can contain any hashable type.

    Returns
    -------
    float
        Jaccard similarity in [0, 1].
        Returns 0.0 if both sets are empty (union size is 0).

    Examples
    --------
    >>> jaccard_similarity({'A', 'B', 'C'}, {'A', 'B', 'C'})
    1.0

    >>> jaccard_similarity({'A', 'B'}, {'C', 'D'})
    0.0

    >>> jaccard_similarity({'A', 'B'}, {'B', 'C', 'D'})
    0.25

    Notes
    -----
    Used to report how much two trees' tip sets overlap before they are
    pruned to their shared tips for comparison.
    """
    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union if union > 0 else 0.0


def format_newick(newick: str) -> str:
    """
    Format a NEWICK string for consistent representation.

    Ensures the NEWICK string:
    - Ends with a semicolon
    - Has no leading/trailing whitespace

    Parameters
    ----------
    newick : str
        NEWICK string to format.

    Returns
    -------
    str
        Formatted NEWICK string.

    Examples
    --------
    >>> format_newick('(A:3,(B:2,(C:5,D:3):2):3)')
    '(A:3,(B:2,(C:5,D:3):2):3);'

    >>> format_newick('  ((A:1,B:1):1);  ')
    '((A:1,B:1):1);'
    """
    newick = newick.strip()
    if not newick.endswith(';'):
        newick += ';'
    return newick


def format_length(value: float, digits=None) -> str:
    """
    Format a branch length for NEWICK output.

    ``digits=None`` writes up to 12 significant digits and drops trailing
    zeros, so integral lengths are written as integers (``3`` not ``3.0``).

    >>> format_length(3.0)
    '3'
    >>> format_length(0.125, digits=2)
    '0.12'
    """
    if digits is None:
        return "%.12g" % value
    return f"{value:.{digits}f}"
