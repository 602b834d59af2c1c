"""
_root_time.py
=============
Absolute dating of tree nodes.

Public API
----------
  fix_root_time(tree_orig, tree_new, test_consistent_depth=True) -> Tree
      Carry the absolute root age of *tree_orig* over to an edited copy.

  date_nodes(tree, root_time=None, tolerance=None) -> np.ndarray
      Absolute age of every node.
"""

import logging
import numpy as np

from paleotrees._errors import StructuralInconsistencyError
from paleotrees._logging import log_assumed_present, log_root_time_change

logger = logging.getLogger(__name__)

_DEPTH_TOLERANCE = 1e-8


def fix_root_time(tree_orig, tree_new, test_consistent_depth: bool = True):
    """
    Return *tree_new* with a ``root_time`` consistent with *tree_orig*.

    *tree_new* is a structural variant of *tree_orig* (tips dropped, tips
    added, terminal edges changed) whose root may sit on a different node.
    A tip shared by both trees lies at the same absolute time in both, so

        root_time_new = root_time_orig − (depth_orig(tip) − depth_new(tip))

    Parameters
    ----------
    tree_orig : Tree
        Tree with the known ``root_time``.
    tree_new : Tree
        Edited tree sharing tips with *tree_orig*.
    test_consistent_depth : bool
        If True, every shared tip must give the same root time.

    Returns
    -------
    Tree
        *tree_new* unchanged when ``tree_orig.root_time`` is None, otherwise
        a copy carrying the reconciled ``root_time``.

    Raises
    ------
    StructuralInconsistencyError
        if the trees share no tip, or (with *test_consistent_depth*) if the
        shared tips disagree on the root time.
    """
    if tree_orig.root_time is None:
        return tree_new

    orig_labels = set(tree_orig.tip_labels)
    common = [label for label in tree_new.tip_labels if label in orig_labels]
    if not common:
        raise StructuralInconsistencyError(
            "Original and new tree share no tip labels; cannot fix root time."
        )

    orig_depth = tree_orig.root_distance[[tree_orig.resolve_node(x) for x in common]]
    new_depth = tree_new.root_distance[[tree_new.resolve_node(x) for x in common]]
    candidates = tree_orig.root_time - (orig_depth - new_depth)

    if test_consistent_depth:
        spread = float(np.max(candidates) - np.min(candidates))
        if spread > _DEPTH_TOLERANCE * max(1.0, abs(tree_orig.root_time)):
            raise StructuralInconsistencyError(
                "Tip depths of the original and new tree are inconsistent: "
                f"shared tips imply root times differing by {spread:g}."
            )

    root_time = float(candidates[0])
    log_root_time_change(tree_orig.root_time, root_time)
    return tree_new.copy(root_time=root_time)


def date_nodes(tree, root_time=None, tolerance=None) -> np.ndarray:
    """
    Absolute age (time before present) of every node, indexed by node ID.

    Parameters
    ----------
    tree : Tree
    root_time : float or None
        Overrides ``tree.root_time``.  When neither is available the latest
        tip is assumed to be at the present and a warning is logged.
    tolerance : float or None
        Ages whose absolute value is below *tolerance* are set to exactly 0.

    Returns
    -------
    float64 ndarray [n_nodes]

    Examples
    --------
    >>> tree = Tree.from_newick("(A:3,(B:2,(C:5,D:3):2):3);", root_time=10)
    >>> date_nodes(tree)[:4]
    array([7., 5., 0., 2.])
    """
    if root_time is None:
        root_time = tree.root_time
    if root_time is None:
        log_assumed_present("date_nodes")
        root_time = float(np.max(tree.root_distance))
    ages = root_time - tree.root_distance
    if tolerance is not None:
        ages[np.abs(ages) < tolerance] = 0.0
    return ages
