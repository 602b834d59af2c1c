"""
_contradiction.py
=================
Topological distance between two trees based on contradicting clades.

Public API
----------
  tree_contradiction(tree1, tree2, rescale=True) -> float

Two clades contradict when they overlap and neither contains the other:
no single tree can hold both.  A clade of one tree that contradicts at
least one clade of the other counts once.  Unlike the Robinson-Foulds
distance, a clade that is merely absent from the other tree (for example
because the other tree is unresolved there) does not count, so a star tree
contradicts nothing.

Clades are the rooted tip sets below non-root internal nodes; tip and
whole-tree sets never contradict anything and are left out.
"""

import logging
import numpy as np

from paleotrees._errors import GeometryViolationError
from paleotrees._logging import log_tip_overlap
from paleotrees._tree import drop_tips

logger = logging.getLogger(__name__)


def tree_contradiction(tree1, tree2, rescale: bool = True) -> float:
    """
    Count the clades of each tree that contradict a clade of the other.

    Both trees are first restricted to their shared tip labels.

    Parameters
    ----------
    tree1, tree2 : Tree
    rescale : bool
        Divide the count by its maximum, ``2 * (n_shared - 2)``, giving a
        value in [0, 1].  With exactly two shared tips no clade can exist
        and 0.0 is returned.

    Returns
    -------
    float
        Symmetric; 0 for identical topologies.

    Raises
    ------
    GeometryViolationError
        if the trees share fewer than two tips.

    Examples
    --------
    >>> a = Tree.from_newick("((A,B),(C,D));")
    >>> b = Tree.from_newick("((A,C),(B,D));")
    >>> tree_contradiction(a, b)
    1.0
    >>> tree_contradiction(a, Tree.star("ABCD"))
    0.0
    """
    labels1 = set(tree1.tip_labels)
    labels2 = set(tree2.tip_labels)
    log_tip_overlap(labels1, labels2)

    shared = sorted(labels1 & labels2)
    if len(shared) < 2:
        raise GeometryViolationError(
            f"Trees share {len(shared)} tip(s); at least two are needed."
        )
    pruned1 = drop_tips(tree1, [x for x in tree1.tip_labels if x not in labels2])
    pruned2 = drop_tips(tree2, [x for x in tree2.tip_labels if x not in labels1])
    if pruned1.n_tips != pruned2.n_tips:
        raise RuntimeError(
            "Trees have different numbers of tips after pruning to shared tips."
        )

    m1 = _clade_matrix(pruned1.clades(), shared)
    m2 = _clade_matrix(pruned2.clades(), shared)
    n_contradicting = 0
    if len(m1) and len(m2):
        overlap = m1 @ m2.T
        size1 = m1.sum(axis=1)[:, None]
        size2 = m2.sum(axis=1)[None, :]
        conflict = (overlap > 0) & (overlap < size1) & (overlap < size2)
        n_contradicting = int(conflict.any(axis=1).sum() + conflict.any(axis=0).sum())

    logger.debug(
        "tree_contradiction: %d shared tips, %d + %d clades, %d contradicting.",
        len(shared),
        len(m1),
        len(m2),
        n_contradicting,
    )
    if not rescale:
        return float(n_contradicting)
    max_count = 2 * (len(shared) - 2)
    if max_count == 0:
        return 0.0
    return n_contradicting / max_count


def _clade_matrix(clades, labels) -> np.ndarray:
    """
    **Private.**  Integer incidence matrix [n_clades, n_labels]; entry 1
    where the label belongs to the clade.
    """
    column = {label: j for j, label in enumerate(labels)}
    matrix = np.zeros((len(clades), len(labels)), dtype=np.int64)
    for i, clade in enumerate(clades):
        matrix[i, [column[x] for x in clade]] = 1
    return matrix
