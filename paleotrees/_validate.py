"""
_validate.py
============
Structural checks for ancestor/descendant tables and tree edge matrices.

Both checks *return* a boolean and never raise for bad structure; the
caller decides whether a failed check is fatal and which error to raise.

Public API
----------
  test_parent_child(parents, children) -> bool
      Ancestor table check.  The root is the single row whose parent is
      null (``None``, ``NaN`` or a negative integer).

  test_edge_matrix(edge) -> bool
      Edge matrix check.  The root is the single node that occurs only as a
      parent.
"""

import math
import numpy as np


def _is_null(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    return int(value) < 0


def test_parent_child(parents, children) -> bool:
    """
    Return True iff *parents*/*children* describe a single rooted tree.

    Conditions
    ----------
    * every child identifier occurs exactly once;
    * exactly one row has a null parent (the root);
    * every non-null parent refers to an existing child identifier;
    * following parent links from any node reaches the root without
      revisiting a node (no cycles, single connected component).

    Parameters
    ----------
    parents  : sequence   Parent identifier per row; null marks the root.
    children : sequence   Identifier of each row.

    Returns
    -------
    bool

    Complexity
    ----------
    O(n): each node is walked at most once thanks to a three-state colour
    array (0 = unseen, 1 = on the current path, 2 = known to reach the root).
    """
    parents = list(parents)
    children = list(children)
    n = len(children)
    if n == 0 or len(parents) != n:
        return False

    child_keys = [int(c) for c in children]
    index = {}
    for i, key in enumerate(child_keys):
        if key in index:
            return False
        index[key] = i

    parent_row = np.full(n, -1, dtype=np.int64)
    n_roots = 0
    for i in range(n):
        p = parents[i]
        if _is_null(p):
            n_roots += 1
            continue
        p = int(p)
        if p not in index:
            return False
        parent_row[i] = index[p]
    if n_roots != 1:
        return False

    state = np.zeros(n, dtype=np.int8)
    path = []
    for start in range(n):
        node = start
        while node != -1 and state[node] == 0:
            state[node] = 1
            path.append(node)
            node = int(parent_row[node])
        if node != -1 and state[node] == 1:
            return False  # walked back onto the current path
        for visited in path:
            state[visited] = 2
        path.clear()
    return True


def test_edge_matrix(edge) -> bool:
    """
    Return True iff the ``(n_edges, 2)`` *edge* matrix of ``(parent, child)``
    pairs describes a single rooted tree.

    The root is inferred as the node that never occurs as a child; the
    matrix is then checked with ``test_parent_child``.
    """
    edge = np.asarray(edge)
    if edge.ndim != 2 or edge.shape[1] != 2 or edge.shape[0] == 0:
        return False
    if np.any(edge < 0):
        return False
    child_set = set(int(c) for c in edge[:, 1])
    roots = sorted(set(int(p) for p in edge[:, 0]) - child_set)
    if len(roots) != 1:
        return False
    parents = [int(p) for p in edge[:, 0]] + [None]
    children = [int(c) for c in edge[:, 1]] + [roots[0]]
    return test_parent_child(parents, children)


# Keep pytest from collecting these when a test module imports them by name.
test_parent_child.__test__ = False
test_edge_matrix.__test__ = False
