"""
_terminal.py
============
Edits of terminal branches for dated (paleontological) phylogenies.

Every function returns a new Tree; inputs are never modified.  Whenever the
input carries a ``root_time``, the result's ``root_time`` is reconciled with
``fix_root_time`` (except ``add_term_branch_length``, which shifts it
directly).

Public API
----------
  drop_zlb(tree)
  drop_extinct(tree, tol=0.01, ignore_root_time=False)
  drop_extant(tree, tol=0.01, ignore_root_time=False)
  add_term_branch_length(tree, add_time=0.001)
  drop_paleo_tip(tree, tips, **kwargs)
  bind_paleo_tip(tree, tip_label, node_attach, tip_age=None, edge_length=None,
                 position_below=0.0, no_negative_edge_length=True)
  time_slice_tree(tree, slice_time, drop_extinct=False, tip_labels="earliest",
                  tol=0.01)

Extinct versus extant
---------------------
The present is the end of the tip furthest from the root.  Tip depths are
rounded to ``DEPTH_DECIMALS`` decimals before comparison, and tips ending
within ``tol`` of the present count as extant.
"""

import logging
import numpy as np

from paleotrees._errors import ConfigConflictError, GeometryViolationError
from paleotrees._logging import (
    log_assumed_present,
    log_dropped_tips,
    log_negative_edge,
)
from paleotrees._root_time import fix_root_time
from paleotrees._tree import Tree, _adjacency, _assemble, bind_tip, drop_tips

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01
DEPTH_DECIMALS = 6


# ====================================================================== #
# Dropping tips                                                            #
# ====================================================================== #


def drop_zlb(tree):
    """
    Drop tips attached by zero-length terminal branches (ZLBs).

    Time-scaling methods often produce ZLBs for taxa whose early appearance
    makes them functional ancestors; they read as simultaneous speciation
    and extinction events in diversity curves.  Internal zero-length
    branches are left alone.

    Returns
    -------
    Tree or None
        None when dropping the ZLBs would leave fewer than two tips.
    """
    _require_lengths(tree, "drop_zlb")
    zlb = np.flatnonzero(tree.distance[: tree.n_tips] == 0.0)
    if tree.n_tips - len(zlb) < 2:
        logger.info(
            "drop_zlb: %d of %d tips are ZLBs; nothing left to return.",
            len(zlb),
            tree.n_tips,
        )
        return None
    pruned = drop_tips(tree, zlb)
    log_dropped_tips("drop_zlb", [tree.tip_labels[t] for t in zlb], pruned.n_tips)
    return fix_root_time(tree, pruned)


def drop_extinct(tree, tol: float = DEFAULT_TOLERANCE, ignore_root_time: bool = False):
    """
    Drop every tip that ends before the present (extinct taxa).

    Parameters
    ----------
    tree : Tree
    tol : float
        Tips ending within *tol* of the present are treated as extant.
    ignore_root_time : bool
        Skip the check that ``root_time`` places the latest tip at the
        present.  ``root_time`` is still reconciled.

    Raises
    ------
    GeometryViolationError
        if ``root_time`` implies every tip is extinct, or fewer than two
        extant tips remain.
    """
    return _drop_by_age(tree, tol, ignore_root_time, drop_older=True)


def drop_extant(tree, tol: float = DEFAULT_TOLERANCE, ignore_root_time: bool = False):
    """
    Drop every tip that reaches the present (extant taxa), keeping only
    extinct ones.  Mirror image of ``drop_extinct``; same parameters and
    errors.
    """
    return _drop_by_age(tree, tol, ignore_root_time, drop_older=False)


def drop_paleo_tip(tree, tips, **kwargs):
    """
    Remove *tips* (IDs or labels) and reconcile ``root_time``.

    Keyword arguments are passed on to ``fix_root_time``.

    Examples
    --------
    >>> tree = Tree.from_newick("(A:3,(B:2,(C:5,D:3):2):3);", root_time=10)
    >>> drop_paleo_tip(tree, "A").root_time
    7.0
    >>> drop_paleo_tip(tree, ["A", "B"]).root_time
    5.0
    """
    pruned = drop_tips(tree, tips)
    return fix_root_time(tree, pruned, **kwargs)


# ====================================================================== #
# Changing and adding terminal branches                                   #
# ====================================================================== #


def add_term_branch_length(tree, add_time: float = 0.001):
    """
    Add *add_time* to every terminal branch and to ``root_time``.

    A negative *add_time* shortens terminal branches.  ``fix_root_time``
    is not called: the shift of ``root_time`` is applied directly.

    Raises
    ------
    GeometryViolationError   if any terminal branch would become negative.
    """
    _require_lengths(tree, "add_term_branch_length")
    lengths = tree.edge_length.copy()
    terminal = tree.edge[:, 1] < tree.n_tips
    lengths[terminal] += add_time
    if np.any(lengths < 0):
        raise GeometryViolationError(
            f"Adding {add_time} to terminal branches gives negative branch lengths."
        )
    root_time = None if tree.root_time is None else tree.root_time + add_time
    return Tree(
        tree.edge.copy(),
        lengths,
        list(tree.tip_labels),
        root_time=root_time,
        root_edge=tree.root_edge,
    )


def bind_paleo_tip(
    tree,
    tip_label,
    node_attach,
    tip_age=None,
    edge_length=None,
    position_below: float = 0.0,
    no_negative_edge_length: bool = True,
):
    """
    Attach a new tip by its age (or terminal edge length) and keep
    ``root_time`` consistent.

    Parameters
    ----------
    tree : Tree
        Without a ``root_time`` the latest tip is taken to be at the present.
    tip_label : str
        Label of the new tip.
    node_attach : int | str
        Node ID or tip label to attach at.
    tip_age : float or None
        Age of the new tip (time before present).  Exclusive with
        *edge_length*.
    edge_length : float or None
        Length of the new terminal edge.  Exclusive with *tip_age*.
    position_below : float
        Distance below *node_attach* at which to attach.  Below the root
        this extends ``root_edge`` as needed and moves the root back in
        time by the same amount.
    no_negative_edge_length : bool
        Raise on a negative new edge length; otherwise log a warning.

    Returns
    -------
    Tree
        A zero-length ``root_edge`` left by the insertion is removed.

    Raises
    ------
    ConfigConflictError
        if both or neither of *tip_age* / *edge_length* are given, or
        *tip_label* already exists.
    GeometryViolationError
        for a negative *position_below*, one longer than the edge below
        *node_attach*, or a negative new edge length.

    Examples
    --------
    >>> tree = Tree.from_newick("(A:3,(B:2,(C:5,D:3):2):3);", root_time=20)
    >>> bound = bind_paleo_tip(tree, "new", node_attach=tree.root, tip_age=5,
    ...                        position_below=3)
    >>> bound.root_time
    23.0
    """
    if tip_age is None and edge_length is None:
        raise ConfigConflictError("Either tip_age or edge_length must be given.")
    if tip_age is not None and edge_length is not None:
        raise ConfigConflictError("tip_age and edge_length cannot both be given.")
    if isinstance(tip_label, (list, tuple, set, np.ndarray)):
        raise ConfigConflictError("tip_label must be a single string.")
    tip_label = str(tip_label)
    if tip_label in tree.tip_labels:
        raise ConfigConflictError(f"Tip label '{tip_label}' already exists.")

    _require_lengths(tree, "bind_paleo_tip")
    node = tree.resolve_node(node_attach)
    position_below = float(position_below)
    if position_below < 0:
        raise GeometryViolationError("position_below cannot be negative.")

    root_edge = tree.root_edge
    at_root = node == tree.root
    if at_root:
        if position_below > 0 and (root_edge is None or root_edge < position_below):
            root_edge = position_below
    elif position_below > tree.distance[node]:
        raise GeometryViolationError(
            "position_below cannot be greater than the length of the edge "
            "below node_attach."
        )

    root_time = tree.root_time
    if root_time is None:
        log_assumed_present("bind_paleo_tip")
        root_time = float(np.max(tree.root_distance))

    if edge_length is None:
        node_height = float(tree.root_distance[node]) - position_below
        new_length = root_time - float(tip_age) - node_height
        if new_length < 0:
            if no_negative_edge_length:
                raise GeometryViolationError(
                    "Negative edge length created because tip_age is older "
                    "than the age of node_attach + position_below."
                )
            log_negative_edge(new_length)
    else:
        new_length = float(edge_length)
        if new_length < 0:
            if no_negative_edge_length:
                raise GeometryViolationError("Negative edge_length given.")
            log_negative_edge(new_length)

    work = tree.copy(root_time=root_time, root_edge=root_edge)
    bound = bind_tip(work, tip_label, node, new_length, position=position_below)

    if at_root and position_below > 0:
        root_time += position_below
    root_edge = bound.root_edge
    if root_edge == 0:
        root_edge = None
    return bound.copy(root_time=root_time, root_edge=root_edge)


# ====================================================================== #
# Time slicing                                                             #
# ====================================================================== #


def time_slice_tree(
    tree,
    slice_time: float,
    drop_extinct: bool = False,
    tip_labels: str = "earliest",
    tol: float = DEFAULT_TOLERANCE,
):
    """
    Cut a dated tree at an absolute time, removing everything younger.

    Lineages crossing *slice_time* become tips ending exactly at the slice.
    Tips that end before the slice are kept, unless *drop_extinct* is True.

    Parameters
    ----------
    tree : Tree
        Without a ``root_time`` the latest tip is taken to be at the present.
    slice_time : float
        Absolute time (time before present) of the cut.
    drop_extinct : bool
        Drop tips ending before the slice (via the ``drop_extinct`` rules,
        ignoring ``root_time``, whose present is now the slice).
    tip_labels : {'earliest', 'all'}
        Label of a cut lineage: its descendant tip closest to the root, or
        all of its descendant tips joined with ';'.
    tol : float
        Tolerance passed on when dropping extinct tips.

    Returns
    -------
    Tree
        ``root_time`` stays absolute; tips at the slice have age
        *slice_time*.

    Raises
    ------
    GeometryViolationError
        if the slice is at or before the root, or fewer than two tips are
        left.
    ConfigConflictError
        for an unknown *tip_labels* mode.
    """
    if tip_labels not in ("earliest", "all"):
        raise ConfigConflictError(
            f"tip_labels must be 'earliest' or 'all'; got '{tip_labels}'."
        )
    _require_lengths(tree, "time_slice_tree")

    root_time = tree.root_time
    if root_time is None:
        log_assumed_present("time_slice_tree")
        root_time = float(np.max(tree.root_distance))
    cut_depth = root_time - float(slice_time)
    if cut_depth <= 0:
        raise GeometryViolationError(
            f"Slice time {slice_time} is at or before the root ({root_time})."
        )

    children_of, length_of = _adjacency(tree)
    rd = tree.root_distance
    tip_keys = []
    order_keys = []
    labels = []

    # Walk down from the root; a crossing edge becomes a new terminal edge.
    stack = [tree.root]
    while stack:
        v = stack.pop()
        if rd[v] > cut_depth:
            p = int(tree.parent[v])
            length_of[v] = cut_depth - float(rd[p])
            children_of[v] = []
            below = tree.descendant_tips(v)
            if tip_labels == "all":
                label = ";".join(tree.tip_labels[t] for t in below)
                order_key = below[0]
            else:
                order_key = min(below, key=lambda t: (rd[t], t))
                label = tree.tip_labels[order_key]
            tip_keys.append(v)
            order_keys.append(order_key)
            labels.append(label)
        elif v < tree.n_tips:
            tip_keys.append(v)
            order_keys.append(v)
            labels.append(tree.tip_labels[v])
        else:
            stack.extend(children_of[v])

    if len(tip_keys) < 2:
        raise GeometryViolationError(
            f"Slicing at {slice_time} leaves fewer than two tips."
        )

    ranked = sorted(range(len(tip_keys)), key=lambda i: order_keys[i])
    sliced = _assemble(
        children_of,
        length_of,
        tree.root,
        [tip_keys[i] for i in ranked],
        [labels[i] for i in ranked],
        root_time=tree.root_time,
        root_edge=tree.root_edge,
    )
    logger.info(
        "time_slice_tree: cut at %g; %d of %d tips remain.",
        slice_time,
        sliced.n_tips,
        tree.n_tips,
    )
    if drop_extinct:
        sliced = _drop_by_age(sliced, tol, True, drop_older=True)
    return sliced


# ====================================================================== #
# Private helpers                                                          #
# ====================================================================== #


def _drop_by_age(tree, tol, ignore_root_time, drop_older):
    operation = "drop_extinct" if drop_older else "drop_extant"
    _require_lengths(tree, operation)
    if tree.root_time is None:
        log_assumed_present(operation)

    dnode = np.round(tree.tip_depths(), DEPTH_DECIMALS)
    latest = float(np.max(dnode))
    if tree.root_time is not None and not ignore_root_time:
        if round(tree.root_time, DEPTH_DECIMALS) > latest:
            raise GeometryViolationError(
                "All tips are extinct based on root_time!"
            )

    if drop_older:
        droppers = np.flatnonzero(dnode + tol < latest)
    else:
        droppers = np.flatnonzero(dnode + tol > latest)
    if tree.n_tips - len(droppers) < 2:
        kind = "extant" if drop_older else "extinct"
        raise GeometryViolationError(f"Fewer than 2 tips are {kind} on the tree!")

    pruned = drop_tips(tree, droppers)
    log_dropped_tips(operation, [tree.tip_labels[t] for t in droppers], pruned.n_tips)
    return fix_root_time(tree, pruned)


def _require_lengths(tree, operation: str) -> None:
    if not tree.has_edge_lengths:
        raise GeometryViolationError(f"{operation} needs a tree with branch lengths.")
