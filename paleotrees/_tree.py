"""
_tree.py
========
A rooted phylogenetic tree with branch lengths and an optional absolute
root age, represented as a set of parallel numpy arrays.

Public API
----------
  Tree(edge, edge_length, tip_labels, root_time=None, root_edge=None)
      Validating constructor.  Builds all derived arrays.

  Tree.from_newick(newick_string, root_time=None)
  Tree.star(tip_labels, edge_length=1.0, root_time=None)

  .to_newick(digits=None)
  .copy(root_time=..., root_edge=...)
  .resolve_node(node)
  .children(node), .is_tip(node)
  .descendant_tips(node)
  .tip_depths()
  .mrca(nodes)
  .branch_distance(u, v)
  .clades()

  drop_tips(tree, tips)
      Generic tip-removal primitive.
  bind_tip(tree, tip_label, where, edge_length, position=0.0)
      Generic tip-insertion primitive.

Node-ID conventions (set once; never change for a given instance)
-----------------------------------------------------------------
  Tips     : 0 … n_tips-1           (order of ``tip_labels``)
  Root     : n_tips
  Internal : n_tips+1 … n_nodes-1   (preorder when built by this module)

Trees are immutable.  Every operation that changes structure returns a new
instance assembled by ``_assemble``, which renumbers nodes canonically.
"""

import logging
import math
import numpy as np

from paleotrees._errors import GeometryViolationError, StructuralInconsistencyError
from paleotrees._utils import format_length, format_newick
from paleotrees._validate import test_edge_matrix

logger = logging.getLogger(__name__)

# Sentinel for ``Tree.copy`` so that ``None`` can be passed explicitly.
_KEEP = object()

_NEWICK_DELIMITERS = ":,();"


class Tree:
    """
    A rooted phylogenetic tree; polytomies allowed.

    Attributes (all read-only after construction)
    ----------------------------------------------
    n_tips      : int        Number of tips.
    n_nodes     : int        Total number of nodes.
    n_edges     : int        Number of edges (n_nodes - 1).
    root        : int        Node ID of the root (always n_tips).
    tip_labels  : list[str]  Label of each tip, indexed by tip ID.
    root_time   : float | None   Absolute age of the root.
    root_edge   : float | None   Pendant edge length above the root.

    Arrays — tree structure
    -----------------------
    edge          : int32  [n_edges, 2]   (parent, child) pairs.
    edge_length   : float64[n_edges]      Branch length; NaN if unknown.
    parent        : int32  [n_nodes]      Parent ID; -1 for root.
    parent_edge   : int32  [n_nodes]      Row of ``edge`` ending at node; -1 for root.
    distance      : float64[n_nodes]      Branch length to parent; NaN for root.
    root_distance : float64[n_nodes]      Cumulative branch length from root.
    depth         : int32  [n_nodes]      Edge count from root.
    preorder      : int32  [n_nodes]      Node IDs in preorder (root first).
    """

    # ================================================================== #
    # Construction                                                         #
    # ================================================================== #

    def __init__(
        self, edge, edge_length, tip_labels, root_time=None, root_edge=None
    ) -> None:
        """
        Validate the edge matrix and build all derived arrays.

        Parameters
        ----------
        edge        : array-like, shape (n_edges, 2)
        edge_length : array-like, shape (n_edges,)   NaN marks unknown length.
        tip_labels  : sequence of str
        root_time   : float or None
        root_edge   : float or None

        Raises
        ------
        StructuralInconsistencyError
            if the edges do not form a single rooted tree, if the numbering
            convention is violated, or if tip labels are not unique.
        """
        edge = np.asarray(edge, dtype=np.int32)
        if edge.ndim != 2 or edge.shape[1] != 2 or edge.shape[0] == 0:
            raise StructuralInconsistencyError(
                "edge must be a non-empty (n_edges, 2) matrix; "
                f"got shape {edge.shape}."
            )
        edge_length = np.asarray(edge_length, dtype=np.float64)
        if edge_length.shape != (edge.shape[0],):
            raise StructuralInconsistencyError(
                f"edge_length has shape {edge_length.shape}; "
                f"expected ({edge.shape[0]},)."
            )
        if np.any(np.isinf(edge_length)):
            raise StructuralInconsistencyError("edge lengths must be finite.")

        tip_labels = [str(label) for label in tip_labels]
        if len(set(tip_labels)) != len(tip_labels):
            seen = set()
            dupes = sorted({x for x in tip_labels if x in seen or seen.add(x)})
            raise StructuralInconsistencyError(
                f"Duplicate tip labels: {', '.join(dupes)}."
            )

        if not test_edge_matrix(edge):
            raise StructuralInconsistencyError(
                "edge matrix does not describe a single rooted tree."
            )

        n_tips = len(tip_labels)
        n_edges = int(edge.shape[0])
        n_nodes = n_edges + 1
        if int(edge.max()) != n_nodes - 1:
            raise StructuralInconsistencyError(
                f"Node IDs must be 0 … {n_nodes - 1} for {n_edges} edges."
            )

        has_children = np.zeros(n_nodes, dtype=bool)
        has_children[edge[:, 0]] = True
        tips = np.flatnonzero(~has_children)
        if len(tips) != n_tips or (n_tips > 0 and int(tips[-1]) != n_tips - 1):
            raise StructuralInconsistencyError(
                f"Tips must be nodes 0 … {n_tips - 1}; "
                f"found {len(tips)} childless node(s) for {n_tips} label(s)."
            )

        self.edge = edge
        self.edge_length = edge_length
        self.tip_labels = tip_labels
        self.n_tips: int = n_tips
        self.n_nodes: int = n_nodes
        self.n_edges: int = n_edges
        self.root_time = None if root_time is None else float(root_time)
        self.root_edge = None if root_edge is None else float(root_edge)

        self._build_node_arrays()
        if int(self.preorder[0]) != n_tips:
            raise StructuralInconsistencyError(
                f"Root must be node {n_tips}; found node {int(self.preorder[0])}."
            )
        self.root: int = n_tips

        # Label index: built lazily on first label-based query.
        self._label_index: dict = None  # type: ignore[assignment]

    @classmethod
    def from_newick(cls, newick_string: str, root_time=None) -> "Tree":
        """
        Parse a NEWICK string.

        Tips are numbered left to right as they appear in the string.
        Internal-node labels (support values) are read and discarded; a
        length on the outermost group becomes ``root_edge``.  Branch
        lengths that are absent are stored as NaN.

        Parameters
        ----------
        newick_string : str   Trailing ';' optional.
        root_time     : float or None

        Raises
        ------
        StructuralInconsistencyError   on unbalanced parentheses or a tree
                                       with fewer than two tips.
        """
        children_of, length_of, root, tip_keys, labels = _parse_newick(
            newick_string
        )
        root_length = length_of.pop(root, math.nan)
        root_edge = None if math.isnan(root_length) else root_length
        return _assemble(
            children_of,
            length_of,
            root,
            tip_keys,
            labels,
            root_time=root_time,
            root_edge=root_edge,
        )

    @classmethod
    def star(cls, tip_labels, edge_length: float = 1.0, root_time=None) -> "Tree":
        """
        Return the fully unresolved (star) tree over *tip_labels*.
        """
        tip_labels = list(tip_labels)
        n = len(tip_labels)
        if n < 2:
            raise GeometryViolationError("A star tree needs at least two tips.")
        edge = np.column_stack(
            [np.full(n, n, dtype=np.int32), np.arange(n, dtype=np.int32)]
        )
        return cls(edge, np.full(n, edge_length), tip_labels, root_time=root_time)

    def copy(self, root_time=_KEEP, root_edge=_KEEP) -> "Tree":
        """
        Return an independent copy, optionally replacing the scalar fields.
        Pass ``None`` explicitly to clear ``root_time`` or ``root_edge``.
        """
        return Tree(
            self.edge.copy(),
            self.edge_length.copy(),
            list(self.tip_labels),
            root_time=self.root_time if root_time is _KEEP else root_time,
            root_edge=self.root_edge if root_edge is _KEEP else root_edge,
        )

    def __repr__(self) -> str:
        rt = "None" if self.root_time is None else f"{self.root_time:g}"
        return f"Tree(n_tips={self.n_tips}, n_nodes={self.n_nodes}, root_time={rt})"

    # ================================================================== #
    # Public methods                                                       #
    # ================================================================== #

    @property
    def has_edge_lengths(self) -> bool:
        """True if every branch length is known."""
        return not bool(np.any(np.isnan(self.edge_length)))

    def is_tip(self, node) -> bool:
        return self.resolve_node(node) < self.n_tips

    def children(self, node) -> list:
        """Child node IDs of *node*, in edge-matrix order."""
        return list(self._children[self.resolve_node(node)])

    def descendant_tips(self, node) -> list:
        """Tip IDs below *node* (the node itself if it is a tip), ascending."""
        start = self.resolve_node(node)
        tips = []
        stack = [start]
        while stack:
            v = stack.pop()
            if v < self.n_tips:
                tips.append(v)
            else:
                stack.extend(self._children[v])
        return sorted(tips)

    def tip_depths(self) -> np.ndarray:
        """Root-to-tip distance of every tip, indexed by tip ID."""
        return self.root_distance[: self.n_tips].copy()

    def mrca(self, nodes) -> int:
        """
        Return the node ID of the most recent common ancestor of *nodes*.

        Parameters
        ----------
        nodes : sequence of (int | str)   Length ≥ 1.

        Raises
        ------
        ValueError   if *nodes* is empty.
        KeyError     if a label is not found.

        Complexity
        ----------
        O(k · h) for k nodes in a tree of height h (edge count).
        """
        nodes = list(nodes)
        if len(nodes) == 0:
            raise ValueError("nodes must contain at least one element.")
        result = self.resolve_node(nodes[0])
        for node in nodes[1:]:
            result = self._lca(result, self.resolve_node(node))
        return result

    def branch_distance(self, u, v) -> float:
        """
        Total branch length between nodes *u* and *v*:

            dist(u, v) = root_distance[u] + root_distance[v]
                         − 2 × root_distance[LCA(u, v)]
        """
        u_id = self.resolve_node(u)
        v_id = self.resolve_node(v)
        if u_id == v_id:
            return 0.0
        lca_id = self._lca(u_id, v_id)
        return float(
            self.root_distance[u_id]
            + self.root_distance[v_id]
            - 2.0 * self.root_distance[lca_id]
        )

    def clades(self) -> list:
        """
        Tip-label sets below every internal node except the root, as
        frozensets, in node-ID order.

        A single-child internal node yields the same clade as its child;
        both are reported.
        """
        below = [None] * self.n_nodes
        for v in self.preorder[::-1]:
            v = int(v)
            if v < self.n_tips:
                below[v] = frozenset((self.tip_labels[v],))
            else:
                below[v] = frozenset().union(*(below[c] for c in self._children[v]))
        return [below[v] for v in range(self.root + 1, self.n_nodes)]

    def to_newick(self, digits=None) -> str:
        """
        Write the tree as a NEWICK string.

        Parameters
        ----------
        digits : int or None
            Fixed number of decimals for branch lengths; ``None`` writes up
            to 12 significant digits.

        Notes
        -----
        Iterative post-order assembly; no recursion.  Unknown (NaN)
        lengths are omitted.
        """
        text = [None] * self.n_nodes
        for v in self.preorder[::-1]:
            v = int(v)
            if v < self.n_tips:
                body = _quote_label(self.tip_labels[v])
            else:
                body = "(" + ",".join(text[c] for c in self._children[v]) + ")"
            length = self.distance[v]
            if v != self.root and not math.isnan(length):
                body += ":" + format_length(float(length), digits)
            text[v] = body
        out = text[self.root]
        if self.root_edge is not None:
            out += ":" + format_length(self.root_edge, digits)
        return format_newick(out)

    def resolve_node(self, node) -> int:
        """
        Return the integer node ID for *node*.

        Integers (including numpy integers) are range-checked and returned
        as plain ``int``; strings are looked up among the tip labels.

        Raises
        ------
        KeyError   if *node* is a label not present in the tree, or an
                   integer outside 0 … n_nodes-1.
        """
        if isinstance(node, (int, np.integer)):
            node = int(node)
            if node < 0 or node >= self.n_nodes:
                raise KeyError(f"No node with ID {node} in tree.")
            return node
        if self._label_index is None:
            self._label_index = {label: i for i, label in enumerate(self.tip_labels)}
        if node not in self._label_index:
            raise KeyError(f"No tip with label '{node}' found in tree.")
        return self._label_index[node]

    # ================================================================== #
    # Private instance methods                                             #
    # ================================================================== #

    def _build_node_arrays(self) -> None:
        """
        **Private.**  Build parent links, child lists and preorder depths.

        Populates
        ---------
        self.parent, self.parent_edge, self.distance, self.root_distance,
        self.depth, self.preorder, self._children
        """
        n_nodes = self.n_nodes
        parent = np.full(n_nodes, -1, dtype=np.int32)
        parent_edge = np.full(n_nodes, -1, dtype=np.int32)
        distance = np.full(n_nodes, np.nan, dtype=np.float64)
        children = [[] for _ in range(n_nodes)]

        for row in range(self.n_edges):
            p = int(self.edge[row, 0])
            c = int(self.edge[row, 1])
            parent[c] = p
            parent_edge[c] = row
            distance[c] = self.edge_length[row]
            children[p].append(c)

        root = int(np.flatnonzero(parent == -1)[0])

        depth = np.zeros(n_nodes, dtype=np.int32)
        root_distance = np.zeros(n_nodes, dtype=np.float64)
        preorder = np.zeros(n_nodes, dtype=np.int32)

        # Explicit stack; children pushed in reverse so the leftmost child
        # is visited first.
        stack = [root]
        pos = 0
        while stack:
            v = stack.pop()
            preorder[pos] = v
            pos += 1
            p = int(parent[v])
            if p != -1:
                depth[v] = depth[p] + 1
                root_distance[v] = root_distance[p] + distance[v]
            stack.extend(reversed(children[v]))

        self.parent = parent
        self.parent_edge = parent_edge
        self.distance = distance
        self.root_distance = root_distance
        self.depth = depth
        self.preorder = preorder
        self._children = children

    def _lca(self, u: int, v: int) -> int:
        """**Private.**  Pairwise LCA by lifting the deeper node first."""
        parent = self.parent
        depth = self.depth
        while depth[u] > depth[v]:
            u = int(parent[u])
        while depth[v] > depth[u]:
            v = int(parent[v])
        while u != v:
            u = int(parent[u])
            v = int(parent[v])
        return u


# ====================================================================== #
# Structural primitives                                                    #
# ====================================================================== #


def drop_tips(tree: Tree, tips) -> Tree:
    """
    Remove *tips* from *tree* and return the pruned tree.

    Internal nodes left without descendants are removed as well, nodes
    left with a single child are collapsed into that child (lengths are
    summed), and a root left with a single child is removed together with
    the edge below it.  ``root_time`` is copied unchanged; use
    ``fix_root_time`` to reconcile it.  ``root_edge`` is kept only if the
    root node survives.

    Parameters
    ----------
    tree : Tree
    tips : int | str | sequence of (int | str)
        Tip IDs or labels.  Internal node IDs are rejected.

    Returns
    -------
    Tree   (a copy when *tips* is empty)

    Raises
    ------
    KeyError                 if a label is not found.
    GeometryViolationError   if fewer than two tips would remain.
    """
    drop = _resolve_tips(tree, tips)
    if not drop:
        return tree.copy()
    if tree.n_tips - len(drop) < 2:
        raise GeometryViolationError(
            f"Dropping {len(drop)} of {tree.n_tips} tips would leave fewer "
            "than two tips."
        )

    children_of, length_of = _adjacency(tree)
    parent_of = {int(c): int(tree.parent[c]) for c in range(tree.n_nodes)}

    # Remove tips, then any internal node emptied by the removal.
    work = sorted(drop)
    while work:
        node = work.pop()
        p = parent_of.pop(node)
        children_of[p].remove(node)
        del children_of[node]
        del length_of[node]
        if not children_of[p]:
            work.append(p)

    # Collapse single-child nodes.  A node's child count never changes
    # when another node is collapsed, so one pass over the initial
    # single-child nodes reaches the fixed point.
    root = tree.root
    singles = [v for v, cs in children_of.items() if len(cs) == 1]
    for node in singles:
        (child,) = children_of.pop(node)
        if node == root:
            root = child
            del length_of[child]
            parent_of.pop(child)
        else:
            p = parent_of.pop(node)
            siblings = children_of[p]
            siblings[siblings.index(node)] = child
            length_of[child] = length_of[child] + length_of.pop(node)
            parent_of[child] = p

    kept = [t for t in range(tree.n_tips) if t not in drop]
    logger.debug("Dropped %d tip(s); %d remain.", len(drop), len(kept))
    return _assemble(
        children_of,
        length_of,
        root,
        kept,
        [tree.tip_labels[t] for t in kept],
        root_time=tree.root_time,
        root_edge=tree.root_edge if root == tree.root else None,
    )


def bind_tip(tree: Tree, tip_label: str, where, edge_length: float, position=0.0) -> Tree:
    """
    Attach a new tip to *tree* and return the enlarged tree.

    Parameters
    ----------
    tree        : Tree
    tip_label   : str     Label of the new tip (must be new).
    where       : int | str   Node ID or tip label to attach at.
    edge_length : float   Length of the new terminal edge.
    position    : float   Distance below *where* at which to attach.

    Semantics
    ---------
    * ``position == 0`` and *where* internal: the new tip becomes an extra
      child of *where*.
    * otherwise a new node is inserted *position* below *where* and the
      new tip hangs from it (a tip attached at ``position == 0`` gains a
      zero-length sister split).
    * at the root, the inserted node becomes the new root and *position*
      is consumed from ``root_edge``.

    The new tip is appended as tip ``n_tips``; node IDs of the result are
    renumbered canonically.  ``root_time`` is copied unchanged.

    Raises
    ------
    GeometryViolationError   if *position* is negative, exceeds the edge
                             below *where*, or exceeds ``root_edge`` at the
                             root.
    StructuralInconsistencyError   if *tip_label* already exists.
    """
    where = tree.resolve_node(where)
    position = float(position)
    if position < 0:
        raise GeometryViolationError(f"position must be non-negative; got {position}.")
    if tip_label in tree.tip_labels:
        raise StructuralInconsistencyError(f"Tip label '{tip_label}' already exists.")

    children_of, length_of = _adjacency(tree)
    new_tip = tree.n_nodes
    new_node = tree.n_nodes + 1
    root = tree.root
    root_edge = tree.root_edge

    if position == 0.0 and where >= tree.n_tips:
        children_of[where].append(new_tip)
    elif where == root:
        if root_edge is None or root_edge < position:
            raise GeometryViolationError(
                f"Cannot attach {position} below the root: root edge is "
                f"{root_edge}."
            )
        children_of[new_node] = [where, new_tip]
        length_of[where] = position
        root = new_node
        root_edge = root_edge - position
    else:
        below = length_of[where]
        if position > below:
            raise GeometryViolationError(
                f"position {position} exceeds the length {below} of the edge "
                f"below node {where}."
            )
        p = int(tree.parent[where])
        siblings = children_of[p]
        siblings[siblings.index(where)] = new_node
        children_of[new_node] = [where, new_tip]
        length_of[new_node] = below - position
        length_of[where] = position

    children_of[new_tip] = []
    length_of[new_tip] = float(edge_length)

    tips = list(range(tree.n_tips)) + [new_tip]
    return _assemble(
        children_of,
        length_of,
        root,
        tips,
        list(tree.tip_labels) + [str(tip_label)],
        root_time=tree.root_time,
        root_edge=root_edge,
    )


# ====================================================================== #
# Private helpers                                                          #
# ====================================================================== #


def _resolve_tips(tree: Tree, tips) -> set:
    if isinstance(tips, (str, int, np.integer)):
        tips = [tips]
    resolved = set()
    for t in tips:
        node = tree.resolve_node(t)
        if node >= tree.n_tips:
            raise KeyError(f"Node {node} is not a tip.")
        resolved.add(node)
    return resolved


def _adjacency(tree: Tree):
    """
    **Private.**  Mutable child lists and parent-edge lengths of *tree*,
    keyed by node ID.  The root has no entry in the length dict.
    """
    children_of = {v: list(tree._children[v]) for v in range(tree.n_nodes)}
    length_of = {
        int(tree.edge[row, 1]): float(tree.edge_length[row])
        for row in range(tree.n_edges)
    }
    return children_of, length_of


def _assemble(
    children_of, length_of, root, tip_keys, tip_labels, root_time=None, root_edge=None
) -> Tree:
    """
    **Private.**  Build a canonical Tree from an adjacency description with
    arbitrary hashable node keys.

    Tips receive IDs in *tip_keys* order, the root receives ``n_tips`` and
    the remaining internal nodes are numbered in preorder.  Edges are
    emitted in preorder, so the edge matrix reads cladewise.

    Raises
    ------
    StructuralInconsistencyError   if a childless node is not listed in
                                   *tip_keys* or a tip is unreachable.
    """
    n_tips = len(tip_keys)
    node_id = {key: i for i, key in enumerate(tip_keys)}
    if len(node_id) != n_tips:
        raise StructuralInconsistencyError("Tip keys must be unique.")

    next_internal = n_tips
    parents = []
    children = []
    lengths = []

    stack = [(root, None)]
    while stack:
        key, parent_key = stack.pop()
        kids = children_of.get(key, ())
        if kids:
            if key in node_id:
                raise StructuralInconsistencyError(
                    f"Tip {key!r} has descendants."
                )
            node_id[key] = next_internal
            next_internal += 1
        elif key not in node_id:
            raise StructuralInconsistencyError(
                f"Childless node {key!r} is not a tip."
            )
        if parent_key is not None:
            parents.append(node_id[parent_key])
            children.append(node_id[key])
            lengths.append(length_of[key])
        for kid in reversed(kids):
            stack.append((kid, key))

    if len(children) != next_internal - 1:
        raise StructuralInconsistencyError(
            "Some tips are not reachable from the root."
        )

    return Tree(
        np.column_stack(
            [np.asarray(parents, dtype=np.int32), np.asarray(children, dtype=np.int32)]
        ),
        np.asarray(lengths, dtype=np.float64),
        tip_labels,
        root_time=root_time,
        root_edge=root_edge,
    )


def _parse_newick(newick_string: str):
    """
    **Private.**  Iterative, stack-based NEWICK scan.

    Returns
    -------
    (children_of, length_of, root_key, tip_keys, tip_labels)
        Node keys are integers in order of completion; the root key is the
        last one.  Absent lengths are NaN.

    Notes
    -----
    Single-quoted labels may contain delimiters; ``''`` inside quotes is
    an escaped quote.  Whitespace outside quotes is ignored.
    """
    s = format_newick(newick_string)
    n_chars = len(s) - 1  # drop ';'

    children_of = {}
    length_of = {}
    tip_keys = []
    tip_labels = []
    open_groups = []
    completed = []
    next_key = 0

    i = 0
    while i < n_chars:
        c = s[i]

        if c in " \t\r\n":
            i += 1
            continue

        if c == "(":
            open_groups.append([])
            i += 1
            continue

        if c == ",":
            if not open_groups:
                raise StructuralInconsistencyError(
                    f"Unexpected ',' at position {i} outside parentheses."
                )
            i += 1
            continue

        if c == ")":
            if not open_groups:
                raise StructuralInconsistencyError(
                    f"Unbalanced ')' at position {i}."
                )
            key = next_key
            next_key += 1
            children_of[key] = open_groups.pop()
            i += 1
            _, i = _read_label(s, i, n_chars)  # support value; discarded
        else:
            label, i = _read_label(s, i, n_chars)
            key = next_key
            next_key += 1
            children_of[key] = []
            tip_keys.append(key)
            tip_labels.append(label)

        length, i = _read_length(s, i, n_chars)
        length_of[key] = length
        if open_groups:
            open_groups[-1].append(key)
        else:
            completed.append(key)

    if open_groups:
        raise StructuralInconsistencyError("Unbalanced '(' in NEWICK string.")
    if len(completed) != 1:
        raise StructuralInconsistencyError(
            f"NEWICK string must describe one tree; found {len(completed)} "
            "top-level groups."
        )
    if len(tip_keys) < 2:
        raise StructuralInconsistencyError("A tree needs at least two tips.")
    return children_of, length_of, completed[0], tip_keys, tip_labels


def _read_label(s: str, i: int, n_chars: int):
    while i < n_chars and s[i] in " \t":
        i += 1
    if i < n_chars and s[i] == "'":
        j = i + 1
        parts = []
        while j < n_chars:
            if s[j] == "'":
                if j + 1 < n_chars and s[j + 1] == "'":
                    parts.append("'")
                    j += 2
                    continue
                break
            parts.append(s[j])
            j += 1
        return "".join(parts), j + 1
    j = i
    while j < n_chars and s[j] not in _NEWICK_DELIMITERS and s[j] not in " \t\r\n":
        j += 1
    return s[i:j], j


def _read_length(s: str, i: int, n_chars: int):
    while i < n_chars and s[i] in " \t\r\n":
        i += 1
    if i < n_chars and s[i] == ":":
        i += 1
        while i < n_chars and s[i] in " \t":
            i += 1
        j = i
        while j < n_chars and s[j] not in ",);" and s[j] not in " \t\r\n":
            j += 1
        return float(s[i:j]), j
    return math.nan, i


def _quote_label(label: str) -> str:
    if any(ch in label for ch in _NEWICK_DELIMITERS + " '[]"):
        return "'" + label.replace("'", "''") + "'"
    return label
