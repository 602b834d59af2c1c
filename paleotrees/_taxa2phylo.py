"""
_taxa2phylo.py
==============
Conversion of a taxon-range table into a dated phylogeny whose tips are the
populations present at chosen observation times.

Public API
----------
  taxa2phylo(taxa, obs_time=None, tie_break=None, rng=None) -> Tree

Algorithm
---------
Every taxon's range is cut into *lineage segments* at the origination times
of its direct descendants (budding speciation).  Each segment becomes an
edge whose child node is the end of the segment:

  segment k of taxon a   →  mother of segment k+1 of a
                          →  mother of the first segment of the descendant
                             originating at the end of segment k

Observations are inserted as zero-duration pseudo-taxa descending from the
observed taxon, so the tips of the tree are exactly the observations.  The
segment graph is then reduced:

  1. root pruning    — everything above the first true branch point goes;
  2. terminal pruning — terminal segments of real taxa (scaffolding for
                        unobserved lineages) are removed to a fixed point;
  3. singleton collapse — single-child segments are merged into their child.

Segments live in flat numpy arrays indexed by segment ID; both reductions
are explicit work-lists, with no recursion.

Time convention
---------------
Input times are time before present.  Internally all times are converted to
forward time ``T - t`` (``T`` = oldest time in the table) so that segment
lengths are plain differences of consecutive event times.
"""

import logging
import numpy as np

from paleotrees._context import get_tie_break_override
from paleotrees._errors import (
    GeometryViolationError,
    RangeViolationError,
    StructuralInconsistencyError,
)
from paleotrees._logging import (
    log_conversion_summary,
    log_root_offset,
    log_tie_breaks,
    log_time_flip,
)
from paleotrees._taxa import TaxonTable
from paleotrees._tree import _assemble
from paleotrees._validate import test_edge_matrix, test_parent_child

logger = logging.getLogger(__name__)


# ====================================================================== #
# Tie-break strategies                                                     #
# ====================================================================== #


def _tie_break_random(births: np.ndarray, rng) -> np.ndarray:
    """Ascending births; ties in uniformly random order."""
    return np.lexsort((rng.random(len(births)), births))


def _tie_break_stable(births: np.ndarray, rng) -> np.ndarray:
    """Ascending births; ties in table order."""
    return np.argsort(births, kind="stable")


TIE_BREAK_STRATEGIES = {
    "random": _tie_break_random,
    "stable": _tie_break_stable,
}


def _resolve_tie_break(tie_break):
    if tie_break is None:
        tie_break = get_tie_break_override()
    if tie_break is None:
        tie_break = "random"
    if callable(tie_break):
        return getattr(tie_break, "__name__", "custom"), tie_break
    if tie_break not in TIE_BREAK_STRATEGIES:
        raise ValueError(
            f"Tie-break '{tie_break}' not available. "
            f"Available strategies: {', '.join(TIE_BREAK_STRATEGIES)}"
        )
    return tie_break, TIE_BREAK_STRATEGIES[tie_break]


# ====================================================================== #
# Public API                                                               #
# ====================================================================== #


def taxa2phylo(taxa, obs_time=None, tie_break=None, rng=None):
    """
    Convert taxon ranges and ancestor-descendant relationships into a dated
    phylogeny with tips at instantaneous observation times.

    Branching points are the actual origination times of taxa, which under
    budding usually fall in the middle of the ancestor's range.  The result
    describes the "true" history of the sampled populations and is meant
    for simulation studies; it is not a dating method for real data.

    Parameters
    ----------
    taxa : TaxonTable or array-like (n_taxa, >=4)
        Columns id, ancestor id, first appearance, last appearance (time
        before present).  Row labels become tip labels.
    obs_time : array-like (n_taxa,) or None
        Per-taxon observation time in the same order as *taxa*; NaN marks
        an unobserved taxon, which is left off the tree.  ``None`` observes
        every taxon at its last appearance.
    tie_break : str, callable or None
        Order of descendants originating at the same instant: 'random',
        'stable' or ``f(births, rng) -> order``.  ``None`` uses the
        ``use_tie_break`` override, else 'random'.
    rng : numpy.random.Generator, int or None
        Random generator (or seed) used by the tie-break.

    Returns
    -------
    Tree
        Tips are the observed taxa in order of decreasing first appearance;
        ``root_time`` is the absolute age of the root.

    Raises
    ------
    StructuralInconsistencyError
        Malformed ancestor graph: duplicated IDs, unknown ancestors, zero
        or several roots, a taxon older than the root, cycles.
    RangeViolationError
        Observation times outside their taxon's range, an ``obs_time`` of
        the wrong length, inverted intervals, or a descendant originating
        outside its ancestor's range.
    GeometryViolationError
        Fewer than two taxa observed.
    RuntimeError
        Internal invariant violated while building the tree.

    Examples
    --------
    >>> taxa = TaxonTable.from_records([
    ...     ("t1", 1, None, 10.0, 0.0),
    ...     ("t2", 2, 1, 6.0, 2.0),
    ... ])
    >>> tree = taxa2phylo(taxa)
    >>> tree.to_newick()
    '(t1:6,t2:4);'
    >>> tree.root_time
    6.0
    """
    taxa = TaxonTable.from_array(taxa)
    n = taxa.n_taxa
    labels = list(taxa.labels)
    fad_b = np.array(taxa.first_appearance, dtype=np.float64)
    lad_b = np.array(taxa.last_appearance, dtype=np.float64)

    if obs_time is None:
        obs_b = lad_b.copy()
    else:
        obs_b = np.asarray(obs_time, dtype=np.float64).ravel()
        if obs_b.shape[0] != n:
            raise RangeViolationError(
                f"obs_time has {obs_b.shape[0]} values for {n} taxa."
            )

    # ---- Time orientation ------------------------------------------- #
    duration = fad_b - lad_b
    if np.all(duration <= 0) and np.any(duration < 0):
        t_max = float(max(fad_b.max(), lad_b.max()))
        log_time_flip(n, t_max)
        fad_b = t_max - fad_b
        lad_b = t_max - lad_b
        if obs_time is not None:
            obs_b = t_max - obs_b
        else:
            obs_b = lad_b.copy()
    inverted = np.flatnonzero(fad_b - lad_b < 0)
    if len(inverted) > 0:
        raise RangeViolationError(
            "Last appearances occur before first appearances for: "
            + ", ".join(labels[i] for i in inverted[:10])
        )

    observed = ~np.isnan(obs_b)
    out_of_range = observed & ((obs_b > fad_b) | (obs_b < lad_b))
    if np.any(out_of_range):
        bad = [labels[i] for i in np.flatnonzero(out_of_range)[:10]]
        raise RangeViolationError(
            "obs_time outside of the taxon ranges for: " + ", ".join(bad)
        )
    if int(observed.sum()) < 2:
        raise GeometryViolationError(
            f"At least two observed taxa are needed; got {int(observed.sum())}."
        )

    # ---- Normalize ordering ----------------------------------------- #
    ids = taxa.taxon_id
    unique_ids, counts = np.unique(ids, return_counts=True)
    if np.any(counts > 1):
        raise StructuralInconsistencyError(
            "Duplicated taxon IDs in input: "
            + " ".join(str(int(i)) for i in unique_ids[counts > 1])
        )
    is_root = taxa.ancestor_id < 0
    n_roots = int(is_root.sum())
    if n_roots > 1:
        raise StructuralInconsistencyError(
            "Multiple taxa listed as an apparent root (no ancestor)."
        )
    if n_roots < 1:
        raise StructuralInconsistencyError(
            "No taxon is listed as an apparent root (no ancestor)."
        )

    # Descending first appearance; the root wins ties.
    order = np.lexsort((~is_root, -fad_b))
    if not is_root[order[0]]:
        raise StructuralInconsistencyError(
            "The root taxon must have the earliest first appearance; "
            f"{labels[order[0]]} is older than the root."
        )
    row_of_id = {int(ids[old]): new for new, old in enumerate(order)}
    anc_row = np.full(n, -1, dtype=np.int64)
    for new, old in enumerate(order):
        a = int(taxa.ancestor_id[old])
        if a < 0:
            continue
        if a not in row_of_id:
            raise StructuralInconsistencyError(
                f"Ancestor ID {a} of taxon {labels[old]} is not in the table."
            )
        anc_row[new] = row_of_id[a]

    if not test_parent_child(
        [None if a < 0 else int(a) for a in anc_row], list(range(n))
    ):
        raise StructuralInconsistencyError(
            "Input ancestor-descendant relationships are inconsistent."
        )

    labels = [labels[i] for i in order]
    fad_b = fad_b[order]
    lad_b = lad_b[order]
    obs_b = obs_b[order]
    observed = observed[order]

    # ---- Forward time and observation pseudo-taxa ---------------------- #
    t_max = float(max(fad_b.max(), lad_b.max()))
    obs_rows = np.flatnonzero(observed)
    m = len(obs_rows)
    n_all = n + m

    anc_all = np.concatenate([anc_row, obs_rows]).astype(np.int64)
    fad_f = np.concatenate([t_max - fad_b, t_max - obs_b[obs_rows]])
    lad_f = np.concatenate([t_max - lad_b, t_max - obs_b[obs_rows]])

    # ---- Segment expansion -------------------------------------------- #
    if rng is None or isinstance(rng, (int, np.integer)):
        rng = np.random.default_rng(rng)
    strategy_name, strategy = _resolve_tie_break(tie_break)

    desc = [[] for _ in range(n_all)]
    for row in range(1, n_all):
        desc[int(anc_all[row])].append(row)

    n_tie_groups = 0
    n_tied = 0
    for a in range(n_all):
        if len(desc[a]) < 2:
            continue
        kids = np.asarray(desc[a], dtype=np.int64)
        births = fad_f[kids]
        _, tie_counts = np.unique(births, return_counts=True)
        n_tie_groups += int(np.sum(tie_counts > 1))
        n_tied += int(tie_counts[tie_counts > 1].sum())
        desc[a] = [int(k) for k in kids[np.asarray(strategy(births, rng))]]
        if len(set(desc[a])) != len(kids):
            raise ValueError(
                f"Tie-break '{strategy_name}' did not return a permutation."
            )
    log_tie_breaks(n_tie_groups, n_tied, strategy_name)

    n_seg_per_taxon = np.array([len(d) + 1 for d in desc], dtype=np.int64)
    first_seg = np.concatenate([[0], np.cumsum(n_seg_per_taxon)[:-1]])
    n_seg = int(n_seg_per_taxon.sum())

    seg_taxon = np.repeat(np.arange(n_all, dtype=np.int64), n_seg_per_taxon)
    seg_length = np.empty(n_seg, dtype=np.float64)
    seg_mother = np.full(n_seg, -1, dtype=np.int64)

    for a in range(n_all):
        s0 = int(first_seg[a])
        times = np.concatenate([[fad_f[a]], fad_f[desc[a]], [lad_f[a]]])
        seg_length[s0 : s0 + len(times) - 1] = np.diff(times)
        seg_mother[s0 + 1 : s0 + len(times) - 1] = np.arange(
            s0, s0 + len(times) - 2
        )
        for k, d in enumerate(desc[a]):
            seg_mother[first_seg[d]] = s0 + k

    negative = np.flatnonzero(seg_length < 0)
    if len(negative) > 0:
        bad = sorted({labels[int(seg_taxon[s])] for s in negative if seg_taxon[s] < n})
        raise RangeViolationError(
            "Descendants originate outside the range of ancestor taxa: "
            + ", ".join(bad[:10])
        )

    logger.debug(
        "Segment arena: %d segments for %d taxa and pseudo-taxa.", n_seg, n_all
    )

    kids_of = [[] for _ in range(n_seg)]
    for s in range(n_seg):
        if seg_mother[s] >= 0:
            kids_of[int(seg_mother[s])].append(s)

    # ---- Root pruning -------------------------------------------------- #
    alive = np.ones(n_seg, dtype=bool)
    root = int(first_seg[0])
    while len(kids_of[root]) == 1:
        alive[root] = False
        root = kids_of[root][0]
    if len(kids_of[root]) == 0:
        raise RuntimeError("Segment graph has no branching point.")
    alive[root] = False  # the root is a node, not an edge

    # ---- Unobserved-terminal pruning ------------------------------------ #
    n_pruned = 0
    work = [
        s
        for s in range(n_seg)
        if alive[s] and not kids_of[s] and seg_taxon[s] < n
    ]
    while work:
        s = work.pop()
        alive[s] = False
        n_pruned += 1
        mother = int(seg_mother[s])
        kids_of[mother].remove(s)
        if mother != root and not kids_of[mother] and seg_taxon[mother] < n:
            work.append(mother)

    # ---- Singleton collapse ------------------------------------------- #
    n_collapsed = 0
    singles = [root] if len(kids_of[root]) == 1 else []
    singles += [s for s in range(n_seg) if alive[s] and len(kids_of[s]) == 1]
    for s in singles:
        (child,) = kids_of[s]
        kids_of[s] = []
        n_collapsed += 1
        if s == root:
            root = child
            alive[child] = False
        else:
            mother = int(seg_mother[s])
            siblings = kids_of[mother]
            siblings[siblings.index(s)] = child
            seg_length[child] += seg_length[s]
            seg_mother[child] = mother
            alive[s] = False

    # ---- Canonical numbering ------------------------------------------- #
    edges = np.flatnonzero(alive)
    tip_segs = [int(first_seg[n + k]) for k in range(m)]
    terminals = {int(s) for s in edges if not kids_of[s]}
    if terminals != set(tip_segs):
        raise RuntimeError(
            "Terminal segments do not match the observations "
            f"({len(terminals)} terminals for {m} observations)."
        )
    if np.any(np.isnan(seg_length[edges])):
        raise RuntimeError("NaN introduced into edge lengths.")
    edge_matrix = np.column_stack([seg_mother[edges], edges])
    if not test_edge_matrix(edge_matrix):
        raise RuntimeError("Produced edge matrix is inconsistent.")

    children_of = {root: kids_of[root]}
    children_of.update({int(s): kids_of[s] for s in edges})
    length_of = {int(s): float(seg_length[s]) for s in edges}
    tree = _assemble(
        children_of,
        length_of,
        root,
        tip_segs,
        [labels[int(r)] for r in obs_rows],
    )

    # ---- Root time ------------------------------------------------------ #
    first_obs_time = float(np.max(obs_b[obs_rows]))
    root_time = first_obs_time + float(np.min(tree.tip_depths()))
    root_offset = root_time - float(np.max(tree.root_distance))
    if root_offset < 0:
        log_root_offset(root_offset)
        root_time -= root_offset
    tree = tree.copy(root_time=root_time)

    log_conversion_summary(
        n,
        m,
        n_seg,
        n_pruned,
        n_collapsed,
        tree.n_tips,
        tree.n_nodes,
        root_time,
    )
    return tree
