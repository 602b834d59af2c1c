"""
_logging.py
===========
Logging functions for paleotrees.

All functions in this module have NO side effects except logging. They take
computed data as parameters and format/emit log messages.

This separation ensures:
- Logging can be easily disabled/mocked in tests
- Computation is separate from presentation
- Clear boundaries between analysis and reporting
"""

import logging
from typing import List, Optional

from paleotrees._utils import jaccard_similarity


logger = logging.getLogger(__name__)


# ============================================================================ #
# Tree construction (taxa2phylo)
# ============================================================================ #


def log_time_flip(n_taxa: int, max_time: float) -> None:
    """
    Warn that a taxon table was read as forward time and flipped.

    Parameters
    ----------
    n_taxa : int
        Number of rows in the table.
    max_time : float
        Latest time in the table; becomes the present after the flip.
    """
    logger.warning(
        "All %d taxon intervals run forward in time (first <= last); "
        "interpreting times as elapsed time and converting to time before "
        "present with %g as the present.",
        n_taxa,
        max_time,
    )


def log_tie_breaks(n_groups: int, n_taxa: int, strategy: str) -> None:
    """
    Report simultaneous originations resolved by the tie-break strategy.

    Parameters
    ----------
    n_groups : int
        Number of groups of descendants sharing an origination time.
    n_taxa : int
        Total number of descendants in those groups.
    strategy : str
        Name of the strategy used.
    """
    if n_groups == 0:
        return
    logger.info(
        "%d group(s) of simultaneous originations (%d taxa) ordered by "
        "tie-break '%s'.",
        n_groups,
        n_taxa,
        strategy,
    )
    if strategy == "random":
        logger.info(
            "  Topology near these originations depends on the random "
            "generator; pass rng= for reproducible trees."
        )


def log_conversion_summary(
    n_taxa: int,
    n_observed: int,
    n_segments: int,
    n_pruned: int,
    n_collapsed: int,
    n_tips: int,
    n_nodes: int,
    root_time: float,
) -> None:
    """
    Log statistics of one taxa-to-tree conversion.

    Parameters
    ----------
    n_taxa : int
        Rows in the taxon table.
    n_observed : int
        Taxa with an observation time.
    n_segments : int
        Lineage segments created before pruning.
    n_pruned : int
        Unobserved terminal segments removed.
    n_collapsed : int
        Single-child segments merged into their child.
    n_tips, n_nodes : int
        Size of the resulting tree.
    root_time : float
        Absolute age assigned to the root.
    """
    logger.info(
        "Converted %d taxa (%d observed) into %d lineage segments",
        n_taxa,
        n_observed,
        n_segments,
    )
    logger.info(
        "  pruned %d unobserved terminal segment(s), collapsed %d "
        "single-child segment(s)",
        n_pruned,
        n_collapsed,
    )
    logger.info(
        "Tree built: %d tips, %d nodes, root time %g", n_tips, n_nodes, root_time
    )


def log_root_offset(offset: float) -> None:
    """Report that the root time was raised to keep every node in the past."""
    logger.info(
        "Root time raised by %g so that no node is younger than the present.",
        -offset,
    )


# ============================================================================ #
# Tree editing
# ============================================================================ #


def log_assumed_present(operation: str) -> None:
    """
    Notice emitted when a tree without a root time is interpreted with the
    latest tip at the present.
    """
    logger.warning(
        "%s: no root_time; assuming the latest tip is at the present (time = 0).",
        operation,
    )


def log_dropped_tips(operation: str, dropped: List[str], n_remaining: int) -> None:
    """
    Log how many tips an editing operation removed.

    Parameters
    ----------
    operation : str
        Name of the editing function.
    dropped : List[str]
        Labels of the removed tips.
    n_remaining : int
        Tips left in the result.
    """
    if not dropped:
        logger.info("%s: no tips dropped (%d tips).", operation, n_remaining)
        return
    if len(dropped) <= 5:
        logger.info(
            "%s: dropped %s; %d tips remain.",
            operation,
            ", ".join(dropped),
            n_remaining,
        )
    else:
        logger.info(
            "%s: dropped %d tips; %d tips remain.",
            operation,
            len(dropped),
            n_remaining,
        )


def log_root_time_change(
    old_root_time: Optional[float], new_root_time: Optional[float]
) -> None:
    """Log a root-time change when it actually moved."""
    if old_root_time is None or new_root_time is None:
        return
    if old_root_time != new_root_time:
        logger.info("root_time shifted from %g to %g", old_root_time, new_root_time)


def log_negative_edge(edge_length: float) -> None:
    """Warning for a negative terminal edge accepted on request."""
    logger.warning(
        "Negative edge length %g created because the tip age is older than "
        "the attachment point.",
        edge_length,
    )


# ============================================================================ #
# Tree comparison
# ============================================================================ #


def log_tip_overlap(labels_a: set, labels_b: set) -> None:
    """
    Log the overlap of two trees' tip sets before pruning to shared tips.

    Parameters
    ----------
    labels_a, labels_b : set
        Tip labels of the two trees.
    """
    shared = len(labels_a & labels_b)
    if shared == len(labels_a) == len(labels_b):
        return
    logger.info(
        "Comparing trees with %d and %d tips: %d shared (Jaccard %.3f); "
        "unshared tips are dropped.",
        len(labels_a),
        len(labels_b),
        shared,
        jaccard_similarity(labels_a, labels_b),
    )
