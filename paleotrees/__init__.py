"""
paleotrees
==========

Dated phylogenies for the fossil record: build trees from ancestor-descendant
taxon tables and edit their terminal branches while keeping the absolute
age of the root consistent.

Main Classes
------------
Tree : Rooted tree with branch lengths and an optional absolute root age
TaxonTable : Ancestor-descendant table of taxa and their stratigraphic ranges

Tree Construction
-----------------
taxa2phylo : Convert a taxon table into a dated tree of observed taxa

Root Time
---------
fix_root_time : Carry the root age of a tree over to an edited copy
date_nodes : Absolute age of every node

Terminal Branch Editing
-----------------------
drop_zlb : Drop tips on zero-length terminal branches
drop_extinct : Keep only tips that reach the present
drop_extant : Keep only tips that end before the present
add_term_branch_length : Lengthen every terminal branch
drop_paleo_tip : Drop tips and reconcile the root age
bind_paleo_tip : Attach a tip by its age
time_slice_tree : Cut a tree at an absolute time

Comparison
----------
tree_contradiction : Count clades that contradict between two trees

Validation
----------
test_parent_child : Does a parent/child list form a single rooted tree?
test_edge_matrix : Does an edge matrix form a single rooted tree?

Context Managers
----------------
quiet : Suppress logging during operations
suppress_logger : Suppress specific logger
use_tie_break : Choose how taxa2phylo orders simultaneous originations

Examples
--------
>>> from paleotrees import TaxonTable, taxa2phylo, drop_paleo_tip
>>> taxa = TaxonTable([1, 2], [-1, 1], [10.0, 6.0], [0.0, 2.0])
>>> tree = taxa2phylo(taxa, rng=1)
>>> tree.to_newick()
'(t1:6,t2:4);'
>>> tree.root_time
6.0

>>> from paleotrees import Tree
>>> tree = Tree.from_newick("(A:3,(B:2,(C:5,D:3):2):3);", root_time=10)
>>> drop_paleo_tip(tree, "A").root_time
7.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Main classes
from ._tree import Tree, drop_tips, bind_tip
from ._taxa import TaxonTable

# Operations
from ._taxa2phylo import taxa2phylo, TIE_BREAK_STRATEGIES
from ._root_time import fix_root_time, date_nodes
from ._terminal import (
    drop_zlb,
    drop_extinct,
    drop_extant,
    add_term_branch_length,
    drop_paleo_tip,
    bind_paleo_tip,
    time_slice_tree,
)
from ._contradiction import tree_contradiction
from ._validate import test_parent_child, test_edge_matrix

# Context managers (user-facing utilities)
from ._context import (
    suppress_logger,
    quiet,
    use_tie_break,
    get_tie_break_override,
)

# Errors
from ._errors import (
    PaleoTreeError,
    StructuralInconsistencyError,
    RangeViolationError,
    GeometryViolationError,
    ConfigConflictError,
)

# Utilities (generally useful functions)
from ._utils import jaccard_similarity, format_newick

# Public API
__all__ = [
    # Main classes
    "Tree",
    "TaxonTable",
    # Operations
    "taxa2phylo",
    "TIE_BREAK_STRATEGIES",
    "fix_root_time",
    "date_nodes",
    "drop_zlb",
    "drop_extinct",
    "drop_extant",
    "add_term_branch_length",
    "drop_paleo_tip",
    "bind_paleo_tip",
    "time_slice_tree",
    "tree_contradiction",
    "drop_tips",
    "bind_tip",
    # Validation
    "test_parent_child",
    "test_edge_matrix",
    # Context managers
    "suppress_logger",
    "quiet",
    "use_tie_break",
    "get_tie_break_override",
    # Errors
    "PaleoTreeError",
    "StructuralInconsistencyError",
    "RangeViolationError",
    "GeometryViolationError",
    "ConfigConflictError",
    # Utilities
    "jaccard_similarity",
    "format_newick",
    # Version info
    "__version__",
]
