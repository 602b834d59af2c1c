"""
tests/test_taxa2phylo.py
========================
Tests for the conversion of taxon-range tables into dated trees.

Reference tables
----------------
two_taxa      t1 (root) 10 → 0,  t2 (from t1) 6 → 2
              tree (t1:6,t2:4), root at 6

chain         t1 (root) 10 → 0,  t2 (from t1) 8 → 3,  t3 (from t2) 5 → 1
              tree (t1:8,(t2:2,t3:4):3), root at 8

tied          t1 (root) 10 → 0,  t2 and t3 (both from t1) originate at 6
              t2 ends at 2, t3 at 1; the order of t2 and t3 along t1
              decides which of them is sister to t1.
"""

import os
import sys
import logging

import pytest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from paleotrees._taxa import TaxonTable
from paleotrees._taxa2phylo import taxa2phylo
from paleotrees._context import use_tie_break
from paleotrees._validate import test_edge_matrix
from paleotrees._errors import (
    GeometryViolationError,
    RangeViolationError,
    StructuralInconsistencyError,
)


# ======================================================================== #
# Fixtures                                                                  #
# ======================================================================== #


@pytest.fixture(scope="module")
def two_taxa():
    return TaxonTable.from_records(
        [("t1", 1, None, 10.0, 0.0), ("t2", 2, 1, 6.0, 2.0)]
    )


@pytest.fixture(scope="module")
def chain():
    return TaxonTable.from_records(
        [
            ("t1", 1, None, 10.0, 0.0),
            ("t2", 2, 1, 8.0, 3.0),
            ("t3", 3, 2, 5.0, 1.0),
        ]
    )


@pytest.fixture(scope="module")
def tied():
    return TaxonTable.from_records(
        [
            ("t1", 1, None, 10.0, 0.0),
            ("t2", 2, 1, 6.0, 2.0),
            ("t3", 3, 1, 6.0, 1.0),
        ]
    )


def budding_table(n_taxa: int) -> TaxonTable:
    """
    Deterministic budding history: taxon k buds from taxon k // 2 shortly
    after the ancestor's first appearance; every range lasts 30 time units
    or until the present.
    """
    fad = np.zeros(n_taxa + 1)
    fad[1] = 100.0
    anc = [-1] * (n_taxa + 1)
    for k in range(2, n_taxa + 1):
        anc[k] = k // 2
        fad[k] = fad[k // 2] - (1.0 + 0.25 * (k % 4))
    lad = np.maximum(fad - 30.0, 0.0)
    ids = np.arange(1, n_taxa + 1)
    return TaxonTable(ids, anc[1:], fad[1:], lad[1:])


def tip_ages(tree) -> dict:
    ages = tree.root_time - tree.tip_depths()
    return dict(zip(tree.tip_labels, ages))


# ======================================================================== #
# 1. Reference conversions                                                  #
# ======================================================================== #


class TestReferenceTrees:
    def test_two_taxa(self, two_taxa):
        tree = taxa2phylo(two_taxa)
        assert tree.to_newick() == "(t1:6,t2:4);"
        assert tree.root_time == 6.0

    def test_chain(self, chain):
        tree = taxa2phylo(chain)
        assert tree.to_newick() == "(t1:8,(t2:2,t3:4):3);"
        assert tree.root_time == 8.0

    def test_chain_tip_ages_are_last_appearances(self, chain):
        assert tip_ages(taxa2phylo(chain)) == {"t1": 0.0, "t2": 3.0, "t3": 1.0}

    def test_unobserved_taxon_pruned(self, chain):
        tree = taxa2phylo(chain, obs_time=[0.0, np.nan, 1.0])
        assert tree.to_newick() == "(t1:8,t3:7);"
        assert tree.root_time == 8.0

    def test_observations_inside_ranges(self, chain):
        tree = taxa2phylo(chain, obs_time=[5.0, 4.0, 2.0])
        assert tree.to_newick() == "(t1:3,(t2:1,t3:3):3);"
        assert tip_ages(tree) == {"t1": 5.0, "t2": 4.0, "t3": 2.0}

    def test_matrix_input(self):
        matrix = np.array([[1, np.nan, 10.0, 0.0], [2, 1, 6.0, 2.0]])
        tree = taxa2phylo(matrix)
        assert tree.to_newick() == "(t1:6,t2:4);"

    def test_row_order_irrelevant(self, chain):
        reordered = TaxonTable.from_records(
            [
                ("t3", 3, 2, 5.0, 1.0),
                ("t1", 1, None, 10.0, 0.0),
                ("t2", 2, 1, 8.0, 3.0),
            ]
        )
        assert taxa2phylo(reordered).to_newick() == taxa2phylo(chain).to_newick()

    def test_tips_ordered_by_first_appearance(self, chain):
        tree = taxa2phylo(chain)
        assert tree.tip_labels == ["t1", "t2", "t3"]

    def test_forward_time_is_flipped(self, caplog):
        forward = TaxonTable.from_records(
            [("t1", 1, None, 0.0, 10.0), ("t2", 2, 1, 4.0, 8.0)]
        )
        with caplog.at_level(logging.WARNING, logger="paleotrees"):
            tree = taxa2phylo(forward)
        assert tree.to_newick() == "(t1:6,t2:4);"
        assert tree.root_time == 6.0
        assert "forward in time" in caplog.text

    def test_summary_logged(self, chain, caplog):
        with caplog.at_level(logging.INFO, logger="paleotrees"):
            taxa2phylo(chain)
        assert "Tree built: 3 tips" in caplog.text


# ======================================================================== #
# 2. Simultaneous originations                                              #
# ======================================================================== #


class TestTieBreak:
    def test_stable_order(self, tied):
        tree = taxa2phylo(tied, tie_break="stable")
        assert tree.to_newick() == "((t1:6,t3:5):0,t2:4);"
        assert frozenset(["t1", "t3"]) in tree.clades()

    def test_custom_callable(self, tied):
        def reverse_ties(births, rng):
            return np.lexsort((-np.arange(len(births)), births))

        tree = taxa2phylo(tied, tie_break=reverse_ties)
        assert frozenset(["t1", "t2"]) in tree.clades()

    def test_random_is_reproducible_with_seed(self, tied):
        first = taxa2phylo(tied, tie_break="random", rng=42)
        second = taxa2phylo(tied, tie_break="random", rng=np.random.default_rng(42))
        assert first.to_newick() == second.to_newick()

    def test_random_gives_valid_tree(self, tied):
        tree = taxa2phylo(tied, rng=7)
        assert sorted(tree.tip_labels) == ["t1", "t2", "t3"]
        assert tip_ages(tree) == {"t1": 0.0, "t2": 2.0, "t3": 1.0}

    def test_context_override(self, tied):
        with use_tie_break("stable"):
            tree = taxa2phylo(tied)
        assert tree.to_newick() == "((t1:6,t3:5):0,t2:4);"

    def test_explicit_argument_beats_override(self, tied):
        def reverse_ties(births, rng):
            return np.lexsort((-np.arange(len(births)), births))

        with use_tie_break("stable"):
            tree = taxa2phylo(tied, tie_break=reverse_ties)
        assert frozenset(["t1", "t2"]) in tree.clades()

    def test_unknown_strategy(self, tied):
        with pytest.raises(ValueError, match="not available"):
            taxa2phylo(tied, tie_break="alphabetical")

    def test_non_permutation_rejected(self, tied):
        with pytest.raises(ValueError, match="permutation"):
            taxa2phylo(tied, tie_break=lambda births, rng: np.zeros(len(births), int))

    def test_tie_groups_logged(self, tied, caplog):
        with caplog.at_level(logging.INFO, logger="paleotrees"):
            taxa2phylo(tied, tie_break="stable")
        assert "simultaneous originations" in caplog.text


# ======================================================================== #
# 3. Invalid input                                                          #
# ======================================================================== #


class TestErrors:
    def test_two_roots(self):
        taxa = TaxonTable([1, 2], [-1, -1], [10.0, 6.0], [0.0, 2.0])
        with pytest.raises(StructuralInconsistencyError, match="Multiple"):
            taxa2phylo(taxa)

    def test_no_root(self):
        taxa = TaxonTable([1, 2], [2, 1], [10.0, 6.0], [0.0, 2.0])
        with pytest.raises(StructuralInconsistencyError, match="No taxon"):
            taxa2phylo(taxa)

    def test_unknown_ancestor(self):
        taxa = TaxonTable([1, 2], [-1, 9], [10.0, 6.0], [0.0, 2.0])
        with pytest.raises(StructuralInconsistencyError, match="not in the table"):
            taxa2phylo(taxa)

    def test_duplicated_ids(self):
        taxa = TaxonTable([1, 2, 2], [-1, 1, 1], [10.0, 6.0, 5.0], [0.0, 2.0, 1.0])
        with pytest.raises(StructuralInconsistencyError, match="Duplicated"):
            taxa2phylo(taxa)

    def test_root_not_oldest(self):
        taxa = TaxonTable([1, 2], [-1, 1], [10.0, 12.0], [0.0, 2.0])
        with pytest.raises(StructuralInconsistencyError, match="earliest"):
            taxa2phylo(taxa)

    def test_cycle(self):
        taxa = TaxonTable(
            [1, 2, 3], [-1, 3, 2], [10.0, 6.0, 5.0], [0.0, 2.0, 1.0]
        )
        with pytest.raises(StructuralInconsistencyError, match="inconsistent"):
            taxa2phylo(taxa)

    def test_inverted_interval(self):
        taxa = TaxonTable([1, 2], [-1, 1], [10.0, 2.0], [0.0, 6.0])
        with pytest.raises(RangeViolationError, match="before first"):
            taxa2phylo(taxa)

    def test_observation_out_of_range(self, two_taxa):
        with pytest.raises(RangeViolationError, match="outside"):
            taxa2phylo(two_taxa, obs_time=[11.0, 2.0])

    def test_observation_length(self, two_taxa):
        with pytest.raises(RangeViolationError, match="values for 2 taxa"):
            taxa2phylo(two_taxa, obs_time=[1.0, 2.0, 3.0])

    def test_descendant_outside_ancestor_range(self):
        taxa = TaxonTable([1, 2], [-1, 1], [10.0, 3.0], [5.0, 1.0])
        with pytest.raises(RangeViolationError, match="t1"):
            taxa2phylo(taxa)

    def test_single_observation(self, two_taxa):
        with pytest.raises(GeometryViolationError):
            taxa2phylo(two_taxa, obs_time=[0.0, np.nan])


# ======================================================================== #
# 4. Properties on a larger table                                           #
# ======================================================================== #


class TestProperties:
    @pytest.fixture(scope="class")
    def table(self):
        return budding_table(31)

    def test_tips_are_observed_taxa(self, table):
        tree = taxa2phylo(table, rng=1)
        assert tree.n_tips == table.n_taxa
        assert sorted(tree.tip_labels) == sorted(table.labels)

    def test_partial_observation(self, table):
        obs = np.array(table.last_appearance)
        obs[::3] = np.nan
        tree = taxa2phylo(table, obs_time=obs, rng=1)
        observed = {label for label, o in zip(table.labels, obs) if not np.isnan(o)}
        assert set(tree.tip_labels) == observed
        assert tree.n_tips <= table.n_taxa

    def test_tip_ages_match_observations(self, table):
        tree = taxa2phylo(table, rng=1)
        ages = tip_ages(tree)
        expected = dict(zip(table.labels, table.last_appearance))
        for label, age in ages.items():
            assert age == pytest.approx(expected[label], abs=1e-9)

    def test_valid_edge_matrix(self, table):
        tree = taxa2phylo(table, rng=1)
        assert test_edge_matrix(tree.edge)
        assert np.all(tree.edge_length >= 0)

    def test_no_single_child_nodes(self, table):
        tree = taxa2phylo(table, rng=1)
        for node in range(tree.root, tree.n_nodes):
            assert len(tree.children(node)) >= 2

    @pytest.mark.large_scale
    def test_large_table(self):
        table = budding_table(1023)
        tree = taxa2phylo(table, rng=3)
        assert tree.n_tips == 1023
        assert test_edge_matrix(tree.edge)
