"""
tests/test_validate.py
======================
Tests for the structural checks of ancestor tables and edge matrices.

Both checks return booleans; none of these tests expect an exception.
"""

import os
import sys

import pytest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from paleotrees._validate import test_edge_matrix, test_parent_child


# ======================================================================== #
# Parent/child lists                                                        #
# ======================================================================== #


class TestParentChild:
    @pytest.mark.parametrize(
        "parents,children",
        [
            ([None, 1, 1, 2], [1, 2, 3, 4]),
            ([np.nan, 1, 1], [1, 2, 3]),
            ([-1, 1], [1, 2]),
            ([2, None, 2], [1, 2, 3]),
            ([None], [7]),
        ],
    )
    def test_valid(self, parents, children):
        assert test_parent_child(parents, children)

    def test_numpy_float_parents(self):
        parents = np.array([np.nan, 10.0, 10.0, 11.0])
        assert test_parent_child(parents, [10, 11, 12, 13])

    def test_two_roots(self):
        assert not test_parent_child([None, None, 1], [1, 2, 3])

    def test_no_root(self):
        assert not test_parent_child([2, 1], [1, 2])

    def test_cycle_beside_root(self):
        assert not test_parent_child([None, 3, 2], [1, 2, 3])

    def test_self_loop(self):
        assert not test_parent_child([None, 2], [1, 2])

    def test_dangling_parent(self):
        assert not test_parent_child([None, 7], [1, 2])

    def test_duplicate_children(self):
        assert not test_parent_child([None, 1, 1], [1, 2, 2])

    def test_empty(self):
        assert not test_parent_child([], [])

    def test_length_mismatch(self):
        assert not test_parent_child([None, 1], [1, 2, 3])

    def test_long_chain(self):
        n = 5000
        parents = [None] + list(range(1, n))
        children = list(range(1, n + 1))
        assert test_parent_child(parents, children)


# ======================================================================== #
# Edge matrices                                                             #
# ======================================================================== #


class TestEdgeMatrix:
    def test_valid(self):
        edge = [[4, 0], [4, 5], [5, 1], [5, 2], [4, 3]]
        assert test_edge_matrix(edge)

    def test_valid_numpy(self):
        edge = np.array([[2, 0], [2, 1]], dtype=np.int32)
        assert test_edge_matrix(edge)

    def test_two_roots(self):
        assert not test_edge_matrix([[4, 0], [4, 1], [5, 2], [5, 3]])

    def test_no_root(self):
        assert not test_edge_matrix([[0, 1], [1, 0]])

    def test_cycle_beside_root(self):
        assert not test_edge_matrix([[4, 0], [4, 5], [5, 6], [6, 5]])

    def test_node_with_two_parents(self):
        assert not test_edge_matrix([[3, 0], [3, 1], [4, 1], [3, 4]])

    def test_negative_ids(self):
        assert not test_edge_matrix([[2, 0], [2, -1]])

    @pytest.mark.parametrize("edge", [[], [[1, 2, 3]], [1, 2]])
    def test_bad_shape(self, edge):
        assert not test_edge_matrix(edge)
