"""
tests/test_taxa.py
==================
Tests for TaxonTable construction and conversion.
"""

import os
import sys

import pytest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from paleotrees._taxa import TaxonTable
from paleotrees._errors import StructuralInconsistencyError


@pytest.fixture(scope="module")
def matrix():
    """Three taxa; column 5 is an extant flag that the table ignores."""
    return np.array(
        [
            [1, np.nan, 10.0, 0.0, 1],
            [2, 1, 8.0, 3.0, 0],
            [3, 2, 5.0, 1.0, 0],
        ]
    )


class TestConstruction:
    def test_from_array(self, matrix):
        taxa = TaxonTable.from_array(matrix)
        assert taxa.n_taxa == 3
        assert len(taxa) == 3
        assert taxa.taxon_id.tolist() == [1, 2, 3]
        assert taxa.ancestor_id.tolist() == [-1, 1, 2]
        assert taxa.first_appearance.tolist() == [10.0, 8.0, 5.0]
        assert taxa.last_appearance.tolist() == [0.0, 3.0, 1.0]

    def test_default_labels(self, matrix):
        assert TaxonTable.from_array(matrix).labels == ["t1", "t2", "t3"]

    def test_explicit_labels(self, matrix):
        taxa = TaxonTable.from_array(matrix, labels=["a", "b", "c"])
        assert taxa.labels == ["a", "b", "c"]

    def test_from_array_passes_table_through(self, matrix):
        taxa = TaxonTable.from_array(matrix)
        assert TaxonTable.from_array(taxa) is taxa

    def test_from_records(self):
        taxa = TaxonTable.from_records(
            [("root", 1, None, 10.0, 0.0), ("child", 2, 1, 6.0, 2.0)]
        )
        assert taxa.labels == ["root", "child"]
        assert taxa.ancestor_id.tolist() == [-1, 1]

    def test_arrays_read_only(self, matrix):
        taxa = TaxonTable.from_array(matrix)
        with pytest.raises(ValueError):
            taxa.first_appearance[0] = 99.0

    def test_root_row(self, matrix):
        assert TaxonTable.from_array(matrix).root_row == 0

    def test_as_array(self, matrix):
        out = TaxonTable.from_array(matrix).as_array()
        assert out.shape == (3, 4)
        assert np.isnan(out[0, 1])
        assert np.array_equal(out[1:], matrix[1:, :4])

    def test_repr(self, matrix):
        assert repr(TaxonTable.from_array(matrix)) == "TaxonTable(n_taxa=3)"


class TestErrors:
    def test_column_length_mismatch(self):
        with pytest.raises(StructuralInconsistencyError, match="rows"):
            TaxonTable([1, 2], [-1], [10.0, 5.0], [0.0, 1.0])

    def test_empty(self):
        with pytest.raises(StructuralInconsistencyError):
            TaxonTable([], [], [], [])

    def test_empty_records(self):
        with pytest.raises(StructuralInconsistencyError):
            TaxonTable.from_records([])

    def test_non_positive_ids(self):
        with pytest.raises(StructuralInconsistencyError, match="positive"):
            TaxonTable([0, 1], [-1, 0], [10.0, 5.0], [0.0, 1.0])

    def test_missing_id(self):
        with pytest.raises(StructuralInconsistencyError, match="missing"):
            TaxonTable([1.0, np.nan], [-1, 1], [10.0, 5.0], [0.0, 1.0])

    def test_non_finite_times(self):
        with pytest.raises(StructuralInconsistencyError, match="finite"):
            TaxonTable([1, 2], [-1, 1], [10.0, np.nan], [0.0, 1.0])

    def test_label_count(self):
        with pytest.raises(StructuralInconsistencyError, match="labels"):
            TaxonTable([1, 2], [-1, 1], [10.0, 5.0], [0.0, 1.0], labels=["a"])

    def test_narrow_matrix(self):
        with pytest.raises(StructuralInconsistencyError, match="shape"):
            TaxonTable.from_array(np.zeros((3, 3)))

    def test_root_row_requires_single_root(self):
        taxa = TaxonTable([1, 2], [-1, -1], [10.0, 5.0], [0.0, 1.0])
        with pytest.raises(StructuralInconsistencyError, match="exactly one root"):
            taxa.root_row
