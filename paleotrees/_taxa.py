"""
_taxa.py
========
Tabular taxon-range data: one row per morphotaxon with its identifier, the
identifier of its ancestor, and its first and last appearance times.

Times follow the time-before-present convention: the present is 0 and the
first appearance of a taxon is numerically larger than its last appearance.

Public API
----------
  TaxonTable(taxon_id, ancestor_id, first_appearance, last_appearance, labels=None)
  TaxonTable.from_array(matrix, labels=None)
  TaxonTable.from_records(records)

  .n_taxa, .labels, .root_row
  .as_array()
"""

import math
import numpy as np

from paleotrees._errors import StructuralInconsistencyError


class TaxonTable:
    """
    Immutable taxon-range table.

    Attributes
    ----------
    taxon_id         : int64  [n_taxa]   Unique positive identifiers.
    ancestor_id      : int64  [n_taxa]   Identifier of the ancestor; -1 for the root.
    first_appearance : float64[n_taxa]   First appearance (origination) time.
    last_appearance  : float64[n_taxa]   Last appearance (termination) time.
    labels           : list[str]         Row names; used as tip labels.

    The arrays are flagged read-only so a table can be shared between
    conversions without defensive copies.
    """

    def __init__(
        self, taxon_id, ancestor_id, first_appearance, last_appearance, labels=None
    ) -> None:
        taxon_id = np.asarray(taxon_id)
        n = int(taxon_id.shape[0])
        columns = {
            "ancestor_id": ancestor_id,
            "first_appearance": first_appearance,
            "last_appearance": last_appearance,
        }
        for name, values in columns.items():
            if len(values) != n:
                raise StructuralInconsistencyError(
                    f"Column {name} has {len(values)} rows; expected {n}."
                )
        if n == 0:
            raise StructuralInconsistencyError("Taxon table is empty.")

        if np.any(np.isnan(taxon_id.astype(np.float64))):
            raise StructuralInconsistencyError("Taxon IDs must not be missing.")
        ids = taxon_id.astype(np.int64)
        if np.any(ids <= 0):
            raise StructuralInconsistencyError("Taxon IDs must be positive integers.")

        anc = np.array([_null_to_sentinel(a) for a in ancestor_id], dtype=np.int64)

        fad = np.asarray(first_appearance, dtype=np.float64)
        lad = np.asarray(last_appearance, dtype=np.float64)
        if np.any(~np.isfinite(fad)) or np.any(~np.isfinite(lad)):
            raise StructuralInconsistencyError(
                "Appearance times must be finite numbers."
            )

        if labels is None:
            labels = [f"t{int(i)}" for i in ids]
        else:
            labels = [str(x) for x in labels]
            if len(labels) != n:
                raise StructuralInconsistencyError(
                    f"{len(labels)} labels given for {n} taxa."
                )

        for arr in (ids, anc, fad, lad):
            arr.setflags(write=False)

        self.taxon_id = ids
        self.ancestor_id = anc
        self.first_appearance = fad
        self.last_appearance = lad
        self.labels = labels

    @classmethod
    def from_array(cls, matrix, labels=None) -> "TaxonTable":
        """
        Build a table from an ``(n_taxa, >=4)`` numeric matrix whose first
        four columns are id, ancestor id, first appearance and last
        appearance.  Extra columns (e.g. an extant flag) are ignored.
        ``NaN`` in the ancestor column marks the root.
        """
        if isinstance(matrix, TaxonTable):
            return matrix
        m = np.asarray(matrix, dtype=np.float64)
        if m.ndim != 2 or m.shape[1] < 4:
            raise StructuralInconsistencyError(
                f"Taxon matrix must have shape (n_taxa, >=4); got {m.shape}."
            )
        return cls(m[:, 0], m[:, 1], m[:, 2], m[:, 3], labels=labels)

    @classmethod
    def from_records(cls, records) -> "TaxonTable":
        """
        Build a table from an iterable of ``(label, id, ancestor_id,
        first_appearance, last_appearance)`` tuples; ``ancestor_id`` may be
        ``None`` for the root.
        """
        records = list(records)
        if not records:
            raise StructuralInconsistencyError("Taxon table is empty.")
        labels, ids, anc, fad, lad = zip(*records)
        return cls(ids, anc, fad, lad, labels=labels)

    @property
    def n_taxa(self) -> int:
        return int(self.taxon_id.shape[0])

    @property
    def root_row(self) -> int:
        """Row of the single taxon without an ancestor."""
        rows = np.flatnonzero(self.ancestor_id < 0)
        if len(rows) != 1:
            raise StructuralInconsistencyError(
                f"Expected exactly one root taxon; found {len(rows)}."
            )
        return int(rows[0])

    def as_array(self) -> np.ndarray:
        """The table as an ``(n_taxa, 4)`` float matrix, ``NaN`` for no ancestor."""
        anc = self.ancestor_id.astype(np.float64)
        anc[self.ancestor_id < 0] = np.nan
        return np.column_stack(
            [
                self.taxon_id.astype(np.float64),
                anc,
                self.first_appearance,
                self.last_appearance,
            ]
        )

    def __len__(self) -> int:
        return self.n_taxa

    def __repr__(self) -> str:
        return f"TaxonTable(n_taxa={self.n_taxa})"


def _null_to_sentinel(value) -> int:
    if value is None:
        return -1
    value = float(value)
    if math.isnan(value) or value < 0:
        return -1
    return int(value)
