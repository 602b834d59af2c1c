"""
tests/test_context.py
=====================
Tests for the logging and tie-break context managers.
"""

import os
import sys
import logging

import pytest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from paleotrees._context import (
    get_tie_break_override,
    quiet,
    suppress_logger,
    use_tie_break,
)
from paleotrees._tree import Tree
from paleotrees._terminal import drop_extinct


# ======================================================================== #
# Logging                                                                   #
# ======================================================================== #


class TestLogging:
    def test_suppress_logger_restores_level(self):
        logger = logging.getLogger("paleotrees._terminal")
        before = logger.level
        with suppress_logger("paleotrees._terminal"):
            assert logger.level == logging.CRITICAL
        assert logger.level == before

    def test_suppress_logger_restores_after_exception(self):
        logger = logging.getLogger("paleotrees._terminal")
        before = logger.level
        with pytest.raises(RuntimeError):
            with suppress_logger("paleotrees._terminal", logging.ERROR):
                raise RuntimeError("boom")
        assert logger.level == before

    def test_quiet_sets_package_logger(self):
        logger = logging.getLogger("paleotrees")
        before = logger.level
        with quiet(logging.WARNING):
            assert logger.level == logging.WARNING
        assert logger.level == before

    def test_quiet_silences_warnings(self, caplog):
        tree = Tree.from_newick("((A:1,B:4):2,(C:5,(D:1,E:4):1):1);")
        caplog.clear()
        with quiet():
            drop_extinct(tree)
        assert not [r for r in caplog.records if r.name.startswith("paleotrees")]


# ======================================================================== #
# Tie-break override                                                        #
# ======================================================================== #


class TestTieBreakOverride:
    def test_default_none(self):
        assert get_tie_break_override() is None

    def test_named_strategy(self):
        with use_tie_break("stable"):
            assert get_tie_break_override() == "stable"
        assert get_tie_break_override() is None

    def test_callable_strategy(self):
        def by_birth(births, rng):
            return np.argsort(births, kind="stable")

        with use_tie_break(by_birth):
            assert get_tie_break_override() is by_birth

    def test_nesting(self):
        with use_tie_break("stable"):
            with use_tie_break("random"):
                assert get_tie_break_override() == "random"
            assert get_tie_break_override() == "stable"
        assert get_tie_break_override() is None

    def test_restored_after_exception(self):
        with pytest.raises(KeyError):
            with use_tie_break("stable"):
                raise KeyError("boom")
        assert get_tie_break_override() is None

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="not available"):
            with use_tie_break("alphabetical"):
                pass
