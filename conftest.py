"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
large_scale
    Applied to tests that convert taxon tables large enough to take several
    seconds.  Opt out with ``-m "not large_scale"``.

    Registration here suppresses PytestUnknownMarkWarning and makes the mark
    visible in ``pytest --markers``.

Logging
-------
The ``paleotrees`` logger is set to DEBUG for the session so that
``caplog`` sees every record emitted by the package.
"""

import logging


def pytest_configure(config):
    """
    Configure pytest before test collection begins.
    """
    config.addinivalue_line(
        "markers",
        "large_scale: conversions of large simulated taxon tables "
        "(slow; deselect with -m 'not large_scale')",
    )
    logging.getLogger("paleotrees").setLevel(logging.DEBUG)
