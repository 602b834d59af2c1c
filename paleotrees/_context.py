"""
_context.py
===========
Context managers for paleotrees.

Provides clean, Pythonic context managers for temporarily changing state:
- Logging control (suppress/change levels)
- Tie-break selection for simultaneous originations in ``taxa2phylo``

All context managers properly restore state on exit, even if exceptions occur.
"""

import logging
from contextlib import contextmanager
from typing import Optional


# Module-level state for the tie-break override
_tie_break_override = None


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Useful for suppressing verbose output from specific modules during
    bulk operations.

    Parameters
    ----------
    logger_name : str
        Name of the logger to suppress (e.g., 'paleotrees._terminal')
    level : int, default logging.CRITICAL
        Temporary logging level.

    Yields
    ------
    None
        Control is yielded back to the with-block.

    Examples
    --------
    >>> # Silence the "no root_time" notices while pruning many trees
    >>> with suppress_logger('paleotrees._terminal'):
    ...     pruned = [drop_extinct(t) for t in trees]

    Notes
    -----
    - Exception-safe: Logger level restored even if exception raised
    - Nesting-safe: Can nest multiple suppress_logger contexts
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily suppress all paleotrees logging.

    Every module logger is a child of the ``paleotrees`` logger, so
    raising the level of the package logger silences all of them.

    Parameters
    ----------
    level : int, default logging.CRITICAL
        Temporary logging level for the package logger.

    Examples
    --------
    >>> with quiet():
    ...     tree = taxa2phylo(taxa)

    >>> # Show only warnings
    >>> with quiet(logging.WARNING):
    ...     tree = taxa2phylo(taxa)
    """
    with suppress_logger("paleotrees", level):
        yield


# ============================================================================ #
# Tie-break Context Managers
# ============================================================================ #


@contextmanager
def use_tie_break(strategy):
    """
    Temporarily set the default tie-break strategy of ``taxa2phylo``.

    Descendants of one taxon that originate at exactly the same time must
    be put into some order to split the ancestor's range into segments.
    The strategy decides that order whenever ``taxa2phylo`` is called
    without an explicit ``tie_break`` argument.

    Parameters
    ----------
    strategy : str or callable
        - 'random': uniform random order (default behaviour)
        - 'stable': table order
        - callable ``f(births, rng) -> order``

    Raises
    ------
    ValueError
        If *strategy* is neither a known name nor callable.

    Examples
    --------
    >>> with use_tie_break('stable'):
    ...     tree = taxa2phylo(taxa)

    Notes
    -----
    **Not thread-safe**: uses module-level state.  Pass ``tie_break=``
    directly to ``taxa2phylo`` in threaded code.
    """
    global _tie_break_override

    from ._taxa2phylo import TIE_BREAK_STRATEGIES

    if not callable(strategy) and strategy not in TIE_BREAK_STRATEGIES:
        raise ValueError(
            f"Tie-break '{strategy}' not available. "
            f"Available strategies: {', '.join(TIE_BREAK_STRATEGIES)}"
        )

    original_override = _tie_break_override

    try:
        _tie_break_override = strategy
        yield
    finally:
        _tie_break_override = original_override


def get_tie_break_override() -> Optional[object]:
    """
    Get the current tie-break override, if any.

    Returns
    -------
    str, callable or None
        Current override, or None if no override is active.

    Examples
    --------
    >>> get_tie_break_override()
    None

    >>> with use_tie_break('stable'):
    ...     print(get_tie_break_override())
    stable
    """
    return _tie_break_override
