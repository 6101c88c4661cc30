"""
Misc. utility functions.
"""

import logging
from typing import List, Optional, Sequence, Iterable

import numpy as np


#%% logging

_default_logging_hndlr: Optional[logging.Handler] = None  # default logging handler


def enable_logging(level: int = logging.INFO, fmt: str = '%(asctime)s:%(levelname)s:%(name)s:%(message)s',
                   logging_handler: Optional[logging.Handler] = None, add_logging_handler: bool = True,
                   **stream_hndlr_opts) -> None:
    """
    Enable logging for dtmtoolkit package with minimum log level `level` and log message format `fmt`. By default,
    logs to stderr via ``logging.StreamHandler``. You may also pass your own log handler.

    .. seealso:: Currently, only the logging levels INFO and DEBUG are used in dtmtoolkit. See the
                 `Python Logging HOWTO guide <https://docs.python.org/3/howto/logging.html>`_ for more information
                 on log levels and formats.

    :param level: minimum log level; default is INFO level
    :param fmt: log message format
    :param logging_handler: pass custom logging handler to be used instead of the default ``logging.StreamHandler``
    :param add_logging_handler: if True, add the logging handler to the logger
    :param stream_hndlr_opts: optional additional parameters passed to ``logging.StreamHandler``
    """

    global _default_logging_hndlr

    logger = logging.getLogger('dtmtoolkit')
    logger.setLevel(level)

    if logging_handler:
        _default_logging_hndlr = logging_handler
    else:
        _default_logging_hndlr = logging.StreamHandler(**stream_hndlr_opts)

    _default_logging_hndlr.setLevel(level)

    if fmt:
        _default_logging_hndlr.setFormatter(logging.Formatter(fmt))

    if add_logging_handler:
        logger.addHandler(_default_logging_hndlr)


def set_logging_level(level: int) -> None:
    """
    Set logging level for dtmtoolkit package default logging handler.

    :param level: minimum log level
    """

    logger = logging.getLogger('dtmtoolkit')
    logger.setLevel(level)

    if _default_logging_hndlr:
        _default_logging_hndlr.setLevel(level)


def disable_logging() -> None:
    """
    Disable logging for dtmtoolkit package.
    """
    set_logging_level(logging.WARNING)  # reset to default level

    if _default_logging_hndlr:
        logger = logging.getLogger('dtmtoolkit')
        logger.removeHandler(_default_logging_hndlr)


#%% NumPy array/matrices related helper functions


def as_flat_array(x) -> np.ndarray:
    """
    Convert the result of a row- or column-wise reduction on a NumPy array, a NumPy matrix or a SciPy sparse matrix
    (which may be a 2D ``np.matrix`` of shape 1xN or Nx1) to a flat 1D NumPy array.

    :param x: reduction result
    :return: 1D NumPy array
    """
    return np.asarray(x).ravel()


#%% misc functions


def flatten_list(l: Iterable[Iterable]) -> list:
    """
    Flatten a 2D sequence `l` to a 1D list and return it.

    Although ``return sum(l, [])`` looks like a very nice one-liner, it turns out to be much much slower than what is
    implemented below.

    :param l: 2D sequence, e.g. list of lists
    :return: flattened list, i.e. a 1D list that concatenates all elements from each list inside `l`
    """
    flat = []
    for x in l:
        flat.extend(x)

    return flat


def split_contiguous(seq: Sequence, k: int) -> List[Sequence]:
    """
    Split sequence `seq` into at most `k` contiguous, non-empty chunks of (almost) equal size. Concatenating the
    chunks in order yields `seq` again.

    :param seq: a sequence that supports slicing
    :param k: maximum number of chunks; must be strictly positive
    :return: list of chunks (slices of `seq`)
    """
    if k < 1:
        raise ValueError('`k` must be at least 1')

    n = len(seq)
    if n == 0:
        return []

    k = min(k, n)
    size, rest = divmod(n, k)
    chunks = []
    start = 0
    for i in range(k):
        end = start + size + (1 if i < rest else 0)
        chunks.append(seq[start:end])
        start = end

    assert start == n
    return chunks
