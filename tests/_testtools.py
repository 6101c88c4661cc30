import string

import numpy as np
from hypothesis import strategies as st
from hypothesis.extra.numpy import arrays, array_shapes


def _strategy_2d_array(dtype, minval=0, maxval=None, **kwargs):
    if 'min_side' in kwargs:
        min_side = kwargs.pop('min_side')
    else:
        min_side = 1

    if 'max_side' in kwargs:
        max_side = kwargs.pop('max_side')
    else:
        max_side = None

    if dtype is int:
        elems = st.integers(minval, maxval, **kwargs)
    elif dtype is float:
        elems = st.floats(minval, maxval, **kwargs)
    else:
        raise ValueError('no elements strategy for dtype', dtype)

    return arrays(dtype, array_shapes(min_dims=2, max_dims=2, min_side=min_side, max_side=max_side), elements=elems)


def strategy_dtm_small():
    return _strategy_2d_array(int, 0, 10, min_side=1, max_side=10)


def strategy_2d_prob_distribution():
    return _strategy_2d_array(float, 0, 1, allow_nan=False, allow_infinity=False, min_side=1, max_side=10)


def strategy_terms():
    return st.text(string.ascii_lowercase + string.digits + '-', min_size=1, max_size=5)


def strategy_token_records(min_size=0, max_size=50):
    return st.lists(st.tuples(st.sampled_from(['d1', 'd2', 'd3', 'd4']), strategy_terms()),
                    min_size=min_size, max_size=max_size)
