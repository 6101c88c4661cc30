"""
Common tools for extracting the most probable values from topic model distributions.
"""

from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from ._common import DEFAULT_VALUE_FORMAT


def top_n_from_distribution(distrib: np.ndarray, top_n: int = 10, row_labels: Optional[Union[str, Sequence]] = None,
                            col_labels: Optional[str] = None, val_labels: Optional[Union[str, Sequence]] = None) \
        -> pd.DataFrame:
    """
    Get `top_n` values from LDA model's distribution `distrib` as DataFrame. Can be used for topic-word distributions
    and document-topic distributions. Set `row_labels` to a format string or a list. Set `col_labels` to a format
    string for the column names. Set `val_labels` to return value labels instead of pure values (probabilities).

    :param distrib: a 2D probability distribution of shape NxM from an LDA model
    :param top_n: number of top values to take from each row of `distrib`
    :param row_labels: either list of row label strings of length N or a single row format string
    :param col_labels: column format string or None for default numbered columns
    :param val_labels: value labels format string or sequence of labels of length M or None to return only the
                       probabilities
    :return: pandas DataFrame with N rows and `top_n` columns
    """
    distrib = np.asarray(distrib)

    if distrib.ndim != 2 or len(distrib) == 0:
        raise ValueError('`distrib` must be a non-empty 2D array')

    if top_n < 1:
        raise ValueError('`top_n` must be at least 1')
    elif top_n > distrib.shape[1]:
        raise ValueError('`top_n` cannot be larger than num. of values in `distrib` rows')

    if isinstance(row_labels, str):
        row_label_fixed = row_labels
    else:
        row_label_fixed = None

    if val_labels is not None and not isinstance(val_labels, str):
        val_labels = np.asarray(val_labels, dtype=object)
        if len(val_labels) != distrib.shape[1]:
            raise ValueError('number of `val_labels` must match number of columns in `distrib`')

    if col_labels is None:
        columns = range(top_n)
    else:
        columns = [col_labels.format(i0=i, i1=i+1) for i in range(top_n)]

    series = []

    for i, row_distrib in enumerate(distrib):
        if row_label_fixed:
            row_name = row_label_fixed.format(i0=i, i1=i+1)
        else:
            if row_labels is not None:
                row_name = row_labels[i]
            else:
                row_name = i

        # indices that sort the row from highest to lowest value; stable, so ties keep column order
        sorter_arr = np.argsort(-row_distrib, kind='stable')[:top_n]

        if val_labels is None:
            sorted_vals = row_distrib[sorter_arr]
        elif isinstance(val_labels, str):
            sorted_vals = [val_labels.format(i0=j, i1=j+1, val=row_distrib[j]) for j in sorter_arr]
        else:
            sorted_vals = val_labels[sorter_arr]

        series.append(pd.Series(sorted_vals, index=columns, name=row_name))

    return pd.DataFrame(series)


def join_value_and_label_dfs(vals: pd.DataFrame, labels: pd.DataFrame, val_fmt: Optional[str] = None) -> pd.DataFrame:
    """
    Join a table of values `vals` and a table of labels `labels` of the same shape (as generated by
    :func:`top_n_from_distribution`) to a table of formatted strings like ``"label (0.1234)"``.

    :param vals: table of values
    :param labels: table of labels with same shape, index and columns as `vals`
    :param val_fmt: format string where ``{lbl}`` is replaced by the label and ``{val}`` by the value
    :return: pandas DataFrame with formatted strings
    """
    if vals.shape != labels.shape:
        raise ValueError('`vals` and `labels` must have the same shape')

    val_fmt = val_fmt or DEFAULT_VALUE_FORMAT

    joined = [[val_fmt.format(lbl=lbl, val=val) for lbl, val in zip(lbl_row, val_row)]
              for lbl_row, val_row in zip(labels.itertuples(index=False), vals.itertuples(index=False))]

    return pd.DataFrame(joined, index=labels.index, columns=labels.columns)

