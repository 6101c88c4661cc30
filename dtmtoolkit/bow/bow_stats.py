"""
Common statistics from bag-of-words (BoW) matrices and the per-term statistics table used for vocabulary filtering.

All matrix functions accept a NumPy array, a SciPy sparse matrix or a
:class:`~dtmtoolkit.bow.dtm.DocumentTermMatrix`.
"""

import logging
import math
from typing import Optional

import numpy as np
from scipy.sparse import issparse, csr_matrix

import pandas as pd

from .. import defaults
from ..errors import InvalidInput
from ..utils import as_flat_array
from .dtm import DocumentTermMatrix, as_matrix


logger = logging.getLogger('dtmtoolkit')

#: columns of the table generated by :func:`term_statistics`
TERM_STATISTICS_COLUMNS = ('term', 'characters', 'number', 'nonalpha', 'termfreq', 'docfreq', 'reldocfreq', 'tfidf')


#%% matrix statistics


def doc_lengths(dtm):
    """
    Return the length, i.e. number of terms for each document in document-term-matrix `dtm`.
    This corresponds to the row-wise sums in `dtm`.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw terms counts
    :return: NumPy array of size N (number of docs) with integers indicating the number of terms per document
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    return as_flat_array(dtm.sum(axis=1))


def doc_frequencies(dtm, min_val=1, proportions=False):
    """
    For each term in the vocab of `dtm` (i.e. its columns), return how often it occurs at least `min_val` times per
    document.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts.
    :param min_val: threshold for counting occurrences
    :param proportions: If `proportions` is True, return proportions scaled to the number of documents instead of
                        absolute numbers.
    :return: NumPy array of size M (vocab size) indicating how often each term occurs at least `min_val` times.
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    doc_freq = as_flat_array((dtm >= min_val).sum(axis=0))

    if proportions:
        if dtm.shape[0] == 0:
            raise ValueError('`dtm` does not contain any documents')
        return doc_freq / dtm.shape[0]
    else:
        return doc_freq


def term_frequencies(dtm, proportions=False):
    """
    Return the number of occurrences of each term in the vocab across all documents in document-term-matrix `dtm`.
    This corresponds to the column-wise sums in `dtm`.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts.
    :param proportions: If `proportions` is True, return proportions scaled to the number of terms in the whole `dtm`.
    :return: NumPy array of size M (vocab size) with integers indicating the number of occurrences of each term in the
             vocab across all documents.
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    unnorm = as_flat_array(dtm.sum(axis=0))

    if proportions:
        n = unnorm.sum()
        if n == 0:
            raise ValueError('`dtm` does not contain any terms (is all-zero)')
        else:
            return unnorm / n
    else:
        return unnorm


def tf_binary(dtm):
    """
    Transform raw count document-term-matrix `dtm` to binary term frequency matrix. This matrix contains 1 whenever
    a term occurred in a document, else 0.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts.
    :return: (sparse) binary term frequency matrix of type integer of size NxM
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    return (dtm > 0).astype(int)


def tf_proportions(dtm):
    """
    Transform raw count document-term-matrix `dtm` to term frequency matrix with proportions, i.e. term counts
    normalized by document length.

    Rows of documents with length 0 stay all-zero.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts
    :return: (sparse) term frequency matrix of size NxM with proportions, i.e. term counts normalized by document length
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    dlen = doc_lengths(dtm)
    norm_factor = np.zeros(len(dlen), dtype=float)
    np.divide(1, dlen, out=norm_factor, where=dlen > 0)
    norm_factor = norm_factor[:, None]   # shape: Nx1

    if issparse(dtm):
        return csr_matrix(dtm.multiply(norm_factor))
    else:
        return np.asarray(dtm) * norm_factor


def idf(dtm, smooth_log=1, smooth_df=1):
    """
    Calculate inverse document frequency (idf) vector from raw count document-term-matrix `dtm` with formula
    ``log(smooth_log + N / (smooth_df + df))``, where ``N`` is the number of documents, ``df`` is the document frequency
    (see function :func:`~dtmtoolkit.bow.bow_stats.doc_frequencies`), `smooth_log` and `smooth_df` are smoothing
    constants. With default arguments, the formula is thus ``log(1 + N/(1+df))``.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts.
    :param smooth_log: smoothing constant inside log()
    :param smooth_df: smoothing constant to add to document frequency
    :return: NumPy array of size M (vocab size) with inverse document frequency for each term in the vocab
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2 or 0 in dtm.shape:
        raise ValueError('`dtm` must be a non-empty 2D array/matrix')

    n_docs = dtm.shape[0]
    df = doc_frequencies(dtm)
    x = n_docs / (smooth_df + df)

    if smooth_log == 1:      # log1p is faster than the equivalent log(1 + x)
        return np.log1p(x)
    else:
        return np.log(smooth_log + x)


def tfidf(dtm, tf_func=tf_proportions, idf_func=idf, **kwargs):
    """
    Calculate tfidf (term frequency inverse document frequency) matrix from raw count document-term-matrix `dtm` with
    matrix multiplication ``tf * diag(idf)``, where `tf` is the term frequency matrix ``tf_func(dtm)`` and ``idf`` is
    the document frequency vector ``idf_func(dtm)``. Can be used as input weighting for classifiers.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw term counts
    :param tf_func: function to calculate term-frequency matrix; see ``tf_*`` functions in this module
    :param idf_func: function to calculate inverse document frequency vector
    :param kwargs: additional parameters passed to `idf_func` like `smooth_log` or `smooth_df`
    :return: (sparse) tfidf matrix of size NxM
    """
    dtm = as_matrix(dtm)
    if dtm.ndim != 2 or 0 in dtm.shape:
        raise ValueError('`dtm` must be a non-empty 2D array/matrix')

    idf_vec = idf_func(dtm, **kwargs)
    tf_mat = tf_func(dtm)

    # formally, it would be a matrix multiplication: tf * diag(idf), i.e. np.matmul(tf_mat, np.diag(idf_vec)),
    # so that each column i in tf in multiplied by the respective idf value: tf[:, i] * idf[i]
    # but diag(df) would create a large intermediate matrix, so let's use NumPy broadcasting:
    if issparse(tf_mat):
        return csr_matrix(tf_mat.multiply(idf_vec))
    else:
        return tf_mat * idf_vec


#%% term shape predicates


def term_has_digit(term: str) -> bool:
    """
    Return True if term string `term` contains at least one decimal digit.
    """
    return any(c.isdecimal() for c in term)


def term_has_nonalnum(term: str) -> bool:
    """
    Return True if term string `term` contains at least one character that is neither a letter nor a decimal digit,
    e.g. punctuation, whitespace or an underscore.
    """
    return any(not (c.isalpha() or c.isdecimal()) for c in term)


#%% per-term statistics


def term_statistics(dtm: DocumentTermMatrix, log_base: Optional[float] = None) -> pd.DataFrame:
    """
    Compute statistics for each term in the document-term matrix `dtm`, which can be used to build rules for
    filtering the vocabulary (see :mod:`~dtmtoolkit.bow.vocab_filter`).

    The result is a table with one row per term in the column order of `dtm` and the following columns:

    - ``term``: the term string
    - ``characters``: number of characters in the term
    - ``number``: True if the term contains a decimal digit
    - ``nonalpha``: True if the term contains a character that is neither a letter nor a digit
    - ``termfreq``: total number of occurrences of the term across all documents (column sum)
    - ``docfreq``: number of documents that contain the term at least once
    - ``reldocfreq``: ``docfreq`` divided by the number of documents
    - ``tfidf``: mean proportion of the term within the documents that contain it, multiplied by
      ``log(n_docs / docfreq)`` with logarithm base `log_base`

    The shape flags are determined from the raw term strings in `dtm`, i.e. without any normalization.

    :param dtm: a DocumentTermMatrix
    :param log_base: logarithm base for the tf-idf column; default is :data:`dtmtoolkit.defaults.tfidf_log_base`
    :return: pandas DataFrame with the columns listed above
    """
    if not isinstance(dtm, DocumentTermMatrix):
        raise ValueError('`dtm` must be a DocumentTermMatrix')

    if dtm.n_docs == 0:
        raise InvalidInput('`dtm` does not contain any documents')

    log_base = log_base or defaults.tfidf_log_base
    if log_base <= 0 or log_base == 1:
        raise ValueError('`log_base` must be strictly positive and different from 1')

    logger.debug(f'computing term statistics for {dtm.n_terms} terms')

    mat = dtm.matrix
    vocab = list(dtm.vocab)
    n_docs = dtm.n_docs

    termfreq = term_frequencies(mat)
    docfreq = doc_frequencies(mat)

    # mean within-document proportion of each term across the documents that contain it
    coo = mat.tocoo()
    dlen = doc_lengths(mat)
    props = coo.data / dlen[coo.row]
    props_sum = np.bincount(coo.col, weights=props, minlength=len(vocab))
    with np.errstate(divide='ignore', invalid='ignore'):
        tfidf_vals = np.where(docfreq > 0,
                              props_sum / docfreq * np.log(n_docs / docfreq) / math.log(log_base),
                              0.0)

    return pd.DataFrame({
        'term': vocab,
        'characters': np.array([len(t) for t in vocab], dtype=int),
        'number': np.array([term_has_digit(t) for t in vocab], dtype=bool),
        'nonalpha': np.array([term_has_nonalnum(t) for t in vocab], dtype=bool),
        'termfreq': termfreq.astype(int),
        'docfreq': docfreq.astype(int),
        'reldocfreq': docfreq / n_docs,
        'tfidf': tfidf_vals,
    }, columns=list(TERM_STATISTICS_COLUMNS))
