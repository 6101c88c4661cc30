"""
Comparison of term frequencies in two corpora, each represented as (filtered) document-term matrix.

For each term, the comparison reports the absolute and relative frequencies in both corpora, the ratio of the
relative frequencies ("overrepresentation") and a chi-square statistic that quantifies how surprising the skew is
under the assumption that term occurrence and corpus are independent.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from scipy.stats import chi2 as chi2_distrib

from ..errors import InvalidInput, VocabularyMismatch
from .bow_stats import term_frequencies
from .dtm import DocumentTermMatrix


logger = logging.getLogger('dtmtoolkit')

#: columns of the comparison table
COMPARISON_COLUMNS = ('term', 'termfreq_x', 'termfreq_y', 'relfreq_x', 'relfreq_y', 'over', 'chi2', 'p')


@dataclass(frozen=True, eq=False)
class CorpusComparison:
    """
    Result of comparing two corpora X and Y with :func:`compare_dtms`.

    A comparison is computed once and never updated. The attributes can't be reassigned, but `table` itself is a
    mutable DataFrame that is shared with the caller, so treat it as read-only. :meth:`sort`,
    :meth:`overrepresented_in_x` and :meth:`overrepresented_in_y` always return new DataFrames that can be modified
    without affecting `table`.
    """
    #: comparison table with columns ``term``, ``termfreq_x``, ``termfreq_y``, ``relfreq_x``, ``relfreq_y``,
    #: ``over``, ``chi2`` and ``p``; sorted by ``over`` in descending order
    table: pd.DataFrame
    #: grand total of term occurrences in corpus X
    total_x: int
    #: grand total of term occurrences in corpus Y
    total_y: int
    #: True if X and Y don't share any terms; `table` is empty in this case
    vocabulary_mismatch: bool = False

    def __len__(self) -> int:
        return len(self.table)

    def sort(self, ascending: bool = False) -> pd.DataFrame:
        """
        Return the comparison table sorted by overrepresentation. Descending order lists the terms skewed towards
        corpus X first, ascending order lists the terms skewed towards corpus Y first. Ties are broken by the term
        string in ascending order.

        :param ascending: sorting direction
        :return: sorted copy of the comparison table
        """
        return _sort_table(self.table, ascending=ascending)

    def overrepresented_in_x(self, n: Optional[int] = None) -> pd.DataFrame:
        """
        Return the terms that are relatively more frequent in X than in Y, most skewed first.

        :param n: if not None, return only the top `n` terms
        :return: sorted comparison table subset
        """
        res = self.sort(ascending=False)
        res = res[res['over'] > 1].reset_index(drop=True)
        return res if n is None else res.head(n)

    def overrepresented_in_y(self, n: Optional[int] = None) -> pd.DataFrame:
        """
        Return the terms that are relatively more frequent in Y than in X, most skewed first.

        :param n: if not None, return only the top `n` terms
        :return: sorted comparison table subset
        """
        res = self.sort(ascending=True)
        res = res[res['over'] < 1].reset_index(drop=True)
        return res if n is None else res.head(n)


def compare_dtms(dtm_x: DocumentTermMatrix, dtm_y: DocumentTermMatrix, smooth: float = 0.0, correct: bool = False,
                 raise_on_mismatch: bool = False) -> CorpusComparison:
    """
    Compare the term frequencies in corpus X, given as document-term matrix `dtm_x`, with the term frequencies in
    corpus Y, given as `dtm_y`. The two DTMs may have different vocabularies.

    The comparison table contains a row for each term that occurs in at least one of both corpora with the following
    columns:

    - ``termfreq_x``, ``termfreq_y``: number of occurrences in X and Y (0 if a term doesn't occur in a corpus)
    - ``relfreq_x``, ``relfreq_y``: number of occurrences divided by the total number of term occurrences in X and Y
    - ``over``: overrepresentation ``(relfreq_x + smooth) / (relfreq_y + smooth)``; without smoothing, this is +inf if
      a term only occurs in X
    - ``chi2``: chi-square statistic (unsigned) for the 2x2 contingency table of term occurs / doesn't occur and
      corpus X / corpus Y
    - ``p``: p-value for ``chi2`` with one degree of freedom

    The table is sorted by ``over`` in descending order, ties are broken by term. If X and Y don't share a single term,
    the result is an empty table with the ``vocabulary_mismatch`` flag set, or a
    :class:`~dtmtoolkit.errors.VocabularyMismatch` error is raised if `raise_on_mismatch` is True.

    :param dtm_x: document-term matrix for corpus X
    :param dtm_y: document-term matrix for corpus Y
    :param smooth: non-negative smoothing constant added to both relative frequencies for calculating ``over``
    :param correct: if True, apply Yates' continuity correction to the chi-square statistic
    :param raise_on_mismatch: if True, raise an error instead of returning a flagged empty result when `dtm_x` and
                              `dtm_y` don't share any terms
    :return: a :class:`CorpusComparison` object
    """
    if not isinstance(dtm_x, DocumentTermMatrix) or not isinstance(dtm_y, DocumentTermMatrix):
        raise ValueError('`dtm_x` and `dtm_y` must be DocumentTermMatrix objects')

    if smooth < 0:
        raise ValueError('`smooth` must be >= 0')

    freq_x, total_x = _nonzero_term_frequencies(dtm_x, 'dtm_x')
    freq_y, total_y = _nonzero_term_frequencies(dtm_y, 'dtm_y')

    shared = freq_x.index.intersection(freq_y.index)
    if len(shared) == 0:
        if raise_on_mismatch:
            raise VocabularyMismatch('`dtm_x` and `dtm_y` do not share any terms')

        logger.info('DTMs do not share any terms; returning empty comparison')
        return CorpusComparison(_empty_table(), total_x=total_x, total_y=total_y, vocabulary_mismatch=True)

    terms = freq_x.index.union(freq_y.index)

    logger.info(f'comparing {len(freq_x)} terms in corpus X with {len(freq_y)} terms in corpus Y '
                f'({len(shared)} shared terms)')

    termfreq_x = freq_x.reindex(terms, fill_value=0).to_numpy()
    termfreq_y = freq_y.reindex(terms, fill_value=0).to_numpy()
    relfreq_x = termfreq_x / total_x
    relfreq_y = termfreq_y / total_y
    chi2 = chi2_statistic(termfreq_x, termfreq_y, total_x, total_y, correct=correct)

    table = pd.DataFrame({
        'term': terms.to_numpy(),
        'termfreq_x': termfreq_x.astype(int),
        'termfreq_y': termfreq_y.astype(int),
        'relfreq_x': relfreq_x,
        'relfreq_y': relfreq_y,
        'over': overrepresentation(relfreq_x, relfreq_y, smooth=smooth),
        'chi2': chi2,
        'p': chi2_distrib.sf(chi2, df=1),
    }, columns=list(COMPARISON_COLUMNS))

    return CorpusComparison(_sort_table(table, ascending=False), total_x=total_x, total_y=total_y)


def overrepresentation(relfreq_x: np.ndarray, relfreq_y: np.ndarray, smooth: float = 0.0) -> np.ndarray:
    """
    Calculate the overrepresentation ``(relfreq_x + smooth) / (relfreq_y + smooth)`` for arrays of relative
    frequencies. Where the denominator is 0, the result is +inf if the numerator is positive, otherwise 0.

    :param relfreq_x: relative frequencies in corpus X
    :param relfreq_y: relative frequencies in corpus Y
    :param smooth: non-negative smoothing constant
    :return: array of overrepresentation ratios
    """
    num = np.asarray(relfreq_x, dtype=float) + smooth
    denom = np.asarray(relfreq_y, dtype=float) + smooth

    with np.errstate(divide='ignore', invalid='ignore'):
        return np.where(denom > 0, num / denom, np.where(num > 0, np.inf, 0.0))


def chi2_statistic(freq_x: np.ndarray, freq_y: np.ndarray, total_x: int, total_y: int, correct: bool = False) \
        -> np.ndarray:
    """
    Calculate Pearson's chi-square statistic for each term from the 2x2 contingency table

    .. code-block:: text

                            corpus X             corpus Y
        term occurs         freq_x               freq_y
        term doesn't occur  total_x - freq_x     total_y - freq_y

    Cells with an expected count of 0 don't contribute to the statistic. The result is invariant under swapping X and
    Y.

    :param freq_x: term frequencies in corpus X
    :param freq_y: term frequencies in corpus Y
    :param total_x: total number of term occurrences in corpus X
    :param total_y: total number of term occurrences in corpus Y
    :param correct: if True, apply Yates' continuity correction
    :return: array of chi-square statistics
    """
    freq_x = np.asarray(freq_x, dtype=float)
    freq_y = np.asarray(freq_y, dtype=float)
    n = total_x + total_y

    if n <= 0:
        raise InvalidInput('the totals must not both be zero')

    occ = freq_x + freq_y               # row margin: term occurs
    nonocc = n - occ                    # row margin: term doesn't occur

    observed = (freq_x, freq_y, total_x - freq_x, total_y - freq_y)
    expected = (occ * total_x / n, occ * total_y / n, nonocc * total_x / n, nonocc * total_y / n)

    res = np.zeros(len(freq_x), dtype=float)
    for o, e in zip(observed, expected):
        dev = np.abs(o - e)
        if correct:
            dev = np.maximum(dev - 0.5, 0)
        with np.errstate(divide='ignore', invalid='ignore'):
            res += np.where(e > 0, dev ** 2 / e, 0.0)

    return res


#%% helper functions


def _nonzero_term_frequencies(dtm: DocumentTermMatrix, argname: str) -> Tuple[pd.Series, int]:
    freq = pd.Series(term_frequencies(dtm), index=list(dtm.vocab), dtype='int64')
    total = int(freq.sum())
    if total == 0:
        raise InvalidInput('`%s` does not contain any term occurrences' % argname)

    return freq[freq > 0], total


def _sort_table(table: pd.DataFrame, ascending: bool) -> pd.DataFrame:
    # always an independent copy, even if `table` is already sorted
    return table.sort_values(['over', 'term'], ascending=[ascending, True], kind='mergesort')\
        .reset_index(drop=True).copy()


def _empty_table() -> pd.DataFrame:
    return pd.DataFrame({
        'term': pd.Series([], dtype=object),
        'termfreq_x': pd.Series([], dtype=int),
        'termfreq_y': pd.Series([], dtype=int),
        'relfreq_x': pd.Series([], dtype=float),
        'relfreq_y': pd.Series([], dtype=float),
        'over': pd.Series([], dtype=float),
        'chi2': pd.Series([], dtype=float),
        'p': pd.Series([], dtype=float),
    }, columns=list(COMPARISON_COLUMNS))
