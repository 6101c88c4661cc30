"""
Functions for filtering the vocabulary of a document-term matrix by thresholds on the term statistics and for
projecting a document-term matrix onto a retained set of terms.

A typical workflow is::

    stats = term_statistics(dtm)
    terms = filter_vocabulary(stats, min_chars=2, min_termfreq=5, max_reldocfreq=0.5)
    dtm_filt = project_dtm(dtm, terms)

or simply ``filter_dtm(dtm, min_chars=2, min_termfreq=5, max_reldocfreq=0.5)``.
"""

import logging
from dataclasses import dataclass
from typing import Optional, List, Iterable

import numpy as np
import pandas as pd

from .bow_stats import term_statistics, TERM_STATISTICS_COLUMNS
from .dtm import DocumentTermMatrix


logger = logging.getLogger('dtmtoolkit')


@dataclass(frozen=True)
class VocabularyFilter:
    """
    Configuration of the threshold predicates that a term must satisfy in order to be retained. Each predicate can be
    disabled independently: set a threshold to None or an exclusion flag to False. A term is retained only if it
    satisfies *all* enabled predicates.
    """
    #: minimum number of characters of a term
    min_chars: Optional[int] = None
    #: minimum total term frequency
    min_termfreq: Optional[int] = None
    #: maximum relative document frequency in range [0, 1]
    max_reldocfreq: Optional[float] = None
    #: exclude terms that contain a decimal digit
    exclude_numbers: bool = True
    #: exclude terms that contain a character that is neither a letter nor a digit
    exclude_nonalpha: bool = True

    def __post_init__(self):
        if self.min_chars is not None and self.min_chars < 0:
            raise ValueError('`min_chars` must be >= 0')
        if self.min_termfreq is not None and self.min_termfreq < 0:
            raise ValueError('`min_termfreq` must be >= 0')
        if self.max_reldocfreq is not None and not 0 <= self.max_reldocfreq <= 1:
            raise ValueError('`max_reldocfreq` must be in range [0, 1]')

    def mask(self, stats: pd.DataFrame) -> np.ndarray:
        """
        Return a boolean mask for the rows of the term statistics table `stats` that indicates which terms satisfy
        all enabled predicates.

        :param stats: term statistics table as generated by :func:`~dtmtoolkit.bow.bow_stats.term_statistics`
        :return: boolean NumPy array of length ``len(stats)``
        """
        missing_cols = set(TERM_STATISTICS_COLUMNS) - set(stats.columns)
        if missing_cols:
            raise ValueError('`stats` is missing the following term statistics columns: %s'
                             % ', '.join(sorted(missing_cols)))

        mask = np.repeat(True, len(stats))

        if self.min_chars is not None:
            mask &= (stats['characters'] >= self.min_chars).to_numpy()

        if self.min_termfreq is not None:
            mask &= (stats['termfreq'] >= self.min_termfreq).to_numpy()

        if self.max_reldocfreq is not None:
            mask &= (stats['reldocfreq'] <= self.max_reldocfreq).to_numpy()

        if self.exclude_numbers:
            mask &= ~stats['number'].to_numpy(dtype=bool)

        if self.exclude_nonalpha:
            mask &= ~stats['nonalpha'].to_numpy(dtype=bool)

        return mask

    def apply(self, stats: pd.DataFrame) -> List[str]:
        """
        Return the terms in the term statistics table `stats` that satisfy all enabled predicates in table order.

        :param stats: term statistics table as generated by :func:`~dtmtoolkit.bow.bow_stats.term_statistics`
        :return: list of retained terms
        """
        return stats['term'][self.mask(stats)].tolist()


def filter_vocabulary(stats: pd.DataFrame,
                      min_chars: Optional[int] = None,
                      min_termfreq: Optional[int] = None,
                      max_reldocfreq: Optional[float] = None,
                      exclude_numbers: bool = True,
                      exclude_nonalpha: bool = True) -> List[str]:
    """
    Derive the retained set of terms from the term statistics table `stats`. A term is retained only if it satisfies
    all enabled threshold predicates.

    :param stats: term statistics table as generated by :func:`~dtmtoolkit.bow.bow_stats.term_statistics`
    :param min_chars: if not None, retain only terms with at least this number of characters
    :param min_termfreq: if not None, retain only terms with at least this total term frequency
    :param max_reldocfreq: if not None, retain only terms with at most this relative document frequency
    :param exclude_numbers: if True, exclude terms that contain a decimal digit
    :param exclude_nonalpha: if True, exclude terms that contain a character that is neither a letter nor a digit
    :return: list of retained terms in table order
    """
    vfilter = VocabularyFilter(min_chars=min_chars, min_termfreq=min_termfreq, max_reldocfreq=max_reldocfreq,
                               exclude_numbers=exclude_numbers, exclude_nonalpha=exclude_nonalpha)
    return vfilter.apply(stats)


def project_dtm(dtm: DocumentTermMatrix, terms: Iterable[str], strict: bool = False) -> DocumentTermMatrix:
    """
    Project document-term matrix `dtm` onto the set of terms `terms`, i.e. return a new DTM that contains only the
    columns for terms in `terms`. All documents are retained in the result, even those that don't contain any of
    the retained terms, so that the rows stay aligned with per-document metadata.

    `terms` may contain terms that don't occur in `dtm`. These are ignored unless `strict` is True.

    :param dtm: a DocumentTermMatrix
    :param terms: collection of terms to retain; a single string is not accepted
    :param strict: if True, raise a :class:`~dtmtoolkit.errors.DimensionError` if `terms` contains terms that don't
                   exist in `dtm`
    :return: projected DocumentTermMatrix
    """
    if isinstance(terms, str):
        raise ValueError('`terms` must be a collection of term strings, not a single string')

    terms = set(terms)
    n_unknown = sum(not dtm.has_term(t) for t in terms)
    if n_unknown > 0 and not strict:
        logger.debug(f'ignoring {n_unknown} terms that do not exist in the DTM')

    res = dtm.select_terms(terms, strict=strict)

    logger.info(f'projected DTM from vocab size {dtm.n_terms} to {res.n_terms}')

    return res


def filter_dtm(dtm: DocumentTermMatrix, vfilter: Optional[VocabularyFilter] = None, **thresholds) \
        -> DocumentTermMatrix:
    """
    Filter the vocabulary of document-term matrix `dtm`: compute the term statistics, determine the retained terms
    and project `dtm` onto them. Filtering an already filtered DTM with the same thresholds yields the same DTM.

    :param dtm: a DocumentTermMatrix
    :param vfilter: a :class:`VocabularyFilter` object; if None, create one from `thresholds`
    :param thresholds: threshold arguments passed to :class:`VocabularyFilter`; see
                       :func:`~dtmtoolkit.bow.vocab_filter.filter_vocabulary`
    :return: filtered DocumentTermMatrix
    """
    if vfilter is not None and thresholds:
        raise ValueError('either pass `vfilter` or threshold arguments, not both')

    if vfilter is None:
        vfilter = VocabularyFilter(**thresholds)

    terms = vfilter.apply(term_statistics(dtm))
    return project_dtm(dtm, terms)
