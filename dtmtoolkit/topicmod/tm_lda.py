"""
Topic model computation using the `lda package <https://github.com/lda-project/lda>`_.

The document-term matrix is prepared for model fitting (empty documents and terms without occurrences are
dropped) and the model results are mapped back onto the document labels and terms of the original document-term
matrix, so that they can be joined with per-document metadata.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Any

import numpy as np
import pandas as pd

from .. import defaults
from ..bow.bow_stats import doc_lengths, term_frequencies
from ..bow.dtm import DocumentTermMatrix
from ..errors import InvalidInput
from ..types import StrOrInt
from ._common import DEFAULT_TOPIC_NAME_FMT, DEFAULT_RANK_NAME_FMT
from .model_stats import top_n_from_distribution, join_value_and_label_dfs


logger = logging.getLogger('dtmtoolkit')


@dataclass(frozen=True)
class LDAResult:
    """
    A fitted LDA topic model together with the information needed to map its results back to document labels and
    terms.
    """
    #: fitted ``lda.LDA`` model instance
    model: Any
    #: document-term matrix that was used for fitting (without empty documents and unused terms)
    dtm: DocumentTermMatrix
    #: document labels of the document-term matrix that was passed to :func:`fit_lda`
    all_doc_labels: Tuple[StrOrInt, ...]

    @property
    def n_topics(self) -> int:
        return self.model.n_topics

    @property
    def vocab(self) -> Tuple[str, ...]:
        """Terms that were used for fitting in the column order of :meth:`topic_words`."""
        return self.dtm.vocab

    @property
    def topic_labels(self) -> list:
        return [DEFAULT_TOPIC_NAME_FMT.format(i0=k, i1=k+1) for k in range(self.n_topics)]

    def doc_topics(self) -> pd.DataFrame:
        """
        Document-topic distribution as table with one row per document of the *original* document-term matrix and
        one column per topic. Documents that were dropped before fitting because they did not contain any terms have
        NaN values.

        :return: pandas DataFrame indexed by document label
        """
        df = pd.DataFrame(self.model.doc_topic_, index=list(self.dtm.doc_labels), columns=self.topic_labels)
        return df.reindex(list(self.all_doc_labels))

    def topic_words(self) -> pd.DataFrame:
        """
        Topic-word distribution as table with one row per topic and one column per term.

        :return: pandas DataFrame indexed by topic label
        """
        return pd.DataFrame(self.model.topic_word_, index=self.topic_labels, columns=list(self.vocab))

    def top_topic_words(self, top_n: int = 10, with_prob: bool = False) -> pd.DataFrame:
        """
        Retrieve the top (i.e. most probable) `top_n` terms for each topic.

        :param top_n: number of most probable terms per topic
        :param with_prob: if True, add the probability to each term like ``"term (0.1234)"``
        :return: pandas DataFrame with topics as rows and ranks as columns
        """
        labels = top_n_from_distribution(self.model.topic_word_, top_n=top_n, row_labels=DEFAULT_TOPIC_NAME_FMT,
                                         col_labels=DEFAULT_RANK_NAME_FMT, val_labels=self.vocab)
        if with_prob:
            vals = top_n_from_distribution(self.model.topic_word_, top_n=top_n, row_labels=DEFAULT_TOPIC_NAME_FMT,
                                           col_labels=DEFAULT_RANK_NAME_FMT)
            return join_value_and_label_dfs(vals, labels)
        else:
            return labels

    def top_doc_topics(self, top_n: int = 3, with_prob: bool = False) -> pd.DataFrame:
        """
        Retrieve the top (i.e. most probable) `top_n` topics for each document that was used for fitting.

        :param top_n: number of most probable topics per document
        :param with_prob: if True, add the probability to each topic like ``"topic_1 (0.1234)"``
        :return: pandas DataFrame with documents as rows and ranks as columns
        """
        labels = top_n_from_distribution(self.model.doc_topic_, top_n=top_n, row_labels=self.dtm.doc_labels,
                                         col_labels=DEFAULT_RANK_NAME_FMT, val_labels=DEFAULT_TOPIC_NAME_FMT)
        if with_prob:
            vals = top_n_from_distribution(self.model.doc_topic_, top_n=top_n, row_labels=self.dtm.doc_labels,
                                           col_labels=DEFAULT_RANK_NAME_FMT)
            return join_value_and_label_dfs(vals, labels)
        else:
            return labels

    def dominant_topic(self) -> pd.Series:
        """
        Most probable topic for each document of the original document-term matrix; NaN for documents that were
        dropped before fitting.

        :return: pandas Series indexed by document label
        """
        topic_labels = np.array(self.topic_labels, dtype=object)
        dominant = pd.Series(topic_labels[np.argmax(self.model.doc_topic_, axis=1)], index=list(self.dtm.doc_labels),
                             dtype=object)
        return dominant.reindex(list(self.all_doc_labels))

    def token_topic_assignments(self) -> pd.DataFrame:
        """
        Assign a topic to the occurrences of each term in each document: for a document *d* and a term *w*, this is
        the topic *z* that maximizes ``p(z|d) * p(w|z)``.

        :return: pandas DataFrame with columns ``doc``, ``term``, ``topic`` and ``count`` with one row per non-zero
                 cell of the document-term matrix used for fitting
        """
        coo = self.dtm.matrix.tocoo()
        probs = self.model.doc_topic_[coo.row, :] * self.model.topic_word_[:, coo.col].T   # shape: nnz x K
        topic_labels = np.array(self.topic_labels, dtype=object)
        doc_labels = np.array(self.dtm.doc_labels, dtype=object)
        vocab = np.array(self.dtm.vocab, dtype=object)

        return pd.DataFrame({
            'doc': doc_labels[coo.row],
            'term': vocab[coo.col],
            'topic': topic_labels[np.argmax(probs, axis=1)],
            'count': coo.data.astype(int),
        })


def prepare_dtm_for_lda(dtm: DocumentTermMatrix) -> DocumentTermMatrix:
    """
    Drop all documents without any term occurrences and all terms that don't occur in any document from `dtm`, since
    these carry no information for fitting a topic model.

    :param dtm: a DocumentTermMatrix
    :return: DocumentTermMatrix with non-empty rows and columns
    """
    if not isinstance(dtm, DocumentTermMatrix):
        raise ValueError('`dtm` must be a DocumentTermMatrix')

    if dtm.total == 0:
        raise InvalidInput('`dtm` does not contain any term occurrences')

    mat = dtm.matrix
    nonempty_docs = [lbl for lbl, n in zip(dtm.doc_labels, doc_lengths(mat)) if n > 0]
    used_terms = [t for t, n in zip(dtm.vocab, term_frequencies(mat)) if n > 0]

    if len(nonempty_docs) < dtm.n_docs:
        logger.info(f'dropping {dtm.n_docs - len(nonempty_docs)} empty documents before fitting the topic model')
        dtm = dtm.select_docs(nonempty_docs)

    if len(used_terms) < dtm.n_terms:
        logger.info(f'dropping {dtm.n_terms - len(used_terms)} unused terms before fitting the topic model')
        dtm = dtm.select_terms(used_terms)

    return dtm


def fit_lda(dtm: DocumentTermMatrix, n_topics: int, n_iter: Optional[int] = None, alpha: Optional[float] = None,
            eta: Optional[float] = None, random_state: Optional[int] = None, refresh: Optional[int] = None) \
        -> LDAResult:
    """
    Fit an LDA topic model with `n_topics` topics on document-term matrix `dtm` using collapsed Gibbs sampling as
    implemented in the `lda package <https://github.com/lda-project/lda>`_.

    Pass a fixed `random_state` in order to get reproducible results.

    :param dtm: a DocumentTermMatrix
    :param n_topics: number of topics
    :param n_iter: number of sampling iterations; default is :data:`dtmtoolkit.defaults.lda_n_iter`
    :param alpha: Dirichlet parameter for the document-topic distribution; default is
                  :data:`dtmtoolkit.defaults.lda_alpha`
    :param eta: Dirichlet parameter for the topic-word distribution; default is :data:`dtmtoolkit.defaults.lda_eta`
    :param random_state: seed for the random number generator
    :param refresh: number of iterations between log likelihood computations; default is
                    :data:`dtmtoolkit.defaults.lda_refresh`
    :return: a :class:`LDAResult` object
    """
    from lda import LDA

    if n_topics < 1:
        raise ValueError('`n_topics` must be at least 1')

    params = dict(
        n_topics=n_topics,
        n_iter=n_iter or defaults.lda_n_iter,
        alpha=alpha or defaults.lda_alpha,
        eta=eta or defaults.lda_eta,
        random_state=random_state,
        refresh=refresh or defaults.lda_refresh,
    )

    fit_dtm = prepare_dtm_for_lda(dtm)

    logger.info(f'fitting LDA model with {n_topics} topics on DTM of shape {fit_dtm.shape} '
                f'(n_iter={params["n_iter"]}, alpha={params["alpha"]}, eta={params["eta"]})')

    model = LDA(**params)
    model.fit(fit_dtm.matrix)

    logger.debug(f'final log likelihood: {model.loglikelihood()}')

    return LDAResult(model=model, dtm=fit_dtm, all_doc_labels=dtm.doc_labels)
