"""
Sparse document-term matrix (DTM) type and functions for creating a DTM from token records or tokenized documents.
"""

import logging
from collections import Counter
from typing import Union, List, Optional, Any, Iterable, Iterator, Dict, Tuple, Sequence, Collection

import numpy as np
import pandas as pd
from bidict import bidict
from scipy.sparse import coo_matrix, csr_matrix, issparse
from loky import get_reusable_executor

from .. import defaults
from ..errors import InvalidInput, DimensionError
from ..tokenseq import as_token_record, token_records
from ..types import StrOrInt
from ..utils import flatten_list, split_contiguous


logger = logging.getLogger('dtmtoolkit')


#%% document-term matrix type


class DocumentTermMatrix:
    """
    Immutable sparse document-term matrix (DTM) with raw term counts.

    The matrix rows correspond to documents, its columns to terms. Both are addressed by their labels (document
    identifier and term string); the internal dense, zero-based indices are only an implementation detail and callers
    must not depend on their order. Only non-zero cells are stored.

    Operations that filter or project a DTM always return a new object. The underlying sparse matrix is only handed
    out as copy via :attr:`matrix`.

    Example::

        dtm = dtm_from_tokens([('d1', 'chicken'), ('d1', 'bird'), ('d2', 'bird')])
        dtm['d1', 'bird']   # -> 1
        dtm.row('d2')       # -> {'bird': 1}
    """

    def __init__(self, matrix, doc_labels: Sequence[StrOrInt], vocab: Sequence[str],
                 dtype: Optional[Union[str, np.dtype]] = None):
        """
        Create a document-term matrix from a NumPy array, a SciPy sparse matrix or a nested list `matrix` with
        document labels `doc_labels` for the rows and terms `vocab` for the columns.

        :param matrix: 2D array or sparse matrix of shape ``(len(doc_labels), len(vocab))`` with non-negative integer
                       counts
        :param doc_labels: sequence of unique document labels
        :param vocab: sequence of unique term strings
        :param dtype: optionally convert the counts to this integer dtype; default is the dtype of `matrix` or
                      :data:`dtmtoolkit.defaults.dtm_dtype` if `matrix` is not of an integer type
        """
        if issparse(matrix):
            mat = csr_matrix(matrix, copy=True)
        else:
            arr = np.asarray(matrix)
            if arr.ndim != 2:
                raise InvalidInput('`matrix` must be a 2D array/matrix')
            mat = csr_matrix(arr)

        if mat.ndim != 2:
            raise InvalidInput('`matrix` must be a 2D array/matrix')

        if dtype is None and not np.issubdtype(mat.dtype, np.integer):
            if mat.nnz > 0 and not np.all(np.mod(mat.data, 1) == 0):
                raise InvalidInput('`matrix` must contain integer counts')
            dtype = defaults.dtm_dtype

        if dtype is not None:
            mat = mat.astype(dtype)

        mat.sum_duplicates()
        mat.eliminate_zeros()     # never store zero counts

        if mat.nnz > 0 and mat.data.min() < 0:
            raise InvalidInput('`matrix` must not contain negative counts')

        doc_labels = tuple(doc_labels)
        vocab = tuple(vocab)

        if len(doc_labels) != mat.shape[0]:
            raise InvalidInput('number of rows in `matrix` must be equal to `len(doc_labels)`')

        if len(vocab) != mat.shape[1]:
            raise InvalidInput('number of columns in `matrix` must be equal to `len(vocab)`')

        if len(set(doc_labels)) != len(doc_labels):
            raise InvalidInput('`doc_labels` must be unique')

        if len(set(vocab)) != len(vocab):
            raise InvalidInput('`vocab` must be unique')

        self._mat = mat
        self._csc = None   # column-major copy; created on demand
        self._doc_labels = doc_labels
        self._vocab = vocab
        self._doc_index = bidict(zip(doc_labels, range(len(doc_labels))))
        self._vocab_index = bidict(zip(vocab, range(len(vocab))))

    def __repr__(self) -> str:
        return f'<DocumentTermMatrix [{self.n_docs} documents x {self.n_terms} terms, {self.nnz} non-zero cells, ' \
               f'{self.total} term occurrences]>'

    def __getitem__(self, key: Tuple[StrOrInt, str]) -> int:
        """
        Return the count for ``(document label, term)`` `key`. Raises a ``KeyError`` if either the document or the
        term doesn't exist in the DTM.
        """
        try:
            doc, term = key
        except (TypeError, ValueError):
            raise KeyError('key must be a pair (document label, term)')

        return int(self._mat[self._doc_index[doc], self._vocab_index[term]])

    def __eq__(self, other) -> bool:
        """
        Two DTMs are equal if they have the same set of documents, the same set of terms and the same counts for all
        ``(document, term)`` pairs. The order of documents and terms is not considered.
        """
        if not isinstance(other, DocumentTermMatrix):
            return NotImplemented

        return self.shape == other.shape and \
            set(self._doc_labels) == set(other._doc_labels) and \
            set(self._vocab) == set(other._vocab) and \
            self.cells() == other.cells()

    __hash__ = None

    @property
    def matrix(self) -> csr_matrix:
        """Copy of the DTM as sparse matrix in CSR format with shape ``(n_docs, n_terms)``."""
        return self._mat.copy()

    @property
    def doc_labels(self) -> Tuple[StrOrInt, ...]:
        """Document labels in row order."""
        return self._doc_labels

    @property
    def vocab(self) -> Tuple[str, ...]:
        """Terms in column order."""
        return self._vocab

    @property
    def shape(self) -> Tuple[int, int]:
        """Shape of the DTM as ``(n_docs, n_terms)``."""
        return self._mat.shape

    @property
    def n_docs(self) -> int:
        return self._mat.shape[0]

    @property
    def n_terms(self) -> int:
        return self._mat.shape[1]

    @property
    def nnz(self) -> int:
        """Number of stored, i.e. non-zero, cells."""
        return self._mat.nnz

    @property
    def total(self) -> int:
        """Grand total of all term occurrences."""
        return int(self._mat.sum())

    @property
    def dtype(self) -> np.dtype:
        return self._mat.dtype

    def get(self, doc: StrOrInt, term: str, default: Any = 0) -> Any:
        """
        Return the count for document `doc` and term `term` or `default` if either the document or the term doesn't
        exist in the DTM.
        """
        if doc not in self._doc_index or term not in self._vocab_index:
            return default
        return self[doc, term]

    def has_doc(self, doc: StrOrInt) -> bool:
        return doc in self._doc_index

    def has_term(self, term: str) -> bool:
        return term in self._vocab_index

    def doc_index(self, doc: StrOrInt) -> int:
        """Return the row index for document label `doc`."""
        return self._doc_index[doc]

    def term_index(self, term: str) -> int:
        """Return the column index for term `term`."""
        return self._vocab_index[term]

    def row(self, doc: StrOrInt) -> Dict[str, int]:
        """
        Return the non-zero counts of document `doc` as dict mapping term to count.

        :param doc: document label
        :return: dict with term -> count mapping; empty for documents without any term occurrences
        """
        return self._row_by_index(self._doc_index[doc])

    def column(self, term: str) -> Dict[StrOrInt, int]:
        """
        Return the non-zero counts of term `term` as dict mapping document label to count.

        :param term: term string
        :return: dict with document label -> count mapping
        """
        return self._col_by_index(self._vocab_index[term])

    def iter_rows(self) -> Iterator[Tuple[StrOrInt, Dict[str, int]]]:
        """Iterate through all documents (including empty documents), yielding ``(document label, row dict)``."""
        for i, doc in enumerate(self._doc_labels):
            yield doc, self._row_by_index(i)

    def iter_cols(self) -> Iterator[Tuple[str, Dict[StrOrInt, int]]]:
        """Iterate through all terms, yielding ``(term, column dict)``."""
        for j, term in enumerate(self._vocab):
            yield term, self._col_by_index(j)

    def cells(self) -> Dict[Tuple[StrOrInt, str], int]:
        """
        Return all non-zero cells as dict mapping ``(document label, term)`` to count.
        """
        coo = self._mat.tocoo()
        return {(self._doc_index.inverse[i], self._vocab_index.inverse[j]): int(v)
                for i, j, v in zip(coo.row, coo.col, coo.data)}

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert the DTM to a *dense* pandas DataFrame with document labels as index and terms as columns.

        .. warning:: This may require a lot of memory for large DTMs.

        :return: pandas DataFrame
        """
        return dtm_to_dataframe(self._mat, self._doc_labels, self._vocab)

    def select_terms(self, terms: Iterable[str], strict: bool = False) -> 'DocumentTermMatrix':
        """
        Return a new DTM with only the columns for terms in `terms`. The original column order is retained. All
        documents are retained, even if they don't contain any term occurrences afterwards.

        :param terms: terms to select
        :param strict: if True, raise a :class:`~dtmtoolkit.errors.DimensionError` when `terms` contains terms that
                       don't exist in this DTM; otherwise these terms are ignored
        :return: new DocumentTermMatrix
        """
        if isinstance(terms, str):
            raise ValueError('`terms` must be a collection of term strings, not a single string')

        terms = set(terms)
        missing = {t for t in terms if t not in self._vocab_index}
        if missing and strict:
            raise DimensionError('%d terms do not exist in the DTM, e.g. %r' % (len(missing), next(iter(missing))))

        keep = np.sort(np.fromiter((self._vocab_index[t] for t in terms - missing), dtype=np.intp,
                                   count=len(terms) - len(missing)))

        return DocumentTermMatrix(self._mat[:, keep], self._doc_labels, [self._vocab[j] for j in keep])

    def select_docs(self, docs: Iterable[StrOrInt], strict: bool = False) -> 'DocumentTermMatrix':
        """
        Return a new DTM with only the rows for documents in `docs`. The original row order and all columns are
        retained.

        :param docs: document labels to select
        :param strict: if True, raise a :class:`~dtmtoolkit.errors.DimensionError` when `docs` contains documents that
                       don't exist in this DTM; otherwise these documents are ignored
        :return: new DocumentTermMatrix
        """
        if isinstance(docs, str):
            raise ValueError('`docs` must be a collection of document labels, not a single string')

        docs = set(docs)
        missing = {d for d in docs if d not in self._doc_index}
        if missing and strict:
            raise DimensionError('%d documents do not exist in the DTM, e.g. %r'
                                 % (len(missing), next(iter(missing))))

        keep = np.sort(np.fromiter((self._doc_index[d] for d in docs - missing), dtype=np.intp,
                                   count=len(docs) - len(missing)))

        return DocumentTermMatrix(self._mat[keep, :], [self._doc_labels[i] for i in keep], self._vocab)

    def _row_by_index(self, i: int) -> Dict[str, int]:
        start, end = self._mat.indptr[i], self._mat.indptr[i+1]
        return {self._vocab[j]: int(v) for j, v in zip(self._mat.indices[start:end], self._mat.data[start:end])}

    def _col_by_index(self, j: int) -> Dict[StrOrInt, int]:
        if self._csc is None:
            self._csc = self._mat.tocsc()
        start, end = self._csc.indptr[j], self._csc.indptr[j+1]
        return {self._doc_labels[i]: int(v) for i, v in zip(self._csc.indices[start:end], self._csc.data[start:end])}


#%% DTM creation


def dtm_from_tokens(tokens: Iterable[Any], dtype: Optional[Union[str, np.dtype]] = None,
                    n_workers: int = 1) -> DocumentTermMatrix:
    """
    Create a sparse document-term matrix from a sequence of token records `tokens`. Each record is a sequence
    ``(document, term)`` or a :class:`~dtmtoolkit.types.TokenRecord`; a POS tag in a record is ignored, since
    filtering by POS must happen before (see :func:`~dtmtoolkit.tokenseq.filter_tokens_by_pos`).

    The value of a cell ``(d, t)`` is the number of occurrences of term ``t`` in document ``d``. Documents and terms
    are indexed in the order in which they first appear in `tokens`.

    If `n_workers` is greater than 1, the records are split into `n_workers` contiguous chunks, which are counted in
    parallel in separate processes. The partial matrices are then merged by summing overlapping cells. The result is
    the same as for serial processing.

    :param tokens: iterable of token records
    :param dtype: data type of the counts; default is :data:`dtmtoolkit.defaults.dtm_dtype`
    :param n_workers: number of worker processes; if 1, use serial processing
    :return: a DocumentTermMatrix
    """
    if n_workers < 1:
        raise ValueError('`n_workers` must be at least 1')

    dtype = dtype or defaults.dtm_dtype

    if n_workers > 1:
        tokens = list(tokens)
        chunks = split_contiguous(tokens, n_workers)

        if len(chunks) > 1:
            logger.debug(f'counting {len(tokens)} token records in {len(chunks)} chunks in parallel')
            executor = get_reusable_executor(max_workers=len(chunks))
            futures = [executor.submit(_count_token_records, chunk) for chunk in chunks]
            parts = [f.result() for f in futures]     # retain chunk order
        else:
            parts = [_count_token_records(tokens)]
    else:
        logger.debug('counting token records')
        parts = [_count_token_records(tokens)]

    if sum(len(data) for *_, data in parts) == 0:
        raise InvalidInput('token sequence is empty')

    res = _merge_partial_counts(parts, dtype=dtype)

    logger.info(f'generated sparse DTM with {res.n_docs} documents, vocab size {res.n_terms} and '
                f'{res.total} term occurrences')

    return res


def dtm_from_table(tokens: pd.DataFrame, doc_col: str = 'doc', term_col: str = 'term',
                   dtype: Optional[Union[str, np.dtype]] = None, n_workers: int = 1) -> DocumentTermMatrix:
    """
    Create a sparse document-term matrix from a token table `tokens` with one token per row, e.g. as retrieved from a
    linguistic annotation service.

    .. seealso:: :func:`~dtmtoolkit.bow.dtm.dtm_from_tokens`

    :param tokens: pandas DataFrame with at least a document identifier column and a term column
    :param doc_col: name of the document identifier column
    :param term_col: name of the term column, e.g. a column with lemmata
    :param dtype: data type of the counts; default is :data:`dtmtoolkit.defaults.dtm_dtype`
    :param n_workers: number of worker processes; if 1, use serial processing
    :return: a DocumentTermMatrix
    """
    return dtm_from_tokens(token_records(tokens, doc_col=doc_col, term_col=term_col, pos_col=None),
                           dtype=dtype, n_workers=n_workers)


def dtm_from_docs(docs: Dict[StrOrInt, Sequence[str]], dtype: Optional[Union[str, np.dtype]] = None) \
        -> DocumentTermMatrix:
    """
    Create a sparse document-term matrix from a dict `docs` that maps document labels to tokenized documents. Unlike
    :func:`~dtmtoolkit.bow.dtm.dtm_from_tokens`, this allows to include documents without any tokens, which will
    become empty rows in the DTM.

    :param docs: dict mapping document labels to token sequences
    :param dtype: data type of the counts; default is :data:`dtmtoolkit.defaults.dtm_dtype`
    :return: a DocumentTermMatrix
    """
    if not docs:
        raise InvalidInput('`docs` must contain at least one document')

    tokens = [list(dtok) for dtok in docs.values()]
    for dtok in tokens:
        if not all(isinstance(t, str) for t in dtok):
            raise InvalidInput('all tokens must be strings')

    vocab = list(dict.fromkeys(flatten_list(tokens)))    # unique terms in order of appearance
    if not vocab:
        raise InvalidInput('`docs` does not contain any tokens')

    alloc_size = sum(len(set(dtok)) for dtok in tokens)  # sum of *unique* tokens in each document
    mat = create_sparse_dtm(np.array(vocab), tokens, alloc_size, dtype=dtype or defaults.dtm_dtype)

    return DocumentTermMatrix(mat, list(docs.keys()), vocab)


def create_sparse_dtm(vocab, docs, n_unique_tokens, vocab_is_sorted=False, dtype=np.intc):
    """
    Create a sparse document-term-matrix (DTM) as matrix in
    `COO sparse format <https://docs.scipy.org/doc/scipy/reference/generated/scipy.sparse.coo_matrix.html>`_
    from vocabulary array `vocab`, a list of tokenized documents `docs` and the number of unique tokens across all
    documents `n_unique_tokens`.

    The DTM's rows are document names, its columns are indices in `vocab`, hence a value ``DTM[j, k]`` is the
    term frequency of term ``vocab[k]`` in document ``j``.

    A note on performance: Creating the three arrays for a COO matrix seems to be the fastest way to generate a DTM.
    An alternative implementation using LIL format was ~2x slower.

    Memory requirement: about ``3 * <n_unique_tokens> * 4`` bytes with default dtype (32-bit integer).

    .. seealso:: This is the "low level" function. For the straight-forward to use function see
                 :func:`~dtmtoolkit.bow.dtm.dtm_from_docs`, which also calculates `n_unique_tokens`.

    :param vocab: NumPy array of vocabulary used as column names; size must equal number of columns in `dtm`
    :param docs: a list of tokenized documents
    :param n_unique_tokens: number of unique tokens across all documents
    :param vocab_is_sorted: if True, assume that `vocab` is sorted when creating the token IDs
    :param dtype: data type of the resulting matrix
    :return: a sparse document-term-matrix in COO sparse format
    """

    if vocab_is_sorted:
        vocab_sorter = None
    else:
        vocab_sorter = np.argsort(vocab)  # indices that sort <vocab>

    nvocab = len(vocab)
    ndocs = len(docs)

    # create arrays for sparse matrix
    data = np.empty(n_unique_tokens, dtype=dtype)  # all non-zero term frequencies at data[k]
    cols = np.empty(n_unique_tokens, dtype=np.intp)  # column index for kth data item (kth term freq.)
    rows = np.empty(n_unique_tokens, dtype=np.intp)  # row index for kth data item (kth term freq.)

    ind = 0  # current index in the sparse matrix data
    # go through all documents with their terms
    for doc_idx, terms in enumerate(docs):
        if len(terms) == 0: continue   # skip empty documents

        # find indices into `vocab` such that, if the corresponding elements in `terms` were
        # inserted before the indices, the order of `vocab` would be preserved
        # -> array of indices of `terms` in `vocab`
        if vocab_is_sorted:
            term_indices = np.searchsorted(vocab, terms)
        else:
            term_indices = vocab_sorter[np.searchsorted(vocab, terms, sorter=vocab_sorter)]

        # count the unique terms of the document and get their vocabulary indices
        uniq_indices, counts = np.unique(term_indices, return_counts=True)
        n_vals = len(uniq_indices)
        ind_end = ind + n_vals

        data[ind:ind_end] = counts  # save the counts (term frequencies)
        cols[ind:ind_end] = uniq_indices  # save the column index: index in <vocab>
        rows[ind:ind_end] = np.repeat(doc_idx, n_vals)  # save it as repeated value

        ind = ind_end

    assert ind == len(data)

    return coo_matrix((data, (rows, cols)), shape=(ndocs, nvocab), dtype=dtype)


def dtm_to_dataframe(dtm, doc_labels, vocab) -> pd.DataFrame:
    """
    Convert a (sparse) DTM to a pandas DataFrame using document labels `doc_labels` as row index and `vocab` as column
    names.

    :param dtm: (sparse) document-term-matrix of size NxM (N docs, M is vocab size) with raw terms counts
    :param doc_labels: document labels used as row index (row names); size must equal number of rows in `dtm`
    :param vocab: list or array of vocabulary used as column names; size must equal number of columns in `dtm`
    :return: pandas DataFrame
    """
    if dtm.ndim != 2:
        raise ValueError('`dtm` must be a 2D array/matrix')

    if dtm.shape[0] != len(doc_labels):
        raise ValueError('number of rows must be equal to `len(doc_labels)`')

    if dtm.shape[1] != len(vocab):
        raise ValueError('number of columns must be equal to `len(vocab)`')

    if issparse(dtm):
        dtm = dtm.toarray()
    else:
        dtm = np.asarray(dtm)

    return pd.DataFrame(dtm, index=list(doc_labels), columns=list(vocab))


def as_matrix(dtm):
    """
    Return the sparse matrix of a :class:`DocumentTermMatrix` `dtm` or `dtm` itself, if it is already a (sparse)
    matrix or array.
    """
    if isinstance(dtm, DocumentTermMatrix):
        return dtm.matrix
    return dtm


#%% helper functions


def _count_token_records(records: Iterable[Any]) \
        -> Tuple[List[StrOrInt], List[str], np.ndarray, np.ndarray, np.ndarray]:
    """
    Count ``(document, term)`` pairs in `records`. Returns document labels and terms in first-seen order together with
    the row indices, column indices and counts of all non-zero cells.
    """
    doc_index = {}
    vocab_index = {}
    counts = Counter()

    for rec in records:
        rec = as_token_record(rec)
        i = doc_index.setdefault(rec.doc, len(doc_index))
        j = vocab_index.setdefault(rec.term, len(vocab_index))
        counts[(i, j)] += 1

    n = len(counts)
    rows = np.fromiter((i for i, _ in counts.keys()), dtype=np.intp, count=n)
    cols = np.fromiter((j for _, j in counts.keys()), dtype=np.intp, count=n)
    data = np.fromiter(counts.values(), dtype=np.int64, count=n)

    return list(doc_index.keys()), list(vocab_index.keys()), rows, cols, data


def _merge_partial_counts(parts: Collection[Tuple[List[StrOrInt], List[str], np.ndarray, np.ndarray, np.ndarray]],
                          dtype: Union[str, np.dtype]) -> DocumentTermMatrix:
    """
    Merge partial counts from :func:`_count_token_records` in order. Overlapping cells are summed up.
    """
    doc_index = {}
    vocab_index = {}
    all_rows = []
    all_cols = []
    all_data = []

    for p_docs, p_vocab, rows, cols, data in parts:
        # map the chunk's local indices to global indices; since chunks are processed in order, the global indices
        # retain the first-seen order
        doc_map = np.array([doc_index.setdefault(d, len(doc_index)) for d in p_docs], dtype=np.intp)
        vocab_map = np.array([vocab_index.setdefault(t, len(vocab_index)) for t in p_vocab], dtype=np.intp)

        if len(data) > 0:
            all_rows.append(doc_map[rows])
            all_cols.append(vocab_map[cols])
            all_data.append(data)

    mat = coo_matrix((np.concatenate(all_data), (np.concatenate(all_rows), np.concatenate(all_cols))),
                     shape=(len(doc_index), len(vocab_index)), dtype=dtype)

    return DocumentTermMatrix(mat.tocsr(), list(doc_index.keys()), list(vocab_index.keys()))
