from collections import Counter

import numpy as np
import pandas as pd
import pytest
from hypothesis import given
from scipy.sparse import csr_matrix, coo_matrix, issparse

from dtmtoolkit import bow
from dtmtoolkit.bow.dtm import DocumentTermMatrix, create_sparse_dtm, dtm_to_dataframe, as_matrix
from dtmtoolkit.errors import InvalidInput, DimensionError
from dtmtoolkit.types import TokenRecord

from ._testtools import strategy_token_records, strategy_dtm_small


EXAMPLE_TOKENS = [('d1', 'chicken'), ('d1', 'bird'), ('d2', 'bird'), ('d2', 'eat'), ('d2', 'eat')]


@pytest.fixture
def example_dtm():
    return bow.dtm_from_tokens(EXAMPLE_TOKENS)


#%% DocumentTermMatrix type


def test_dtm_example(example_dtm):
    dtm = example_dtm

    assert isinstance(dtm, DocumentTermMatrix)
    assert dtm.shape == (2, 3)
    assert dtm.n_docs == 2
    assert dtm.n_terms == 3
    assert dtm.nnz == 4
    assert dtm.total == 5
    assert dtm.doc_labels == ('d1', 'd2')
    assert dtm.vocab == ('chicken', 'bird', 'eat')    # first-seen order
    assert np.issubdtype(dtm.dtype, np.integer)

    assert dtm['d1', 'chicken'] == 1
    assert dtm['d1', 'bird'] == 1
    assert dtm['d2', 'bird'] == 1
    assert dtm['d2', 'eat'] == 2
    assert dtm['d1', 'eat'] == 0
    assert dtm['d2', 'chicken'] == 0

    assert dtm.cells() == {('d1', 'chicken'): 1, ('d1', 'bird'): 1, ('d2', 'bird'): 1, ('d2', 'eat'): 2}

    assert repr(dtm) == '<DocumentTermMatrix [2 documents x 3 terms, 4 non-zero cells, 5 term occurrences]>'


def test_dtm_lookup(example_dtm):
    dtm = example_dtm

    with pytest.raises(KeyError):
        dtm['d3', 'bird']
    with pytest.raises(KeyError):
        dtm['d1', 'dog']
    with pytest.raises(KeyError):
        dtm['d1']

    assert dtm.get('d1', 'dog') == 0
    assert dtm.get('d3', 'bird', None) is None
    assert dtm.get('d2', 'eat') == 2

    assert dtm.has_doc('d1')
    assert not dtm.has_doc('d3')
    assert dtm.has_term('eat')
    assert not dtm.has_term('dog')

    assert dtm.vocab[dtm.term_index('eat')] == 'eat'
    assert dtm.doc_labels[dtm.doc_index('d2')] == 'd2'


def test_dtm_rows_and_columns(example_dtm):
    dtm = example_dtm

    assert dtm.row('d1') == {'chicken': 1, 'bird': 1}
    assert dtm.row('d2') == {'bird': 1, 'eat': 2}
    assert dtm.column('bird') == {'d1': 1, 'd2': 1}
    assert dtm.column('eat') == {'d2': 2}

    with pytest.raises(KeyError):
        dtm.row('d3')
    with pytest.raises(KeyError):
        dtm.column('dog')

    assert list(dtm.iter_rows()) == [('d1', {'chicken': 1, 'bird': 1}), ('d2', {'bird': 1, 'eat': 2})]
    assert dict(dtm.iter_cols()) == {'chicken': {'d1': 1}, 'bird': {'d1': 1, 'd2': 1}, 'eat': {'d2': 2}}


def test_dtm_matrix_is_copy(example_dtm):
    dtm = example_dtm
    mat = dtm.matrix

    assert issparse(mat)
    assert mat.format == 'csr'
    assert mat.toarray().tolist() == [[1, 1, 0], [0, 1, 2]]

    mat[0, 0] = 100
    assert dtm['d1', 'chicken'] == 1
    assert dtm.matrix.toarray().tolist() == [[1, 1, 0], [0, 1, 2]]


def test_dtm_to_dataframe(example_dtm):
    df = example_dtm.to_dataframe()

    assert isinstance(df, pd.DataFrame)
    assert df.index.tolist() == ['d1', 'd2']
    assert df.columns.tolist() == ['chicken', 'bird', 'eat']
    assert df.to_numpy().tolist() == [[1, 1, 0], [0, 1, 2]]


def test_dtm_equality_ignores_order():
    dtm_a = DocumentTermMatrix([[1, 0], [2, 3]], ['a', 'b'], ['x', 'y'])
    dtm_b = DocumentTermMatrix([[3, 2], [0, 1]], ['b', 'a'], ['y', 'x'])
    dtm_c = DocumentTermMatrix([[1, 0], [2, 4]], ['a', 'b'], ['x', 'y'])
    dtm_d = DocumentTermMatrix([[1, 0], [2, 3]], ['a', 'c'], ['x', 'y'])

    assert dtm_a == dtm_b
    assert dtm_a != dtm_c
    assert dtm_a != dtm_d
    assert dtm_a != 'foo'

    with pytest.raises(TypeError):
        hash(dtm_a)


def test_dtm_init():
    dtm = DocumentTermMatrix(np.array([[0, 2], [0, 0]]), ['a', 'b'], ['x', 'y'])
    assert dtm.nnz == 1
    assert dtm.row('b') == {}
    assert dtm.column('x') == {}

    # explicit zeros are not stored
    dtm = DocumentTermMatrix(coo_matrix((np.array([0, 1]), (np.array([0, 1]), np.array([0, 1]))), shape=(2, 2)),
                             ['a', 'b'], ['x', 'y'])
    assert dtm.nnz == 1

    # integral floats are converted to the default dtype
    dtm = DocumentTermMatrix(np.array([[1.0, 2.0]]), ['a'], ['x', 'y'])
    assert np.issubdtype(dtm.dtype, np.integer)
    assert dtm['a', 'y'] == 2

    dtm = DocumentTermMatrix([[1, 2]], ['a'], ['x', 'y'], dtype='uint16')
    assert dtm.dtype == np.dtype('uint16')

    # empty matrix
    dtm = DocumentTermMatrix(csr_matrix((0, 0), dtype=int), [], [])
    assert dtm.shape == (0, 0)
    assert dtm.total == 0


@pytest.mark.parametrize('matrix, doc_labels, vocab', [
    ([1, 2], ['a'], ['x', 'y']),                   # not 2D
    ([[1.5, 2]], ['a'], ['x', 'y']),                # non-integer counts
    ([[-1, 2]], ['a'], ['x', 'y']),                 # negative counts
    ([[1, 2]], ['a', 'b'], ['x', 'y']),             # wrong number of doc labels
    ([[1, 2]], ['a'], ['x']),                       # wrong number of terms
    ([[1, 2], [3, 4]], ['a', 'a'], ['x', 'y']),     # non-unique doc labels
    ([[1, 2]], ['a'], ['x', 'x']),                  # non-unique vocab
])
def test_dtm_init_invalid(matrix, doc_labels, vocab):
    with pytest.raises(InvalidInput):
        DocumentTermMatrix(matrix, doc_labels, vocab)


def test_dtm_select_terms(example_dtm):
    dtm = example_dtm

    res = dtm.select_terms(['eat', 'chicken'])
    assert res is not dtm
    assert res.vocab == ('chicken', 'eat')       # original order is retained
    assert res.doc_labels == dtm.doc_labels
    assert res.cells() == {('d1', 'chicken'): 1, ('d2', 'eat'): 2}

    res = dtm.select_terms(['eat', 'dog'])
    assert res.vocab == ('eat', )
    assert res.row('d1') == {}      # zero row is kept

    res = dtm.select_terms([])
    assert res.shape == (2, 0)

    with pytest.raises(DimensionError):
        dtm.select_terms(['eat', 'dog'], strict=True)

    # a single term string is not iterated character by character
    with pytest.raises(ValueError):
        dtm.select_terms('eat')

    # original DTM is unchanged
    assert dtm.shape == (2, 3)


def test_dtm_select_docs(example_dtm):
    dtm = example_dtm

    res = dtm.select_docs(['d2'])
    assert res.doc_labels == ('d2', )
    assert res.vocab == dtm.vocab
    assert res.row('d2') == {'bird': 1, 'eat': 2}
    assert res.column('chicken') == {}

    assert dtm.select_docs(['d2', 'd1', 'd9']) == dtm

    with pytest.raises(DimensionError):
        dtm.select_docs(['d9'], strict=True)

    with pytest.raises(ValueError):
        dtm.select_docs('d1')


#%% DTM creation


def test_dtm_from_tokens_record_types():
    tokens = [TokenRecord('d1', 'chicken', 'NOUN'), ['d1', 'bird'], ('d2', 'bird', 'NOUN'),
              ('d2', 'eat', 'VERB'), ('d2', 'eat')]
    assert bow.dtm_from_tokens(tokens) == bow.dtm_from_tokens(EXAMPLE_TOKENS)

    # generator input
    assert bow.dtm_from_tokens(iter(EXAMPLE_TOKENS)) == bow.dtm_from_tokens(EXAMPLE_TOKENS)


def test_dtm_from_tokens_int_doc_labels():
    dtm = bow.dtm_from_tokens([(1, 'a'), (2, 'b'), (1, 'a')])
    assert dtm.doc_labels == (1, 2)
    assert dtm[1, 'a'] == 2


def test_dtm_from_tokens_dtype():
    dtm = bow.dtm_from_tokens(EXAMPLE_TOKENS, dtype='int64')
    assert dtm.dtype == np.dtype('int64')


@pytest.mark.parametrize('tokens', [
    [],
    [('d1', 1)],
    [('d1', 'foo'), 'd2 bar'],
    [(None, 'foo')],
])
def test_dtm_from_tokens_invalid(tokens):
    with pytest.raises(InvalidInput):
        bow.dtm_from_tokens(tokens)


def test_dtm_from_tokens_invalid_n_workers():
    with pytest.raises(ValueError):
        bow.dtm_from_tokens(EXAMPLE_TOKENS, n_workers=0)


@given(tokens=strategy_token_records())
def test_dtm_from_tokens_hypothesis(tokens):
    if not tokens:
        with pytest.raises(InvalidInput):
            bow.dtm_from_tokens(tokens)
    else:
        dtm = bow.dtm_from_tokens(tokens)
        counts = Counter(tokens)

        assert dtm.total == len(tokens)
        assert dtm.nnz == len(counts)
        assert dtm.cells() == dict(counts)
        assert dtm.doc_labels == tuple(dict.fromkeys(d for d, _ in tokens))
        assert dtm.vocab == tuple(dict.fromkeys(t for _, t in tokens))
        assert np.all(dtm.matrix.data > 0)


@pytest.mark.parametrize('n_workers', [2, 3, 10])
def test_dtm_from_tokens_parallel(n_workers):
    tokens = [('d%d' % (i % 7), 'term%d' % (i % 13)) for i in range(200)] + EXAMPLE_TOKENS

    serial = bow.dtm_from_tokens(tokens)
    parallel = bow.dtm_from_tokens(tokens, n_workers=n_workers)

    assert parallel == serial
    assert parallel.doc_labels == serial.doc_labels
    assert parallel.vocab == serial.vocab
    assert parallel.total == len(tokens)


def test_dtm_from_tokens_parallel_small_input():
    # fewer records than workers
    assert bow.dtm_from_tokens(EXAMPLE_TOKENS[:1], n_workers=4) == bow.dtm_from_tokens(EXAMPLE_TOKENS[:1])

    with pytest.raises(InvalidInput):
        bow.dtm_from_tokens([], n_workers=2)


def test_dtm_from_table():
    df = pd.DataFrame({
        'document': [t[0] for t in EXAMPLE_TOKENS],
        'lemma': [t[1] for t in EXAMPLE_TOKENS],
        'upos': ['NOUN', 'NOUN', 'NOUN', 'VERB', 'VERB'],
    })

    dtm = bow.dtm_from_table(df, doc_col='document', term_col='lemma')
    assert dtm == bow.dtm_from_tokens(EXAMPLE_TOKENS)
    assert dtm.vocab == ('chicken', 'bird', 'eat')

    with pytest.raises(InvalidInput):
        bow.dtm_from_table(df)   # default column names don't exist

    with pytest.raises(InvalidInput):
        bow.dtm_from_table(df.iloc[:0], doc_col='document', term_col='lemma')


def test_dtm_from_table_missing_values():
    df = pd.DataFrame({'doc': ['d1', 'd1', 'd2'], 'term': ['a', 'b', 'a'], 'pos': ['NOUN', np.nan, None]})
    dtm = bow.dtm_from_table(df)
    assert dtm.doc_labels == ('d1', 'd2')
    assert dtm.vocab == ('a', 'b')
    assert dtm.total == 3

    with pytest.raises(InvalidInput):
        bow.dtm_from_table(pd.DataFrame({'doc': ['d1', np.nan, np.nan], 'term': ['a', 'b', 'c']}))

    with pytest.raises(InvalidInput):
        bow.dtm_from_table(pd.DataFrame({'doc': ['d1', 'd2'], 'term': ['a', np.nan]}))


def test_dtm_from_docs():
    docs = {'d1': ['chicken', 'bird'], 'd2': ['bird', 'eat', 'eat'], 'd3': []}
    dtm = bow.dtm_from_docs(docs)

    assert dtm.doc_labels == ('d1', 'd2', 'd3')
    assert dtm.vocab == ('chicken', 'bird', 'eat')
    assert dtm.row('d3') == {}
    assert dtm.select_docs(['d1', 'd2']) == bow.dtm_from_tokens(EXAMPLE_TOKENS)

    with pytest.raises(InvalidInput):
        bow.dtm_from_docs({})

    with pytest.raises(InvalidInput):
        bow.dtm_from_docs({'d1': []})

    with pytest.raises(InvalidInput):
        bow.dtm_from_docs({'d1': ['a', 1]})


def test_create_sparse_dtm():
    vocab = np.array(['a', 'b', 'c'])
    docs = [['a', 'c', 'a'], [], ['b']]
    mat = create_sparse_dtm(vocab, docs, 3)

    assert mat.shape == (3, 3)
    assert mat.toarray().tolist() == [[2, 0, 1], [0, 0, 0], [0, 1, 0]]


@given(mat=strategy_dtm_small())
def test_dtm_to_dataframe_hypothesis(mat):
    doc_labels = ['doc%d' % i for i in range(mat.shape[0])]
    vocab = ['t%d' % j for j in range(mat.shape[1])]

    df = dtm_to_dataframe(csr_matrix(mat), doc_labels, vocab)
    assert df.shape == mat.shape
    assert df.index.tolist() == doc_labels
    assert df.columns.tolist() == vocab
    assert df.to_numpy().tolist() == mat.tolist()

    with pytest.raises(ValueError):
        dtm_to_dataframe(mat, doc_labels[1:], vocab)

    dtm = DocumentTermMatrix(mat, doc_labels, vocab)
    assert issparse(as_matrix(dtm))
    assert as_matrix(mat) is mat
    assert dtm.total == mat.sum()
