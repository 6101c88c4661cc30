import pytest
import numpy as np
import pandas as pd

from dtmtoolkit import tokenseq
from dtmtoolkit.errors import InvalidInput, DTMError
from dtmtoolkit.types import TokenRecord


TOKENS_WITH_POS = [
    ('d1', 'chicken', 'NOUN'), ('d1', 'cross', 'VERB'), ('d1', 'the', 'DET'), ('d1', 'road', 'NOUN'),
    ('d2', 'quickly', 'ADV'), ('d2', 'Berlin', 'PROPN'), ('d2', 'red', 'ADJ'), ('d2', ',', 'PUNCT'),
]


@pytest.mark.parametrize('pos, tagset, expected', [
    ('NOUN', 'ud', 'N'),
    ('PROPN', 'ud', 'N'),
    ('VERB', 'ud', 'V'),
    ('ADJ', 'ud', 'ADJ'),
    ('ADV', 'ud', 'ADV'),
    ('DET', 'ud', ''),
    ('NNS', 'penn', 'N'),
    ('VBD', 'penn', 'V'),
    ('JJR', 'penn', 'ADJ'),
    ('RBS', 'penn', 'ADV'),
    ('DT', 'penn', ''),
    ('N', 'wn', 'N'),
    ('ADJ_SAT', 'wn', 'ADJ'),
    ('ADV', 'wn', 'ADV'),
    ('X', 'wn', ''),
    ('', 'ud', ''),
    (None, 'ud', ''),
])
def test_simplified_pos(pos, tagset, expected):
    assert tokenseq.simplified_pos(pos, tagset=tagset) == expected


def test_simplified_pos_default_and_invalid():
    assert tokenseq.simplified_pos('DET', default=None) is None
    assert tokenseq.simplified_pos(None, default='?') == '?'

    with pytest.raises(ValueError):
        tokenseq.simplified_pos('NOUN', tagset='foo')


@pytest.mark.parametrize('rec, expected', [
    (('d1', 'foo'), TokenRecord('d1', 'foo', None)),
    (['d1', 'foo', 'NOUN'], TokenRecord('d1', 'foo', 'NOUN')),
    ((5, 'foo', 'NOUN', 'extra'), TokenRecord(5, 'foo', 'NOUN')),
    (TokenRecord('d1', 'bar'), TokenRecord('d1', 'bar', None)),
    (('d1', 'foo', np.nan), TokenRecord('d1', 'foo', None)),
    (('d1', 'foo', pd.NA), TokenRecord('d1', 'foo', None)),
    ((('d', 1), 'foo'), TokenRecord(('d', 1), 'foo', None)),
])
def test_as_token_record(rec, expected):
    res = tokenseq.as_token_record(rec)
    assert isinstance(res, TokenRecord)
    assert res == expected


@pytest.mark.parametrize('rec', [
    'd1 foo',
    b'd1',
    ('d1', ),
    42,
    None,
    (None, 'foo'),
    (np.nan, 'foo'),
    (pd.NA, 'foo', 'NOUN'),
    ('d1', 123),
    ('d1', np.nan),
    ('d1', None, 'NOUN'),
])
def test_as_token_record_invalid(rec):
    with pytest.raises(InvalidInput):
        tokenseq.as_token_record(rec)


def test_invalid_input_is_value_error():
    with pytest.raises(ValueError):
        tokenseq.as_token_record(('d1', 1))
    assert issubclass(InvalidInput, DTMError)


def test_token_records_from_list():
    res = list(tokenseq.token_records(TOKENS_WITH_POS))
    assert len(res) == len(TOKENS_WITH_POS)
    assert all(isinstance(r, TokenRecord) for r in res)
    assert [tuple(r) for r in res] == TOKENS_WITH_POS


def test_token_records_from_dataframe():
    df = pd.DataFrame(TOKENS_WITH_POS, columns=['document', 'lemma', 'upos'])

    res = list(tokenseq.token_records(df, doc_col='document', term_col='lemma', pos_col='upos'))
    assert [tuple(r) for r in res] == TOKENS_WITH_POS

    res = list(tokenseq.token_records(df, doc_col='document', term_col='lemma', pos_col=None))
    assert [r.pos for r in res] == [None] * len(TOKENS_WITH_POS)

    # missing POS column is not an error
    res = list(tokenseq.token_records(df[['document', 'lemma']], doc_col='document', term_col='lemma'))
    assert [r.pos for r in res] == [None] * len(TOKENS_WITH_POS)

    with pytest.raises(InvalidInput):
        list(tokenseq.token_records(df, doc_col='doc', term_col='lemma'))


@pytest.mark.parametrize('search_pos, simplify_pos, inverse, expected_terms', [
    ('N', True, False, ['chicken', 'road', 'Berlin']),
    (['N', 'V'], True, False, ['chicken', 'cross', 'road', 'Berlin']),
    ('ADJ', True, False, ['red']),
    ('N', True, True, ['cross', 'the', 'quickly', 'red', ',']),
    ('NOUN', False, False, ['chicken', 'road']),
    ({'PROPN', 'PUNCT'}, False, False, ['Berlin', ',']),
    ('X', True, False, []),
])
def test_filter_tokens_by_pos(search_pos, simplify_pos, inverse, expected_terms):
    res = tokenseq.filter_tokens_by_pos(TOKENS_WITH_POS, search_pos, simplify_pos=simplify_pos, inverse=inverse)
    assert isinstance(res, list)
    assert all(isinstance(r, TokenRecord) for r in res)
    assert [r.term for r in res] == expected_terms


def test_filter_tokens_by_pos_penn():
    tokens = [('d1', 'dogs', 'NNS'), ('d1', 'barked', 'VBD'), ('d1', 'loudly', 'RB')]
    res = tokenseq.filter_tokens_by_pos(tokens, ['N', 'ADV'], tagset='penn')
    assert [r.term for r in res] == ['dogs', 'loudly']


def test_token_records_from_dataframe_with_missing_values():
    df = pd.DataFrame({'doc': ['d1', 'd1', 'd2'], 'term': ['chicken', 'xyz', 'eat'], 'pos': ['NOUN', np.nan, 'VERB']})

    res = list(tokenseq.token_records(df))
    assert [r.pos for r in res] == ['NOUN', None, 'VERB']

    res = tokenseq.filter_tokens_by_pos(df, ['N', 'V'])
    assert [r.term for r in res] == ['chicken', 'eat']

    res = tokenseq.filter_tokens_by_pos(df, 'N', inverse=True)
    assert [r.term for r in res] == ['xyz', 'eat']

    # a POS column that contains only missing values
    df_nopos = df.assign(pos=np.nan)
    assert [r.pos for r in tokenseq.token_records(df_nopos)] == [None] * 3

    df_nodoc = pd.DataFrame({'doc': ['d1', np.nan, np.nan], 'term': ['a', 'b', 'c']})
    with pytest.raises(InvalidInput):
        list(tokenseq.token_records(df_nodoc))

    with pytest.raises(InvalidInput):
        tokenseq.filter_tokens_by_pos(df_nodoc.assign(pos='NOUN'), 'N')
