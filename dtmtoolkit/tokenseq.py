"""
Module for functions that work with *token records*, i.e. the ``(document, term, POS tag)`` triples that an external
tokenizer / lemmatizer delivers, e.g.::

    [('d1', 'chicken', 'NOUN'), ('d1', 'cross', 'VERB'), ('d1', 'road', 'NOUN'), ...]

These functions prepare the token stream for :func:`~dtmtoolkit.bow.dtm.dtm_from_tokens`. Any filtering by POS tag
must happen here, *before* the document-term matrix is built.
"""

import logging
from typing import Union, List, Optional, Iterable, Iterator, Collection, Any

import pandas as pd

from .errors import InvalidInput
from .types import TokenRecord


logger = logging.getLogger('dtmtoolkit')


#%% functions that operate on single tokens / tags


def simplified_pos(pos: Optional[str], tagset: str = 'ud', default: str = '') -> str:
    """
    Return a simplified POS tag for a full POS tag `pos` belonging to a tagset `tagset`.

    Does the following conversion by default (``tagset=='ud'``, universal dependencies):

    - NOUN and PROPN (nouns and names) to 'N'
    - VERB to 'V'
    - ADJ and ADV are kept
    - all other to `default`

    Does the following conversion with ``tagset=='penn'``:

    - all N... (noun) tags to 'N'
    - all V... (verb) tags to 'V'
    - all JJ... (adjective) tags to 'ADJ'
    - all RB... (adverb) tags to 'ADV'
    - all other to `default`

    Does the following conversion with ``tagset=='wn'`` (WordNet):

    - all N... (noun) tags to 'N'
    - all V... (verb) tags to 'V'
    - all ADJ... (adjective) tags to 'ADJ'
    - all ADV... (adverb) tags to 'ADV'
    - all other to `default`

    :param pos: a POS tag as string or None
    :param tagset: tagset used for `pos`; can be ``'wn'`` (WordNet), ``'penn'`` (Penn tagset)
                   or ``'ud'`` (universal dependencies – default)
    :param default: default return value when tag could not be simplified
    :return: simplified tag string
    """

    if pos and not isinstance(pos, str):
        raise ValueError('`pos` must be a string or None')

    if tagset not in {'ud', 'penn', 'wn'}:
        raise ValueError('unknown tagset "%s"' % tagset)

    if not pos:
        return default

    if tagset == 'ud':
        if pos in ('NOUN', 'PROPN'):
            return 'N'
        elif pos == 'VERB':
            return 'V'
        elif pos in ('ADJ', 'ADV'):
            return pos
        else:
            return default
    elif tagset == 'penn':
        if pos.startswith('N') or pos.startswith('V'):
            return pos[0]
        elif pos.startswith('JJ'):
            return 'ADJ'
        elif pos.startswith('RB'):
            return 'ADV'
        else:
            return default
    else:   # WordNet
        if pos.startswith('N') or pos.startswith('V'):
            return pos[0]
        elif pos.startswith('ADJ') or pos.startswith('ADV'):
            return pos[:3]
        else:
            return default


#%% functions that operate on token record sequences


def as_token_record(rec: Any) -> TokenRecord:
    """
    Convert a single token record `rec` to a :class:`~dtmtoolkit.types.TokenRecord`. `rec` can be any sequence with at
    least two items: document identifier and term string, optionally followed by a POS tag. Missing values (None or
    pandas / NumPy NA values such as ``NaN``) are not allowed as document identifier; a missing POS tag is stored
    as None.

    :param rec: token record as sequence
    :return: TokenRecord
    """
    if isinstance(rec, TokenRecord):
        doc, term, pos = rec
    elif isinstance(rec, (str, bytes)):
        raise InvalidInput('token record must be a sequence of (document, term[, pos]), not a string: %r' % (rec, ))
    else:
        try:
            doc, term = rec[0], rec[1]
            pos = rec[2] if len(rec) > 2 else None
        except (TypeError, IndexError, KeyError):
            raise InvalidInput('token record must be a sequence of (document, term[, pos]): %r' % (rec, ))

    if _is_missing(doc):
        raise InvalidInput('document identifier of a token record must not be missing: %r' % (rec, ))

    if not isinstance(term, str):
        raise InvalidInput('term of a token record must be a string, not %s: %r' % (type(term).__name__, term))

    if _is_missing(pos):
        pos = None

    return TokenRecord(doc, term, pos)


def _is_missing(x: Any) -> bool:
    """Check if scalar `x` is None or a pandas / NumPy NA value like ``NaN``, ``pd.NA`` or ``NaT``."""
    return x is None or (pd.api.types.is_scalar(x) and bool(pd.isna(x)))


def token_records(tokens: Union[Iterable[Any], pd.DataFrame], doc_col: str = 'doc', term_col: str = 'term',
                  pos_col: Optional[str] = 'pos') -> Iterator[TokenRecord]:
    """
    Generate :class:`~dtmtoolkit.types.TokenRecord` objects from `tokens`, which is either an iterable of token
    record sequences or a pandas DataFrame with one token per row (as e.g. retrieved from a linguistic annotation
    service).

    :param tokens: iterable of ``(document, term[, pos])`` sequences or a token table
    :param doc_col: if `tokens` is a DataFrame, name of the document identifier column
    :param term_col: if `tokens` is a DataFrame, name of the term (lemma) column
    :param pos_col: if `tokens` is a DataFrame, name of the POS tag column; if this column does not exist or
                    `pos_col` is None, no POS tags are set
    :return: generator of TokenRecord objects
    """
    if isinstance(tokens, pd.DataFrame):
        for col in (doc_col, term_col):
            if col not in tokens.columns:
                raise InvalidInput('token table does not contain column "%s"' % col)

        if pos_col is not None and pos_col in tokens.columns:
            pos_vals = tokens[pos_col]
        else:
            pos_vals = [None] * len(tokens)

        for rec in zip(tokens[doc_col], tokens[term_col], pos_vals):
            yield as_token_record(rec)
    else:
        for rec in tokens:
            yield as_token_record(rec)


def filter_tokens_by_pos(tokens: Union[Iterable[Any], pd.DataFrame], search_pos: Union[str, Collection[str]],
                         simplify_pos: bool = True, tagset: str = 'ud', inverse: bool = False) -> List[TokenRecord]:
    """
    Filter token records for a specific POS tag (if `search_pos` is a string) or several POS tags (if `search_pos`
    is a list/tuple/set of strings).

    If `simplify_pos` is True, then the tags are matched to the following simplified forms (see
    :func:`~dtmtoolkit.tokenseq.simplified_pos`):

    * ``'N'`` for nouns and names
    * ``'V'`` for verbs
    * ``'ADJ'`` for adjectives
    * ``'ADV'`` for adverbs
    * ``''`` for all other

    :param tokens: iterable of ``(document, term, pos)`` sequences or a token table (see
                   :func:`~dtmtoolkit.tokenseq.token_records`)
    :param search_pos: single string or list of strings with POS tag(s) used for filtering
    :param simplify_pos: if True, simplify POS tags to forms shown above before matching
    :param tagset: tagset used for the POS tags; can be ``'wn'`` (WordNet), ``'penn'`` (Penn tagset)
                   or ``'ud'`` (universal dependencies – default)
    :param inverse: inverse the matching results, i.e. *remove* tokens that match the POS tag
    :return: list of retained TokenRecord objects
    """
    if isinstance(search_pos, str):
        search_pos = {search_pos}
    else:
        search_pos = set(search_pos)

    logger.debug('filtering token records by POS tags %s' % sorted(search_pos))

    res = []
    for rec in token_records(tokens):
        pos = simplified_pos(rec.pos, tagset=tagset) if simplify_pos else rec.pos
        if (pos in search_pos) != inverse:
            res.append(rec)

    return res
