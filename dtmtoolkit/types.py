"""
Module with common types used in type annotations throughout this project.
"""

from typing import Union, NamedTuple, Optional


StrOrInt = Union[str, int]


class TokenRecord(NamedTuple):
    """
    A single token as delivered by a tokenizer / lemmatizer: the document it belongs to, its term (usually the lemma)
    and optionally its part-of-speech tag.
    """
    doc: StrOrInt
    term: str
    pos: Optional[str] = None
