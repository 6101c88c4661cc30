"""
Exceptions raised by the document-term matrix pipeline.

All exceptions derive from :class:`ValueError`, so code that catches invalid argument errors in general will also
catch these.
"""


class DTMError(ValueError):
    """Base class for all errors raised by the document-term matrix pipeline."""
    pass


class InvalidInput(DTMError):
    """
    Raised for empty or malformed input, e.g. an empty token sequence, a token record without a term, or a
    document-term matrix that doesn't contain any term occurrences where a total is required.
    """
    pass


class VocabularyMismatch(DTMError):
    """
    Raised by :func:`~dtmtoolkit.bow.compare.compare_dtms` when two document-term matrices share no terms and the
    caller requested an error instead of the flagged, empty comparison result.
    """
    pass


class DimensionError(DTMError):
    """
    Raised when a set of terms used for projecting a document-term matrix references terms that don't exist in the
    matrix and strict checking was requested.
    """
    pass
