"""
Bag-of-Words (BoW) sub-package with modules for generating document-term-matrices (DTMs), computing term statistics,
filtering the vocabulary of DTMs and comparing the term frequencies of two corpora.
"""

from . import dtm, bow_stats, vocab_filter, compare

from .dtm import DocumentTermMatrix, dtm_from_tokens, dtm_from_table, dtm_from_docs
from .bow_stats import term_statistics
from .vocab_filter import VocabularyFilter, filter_vocabulary, project_dtm, filter_dtm
from .compare import CorpusComparison, compare_dtms
