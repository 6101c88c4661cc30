"""
Module with default settings that are used throughout the package and which can be changed during runtime, e.g.::

    import dtmtoolkit

    dtmtoolkit.defaults.lda_n_iter = 2000
    # -> `fit_lda` will now run 2000 Gibbs sampling iterations by default
"""

#: default dtype for the counts in a document-term matrix
dtm_dtype = 'int32'

#: logarithm base used for the tf-idf column in the term statistics
tfidf_log_base = 2

#: default parameters for LDA topic models
lda_n_iter = 1000
lda_alpha = 0.1
lda_eta = 0.01
lda_refresh = 100
