"""
Topic modeling sub-package. Topic models are computed with the `lda package <https://github.com/lda-project/lda>`_,
which must be installed in order to use :mod:`~dtmtoolkit.topicmod.tm_lda`. The functions here prepare a
document-term matrix for model fitting and map the model results back to document labels and terms.
"""

from . import model_stats, tm_lda

from .tm_lda import LDAResult, fit_lda
