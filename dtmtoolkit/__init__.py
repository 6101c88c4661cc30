"""
dtmtoolkit – sparse document-term matrices, term statistics, vocabulary filtering and corpus comparison for Python
"""

from importlib.util import find_spec
import logging

__title__ = 'dtmtoolkit'
__version__ = '0.1.0'
__author__ = 'dtmtoolkit developers'
__license__ = 'Apache License 2.0'

logger = logging.getLogger(__title__)
logger.addHandler(logging.NullHandler())
logger.setLevel(logging.WARNING)   # set default level


from . import bow, defaults, errors, tokenseq, types, utils

if find_spec('lda'):
    from . import topicmod
