"""
Common constants for topic modeling sub-package.
"""


DEFAULT_TOPIC_NAME_FMT = 'topic_{i1}'
DEFAULT_RANK_NAME_FMT = 'rank_{i1}'
DEFAULT_VALUE_FORMAT = '{lbl} ({val:.4})'
