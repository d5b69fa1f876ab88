"""Scenario catalogue and canned customer replies"""

from . import customer_replies
from . import exam_support
from .exam_support import SCENARIOS

__all__ = [
    'customer_replies',
    'exam_support',
    'SCENARIOS'
]
