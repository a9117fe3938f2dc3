"""
Statistics engine errors.

Data gaps (an order whose unit id is missing from its campaign) are not
errors; they are counted and skipped by the ledger.
"""

from typing import Any, List, Optional


class StatisticsError(Exception):
    """Base class for engine errors"""


class ContractViolationError(StatisticsError):
    """Input rows do not honor the collaborator's filter contract"""

    def __init__(self, message: str, checks: Optional[List[Any]] = None):
        super().__init__(message)
        self.checks = checks or []


class InvalidQueryError(StatisticsError):
    """Report parameters cannot be served"""
