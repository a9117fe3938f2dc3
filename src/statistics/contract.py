"""
Boundary check of the collaborator's filter contract.

Soft-deleted rows or orders outside the requested status set mean the
caller broke the contract; this fails fast instead of producing totals.
"""

from typing import FrozenSet, List

import structlog

from src.data.models import Campaign, OrderStatus
from src.quality.validators import (
    campaigns_frame,
    create_campaigns_validator,
    create_orders_validator,
    orders_frame,
)
from .exceptions import ContractViolationError

logger = structlog.get_logger(__name__)


def enforce_row_contract(campaigns: List[Campaign], statuses: FrozenSet[OrderStatus]) -> None:
    """
    Validate campaign and order rows before aggregation.

    Raises:
        ContractViolationError: if any error-level check fails
    """
    results = [
        create_campaigns_validator().validate(campaigns_frame(campaigns)),
        create_orders_validator(statuses).validate(orders_frame(campaigns)),
    ]
    failures = [check for result in results for check in result.failures]
    if failures:
        logger.error("Input rows violate the filter contract", checks=[c.name for c in failures])
        raise ContractViolationError(
            "Input rows violate the filter contract: " + "; ".join(c.message for c in failures),
            checks=failures,
        )
