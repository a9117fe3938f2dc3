"""
Order Ledger

Single home of the accounting policy: turns one order plus the unit it
references into signed revenue, profit and refund contributions.

Policy:
- REFUNDED: revenue 0, profit is the negative cost, the gross amount is
  booked as refunded. Any partial refund amount on the row is ignored.
- PAID / COMPLETED: the partial refund amount is taken off both revenue
  and profit and booked as refunded when positive.
- Orders whose unit id cannot be resolved contribute nothing and are
  reported as skipped.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Iterator, List, Optional

import structlog

from src.data.models import Campaign, Order, OrderStatus, Unit
from .exceptions import ContractViolationError

logger = structlog.get_logger(__name__)

# Matches the StatisticsSettings.currency_precision default
DEFAULT_CURRENCY_PRECISION = 2


def round_currency(value: float, precision: int = DEFAULT_CURRENCY_PRECISION) -> float:
    """Round half-up to ``precision`` decimal places"""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ResolvedOrder:
    """Monetary contribution of one order"""
    revenue: float
    profit: float
    refund_contribution: float
    counts_toward_order_volume: bool
    is_full_refund: bool

    @property
    def is_partial_refund(self) -> bool:
        return not self.is_full_refund and self.refund_contribution > 0


def resolve_order(order: Order, unit: Unit, precision: int = DEFAULT_CURRENCY_PRECISION) -> ResolvedOrder:
    """
    Apply the refund policy to one order.

    Args:
        order: A non-deleted order in PAID, COMPLETED or REFUNDED
        unit: The unit the order references
        precision: Decimal places kept at each combination

    Returns:
        ResolvedOrder with currency values rounded at each combination

    Raises:
        ContractViolationError: if an unpaid order is passed in
    """
    if order.status == OrderStatus.NOTPAID:
        raise ContractViolationError(f"Order {order.id} is not paid and cannot be resolved")

    gross = round_currency(unit.price * order.quantity, precision)
    cost = round_currency(unit.cost_price * order.quantity, precision)

    if order.status == OrderStatus.REFUNDED:
        return ResolvedOrder(
            revenue=0.0,
            profit=round_currency(-cost, precision),
            refund_contribution=gross,
            counts_toward_order_volume=False,
            is_full_refund=True,
        )

    partial = round_currency(order.partial_refund_amount or 0, precision)
    gross_profit = round_currency(gross - cost, precision)
    return ResolvedOrder(
        revenue=round_currency(gross - partial, precision),
        profit=round_currency(gross_profit - partial, precision),
        refund_contribution=partial if partial > 0 else 0.0,
        counts_toward_order_volume=True,
        is_full_refund=False,
    )


@dataclass(frozen=True)
class LedgerEntry:
    """A resolved order together with the rows it came from"""
    campaign: Campaign
    order: Order
    unit: Unit
    resolved: ResolvedOrder


@dataclass
class LedgerScan:
    """Outcome of resolving every order of a set of campaigns"""
    campaigns: List[Campaign] = field(default_factory=list)
    entries: List[LedgerEntry] = field(default_factory=list)
    skipped_order_ids: List[str] = field(default_factory=list)
    precision: int = DEFAULT_CURRENCY_PRECISION

    @property
    def skipped_order_count(self) -> int:
        return len(self.skipped_order_ids)


def iter_campaign_entries(
    campaign: Campaign,
    skipped: Optional[List[str]] = None,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> Iterator[LedgerEntry]:
    """Resolve the orders of one campaign against its current unit table"""
    units = campaign.unit_index()
    for order in campaign.orders:
        unit = units.get(order.unit_id)
        if unit is None:
            logger.debug(
                "Order unit not found, skipping",
                order_id=order.id,
                unit_id=order.unit_id,
                group_buy_id=campaign.id,
            )
            if skipped is not None:
                skipped.append(order.id)
            continue
        yield LedgerEntry(
            campaign=campaign,
            order=order,
            unit=unit,
            resolved=resolve_order(order, unit, precision),
        )


def scan_ledger(campaigns: Iterable[Campaign], precision: int = DEFAULT_CURRENCY_PRECISION) -> LedgerScan:
    """Resolve all orders of the given campaigns"""
    scan = LedgerScan(precision=precision)
    for campaign in campaigns:
        scan.campaigns.append(campaign)
        scan.entries.extend(iter_campaign_entries(campaign, scan.skipped_order_ids, precision))

    if scan.skipped_order_ids:
        logger.warning(
            "Orders skipped for unresolved units",
            skipped=scan.skipped_order_count,
            resolved=len(scan.entries),
        )
    return scan
