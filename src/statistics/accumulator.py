"""
Aggregation Accumulator

Folds resolved ledger entries into running totals keyed by a grouping
dimension. The fold is pure: the same entries and key function always
produce the same totals.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, Optional, Set

from src.data.models import Campaign
from .ledger import DEFAULT_CURRENCY_PRECISION, LedgerEntry, round_currency

KeyFunc = Callable[[LedgerEntry], Hashable]


@dataclass
class Totals:
    """Running totals of one group"""
    revenue: float = 0.0
    profit: float = 0.0
    refund_amount: float = 0.0
    partial_refund_order_count: int = 0
    full_refund_order_count: int = 0
    order_count: int = 0
    campaign_ids: Set[str] = field(default_factory=set)
    # customer id -> PAID/COMPLETED orders placed
    customer_orders: Counter = field(default_factory=Counter)
    precision: int = field(default=DEFAULT_CURRENCY_PRECISION, compare=False, repr=False)

    @property
    def unique_customer_ids(self) -> Set[str]:
        return set(self.customer_orders)

    @property
    def unique_customer_count(self) -> int:
        return len(self.customer_orders)

    @property
    def group_count(self) -> int:
        return len(self.campaign_ids)

    def purchase_counts(self) -> Dict[str, int]:
        """Customer id -> number of PAID or COMPLETED orders"""
        return dict(self.customer_orders)

    def purchase_count(self, customer_id: str) -> int:
        return self.customer_orders.get(customer_id, 0)

    def add(self, entry: LedgerEntry) -> None:
        resolved = entry.resolved
        self.revenue = round_currency(self.revenue + resolved.revenue, self.precision)
        self.profit = round_currency(self.profit + resolved.profit, self.precision)
        self.campaign_ids.add(entry.campaign.id)

        if resolved.is_full_refund:
            self.full_refund_order_count += 1
            self.refund_amount = round_currency(self.refund_amount + resolved.refund_contribution, self.precision)
        elif resolved.refund_contribution > 0:
            self.partial_refund_order_count += 1
            self.refund_amount = round_currency(self.refund_amount + resolved.refund_contribution, self.precision)

        if resolved.counts_toward_order_volume:
            self.order_count += 1
            self.customer_orders[entry.order.customer_id] += 1


class Accumulator:
    """
    Groups ledger entries by a caller supplied key.

    Campaigns can be registered separately so that groups exist (with zero
    totals and a campaign count) even when none of their orders survive
    filtering.

    Example:
        acc = Accumulator(by_product, precision=scan.precision)
        acc.add_campaigns(scan.campaigns, campaign_key=lambda c: c.product_id)
        acc.add_all(scan.entries)
        groups = acc.groups
    """

    def __init__(self, key_func: Optional[KeyFunc] = None, precision: int = DEFAULT_CURRENCY_PRECISION):
        self.key_func = key_func or by_total
        self.precision = precision
        self._groups: Dict[Hashable, Totals] = {}

    def _totals(self, key: Hashable) -> Totals:
        totals = self._groups.get(key)
        if totals is None:
            totals = self._groups[key] = Totals(precision=self.precision)
        return totals

    def add(self, entry: LedgerEntry) -> None:
        self._totals(self.key_func(entry)).add(entry)

    def add_all(self, entries: Iterable[LedgerEntry]) -> "Accumulator":
        for entry in entries:
            self.add(entry)
        return self

    def add_campaign(self, key: Hashable, campaign: Campaign) -> None:
        self._totals(key).campaign_ids.add(campaign.id)

    def add_campaigns(
        self,
        campaigns: Iterable[Campaign],
        campaign_key: Callable[[Campaign], Hashable],
    ) -> "Accumulator":
        for campaign in campaigns:
            self.add_campaign(campaign_key(campaign), campaign)
        return self

    @property
    def groups(self) -> Dict[Hashable, Totals]:
        return self._groups


def accumulate(
    entries: Iterable[LedgerEntry],
    key_func: Optional[KeyFunc] = None,
    precision: int = DEFAULT_CURRENCY_PRECISION,
) -> Dict[Hashable, Totals]:
    """Fold entries into totals per group key"""
    return Accumulator(key_func, precision).add_all(entries).groups


# =============================================================================
# GROUP KEYS
# =============================================================================

def by_total(entry: LedgerEntry) -> Hashable:
    return None


def by_launch_day(entry: LedgerEntry) -> Hashable:
    return entry.campaign.group_buy_start_date


def by_merged_name(entry: LedgerEntry) -> Hashable:
    return merged_name_key(entry.campaign)


def merged_name_key(campaign: Campaign) -> Hashable:
    """Same-named campaigns of one supplier collapse into one group"""
    return (campaign.name, campaign.supplier_id)


def by_product(entry: LedgerEntry) -> Hashable:
    return entry.campaign.product_id


def by_customer(entry: LedgerEntry) -> Hashable:
    return entry.order.customer_id
