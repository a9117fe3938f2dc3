"""
Purchase Frequency Distribution

Groups customers by how many campaigns they bought in. Range boundaries
depend on the size of the campaign population so that small populations
get one bar per count and large ones get widening ranges.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

Boundary = Tuple[int, Optional[int]]

_SINGLES: Tuple[Boundary, ...] = ((1, 1), (2, 2), (3, 3), (4, 4))


@dataclass(frozen=True)
class FrequencyBucket:
    """Customers whose purchase count lies in [min_frequency, max_frequency]"""
    min_frequency: int
    max_frequency: Optional[int]
    count: int

    @property
    def label(self) -> str:
        if self.max_frequency is None:
            return f"{self.min_frequency}+"
        if self.min_frequency == self.max_frequency:
            return str(self.min_frequency)
        return f"{self.min_frequency}-{self.max_frequency}"


def select_boundaries(total_groups: int) -> List[Boundary]:
    """Candidate ranges for a population of ``total_groups`` campaigns; None is open-ended"""
    if total_groups >= 20:
        return [*_SINGLES, (5, 9), (10, 19), (20, 39), (40, None)]
    if total_groups >= 10:
        return [*_SINGLES, (5, 9), (10, None)]
    if total_groups >= 5:
        return [*_SINGLES, (5, None)]
    return [(i, i) for i in range(1, max(1, total_groups) + 1)]


def bucket_frequencies(purchase_counts: Mapping[str, int], total_groups: int) -> List[FrequencyBucket]:
    """
    Count customers per frequency range, dropping empty ranges.

    Args:
        purchase_counts: Customer id -> purchase count
        total_groups: Size of the campaign population in scope

    Returns:
        Non-empty buckets in ascending range order
    """
    buckets = []
    for low, high in select_boundaries(total_groups):
        count = sum(
            1 for purchases in purchase_counts.values()
            if purchases >= low and (high is None or purchases <= high)
        )
        if count > 0:
            buckets.append(FrequencyBucket(min_frequency=low, max_frequency=high, count=count))
    return buckets


@dataclass(frozen=True)
class MultiPurchaseStats:
    multi_purchase_count: int
    multi_purchase_ratio: float


def multi_purchase_stats(purchase_counts: Mapping[str, int], unique_customer_count: Optional[int] = None) -> MultiPurchaseStats:
    """Customers with more than one purchase and their share in percent"""
    denominator = len(purchase_counts) if unique_customer_count is None else unique_customer_count
    count = sum(1 for purchases in purchase_counts.values() if purchases > 1)
    ratio = round(count / denominator * 100, 2) if denominator > 0 else 0.0
    return MultiPurchaseStats(multi_purchase_count=count, multi_purchase_ratio=ratio)
