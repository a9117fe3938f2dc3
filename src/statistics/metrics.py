"""
Derived ratios shared by every report view.

Every ratio falls back to 0 when its denominator is empty.
"""

from typing import Any, Dict, Optional

from .accumulator import Totals


def safe_divide(numerator: float, denominator: float, precision: int = 2) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator, precision)


def profit_margin(profit: float, revenue: float) -> float:
    """Profit as a percentage of revenue, 0 unless revenue is positive"""
    if revenue <= 0:
        return 0.0
    return round(profit / revenue * 100, 2)


def summarize(totals: Totals, group_count: Optional[int] = None) -> Dict[str, Any]:
    """
    Summary metrics of one group.

    Args:
        totals: Accumulated totals
        group_count: Campaign count override; defaults to the campaigns
            registered on the totals

    Returns:
        Keyword arguments for ``SummaryMetrics`` and its subclasses
    """
    groups = totals.group_count if group_count is None else group_count
    return {
        "total_revenue": totals.revenue,
        "total_profit": totals.profit,
        "total_refund_amount": totals.refund_amount,
        "partial_refund_order_count": totals.partial_refund_order_count,
        "full_refund_order_count": totals.full_refund_order_count,
        "total_order_count": totals.order_count,
        "total_group_buy_count": groups,
        "unique_customer_count": totals.unique_customer_count,
        "profit_margin": profit_margin(totals.profit, totals.revenue),
        "average_order_value": safe_divide(totals.revenue, totals.unique_customer_count),
        "average_group_buy_revenue": safe_divide(totals.revenue, groups),
        "average_group_buy_profit": safe_divide(totals.profit, groups),
        "average_group_buy_order_count": safe_divide(totals.order_count, groups),
    }
