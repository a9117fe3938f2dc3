"""
Group-Buy Statistics Engine
"""
from .accumulator import Accumulator, Totals, accumulate
from .exceptions import ContractViolationError, InvalidQueryError, StatisticsError
from .frequency import FrequencyBucket, bucket_frequencies, multi_purchase_stats, select_boundaries
from .ledger import LedgerEntry, LedgerScan, ResolvedOrder, resolve_order, round_currency, scan_ledger
from .query import DateWindow, ReportQuery
from .reports import ReportBuilder
from .trends import (
    BucketedTrendPoint,
    TrendPoint,
    bucket_series,
    build_trends,
    monthly_rollup,
    rebuild_cumulative,
    select_bucket_size,
)

__all__ = [
    "Accumulator",
    "Totals",
    "accumulate",
    "ContractViolationError",
    "InvalidQueryError",
    "StatisticsError",
    "FrequencyBucket",
    "bucket_frequencies",
    "multi_purchase_stats",
    "select_boundaries",
    "LedgerEntry",
    "LedgerScan",
    "ResolvedOrder",
    "resolve_order",
    "round_currency",
    "scan_ledger",
    "DateWindow",
    "ReportQuery",
    "ReportBuilder",
    "BucketedTrendPoint",
    "TrendPoint",
    "bucket_series",
    "build_trends",
    "monthly_rollup",
    "rebuild_cumulative",
    "select_bucket_size",
]
